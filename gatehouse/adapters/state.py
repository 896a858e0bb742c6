"""
Request-scoped state interfaces: the session store and the client token store.
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Optional


class PersistedState(ABC):
    """Key/value storage scoped to one request/response cycle."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """
        Read a value.

        Args:
            key: Storage key

        Returns:
            The stored value, or None when absent
        """
        pass

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        """Store a value under key."""
        pass

    @abstractmethod
    def forget(self, key: str) -> None:
        """Drop a key. Dropping an absent key is a no-op."""
        pass


class ClientTokenStore(ABC):
    """Tokens held by the client (cookies) with an expiry."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read a token sent by the client.

        Args:
            key: Token name

        Returns:
            The token value, or None when the client did not send it
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str, expires_in: timedelta) -> None:
        """
        Hand a token to the client.

        Args:
            key: Token name
            value: Token value
            expires_in: Lifetime of the token on the client
        """
        pass

    @abstractmethod
    def clear(self, key: str) -> None:
        """Ask the client to drop a token."""
        pass
