"""
User provider interface consumed by the session guard.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Union

UserId = Union[int, str]


class UserProvider(ABC):
    """Abstract base class for user providers.

    Providers resolve users from a backing store and verify their passwords.
    Absence is reported with ``None``; providers never raise for a missing user.
    """

    identifier_key: str = "id"

    @abstractmethod
    async def find_by_uid(self, uid: str) -> Optional[Any]:
        """
        Find a user by one of its unique identifiers (email, username...).

        Args:
            uid: The value to look up

        Returns:
            The user if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_id(self, user_id: UserId) -> Optional[Any]:
        """
        Find a user by its primary key value.

        Args:
            user_id: Primary key value

        Returns:
            The user if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_remember_token(self, token: str) -> Optional[Any]:
        """
        Find the user owning a remember-me token.

        Args:
            token: Remember token read from the client

        Returns:
            The user if found, None otherwise
        """
        pass

    @abstractmethod
    async def verify_password(self, user: Any, password: str) -> bool:
        """
        Verify a plain text password against the user's stored hash.

        Args:
            user: A user previously returned by this provider
            password: Plain text password

        Returns:
            True if the password matches
        """
        pass

    @abstractmethod
    async def save_remember_token(self, user: Any, token: str) -> None:
        """
        Persist a freshly minted remember token against the user.

        Args:
            user: The user logging in
            token: The new remember token
        """
        pass

    def get_id(self, user: Any) -> Optional[UserId]:
        """Return the primary key value of a user, or None when it has none."""
        if isinstance(user, dict):
            return user.get(self.identifier_key)
        return getattr(user, self.identifier_key, None)
