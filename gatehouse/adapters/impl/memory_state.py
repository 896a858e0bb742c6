"""
In-memory session and client token stores.

Used outside of HTTP (CLI, background jobs) and by the test suite.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from gatehouse.adapters.state import ClientTokenStore, PersistedState


class MemorySessionState(PersistedState):
    """Dictionary backed session store."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = dict(initial or {})
        self.writes: List[str] = []

    def get(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    def put(self, key: str, value: Any) -> None:
        self.data[key] = value
        self.writes.append(key)

    def forget(self, key: str) -> None:
        self.data.pop(key, None)


@dataclass
class ClientToken:
    """A token held by the client."""
    value: str
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.utcnow()) >= self.expires_at


class MemoryCookieStore(ClientTokenStore):
    """Cookie jar kept in memory.

    Tokens passed at construction behave like cookies sent by the client.
    ``set`` and ``clear`` update the jar immediately and are also recorded so
    callers can inspect what would have been sent back.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.tokens: Dict[str, ClientToken] = {
            key: ClientToken(value) for key, value in (initial or {}).items()
        }
        self.issued: Dict[str, ClientToken] = {}
        self.cleared: List[str] = []

    def get(self, key: str) -> Optional[str]:
        token = self.tokens.get(key)
        if token is None or token.is_expired():
            return None
        return token.value

    def set(self, key: str, value: str, expires_in: timedelta) -> None:
        token = ClientToken(value, datetime.utcnow() + expires_in)
        self.tokens[key] = token
        self.issued[key] = token

    def clear(self, key: str) -> None:
        self.tokens.pop(key, None)
        self.issued.pop(key, None)
        self.cleared.append(key)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
