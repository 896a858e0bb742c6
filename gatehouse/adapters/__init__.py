"""
Adapter interfaces and implementations for gatehouse.
"""

from .providers import UserProvider, UserId
from .state import PersistedState, ClientTokenStore

__all__ = [
    "UserProvider",
    "UserId",
    "PersistedState",
    "ClientTokenStore",
]
