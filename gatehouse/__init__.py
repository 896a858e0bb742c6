"""
gatehouse: session authentication guard with remember-me tokens.
"""

from gatehouse.core import (
    AuthGuard,
    SessionGuard,
    RememberPolicy,
    AuthError,
    UserNotFound,
    PasswordMismatch,
    AuthenticationRequired,
    AlreadyAuthenticated,
    MissingIdentifier,
)
from gatehouse.adapters import UserProvider, PersistedState, ClientTokenStore

__version__ = "0.1.0"

__all__ = [
    "AuthGuard",
    "SessionGuard",
    "RememberPolicy",
    "AuthError",
    "UserNotFound",
    "PasswordMismatch",
    "AuthenticationRequired",
    "AlreadyAuthenticated",
    "MissingIdentifier",
    "UserProvider",
    "PersistedState",
    "ClientTokenStore",
]
