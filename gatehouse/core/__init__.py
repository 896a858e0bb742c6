"""
Session guard core for gatehouse.
"""

from .exceptions import (
    AuthError,
    UserNotFound,
    PasswordMismatch,
    AuthenticationRequired,
    GuardRuntimeError,
    AlreadyAuthenticated,
    MissingIdentifier,
    InvalidRememberDuration,
)
from .remember import RememberPolicy, compute_duration, parse_duration, DEFAULT_REMEMBER_DURATION
from .guard import SessionGuard, AuthGuard

__all__ = [
    "AuthError",
    "UserNotFound",
    "PasswordMismatch",
    "AuthenticationRequired",
    "GuardRuntimeError",
    "AlreadyAuthenticated",
    "MissingIdentifier",
    "InvalidRememberDuration",
    "RememberPolicy",
    "compute_duration",
    "parse_duration",
    "DEFAULT_REMEMBER_DURATION",
    "SessionGuard",
    "AuthGuard",
]
