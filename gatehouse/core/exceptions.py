"""
Typed authentication failures raised by the session guard.
"""


class AuthError(Exception):
    """Base class for guard failures."""

    status_code: int = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)
        self.message = message


class UserNotFound(AuthError):
    """No user resolves for the given uid, primary key or remember token."""

    def __init__(self, message: str = "Cannot find user"):
        super().__init__(message)


class PasswordMismatch(AuthError):
    """The plain password does not match the stored hash."""

    def __init__(self, message: str = "Cannot verify user password"):
        super().__init__(message)


class AuthenticationRequired(AuthError):
    """Raised by ``authenticate`` when the request carries no valid login."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class GuardRuntimeError(AuthError):
    """Programming errors in the way the guard is being driven."""

    status_code = 500


class AlreadyAuthenticated(GuardRuntimeError):
    """``login`` was called while a user is already set on the guard."""

    def __init__(
        self,
        message: str = "Cannot login multiple times, since user is already logged in",
    ):
        super().__init__(message)


class MissingIdentifier(GuardRuntimeError):
    """The user passed to ``login`` has no primary key value."""

    def __init__(
        self,
        message: str = "Primary key value is missing for the user, cannot persist session",
    ):
        super().__init__(message)


class InvalidRememberDuration(ValueError):
    """A remember-me duration string could not be parsed."""
