"""
Session guard: decides whether a request is authenticated, and as whom.

One guard instance serves exactly one request. It talks to a ``UserProvider``
for lookups and to the request's session and cookie stores for persistence.
"""

import secrets
from typing import Any, Optional

from gatehouse.adapters.providers import UserId, UserProvider
from gatehouse.adapters.state import ClientTokenStore, PersistedState
from gatehouse.core.exceptions import (
    AlreadyAuthenticated,
    AuthenticationRequired,
    MissingIdentifier,
    PasswordMismatch,
    UserNotFound,
)
from gatehouse.core.remember import RememberPolicy, RememberRequest
from gatehouse.observability.logging import AuditLogger
from gatehouse.observability.metrics import MetricsCollector

DEFAULT_SESSION_KEY = "gatehouse-auth"
DEFAULT_REMEMBER_TOKEN_KEY = "gatehouse-remember-token"

REMEMBER_TOKEN_BYTES = 32

_audit_logger = AuditLogger()


def generate_remember_token() -> str:
    """Generate a URL-safe random remember-me token."""
    return secrets.token_urlsafe(REMEMBER_TOKEN_BYTES)


class SessionGuard:
    """Session based authentication guard.

    States are ``anonymous`` (no user) and ``authenticated``. ``login`` is the
    only place the user is set from outside and the only place remember tokens
    are minted; ``logout`` returns the guard to anonymous from any state.
    """

    def __init__(
        self,
        provider: UserProvider,
        session: PersistedState,
        cookies: ClientTokenStore,
        name: str = "web",
        session_key: str = DEFAULT_SESSION_KEY,
        remember_token_key: str = DEFAULT_REMEMBER_TOKEN_KEY,
        uid_field: str = "uid",
        audit_logger: Optional[AuditLogger] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.provider = provider
        self.session = session
        self.cookies = cookies
        self.name = name
        self.session_key = session_key
        self.remember_token_key = remember_token_key
        self.uid_field = uid_field
        self.audit = audit_logger or _audit_logger
        self.metrics = metrics

        self._remember = RememberPolicy()
        self._user: Optional[Any] = None
        self._via_remember = False
        self._is_logged_out = False
        self._authentication_attempted = False
        self._remember_token_issued = False

    # State

    @property
    def user(self) -> Optional[Any]:
        """The user resolved for this request, if any."""
        return self._user

    @property
    def via_remember(self) -> bool:
        """True when the user was re-established from a remember token."""
        return self._via_remember

    @property
    def is_logged_in(self) -> bool:
        return self._user is not None

    @property
    def is_guest(self) -> bool:
        return self._user is None

    @property
    def is_logged_out(self) -> bool:
        """True once ``logout`` ran during this request."""
        return self._is_logged_out

    @property
    def authentication_attempted(self) -> bool:
        """True once ``check`` ran during this request."""
        return self._authentication_attempted

    @property
    def remember_token_issued(self) -> bool:
        """True when this request minted a remember-me token."""
        return self._remember_token_issued

    @property
    def pending_remember_duration(self):
        """The remember duration armed for the next login, if any."""
        return self._remember.pending

    def remember(self, duration: RememberRequest = True) -> "SessionGuard":
        """
        Ask the next ``login`` to issue a remember-me token.

        Args:
            duration: ``True``/``1`` for five years, a duration string such as
                ``"2 days"``, a number of milliseconds, or a ``timedelta``.
                ``0``/``False`` do not arm anything.

        Returns:
            The guard, for chaining
        """
        self._remember.remember(duration)
        return self

    # Credentials

    async def validate(self, uid: str, password: str, return_user: bool = False) -> Any:
        """
        Verify a uid/password pair without touching the guard state.

        Args:
            uid: Unique identifier to look the user up by
            password: Plain text password
            return_user: Return the user instead of True

        Returns:
            The user when return_user is truthy, True otherwise

        Raises:
            UserNotFound: If no user has that uid
            PasswordMismatch: If the password does not verify
        """
        user = await self.provider.find_by_uid(uid)
        if user is None:
            self.audit.log_login_attempt(self.name, uid, False, reason="user_not_found")
            raise UserNotFound(f"Cannot find user with {self.uid_field} as {uid}")

        verified = await self.provider.verify_password(user, password)
        if not verified:
            self.audit.log_login_attempt(self.name, uid, False, reason="password_mismatch")
            raise PasswordMismatch("Cannot verify user password")

        self.audit.log_login_attempt(self.name, uid, True)
        return user if return_user else True

    async def attempt(self, uid: str, password: str, remember: RememberRequest = None) -> Any:
        """
        Validate credentials and log the user in.

        Args:
            uid: Unique identifier to look the user up by
            password: Plain text password
            remember: Optional remember-me request applied before login

        Returns:
            The logged in user
        """
        if remember is not None:
            self.remember(remember)

        try:
            user = await self.validate(uid, password, return_user=True)
        except (UserNotFound, PasswordMismatch):
            if remember is not None:
                self._remember.clear()
            self._record_login(False)
            raise

        return await self.login(user)

    # Session transitions

    async def login(self, user: Any, remember: RememberRequest = None) -> Any:
        """
        Log a user in without verifying credentials.

        The caller must make sure the user exists.

        Raises:
            AlreadyAuthenticated: If a user is already logged in on this guard
            MissingIdentifier: If the user has no primary key value
        """
        if remember is not None:
            self.remember(remember)

        # The pending duration is consumed on every exit path.
        duration = self._remember.take_and_reset()

        if self._user is not None:
            raise AlreadyAuthenticated()

        user_id = self.provider.get_id(user)
        if user_id is None or user_id == "":
            raise MissingIdentifier()

        self._user = user
        self._via_remember = False
        self._is_logged_out = False

        remember_token = generate_remember_token() if duration else None
        if remember_token:
            await self.provider.save_remember_token(user, remember_token)

        self.session.put(self.session_key, user_id)
        if remember_token:
            self.cookies.set(self.remember_token_key, remember_token, expires_in=duration)
            self._remember_token_issued = True
            if self.metrics:
                self.metrics.record_remember_token(self.name)

        self.audit.log_login(self.name, user_id, remember_token is not None)
        self._record_login(True)
        return user

    async def login_via_id(self, user_id: UserId, remember: RememberRequest = None) -> Any:
        """
        Look a user up by primary key and log them in.

        Raises:
            UserNotFound: If no user has that primary key
        """
        user = await self.provider.find_by_id(user_id)
        if user is None:
            raise UserNotFound(
                f"Cannot find user with {self.provider.identifier_key} as {user_id}"
            )

        return await self.login(user, remember=remember)

    def logout(self) -> None:
        """Forget the user, drop the session key and clear the remember cookie."""
        user_id = self.provider.get_id(self._user) if self._user is not None else None

        self._user = None
        self._via_remember = False
        self._is_logged_out = True
        self._remember.clear()
        self._remember_token_issued = False

        self.session.forget(self.session_key)
        self.cookies.clear(self.remember_token_key)

        self.audit.log_logout(self.name, user_id)
        if self.metrics:
            self.metrics.record_logout(self.name)

    # Per-request authentication

    async def check(self) -> bool:
        """
        Resolve the user for the current request.

        Uses the in-memory user, then the session key, then the remember-me
        cookie. A remember-me hit goes through a full ``login`` so a fresh
        session key is written. Absence is reported as False, never raised.
        """
        self._authentication_attempted = True

        if self._user is not None:
            self._record_check("memory")
            return True

        session_value = self.session.get(self.session_key)
        if session_value is not None:
            self._user = await self.provider.find_by_id(session_value)
            self._via_remember = False
            if self._user is not None:
                self.audit.log_authenticate(self.name, session_value, False)
            self._record_check("session" if self._user is not None else "none")
            return self._user is not None

        remember_token = self.cookies.get(self.remember_token_key)
        if remember_token:
            user = await self.provider.find_by_remember_token(remember_token)
            if user is not None:
                # No remember duration is armed here, so the cookie keeps
                # the expiry it was issued with.
                await self.login(user)
                self._via_remember = True
                self.audit.log_authenticate(self.name, self.provider.get_id(user), True)
                self._record_check("remember")
                return True

        self._record_check("none")
        return False

    async def get_user(self) -> Optional[Any]:
        """Run ``check`` and return the user, or None."""
        await self.check()
        return self._user

    async def authenticate(self) -> Any:
        """
        Like ``get_user`` but raises when the request is anonymous.

        Raises:
            AuthenticationRequired: If no user resolves for this request
        """
        if not await self.check():
            raise AuthenticationRequired()
        return self._user

    def _record_login(self, success: bool):
        if self.metrics:
            self.metrics.record_login(self.name, success)

    def _record_check(self, source: str):
        if self.metrics:
            self.metrics.record_check(self.name, source)


AuthGuard = SessionGuard
