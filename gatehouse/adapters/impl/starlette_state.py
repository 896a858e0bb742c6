"""
Starlette adapters for the session and client token stores.

The session store wraps ``request.session`` as populated by
``starlette.middleware.sessions.SessionMiddleware``. The cookie store reads
cookies from the incoming request and writes them on the outgoing response.
"""

from datetime import timedelta
from typing import Any, Dict, Optional
from starlette.requests import Request
from starlette.responses import Response
from gatehouse.adapters.state import ClientTokenStore, PersistedState


class StarletteSessionState(PersistedState):
    """Session store backed by Starlette's signed cookie session."""

    def __init__(self, request: Request):
        if "session" not in request.scope:
            raise RuntimeError("SessionMiddleware must be installed to use StarletteSessionState")
        self.request = request

    @property
    def _session(self) -> Dict[str, Any]:
        return self.request.session

    def get(self, key: str) -> Optional[Any]:
        return self._session.get(key)

    def put(self, key: str, value: Any) -> None:
        self._session[key] = value

    def forget(self, key: str) -> None:
        self._session.pop(key, None)


class StarletteCookieStore(ClientTokenStore):
    """Client token store using HTTP cookies."""

    def __init__(
        self,
        request: Request,
        response: Response,
        secure: bool = False,
        httponly: bool = True,
        samesite: str = "lax",
        path: str = "/",
        domain: Optional[str] = None
    ):
        """
        Initialize the cookie store.

        Args:
            request: Incoming request to read cookies from
            response: Outgoing response to write cookies on
            secure: Send cookies over HTTPS only
            httponly: Hide cookies from client side scripts
            samesite: SameSite policy
            path: Cookie path
            domain: Cookie domain
        """
        self.request = request
        self.response = response
        self.secure = secure
        self.httponly = httponly
        self.samesite = samesite
        self.path = path
        self.domain = domain
        self._cleared: set = set()

    def get(self, key: str) -> Optional[str]:
        if key in self._cleared:
            return None
        return self.request.cookies.get(key)

    def set(self, key: str, value: str, expires_in: timedelta) -> None:
        self._cleared.discard(key)
        self.response.set_cookie(
            key=key,
            value=value,
            max_age=int(expires_in.total_seconds()),
            path=self.path,
            domain=self.domain,
            secure=self.secure,
            httponly=self.httponly,
            samesite=self.samesite,
        )

    def clear(self, key: str) -> None:
        self._cleared.add(key)
        self.response.delete_cookie(
            key=key,
            path=self.path,
            domain=self.domain,
            secure=self.secure,
            httponly=self.httponly,
            samesite=self.samesite,
        )
