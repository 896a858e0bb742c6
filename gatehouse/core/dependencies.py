"""
Provider registry and FastAPI dependency injection for gatehouse.
"""

from typing import Any, Callable, Dict, Optional
from fastapi import Depends, HTTPException, Request, Response
from gatehouse.adapters.providers import UserProvider
from gatehouse.adapters.impl.memory_provider import InMemoryUserProvider
from gatehouse.adapters.impl.sqlite_provider import SQLiteUserProvider
from gatehouse.adapters.impl.starlette_state import StarletteCookieStore, StarletteSessionState
from gatehouse.core.config import Settings, get_settings
from gatehouse.core.exceptions import AuthError
from gatehouse.core.guard import SessionGuard
from gatehouse.observability.metrics import MetricsCollector, get_metrics_collector

ProviderFactory = Callable[[Settings], UserProvider]


def _memory_provider(settings: Settings) -> UserProvider:
    return InMemoryUserProvider(
        users_file=settings.users_file,
        uids=settings.uids,
        identifier_key=settings.identifier_key
    )


def _sqlite_provider(settings: Settings) -> UserProvider:
    return SQLiteUserProvider(
        db_path=settings.database_path,
        users_table=settings.users_table,
        uids=settings.uids,
        identifier_key=settings.identifier_key
    )


_provider_factories: Dict[str, ProviderFactory] = {
    "memory": _memory_provider,
    "sqlite": _sqlite_provider,
}


def register_provider(driver: str, factory: ProviderFactory) -> None:
    """
    Register a user provider driver.

    Args:
        driver: Name used by the ``user_provider`` setting
        factory: Callable building the provider from settings
    """
    _provider_factories[driver] = factory


def create_user_provider(settings: Settings) -> UserProvider:
    """
    Build the user provider selected by settings.

    Raises:
        ValueError: If the driver is not registered
    """
    factory = _provider_factories.get(settings.user_provider)
    if factory is None:
        raise ValueError(f"Unsupported user provider: {settings.user_provider}")
    return factory(settings)


# Global instances (will be initialized by the application)
_user_provider: Optional[UserProvider] = None
_settings: Optional[Settings] = None
_metrics: Optional[MetricsCollector] = None


def initialize_provider(
    user_provider: UserProvider,
    settings: Optional[Settings] = None,
    metrics: Optional[MetricsCollector] = None
) -> None:
    """
    Initialize the global provider and settings.

    This should be called during application startup.
    """
    global _user_provider, _settings, _metrics
    _user_provider = user_provider
    _settings = settings
    _metrics = metrics


def get_user_provider() -> UserProvider:
    """Get the current user provider."""
    if _user_provider is None:
        raise HTTPException(
            status_code=500,
            detail="User provider not initialized"
        )
    return _user_provider


def get_app_settings() -> Settings:
    """Get the settings the application was started with."""
    return _settings or get_settings()


def get_metrics() -> Optional[MetricsCollector]:
    if _metrics is not None:
        return _metrics
    settings = get_app_settings()
    return get_metrics_collector() if settings.enable_metrics else None


def build_guard(
    request: Request,
    response: Response,
    provider: UserProvider,
    settings: Settings,
    metrics: Optional[MetricsCollector] = None
) -> SessionGuard:
    """Build a session guard bound to one request/response pair."""
    cookies = StarletteCookieStore(
        request,
        response,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        domain=settings.cookie_domain
    )
    return SessionGuard(
        provider=provider,
        session=StarletteSessionState(request),
        cookies=cookies,
        name=settings.guard_name,
        session_key=settings.session_key,
        remember_token_key=settings.remember_token_key,
        uid_field=settings.uid_field,
        metrics=metrics
    )


async def get_guard(
    request: Request,
    response: Response,
    provider: UserProvider = Depends(get_user_provider),
    settings: Settings = Depends(get_app_settings),
    metrics: Optional[MetricsCollector] = Depends(get_metrics)
) -> SessionGuard:
    """
    Get the session guard for the current request.

    The guard is cached on ``request.state`` so every dependency in one
    request shares the same instance.
    """
    guard = getattr(request.state, "guard", None)
    if guard is None:
        guard = build_guard(request, response, provider, settings, metrics)
        request.state.guard = guard
    return guard


def to_http_exception(error: AuthError) -> HTTPException:
    """Map a guard failure onto an HTTP error."""
    status_code = 401 if error.status_code < 500 else error.status_code
    headers = {"WWW-Authenticate": "Session"} if status_code == 401 else None
    return HTTPException(status_code=status_code, detail=error.message, headers=headers)


async def get_current_user(guard: SessionGuard = Depends(get_guard)) -> Any:
    """
    Get the current authenticated user.

    Raises:
        HTTPException: If the request is not authenticated
    """
    try:
        return await guard.authenticate()
    except AuthError as e:
        raise to_http_exception(e)
