"""
Authentication API endpoints.
"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException
from gatehouse.models.schemas import (
    CheckResponse,
    LoginRequest,
    LoginResponse,
    LoginViaIdRequest,
    LogoutResponse,
    UserDTO,
)
from gatehouse.core.config import Settings
from gatehouse.core.dependencies import get_app_settings, get_current_user, get_guard, to_http_exception
from gatehouse.core.exceptions import AuthError
from gatehouse.core.remember import compute_duration
from gatehouse.core.guard import SessionGuard

router = APIRouter(tags=["Authentication"])


def to_user_dto(user: Any) -> UserDTO:
    """Convert a provider user into the public user model."""
    return UserDTO.model_validate(user)


def _login_response(guard: SessionGuard, user: Any, remembered: bool) -> LoginResponse:
    return LoginResponse(user=to_user_dto(user), guard=guard.name, remembered=remembered)


@router.post("/auth/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    guard: SessionGuard = Depends(get_guard)
):
    """
    Verify credentials and open a session.
    """
    if await guard.check():
        raise HTTPException(status_code=409, detail="Already logged in")

    try:
        user = await guard.attempt(request.uid, request.password, remember=request.remember)
    except AuthError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return _login_response(guard, user, guard.remember_token_issued)


def require_user_switch(settings: Settings = Depends(get_app_settings)) -> None:
    """Hide the user switch route unless it is enabled in settings."""
    if not settings.allow_user_switch:
        raise HTTPException(status_code=404, detail="Not Found")


@router.post(
    "/auth/login/{user_id}",
    response_model=LoginResponse,
    dependencies=[Depends(require_user_switch)]
)
async def login_via_id(
    user_id: int,
    request: Optional[LoginViaIdRequest] = None,
    guard: SessionGuard = Depends(get_guard),
    current_user: Any = Depends(get_current_user)
):
    """
    Switch the session to another user by primary key.

    Disabled unless ``allow_user_switch`` is set. Requires an authenticated
    session. The target is resolved before the current user is logged out,
    so a failed switch leaves the session untouched.
    """
    remember = request.remember if request else None
    try:
        compute_duration(remember)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    target = await guard.provider.find_by_id(user_id)
    if target is None:
        raise HTTPException(
            status_code=404,
            detail=f"Cannot find user with {guard.provider.identifier_key} as {user_id}"
        )

    guard.logout()

    try:
        user = await guard.login(target, remember=remember)
    except AuthError as e:
        raise to_http_exception(e)

    return _login_response(guard, user, guard.remember_token_issued)


@router.post("/auth/logout", response_model=LogoutResponse)
async def logout(guard: SessionGuard = Depends(get_guard)):
    """
    Close the session and drop the remember-me cookie.
    """
    guard.logout()
    return LogoutResponse(logged_out=True)


@router.get("/auth/me", response_model=UserDTO)
async def me(current_user: Any = Depends(get_current_user)):
    """
    Get the authenticated user.
    """
    return to_user_dto(current_user)


@router.get("/auth/check", response_model=CheckResponse)
async def check(guard: SessionGuard = Depends(get_guard)):
    """
    Report whether the request is authenticated, and how.
    """
    authenticated = await guard.check()
    return CheckResponse(
        authenticated=authenticated,
        via_remember=guard.via_remember,
        user=to_user_dto(guard.user) if authenticated else None
    )
