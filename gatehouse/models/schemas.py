"""
Pydantic models for gatehouse.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Union
from pydantic import BaseModel, Field, field_validator
import re


class StoredUser(BaseModel):
    """User record as kept by the bundled providers."""
    id: Optional[int] = None
    username: str = Field(..., min_length=1, max_length=64)
    email: Optional[str] = None
    password_hash: str = Field(..., min_length=1)
    remember_token: Optional[str] = None
    meta: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        if not re.match(r'^[a-zA-Z0-9][a-zA-Z0-9_.@-]*$', v):
            raise ValueError('Username must start with a letter or digit and contain only alphanumeric, underscore, dot, at or dash')
        return v

    def update_timestamp(self):
        """Update the updated_at timestamp."""
        self.updated_at = datetime.utcnow()


class UserDTO(BaseModel):
    """User data transfer object for API responses."""
    id: int
    username: str
    email: Optional[str]
    meta: Dict[str, Any]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    """Login request model."""
    uid: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    remember: Union[bool, int, str, None] = None


class LoginViaIdRequest(BaseModel):
    """Login-by-id request model."""
    remember: Union[bool, int, str, None] = None


class LoginResponse(BaseModel):
    """Login response model."""
    user: UserDTO
    guard: str
    remembered: bool = False


class CheckResponse(BaseModel):
    """Response model for the session check endpoint."""
    authenticated: bool
    via_remember: bool = False
    user: Optional[UserDTO] = None


class LogoutResponse(BaseModel):
    """Logout response model."""
    logged_out: bool = True
