"""Authentication schemas."""

from enum import Enum

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"


class AuthPrincipal(BaseModel):
    """Normalized authenticated actor used by business services."""

    user_id: int = Field(gt=0)
    role: UserRole = UserRole.VIEWER
