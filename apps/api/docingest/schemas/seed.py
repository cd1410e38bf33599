"""Seed file schema for bootstrapping the user and document directories."""

from pydantic import BaseModel, ConfigDict, Field

from docingest.schemas.auth import UserRole


class SeedUser(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str = Field(min_length=1)
    role: UserRole = UserRole.VIEWER
    is_active: bool = True


class SeedDocument(BaseModel):
    """Document entry; ``owner_email`` must name a user from the same file."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1)
    owner_email: str = Field(min_length=1)
    description: str | None = None


class SeedData(BaseModel):
    model_config = ConfigDict(extra="forbid")

    users: list[SeedUser] = Field(default_factory=list)
    documents: list[SeedDocument] = Field(default_factory=list)
