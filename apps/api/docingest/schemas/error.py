"""API error response schemas."""

from typing import Any
from typing import Literal

from pydantic import BaseModel

from docingest.schemas.job import JobStatus


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class NotFoundErrorResponse(BaseModel):
    code: Literal["NOT_FOUND"]
    message: str


class UnauthorizedErrorResponse(BaseModel):
    code: Literal["UNAUTHORIZED"]
    message: str


class InvalidStateErrorDetails(BaseModel):
    current_status: JobStatus
    allowed_statuses: list[JobStatus]


class InvalidStateErrorResponse(BaseModel):
    code: Literal["INVALID_STATE"]
    message: str
    details: InvalidStateErrorDetails


class ConflictErrorDetails(BaseModel):
    current_status: JobStatus | None = None


class ConflictErrorResponse(BaseModel):
    code: Literal["CONFLICT"]
    message: str
    details: ConflictErrorDetails | None = None
