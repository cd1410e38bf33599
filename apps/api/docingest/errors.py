"""Application exception types."""

from docingest.schemas.error import ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to contract error payloads."""

    def __init__(self, status_code: int, code: str, message: str, details: dict | None = None) -> None:
        self.status_code = status_code
        self.payload = ErrorResponse(code=code, message=message, details=details)
        super().__init__(message)


class NotFoundError(ApiError):
    """Job or document does not exist."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(status_code=404, code="NOT_FOUND", message=message, details=details)


class UnauthorizedError(ApiError):
    """Actor lacks the role or ownership required for the operation."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(status_code=403, code="UNAUTHORIZED", message=message, details=details)


class InvalidStateError(ApiError):
    """Operation is not allowed from the job's current status."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(status_code=400, code="INVALID_STATE", message=message, details=details)


class ConflictError(ApiError):
    """A concurrent write claimed the record first."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(status_code=409, code="CONFLICT", message=message, details=details)


__all__ = ["ApiError", "ConflictError", "InvalidStateError", "NotFoundError", "UnauthorizedError"]
