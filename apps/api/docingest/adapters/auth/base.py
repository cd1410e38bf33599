"""Authentication provider interfaces."""

from abc import ABC, abstractmethod

from docingest.schemas.auth import AuthPrincipal


class AuthVerificationError(Exception):
    """Raised when a token cannot be verified or normalized."""


class TokenVerifier(ABC):
    """Provider-neutral token verification interface."""

    @abstractmethod
    def verify_token(self, token: str) -> AuthPrincipal:
        """Verify token and return normalized principal."""


def normalize_principal(raw_user_id: object, raw_role: object) -> AuthPrincipal:
    """Coerce provider claims into a principal or raise ``AuthVerificationError``."""
    user_id = str(raw_user_id or "").strip()
    if not user_id:
        raise AuthVerificationError("Bearer token missing user identity")
    if not user_id.isdigit() or int(user_id) <= 0:
        raise AuthVerificationError("Bearer token user identity is invalid")

    role = str(raw_role or "VIEWER").strip().upper()
    try:
        return AuthPrincipal(user_id=int(user_id), role=role)
    except ValueError as exc:
        raise AuthVerificationError("Bearer token role is invalid") from exc


__all__ = ["AuthVerificationError", "TokenVerifier", "normalize_principal"]
