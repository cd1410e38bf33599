"""Mock auth verifier for local development and tests."""

from docingest.adapters.auth.base import AuthVerificationError, TokenVerifier, normalize_principal
from docingest.schemas.auth import AuthPrincipal


class MockTokenVerifier(TokenVerifier):
    """Accepts deterministic test tokens only.

    Expected token format:
    - ``test:<user_id>``
    - ``test:<user_id>:<role>``
    """

    def verify_token(self, token: str) -> AuthPrincipal:
        parts = token.split(":")
        if len(parts) not in (2, 3) or parts[0] != "test":
            raise AuthVerificationError("Invalid bearer token")

        role = parts[2] if len(parts) == 3 else None
        if role is not None and not role.strip():
            raise AuthVerificationError("Bearer token missing role")

        return normalize_principal(parts[1], role)


__all__ = ["MockTokenVerifier"]
