"""JWT bearer token verifier adapter."""

from __future__ import annotations

import jwt
from jwt import PyJWTError

from docingest.adapters.auth.base import AuthVerificationError, TokenVerifier, normalize_principal
from docingest.schemas.auth import AuthPrincipal


class JwtTokenVerifier(TokenVerifier):
    """Verifies HMAC-signed access tokens carrying ``sub`` and ``role`` claims."""

    def __init__(
        self,
        secret: str | None,
        *,
        algorithm: str = "HS256",
        issuer: str | None = None,
        audience: str | None = None,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._issuer = issuer
        self._audience = audience

    def verify_token(self, token: str) -> AuthPrincipal:
        if not self._secret:
            raise AuthVerificationError("JWT verifier is not configured")

        options = {"require": ["sub", "exp"], "verify_aud": self._audience is not None}
        try:
            decoded = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                audience=self._audience,
                options=options,
            )
        except PyJWTError as exc:
            raise AuthVerificationError("Invalid bearer token") from exc

        return normalize_principal(decoded.get("sub"), decoded.get("role"))


__all__ = ["JwtTokenVerifier"]
