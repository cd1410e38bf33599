"""Authentication dependency and adapter tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
import os
import unittest

from fastapi import Request
from fastapi.testclient import TestClient
import jwt

from docingest.adapters.auth.base import AuthVerificationError
from docingest.adapters.auth.jwt_auth import JwtTokenVerifier
from docingest.adapters.auth.mock_auth import MockTokenVerifier
from docingest.core.config import Settings, get_settings
from docingest.main import create_app
from docingest.routes.dependencies import get_ingestion_service, get_token_verifier
from docingest.schemas.auth import AuthPrincipal, UserRole
from docingest.schemas.job import IngestionJob, JobStatus

_JWT_SECRET = "test-jwt-secret-with-enough-length"


def _token(claims: dict, secret: str = _JWT_SECRET) -> str:
    payload = {"exp": datetime.now(UTC) + timedelta(minutes=5), **claims}
    return jwt.encode(payload, secret, algorithm="HS256")


class _CapturingIngestionService:
    def __init__(self) -> None:
        self.actors: list[AuthPrincipal] = []

    def list_jobs(self, *, actor: AuthPrincipal) -> list[IngestionJob]:
        self.actors.append(actor)
        return [
            IngestionJob(
                id=1,
                document_id=1,
                started_by_id=actor.user_id,
                status=JobStatus.PENDING,
                started_at=datetime.now(UTC),
            )
        ]


class _SettingsEnvCase(unittest.TestCase):
    _env_keys = (
        "DOCINGEST_AUTH_PROVIDER",
        "DOCINGEST_JWT_SECRET",
        "DOCINGEST_JWT_AUDIENCE",
    )
    auth_provider = "mock"

    def setUp(self) -> None:
        self._old_env = {k: os.environ.get(k) for k in self._env_keys}
        os.environ["DOCINGEST_AUTH_PROVIDER"] = self.auth_provider
        os.environ["DOCINGEST_JWT_SECRET"] = _JWT_SECRET
        os.environ.pop("DOCINGEST_JWT_AUDIENCE", None)
        get_settings.cache_clear()

    def tearDown(self) -> None:
        for key, value in self._old_env.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
        get_settings.cache_clear()


class AuthApiTests(_SettingsEnvCase):
    def test_openapi_includes_ingestion_paths(self) -> None:
        client = TestClient(create_app())

        paths = client.get("/openapi.json").json()["paths"]

        self.assertIn("/api/v1/ingestion", paths)
        self.assertEqual(set(paths["/api/v1/ingestion"].keys()), {"get", "post"})
        self.assertEqual(set(paths["/api/v1/ingestion/{jobId}"].keys()), {"get", "patch"})
        self.assertIn("delete", paths["/api/v1/ingestion/{jobId}/cancel"])
        self.assertIn("get", paths["/api/v1/ingestion/document/{documentId}"])

    def test_missing_authorization_header_returns_401(self) -> None:
        client = TestClient(create_app())

        response = client.get("/api/v1/ingestion")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "UNAUTHENTICATED")

    def test_invalid_bearer_token_returns_401(self) -> None:
        client = TestClient(create_app())

        for token in ("not-a-valid-token", "test:abc:ADMIN", "test:1:SUPERUSER", "test:1:"):
            with self.subTest(token=token):
                response = client.get("/api/v1/ingestion", headers={"Authorization": f"Bearer {token}"})
                self.assertEqual(response.status_code, 401)
                self.assertEqual(response.json()["code"], "UNAUTHENTICATED")

    def test_valid_bearer_token_resolves_actor_for_downstream_handler(self) -> None:
        app = create_app()
        client = TestClient(app)
        capturing_service = _CapturingIngestionService()
        app.dependency_overrides[get_ingestion_service] = lambda: capturing_service

        response = client.get("/api/v1/ingestion", headers={"Authorization": "Bearer test:42:admin"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(capturing_service.actors, [AuthPrincipal(user_id=42, role=UserRole.ADMIN)])
        self.assertEqual(response.json()[0]["started_by_id"], 42)

    def test_auth_principal_is_attached_to_request_state(self) -> None:
        app = create_app()
        client = TestClient(app)
        capturing_service = _CapturingIngestionService()
        observed: dict[str, AuthPrincipal] = {}

        def _override(request: Request) -> _CapturingIngestionService:
            observed["principal"] = request.state.auth_principal
            return capturing_service

        app.dependency_overrides[get_ingestion_service] = _override

        response = client.get("/api/v1/ingestion", headers={"Authorization": "Bearer test:7"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(observed["principal"].user_id, 7)
        self.assertEqual(observed["principal"].role, UserRole.VIEWER)


class JwtAuthApiTests(_SettingsEnvCase):
    auth_provider = "jwt"

    def test_signed_token_is_accepted(self) -> None:
        app = create_app()
        client = TestClient(app)
        capturing_service = _CapturingIngestionService()
        app.dependency_overrides[get_ingestion_service] = lambda: capturing_service

        token = _token({"sub": "9", "role": "EDITOR"})
        response = client.get("/api/v1/ingestion", headers={"Authorization": f"Bearer {token}"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(capturing_service.actors, [AuthPrincipal(user_id=9, role=UserRole.EDITOR)])

    def test_mock_tokens_are_rejected_when_jwt_is_configured(self) -> None:
        client = TestClient(create_app())

        response = client.get("/api/v1/ingestion", headers={"Authorization": "Bearer test:1:ADMIN"})

        self.assertEqual(response.status_code, 401)


class AuthAdapterUnitTests(unittest.TestCase):
    def test_mock_token_verifier_normalizes_principal(self) -> None:
        verifier = MockTokenVerifier()

        principal = verifier.verify_token("test:999:editor")

        self.assertEqual(principal.user_id, 999)
        self.assertEqual(principal.role, UserRole.EDITOR)

    def test_mock_token_verifier_defaults_to_viewer(self) -> None:
        self.assertEqual(MockTokenVerifier().verify_token("test:3").role, UserRole.VIEWER)

    def test_mock_token_verifier_rejects_invalid_tokens(self) -> None:
        verifier = MockTokenVerifier()

        for token in ("invalid", "test:", "test:0", "test:user-1", "test:1:root", "test:1:2:3"):
            with self.subTest(token=token):
                with self.assertRaises(AuthVerificationError):
                    verifier.verify_token(token)

    def test_dependency_selects_verifier_from_settings(self) -> None:
        self.assertIsInstance(
            get_token_verifier(Settings(auth_provider="jwt", jwt_secret="secret")),
            JwtTokenVerifier,
        )
        self.assertIsInstance(get_token_verifier(Settings(auth_provider="mock")), MockTokenVerifier)


class JwtVerifierUnitTests(unittest.TestCase):
    def test_jwt_verifier_normalizes_principal(self) -> None:
        verifier = JwtTokenVerifier(_JWT_SECRET)

        principal = verifier.verify_token(_token({"sub": "12", "role": "ADMIN"}))

        self.assertEqual(principal, AuthPrincipal(user_id=12, role=UserRole.ADMIN))

    def test_jwt_verifier_defaults_missing_role_to_viewer(self) -> None:
        principal = JwtTokenVerifier(_JWT_SECRET).verify_token(_token({"sub": "12"}))

        self.assertEqual(principal.role, UserRole.VIEWER)

    def test_jwt_verifier_rejects_bad_signature_expiry_and_claims(self) -> None:
        verifier = JwtTokenVerifier(_JWT_SECRET)
        expired = jwt.encode(
            {"sub": "1", "exp": datetime.now(UTC) - timedelta(minutes=1)},
            _JWT_SECRET,
            algorithm="HS256",
        )
        tokens = {
            "wrong_secret": _token({"sub": "1"}, secret="another-secret-with-enough-length"),
            "expired": expired,
            "non_numeric_subject": _token({"sub": "user-1"}),
            "unknown_role": _token({"sub": "1", "role": "OWNER"}),
            "garbage": "not.a.jwt",
        }
        for name, token in tokens.items():
            with self.subTest(case=name):
                with self.assertRaises(AuthVerificationError):
                    verifier.verify_token(token)

    def test_jwt_verifier_checks_audience_when_configured(self) -> None:
        verifier = JwtTokenVerifier(_JWT_SECRET, audience="docingest")

        accepted = verifier.verify_token(_token({"sub": "1", "aud": "docingest"}))
        self.assertEqual(accepted.user_id, 1)

        with self.assertRaises(AuthVerificationError):
            verifier.verify_token(_token({"sub": "1", "aud": "someone-else"}))

    def test_unconfigured_jwt_verifier_rejects_everything(self) -> None:
        with self.assertRaises(AuthVerificationError):
            JwtTokenVerifier(None).verify_token(_token({"sub": "1"}))


if __name__ == "__main__":
    unittest.main()
