"""Authorization predicate tests for jobs and documents."""

from __future__ import annotations

from datetime import UTC, datetime
import unittest

from docingest.domain.access import can_access, can_access_document, is_admin
from docingest.repositories.memory import DocumentRecord, JobRecord
from docingest.schemas.auth import AuthPrincipal, UserRole
from docingest.schemas.job import JobStatus


def _job(started_by_id: int) -> JobRecord:
    return JobRecord(
        id=1,
        document_id=10,
        started_by_id=started_by_id,
        status=JobStatus.PENDING,
        started_at=datetime.now(UTC),
    )


def _document(owner_id: int) -> DocumentRecord:
    return DocumentRecord(id=10, title="Quarterly report", owner_id=owner_id, created_at=datetime.now(UTC))


class AccessPolicyTests(unittest.TestCase):
    def test_admin_can_access_any_job_and_document(self) -> None:
        admin = AuthPrincipal(user_id=99, role=UserRole.ADMIN)

        self.assertTrue(is_admin(admin))
        self.assertTrue(can_access(admin, _job(started_by_id=1)))
        self.assertTrue(can_access_document(admin, _document(owner_id=1)))

    def test_owner_can_access_own_job_and_document(self) -> None:
        for role in (UserRole.EDITOR, UserRole.VIEWER):
            with self.subTest(role=role):
                owner = AuthPrincipal(user_id=5, role=role)
                self.assertTrue(can_access(owner, _job(started_by_id=5)))
                self.assertTrue(can_access_document(owner, _document(owner_id=5)))

    def test_non_owner_non_admin_is_denied(self) -> None:
        for role in (UserRole.EDITOR, UserRole.VIEWER):
            with self.subTest(role=role):
                stranger = AuthPrincipal(user_id=6, role=role)
                self.assertFalse(is_admin(stranger))
                self.assertFalse(can_access(stranger, _job(started_by_id=5)))
                self.assertFalse(can_access_document(stranger, _document(owner_id=5)))

    def test_job_and_document_ownership_are_judged_independently(self) -> None:
        actor = AuthPrincipal(user_id=5, role=UserRole.EDITOR)

        self.assertTrue(can_access_document(actor, _document(owner_id=5)))
        self.assertFalse(can_access(actor, _job(started_by_id=7)))


if __name__ == "__main__":
    unittest.main()
