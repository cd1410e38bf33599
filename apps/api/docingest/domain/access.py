"""Ownership and role checks shared by every job operation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from docingest.schemas.auth import AuthPrincipal, UserRole

if TYPE_CHECKING:
    from docingest.repositories.memory import DocumentRecord, JobRecord


def is_admin(actor: AuthPrincipal) -> bool:
    return actor.role is UserRole.ADMIN


def can_access(actor: AuthPrincipal, job: JobRecord) -> bool:
    """Admins see every job; everyone else only the jobs they started."""
    return is_admin(actor) or actor.user_id == job.started_by_id


def can_access_document(actor: AuthPrincipal, document: DocumentRecord) -> bool:
    """Admins see every document; everyone else only the documents they own."""
    return is_admin(actor) or actor.user_id == document.owner_id
