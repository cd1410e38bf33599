"""Load users and documents into an ``InMemoryStore`` from a JSON seed file."""

from __future__ import annotations

import logging
from pathlib import Path

from docingest.repositories.memory import InMemoryStore
from docingest.schemas.seed import SeedData

logger = logging.getLogger(__name__)


def seed_store(store: InMemoryStore, data: SeedData) -> dict[str, int]:
    """Create every seeded user and document; returns user ids keyed by email.

    Raises ``ValueError`` on duplicate emails or a document whose owner is not
    in the seed, before anything is written.
    """
    emails = [user.email for user in data.users]
    duplicates = sorted({email for email in emails if emails.count(email) > 1})
    if duplicates:
        raise ValueError(f"Duplicate seed user emails: {', '.join(duplicates)}")
    unknown = sorted({doc.owner_email for doc in data.documents} - set(emails))
    if unknown:
        raise ValueError(f"Seed documents reference unknown owners: {', '.join(unknown)}")

    user_ids: dict[str, int] = {}
    for user in data.users:
        record = store.create_user(email=user.email, role=user.role, is_active=user.is_active)
        user_ids[record.email] = record.id
    for document in data.documents:
        store.create_document(
            owner_id=user_ids[document.owner_email],
            title=document.title,
            description=document.description,
        )

    logger.info("seed.loaded users=%s documents=%s", len(data.users), len(data.documents))
    return user_ids


def seed_store_from_file(store: InMemoryStore, path: Path) -> dict[str, int]:
    data = SeedData.model_validate_json(path.read_text(encoding="utf-8"))
    return seed_store(store, data)
