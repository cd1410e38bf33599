"""Ingestion job API schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class IngestionJob(BaseModel):
    id: int
    document_id: int
    started_by_id: int
    status: JobStatus
    started_at: datetime
    completed_at: datetime | None = None
    output: str | None = None


class CreateIngestionJobRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    document_id: int = Field(gt=0, description="The ID of the document to process")


class UpdateIngestionJobRequest(BaseModel):
    """Admin patch; only fields explicitly sent are applied."""

    model_config = ConfigDict(extra="forbid")

    status: JobStatus | None = None
    output: str | None = None
