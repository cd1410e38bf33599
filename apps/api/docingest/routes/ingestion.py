"""Ingestion job routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from docingest.routes.dependencies import get_authenticated_principal, get_ingestion_service
from docingest.schemas.auth import AuthPrincipal
from docingest.schemas.error import (
    ConflictErrorResponse,
    ErrorResponse,
    InvalidStateErrorResponse,
    NotFoundErrorResponse,
    UnauthorizedErrorResponse,
)
from docingest.schemas.job import CreateIngestionJobRequest, IngestionJob, UpdateIngestionJobRequest
from docingest.services.ingestion import IngestionJobService

router = APIRouter(prefix="/ingestion", tags=["Ingestion"])

_AUTH_RESPONSES = {401: {"model": ErrorResponse}, 403: {"model": UnauthorizedErrorResponse}}


@router.post(
    "",
    response_model=IngestionJob,
    status_code=status.HTTP_201_CREATED,
    responses={**_AUTH_RESPONSES, 400: {"model": ErrorResponse}, 404: {"model": NotFoundErrorResponse}},
)
async def create_job(
    payload: CreateIngestionJobRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[IngestionJobService, Depends(get_ingestion_service)],
) -> IngestionJob:
    return service.create_job(document_id=payload.document_id, actor_id=principal.user_id)


@router.get(
    "",
    response_model=list[IngestionJob],
    responses={401: {"model": ErrorResponse}},
)
async def list_jobs(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[IngestionJobService, Depends(get_ingestion_service)],
) -> list[IngestionJob]:
    return service.list_jobs(actor=principal)


@router.get(
    "/document/{documentId}",
    response_model=list[IngestionJob],
    responses={**_AUTH_RESPONSES, 404: {"model": NotFoundErrorResponse}},
)
async def list_jobs_for_document(
    document_id: Annotated[int, Path(alias="documentId")],
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[IngestionJobService, Depends(get_ingestion_service)],
) -> list[IngestionJob]:
    return service.list_jobs_for_document(document_id=document_id, actor=principal)


@router.get(
    "/{jobId}",
    response_model=IngestionJob,
    responses={**_AUTH_RESPONSES, 404: {"model": NotFoundErrorResponse}},
)
async def get_job(
    job_id: Annotated[int, Path(alias="jobId")],
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[IngestionJobService, Depends(get_ingestion_service)],
) -> IngestionJob:
    return service.get_job(job_id=job_id, actor=principal)


@router.patch(
    "/{jobId}",
    response_model=IngestionJob,
    responses={**_AUTH_RESPONSES, 400: {"model": ErrorResponse}, 404: {"model": NotFoundErrorResponse}},
)
async def update_job(
    job_id: Annotated[int, Path(alias="jobId")],
    payload: UpdateIngestionJobRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[IngestionJobService, Depends(get_ingestion_service)],
) -> IngestionJob:
    return service.update_job(job_id=job_id, patch=payload, actor=principal)


@router.delete(
    "/{jobId}/cancel",
    response_model=IngestionJob,
    responses={
        **_AUTH_RESPONSES,
        400: {"model": InvalidStateErrorResponse},
        404: {"model": NotFoundErrorResponse},
        409: {"model": ConflictErrorResponse},
    },
)
async def cancel_job(
    job_id: Annotated[int, Path(alias="jobId")],
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[IngestionJobService, Depends(get_ingestion_service)],
) -> IngestionJob:
    return service.cancel_job(job_id=job_id, actor=principal)
