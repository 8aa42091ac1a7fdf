"""Job Routes: JobLifecycle operations over HTTP.

Invariants:
    - Routes never contain business logic; every rule lives in core/ via JobLifecycle
    - Domain errors propagate to the global MarketplaceError handler
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from app.api.dependencies import Services, get_actor_id, get_services
from app.core.domain_types import UserId
from app.schemas.job import (
    CancelJobRequest,
    CompleteJobRequest,
    JobCreate,
    JobResponse,
    JobUpdate,
    SaveToggleResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/jobs", tags=["jobs"])


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    body: JobCreate,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.job_lifecycle.create(actor_id, body.model_dump())


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: UUID, services: Services = Depends(get_services)):
    return await services.job_lifecycle.get(job_id)


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: UUID,
    body: JobUpdate,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.job_lifecycle.update(
        job_id, actor_id, body.model_dump(exclude_unset=True),
    )


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(
    job_id: UUID,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    await services.job_lifecycle.delete(job_id, actor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{job_id}/accept", response_model=JobResponse)
async def accept_job(
    job_id: UUID,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.job_lifecycle.accept(job_id, actor_id)


@router.post("/{job_id}/complete", response_model=JobResponse)
async def complete_job(
    job_id: UUID,
    body: CompleteJobRequest | None = None,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    body = body or CompleteJobRequest()
    return await services.job_lifecycle.complete(
        job_id, actor_id, rating=body.rating, review=body.review,
    )


@router.post("/{job_id}/cancel", response_model=JobResponse)
async def cancel_job(
    job_id: UUID,
    body: CancelJobRequest | None = None,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    reason = body.reason if body else None
    return await services.job_lifecycle.cancel(job_id, actor_id, reason)


@router.post("/{job_id}/reopen", response_model=JobResponse)
async def reopen_job(
    job_id: UUID,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.job_lifecycle.reopen(job_id, actor_id)


@router.post("/{job_id}/view", status_code=status.HTTP_204_NO_CONTENT)
async def record_job_view(job_id: UUID, services: Services = Depends(get_services)):
    await services.job_lifecycle.record_view(job_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{job_id}/save", response_model=SaveToggleResponse)
async def toggle_job_save(
    job_id: UUID,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    is_saved, saved_count = await services.job_lifecycle.toggle_save(job_id, actor_id)
    return SaveToggleResponse(is_saved=is_saved, saved_count=saved_count)
