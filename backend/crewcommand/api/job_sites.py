"""Job site management endpoints"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from crewcommand.api.dependencies import get_caller_context, get_scheduling_service
from crewcommand.schemas.scheduling import (
    JobSiteAssignmentCreate,
    JobSiteAssignmentResponse,
    JobSiteCreate,
    JobSiteListResponse,
    JobSiteResponse,
    JobSiteUpdate,
    WorkerResponse,
)
from crewcommand.services.authorization import CallerContext
from crewcommand.services.scheduling_service import SchedulingService

router = APIRouter(prefix="/api/v1/job-sites", tags=["Job Sites"])


@router.post("", response_model=JobSiteResponse, status_code=status.HTTP_201_CREATED)
async def create_job_site(
    data: JobSiteCreate,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Create a job site (admins only)

    The organization is always the caller's own.
    """
    return await service.create_job_site(ctx, data)


@router.get("", response_model=JobSiteListResponse)
async def list_job_sites(
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Job sites visible to the caller"""
    sites = await service.list_job_sites(ctx)
    return JobSiteListResponse(
        job_sites=[JobSiteResponse.model_validate(s) for s in sites],
        total=len(sites),
    )


@router.get("/{job_site_id}", response_model=JobSiteResponse)
async def get_job_site(
    job_site_id: UUID,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return await service.get_job_site(ctx, job_site_id)


@router.patch("/{job_site_id}", response_model=JobSiteResponse)
async def update_job_site(
    job_site_id: UUID,
    data: JobSiteUpdate,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Edit job site details (site superintendents and admins)"""
    return await service.update_job_site(ctx, job_site_id, data)


@router.get("/{job_site_id}/assignments", response_model=List[JobSiteAssignmentResponse])
async def list_site_assignments(
    job_site_id: UUID,
    active_only: bool = Query(True, description="Only current assignments"),
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return await service.list_site_assignments(ctx, job_site_id, active_only)


@router.post(
    "/{job_site_id}/assignments",
    response_model=JobSiteAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign_user(
    job_site_id: UUID,
    data: JobSiteAssignmentCreate,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Give a user a role on this job site

    Any current assignment of the same user to this site is ended first.
    """
    return await service.assign_user_to_job_site(
        ctx, job_site_id, data.user_id, data.role, data.start_date
    )


@router.delete("/assignments/{assignment_id}", response_model=JobSiteAssignmentResponse)
async def end_assignment(
    assignment_id: UUID,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """End a job site assignment; the row is kept with is_active false"""
    return await service.end_job_site_assignment(ctx, assignment_id)


@router.get("/{job_site_id}/workers", response_model=List[WorkerResponse])
async def list_site_workers(
    job_site_id: UUID,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return await service.list_workers(ctx, job_site_id)
