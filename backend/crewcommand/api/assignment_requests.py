"""Reassignment request endpoints"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from crewcommand.api.dependencies import get_caller_context, get_scheduling_service
from crewcommand.models import RequestStatus
from crewcommand.schemas.scheduling import AssignmentRequestCreate, AssignmentRequestResponse
from crewcommand.services.authorization import CallerContext
from crewcommand.services.scheduling_service import SchedulingService

router = APIRouter(prefix="/api/v1/assignment-requests", tags=["Assignment Requests"])


@router.post("", response_model=AssignmentRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    data: AssignmentRequestCreate,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Propose moving a worker onto another task (foremen and superintendents)"""
    return await service.create_assignment_request(ctx, data)


@router.get("", response_model=List[AssignmentRequestResponse])
async def list_requests(
    job_site_id: UUID = Query(..., description="Job site to list requests for"),
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return await service.list_assignment_requests(ctx, job_site_id, status_filter)


@router.post("/{request_id}/approve", response_model=AssignmentRequestResponse)
async def approve_request(
    request_id: UUID,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Approve a pending request; the reassignment itself is issued separately"""
    return await service.review_assignment_request(ctx, request_id, approve=True)


@router.post("/{request_id}/deny", response_model=AssignmentRequestResponse)
async def deny_request(
    request_id: UUID,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return await service.review_assignment_request(ctx, request_id, approve=False)
