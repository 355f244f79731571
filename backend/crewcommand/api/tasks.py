"""Task endpoints"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from crewcommand.api.dependencies import get_caller_context, get_scheduling_service
from crewcommand.models import TaskStatus
from crewcommand.schemas.scheduling import (
    TaskCreate,
    TaskListResponse,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from crewcommand.services.authorization import CallerContext
from crewcommand.services.scheduling_service import SchedulingService

router = APIRouter(prefix="/api/v1/tasks", tags=["Tasks"])


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Create a task

    - **job_site_id**: the site the task belongs to; omit for an organization-level task (admins only)
    - **required_***: headcount per trade, default 0

    New tasks start as planned.
    """
    return await service.create_task(ctx, data)


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    job_site_id: UUID = Query(..., description="Job site to list tasks for"),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    tasks = await service.list_tasks(ctx, job_site_id, status_filter)
    return TaskListResponse(
        tasks=[TaskResponse.model_validate(t) for t in tasks],
        total=len(tasks),
    )


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: UUID,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return await service.get_task(ctx, task_id)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: UUID,
    data: TaskUpdate,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Edit task details (site managers); only fields sent are changed"""
    return await service.update_task(ctx, task_id, data)


@router.patch("/{task_id}/status", response_model=TaskResponse)
async def update_task_status(
    task_id: UUID,
    data: TaskStatusUpdate,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Set a task to planned, active or completed; foremen may do this too"""
    return await service.update_task_status(ctx, task_id, data.status)
