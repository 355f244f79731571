"""Daily hours endpoints"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from crewcommand.api.dependencies import get_caller_context, get_scheduling_service
from crewcommand.schemas.scheduling import (
    DailyHoursCreate,
    DailyHoursListResponse,
    DailyHoursResponse,
    DailyHoursUpdate,
)
from crewcommand.services.authorization import CallerContext
from crewcommand.services.scheduling_service import SchedulingService

router = APIRouter(prefix="/api/v1/hours", tags=["Hours"])


@router.post("", response_model=DailyHoursResponse, status_code=status.HTTP_200_OK)
async def log_hours(
    data: DailyHoursCreate,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Record a worker's day

    - **status**: worked, off, or transferred
    - **hours_worked**: defaults to 8; forced to 0 for days off

    A second entry for the same worker and date replaces the first.
    """
    return await service.log_hours(ctx, data)


@router.get("/workers/{worker_id}", response_model=DailyHoursListResponse)
async def list_worker_hours(
    worker_id: UUID,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Hours for one worker; workers may always read their own"""
    entries = await service.list_hours(ctx, worker_id, start_date, end_date)
    return DailyHoursListResponse(
        worker_id=worker_id,
        entries=[DailyHoursResponse.model_validate(e) for e in entries],
        total_hours=float(sum(float(e.hours_worked or 0) for e in entries)),
    )


@router.patch("/{entry_id}", response_model=DailyHoursResponse)
async def edit_hours(
    entry_id: UUID,
    data: DailyHoursUpdate,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Correct a logged day (site managers only)

    Only fields sent are changed. Days off always count zero hours.
    """
    return await service.edit_hours(ctx, entry_id, data)
