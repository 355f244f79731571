"""Worker endpoints"""

from uuid import UUID

from fastapi import APIRouter, Depends

from crewcommand.api.dependencies import get_caller_context, get_scheduling_service
from crewcommand.schemas.scheduling import (
    WorkerMoveRequest,
    WorkerMoveResponse,
    WorkerResponse,
)
from crewcommand.services.authorization import CallerContext
from crewcommand.services.scheduling_service import SchedulingService

router = APIRouter(prefix="/api/v1/workers", tags=["Workers"])


@router.post("/{worker_id}/move", response_model=WorkerMoveResponse)
async def move_worker(
    worker_id: UUID,
    data: WorkerMoveRequest,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Move a worker to another job site (admins only)

    Site superintendents cannot do this even when they run both sites.
    """
    worker, effective_date = await service.move_worker_between_sites(
        ctx, worker_id, data.to_site_id, data.effective_date
    )
    return WorkerMoveResponse(
        message=f"Moved {worker.name} effective {effective_date.isoformat()}",
        worker=WorkerResponse.model_validate(worker),
        effective_date=effective_date,
    )
