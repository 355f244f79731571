"""User administration endpoints"""

from uuid import UUID

from fastapi import APIRouter, Depends

from crewcommand.api.dependencies import get_caller_context, get_scheduling_service
from crewcommand.schemas.scheduling import UserResponse, UserRoleUpdate
from crewcommand.services.authorization import CallerContext
from crewcommand.services.scheduling_service import SchedulingService

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.patch("/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: UUID,
    data: UserRoleUpdate,
    ctx: CallerContext = Depends(get_caller_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Change a user's base role (admins only)

    Site roles are managed per job site and are not affected.
    """
    return await service.update_user_role(ctx, user_id, data.base_role)
