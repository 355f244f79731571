"""API dependencies for authentication and caller context"""

import logging
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crewcommand.database import get_db
from crewcommand.exceptions import Unauthenticated
from crewcommand.models import UserProfile
from crewcommand.services.auth_service import AuthService
from crewcommand.services.authorization import AuthorizationService, CallerContext
from crewcommand.services.redis_service import RedisService
from crewcommand.services.scheduling_service import SchedulingService

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an Authorization header or raise Unauthenticated"""
    if not authorization:
        raise Unauthenticated("Authorization header missing")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Unauthenticated("Invalid authorization header format")

    return parts[1]


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> UserProfile:
    """
    Resolve the bearer credential to a user profile.

    Only the subject claim is trusted; organization and role are read from
    the profile row.

    Raises:
        Unauthenticated: If the token is missing, malformed, revoked, expired,
            or names no profile
    """
    token = extract_bearer_token(authorization)

    redis_service = RedisService()
    if await redis_service.is_token_blacklisted(token):
        raise Unauthenticated("Token has been revoked")

    payload = AuthService.validate_token(token, token_type="access")
    if not payload:
        raise Unauthenticated("Invalid or expired token")

    user_id = AuthService.user_id_from_payload(payload)
    if user_id is None:
        raise Unauthenticated("Invalid user ID in token")

    result = await db.execute(select(UserProfile).where(UserProfile.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise Unauthenticated("User not found")

    return user


async def get_authorization_service(db: AsyncSession = Depends(get_db)) -> AuthorizationService:
    return AuthorizationService(db)


async def get_caller_context(
    user: UserProfile = Depends(get_current_user),
    authz: AuthorizationService = Depends(get_authorization_service),
) -> CallerContext:
    """Organization, base role and site roles re-read from the database on every request"""
    return await authz.context_for_profile(user)


def get_scheduling_service(
    db: AsyncSession = Depends(get_db),
    authz: AuthorizationService = Depends(get_authorization_service),
) -> SchedulingService:
    return SchedulingService(db, authz)
