"""Authentication endpoints"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crewcommand.api.dependencies import get_caller_context, get_current_user
from crewcommand.config import settings
from crewcommand.database import get_db
from crewcommand.exceptions import RateLimited, Unauthenticated
from crewcommand.models import UserProfile
from crewcommand.schemas.auth import (
    LoginRequest,
    MeResponse,
    RefreshTokenResponse,
    SiteRoleInfo,
    TokenResponse,
    UserInfo,
)
from crewcommand.services.auth_service import AuthService
from crewcommand.services.authorization import CallerContext
from crewcommand.services.redis_service import RedisService

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])
security = HTTPBearer(auto_error=False)


def _issue_access_token(user: UserProfile) -> str:
    return AuthService.create_access_token(
        user_id=str(user.id),
        email=user.email,
        organization_id=str(user.organization_id),
        role=user.base_role,
    )


@router.post("/login", response_model=TokenResponse, status_code=status.HTTP_200_OK)
async def login(
    login_data: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Authenticate user and return JWT tokens

    - **email**: User email address
    - **password**: User password

    Returns access token and refresh token with user information
    """
    redis_service = RedisService()

    client_ip = request.client.host if request.client else "unknown"

    attempts = await redis_service.get_login_attempts(client_ip)
    if attempts >= settings.login_max_attempts:
        minutes = settings.login_lockout_seconds // 60
        raise RateLimited(f"Maximum login attempts exceeded. Please try again in {minutes} minutes.")

    result = await db.execute(
        select(UserProfile).where(UserProfile.email == login_data.email.lower())
    )
    user = result.scalar_one_or_none()

    # Same message whichever field was wrong
    if not user or not AuthService.verify_password(login_data.password, user.password_hash):
        await redis_service.increment_login_attempts(client_ip)
        raise Unauthenticated("Invalid email or password")

    await redis_service.reset_login_attempts(client_ip)

    return TokenResponse(
        access_token=_issue_access_token(user),
        refresh_token=AuthService.create_refresh_token(user_id=str(user.id)),
        token_type="Bearer",
        expires_in=settings.jwt_expiration_hours * 3600,
        user=UserInfo.model_validate(user),
    )


@router.post("/refresh", response_model=RefreshTokenResponse, status_code=status.HTTP_200_OK)
async def refresh_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
):
    """
    Refresh access token using refresh token

    - **Authorization**: Bearer {refresh_token}
    """
    if not credentials:
        raise Unauthenticated("Missing authentication credentials")

    payload = AuthService.validate_token(credentials.credentials, token_type="refresh")
    if not payload:
        raise Unauthenticated("Invalid or expired refresh token")

    user_id = AuthService.user_id_from_payload(payload)
    if user_id is None:
        raise Unauthenticated("Invalid user ID in token")

    result = await db.execute(select(UserProfile).where(UserProfile.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise Unauthenticated("User not found")

    return RefreshTokenResponse(
        access_token=_issue_access_token(user),
        token_type="Bearer",
        expires_in=settings.jwt_expiration_hours * 3600
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security)
):
    """
    Logout user by blacklisting the access token

    Invalid tokens are ignored so the call is idempotent.
    """
    if not credentials:
        raise Unauthenticated("Missing authentication credentials")

    token = credentials.credentials
    payload = AuthService.decode_token(token)
    if not payload:
        return

    exp = payload.get("exp")
    if exp:
        expiration_time = datetime.fromtimestamp(exp, tz=timezone.utc)
        now = datetime.now(timezone.utc)

        if expiration_time > now:
            seconds_until_expiration = int((expiration_time - now).total_seconds())
            redis_service = RedisService()
            await redis_service.blacklist_token(token, max(seconds_until_expiration, 1))


@router.get("/me", response_model=MeResponse)
async def me(
    user: UserProfile = Depends(get_current_user),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Current user with base role and active site roles as the server sees them"""
    return MeResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        base_role=ctx.base_role.value,
        organization_id=ctx.organization_id,
        phone=user.phone,
        site_roles=[
            SiteRoleInfo(job_site_id=site_id, role=role.value)
            for site_id, role in ctx.site_roles.items()
        ],
    )
