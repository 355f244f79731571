"""Authentication schemas"""

from typing import Optional
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from uuid import UUID


class LoginRequest(BaseModel):
    """Login request schema"""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, description="User password (minimum 8 characters)")


class UserInfo(BaseModel):
    """User information in token response"""
    id: UUID = Field(..., description="User UUID")
    email: str = Field(..., description="User email")
    name: str = Field(..., description="Display name")
    base_role: str = Field(..., description="Organization-wide role")
    organization_id: UUID = Field(..., description="Organization UUID")

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """Token response schema"""
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiration in seconds")
    user: UserInfo = Field(..., description="User information")


class RefreshTokenResponse(BaseModel):
    """Refresh token response schema"""
    access_token: str = Field(..., description="New JWT access token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiration in seconds")


class SiteRoleInfo(BaseModel):
    """Active role on one job site"""
    job_site_id: UUID
    role: str


class MeResponse(UserInfo):
    """Current user with the site roles the server resolved for them"""
    site_roles: list[SiteRoleInfo] = Field(default_factory=list)
    phone: Optional[str] = None
