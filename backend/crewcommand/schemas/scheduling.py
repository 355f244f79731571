"""Job site, worker, request and hours schemas"""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from crewcommand.models import (
    BaseRole,
    DailyHoursStatus,
    JobSiteStatus,
    SiteRole,
    TaskStatus,
)


class JobSiteCreate(BaseModel):
    """Job site creation schema; the organization always comes from the caller's profile"""
    name: str = Field(..., min_length=1, max_length=255, description="Job site name")
    address: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    status: JobSiteStatus = Field(default=JobSiteStatus.ACTIVE)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class JobSiteResponse(BaseModel):
    """Job site response schema"""
    id: UUID
    organization_id: UUID
    name: str
    address: Optional[str] = None
    description: Optional[str] = None
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class JobSiteUpdate(BaseModel):
    """Partial job site update; only fields sent are changed"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    status: Optional[JobSiteStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class JobSiteListResponse(BaseModel):
    """Job sites visible to the caller"""
    job_sites: List[JobSiteResponse]
    total: int


class JobSiteAssignmentCreate(BaseModel):
    """Assign a user to a job site with a site role"""
    user_id: UUID = Field(..., description="User profile to assign")
    role: SiteRole = Field(..., description="Role on this job site")
    start_date: Optional[date] = Field(None, description="Defaults to today")


class JobSiteAssignmentResponse(BaseModel):
    """Job site assignment response schema"""
    id: UUID
    user_id: UUID
    job_site_id: UUID
    role: str
    start_date: date
    end_date: Optional[date] = None
    is_active: bool
    assigned_by: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)


class UserRoleUpdate(BaseModel):
    """Change a user's organization-wide role (admins only)"""
    base_role: BaseRole


class UserResponse(BaseModel):
    """User profile response schema"""
    id: UUID
    organization_id: UUID
    email: str
    name: str
    base_role: str
    phone: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class WorkerResponse(BaseModel):
    """Worker response schema"""
    id: UUID
    organization_id: UUID
    job_site_id: Optional[UUID] = None
    name: str
    role: str
    skills: List[str] = Field(default_factory=list)
    status: str

    model_config = ConfigDict(from_attributes=True)


class WorkerMoveRequest(BaseModel):
    """Move a worker to another job site (admin only)"""
    to_site_id: UUID = Field(..., description="Destination job site")
    effective_date: Optional[date] = Field(None, description="Defaults to today")


class WorkerMoveResponse(BaseModel):
    """Result of a job site move"""
    message: str
    worker: WorkerResponse
    effective_date: date


class TaskCreate(BaseModel):
    """Task creation schema; a task without a job site is organization-level (admins only)"""
    job_site_id: Optional[UUID] = None
    name: str = Field(..., min_length=1, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    required_operators: int = Field(default=0, ge=0)
    required_laborers: int = Field(default=0, ge=0)
    required_carpenters: int = Field(default=0, ge=0)
    required_masons: int = Field(default=0, ge=0)
    notes: Optional[str] = None


class TaskUpdate(BaseModel):
    """Partial task update; status changes go through the status endpoint"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    required_operators: Optional[int] = Field(None, ge=0)
    required_laborers: Optional[int] = Field(None, ge=0)
    required_carpenters: Optional[int] = Field(None, ge=0)
    required_masons: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class TaskStatusUpdate(BaseModel):
    """Move a task through planned, active and completed"""
    status: TaskStatus


class TaskResponse(BaseModel):
    """Task response schema"""
    id: UUID
    organization_id: UUID
    job_site_id: Optional[UUID] = None
    name: str
    location: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    required_operators: int
    required_laborers: int
    required_carpenters: int
    required_masons: int
    status: str
    notes: Optional[str] = None
    created_by: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)


class TaskListResponse(BaseModel):
    """Tasks on one job site"""
    tasks: List[TaskResponse]
    total: int


class AssignmentRequestCreate(BaseModel):
    """Propose moving a worker onto another task"""
    worker_id: UUID
    to_task_id: UUID
    from_task_id: Optional[UUID] = None
    reason: Optional[str] = Field(None, max_length=1000)


class AssignmentRequestResponse(BaseModel):
    """Assignment request response schema"""
    id: UUID
    worker_id: UUID
    job_site_id: Optional[UUID] = None
    from_task_id: Optional[UUID] = None
    to_task_id: UUID
    requested_by: UUID
    reason: Optional[str] = None
    status: str
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DailyHoursCreate(BaseModel):
    """Log a worker's day"""
    worker_id: UUID
    log_date: date
    status: DailyHoursStatus = Field(default=DailyHoursStatus.WORKED)
    hours_worked: float = Field(default=8.0, ge=0, le=24)
    task_id: Optional[UUID] = None
    transferred_to_task_id: Optional[UUID] = None
    notes: Optional[str] = Field(None, max_length=1000)


class DailyHoursUpdate(BaseModel):
    """Correct a logged day (site managers only); only fields sent are changed"""
    status: Optional[DailyHoursStatus] = None
    hours_worked: Optional[float] = Field(None, ge=0, le=24)
    task_id: Optional[UUID] = None
    transferred_to_task_id: Optional[UUID] = None
    notes: Optional[str] = Field(None, max_length=1000)


class DailyHoursResponse(BaseModel):
    """Daily hours response schema"""
    id: UUID
    worker_id: UUID
    job_site_id: Optional[UUID] = None
    log_date: date
    status: str
    hours_worked: float
    task_id: Optional[UUID] = None
    transferred_to_task_id: Optional[UUID] = None
    notes: Optional[str] = None
    logged_by: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)


class DailyHoursListResponse(BaseModel):
    """Hours for one worker"""
    worker_id: UUID
    entries: List[DailyHoursResponse]
    total_hours: float
