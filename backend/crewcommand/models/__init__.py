"""Database models package"""

from crewcommand.models.base import BaseModel
from crewcommand.models.organization import Organization
from crewcommand.models.user_profile import UserProfile, BaseRole
from crewcommand.models.job_site import JobSite, JobSiteStatus
from crewcommand.models.job_site_assignment import JobSiteAssignment, SiteRole
from crewcommand.models.worker import Worker, WorkerRole, WorkerStatus
from crewcommand.models.task import Task, TaskStatus
from crewcommand.models.assignment import Assignment, AssignmentStatus
from crewcommand.models.assignment_request import AssignmentRequest, RequestStatus
from crewcommand.models.daily_hours import DailyHours, DailyHoursStatus

# Export all models
__all__ = [
    "BaseModel",
    "Organization",
    "UserProfile",
    "BaseRole",
    "JobSite",
    "JobSiteStatus",
    "JobSiteAssignment",
    "SiteRole",
    "Worker",
    "WorkerRole",
    "WorkerStatus",
    "Task",
    "TaskStatus",
    "Assignment",
    "AssignmentStatus",
    "AssignmentRequest",
    "RequestStatus",
    "DailyHours",
    "DailyHoursStatus",
]
