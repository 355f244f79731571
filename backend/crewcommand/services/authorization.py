"""
Tenant authorization engine.

A single pure decision function, `decide`, answers whether a caller may
perform an action on a resource. It is driven by the tables below rather
than by role comparisons at call sites. `AuthorizationService` loads the
inputs `decide` needs from the database and raises on denial.

Precedence:
    1. organization mismatch -> deny
    2. base role admin -> allow
    3. self-readable action on the caller's own record -> allow
    4. admin-only action -> deny
    5. resource without a job site -> deny
    6. caller's active role on the resource's job site must be whitelisted
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crewcommand.exceptions import Forbidden, Unauthenticated
from crewcommand.models import BaseRole, JobSiteAssignment, SiteRole, UserProfile
from crewcommand.monitoring.metrics import metrics_collector

logger = logging.getLogger(__name__)


class Action(str, Enum):
    """Every authorizable operation"""
    VIEW_JOB_SITE = "view_job_site"
    MANAGE_JOB_SITE = "manage_job_site"
    CREATE_JOB_SITE = "create_job_site"
    ASSIGN_USERS_TO_SITE = "assign_users_to_site"
    VIEW_WORKERS = "view_workers"
    VIEW_TASKS = "view_tasks"
    MANAGE_TASKS = "manage_tasks"
    ASSIGN_WORKERS = "assign_workers"
    REQUEST_REASSIGNMENT = "request_reassignment"
    APPROVE_REQUESTS = "approve_requests"
    UPDATE_TASK_STATUS = "update_task_status"
    CLOCK_HOURS = "clock_hours"
    EDIT_HOURS = "edit_hours"
    VIEW_HOURS = "view_hours"
    MOVE_WORKER_BETWEEN_SITES = "move_worker_between_sites"
    MANAGE_USERS = "manage_users"


_ALL_SITE_ROLES = frozenset(SiteRole)
_SITE_MANAGERS = frozenset({SiteRole.SUPERINTENDENT, SiteRole.ENGINEER_AS_SUPERINTENDENT})
_SITE_SUPERVISORS = _SITE_MANAGERS | {SiteRole.FOREMAN}
_SITE_STAFF = _SITE_SUPERVISORS | {SiteRole.ENGINEER}

# Site roles allowed to perform each site-scoped action
SITE_ROLE_PERMISSIONS: Dict[Action, FrozenSet[SiteRole]] = {
    Action.VIEW_JOB_SITE: _ALL_SITE_ROLES,
    Action.MANAGE_JOB_SITE: _SITE_MANAGERS,
    Action.ASSIGN_USERS_TO_SITE: _SITE_MANAGERS,
    Action.VIEW_WORKERS: _SITE_STAFF,
    Action.VIEW_TASKS: _ALL_SITE_ROLES,
    Action.MANAGE_TASKS: _SITE_MANAGERS,
    Action.ASSIGN_WORKERS: _SITE_MANAGERS,
    Action.REQUEST_REASSIGNMENT: _SITE_SUPERVISORS,
    Action.APPROVE_REQUESTS: _SITE_MANAGERS,
    Action.UPDATE_TASK_STATUS: _SITE_SUPERVISORS,
    Action.CLOCK_HOURS: _SITE_SUPERVISORS,
    Action.EDIT_HOURS: _SITE_MANAGERS,
    Action.VIEW_HOURS: _SITE_STAFF,
}

# Cross-site or organization-level operations no site role can vouch for
ADMIN_ONLY_ACTIONS: FrozenSet[Action] = frozenset({
    Action.CREATE_JOB_SITE,
    Action.MOVE_WORKER_BETWEEN_SITES,
    Action.MANAGE_USERS,
})

# Reads a user may always perform on records about themselves
SELF_READABLE_ACTIONS: FrozenSet[Action] = frozenset({Action.VIEW_HOURS})


@dataclass(frozen=True)
class CallerContext:
    """Server-derived identity of the caller, rebuilt on every request"""
    user_id: UUID
    organization_id: UUID
    base_role: BaseRole
    site_roles: Dict[UUID, SiteRole] = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.base_role == BaseRole.ADMIN

    def site_role(self, job_site_id: Optional[UUID]) -> Optional[SiteRole]:
        if job_site_id is None:
            return None
        return self.site_roles.get(job_site_id)


@dataclass(frozen=True)
class ResourceRef:
    """The tenancy coordinates of whatever is being acted on"""
    organization_id: UUID
    job_site_id: Optional[UUID] = None
    owner_user_id: Optional[UUID] = None


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of `decide`; the reason is for logs only"""
    allowed: bool
    reason: str

    def __bool__(self) -> bool:
        return self.allowed


def decide(ctx: CallerContext, action: Action, resource: ResourceRef) -> AccessDecision:
    """Pure permission check for (caller, action, resource)"""
    if ctx.organization_id != resource.organization_id:
        return AccessDecision(False, "organization mismatch")

    if ctx.is_admin:
        return AccessDecision(True, "organization admin")

    if (
        action in SELF_READABLE_ACTIONS
        and resource.owner_user_id is not None
        and resource.owner_user_id == ctx.user_id
    ):
        return AccessDecision(True, "own record")

    if action in ADMIN_ONLY_ACTIONS:
        return AccessDecision(False, f"{action.value} is admin-only")

    if resource.job_site_id is None:
        return AccessDecision(False, "organization-level resource requires admin")

    site_role = ctx.site_role(resource.job_site_id)
    if site_role is None:
        return AccessDecision(False, "no active assignment on job site")

    allowed_roles = SITE_ROLE_PERMISSIONS.get(action, frozenset())
    if site_role in allowed_roles:
        return AccessDecision(True, f"site role {site_role.value}")

    return AccessDecision(False, f"site role {site_role.value} cannot {action.value}")


def resource_for(entity, owner_user_id: Optional[UUID] = None) -> ResourceRef:
    """
    Build a ResourceRef from any tenant-owned model.

    Job sites are their own site; everything else carries job_site_id.
    """
    from crewcommand.models import JobSite

    if isinstance(entity, JobSite):
        job_site_id = entity.id
    else:
        job_site_id = getattr(entity, "job_site_id", None)
    return ResourceRef(
        organization_id=entity.organization_id,
        job_site_id=job_site_id,
        owner_user_id=owner_user_id,
    )


class AuthorizationService:
    """Loads caller context from the database and enforces `decide`"""

    def __init__(self, db: AsyncSession):
        """Initialize with database session"""
        self.db = db

    async def load_caller_context(self, user_id: Optional[UUID]) -> CallerContext:
        """
        Build the caller context from the profile row and active site assignments.

        Organization and role always come from the database, never from
        token claims or request payloads.

        Raises:
            Unauthenticated: If the user id is missing or has no profile
        """
        if user_id is None:
            raise Unauthenticated("Authentication required")

        result = await self.db.execute(select(UserProfile).where(UserProfile.id == user_id))
        profile = result.scalar_one_or_none()
        if profile is None:
            raise Unauthenticated("User profile not found")

        return await self.context_for_profile(profile)

    async def context_for_profile(self, profile: UserProfile) -> CallerContext:
        """Build the caller context for an already-loaded profile"""
        result = await self.db.execute(
            select(JobSiteAssignment).where(
                JobSiteAssignment.user_id == profile.id,
                JobSiteAssignment.organization_id == profile.organization_id,
                JobSiteAssignment.is_active.is_(True),
            )
        )
        site_roles: Dict[UUID, SiteRole] = {}
        for assignment in result.scalars().all():
            try:
                site_roles[assignment.job_site_id] = SiteRole(assignment.role)
            except ValueError:
                logger.warning(
                    f"Ignoring unknown site role {assignment.role!r} on assignment {assignment.id}"
                )

        try:
            base_role = BaseRole(profile.base_role)
        except ValueError:
            logger.warning(f"Unknown base role {profile.base_role!r} for user {profile.id}; treating as worker")
            base_role = BaseRole.WORKER

        return CallerContext(
            user_id=profile.id,
            organization_id=profile.organization_id,
            base_role=base_role,
            site_roles=site_roles,
        )

    def authorize(self, ctx: CallerContext, action: Action, resource: ResourceRef) -> None:
        """
        Enforce `decide`.

        Raises:
            Forbidden: With a generic message whatever the internal reason
        """
        decision = decide(ctx, action, resource)
        metrics_collector.record_authorization(action.value, decision.allowed)

        if not decision.allowed:
            logger.warning(
                f"Denied {action.value} for user {ctx.user_id} "
                f"on site {resource.job_site_id}: {decision.reason}"
            )
            raise Forbidden(decision.reason)
