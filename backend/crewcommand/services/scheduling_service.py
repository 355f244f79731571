"""Job site, task, user role, worker movement, reassignment request and daily hours operations"""

import logging
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crewcommand.exceptions import NotFound, ValidationError
from crewcommand.models import (
    AssignmentRequest,
    BaseRole,
    DailyHours,
    DailyHoursStatus,
    JobSite,
    JobSiteAssignment,
    RequestStatus,
    SiteRole,
    Task,
    TaskStatus,
    UserProfile,
    Worker,
)
from crewcommand.schemas.scheduling import (
    AssignmentRequestCreate,
    DailyHoursCreate,
    DailyHoursUpdate,
    JobSiteCreate,
    JobSiteUpdate,
    TaskCreate,
    TaskUpdate,
)
from crewcommand.services.authorization import (
    Action,
    AuthorizationService,
    CallerContext,
    ResourceRef,
    resource_for,
)

logger = logging.getLogger(__name__)


def worker_resource(worker: Worker) -> ResourceRef:
    """A worker belongs to their current job site; a linked profile owns their records"""
    return ResourceRef(
        organization_id=worker.organization_id,
        job_site_id=worker.job_site_id,
        owner_user_id=worker.user_id,
    )


def check_date_order(start_date: Optional[date], end_date: Optional[date]):
    if start_date and end_date and end_date < start_date:
        raise ValidationError("End date cannot be before start date")


class SchedulingService:
    """
    Tenant-scoped scheduling operations.

    Every lookup filters on the caller's organization, so a foreign id reads
    exactly like a missing one. Every operation is authorized before it
    touches persisted state.
    """

    def __init__(self, db: AsyncSession, authz: Optional[AuthorizationService] = None):
        """Initialize with database session"""
        self.db = db
        self.authz = authz or AuthorizationService(db)

    async def get_scoped(self, model, record_id: UUID, ctx: CallerContext, label: str):
        """Fetch a row by id within the caller's organization or raise NotFound"""
        result = await self.db.execute(
            select(model).where(
                model.id == record_id,
                model.organization_id == ctx.organization_id,
            )
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFound(label)
        return record

    # Job sites

    async def list_job_sites(self, ctx: CallerContext) -> List[JobSite]:
        """Admins see every site of the organization; others see sites they are assigned to"""
        query = select(JobSite).where(JobSite.organization_id == ctx.organization_id)
        if not ctx.is_admin:
            if not ctx.site_roles:
                return []
            query = query.where(JobSite.id.in_(list(ctx.site_roles.keys())))
        result = await self.db.execute(query.order_by(JobSite.name))
        return list(result.scalars().all())

    async def get_job_site(self, ctx: CallerContext, job_site_id: UUID) -> JobSite:
        site = await self.get_scoped(JobSite, job_site_id, ctx, "Job site")
        self.authz.authorize(ctx, Action.VIEW_JOB_SITE, resource_for(site))
        return site

    async def create_job_site(self, ctx: CallerContext, data: JobSiteCreate) -> JobSite:
        """Create a job site in the caller's organization (admin only)"""
        self.authz.authorize(
            ctx, Action.CREATE_JOB_SITE, ResourceRef(organization_id=ctx.organization_id)
        )

        check_date_order(data.start_date, data.end_date)

        site = JobSite(
            organization_id=ctx.organization_id,
            name=data.name.strip(),
            address=data.address,
            description=data.description,
            status=data.status.value,
            start_date=data.start_date,
            end_date=data.end_date,
            created_by=ctx.user_id,
        )
        self.db.add(site)
        await self.db.commit()
        await self.db.refresh(site)

        logger.info(f"Created job site {site.id} ({site.name}) in organization {ctx.organization_id}")
        return site

    async def update_job_site(self, ctx: CallerContext, job_site_id: UUID, data: JobSiteUpdate) -> JobSite:
        """Edit a job site's details; only fields sent are changed"""
        site = await self.get_scoped(JobSite, job_site_id, ctx, "Job site")
        self.authz.authorize(ctx, Action.MANAGE_JOB_SITE, resource_for(site))

        changes = self._changes(data, required=("name", "status"))
        if "name" in changes:
            changes["name"] = changes["name"].strip()
        if "status" in changes:
            changes["status"] = changes["status"].value
        check_date_order(
            changes.get("start_date", site.start_date),
            changes.get("end_date", site.end_date),
        )

        for key, value in changes.items():
            setattr(site, key, value)
        await self.db.commit()
        await self.db.refresh(site)

        logger.info(f"Updated job site {site.id}: {', '.join(changes) or 'no changes'}")
        return site

    @staticmethod
    def _changes(data, required=()) -> dict:
        """Fields the client actually sent; required columns cannot be cleared"""
        changes = data.model_dump(exclude_unset=True)
        for key in required:
            if key in changes and changes[key] is None:
                raise ValidationError(f"{key} cannot be empty")
        return changes

    async def list_site_assignments(
        self, ctx: CallerContext, job_site_id: UUID, active_only: bool = True
    ) -> List[JobSiteAssignment]:
        site = await self.get_job_site(ctx, job_site_id)
        query = select(JobSiteAssignment).where(
            JobSiteAssignment.organization_id == ctx.organization_id,
            JobSiteAssignment.job_site_id == site.id,
        )
        if active_only:
            query = query.where(JobSiteAssignment.is_active.is_(True))
        result = await self.db.execute(query.order_by(JobSiteAssignment.start_date))
        return list(result.scalars().all())

    async def assign_user_to_job_site(
        self,
        ctx: CallerContext,
        job_site_id: UUID,
        user_id: UUID,
        role: SiteRole,
        start_date: Optional[date] = None,
    ) -> JobSiteAssignment:
        """
        Give a user a role on a job site.

        An existing active assignment for the same pair is closed out
        (is_active=False, end_date=today) before the new one is inserted,
        so at most one active row per (user, job site) ever exists.
        """
        site = await self.get_scoped(JobSite, job_site_id, ctx, "Job site")
        self.authz.authorize(ctx, Action.ASSIGN_USERS_TO_SITE, resource_for(site))
        user = await self.get_scoped(UserProfile, user_id, ctx, "User")

        today = date.today()
        result = await self.db.execute(
            select(JobSiteAssignment).where(
                JobSiteAssignment.organization_id == ctx.organization_id,
                JobSiteAssignment.user_id == user.id,
                JobSiteAssignment.job_site_id == site.id,
                JobSiteAssignment.is_active.is_(True),
            )
        )
        for existing in result.scalars().all():
            existing.is_active = False
            existing.end_date = today
        await self.db.flush()

        assignment = JobSiteAssignment(
            organization_id=ctx.organization_id,
            user_id=user.id,
            job_site_id=site.id,
            role=role.value,
            start_date=start_date or today,
            is_active=True,
            assigned_by=ctx.user_id,
        )
        self.db.add(assignment)
        await self.db.commit()
        await self.db.refresh(assignment)

        logger.info(f"Assigned user {user.id} to job site {site.id} as {role.value}")
        return assignment

    async def end_job_site_assignment(self, ctx: CallerContext, assignment_id: UUID) -> JobSiteAssignment:
        assignment = await self.get_scoped(JobSiteAssignment, assignment_id, ctx, "Job site assignment")
        self.authz.authorize(ctx, Action.ASSIGN_USERS_TO_SITE, resource_for(assignment))

        if not assignment.is_active:
            raise ValidationError("Job site assignment has already ended")

        assignment.is_active = False
        assignment.end_date = date.today()
        await self.db.commit()

        logger.info(f"Ended job site assignment {assignment.id}")
        return assignment

    # Tasks

    async def list_tasks(
        self, ctx: CallerContext, job_site_id: UUID, status: Optional[TaskStatus] = None
    ) -> List[Task]:
        site = await self.get_scoped(JobSite, job_site_id, ctx, "Job site")
        self.authz.authorize(ctx, Action.VIEW_TASKS, resource_for(site))

        query = select(Task).where(
            Task.organization_id == ctx.organization_id,
            Task.job_site_id == site.id,
        )
        if status is not None:
            query = query.where(Task.status == status.value)
        result = await self.db.execute(query.order_by(Task.start_date, Task.name))
        return list(result.scalars().all())

    async def get_task(self, ctx: CallerContext, task_id: UUID) -> Task:
        task = await self.get_scoped(Task, task_id, ctx, "Task")
        self.authz.authorize(ctx, Action.VIEW_TASKS, resource_for(task))
        return task

    async def create_task(self, ctx: CallerContext, data: TaskCreate) -> Task:
        """
        Create a planned task.

        Site managers create tasks on their own sites; only admins may create
        a task with no job site.
        """
        if data.job_site_id is not None:
            site = await self.get_scoped(JobSite, data.job_site_id, ctx, "Job site")
            resource = resource_for(site)
        else:
            resource = ResourceRef(organization_id=ctx.organization_id)
        self.authz.authorize(ctx, Action.MANAGE_TASKS, resource)

        check_date_order(data.start_date, data.end_date)

        task = Task(
            organization_id=ctx.organization_id,
            job_site_id=resource.job_site_id,
            name=data.name.strip(),
            location=data.location,
            start_date=data.start_date,
            end_date=data.end_date,
            required_operators=data.required_operators,
            required_laborers=data.required_laborers,
            required_carpenters=data.required_carpenters,
            required_masons=data.required_masons,
            status=TaskStatus.PLANNED.value,
            notes=data.notes,
            created_by=ctx.user_id,
        )
        self.db.add(task)
        await self.db.commit()
        await self.db.refresh(task)

        logger.info(f"Created task {task.id} ({task.name}) on job site {task.job_site_id}")
        return task

    async def update_task(self, ctx: CallerContext, task_id: UUID, data: TaskUpdate) -> Task:
        """Edit a task's details; only fields sent are changed"""
        task = await self.get_scoped(Task, task_id, ctx, "Task")
        self.authz.authorize(ctx, Action.MANAGE_TASKS, resource_for(task))

        changes = self._changes(data, required=(
            "name",
            "required_operators",
            "required_laborers",
            "required_carpenters",
            "required_masons",
        ))
        if "name" in changes:
            changes["name"] = changes["name"].strip()
        check_date_order(
            changes.get("start_date", task.start_date),
            changes.get("end_date", task.end_date),
        )

        for key, value in changes.items():
            setattr(task, key, value)
        await self.db.commit()
        await self.db.refresh(task)

        logger.info(f"Updated task {task.id}: {', '.join(changes) or 'no changes'}")
        return task

    async def update_task_status(self, ctx: CallerContext, task_id: UUID, status: TaskStatus) -> Task:
        """Foremen may move tasks through their lifecycle without editing them"""
        task = await self.get_scoped(Task, task_id, ctx, "Task")
        self.authz.authorize(ctx, Action.UPDATE_TASK_STATUS, resource_for(task))

        previous = task.status
        task.status = status.value
        await self.db.commit()
        await self.db.refresh(task)

        logger.info(f"Task {task.id} status {previous} -> {task.status} by {ctx.user_id}")
        return task

    # Users

    async def update_user_role(self, ctx: CallerContext, user_id: UUID, base_role: BaseRole) -> UserProfile:
        """
        Change a user's organization-wide role (admin only).

        Site roles are untouched; they are granted per job site.
        """
        self.authz.authorize(
            ctx, Action.MANAGE_USERS, ResourceRef(organization_id=ctx.organization_id)
        )
        user = await self.get_scoped(UserProfile, user_id, ctx, "User")

        if user.id == ctx.user_id:
            raise ValidationError("You cannot change your own role")

        previous = user.base_role
        user.base_role = base_role.value
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"User {user.id} base role {previous} -> {user.base_role} by {ctx.user_id}")
        return user

    # Workers

    async def list_workers(self, ctx: CallerContext, job_site_id: UUID) -> List[Worker]:
        site = await self.get_scoped(JobSite, job_site_id, ctx, "Job site")
        self.authz.authorize(ctx, Action.VIEW_WORKERS, resource_for(site))
        result = await self.db.execute(
            select(Worker).where(
                Worker.organization_id == ctx.organization_id,
                Worker.job_site_id == site.id,
            ).order_by(Worker.name)
        )
        return list(result.scalars().all())

    async def move_worker_between_sites(
        self,
        ctx: CallerContext,
        worker_id: UUID,
        to_site_id: UUID,
        effective_date: Optional[date] = None,
    ) -> Tuple[Worker, date]:
        """
        Move a worker to another job site (admin only).

        A worker linked to a user profile also has their active site
        assignment on the source site closed and a worker-role assignment
        opened on the destination.
        """
        worker = await self.get_scoped(Worker, worker_id, ctx, "Worker")
        to_site = await self.get_scoped(JobSite, to_site_id, ctx, "Destination job site")
        self.authz.authorize(ctx, Action.MOVE_WORKER_BETWEEN_SITES, resource_for(to_site))

        if worker.job_site_id == to_site.id:
            raise ValidationError(f"{worker.name} is already assigned to {to_site.name}")

        effective = effective_date or date.today()
        from_site_id = worker.job_site_id

        if worker.user_id is not None:
            if from_site_id is not None:
                result = await self.db.execute(
                    select(JobSiteAssignment).where(
                        JobSiteAssignment.organization_id == ctx.organization_id,
                        JobSiteAssignment.user_id == worker.user_id,
                        JobSiteAssignment.job_site_id == from_site_id,
                        JobSiteAssignment.is_active.is_(True),
                    )
                )
                for existing in result.scalars().all():
                    existing.is_active = False
                    existing.end_date = effective

            result = await self.db.execute(
                select(JobSiteAssignment).where(
                    JobSiteAssignment.organization_id == ctx.organization_id,
                    JobSiteAssignment.user_id == worker.user_id,
                    JobSiteAssignment.job_site_id == to_site.id,
                    JobSiteAssignment.is_active.is_(True),
                )
            )
            if result.scalar_one_or_none() is None:
                await self.db.flush()
                self.db.add(JobSiteAssignment(
                    organization_id=ctx.organization_id,
                    user_id=worker.user_id,
                    job_site_id=to_site.id,
                    role=SiteRole.WORKER.value,
                    start_date=effective,
                    is_active=True,
                    assigned_by=ctx.user_id,
                ))

        worker.job_site_id = to_site.id
        await self.db.commit()

        logger.info(f"Moved worker {worker.id} from site {from_site_id} to {to_site.id} effective {effective}")
        return worker, effective

    # Reassignment requests

    async def create_assignment_request(
        self, ctx: CallerContext, data: AssignmentRequestCreate
    ) -> AssignmentRequest:
        """Propose moving a worker onto a task; reviewed separately"""
        worker = await self.get_scoped(Worker, data.worker_id, ctx, "Worker")
        to_task = await self.get_scoped(Task, data.to_task_id, ctx, "Task")
        self.authz.authorize(ctx, Action.REQUEST_REASSIGNMENT, resource_for(to_task))

        if data.from_task_id is not None:
            from_task = await self.get_scoped(Task, data.from_task_id, ctx, "Task")
            if from_task.id == to_task.id:
                raise ValidationError("Source and destination tasks must differ")

        request = AssignmentRequest(
            organization_id=ctx.organization_id,
            job_site_id=to_task.job_site_id,
            worker_id=worker.id,
            from_task_id=data.from_task_id,
            to_task_id=to_task.id,
            requested_by=ctx.user_id,
            reason=data.reason,
            status=RequestStatus.PENDING.value,
        )
        self.db.add(request)
        await self.db.commit()
        await self.db.refresh(request)

        logger.info(f"Created assignment request {request.id} for worker {worker.id}")
        return request

    async def list_assignment_requests(
        self,
        ctx: CallerContext,
        job_site_id: UUID,
        status: Optional[RequestStatus] = None,
    ) -> List[AssignmentRequest]:
        site = await self.get_scoped(JobSite, job_site_id, ctx, "Job site")
        self.authz.authorize(ctx, Action.REQUEST_REASSIGNMENT, resource_for(site))

        query = select(AssignmentRequest).where(
            AssignmentRequest.organization_id == ctx.organization_id,
            AssignmentRequest.job_site_id == site.id,
        )
        if status is not None:
            query = query.where(AssignmentRequest.status == status.value)
        result = await self.db.execute(query.order_by(AssignmentRequest.created_at.desc()))
        return list(result.scalars().all())

    async def latest_pending_request(self, ctx: CallerContext, worker: Worker) -> Optional[AssignmentRequest]:
        """Most recently created pending request for a worker"""
        result = await self.db.execute(
            select(AssignmentRequest).where(
                AssignmentRequest.organization_id == ctx.organization_id,
                AssignmentRequest.worker_id == worker.id,
                AssignmentRequest.status == RequestStatus.PENDING.value,
            ).order_by(AssignmentRequest.created_at.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def review_assignment_request(
        self, ctx: CallerContext, request_id: UUID, approve: bool
    ) -> AssignmentRequest:
        """
        Approve or deny a pending request, stamping reviewer and time.

        Approval records the decision only; applying the reassignment is a
        separate, explicitly confirmed step.
        """
        request = await self.get_scoped(AssignmentRequest, request_id, ctx, "Assignment request")
        self.authz.authorize(ctx, Action.APPROVE_REQUESTS, resource_for(request))

        if request.status != RequestStatus.PENDING.value:
            raise ValidationError(f"Request has already been {request.status}")

        request.status = (RequestStatus.APPROVED if approve else RequestStatus.DENIED).value
        request.reviewed_by = ctx.user_id
        request.reviewed_at = datetime.now(timezone.utc)
        await self.db.commit()

        logger.info(f"Request {request.id} {request.status} by {ctx.user_id}")
        return request

    # Daily hours

    async def log_hours(self, ctx: CallerContext, data: DailyHoursCreate) -> DailyHours:
        """Record a worker's day, replacing any earlier entry for the same date"""
        worker = await self.get_scoped(Worker, data.worker_id, ctx, "Worker")
        self.authz.authorize(ctx, Action.CLOCK_HOURS, worker_resource(worker))

        if data.task_id is not None:
            await self.get_scoped(Task, data.task_id, ctx, "Task")
        await self._check_transfer(ctx, data.status, data.transferred_to_task_id)

        hours = 0.0 if data.status == DailyHoursStatus.OFF else data.hours_worked

        result = await self.db.execute(
            select(DailyHours).where(
                DailyHours.organization_id == ctx.organization_id,
                DailyHours.worker_id == worker.id,
                DailyHours.log_date == data.log_date,
            )
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            entry = DailyHours(
                organization_id=ctx.organization_id,
                worker_id=worker.id,
                log_date=data.log_date,
            )
            self.db.add(entry)

        entry.job_site_id = worker.job_site_id
        entry.status = data.status.value
        entry.hours_worked = hours
        entry.task_id = data.task_id
        entry.transferred_to_task_id = data.transferred_to_task_id
        entry.notes = data.notes
        entry.logged_by = ctx.user_id

        await self.db.commit()
        await self.db.refresh(entry)
        return entry

    async def _check_transfer(
        self, ctx: CallerContext, status: DailyHoursStatus, transferred_to_task_id: Optional[UUID]
    ):
        if status == DailyHoursStatus.TRANSFERRED:
            if transferred_to_task_id is None:
                raise ValidationError("A transferred day needs the task the worker moved to")
            await self.get_scoped(Task, transferred_to_task_id, ctx, "Task")
        elif transferred_to_task_id is not None:
            raise ValidationError("Only transferred days may name a destination task")

    async def edit_hours(self, ctx: CallerContext, entry_id: UUID, data: DailyHoursUpdate) -> DailyHours:
        """
        Correct an existing hours entry (site managers only).

        The same rules as logging apply to the merged result: a day off
        counts zero hours and only transferred days name a destination task.
        """
        entry = await self.get_scoped(DailyHours, entry_id, ctx, "Hours entry")
        self.authz.authorize(ctx, Action.EDIT_HOURS, resource_for(entry))

        changes = self._changes(data, required=("status", "hours_worked"))
        status = changes.get("status") or DailyHoursStatus(entry.status)

        if "transferred_to_task_id" in changes:
            transferred_to_task_id = changes["transferred_to_task_id"]
        elif status == DailyHoursStatus.TRANSFERRED:
            transferred_to_task_id = entry.transferred_to_task_id
        else:
            transferred_to_task_id = None

        if changes.get("task_id") is not None:
            await self.get_scoped(Task, changes["task_id"], ctx, "Task")
        await self._check_transfer(ctx, status, transferred_to_task_id)

        if status == DailyHoursStatus.OFF:
            hours = 0.0
        else:
            hours = changes.get("hours_worked", entry.hours_worked)

        entry.status = status.value
        entry.hours_worked = hours
        entry.transferred_to_task_id = transferred_to_task_id
        if "task_id" in changes:
            entry.task_id = changes["task_id"]
        if "notes" in changes:
            entry.notes = changes["notes"]
        entry.logged_by = ctx.user_id

        await self.db.commit()
        await self.db.refresh(entry)

        logger.info(f"Edited hours entry {entry.id} for worker {entry.worker_id} on {entry.log_date}")
        return entry

    async def list_hours(
        self,
        ctx: CallerContext,
        worker_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[DailyHours]:
        """Hours for one worker; readable by site staff and by the worker themselves"""
        worker = await self.get_scoped(Worker, worker_id, ctx, "Worker")
        self.authz.authorize(ctx, Action.VIEW_HOURS, worker_resource(worker))

        query = select(DailyHours).where(
            DailyHours.organization_id == ctx.organization_id,
            DailyHours.worker_id == worker.id,
        )
        if start_date:
            query = query.where(DailyHours.log_date >= start_date)
        if end_date:
            query = query.where(DailyHours.log_date <= end_date)
        result = await self.db.execute(query.order_by(DailyHours.log_date))
        return list(result.scalars().all())
