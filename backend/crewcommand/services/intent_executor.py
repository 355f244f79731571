"""
Stage C of the voice pipeline: apply a confirmed Intent to scheduling data.

Handlers only accept a ConfirmedIntent, which is produced by
`confirm_intent` after the user has seen the summary. A raw Intent from the
parser cannot reach a handler.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel as PydanticModel, ValidationError as PydanticValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crewcommand.exceptions import (
    CrewCommandError,
    Forbidden,
    NotFound,
    PartialExecutionError,
    ValidationError,
)
from crewcommand.models import (
    Assignment,
    AssignmentStatus,
    JobSite,
    Task,
    Worker,
)
from crewcommand.monitoring.metrics import metrics_collector
from crewcommand.schemas.scheduling import TaskCreate
from crewcommand.schemas.voice import (
    CreateTaskData,
    Intent,
    IntentAction,
    QueryInfoData,
    ReassignWorkerData,
    UpdateTimesheetData,
    ApproveRequestData,
)
from crewcommand.services.authorization import (
    Action,
    AuthorizationService,
    CallerContext,
    resource_for,
)
from crewcommand.services.date_resolver import resolve_date_list, resolve_dates, resolve_single_date
from crewcommand.services.name_resolver import (
    resolve_job_site,
    resolve_task,
    resolve_worker,
    unwrap,
)
from crewcommand.services.scheduling_service import SchedulingService, worker_resource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfirmedIntent:
    """An Intent the user explicitly approved after seeing its summary"""
    intent: Intent
    confirmed_by: UUID
    client_date: date
    job_site_id: Optional[UUID] = None
    confirmed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def confirm_intent(
    intent: Intent,
    ctx: CallerContext,
    client_date: date,
    job_site_id: Optional[UUID] = None,
) -> ConfirmedIntent:
    """
    Record the user's confirmation of an intent.

    client_date is the caller's local date. There is no server-side
    default: the server's calendar day can differ from the caller's.

    Raises:
        ValidationError: For clarify intents, which need new input instead,
            or when the caller's date is missing
    """
    if client_date is None:
        raise ValidationError("clientDate is required to resolve relative dates")
    if intent.action == IntentAction.CLARIFY:
        raise ValidationError(
            "This command needs clarification before it can run",
            details={"question": intent.question, "options": intent.options},
        )
    return ConfirmedIntent(
        intent=intent,
        confirmed_by=ctx.user_id,
        client_date=client_date,
        job_site_id=job_site_id,
    )


Handler = Callable[[ConfirmedIntent, CallerContext], Awaitable[Dict[str, Any]]]


class IntentExecutor:
    """Dispatches confirmed intents to their action handlers"""

    def __init__(self, db: AsyncSession, authz: Optional[AuthorizationService] = None):
        self.db = db
        self.authz = authz or AuthorizationService(db)
        self.scheduling = SchedulingService(db, self.authz)
        self._handlers: Dict[IntentAction, Handler] = {
            IntentAction.REASSIGN_WORKER: self._reassign_worker,
            IntentAction.CREATE_TASK: self._create_task,
            IntentAction.QUERY_INFO: self._query_info,
            IntentAction.UPDATE_TIMESHEET: self._update_timesheet,
            IntentAction.APPROVE_REQUEST: self._approve_request,
        }

    async def execute(self, confirmed: ConfirmedIntent, ctx: CallerContext) -> Dict[str, Any]:
        """
        Run one confirmed intent. Nothing is retried.

        Returns:
            Action-specific result data

        Raises:
            ValidationError: If the intent was not confirmed or its payload is invalid
            Forbidden / NotFound / AmbiguousReference: From authorization and resolution
            PartialExecutionError: If a multi-date reassignment failed on some dates
        """
        if not isinstance(confirmed, ConfirmedIntent):
            raise ValidationError("Intent must be confirmed before it can be executed")

        if confirmed.confirmed_by != ctx.user_id:
            raise Forbidden("intent confirmed by a different user")

        action = confirmed.intent.action
        handler = self._handlers.get(action)
        if handler is None:
            raise ValidationError(f"Unknown action: {action.value}")

        start_time = time.time()
        try:
            result = await handler(confirmed, ctx)
        except CrewCommandError as e:
            metrics_collector.record_execution(action.value, e.error_type, time.time() - start_time)
            logger.info(f"Intent {action.value} for user {ctx.user_id} failed: {e.detail}")
            raise

        metrics_collector.record_execution(action.value, "success", time.time() - start_time)
        logger.info(f"Executed {action.value} for user {ctx.user_id}")
        return result

    def _payload(self, model, confirmed: ConfirmedIntent) -> PydanticModel:
        try:
            return model.model_validate(confirmed.intent.data)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid {confirmed.intent.action.value} data",
                details={"errors": [
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ]},
            )

    async def _worker(self, ctx: CallerContext, name: str) -> Worker:
        return unwrap(await resolve_worker(self.db, ctx.organization_id, name), "worker")

    async def _task(self, ctx: CallerContext, name: str) -> Task:
        return unwrap(await resolve_task(self.db, ctx.organization_id, name), "task")

    async def _assignment_on(
        self,
        ctx: CallerContext,
        worker: Worker,
        day: date,
        status: Optional[AssignmentStatus] = None,
    ) -> Optional[Assignment]:
        query = select(Assignment).where(
            Assignment.organization_id == ctx.organization_id,
            Assignment.worker_id == worker.id,
            Assignment.assigned_date == day,
        )
        if status is not None:
            query = query.where(Assignment.status == status.value)
        result = await self.db.execute(query.order_by(Assignment.created_at.desc()))
        return result.scalars().first()

    async def _reassign_worker(self, confirmed: ConfirmedIntent, ctx: CallerContext) -> Dict[str, Any]:
        """
        Supersede the worker's assignment on each date with one on the new task.

        Dates run in resolved order and each one commits on its own. The
        old row is deleted, not kept as history.
        """
        data: ReassignWorkerData = self._payload(ReassignWorkerData, confirmed)
        worker = await self._worker(ctx, data.worker_name)
        to_task = await self._task(ctx, data.to_task_name)

        phrases = data.dates or ([data.date] if data.date else None)
        dates = resolve_date_list(phrases, confirmed.client_date, default="tomorrow")

        self.authz.authorize(ctx, Action.ASSIGN_WORKERS, resource_for(to_task))
        if worker.job_site_id is not None and worker.job_site_id != to_task.job_site_id:
            self.authz.authorize(ctx, Action.ASSIGN_WORKERS, worker_resource(worker))

        # Rollback expires loaded rows, so keep plain values for the loop
        worker_id, worker_name = worker.id, worker.name
        task_id, task_name, site_id = to_task.id, to_task.name, to_task.job_site_id

        succeeded: List[str] = []
        failed: List[Dict[str, str]] = []
        for day in dates:
            try:
                await self.db.execute(
                    delete(Assignment).where(
                        Assignment.organization_id == ctx.organization_id,
                        Assignment.worker_id == worker_id,
                        Assignment.assigned_date == day,
                    )
                )
                self.db.add(Assignment(
                    organization_id=ctx.organization_id,
                    job_site_id=site_id,
                    task_id=task_id,
                    worker_id=worker_id,
                    assigned_date=day,
                    status=AssignmentStatus.ASSIGNED.value,
                    assigned_by=ctx.user_id,
                ))
                await self.db.commit()
                succeeded.append(day.isoformat())
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"Reassigning worker {worker_id} on {day} failed: {e}")
                failed.append({"date": day.isoformat(), "error": "Could not save the assignment"})

        if failed:
            raise PartialExecutionError(
                f"Moved {worker_name} to {task_name} on {len(succeeded)} of {len(dates)} dates",
                succeeded=succeeded,
                failed=failed,
            )

        return {"worker": worker_name, "task": task_name, "dates": succeeded}

    async def _target_site(
        self, confirmed: ConfirmedIntent, ctx: CallerContext, data: CreateTaskData
    ) -> Optional[UUID]:
        """
        Pick the job site for a new task: the spoken site, then the site
        selected in the client, then the caller's only site. Admins may
        create organization-level tasks with no site.
        """
        if data.job_site_name:
            site = unwrap(await resolve_job_site(self.db, ctx.organization_id, data.job_site_name), "job site")
            return site.id

        if confirmed.job_site_id is not None:
            site = await self.scheduling.get_scoped(JobSite, confirmed.job_site_id, ctx, "Job site")
            return site.id

        if len(ctx.site_roles) == 1:
            return next(iter(ctx.site_roles))

        if ctx.is_admin:
            return None

        raise ValidationError("Say which job site the task belongs to")

    async def _create_task(self, confirmed: ConfirmedIntent, ctx: CallerContext) -> Dict[str, Any]:
        data: CreateTaskData = self._payload(CreateTaskData, confirmed)
        site_id = await self._target_site(confirmed, ctx, data)

        start_range = resolve_dates(data.start_date or "tomorrow", confirmed.client_date)
        start_date = start_range[0]
        if data.end_date:
            end_date = resolve_single_date(data.end_date, confirmed.client_date)
        elif len(start_range) > 1:
            end_date = start_range[-1]
        else:
            end_date = None

        task = await self.scheduling.create_task(ctx, TaskCreate(
            job_site_id=site_id,
            name=data.task_name,
            location=data.location,
            start_date=start_date,
            end_date=end_date,
            required_operators=data.required_operators or 0,
            required_laborers=data.required_laborers or 0,
            required_carpenters=data.required_carpenters or 0,
            required_masons=data.required_masons or 0,
            notes=data.notes,
        ))

        return {
            "task_id": str(task.id),
            "task_name": task.name,
            "job_site_id": str(site_id) if site_id else None,
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat() if end_date else None,
        }

    async def _query_info(self, confirmed: ConfirmedIntent, ctx: CallerContext) -> Dict[str, Any]:
        """Where a worker is scheduled on a day; only live assignments count"""
        data: QueryInfoData = self._payload(QueryInfoData, confirmed)
        if not data.worker_name:
            raise ValidationError("Say which worker you are asking about")

        worker = await self._worker(ctx, data.worker_name)
        self.authz.authorize(ctx, Action.VIEW_WORKERS, worker_resource(worker))

        day = resolve_single_date(data.date, confirmed.client_date, default="today")
        assignment = await self._assignment_on(ctx, worker, day, AssignmentStatus.ASSIGNED)
        if assignment is None:
            raise NotFound("Assignment", detail=f"{worker.name} has no assignment for {day.isoformat()}")

        task = await self.db.get(Task, assignment.task_id)
        return {
            "worker": worker.name,
            "task": task.name if task else None,
            "location": task.location if task else None,
            "date": day.isoformat(),
            "status": assignment.status,
        }

    async def _update_timesheet(self, confirmed: ConfirmedIntent, ctx: CallerContext) -> Dict[str, Any]:
        """Set status and/or hours on the worker's assignment for a day; absent fields are untouched"""
        data: UpdateTimesheetData = self._payload(UpdateTimesheetData, confirmed)
        worker = await self._worker(ctx, data.worker_name)
        self.authz.authorize(ctx, Action.CLOCK_HOURS, worker_resource(worker))

        updates: Dict[str, Any] = {}
        if data.status is not None:
            try:
                updates["status"] = AssignmentStatus(data.status.strip().lower()).value
            except ValueError:
                allowed = ", ".join(s.value for s in AssignmentStatus)
                raise ValidationError(f'Unknown assignment status "{data.status}". Use one of: {allowed}')
        if data.hours is not None:
            updates["hours_worked"] = data.hours
        if not updates:
            raise ValidationError("Nothing to update: give hours or a status")

        day = resolve_single_date(data.date, confirmed.client_date, default="today")
        assignment = await self._assignment_on(ctx, worker, day)
        if assignment is None:
            raise NotFound("Assignment", detail=f"{worker.name} has no assignment for {day.isoformat()}")
        self.authz.authorize(ctx, Action.CLOCK_HOURS, resource_for(assignment))

        for key, value in updates.items():
            setattr(assignment, key, value)
        await self.db.commit()

        return {"worker": worker.name, "date": day.isoformat(), "updated": updates}

    async def _approve_request(self, confirmed: ConfirmedIntent, ctx: CallerContext) -> Dict[str, Any]:
        """Approve the worker's latest pending request; the move itself is not applied"""
        data: ApproveRequestData = self._payload(ApproveRequestData, confirmed)
        worker = await self._worker(ctx, data.worker_name)

        request = await self.scheduling.latest_pending_request(ctx, worker)
        if request is None:
            raise NotFound("Assignment request", detail=f"No pending request found for {worker.name}")

        request = await self.scheduling.review_assignment_request(ctx, request.id, approve=True)
        return {
            "worker": worker.name,
            "request_id": str(request.id),
            "status": request.status,
        }
