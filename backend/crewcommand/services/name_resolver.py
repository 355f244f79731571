"""
Fuzzy resolution of spoken worker, task and job site names.

Matching runs in tiers from strictest to loosest:

    exact      "jose martinez" == "jose martinez"
    prefix     "jose" starts "jose martinez"
    substring  "martin" inside "jose martinez"
    token      every spoken word is inside some word of the name
    location   (tasks only) spoken text inside the task location

The first tier with any candidates decides the outcome. One candidate is
`Found`; several are `Ambiguous` and are never narrowed down by picking a
row. Every query is scoped to the caller's organization.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, Sequence, TypeVar, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crewcommand.exceptions import AmbiguousReference, NotFound
from crewcommand.models import JobSite, Task, TaskStatus, Worker, WorkerStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    record: T


@dataclass(frozen=True)
class NoMatch:
    query: str


@dataclass(frozen=True)
class Ambiguous(Generic[T]):
    query: str
    candidates: List[T]


Resolution = Union[Found, NoMatch, Ambiguous]


def _normalize(text: Optional[str]) -> str:
    return " ".join((text or "").lower().split())


def _token_match(query: str, name: str) -> bool:
    name_tokens = name.split()
    return all(any(part in token for token in name_tokens) for part in query.split())


def match_records(
    query: str,
    records: Sequence[T],
    name_of: Callable[[T], str],
    location_of: Optional[Callable[[T], Optional[str]]] = None,
) -> Resolution:
    """Pure tiered matcher over already-loaded records"""
    needle = _normalize(query)
    if not needle:
        return NoMatch(query)

    names = [(record, _normalize(name_of(record))) for record in records]

    tiers = [
        lambda name: name == needle,
        lambda name: name.startswith(needle),
        lambda name: needle in name,
        lambda name: _token_match(needle, name),
    ]

    for tier in tiers:
        candidates = [record for record, name in names if tier(name)]
        if candidates:
            return _outcome(query, candidates)

    if location_of is not None:
        candidates = [
            record for record in records
            if needle in _normalize(location_of(record))
        ]
        if candidates:
            return _outcome(query, candidates)

    return NoMatch(query)


def _outcome(query: str, candidates: List[T]) -> Resolution:
    if len(candidates) == 1:
        return Found(candidates[0])
    return Ambiguous(query, candidates)


def unwrap(resolution: Resolution, kind: str, name_of: Callable = lambda r: r.name):
    """
    Return the record of a Found resolution.

    Raises:
        NotFound: For NoMatch
        AmbiguousReference: For Ambiguous, listing every candidate
    """
    if isinstance(resolution, Found):
        return resolution.record
    if isinstance(resolution, Ambiguous):
        names = [name_of(record) for record in resolution.candidates]
        logger.info(f'Ambiguous {kind} reference "{resolution.query}": {names}')
        raise AmbiguousReference(kind, resolution.query, names)
    raise NotFound(kind.capitalize(), detail=f'{kind.capitalize()} "{resolution.query}" not found')


async def resolve_worker(db: AsyncSession, organization_id: UUID, name: str) -> Resolution:
    """Resolve an active worker of the organization by spoken name"""
    result = await db.execute(
        select(Worker).where(
            Worker.organization_id == organization_id,
            Worker.status == WorkerStatus.ACTIVE.value,
        ).order_by(Worker.name)
    )
    return match_records(name, result.scalars().all(), lambda w: w.name)


async def resolve_task(db: AsyncSession, organization_id: UUID, name: str) -> Resolution:
    """Resolve a planned or active task of the organization by spoken name or location"""
    result = await db.execute(
        select(Task).where(
            Task.organization_id == organization_id,
            Task.status.in_([TaskStatus.PLANNED.value, TaskStatus.ACTIVE.value]),
        ).order_by(Task.name)
    )
    return match_records(name, result.scalars().all(), lambda t: t.name, lambda t: t.location)


async def resolve_job_site(db: AsyncSession, organization_id: UUID, name: str) -> Resolution:
    """Resolve a job site of the organization by spoken name"""
    result = await db.execute(
        select(JobSite).where(JobSite.organization_id == organization_id).order_by(JobSite.name)
    )
    return match_records(name, result.scalars().all(), lambda s: s.name)
