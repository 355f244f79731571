"""Tests for spoken name resolution"""

from types import SimpleNamespace

import pytest

from crewcommand.exceptions import AmbiguousReference, NotFound
from crewcommand.models import WorkerStatus
from crewcommand.services.name_resolver import (
    Ambiguous,
    Found,
    NoMatch,
    match_records,
    resolve_job_site,
    resolve_task,
    resolve_worker,
    unwrap,
)


def named(*names):
    return [SimpleNamespace(name=n, location=None) for n in names]


class TestMatchRecords:
    """Tiered matching over loaded records"""

    def test_exact_beats_prefix(self):
        records = named("Jose", "Jose Martinez")

        result = match_records("jose", records, lambda r: r.name)

        assert isinstance(result, Found)
        assert result.record.name == "Jose"

    def test_prefix_ambiguity_is_not_narrowed(self):
        records = named("Jose Martinez", "Jose Silva", "Mary Johnson")

        result = match_records("Jose", records, lambda r: r.name)

        assert isinstance(result, Ambiguous)
        assert [r.name for r in result.candidates] == ["Jose Martinez", "Jose Silva"]

    def test_substring_and_token_tiers(self):
        records = named("Jose Martinez", "Mary Johnson")

        assert match_records("martin", records, lambda r: r.name).record.name == "Jose Martinez"
        assert match_records("mar john", records, lambda r: r.name).record.name == "Mary Johnson"

    def test_whitespace_and_case_are_normalized(self):
        records = named("Concrete Pour")

        assert isinstance(match_records("  CONCRETE   pour ", records, lambda r: r.name), Found)

    def test_location_tier(self):
        records = [
            SimpleNamespace(name="Framing", location="Building A"),
            SimpleNamespace(name="Concrete Pour", location="Level 2 deck"),
        ]

        result = match_records("level 2", records, lambda r: r.name, lambda r: r.location)

        assert result.record.name == "Concrete Pour"

    def test_no_match(self):
        result = match_records("nobody", named("Jose Martinez"), lambda r: r.name)

        assert result == NoMatch("nobody")
        assert isinstance(match_records("  ", named("Jose"), lambda r: r.name), NoMatch)


class TestUnwrap:
    """Resolution outcomes to records or errors"""

    def test_found(self):
        record = SimpleNamespace(name="Framing")

        assert unwrap(Found(record), "task") is record

    def test_no_match_raises_not_found(self):
        with pytest.raises(NotFound) as exc_info:
            unwrap(NoMatch("Panama"), "worker")

        assert exc_info.value.detail == 'Worker "Panama" not found'

    def test_ambiguous_lists_every_candidate(self):
        resolution = Ambiguous("Jose", named("Jose Martinez", "Jose Silva"))

        with pytest.raises(AmbiguousReference) as exc_info:
            unwrap(resolution, "worker")

        assert exc_info.value.candidates == ["Jose Martinez", "Jose Silva"]
        assert "Jose Martinez" in exc_info.value.detail
        assert "Jose Silva" in exc_info.value.detail


@pytest.mark.asyncio
class TestDatabaseResolution:
    """Organization-scoped lookups"""

    async def test_two_joses_are_ambiguous(self, db_session, crew):
        result = await resolve_worker(db_session, crew.org.id, "Jose")

        assert isinstance(result, Ambiguous)
        assert sorted(w.name for w in result.candidates) == ["Jose Martinez", "Jose Silva"]

    async def test_other_organization_is_invisible(self, db_session, crew):
        result = await resolve_worker(db_session, crew.org.id, "Jose Rival")

        assert isinstance(result, NoMatch)

        rival = await resolve_worker(db_session, crew.other_org.id, "Jose")
        assert isinstance(rival, Found)
        assert rival.record.id == crew.rival_worker.id

    async def test_inactive_workers_are_skipped(self, db_session, crew):
        crew.jose_silva.status = WorkerStatus.INACTIVE.value
        await db_session.commit()

        result = await resolve_worker(db_session, crew.org.id, "Jose")

        assert isinstance(result, Found)
        assert result.record.name == "Jose Martinez"

    async def test_task_by_partial_name(self, db_session, crew):
        result = await resolve_task(db_session, crew.org.id, "concrete")

        assert isinstance(result, Found)
        assert result.record.id == crew.concrete.id

    async def test_job_site(self, db_session, crew):
        result = await resolve_job_site(db_session, crew.org.id, "eastgate")

        assert isinstance(result, Found)
        assert result.record.id == crew.eastgate.id
