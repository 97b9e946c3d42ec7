"""
tests/test_sync_orchestrator.py

End-to-end runs of one task delivery against fake Orbit, Airtable and
Camunda endpoints.

Coverage
--------
- Unfiltered fetch, 15 organizations → writes of 10 and 5
- Write rejected on the first batch → stream stops, task still completed
- Fetch transport failure → nothing written, task still completed
- Tokens that cannot be sent as a header → logged, task still completed
- Strict mode → failure reported instead of completion
- Strict mode with lease expiry → failure reported
- Lease expiry → no further writes
- Completion report failure → TaskCompletionError
"""

from __future__ import annotations

import pytest
import requests

from orbit_sync.camunda.client import CamundaRequestError
from orbit_sync.config import AirtableSettings, OrbitSettings, SyncSettings
from orbit_sync.connectors.airtable_connector import AirtableConnector
from orbit_sync.connectors.orbit_connector import OrbitConnector
from orbit_sync.services.sync_orchestrator import SyncOrchestrator, TaskCompletionError
from tests.fakes import FakeSession, FakeTaskContext, airtable_ok, make_response, orbit_payload

VARIABLES = {
    "workplace_slug": {"type": "String", "value": "acme"},
    "source_token": {"type": "String", "value": "orbit-token"},
    "base_id": {"type": "String", "value": "appXYZ"},
    "table_name": {"type": "String", "value": "Table 1"},
    "dest_token": {"type": "String", "value": "airtable-token"},
}


def _orchestrator(
    orbit_session: FakeSession,
    airtable_session: FakeSession,
    *,
    settings: SyncSettings | None = None,
) -> SyncOrchestrator:
    return SyncOrchestrator(
        orbit_connector=OrbitConnector(settings=OrbitSettings(), session=orbit_session),
        airtable_connector=AirtableConnector(settings=AirtableSettings(), session=airtable_session),
        settings=settings or SyncSettings(),
        batch_size=10,
    )


def test_fifteen_organizations_are_written_in_two_batches() -> None:
    orbit = FakeSession(make_response(200, orbit_payload(15)))
    airtable = FakeSession(airtable_ok(10), airtable_ok(5))
    context = FakeTaskContext(variables=VARIABLES)

    summary = _orchestrator(orbit, airtable).run(context)

    assert orbit.calls[0]["url"] == "https://app.orbit.love/v1/acme/organizations?"
    assert orbit.calls[0]["headers"]["Authorization"] == "Bearer orbit-token"
    assert [len(call["json"]["records"]) for call in airtable.calls] == [10, 5]
    assert all(call["url"] == "https://api.airtable.com/v0/appXYZ/Table%201" for call in airtable.calls)
    assert all(call["headers"]["Authorization"] == "Bearer airtable-token" for call in airtable.calls)
    assert summary.records_fetched == 15
    assert summary.records_written == 15
    assert summary.batches_written == 2
    assert summary.completed is True
    assert context.completed_with == VARIABLES


def test_write_failure_stops_stream_but_task_is_completed() -> None:
    orbit = FakeSession(make_response(200, orbit_payload(2)))
    airtable = FakeSession(make_response(403, {"error": "INVALID_PERMISSIONS"}))
    context = FakeTaskContext(variables=VARIABLES)

    summary = _orchestrator(orbit, airtable).run(context)

    assert len(airtable.calls) == 1
    assert summary.write_error is not None
    assert summary.records_written == 0
    assert summary.batches_written == 0
    assert summary.completed is True
    assert context.completed_with == VARIABLES


def test_write_failure_mid_stream_keeps_earlier_batches() -> None:
    orbit = FakeSession(make_response(200, orbit_payload(35)))
    airtable = FakeSession(airtable_ok(10), make_response(500, {"error": "SERVER_ERROR"}))
    context = FakeTaskContext(variables=VARIABLES)

    summary = _orchestrator(orbit, airtable).run(context)

    assert len(airtable.calls) == 2
    assert summary.records_written == 10
    assert summary.batches_written == 1
    assert summary.completed is True


def test_fetch_failure_writes_nothing_and_still_completes(caplog: pytest.LogCaptureFixture) -> None:
    orbit = FakeSession(requests.ConnectionError("name resolution failed"))
    airtable = FakeSession()
    context = FakeTaskContext(variables=VARIABLES)

    with caplog.at_level("ERROR"):
        summary = _orchestrator(orbit, airtable).run(context)

    assert airtable.calls == []
    assert summary.records_fetched == 0
    assert summary.fetch_error is not None
    assert summary.completed is True
    assert context.completed_with == VARIABLES
    assert "Orbit fetch failed" in caplog.text


def test_missing_variables_do_not_crash() -> None:
    orbit = FakeSession(make_response(200, orbit_payload(0)))
    airtable = FakeSession()
    context = FakeTaskContext(variables={})

    summary = _orchestrator(orbit, airtable).run(context)

    assert orbit.calls[0]["url"] == "https://app.orbit.love/v1//organizations?"
    assert airtable.calls == []
    assert summary.completed is True


def test_strict_mode_reports_fetch_failure() -> None:
    orbit = FakeSession(make_response(200, raw=b"<html>"))
    airtable = FakeSession()
    context = FakeTaskContext(variables=VARIABLES)

    summary = _orchestrator(orbit, airtable, settings=SyncSettings(strict_fetch=True)).run(context)

    assert summary.completed is False
    assert context.completed_with is None
    assert context.failed_with is not None
    assert "not valid JSON" in context.failed_with[0]


def test_strict_mode_completes_clean_runs() -> None:
    orbit = FakeSession(make_response(200, orbit_payload(3)))
    airtable = FakeSession(airtable_ok(3))
    context = FakeTaskContext(variables=VARIABLES)

    summary = _orchestrator(orbit, airtable, settings=SyncSettings(strict_fetch=True)).run(context)

    assert summary.completed is True
    assert context.failed_with is None


def test_pagination_follow_through_when_enabled() -> None:
    orbit = FakeSession(
        make_response(200, orbit_payload(10, next_link="https://app.orbit.love/v1/acme/organizations?page=2")),
        make_response(200, orbit_payload(4)),
    )
    airtable = FakeSession(airtable_ok(10), airtable_ok(4))
    context = FakeTaskContext(variables=VARIABLES)

    summary = _orchestrator(
        orbit, airtable, settings=SyncSettings(follow_pagination=True, max_pages=5)
    ).run(context)

    assert len(orbit.calls) == 2
    assert summary.records_written == 14


def test_lease_expiry_stops_further_writes() -> None:
    orbit = FakeSession(make_response(200, orbit_payload(25)))
    airtable = FakeSession(airtable_ok(10))
    context = FakeTaskContext(variables=VARIABLES, cancel_after_checks=12)

    summary = _orchestrator(orbit, airtable).run(context)

    assert len(airtable.calls) == 1
    assert summary.cancelled is True
    assert summary.records_written == 10


def test_completion_failure_propagates() -> None:
    orbit = FakeSession(make_response(200, orbit_payload(1)))
    airtable = FakeSession(airtable_ok(1))
    context = FakeTaskContext(
        variables=VARIABLES,
        complete_error=CamundaRequestError("lock lost", status_code=404),
    )

    with pytest.raises(TaskCompletionError):
        _orchestrator(orbit, airtable).run(context)

    assert len(airtable.calls) == 1


def test_unencodable_source_token_is_a_fetch_error_and_task_completes() -> None:
    orbit = FakeSession(make_response(200, orbit_payload(3)))
    airtable = FakeSession()
    context = FakeTaskContext(variables={**VARIABLES, "source_token": "tok—en"})

    summary = _orchestrator(orbit, airtable).run(context)

    assert airtable.calls == []
    assert summary.fetch_error is not None
    assert "could not be sent" in summary.fetch_error
    assert summary.completed is True
    assert context.completed_with is not None


def test_unencodable_dest_token_is_a_write_error_and_task_completes() -> None:
    orbit = FakeSession(make_response(200, orbit_payload(3)))
    airtable = FakeSession(airtable_ok(3))
    context = FakeTaskContext(variables={**VARIABLES, "dest_token": "air—table"})

    summary = _orchestrator(orbit, airtable).run(context)

    assert len(airtable.calls) == 1
    assert summary.records_fetched == 3
    assert summary.records_written == 0
    assert summary.write_error is not None
    assert summary.completed is True
    assert context.completed_with is not None


def test_strict_mode_reports_lease_expiry_as_failure() -> None:
    orbit = FakeSession(make_response(200, orbit_payload(25)))
    airtable = FakeSession(airtable_ok(10))
    context = FakeTaskContext(variables=VARIABLES, cancel_after_checks=12)

    summary = _orchestrator(orbit, airtable, settings=SyncSettings(strict_fetch=True)).run(context)

    assert summary.cancelled is True
    assert summary.completed is False
    assert context.completed_with is None
    assert context.failed_with is not None
    assert "lease expired" in context.failed_with[0]
