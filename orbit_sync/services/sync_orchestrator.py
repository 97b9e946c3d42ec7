"""
orbit_sync/services/sync_orchestrator.py

Orchestration of one Orbit-to-Airtable sync per delivered Camunda task.

Error policy
------------
Fetch errors are logged and the run continues with zero records. A write
error stops the record stream; batches already written stay in Airtable.
In both cases the task is still reported complete, echoing the variables
it was delivered with. Only a failure of that completion call propagates.

With ``SyncSettings.strict_fetch`` enabled, a fetch or write error or a
run cut short by lease expiry is reported to Camunda through the failure
endpoint instead.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Protocol

from orbit_sync.config import (
    SyncSettings,
    get_airtable_settings,
    get_orbit_settings,
    get_sync_settings,
)
from orbit_sync.connectors.airtable_connector import AirtableConnector
from orbit_sync.connectors.base import ConnectorRequestError
from orbit_sync.connectors.orbit_connector import OrbitConnector
from orbit_sync.domain.organization import SourceOrganization
from orbit_sync.domain.sync import SyncSummary
from orbit_sync.mappers.organization_mapper import OrganizationMapper
from orbit_sync.schemas.task_parameters import TaskParameters
from orbit_sync.services.batch_writer import AirtableBatchWriter

logger = logging.getLogger(__name__)


class TaskCompletionError(RuntimeError):
    """
    Raised when the completion (or failure) report to the task queue fails.
    """


class TaskContext(Protocol):
    """
    The slice of a delivered task the orchestrator needs.
    """

    task_id: str
    variables: Mapping[str, Any]

    def is_cancelled(self) -> bool:
        ...

    def complete(self, variables: Mapping[str, Any]) -> None:
        ...

    def fail(self, error_message: str, error_details: str | None = None) -> None:
        ...


class SyncOrchestrator:
    """
    Runs fetch, map, batch-write and completion for one task delivery.
    """

    def __init__(
        self,
        *,
        orbit_connector: OrbitConnector,
        airtable_connector: AirtableConnector,
        settings: SyncSettings,
        batch_size: int,
        mapper: OrganizationMapper | None = None,
    ) -> None:
        self._orbit = orbit_connector
        self._airtable = airtable_connector
        self._settings = settings
        self._batch_size = batch_size
        self._mapper = mapper or OrganizationMapper()

    def run(self, context: TaskContext) -> SyncSummary:
        params = TaskParameters.from_variables(context.variables)
        logger.info("Processing task task_id=%s params=%s", context.task_id, params.redacted())

        organizations, fetch_error = self._fetch(context.task_id, params)

        writer = AirtableBatchWriter(
            connector=self._airtable,
            base_id=params.base_id,
            table_name=params.table_name,
            token=params.dest_token,
            threshold=self._batch_size,
        )
        write_error, cancelled = self._stream(context, organizations, writer)

        summary = SyncSummary(
            task_id=context.task_id,
            records_fetched=len(organizations),
            records_written=writer.records_written,
            batches_written=writer.batches_written,
            fetch_error=fetch_error,
            write_error=write_error,
            cancelled=cancelled,
        )
        return self._report(context, summary)

    def _fetch(
        self,
        task_id: str,
        params: TaskParameters,
    ) -> tuple[tuple[SourceOrganization, ...], str | None]:
        try:
            if self._settings.follow_pagination:
                page = self._orbit.fetch_all_organizations(params, max_pages=self._settings.max_pages)
            else:
                page = self._orbit.fetch_organizations(params)
        except ConnectorRequestError as exc:
            logger.error("Orbit fetch failed task_id=%s error=%s", task_id, exc)
            return (), str(exc)

        logger.info(
            "Fetched organizations task_id=%s count=%s next=%s",
            task_id,
            len(page.organizations),
            page.links.next,
        )
        return page.organizations, None

    def _stream(
        self,
        context: TaskContext,
        organizations: tuple[SourceOrganization, ...],
        writer: AirtableBatchWriter,
    ) -> tuple[str | None, bool]:
        """
        Map and add every organization, then flush. Returns (write_error, cancelled).
        """

        try:
            for organization in organizations:
                if context.is_cancelled():
                    return None, self._log_cancelled(context.task_id, writer)
                writer.add(self._mapper.map(organization))

            if context.is_cancelled():
                return None, self._log_cancelled(context.task_id, writer)
            writer.flush()
        except ConnectorRequestError as exc:
            logger.error(
                "Airtable write failed task_id=%s batches_written=%s records_written=%s error=%s",
                context.task_id,
                writer.batches_written,
                writer.records_written,
                exc,
            )
            return str(exc), False
        return None, False

    @staticmethod
    def _log_cancelled(task_id: str, writer: AirtableBatchWriter) -> bool:
        logger.warning(
            "Task lease expired; stopping sync task_id=%s batches_written=%s records_written=%s",
            task_id,
            writer.batches_written,
            writer.records_written,
        )
        return True

    def _report(self, context: TaskContext, summary: SyncSummary) -> SyncSummary:
        report_failure = self._settings.strict_fetch and (summary.has_errors or summary.cancelled)
        try:
            if report_failure:
                message = (
                    summary.fetch_error
                    or summary.write_error
                    or "task lease expired before all records were written"
                )
                context.fail(message, f"records_written={summary.records_written}")
            else:
                context.complete(context.variables)
        except ConnectorRequestError as exc:
            logger.error("Task status report failed task_id=%s error=%s", context.task_id, exc)
            raise TaskCompletionError(f"Could not report task {context.task_id}: {exc}") from exc

        completed = not report_failure
        logger.info(
            "Task reported task_id=%s completed=%s records_written=%s batches_written=%s",
            context.task_id,
            completed,
            summary.records_written,
            summary.batches_written,
        )
        return replace(summary, completed=completed)

    def close(self) -> None:
        self._orbit.close()
        self._airtable.close()


def build_sync_orchestrator() -> SyncOrchestrator:
    """
    Build an orchestrator with its own connector sessions.

    Called once per delivered task so concurrent runs share no HTTP state.
    """

    airtable_settings = get_airtable_settings()
    return SyncOrchestrator(
        orbit_connector=OrbitConnector(settings=get_orbit_settings()),
        airtable_connector=AirtableConnector(settings=airtable_settings),
        settings=get_sync_settings(),
        batch_size=airtable_settings.batch_size,
    )
