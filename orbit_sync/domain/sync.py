"""
orbit_sync/domain/sync.py

Outcome of one task delivery.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SyncSummary:
    """
    Summary for one synchronization run.

    ``fetch_error`` and ``write_error`` hold the logged error messages, if any;
    they do not imply the task was reported as failed.
    """

    task_id: str
    records_fetched: int
    records_written: int
    batches_written: int
    fetch_error: str | None = None
    write_error: str | None = None
    cancelled: bool = False
    completed: bool = False

    @property
    def has_errors(self) -> bool:
        return self.fetch_error is not None or self.write_error is not None
