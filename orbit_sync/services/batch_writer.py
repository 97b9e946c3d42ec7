"""
orbit_sync/services/batch_writer.py

Fixed-size batching of mapped records into Airtable writes.
"""

from __future__ import annotations

import logging

from orbit_sync.config import AIRTABLE_MAX_BATCH_SIZE
from orbit_sync.connectors.airtable_connector import AirtableConnector
from orbit_sync.domain.organization import DestinationRecord
from orbit_sync.logging_utils import log_event

logger = logging.getLogger(__name__)


class AirtableBatchWriter:
    """
    Accumulates records and writes them to one table in batches of ``threshold``.

    A full batch is written when the next record arrives; the trailing partial
    batch is written only by ``flush``. Each write is attempted once. The batch
    is discarded before the attempt, so a failed batch is never resent and
    batches written earlier stay in the table.
    """

    def __init__(
        self,
        *,
        connector: AirtableConnector,
        base_id: str,
        table_name: str,
        token: str,
        threshold: int = AIRTABLE_MAX_BATCH_SIZE,
    ) -> None:
        if not 1 <= threshold <= AIRTABLE_MAX_BATCH_SIZE:
            raise ValueError(f"threshold must be between 1 and {AIRTABLE_MAX_BATCH_SIZE}, got {threshold}.")
        self._connector = connector
        self._base_id = base_id
        self._table_name = table_name
        self._token = token
        self._threshold = threshold
        self._batch: list[DestinationRecord] = []
        self.batches_written = 0
        self.records_written = 0

    @property
    def pending(self) -> int:
        return len(self._batch)

    def add(self, record: DestinationRecord) -> None:
        """
        Append a record, first writing the open batch if it is already full.
        """

        if len(self._batch) >= self._threshold:
            self._write_batch()
        self._batch.append(record)

    def flush(self) -> None:
        """
        Write the open batch if it holds any records.
        """

        if self._batch:
            self._write_batch()

    def _write_batch(self) -> None:
        batch, self._batch = self._batch, []
        self._connector.create_records(
            base_id=self._base_id,
            table_name=self._table_name,
            token=self._token,
            records=batch,
        )
        self.batches_written += 1
        self.records_written += len(batch)
        log_event(
            logger,
            logging.INFO,
            "airtable_batch_written",
            base_id=self._base_id,
            table=self._table_name,
            batch_number=self.batches_written,
            records=len(batch),
            records_written=self.records_written,
        )
