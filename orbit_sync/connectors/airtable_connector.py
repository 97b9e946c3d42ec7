"""
orbit_sync/connectors/airtable_connector.py

Airtable connector for creating table records.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence
from urllib.parse import quote

import requests

from orbit_sync.config import AirtableSettings
from orbit_sync.connectors.base import BaseConnector, DecodeError, WriteError
from orbit_sync.domain.organization import DestinationRecord

logger = logging.getLogger(__name__)

# Sub-delimiters left unescaped inside a single path segment.
_PATH_SEGMENT_SAFE = "$&+:=@"
_ERROR_BODY_LIMIT = 500


def escape_path_segment(value: str) -> str:
    """
    Percent-encode a value so it stays one URL path segment.
    """

    return quote(value, safe=_PATH_SEGMENT_SAFE)


class AirtableConnector(BaseConnector):
    """
    Connector for writing batches of records into one Airtable table.
    """

    def __init__(
        self,
        *,
        settings: AirtableSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            source="airtable",
            timeout_seconds=settings.timeout_seconds,
            session=session,
        )
        self._settings = settings

    def build_table_url(self, base_id: str, table_name: str) -> str:
        return f"{self._settings.base_url.rstrip('/')}/{base_id}/{escape_path_segment(table_name)}"

    def create_records(
        self,
        *,
        base_id: str,
        table_name: str,
        token: str,
        records: Sequence[DestinationRecord],
    ) -> dict[str, Any]:
        """
        POST one batch of records and return the decoded response body.
        """

        url = self.build_table_url(base_id, table_name)
        response = self._request(
            method="POST",
            url=url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {token}",
            },
            json_body={"records": [record.to_payload() for record in records]},
        )

        if not 200 <= response.status_code < 300:
            body = (response.text or "")[:_ERROR_BODY_LIMIT]
            logger.error(
                "Airtable write rejected status=%s url=%s records=%s body=%s",
                response.status_code,
                url,
                len(records),
                body,
            )
            raise WriteError(
                f"{self.source}: write rejected with status {response.status_code}.",
                source=self.source,
                status_code=response.status_code,
                body=body,
            )

        payload = self._decode_json(response)
        if not isinstance(payload, dict):
            raise DecodeError(f"{self.source}: expected a JSON object response.", source=self.source)
        return payload
