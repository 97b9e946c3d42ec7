"""
orbit_sync/connectors/base.py

Base connector abstraction and shared HTTP mechanics.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import requests

logger = logging.getLogger(__name__)


class ConnectorRequestError(RuntimeError):
    """
    Raised when a connector call against a remote API fails.
    """

    def __init__(self, message: str, *, source: str) -> None:
        super().__init__(message)
        self.source = source


class TransportError(ConnectorRequestError):
    """
    Raised when the request never produced an HTTP response.
    """


class DecodeError(ConnectorRequestError):
    """
    Raised when a response body is not the JSON shape the connector expects.
    """


class WriteError(ConnectorRequestError):
    """
    Raised when the destination rejects a write with a non-2xx status.
    """

    def __init__(self, message: str, *, source: str, status_code: int, body: str = "") -> None:
        super().__init__(message, source=source)
        self.status_code = status_code
        self.body = body


class BaseConnector:
    """
    Shared single-attempt HTTP plumbing for the sync connectors.

    Every call is made exactly once; retry decisions belong to the caller.
    """

    source: str

    def __init__(
        self,
        *,
        source: str,
        timeout_seconds: float,
        verify_tls: bool = True,
        follow_redirects: bool = True,
        session: requests.Session | None = None,
    ) -> None:
        self.source = source
        self._session = session or requests.Session()
        self._timeout_seconds = timeout_seconds
        self._verify_tls = verify_tls
        self._follow_redirects = follow_redirects

    def _request(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
        timeout_seconds: float | None = None,
    ) -> requests.Response:
        """
        Execute one HTTP request and return the response whatever its status.
        """

        try:
            return self._session.request(
                method=method,
                url=url,
                headers=headers,
                json=json_body,
                timeout=timeout_seconds if timeout_seconds is not None else self._timeout_seconds,
                verify=self._verify_tls,
                allow_redirects=self._follow_redirects,
            )
        except requests.RequestException as exc:
            logger.error(
                "Connector request failed source=%s method=%s url=%s error=%s",
                self.source,
                method,
                url,
                exc,
            )
            raise TransportError(f"{self.source}: {method} request failed: {exc}", source=self.source) from exc
        except ValueError as exc:
            # Header values that http.client cannot encode as latin-1.
            logger.error(
                "Connector request could not be sent source=%s method=%s url=%s error=%s",
                self.source,
                method,
                url,
                exc,
            )
            raise TransportError(f"{self.source}: {method} request could not be sent: {exc}", source=self.source) from exc

    def _decode_json(self, response: requests.Response) -> Any:
        """
        Parse a response body as JSON.
        """

        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"{self.source}: response was not valid JSON.", source=self.source) from exc

    def close(self) -> None:
        self._session.close()

    @staticmethod
    def parse_iso_datetime(value: str) -> datetime:
        """
        Parse an ISO datetime string into a timezone-aware datetime.
        """

        normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed
