"""
orbit_sync/camunda/client.py

Minimal Camunda 7 external-task REST client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import requests

from orbit_sync.config import CamundaSettings
from orbit_sync.connectors.base import BaseConnector, ConnectorRequestError

logger = logging.getLogger(__name__)

_ERROR_BODY_LIMIT = 500


class CamundaRequestError(ConnectorRequestError):
    """
    Raised when the engine answers an external-task call with a non-2xx status.
    """

    def __init__(self, message: str, *, status_code: int, body: str = "") -> None:
        super().__init__(message, source="camunda")
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class ExternalTask:
    """
    One locked external task as returned by fetchAndLock.
    """

    id: str
    topic_name: str
    worker_id: str
    variables: dict[str, Any] = field(default_factory=dict)
    lock_expiration_time: str | None = None
    retries: int | None = None
    business_key: str | None = None
    process_instance_id: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ExternalTask":
        variables = payload.get("variables")
        return cls(
            id=str(payload.get("id") or ""),
            topic_name=str(payload.get("topicName") or ""),
            worker_id=str(payload.get("workerId") or ""),
            variables=dict(variables) if isinstance(variables, Mapping) else {},
            lock_expiration_time=payload.get("lockExpirationTime"),
            retries=payload.get("retries"),
            business_key=payload.get("businessKey"),
            process_instance_id=payload.get("processInstanceId"),
        )


class CamundaClient(BaseConnector):
    """
    Client for the fetch-and-lock, complete and failure external-task endpoints.
    """

    def __init__(
        self,
        *,
        settings: CamundaSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            source="camunda",
            timeout_seconds=settings.timeout_seconds,
            session=session,
        )
        self._settings = settings
        if settings.user:
            self._session.auth = (settings.user, settings.password or "")

    @property
    def worker_id(self) -> str:
        return self._settings.worker_id

    def fetch_and_lock(
        self,
        *,
        topic: str,
        max_tasks: int,
        lock_duration_ms: int,
        async_response_timeout_ms: int,
    ) -> list[ExternalTask]:
        """
        Long-poll for up to ``max_tasks`` tasks on ``topic`` and lock them.
        """

        payload = self._post(
            "/external-task/fetchAndLock",
            {
                "workerId": self.worker_id,
                "maxTasks": max_tasks,
                "usePriority": True,
                "asyncResponseTimeout": async_response_timeout_ms,
                "topics": [{"topicName": topic, "lockDuration": lock_duration_ms}],
            },
            timeout_seconds=self._timeout_seconds + async_response_timeout_ms / 1000.0,
        )
        if not isinstance(payload, list):
            return []
        return [ExternalTask.from_payload(item) for item in payload if isinstance(item, Mapping)]

    def complete(self, task_id: str, variables: Mapping[str, Any] | None = None) -> None:
        self._post(
            f"/external-task/{task_id}/complete",
            {"workerId": self.worker_id, "variables": dict(variables or {})},
        )

    def handle_failure(
        self,
        task_id: str,
        *,
        error_message: str,
        error_details: str | None = None,
        retries: int = 0,
        retry_timeout_ms: int = 0,
    ) -> None:
        self._post(
            f"/external-task/{task_id}/failure",
            {
                "workerId": self.worker_id,
                "errorMessage": error_message,
                "errorDetails": error_details,
                "retries": retries,
                "retryTimeout": retry_timeout_ms,
            },
        )

    def _post(self, path: str, body: dict[str, Any], *, timeout_seconds: float | None = None) -> Any:
        url = f"{self._settings.endpoint_url}{path}"
        response = self._request(
            method="POST",
            url=url,
            headers={"Content-Type": "application/json"},
            json_body=body,
            timeout_seconds=timeout_seconds,
        )
        if not 200 <= response.status_code < 300:
            text = (response.text or "")[:_ERROR_BODY_LIMIT]
            logger.error(
                "Camunda request rejected status=%s url=%s body=%s",
                response.status_code,
                url,
                text,
            )
            raise CamundaRequestError(
                f"camunda: {path} rejected with status {response.status_code}.",
                status_code=response.status_code,
                body=text,
            )
        if response.status_code == 204 or not response.content:
            return None
        return self._decode_json(response)
