"""
orbit_sync/config.py

Environment-driven configuration for the worker, its connectors and the host process.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

AIRTABLE_MAX_BATCH_SIZE = 10


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class CamundaSettings:
    """
    Workflow engine connection and external-task processor settings.
    """

    url: str = "http://localhost:8080"
    user: str | None = None
    password: str | None = None
    timeout_seconds: float = 10.0
    worker_id: str = "OrbitAirtable"
    topic: str = "process_data"
    lock_duration_seconds: float = 20.0
    max_tasks: int = 10
    max_parallel_tasks: int = 100
    async_response_timeout_ms: int = 5000
    poll_interval_seconds: float = 1.0
    failure_retries: int = 0
    failure_retry_timeout_ms: int = 0

    @property
    def endpoint_url(self) -> str:
        return f"{self.url.rstrip('/')}/engine-rest"

    @property
    def poll_period_seconds(self) -> float:
        """
        Seconds between poll starts: the long-poll window plus the idle interval.
        """
        return self.async_response_timeout_ms / 1000.0 + self.poll_interval_seconds


@dataclass(frozen=True)
class OrbitSettings:
    """
    Orbit organizations API settings.

    TLS verification and redirect following are on by default; turning both
    off reproduces the legacy transport of the first worker deployments.
    """

    base_url: str = "https://app.orbit.love/v1"
    timeout_seconds: float = 10.0
    verify_tls: bool = True
    follow_redirects: bool = True


@dataclass(frozen=True)
class AirtableSettings:
    """
    Airtable record-creation API settings.
    """

    base_url: str = "https://api.airtable.com/v0"
    timeout_seconds: float = 10.0
    batch_size: int = AIRTABLE_MAX_BATCH_SIZE


@dataclass(frozen=True)
class SyncSettings:
    """
    Error and paging policy for one synchronization run.
    """

    strict_fetch: bool = False
    follow_pagination: bool = False
    max_pages: int = 50


@dataclass(frozen=True)
class ServerSettings:
    """
    Host process settings for the HTTP surface.
    """

    host: str = "0.0.0.0"
    port: int = 9999
    static_dir: str = "./static"
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_camunda_settings() -> CamundaSettings:
    """
    Return Camunda settings from environment variables.
    """

    return CamundaSettings(
        url=_get_str_env("CAMUNDA_URL", "http://localhost:8080"),
        user=_get_optional_str_env("CAMUNDA_USER"),
        password=_get_optional_str_env("CAMUNDA_PASSWORD"),
        timeout_seconds=max(1.0, _get_float_env("CAMUNDA_TIMEOUT_SECONDS", 10.0)),
        worker_id=_get_str_env("CAMUNDA_WORKER_ID", "OrbitAirtable"),
        topic=_get_str_env("CAMUNDA_TOPIC", "process_data"),
        lock_duration_seconds=max(1.0, _get_float_env("CAMUNDA_LOCK_DURATION_SECONDS", 20.0)),
        max_tasks=max(1, _get_int_env("CAMUNDA_MAX_TASKS", 10)),
        max_parallel_tasks=max(1, _get_int_env("CAMUNDA_MAX_PARALLEL_TASKS", 100)),
        async_response_timeout_ms=max(0, _get_int_env("CAMUNDA_ASYNC_RESPONSE_TIMEOUT_MS", 5000)),
        poll_interval_seconds=max(0.1, _get_float_env("CAMUNDA_POLL_INTERVAL_SECONDS", 1.0)),
        failure_retries=max(0, _get_int_env("CAMUNDA_FAILURE_RETRIES", 0)),
        failure_retry_timeout_ms=max(0, _get_int_env("CAMUNDA_FAILURE_RETRY_TIMEOUT_MS", 0)),
    )


@lru_cache(maxsize=1)
def get_orbit_settings() -> OrbitSettings:
    """
    Return Orbit connector settings from environment variables.
    """

    return OrbitSettings(
        base_url=_get_str_env("ORBIT_BASE_URL", "https://app.orbit.love/v1"),
        timeout_seconds=max(1.0, _get_float_env("ORBIT_TIMEOUT_SECONDS", 10.0)),
        verify_tls=_get_bool_env("ORBIT_VERIFY_TLS", True),
        follow_redirects=_get_bool_env("ORBIT_FOLLOW_REDIRECTS", True),
    )


@lru_cache(maxsize=1)
def get_airtable_settings() -> AirtableSettings:
    """
    Return Airtable connector settings from environment variables.
    """

    batch_size = _get_int_env("AIRTABLE_BATCH_SIZE", AIRTABLE_MAX_BATCH_SIZE)
    return AirtableSettings(
        base_url=_get_str_env("AIRTABLE_BASE_URL", "https://api.airtable.com/v0"),
        timeout_seconds=max(1.0, _get_float_env("AIRTABLE_TIMEOUT_SECONDS", 10.0)),
        batch_size=min(AIRTABLE_MAX_BATCH_SIZE, max(1, batch_size)),
    )


@lru_cache(maxsize=1)
def get_sync_settings() -> SyncSettings:
    """
    Return synchronization policy settings from environment variables.
    """

    return SyncSettings(
        strict_fetch=_get_bool_env("SYNC_STRICT_FETCH", False),
        follow_pagination=_get_bool_env("SYNC_FOLLOW_PAGINATION", False),
        max_pages=max(1, _get_int_env("SYNC_MAX_PAGES", 50)),
    )


@lru_cache(maxsize=1)
def get_server_settings() -> ServerSettings:
    """
    Return host process settings from environment variables.
    """

    return ServerSettings(
        host=_get_str_env("HOST", "0.0.0.0"),
        port=_get_int_env("PORT", 9999),
        static_dir=_get_str_env("STATIC_DIR", "./static"),
        log_level=_get_str_env("LOG_LEVEL", "INFO").upper(),
    )
