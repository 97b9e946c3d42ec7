"""
orbit_sync/api/app.py

FastAPI host for the worker: echo route, health check, static files and
the Camunda poller lifespan.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from orbit_sync import __version__
from orbit_sync.config import (
    CamundaSettings,
    ServerSettings,
    get_camunda_settings,
    get_server_settings,
)
from orbit_sync.schemas.health import HealthResponse

logger = logging.getLogger(__name__)


def create_app(
    *,
    camunda_settings: CamundaSettings | None = None,
    server_settings: ServerSettings | None = None,
    start_worker: bool = True,
) -> FastAPI:
    """
    Create the host application: echo route, health, static files and the task poller.
    """

    camunda = camunda_settings or get_camunda_settings()
    server = server_settings or get_server_settings()

    @asynccontextmanager
    async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
        """Start the Camunda poller on boot; stop it on exit."""
        application.state.scheduler = None
        if not start_worker:
            yield
            return

        from orbit_sync.scheduler.jobs import build_processor, build_scheduler

        processor = build_processor(camunda)
        scheduler = build_scheduler(processor, camunda)
        scheduler.start()
        application.state.scheduler = scheduler
        logger.info(
            "Worker started worker_id=%s endpoint=%s topic=%s",
            camunda.worker_id,
            camunda.endpoint_url,
            camunda.topic,
        )
        try:
            yield
        finally:
            scheduler.shutdown(wait=True)
            processor.shutdown(wait=True)
            logger.info("Worker shut down")

    application = FastAPI(
        title="Orbit Airtable Worker",
        version=__version__,
        lifespan=_lifespan,
    )
    application.state.scheduler = None

    @application.get("/sentiment", response_class=PlainTextResponse)
    def sentiment(request: Request) -> str:
        return f"Hello, {request.url.path[1:]}!"

    @application.get("/health")
    def healthcheck(request: Request) -> HealthResponse:
        scheduler = getattr(request.app.state, "scheduler", None)
        running = bool(scheduler is not None and scheduler.running)
        return HealthResponse(
            status="ok",
            worker_id=camunda.worker_id,
            topic=camunda.topic,
            poller_running=running,
            scheduled_jobs=len(scheduler.get_jobs()) if running else 0,
        )

    static_dir = Path(server.static_dir)
    if static_dir.is_dir():
        application.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    else:
        logger.warning("Static directory not found; static files disabled path=%s", static_dir)

    return application
