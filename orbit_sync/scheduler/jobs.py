"""
orbit_sync/scheduler/jobs.py

APScheduler wiring for the Camunda poll loop.

Lifecycle
----------
Call ``build_processor()`` and ``build_scheduler(processor)`` once at boot.
Start the scheduler on app startup; on shutdown stop the scheduler first,
then the processor so in-flight tasks can finish.
The scheduler is wired into FastAPI via the ``lifespan`` context in api/app.py.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from orbit_sync.camunda.client import CamundaClient
from orbit_sync.camunda.processor import ExternalTaskContext, TaskProcessor
from orbit_sync.config import CamundaSettings
from orbit_sync.domain.sync import SyncSummary
from orbit_sync.services.sync_orchestrator import build_sync_orchestrator

logger = logging.getLogger(__name__)

POLL_JOB_ID = "camunda_poll"


def handle_process_data(context: ExternalTaskContext) -> SyncSummary:
    """
    Handler for the ``process_data`` topic: one Orbit-to-Airtable sync.
    """

    orchestrator = build_sync_orchestrator()
    try:
        return orchestrator.run(context)
    finally:
        orchestrator.close()


def build_processor(settings: CamundaSettings) -> TaskProcessor:
    """
    Build a processor with the sync handler registered on the configured topic.
    """

    processor = TaskProcessor(client=CamundaClient(settings=settings), settings=settings)
    processor.add_handler(settings.topic, handle_process_data)
    return processor


def build_scheduler(processor: TaskProcessor, settings: CamundaSettings) -> BackgroundScheduler:
    """
    Build the poll job.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    Polls start ``poll_period_seconds`` apart so a full fetchAndLock long
    poll finishes before the next run is due. Only one poll runs at a time.
    """

    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        processor.poll_once,
        trigger="interval",
        seconds=settings.poll_period_seconds,
        id=POLL_JOB_ID,
        name=f"Camunda fetchAndLock topic={settings.topic}",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info(
        "Scheduler: poll job registered worker_id=%s topic=%s interval_seconds=%s",
        settings.worker_id,
        settings.topic,
        settings.poll_period_seconds,
    )
    return scheduler
