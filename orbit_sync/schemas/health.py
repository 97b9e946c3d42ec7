"""
orbit_sync/schemas/health.py

Response schema for the health endpoint.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    API response model describing worker liveness.
    """

    status: str
    worker_id: str
    topic: str
    poller_running: bool
    scheduled_jobs: int = Field(..., ge=0)
