"""
orbit_sync/schemas package marker.
"""

from orbit_sync.schemas.health import HealthResponse
from orbit_sync.schemas.task_parameters import TaskParameters

__all__ = ["HealthResponse", "TaskParameters"]
