"""
orbit_sync/camunda package marker.
"""

from orbit_sync.camunda.client import CamundaClient, CamundaRequestError, ExternalTask
from orbit_sync.camunda.processor import ExternalTaskContext, TaskProcessor

__all__ = [
    "CamundaClient",
    "CamundaRequestError",
    "ExternalTask",
    "ExternalTaskContext",
    "TaskProcessor",
]
