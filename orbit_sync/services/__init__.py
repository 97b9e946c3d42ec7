"""
orbit_sync/services package marker.
"""

from orbit_sync.services.batch_writer import AirtableBatchWriter
from orbit_sync.services.sync_orchestrator import (
    SyncOrchestrator,
    TaskCompletionError,
    TaskContext,
    build_sync_orchestrator,
)

__all__ = [
    "AirtableBatchWriter",
    "SyncOrchestrator",
    "TaskCompletionError",
    "TaskContext",
    "build_sync_orchestrator",
]
