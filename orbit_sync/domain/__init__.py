"""
orbit_sync/domain package marker.
"""

from orbit_sync.domain.organization import (
    ZERO_TIMESTAMP,
    DestinationRecord,
    PaginationLinks,
    SourceOrganization,
    SourcePage,
)
from orbit_sync.domain.sync import SyncSummary

__all__ = [
    "ZERO_TIMESTAMP",
    "DestinationRecord",
    "PaginationLinks",
    "SourceOrganization",
    "SourcePage",
    "SyncSummary",
]
