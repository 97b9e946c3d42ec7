"""
orbit_sync/domain/organization.py

Organization records on both sides of the sync.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# Decoded value of an absent or null timestamp.
ZERO_TIMESTAMP = datetime(1, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class SourceOrganization:
    """
    One organization as returned by the Orbit organizations endpoint.
    """

    id: str = ""
    type: str = ""
    name: str = ""
    website: str = ""
    member_count: int = 0
    employee_count: int = 0
    last_active: datetime = ZERO_TIMESTAMP
    active_since: datetime = ZERO_TIMESTAMP


@dataclass(frozen=True)
class PaginationLinks:
    first: str | None = None
    last: str | None = None
    prev: str | None = None
    next: str | None = None


@dataclass(frozen=True)
class SourcePage:
    """
    One decoded page of organizations plus its pagination links.
    """

    organizations: tuple[SourceOrganization, ...] = ()
    links: PaginationLinks = field(default_factory=PaginationLinks)


@dataclass(frozen=True)
class DestinationRecord:
    """
    One Airtable row, field names as they appear in the target table.
    """

    ID: str
    Type: str
    Name: str
    Website: str
    MemberCount: int
    EmployeeCount: int
    LastActive: str
    ActiveSince: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "fields": {
                "ID": self.ID,
                "Type": self.Type,
                "Name": self.Name,
                "Website": self.Website,
                "MemberCount": self.MemberCount,
                "EmployeeCount": self.EmployeeCount,
                "LastActive": self.LastActive,
                "ActiveSince": self.ActiveSince,
            }
        }
