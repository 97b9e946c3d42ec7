"""
orbit_sync/mappers/organization_mapper.py

Field mapping from Orbit organizations to Airtable rows.
"""

from __future__ import annotations

from datetime import datetime

from orbit_sync.domain.organization import DestinationRecord, SourceOrganization


def format_date(value: datetime) -> str:
    """
    Render the calendar date of ``value`` in its own offset as ``YYYY-MM-DD``.
    """

    return value.date().isoformat()


class OrganizationMapper:
    """
    Maps one ``SourceOrganization`` to one ``DestinationRecord``.
    """

    def map(self, organization: SourceOrganization) -> DestinationRecord:
        return DestinationRecord(
            ID=organization.id,
            Type=organization.type,
            Name=organization.name,
            Website=organization.website,
            MemberCount=organization.member_count,
            EmployeeCount=organization.employee_count,
            LastActive=format_date(organization.last_active),
            ActiveSince=format_date(organization.active_since),
        )
