"""
orbit_sync/mappers package marker.
"""

from orbit_sync.mappers.organization_mapper import OrganizationMapper, format_date

__all__ = ["OrganizationMapper", "format_date"]
