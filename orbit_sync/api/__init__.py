"""
orbit_sync/api package marker.
"""

from orbit_sync.api.app import create_app

__all__ = ["create_app"]
