"""
orbit_sync/connectors package marker.
"""

from orbit_sync.connectors.airtable_connector import AirtableConnector
from orbit_sync.connectors.base import (
    BaseConnector,
    ConnectorRequestError,
    DecodeError,
    TransportError,
    WriteError,
)
from orbit_sync.connectors.orbit_connector import OrbitConnector

__all__ = [
    "AirtableConnector",
    "BaseConnector",
    "ConnectorRequestError",
    "DecodeError",
    "OrbitConnector",
    "TransportError",
    "WriteError",
]
