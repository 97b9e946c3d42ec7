"""
Camunda external-task worker that syncs Orbit organizations into Airtable.
"""

__version__ = "0.1.0"
