"""
orbit_sync/scheduler package marker.
"""
