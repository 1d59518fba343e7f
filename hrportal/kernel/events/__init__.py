"""
Append-only audit logging for identity events.
"""

from hrportal.kernel.events.event_store import EventStore

__all__ = ["EventStore"]
