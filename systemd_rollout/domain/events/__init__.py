"""
Domain Events Package

Architectural Intent:
- Contains the events recorded by host deployments
- Events form the audit trail of every state transition on every host
"""

from systemd_rollout.domain.events.event_base import DomainEvent
from systemd_rollout.domain.events.host_events import HostStateChangedEvent

__all__ = [
    "DomainEvent",
    "HostStateChangedEvent",
]
