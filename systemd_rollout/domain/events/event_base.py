"""
Domain Events Module

Architectural Intent:
- Base class for everything recorded about one host during a rollout
- Events are immutable; a HostDeployment keeps them in order as the audit
  trail of that host
- Timestamps are excluded from equality so two records of the same
  transition compare equal
"""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any


@dataclass(frozen=True)
class DomainEvent:
    host: str
    occurred_at: datetime = field(
        default_factory=lambda: datetime.now(UTC), compare=False, repr=False
    )

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "host": self.host,
            "occurred_at": self.occurred_at.isoformat(),
        }
