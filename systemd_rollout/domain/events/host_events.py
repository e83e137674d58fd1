from dataclasses import dataclass
from typing import Any, Optional

from systemd_rollout.domain.events.event_base import DomainEvent


@dataclass(frozen=True)
class HostStateChangedEvent(DomainEvent):
    previous_state: str = ""
    new_state: str = ""
    detail: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            previous_state=self.previous_state,
            new_state=self.new_state,
            detail=self.detail,
        )
        return data
