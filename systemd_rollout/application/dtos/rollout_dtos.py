"""
Rollout DTOs

Architectural Intent:
- Data Transfer Objects returned at the orchestration boundary
- Decouples the CLI from the host updater internals
"""

from dataclasses import dataclass
from typing import Optional

from systemd_rollout.domain.value_objects.outcomes import (
    RollbackOutcome,
    RollbackStatus,
    UpdateOutcome,
)


@dataclass(frozen=True)
class RolloutReport:
    outcomes: tuple[UpdateOutcome, ...] = ()
    rollbacks: tuple[RollbackOutcome, ...] = ()
    failure: Optional[UpdateOutcome] = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    @property
    def rolled_back_hosts(self) -> tuple[str, ...]:
        return tuple(r.host for r in self.rollbacks)

    def summary(self) -> str:
        if self.failure is None:
            return f"Rollout succeeded on {len(self.outcomes)} host(s)"
        restored = sum(1 for r in self.rollbacks if r.restored)
        return (
            f"Rollout failed on {self.failure.host} at stage "
            f"{self.failure.stage.value}: {self.failure.cause} "
            f"({restored}/{len(self.rollbacks)} host(s) restored)"
        )


@dataclass(frozen=True)
class RollbackReport:
    rollbacks: tuple[RollbackOutcome, ...] = ()

    @property
    def succeeded(self) -> bool:
        return all(r.status != RollbackStatus.FAILED for r in self.rollbacks)

    def summary(self) -> str:
        return "; ".join(str(r) for r in self.rollbacks) or "No hosts rolled back"
