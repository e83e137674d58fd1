"""
Outcome Value Objects

Architectural Intent:
- Typed results of a host update or rollback
- The orchestrator decides rollback scope from these values, never from
  exceptions
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class UpdateStage(Enum):
    CONNECT = "connect"
    DEFINITION = "definition"
    STAGING = "staging"
    SWAP = "swap"
    HEALTH_CHECK = "health_check"


class RollbackStatus(Enum):
    RESTORED = "restored"
    NOTHING_TO_RESTORE = "nothing_to_restore"
    FAILED = "failed"


@dataclass(frozen=True)
class UpdateOutcome:
    host: str
    succeeded: bool
    stage: Optional[UpdateStage] = None
    cause: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.succeeded and self.stage is None:
            raise ValueError("A failed outcome must name the stage it failed at")

    @staticmethod
    def success(host: str) -> "UpdateOutcome":
        return UpdateOutcome(host=host, succeeded=True)

    @staticmethod
    def failure(host: str, stage: UpdateStage, cause: str) -> "UpdateOutcome":
        return UpdateOutcome(host=host, succeeded=False, stage=stage, cause=cause)

    def __str__(self) -> str:
        if self.succeeded:
            return f"{self.host}: succeeded"
        return f"{self.host}: failed at {self.stage.value} ({self.cause})"


@dataclass(frozen=True)
class RollbackOutcome:
    host: str
    status: RollbackStatus
    cause: Optional[str] = None

    @property
    def restored(self) -> bool:
        return self.status == RollbackStatus.RESTORED

    def __str__(self) -> str:
        text = f"{self.host}: rollback {self.status.value}"
        if self.cause:
            text += f" ({self.cause})"
        return text
