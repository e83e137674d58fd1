"""
Domain Errors

Architectural Intent:
- Single exception hierarchy for every failure the rollout can raise
- Stage errors carry the UpdateStage they belong to, so the host updater can
  turn them into an UpdateOutcome without inspecting messages
- Configuration errors are also ValueErrors, matching the validation style of
  the value objects
"""

from __future__ import annotations
from typing import Optional

from systemd_rollout.domain.value_objects.outcomes import UpdateStage


class RolloutError(Exception):
    """Base class for all rollout failures."""


class ConfigurationError(RolloutError, ValueError):
    """Input rejected before any network activity."""


class StageError(RolloutError):
    stage: UpdateStage = UpdateStage.SWAP

    def __init__(self, message: str, stage: Optional[UpdateStage] = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class RemoteConnectionError(StageError, ConnectionError):
    stage = UpdateStage.CONNECT


class HostKeyMismatchError(RemoteConnectionError):
    """The remote host offered an identity that does not match the pinned fingerprint."""


class DefinitionError(StageError):
    stage = UpdateStage.DEFINITION


class StagingError(StageError):
    stage = UpdateStage.STAGING


class SwapError(StageError):
    stage = UpdateStage.SWAP


class HealthCheckError(StageError):
    stage = UpdateStage.HEALTH_CHECK
