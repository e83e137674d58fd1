"""
Rolling Update Use Case

Architectural Intent:
- Drives an ordered list of HostUpdaters strictly one host at a time
- Fail-fast: the first failed host stops the rollout, later hosts are never touched
- On failure, every touched host (all successes plus the in-flight one) is
  rolled back in the original update order
- Every host's session is released exactly once on every exit path

Sequential by construction: partial-failure rollback semantics stay simple
when only one host is ever in flight.
"""

from __future__ import annotations
import logging
from typing import List, Optional, Sequence

from systemd_rollout.application.dtos.rollout_dtos import RollbackReport, RolloutReport
from systemd_rollout.application.use_cases.update_host import HostUpdater
from systemd_rollout.domain.value_objects.outcomes import (
    RollbackOutcome,
    RollbackStatus,
    UpdateOutcome,
)

logger = logging.getLogger(__name__)


class RollingUpdate:
    def execute(self, updaters: Sequence[HostUpdater]) -> RolloutReport:
        succeeded: List[HostUpdater] = []
        in_flight: Optional[HostUpdater] = None
        outcomes: List[UpdateOutcome] = []
        failure: Optional[UpdateOutcome] = None
        rollbacks: List[RollbackOutcome] = []

        try:
            for position, updater in enumerate(updaters, start=1):
                logger.info("[%d/%d] Updating %s", position, len(updaters), updater.host)
                in_flight = updater
                outcome = updater.execute()
                outcomes.append(outcome)

                if not outcome.succeeded:
                    failure = outcome
                    break

                succeeded.append(updater)
                in_flight = None

            if failure is not None:
                targets = self._rollback_targets(succeeded, in_flight)
                logger.warning(
                    "Rollout failed on %s, rolling back %d host(s): %s",
                    failure.host,
                    len(targets),
                    ", ".join(u.host for u in targets),
                )
                rollbacks = [self._safe_rollback(updater) for updater in targets]
        finally:
            self._release(updaters)

        report = RolloutReport(
            outcomes=tuple(outcomes),
            rollbacks=tuple(rollbacks),
            failure=failure,
        )
        if report.succeeded:
            logger.info(report.summary())
        else:
            logger.error(report.summary())
        return report

    def rollback(self, updaters: Sequence[HostUpdater]) -> RollbackReport:
        """Roll back every given host in order, e.g. for manual recovery."""
        try:
            rollbacks = tuple(self._safe_rollback(updater) for updater in updaters)
        finally:
            self._release(updaters)
        return RollbackReport(rollbacks=rollbacks)

    @staticmethod
    def _safe_rollback(updater: HostUpdater) -> RollbackOutcome:
        # One host must never prevent rollback of the others
        try:
            return updater.rollback()
        except Exception as e:
            logger.error("Rollback of %s raised: %s", updater.host, e)
            return RollbackOutcome(updater.host, RollbackStatus.FAILED, str(e))

    @staticmethod
    def _rollback_targets(
        succeeded: Sequence[HostUpdater], in_flight: Optional[HostUpdater]
    ) -> List[HostUpdater]:
        targets = list(succeeded)
        if in_flight is not None and all(in_flight is not u for u in targets):
            targets.append(in_flight)
        return targets

    @staticmethod
    def _release(updaters: Sequence[HostUpdater]) -> None:
        for updater in updaters:
            try:
                updater.close()
            except Exception as e:
                logger.warning("Failed to release session for %s: %s", updater.host, e)
