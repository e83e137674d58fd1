"""
Composition Root

Architectural Intent:
- Dependency injection composition root for the rollout
- Single place where adapters and use cases are wired together
- No adapter instantiation should occur outside this module

Design Decisions:
- Uses a simple dataclass container instead of a DI framework
- Each host gets its own session, stager and health checker; nothing is
  shared across hosts
- The private key is parsed once, before any connection is attempted
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from systemd_rollout.application.services.health_checker import HealthChecker
from systemd_rollout.application.use_cases.rolling_update import RollingUpdate
from systemd_rollout.application.use_cases.update_host import HostUpdater
from systemd_rollout.domain.ports.remote_session_port import RemoteSessionPort
from systemd_rollout.domain.value_objects.host_target import HostTarget
from systemd_rollout.domain.value_objects.run_context import RunContext
from systemd_rollout.infrastructure.adapters.archive_transfer import ArchiveTransfer
from systemd_rollout.infrastructure.adapters.fabric_session import (
    FabricRemoteSession,
    load_private_key,
)

SessionFactory = Callable[[HostTarget], RemoteSessionPort]


@dataclass
class RolloutContainer:
    """DI container holding the wired per-host updaters."""

    run_context: RunContext
    updaters: list[HostUpdater]
    rolling_update: RollingUpdate


def fabric_session_factory(targets: Sequence[HostTarget]) -> SessionFactory:
    # Fail on unusable key material before touching any host
    keys = {}
    for target in targets:
        if target.private_key not in keys:
            keys[target.private_key] = load_private_key(target.private_key)

    def factory(target: HostTarget) -> RemoteSessionPort:
        return FabricRemoteSession(target, pkey=keys.get(target.private_key))

    return factory


def create_container(
    targets: Sequence[HostTarget],
    run_context: RunContext,
    session_factory: Optional[SessionFactory] = None,
) -> RolloutContainer:
    """Create and wire all dependencies."""
    session_factory = session_factory or fabric_session_factory(targets)

    updaters = [
        HostUpdater(
            target=target,
            session=session_factory(target),
            stager=ArchiveTransfer(),
            run_context=run_context,
            health_checker=HealthChecker(),
        )
        for target in targets
    ]

    return RolloutContainer(
        run_context=run_context,
        updaters=updaters,
        rolling_update=RollingUpdate(),
    )
