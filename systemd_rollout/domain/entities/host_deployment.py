"""
Host Deployment Module

Architectural Intent:
- HostDeployment is the consistency boundary for one host's update attempt
- Lifecycle managed through state transitions enforced by domain methods
- All state changes produce new instances to ensure auditability
- Every transition records a HostStateChangedEvent (the per-host audit trail)

Lifecycle:
    IDLE -> CONNECTED -> DEFINITION_RESOLVED -> STAGED -> SWAPPED -> STARTED
         -> SUCCEEDED
    any forward state -> FAILED
    any state except a rollback state -> ROLLING_BACK
    ROLLING_BACK -> ROLLED_BACK | ROLLBACK_SKIPPED | ROLLBACK_FAILED
"""

from __future__ import annotations
from enum import Enum, auto
from typing import Optional

from systemd_rollout.domain.events.host_events import HostStateChangedEvent
from systemd_rollout.domain.value_objects.outcomes import UpdateStage


class HostState(Enum):
    IDLE = auto()
    CONNECTED = auto()
    DEFINITION_RESOLVED = auto()
    STAGED = auto()
    SWAPPED = auto()
    STARTED = auto()
    SUCCEEDED = auto()
    FAILED = auto()
    ROLLING_BACK = auto()
    ROLLED_BACK = auto()
    ROLLBACK_SKIPPED = auto()
    ROLLBACK_FAILED = auto()


_FORWARD_ORDER = (
    HostState.IDLE,
    HostState.CONNECTED,
    HostState.DEFINITION_RESOLVED,
    HostState.STAGED,
    HostState.SWAPPED,
    HostState.STARTED,
    HostState.SUCCEEDED,
)

_ROLLBACK_STATES = frozenset(
    {
        HostState.ROLLING_BACK,
        HostState.ROLLED_BACK,
        HostState.ROLLBACK_SKIPPED,
        HostState.ROLLBACK_FAILED,
    }
)

_ROLLBACK_RESULTS = _ROLLBACK_STATES - {HostState.ROLLING_BACK}


class HostDeployment:
    __slots__ = (
        "_host",
        "_status",
        "_failed_stage",
        "_error_message",
        "_domain_events",
    )

    def __init__(
        self,
        host: str,
        status: HostState = HostState.IDLE,
        failed_stage: Optional[UpdateStage] = None,
        error_message: Optional[str] = None,
        domain_events: tuple = (),
    ):
        self._host = host
        self._status = status
        self._failed_stage = failed_stage
        self._error_message = error_message
        self._domain_events = domain_events

    @property
    def host(self) -> str:
        return self._host

    @property
    def status(self) -> HostState:
        return self._status

    @property
    def failed_stage(self) -> Optional[UpdateStage]:
        return self._failed_stage

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def domain_events(self) -> tuple:
        return self._domain_events

    @property
    def history(self) -> tuple[HostState, ...]:
        """Every state this host has been in, oldest first."""
        if not self._domain_events:
            return (self._status,)
        first = HostState[self._domain_events[0].previous_state]
        return (first,) + tuple(HostState[e.new_state] for e in self._domain_events)

    def reached(self, state: HostState) -> bool:
        return state in self.history

    def advance(self, new_state: HostState) -> "HostDeployment":
        if new_state not in _FORWARD_ORDER or new_state == HostState.IDLE:
            raise ValueError(f"{new_state.name} is not a forward update state")
        if self._status not in _FORWARD_ORDER:
            raise ValueError(
                f"Cannot advance to {new_state.name} from {self._status.name}"
            )
        current = _FORWARD_ORDER.index(self._status)
        if _FORWARD_ORDER.index(new_state) != current + 1:
            raise ValueError(
                f"Host must be {_FORWARD_ORDER[_FORWARD_ORDER.index(new_state) - 1].name} "
                f"to advance to {new_state.name}, is {self._status.name}"
            )
        return self._transition(new_state)

    def fail(self, stage: UpdateStage, message: str) -> "HostDeployment":
        if self._status not in _FORWARD_ORDER or self._status == HostState.SUCCEEDED:
            raise ValueError(f"Cannot fail a host deployment in {self._status.name}")
        return self._transition(
            HostState.FAILED, failed_stage=stage, error_message=message, detail=message
        )

    def start_rollback(self) -> "HostDeployment":
        if self._status in _ROLLBACK_STATES:
            raise ValueError(f"Rollback already handled for host in {self._status.name}")
        return self._transition(HostState.ROLLING_BACK)

    def finish_rollback(
        self, result: HostState, detail: Optional[str] = None
    ) -> "HostDeployment":
        if self._status != HostState.ROLLING_BACK:
            raise ValueError("Host must be ROLLING_BACK to finish a rollback")
        if result not in _ROLLBACK_RESULTS:
            raise ValueError(f"{result.name} is not a rollback result")
        return self._transition(result, detail=detail)

    def _transition(
        self,
        new_state: HostState,
        failed_stage: Optional[UpdateStage] = None,
        error_message: Optional[str] = None,
        detail: Optional[str] = None,
    ) -> "HostDeployment":
        event = HostStateChangedEvent(
            host=self._host,
            previous_state=self._status.name,
            new_state=new_state.name,
            detail=detail,
        )
        return HostDeployment(
            host=self._host,
            status=new_state,
            failed_stage=failed_stage or self._failed_stage,
            error_message=error_message or self._error_message,
            domain_events=self._domain_events + (event,),
        )

    def __repr__(self) -> str:
        return (
            f"HostDeployment(host={self._host}, status={self._status}, "
            f"failed_stage={self._failed_stage}, error_message={self._error_message})"
        )
