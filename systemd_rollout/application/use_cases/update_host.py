"""
Update Host Use Case

Architectural Intent:
- Per-host update/rollback state machine
- Owns exactly one RemoteSessionPort for its lifetime
- Every step is a single remote shell command and a hard gate for the next
- Failures are returned as UpdateOutcome / RollbackOutcome values, never raised

Forward path:
    connect -> read unit file -> stage build -> drop old .last -> stop service
    -> working dir to .last -> staging to working dir -> chmod/chown
    -> start service -> health check

The unit file is read before anything destructive so a malformed definition
aborts with zero side effects. Staging completes before the running service
is touched.

Rollback restores `<WorkingDirectory>.last` only when this run replaced the
working directory. A host whose update failed before staging completed was
never changed and is skipped; one that failed later but before the rename
still has its pre-deployment tree, so rollback only brings the service back.
"""

from __future__ import annotations
import logging
from typing import Optional

from systemd_rollout.application.services import remote_commands
from systemd_rollout.application.services.health_checker import HealthChecker
from systemd_rollout.domain.entities.host_deployment import HostDeployment, HostState
from systemd_rollout.domain.errors import DefinitionError, StageError, SwapError
from systemd_rollout.domain.ports.file_stager_port import FileStagerPort
from systemd_rollout.domain.ports.remote_session_port import (
    CommandResult,
    RemoteSessionPort,
)
from systemd_rollout.domain.services.unit_file_parser import UnitFileParser
from systemd_rollout.domain.value_objects.host_target import HostTarget
from systemd_rollout.domain.value_objects.outcomes import (
    RollbackOutcome,
    RollbackStatus,
    UpdateOutcome,
    UpdateStage,
)
from systemd_rollout.domain.value_objects.run_context import RunContext
from systemd_rollout.domain.value_objects.service_definition import ServiceDefinition

logger = logging.getLogger(__name__)

# Stage being attempted while the host sits in a given state
_STAGE_BY_STATE = {
    HostState.IDLE: UpdateStage.CONNECT,
    HostState.CONNECTED: UpdateStage.DEFINITION,
    HostState.DEFINITION_RESOLVED: UpdateStage.STAGING,
    HostState.STAGED: UpdateStage.SWAP,
    HostState.SWAPPED: UpdateStage.SWAP,
    HostState.STARTED: UpdateStage.HEALTH_CHECK,
}


class HostUpdater:
    def __init__(
        self,
        target: HostTarget,
        session: RemoteSessionPort,
        stager: FileStagerPort,
        run_context: RunContext,
        health_checker: Optional[HealthChecker] = None,
        parser: Optional[UnitFileParser] = None,
    ):
        self.target = target
        self.session = session
        self.stager = stager
        self.run_context = run_context
        self.health_checker = health_checker or HealthChecker()
        self.parser = parser or UnitFileParser()
        self._deployment = HostDeployment(host=target.host)
        self._replaced_working_directory = False

    @property
    def host(self) -> str:
        return self.target.host

    @property
    def deployment(self) -> HostDeployment:
        return self._deployment

    @property
    def staging_path(self) -> str:
        return self.run_context.staging_path(self.target.service_name)

    def execute(self) -> UpdateOutcome:
        target = self.target
        logger.info("Updating %s on %s", target.service_name, target)

        try:
            self.session.connect()
            self._advance(HostState.CONNECTED)

            definition = self._resolve_definition()
            self._advance(HostState.DEFINITION_RESOLVED)
            logger.info(
                "%s: working directory %s, user %s",
                self.host,
                definition.working_directory,
                definition.user,
            )

            self.stager.stage(
                self.session, target.source_directory, self.staging_path, target.debug
            )
            self._advance(HostState.STAGED)

            self._swap(definition)
            self._advance(HostState.SWAPPED)

            self._start_service()
            self._advance(HostState.STARTED)

            if target.health_check:
                self.health_checker.wait_until_healthy(
                    self.session, self._health_url(definition)
                )
            self._advance(HostState.SUCCEEDED)
        except Exception as e:
            if isinstance(e, StageError):
                stage = e.stage
            else:
                stage = _STAGE_BY_STATE.get(self._deployment.status, UpdateStage.SWAP)
            cause = str(e) or e.__class__.__name__
            self._deployment = self._deployment.fail(stage, cause)
            logger.error(
                "%s: update failed at %s: %s",
                self.host,
                stage.value,
                cause,
                extra={"host": self.host},
            )
            logger.debug("%s: failure detail", self.host, exc_info=True)
            return UpdateOutcome.failure(self.host, stage, cause)

        logger.info("%s: update succeeded", self.host, extra={"host": self.host})
        return UpdateOutcome.success(self.host)

    def rollback(self) -> RollbackOutcome:
        logger.info("Rolling back %s on %s", self.target.service_name, self.target)
        update_failed = self._deployment.status == HostState.FAILED
        if update_failed and not self._deployment.reached(HostState.STAGED):
            return self._skip_rollback(
                f"update stopped at {self._deployment.failed_stage.value} "
                "before touching the service"
            )

        self._deployment = self._deployment.start_rollback()
        detail = None
        try:
            if not self.session.is_connected:
                self.session.connect()

            # Re-read: the working directory must be discoverable after a failed update
            definition = self._resolve_definition()
            working_directory = definition.working_directory
            last_path = definition.last_path

            if update_failed and not self._replaced_working_directory:
                detail = f"{working_directory} untouched"
                logger.info(
                    "%s: %s was not replaced, ensuring the service runs",
                    self.host,
                    working_directory,
                )
                if not self._is_service_active():
                    self._start_service()
            else:
                if not self._path_exists(last_path):
                    return self._skip_rollback(f"{last_path} missing")

                if self._is_service_active():
                    self._stop_service()
                self._require(
                    remote_commands.force_remove(working_directory),
                    f"could not remove {working_directory}",
                )
                self._require(
                    remote_commands.move(last_path, working_directory),
                    f"could not restore {last_path}",
                )
                self._start_service()

            if self.target.health_check:
                self.health_checker.wait_until_healthy(
                    self.session, self._health_url(definition)
                )
        except Exception as e:
            cause = str(e) or e.__class__.__name__
            self._deployment = self._deployment.finish_rollback(
                HostState.ROLLBACK_FAILED, cause
            )
            logger.error(
                "%s: rollback failed: %s", self.host, cause, extra={"host": self.host}
            )
            logger.debug("%s: rollback failure detail", self.host, exc_info=True)
            return RollbackOutcome(self.host, RollbackStatus.FAILED, cause)

        self._deployment = self._deployment.finish_rollback(HostState.ROLLED_BACK, detail)
        logger.info(
            "%s: rollback restored the pre-deployment state",
            self.host,
            extra={"host": self.host},
        )
        return RollbackOutcome(self.host, RollbackStatus.RESTORED, detail)

    def _skip_rollback(self, cause: str) -> RollbackOutcome:
        if self._deployment.status != HostState.ROLLING_BACK:
            self._deployment = self._deployment.start_rollback()
        self._deployment = self._deployment.finish_rollback(HostState.ROLLBACK_SKIPPED, cause)
        logger.warning(
            "%s: nothing to roll back (%s)", self.host, cause, extra={"host": self.host}
        )
        return RollbackOutcome(self.host, RollbackStatus.NOTHING_TO_RESTORE, cause)

    def close(self) -> None:
        self.session.close()

    def _advance(self, state: HostState) -> None:
        self._deployment = self._deployment.advance(state)

    def _resolve_definition(self) -> ServiceDefinition:
        result = self._run(remote_commands.read_unit_file(self.target.service_name))
        if result.failed:
            raise DefinitionError(
                f"Could not read {self.target.unit_file_path} "
                f"(exit {result.exit_status}): {result.stderr.strip()}"
            )
        return self.parser.parse(result.stdout, require_bindings=self.target.health_check)

    def _swap(self, definition: ServiceDefinition) -> None:
        working_directory = definition.working_directory
        last_path = definition.last_path

        if self._path_exists(last_path):
            removed = self._run(remote_commands.force_remove(last_path))
            if removed.failed:
                detail = removed.stderr.strip() or removed.stdout.strip()
                # mv onto an existing directory would nest the live tree inside it
                if self._path_exists(last_path):
                    raise SwapError(
                        f"could not remove old generation {last_path} "
                        f"(exit {removed.exit_status}): {detail}"
                    )
                logger.warning(
                    "%s: removing old generation %s reported exit %d: %s",
                    self.host,
                    last_path,
                    removed.exit_status,
                    detail,
                )

        if self._is_service_active():
            self._stop_service()

        self._replaced_working_directory = True
        if self._path_exists(working_directory):
            self._require(
                remote_commands.move(working_directory, last_path),
                f"could not move {working_directory} to {last_path}",
            )
        else:
            logger.info(
                "%s: %s does not exist yet, first deployment", self.host, working_directory
            )

        self._require(
            remote_commands.move(self.staging_path, working_directory),
            f"could not move {self.staging_path} to {working_directory}",
        )
        self._require(
            remote_commands.set_mode(working_directory),
            f"could not set permissions on {working_directory}",
        )
        self._require(
            remote_commands.change_owner_recursive(working_directory, definition.user),
            f"could not change owner of {working_directory} to {definition.user}",
        )

    def _health_url(self, definition: ServiceDefinition) -> str:
        return f"{definition.first_binding.rstrip('/')}{self.target.health_check_path}"

    def _is_service_active(self) -> bool:
        # Non-zero means "not running", not an error
        return self._run(remote_commands.service_is_active(self.target.service_name)).ok

    def _stop_service(self) -> None:
        self._require(
            remote_commands.stop_service(self.target.service_name),
            f"could not stop {self.target.service_name}",
        )

    def _start_service(self) -> None:
        self._require(
            remote_commands.start_service(self.target.service_name),
            f"could not start {self.target.service_name}",
        )

    def _path_exists(self, path: str) -> bool:
        return self._run(remote_commands.directory_exists(path)).ok

    def _require(self, command: str, message: str) -> CommandResult:
        result = self._run(command)
        if result.failed:
            detail = result.stderr.strip() or result.stdout.strip()
            raise SwapError(f"{message} (exit {result.exit_status}): {detail}")
        return result

    def _run(self, command: str) -> CommandResult:
        return self.session.run_command(command)
