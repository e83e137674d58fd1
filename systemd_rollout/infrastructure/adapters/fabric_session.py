"""
Fabric Session Adapter

Architectural Intent:
- Infrastructure adapter implementing RemoteSessionPort via Fabric/SSH
- Command channel: fabric Connection.run(); transfer channel: SFTP on the
  same transport
- One instance per host, used by exactly one HostUpdater

Security:
- Host identity pinned by fingerprint: the paramiko client starts with no
  known-hosts entries so every offered key goes through verify_identity()
  during the handshake, before authentication
- The transfer channel re-verifies the transport's server key when opened
- Only the configured private key is used (no agent, no key lookup)
"""

import io
import logging
from pathlib import Path
from typing import BinaryIO, Optional

import paramiko
from fabric import Connection

from systemd_rollout.domain.errors import (
    ConfigurationError,
    HostKeyMismatchError,
    RemoteConnectionError,
)
from systemd_rollout.domain.ports.remote_session_port import (
    CommandResult,
    ProgressCallback,
    RemoteSessionPort,
)
from systemd_rollout.domain.services.host_key_verification import (
    format_fingerprint,
    verify_identity,
)
from systemd_rollout.domain.value_objects.host_target import HostTarget
from systemd_rollout.infrastructure.logging import host_logger

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 30

_KEY_CLASSES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


def load_private_key(material: str, passphrase: Optional[str] = None) -> paramiko.PKey:
    """Load a private key from its text, or from a file path."""
    text = material
    if "PRIVATE KEY" not in material:
        path = Path(material).expanduser()
        if not path.is_file():
            raise ConfigurationError("Private key is neither key material nor a readable file")
        text = path.read_text()

    for key_cls in _KEY_CLASSES:
        try:
            return key_cls.from_private_key(io.StringIO(text), password=passphrase)
        except (paramiko.SSHException, ValueError):
            continue
    raise ConfigurationError("Unsupported or invalid private key")


class FingerprintPolicy(paramiko.MissingHostKeyPolicy):
    """Accepts a host key only if verify_identity() does."""

    def __init__(self, expected: Optional[bytes]) -> None:
        self.expected = expected

    def missing_host_key(self, client, hostname, key) -> None:
        offered = key.get_fingerprint()
        if not verify_identity(offered, self.expected):
            raise HostKeyMismatchError(
                f"Host key for {hostname} has fingerprint {format_fingerprint(offered)}, "
                f"expected {format_fingerprint(self.expected)}"
            )
        if self.expected is None:
            logger.warning(
                "Accepting unverified host key %s for %s (no fingerprint configured)",
                format_fingerprint(offered),
                hostname,
            )


class FabricRemoteSession(RemoteSessionPort):
    """Adapter implementing RemoteSessionPort via Fabric/SSH."""

    def __init__(self, target: HostTarget, pkey: Optional[paramiko.PKey] = None):
        self.target = target
        self._pkey = pkey
        self._connection: Optional[Connection] = None
        self._sftp: Optional[paramiko.SFTPClient] = None
        self._log = host_logger(logger, target.host)

    def _get_connection(self) -> Connection:
        pkey = self._pkey or load_private_key(self.target.private_key)
        connection = Connection(
            host=self.target.host,
            user=self.target.username,
            port=self.target.port,
            connect_timeout=CONNECT_TIMEOUT,
            connect_kwargs={
                "pkey": pkey,
                "allow_agent": False,
                "look_for_keys": False,
            },
        )
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(
            FingerprintPolicy(self.target.expected_fingerprint)
        )
        connection.client = client
        return connection

    @property
    def is_connected(self) -> bool:
        return (
            self._connection is not None
            and self._sftp is not None
            and bool(self._connection.is_connected)
        )

    def connect(self) -> None:
        if self.is_connected:
            return
        try:
            self._connection = self._get_connection()
            self._connection.open()
            self._sftp = self._connection.sftp()
            self._verify_transfer_channel()
        except HostKeyMismatchError:
            self.close()
            raise
        except (paramiko.SSHException, OSError, EOFError) as e:
            self.close()
            raise RemoteConnectionError(f"Could not connect to {self.target}: {e}") from e
        self._log.info("Connected to %s", self.target)

    def _verify_transfer_channel(self) -> None:
        transport = self._sftp.get_channel().get_transport()
        offered = transport.get_remote_server_key().get_fingerprint()
        if not verify_identity(offered, self.target.expected_fingerprint):
            raise HostKeyMismatchError(
                f"Transfer channel to {self.target.host} offered fingerprint "
                f"{format_fingerprint(offered)}"
            )

    def run_command(self, command: str) -> CommandResult:
        if not self.is_connected:
            raise RemoteConnectionError(f"Session to {self.target} is not connected")
        try:
            result = self._connection.run(command, hide=True, warn=True, in_stream=False)
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise RemoteConnectionError(
                f"Command channel to {self.target} failed running {command!r}: {e}"
            ) from e

        self._log.info("$ %s -> %d", command, result.exited)
        if result.stdout.strip():
            self._log.debug("stdout: %s", result.stdout.strip())
        if result.stderr.strip():
            self._log.debug("stderr: %s", result.stderr.strip())
        return CommandResult(
            exit_status=result.exited, stdout=result.stdout, stderr=result.stderr
        )

    def upload_file(
        self,
        local_stream: BinaryIO,
        remote_path: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        if not self.is_connected:
            raise RemoteConnectionError(f"Session to {self.target} is not connected")
        self._log.info("upload -> %s", remote_path)
        try:
            self._sftp.putfo(local_stream, remote_path, callback=on_progress, confirm=True)
        except (paramiko.SSHException, EOFError) as e:
            raise RemoteConnectionError(
                f"Transfer channel to {self.target} failed writing {remote_path}: {e}"
            ) from e

    def close(self) -> None:
        # Each channel is released independently; a failure on one never
        # prevents releasing the other, and never propagates.
        if self._sftp is not None:
            try:
                self._sftp.close()
            except Exception as e:
                self._log.warning("Failed to close transfer channel to %s: %s", self.target, e)
            finally:
                self._sftp = None

        if self._connection is not None:
            try:
                self._connection.close()
            except Exception as e:
                self._log.warning("Failed to close command channel to %s: %s", self.target, e)
            finally:
                self._connection = None
