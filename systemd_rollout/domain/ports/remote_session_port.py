"""
Remote Session Port

Architectural Intent:
- Port interface for one authenticated connection to one host
- Pairs a command channel with a file-transfer channel
- Implemented by adapters (Fabric/SSH, test fakes)

Contract:
- run_command() never raises on a non-zero exit status; callers interpret
  CommandResult.exit_status themselves
- close() releases both channels independently and never raises
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class CommandResult:
    exit_status: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_status == 0

    @property
    def failed(self) -> bool:
        return not self.ok


class RemoteSessionPort(ABC):
    """
    Port interface for executing commands and uploading files on one remote host.
    """

    @abstractmethod
    def connect(self) -> None:
        """
        Opens the command and file-transfer channels.
        Raises RemoteConnectionError if either cannot be established or the
        host identity is rejected.
        """
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        pass

    @abstractmethod
    def run_command(self, command: str) -> CommandResult:
        """
        Executes one shell command synchronously and returns its result.
        """
        pass

    @abstractmethod
    def upload_file(
        self,
        local_stream: BinaryIO,
        remote_path: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Streams a local file object to the remote path.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    def __enter__(self) -> "RemoteSessionPort":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
