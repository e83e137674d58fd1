"""
File Stager Port

Architectural Intent:
- Port interface for placing a local build on a remote host
- Staging must fully succeed before the running service is touched
"""

from abc import ABC, abstractmethod
from pathlib import Path

from systemd_rollout.domain.ports.remote_session_port import RemoteSessionPort


class FileStagerPort(ABC):
    @abstractmethod
    def stage(
        self,
        session: RemoteSessionPort,
        source_directory: Path,
        destination: str,
        debug: bool = False,
    ) -> None:
        """
        Copies the source tree into the remote destination directory.
        Raises StagingError on any failure.
        """
        pass
