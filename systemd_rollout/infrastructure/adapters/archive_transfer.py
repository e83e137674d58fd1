"""
Archive Transfer Adapter

Architectural Intent:
- Infrastructure adapter implementing FileStagerPort
- Packs the local build into one gzip tarball (paths relative to the source
  root), uploads it, and extracts it on the remote host with tar
- Every failure raises StagingError before the running service is touched

Outside debug mode the remote archive is always removed, and a failed
extraction also removes the partial staging directory. Debug mode keeps both
for inspection and, on success, lists the staged tree.
"""

from __future__ import annotations
import logging
import tarfile
import tempfile
from pathlib import Path
from typing import Callable, Optional

from systemd_rollout.application.services import remote_commands
from systemd_rollout.domain.errors import RemoteConnectionError, StagingError
from systemd_rollout.domain.ports.file_stager_port import FileStagerPort
from systemd_rollout.domain.ports.remote_session_port import (
    CommandResult,
    RemoteSessionPort,
)

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".tar.gz"


def build_archive(source_directory: Path, archive_path: Path) -> int:
    """Write a gzip tarball of the tree under source_directory.

    Entries are stored relative to the source root, so extracting with
    ``tar -xzf archive -C dest`` reproduces the tree under ``dest``.
    Returns the number of regular files archived.
    """
    source = Path(source_directory)
    files = 0
    with tarfile.open(archive_path, "w:gz") as tar:
        for path in sorted(source.rglob("*")):
            tar.add(path, arcname=path.relative_to(source).as_posix(), recursive=False)
            if path.is_file():
                files += 1
    return files


class ArchiveTransfer(FileStagerPort):
    def __init__(self, temp_dir: Optional[str] = None) -> None:
        self.temp_dir = temp_dir

    def stage(
        self,
        session: RemoteSessionPort,
        source_directory: Path,
        destination: str,
        debug: bool = False,
    ) -> None:
        source = Path(source_directory)
        if not source.is_dir():
            raise StagingError(f"Source directory {source} does not exist")
        if not any(p.is_file() for p in source.rglob("*")):
            raise StagingError(f"Source directory {source} is empty")

        remote_archive = f"{destination}{ARCHIVE_SUFFIX}"

        with tempfile.TemporaryDirectory(prefix="systemd-rollout-", dir=self.temp_dir) as tmp:
            archive_path = Path(tmp) / f"build{ARCHIVE_SUFFIX}"
            try:
                files = build_archive(source, archive_path)
            except (OSError, tarfile.TarError) as e:
                raise StagingError(f"Could not archive {source}: {e}") from e

            size = archive_path.stat().st_size
            logger.info(
                "Uploading %d file(s) from %s as %s (%d bytes)",
                files,
                source,
                remote_archive,
                size,
            )
            with archive_path.open("rb") as stream:
                try:
                    session.upload_file(
                        stream, remote_archive, on_progress=self._progress(debug)
                    )
                except RemoteConnectionError:
                    raise
                except OSError as e:
                    raise StagingError(f"Could not upload {remote_archive}: {e}") from e

        try:
            self._require(session, remote_commands.force_remove(destination))
            self._require(session, remote_commands.make_directory(destination))
            self._require(
                session, remote_commands.extract_archive(remote_archive, destination)
            )
        except StagingError:
            if not debug:
                self._discard(session, remote_commands.force_remove(destination), destination)
                self._discard(
                    session, remote_commands.remove_file(remote_archive), remote_archive
                )
            raise

        if debug:
            for command in (
                remote_commands.list_directory(destination),
                remote_commands.list_directory(remote_archive),
            ):
                listing = session.run_command(command)
                logger.debug("%s\n%s", command, listing.stdout.rstrip())
        else:
            self._discard(session, remote_commands.remove_file(remote_archive), remote_archive)

    @staticmethod
    def _progress(debug: bool) -> Optional[Callable[[int, int], None]]:
        if not debug:
            return None

        def report(sent: int, total: int) -> None:
            percent = (sent * 100 // total) if total else 100
            logger.debug("Upload progress: %d/%d bytes (%d%%)", sent, total, percent)

        return report

    @staticmethod
    def _discard(session: RemoteSessionPort, command: str, path: str) -> None:
        removed = session.run_command(command)
        if removed.failed:
            logger.warning(
                "Could not remove %s on the remote host: %s", path, removed.stderr.strip()
            )

    @staticmethod
    def _require(session: RemoteSessionPort, command: str) -> CommandResult:
        result = session.run_command(command)
        if result.failed:
            raise StagingError(
                f"'{command}' failed with exit {result.exit_status}: "
                f"{result.stderr.strip() or result.stdout.strip()}"
            )
        return result
