"""
Domain Ports Package

Architectural Intent:
- Contains port interfaces (abstract contracts) for external dependencies
- Ports define what the domain needs, adapters implement how
- Follows Hexagonal Architecture principles
"""

from systemd_rollout.domain.ports.remote_session_port import (
    CommandResult,
    RemoteSessionPort,
)
from systemd_rollout.domain.ports.file_stager_port import FileStagerPort

__all__ = [
    "CommandResult",
    "RemoteSessionPort",
    "FileStagerPort",
]
