"""
Host Target Value Object

Architectural Intent:
- Immutable per-host configuration, built once from validated input
- Owned by exactly one HostUpdater, never shared across hosts
- Validates hostname format (DNS, IPv4, IPv6), port bounds, non-empty user
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# RFC 1123 hostname: labels of alnum/hyphens, dot-separated
_HOSTNAME_RE = re.compile(
    r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.[A-Za-z0-9-]{1,63})*$"
)

_IPV4_RE = re.compile(
    r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$"
)

# Simplified: accepts ::1, fe80::1 and similar
_IPV6_RE = re.compile(r"^[0-9a-fA-F:]+$")

DEFAULT_HEALTH_CHECK_PATH = "/api/health"


def _is_valid_hostname(host: str) -> bool:
    """Validate hostname as DNS name, IPv4, or IPv6."""
    if not host:
        return False

    m = _IPV4_RE.match(host)
    if m:
        return all(0 <= int(g) <= 255 for g in m.groups())

    if _IPV6_RE.match(host) and ":" in host:
        return True

    if _HOSTNAME_RE.match(host) and len(host) <= 253:
        return True

    return False


@dataclass(frozen=True)
class HostTarget:
    """
    Value Object describing one host of the rollout and the service to update on it.
    """
    service_name: str
    host: str
    username: str
    private_key: str = field(repr=False)
    source_directory: Path
    port: int = 22
    expected_fingerprint: Optional[bytes] = None
    debug: bool = False
    health_check: bool = True
    health_check_path: str = DEFAULT_HEALTH_CHECK_PATH

    def __post_init__(self) -> None:
        if not self.service_name:
            raise ValueError("Service name cannot be empty")
        if not self.username:
            raise ValueError("Username cannot be empty")
        if not (1 <= self.port <= 65535):
            raise ValueError(f"Port must be 1-65535, got {self.port}")
        if not _is_valid_hostname(self.host):
            raise ValueError(f"Invalid hostname: {self.host!r}")
        if self.expected_fingerprint is not None and not self.expected_fingerprint:
            raise ValueError("Expected fingerprint cannot be empty bytes")
        if not self.health_check_path.startswith("/"):
            raise ValueError(
                f"Health check path must start with '/', got {self.health_check_path!r}"
            )

    @property
    def unit_file_path(self) -> str:
        return f"/etc/systemd/system/{self.service_name}.service"

    def __str__(self) -> str:
        return f"{self.username}@{self.host}:{self.port}"
