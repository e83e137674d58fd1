"""
Domain Services Package

Architectural Intent:
- Contains pure domain services (no I/O)
"""

from systemd_rollout.domain.services.unit_file_parser import (
    UnitFileParser,
    parse_bindings,
    parse_key_values,
)
from systemd_rollout.domain.services.host_key_verification import (
    format_fingerprint,
    verify_identity,
)

__all__ = [
    "UnitFileParser",
    "parse_bindings",
    "parse_key_values",
    "format_fingerprint",
    "verify_identity",
]
