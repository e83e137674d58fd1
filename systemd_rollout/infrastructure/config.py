"""
Configuration Module

Architectural Intent:
- Centralized configuration loading from a JSON file and the environment
- Provides typed access to every rollout setting
- Turns validated settings into immutable HostTarget values, one per host
- The only place that reads process environment; the core receives values
  by construction

Design Decisions:
- Config is a frozen dataclass for immutability after load
- Priority (highest to lowest): CLI overrides, ROLLOUT_* variables,
  GitHub Actions INPUT_* variables, config file, defaults
- All validation happens here, before any connection is attempted
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from datetime import datetime, UTC
from pathlib import Path
from typing import Mapping, Optional
import json
import logging
import os

from systemd_rollout.domain.errors import ConfigurationError
from systemd_rollout.domain.value_objects.host_target import (
    DEFAULT_HEALTH_CHECK_PATH,
    HostTarget,
)
from systemd_rollout.domain.value_objects.run_context import RunContext

logger = logging.getLogger(__name__)

GITHUB_INPUT_PREFIX = "INPUT"


@dataclass(frozen=True)
class RolloutConfig:
    """Root configuration for one rollout."""
    service_name: str = ""
    hosts: tuple[str, ...] = ()
    fingerprints: tuple[str, ...] = ()
    username: str = ""
    port: int = 22
    private_key: str = ""
    source_directory: str = ""
    debug: bool = False
    health_check: bool = True
    health_check_path: str = DEFAULT_HEALTH_CHECK_PATH
    log_level: str = "WARNING"
    json_logs: bool = False

    def __repr__(self) -> str:
        # Never print key material
        shown = ", ".join(
            f"{f.name}={'***' if f.name == 'private_key' else getattr(self, f.name)!r}"
            for f in fields(self)
        )
        return f"RolloutConfig({shown})"


def _env_values(environ: Mapping[str, str], prefix: str) -> dict:
    """Collect PREFIX_FIELD variables, e.g. ROLLOUT_HOSTS=a,b or INPUT_SERVICE-NAME=api."""
    data = {}
    for key, value in environ.items():
        if not key.upper().startswith(f"{prefix}_"):
            continue
        name = key[len(prefix) + 1:].lower().replace("-", "_")
        if value != "":
            data[name] = value
    return data


def _parse_config_file(path: Path) -> dict:
    """Parse a JSON config file. Returns empty dict when absent."""
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return data


def _build_config(data: dict) -> RolloutConfig:
    """Build the config dataclass from a dict, ignoring unknown keys."""
    valid_fields = {f.name: f for f in fields(RolloutConfig)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}

    for name, value in list(filtered.items()):
        field_type = valid_fields[name].type
        try:
            if field_type == "tuple[str, ...]":
                if isinstance(value, str):
                    value = tuple(v.strip() for v in value.split(",") if v.strip())
                else:
                    value = tuple(str(v).strip() for v in value)
            elif field_type == "int" and not isinstance(value, int):
                value = int(value)
            elif field_type == "bool" and isinstance(value, str):
                value = value.strip().lower() in ("true", "1", "yes")
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid value for {name}: {value!r}") from e
        filtered[name] = value

    return RolloutConfig(**filtered)


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "ROLLOUT",
    overrides: Optional[Mapping[str, object]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RolloutConfig:
    """Load configuration from file, environment variables and CLI overrides.

    Args:
        path: Path to config file (JSON). Defaults to rollout.json in CWD.
        env_prefix: Environment variable prefix. Defaults to ROLLOUT.
        overrides: Values given on the command line; None values are ignored.
        environ: Environment mapping (defaults to os.environ).
    """
    environ = os.environ if environ is None else environ
    config_path = Path(path) if path else Path("rollout.json")

    data = _parse_config_file(config_path)
    data.update(_env_values(environ, GITHUB_INPUT_PREFIX))
    data.update(_env_values(environ, env_prefix))
    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    return _build_config(data)


def load_run_context(environ: Optional[Mapping[str, str]] = None) -> RunContext:
    """Run identifiers for staging paths, from the CI environment when present."""
    environ = os.environ if environ is None else environ
    run_number = environ.get("GITHUB_RUN_NUMBER") or datetime.now(UTC).strftime(
        "%Y%m%d%H%M%S"
    )
    run_attempt = environ.get("GITHUB_RUN_ATTEMPT") or "1"
    return RunContext(run_number=run_number, run_attempt=run_attempt)


def parse_fingerprint(text: str) -> bytes:
    """Decode a hex fingerprint; ':' and whitespace separators are accepted."""
    cleaned = "".join(text.replace(":", " ").split())
    try:
        value = bytes.fromhex(cleaned)
    except ValueError as e:
        raise ConfigurationError(f"Fingerprint {text!r} is not valid hex") from e
    if not value:
        raise ConfigurationError("Fingerprint cannot be empty")
    return value


def build_host_targets(config: RolloutConfig) -> list[HostTarget]:
    """Validate the config and produce one immutable HostTarget per host."""
    required = {
        "service_name": config.service_name,
        "hosts": config.hosts,
        "username": config.username,
        "private_key": config.private_key,
        "source_directory": config.source_directory,
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        raise ConfigurationError(f"Missing required setting(s): {', '.join(missing)}")

    if config.fingerprints and len(config.fingerprints) != len(config.hosts):
        raise ConfigurationError(
            f"Got {len(config.fingerprints)} fingerprint(s) for "
            f"{len(config.hosts)} host(s); counts must match"
        )
    if len(set(config.hosts)) != len(config.hosts):
        raise ConfigurationError(f"Duplicate hosts in {', '.join(config.hosts)}")

    if config.fingerprints:
        fingerprints = [parse_fingerprint(f) for f in config.fingerprints]
    else:
        logger.warning(
            "No host key fingerprints configured: any host identity will be accepted"
        )
        fingerprints = [None] * len(config.hosts)

    source = Path(config.source_directory).expanduser()
    targets = []
    for host, fingerprint in zip(config.hosts, fingerprints):
        try:
            targets.append(
                HostTarget(
                    service_name=config.service_name,
                    host=host,
                    username=config.username,
                    private_key=config.private_key,
                    source_directory=source,
                    port=config.port,
                    expected_fingerprint=fingerprint,
                    debug=config.debug,
                    health_check=config.health_check,
                    health_check_path=config.health_check_path,
                )
            )
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
    return targets
