"""
Unit File Parser

Architectural Intent:
- Pure domain service turning the text of a systemd unit file into a
  ServiceDefinition
- No I/O: the host updater reads the file remotely and hands the text over
- Missing required keys are hard errors carrying the raw unit text so a
  misconfigured unit can be diagnosed without reconnecting

Parsing Rules:
- Lines without '=' (section headers, blanks) and comment lines are ignored
- `Environment=NAME=value` becomes the synthetic key `Environment_NAME`
- Repeated keys keep the last value, as systemd does for scalar settings
"""

from __future__ import annotations
from typing import Dict, List

from systemd_rollout.domain.errors import DefinitionError
from systemd_rollout.domain.value_objects.service_definition import ServiceDefinition

URLS_KEY = "Environment_ASPNETCORE_URLS"
_COMMENT_PREFIXES = ("#", ";")


def parse_key_values(text: str) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(_COMMENT_PREFIXES):
            continue

        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()

        if key == "Environment":
            value = value.strip()
            if len(value) > 1 and value[0] == value[-1] == '"':
                value = value[1:-1]
            name, env_sep, env_value = value.partition("=")
            if not env_sep:
                continue
            key = f"Environment_{name.strip()}"
            value = env_value

        values[key] = value.strip()
    return values


def parse_bindings(urls: str) -> List[str]:
    """Split a semicolon-separated URL list into probe-able bindings."""
    return [
        binding.strip().replace("*", "localhost")
        for binding in urls.split(";")
        if binding.strip()
    ]


class UnitFileParser:
    def parse(self, text: str, require_bindings: bool) -> ServiceDefinition:
        values = parse_key_values(text)

        working_directory = self._require(values, "WorkingDirectory", text)
        user = self._require(values, "User", text)

        bindings: List[str] = []
        if require_bindings:
            bindings = parse_bindings(self._require(values, URLS_KEY, text))
            if not bindings:
                raise DefinitionError(
                    f"Unit file defines {URLS_KEY} without any binding:\n{text}"
                )

        try:
            return ServiceDefinition(
                working_directory=working_directory,
                user=user,
                bindings=tuple(bindings),
            )
        except ValueError as e:
            raise DefinitionError(f"Invalid unit file ({e}):\n{text}") from e

    @staticmethod
    def _require(values: Dict[str, str], key: str, text: str) -> str:
        value = values.get(key)
        if not value:
            raise DefinitionError(f"Unit file is missing required key {key}:\n{text}")
        return value
