"""Credential sources and the per-provider credential resolver.

A provider property holds either a single secret or a JSON array of
secrets (``["key1", "key2"]``). Array order is retry order: the first key
is tried first, later keys are fallbacks once it runs out of quota.
"""

from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path

from stockdb.providers import get_provider


class CredentialSource(ABC):
    """Where provider secrets come from."""

    @abstractmethod
    def get_property(self, name: str) -> str | None:
        ...


class MappingCredentialSource(CredentialSource):
    """Credentials held in a plain mapping."""

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values = dict(values or {})

    def get_property(self, name: str) -> str | None:
        return self._values.get(name) or None


class EnvCredentialSource(CredentialSource):
    """Process environment overlaid on an optional ``.env`` file.

    Non-empty environment variables win over values from the file.
    """

    def __init__(self, env_path: Path | str | None = ".env") -> None:
        self._env_path = Path(env_path) if env_path else None

    def get_property(self, name: str) -> str | None:
        value = os.environ.get(name)
        if value:
            return value
        return self._read_env_file().get(name) or None

    def _read_env_file(self) -> dict[str, str]:
        if self._env_path is None or not self._env_path.exists():
            return {}
        values: dict[str, str] = {}
        for raw_line in self._env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export ") :].strip()
            if "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
                value = value[1:-1]
            values[key] = value
        return values


def parse_credentials(raw: str | None) -> list[str]:
    """Parse a property value into an ordered credential list.

    A JSON array yields its non-empty string items; anything that is not a
    JSON array is taken as one credential.
    """
    if raw is None:
        return []
    text = raw.strip()
    if not text:
        return []
    try:
        parsed = json.loads(text)
    except ValueError:
        return [text]
    if isinstance(parsed, list):
        return [str(item).strip() for item in parsed if str(item).strip()]
    if isinstance(parsed, str):
        return [parsed.strip()] if parsed.strip() else []
    return [text]


def mask_secret(value: str) -> str:
    """Mask a secret for logs: first three and last two characters around ``****``.

    Secrets of six characters or fewer are masked completely.
    """
    if not value:
        return ""
    if len(value) <= 6:
        return "*" * len(value)
    return f"{value[:3]}****{value[-2:]}"


class CredentialResolver:
    """Resolve the ordered credential list for a provider name."""

    def __init__(self, source: CredentialSource) -> None:
        self.source = source

    def property_name(self, provider: str) -> str:
        return get_provider(provider).credential_property

    def resolve(self, provider: str) -> list[str]:
        return parse_credentials(self.source.get_property(self.property_name(provider)))

    def labelled(self, provider: str) -> list[tuple[str, str]]:
        """Return ``(label, secret)`` pairs, e.g. ``("EODHD_API_TOKEN[0]", ...)``."""
        name = self.property_name(provider)
        return [(f"{name}[{i}]", secret) for i, secret in enumerate(self.resolve(provider))]
