"""
Utilities for assembling the settings used to configure a Vipps client.

Settings come from the process environment, an optional ``.env`` file and
explicit overrides. The result is a plain mapping that
:class:`vipps_payments.core.config.VippsConfig` knows how to validate.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional

__all__ = [
    "VippsEnvironment",
    "build_environment",
    "load_env_file",
]


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _parse_env_file(path: Path) -> Dict[str, str]:
    values: Dict[str, str] = {}
    try:
        data = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return values

    for raw_line in data.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue
        values[key] = _unquote(value.strip())
    return values


def load_env_file(
    path: str = ".env",
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Copy the ``VIPPS_*`` (and any other) settings from ``path`` into ``environ``.

    Keys that are already set are left alone. Returns the merged mapping.
    """
    target: MutableMapping[str, str] = environ if environ is not None else os.environ
    for key, value in _parse_env_file(Path(path)).items():
        target.setdefault(key, value)
    return dict(target)


@dataclass(frozen=True)
class VippsEnvironment:
    """Resolved settings, ready to be turned into a config."""

    variables: Mapping[str, str]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.variables.get(key, default)


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> VippsEnvironment:
    """
    Layer the setting sources into a :class:`VippsEnvironment`.

    ``base`` defaults to :data:`os.environ`; values from ``env_file`` only fill
    gaps, and ``overrides`` always win. Pass ``env_file=None`` to skip the file.
    """
    merged: Dict[str, str] = dict(os.environ if base is None else base)

    if env_file is not None:
        for key, value in _parse_env_file(Path(env_file)).items():
            merged.setdefault(key, value)

    if overrides:
        merged.update(overrides)

    return VippsEnvironment(variables=merged)
