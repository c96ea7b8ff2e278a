"""
Assembly of the ``BLOCKCITY_*`` settings behind a client configuration.

A merchant deployment keeps its client id, client secret, gateway and token
endpoint plus the location of its RSA private key (a PEM file path or the
inline PEM text) in environment variables. Those come from the process
environment (or an explicit ``base`` mapping), an optional ``.env`` file that
only fills gaps, and caller overrides such as ``--set`` on the command line,
which always win.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional

SETTING_PREFIX = "BLOCKCITY_"


def _strip_quotes(value: str) -> str:
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
            line = line[len("export "):]
        key, value = line.split("=", 1)
        values[key.strip()] = _strip_quotes(value.strip())
    return values


def load_env_file(
    path: str = ".env",
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Load ``BLOCKCITY_*`` (and any other) variables from ``path`` into ``environ``.

    Keys already present in ``environ`` are left alone. Returns a copy of the
    merged mapping.
    """
    target: MutableMapping[str, str] = environ if environ is not None else os.environ
    for key, value in _parse_env_file(Path(path)).items():
        target.setdefault(key, value)
    return dict(target)


@dataclass(frozen=True)
class ClientEnvironment:
    """
    Merged variables from which a :class:`ClientConfig` is read.

    ``variables`` holds everything that was merged, unrelated process variables
    included; :meth:`settings` narrows it to the Blockcity credentials and
    endpoints.
    """

    variables: Mapping[str, str]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.variables.get(key, default)

    def settings(self) -> Dict[str, str]:
        return {
            key: value
            for key, value in self.variables.items()
            if key.startswith(SETTING_PREFIX)
        }


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> ClientEnvironment:
    """
    Merge ``base`` (defaults to :data:`os.environ`), ``env_file`` and ``overrides``.

    A ``BLOCKCITY_PRIVATE_KEY`` exported in the shell stays in force even when
    the ``.env`` file names a ``BLOCKCITY_PRIVATE_KEY_FILE``; choosing between
    the two is left to the configuration. Pass ``env_file=None`` to skip
    reading a file.
    """
    merged: Dict[str, str] = dict(os.environ if base is None else base)

    if env_file is not None:
        for key, value in _parse_env_file(Path(env_file)).items():
            merged.setdefault(key, value)

    if overrides:
        merged.update(overrides)

    return ClientEnvironment(variables=merged)
