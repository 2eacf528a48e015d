"""YAML host configuration loading with variable expansion."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Mapping

import yaml

from adminctl import __version__

_VARIABLE = re.compile(r"\$(?:\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)\}|(?P<bare>[A-Za-z_][A-Za-z0-9_]*))")


class ConfigError(RuntimeError):
    pass


def default_variables(config_path: Path, home_dir: Path) -> dict[str, str]:
    confdir = str(config_path.parent)
    return {
        "CONFDIR": confdir,
        "LOCAL_CONFDIR": confdir,
        "HOMEDIR": str(home_dir),
        "VERSION": __version__,
    }


def expand_variables(value: Any, variables: Mapping[str, str]) -> Any:
    """Substitute ``$NAME`` and ``${NAME}`` in every string of a document.

    Unknown names are left untouched.
    """

    if isinstance(value, str):
        def replace(match: re.Match[str]) -> str:
            name = match.group("braced") or match.group("bare")
            return variables.get(name, match.group(0))

        return _VARIABLE.sub(replace, value)
    if isinstance(value, dict):
        return {key: expand_variables(item, variables) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_variables(item, variables) for item in value]
    return value


def load_config(path: Path, variables: Mapping[str, str] | None = None, *, home_dir: Path | None = None) -> dict[str, Any]:
    """Load the host configuration; a missing file is an empty document."""

    merged = default_variables(path, home_dir or path.parent)
    merged.update(variables or {})
    if not path.exists():
        return {}
    try:
        raw = path.read_text("utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read configuration {path}: {exc}") from exc
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse configuration {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"configuration {path} must be a mapping at the top level")
    return expand_variables(data, merged)
