"""Runtime settings for the adminctl dispatcher."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from adminctl import __version__


DEFAULT_SCRIPT_NAMESPACE = "adminctl.scripts"
CONFIG_FILE = "adminctl.yaml"


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    config_path: Path
    log_dir: Path
    script_namespace: str = DEFAULT_SCRIPT_NAMESPACE
    cli_version: str = __version__

    @property
    def telemetry_log(self) -> Path:
        return self.log_dir / "telemetry.jsonl"


@dataclass(frozen=True)
class GlobalOptions:
    """Options parsed from the argv prefix that precedes the command name."""

    verbose: bool = False
    list_commands: bool = False
    show_help: bool = False
    show_version: bool = False
    variables: Mapping[str, str] = field(default_factory=dict)


def _default_home_dir() -> Path:
    override = os.environ.get("ADMINCTL_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".adminctl"


def load_settings() -> RuntimeSettings:
    base = _default_home_dir()
    config_override = os.environ.get("ADMINCTL_CONFIG")
    config_path = Path(config_override).expanduser() if config_override else base / CONFIG_FILE
    return RuntimeSettings(
        home_dir=base,
        config_path=config_path,
        log_dir=base / "logs",
        script_namespace=os.environ.get("ADMINCTL_SCRIPT_NAMESPACE", DEFAULT_SCRIPT_NAMESPACE),
    )


SETTINGS = load_settings()
