"""Discovery of script-sourced commands."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import metadata
from typing import Iterable, Sequence

ENTRY_POINT_GROUP = "adminctl.scripts"


@dataclass(frozen=True)
class ScriptManifest:
    """Metadata read from a script module when it is discovered."""

    name: str
    module_path: str
    as_subcommand: bool
    aliases: Sequence[str] = ()
    description: str | None = None


def iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=ENTRY_POINT_GROUP)

