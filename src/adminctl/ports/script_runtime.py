"""Port describing the script bridge as seen by command descriptors."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence, TextIO


class ScriptInvoker(Protocol):  # pragma: no cover
    def invoke(
        self,
        argv: Sequence[str],
        config: Mapping[str, Any],
        module_path: str,
        as_subcommand: bool,
    ) -> None:
        ...

    def print_help(
        self,
        name: str,
        module_path: str,
        as_subcommand: bool,
        *,
        full: bool,
        description: str | None,
        config: Mapping[str, Any],
        out: TextIO,
    ) -> None:
        ...
