"""Domain model for command descriptors."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Flag, auto
from typing import Any, Callable, Mapping, Sequence, TextIO, Union

from adminctl.ports.script_runtime import ScriptInvoker
from adminctl.settings import GlobalOptions, RuntimeSettings


class CommandFlag(Flag):
    NONE = 0
    NO_HELP = auto()
    SCRIPT_SOURCED = auto()


@dataclass
class CommandContext:
    """Dispatcher state handed to a command when it is described or run."""

    settings: RuntimeSettings
    options: GlobalOptions
    bridge: ScriptInvoker
    config_loader: Callable[[], Mapping[str, Any]]
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)
    _config: Mapping[str, Any] | None = field(default=None, init=False, repr=False)

    @property
    def config(self) -> Mapping[str, Any]:
        if self._config is None:
            self._config = self.config_loader()
        return self._config

    def debug(self, message: str) -> None:
        if self.options.verbose:
            print(f"debug: {message}", file=self.stderr)


HelpFn = Callable[[bool, CommandContext], str]
RunFn = Callable[[Sequence[str], CommandContext], int]


@dataclass(frozen=True)
class NativeCommand:
    """Command implemented by a pair of Python callables."""

    help_fn: HelpFn
    run_fn: RunFn

    def help(self, descriptor: "CommandDescriptor", full: bool, context: CommandContext) -> str:
        return self.help_fn(full, context)

    def run(self, descriptor: "CommandDescriptor", argv: Sequence[str], context: CommandContext) -> int:
        return self.run_fn(argv, context)


@dataclass(frozen=True)
class ScriptCommand:
    """Command implemented by a script module executed through the bridge.

    Help output is produced by the bridge itself, so ``help`` returns nothing.
    """

    module_path: str
    as_subcommand: bool = True
    description: str | None = None

    def help(self, descriptor: "CommandDescriptor", full: bool, context: CommandContext) -> None:
        context.bridge.print_help(
            descriptor.name,
            self.module_path,
            self.as_subcommand,
            full=full,
            description=self.description,
            config=context.config if full else {},
            out=context.stdout,
        )
        return None

    def run(self, descriptor: "CommandDescriptor", argv: Sequence[str], context: CommandContext) -> int:
        context.bridge.invoke(argv, context.config, self.module_path, self.as_subcommand)
        return 0


CommandSource = Union[NativeCommand, ScriptCommand]


@dataclass(frozen=True, eq=False)
class CommandDescriptor:
    name: str
    source: CommandSource
    aliases: tuple[str, ...] = ()
    flags: CommandFlag = CommandFlag.NONE
    command_data: Any = None
    exports: Mapping[str, Callable[..., Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("Command name must be a non-empty string")
        object.__setattr__(self, "aliases", tuple(self.aliases))
        if isinstance(self.source, ScriptCommand):
            flags = self.flags | CommandFlag.SCRIPT_SOURCED
        else:
            flags = self.flags & ~CommandFlag.SCRIPT_SOURCED
        object.__setattr__(self, "flags", flags)

    @property
    def is_script_sourced(self) -> bool:
        return bool(self.flags & CommandFlag.SCRIPT_SOURCED)

    @property
    def hidden(self) -> bool:
        return bool(self.flags & CommandFlag.NO_HELP)

    def help(self, full: bool, context: CommandContext) -> str | None:
        return self.source.help(self, full, context)

    def run(self, argv: Sequence[str], context: CommandContext) -> int:
        return self.source.run(self, argv, context)


def native_command(
    name: str,
    help_fn: HelpFn,
    run_fn: RunFn,
    *,
    aliases: Sequence[str] = (),
    flags: CommandFlag = CommandFlag.NONE,
    command_data: Any = None,
    exports: Mapping[str, Callable[..., Any]] | None = None,
) -> CommandDescriptor:
    return CommandDescriptor(
        name=name,
        source=NativeCommand(help_fn=help_fn, run_fn=run_fn),
        aliases=tuple(aliases),
        flags=flags,
        command_data=command_data,
        exports=dict(exports or {}),
    )


def script_command(
    name: str,
    module_path: str,
    *,
    as_subcommand: bool = True,
    aliases: Sequence[str] = (),
    description: str | None = None,
    flags: CommandFlag = CommandFlag.NONE,
) -> CommandDescriptor:
    return CommandDescriptor(
        name=name,
        source=ScriptCommand(module_path=module_path, as_subcommand=as_subcommand, description=description),
        aliases=tuple(aliases),
        flags=flags,
    )
