#!/usr/bin/env python3
"""Entry point for the adminctl CLI."""

from __future__ import annotations

import argparse
import sys
import time
from textwrap import dedent
from typing import Sequence, TextIO

from adminctl import __version__
from adminctl.adapters.config_loader import ConfigError, load_config
from adminctl.app.command_service import CommandRegistry, DuplicateCommandError
from adminctl.app.config_commands import native_commands
from adminctl.app.help_service import HELP_COMMAND, help_command, print_command_list, report_unknown_command
from adminctl.app.script_bridge import ScriptBridge, ScriptFailure
from adminctl.domain.command import CommandContext
from adminctl.plugins.loader import ScriptDiscovery
from adminctl.runtime import close_pools
from adminctl.settings import SETTINGS, GlobalOptions, RuntimeSettings
from adminctl.utils.argparsing import CommandArgumentParser, OptionParseError
from adminctl.utils.telemetry import record_structured_event

PROG = "adminctl"

# global options that consume the following token as their value
VALUE_OPTIONS = {"--var"}

HELP_OVERVIEW = dedent(
    f"""
    Summary:
      Host administration utility version {__version__}

    Run `{PROG} help` for the list of commands and `{PROG} help <command>`
    for the options of one command.
    """
)


class MalformedVariableError(OptionParseError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Bad variable format: {value}")
        self.value = value


def build_parser() -> argparse.ArgumentParser:
    parser = CommandArgumentParser(
        prog=PROG,
        usage=f"{PROG} [global_options] command [command_options]",
        description=HELP_OVERVIEW,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    group = parser.add_argument_group("global options")
    group.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    group.add_argument("-l", "--list-commands", action="store_true", help="List available commands")
    group.add_argument(
        "--var",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Redefine a configuration variable (repeatable)",
    )
    group.add_argument("-h", "--help", action="store_true", dest="show_help", help="Show help")
    group.add_argument("-V", "--version", action="store_true", dest="show_version", help="Show version")
    return parser


def split_global_args(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split argv into the leading option tokens and the command tail."""

    index = 0
    while index < len(argv):
        token = argv[index]
        if token == "--":
            return list(argv[:index]), list(argv[index + 1 :])
        if not token.startswith("-"):
            break
        index += 1
        if token in VALUE_OPTIONS and index < len(argv):
            index += 1
    return list(argv[:index]), list(argv[index:])


def parse_variables(values: Sequence[str]) -> dict[str, str]:
    variables: dict[str, str] = {}
    for raw in values:
        if raw.count("=") != 1:
            raise MalformedVariableError(raw)
        key, value = raw.split("=", 1)
        if not key:
            raise MalformedVariableError(raw)
        variables[key] = value
    return variables


def parse_global_options(tokens: Sequence[str]) -> GlobalOptions:
    args = build_parser().parse_args(list(tokens))
    return GlobalOptions(
        verbose=args.verbose,
        list_commands=args.list_commands,
        show_help=args.show_help,
        show_version=args.show_version,
        variables=parse_variables(args.var),
    )


def build_registry(settings: RuntimeSettings, *, stderr: TextIO | None = None) -> CommandRegistry:
    discovery = ScriptDiscovery(settings, stderr=stderr)
    registry = CommandRegistry.build(native_commands(), discovery.commands(), builtins=(help_command,))
    record_structured_event(
        settings,
        "registry.build",
        payload={"commands": len(registry), "skipped": [path for path, _ in discovery.skipped]},
        component="cli",
    )
    return registry


def _build_context(settings: RuntimeSettings, options: GlobalOptions, registry: CommandRegistry) -> CommandContext:
    bridge = ScriptBridge(
        settings,
        globals_={
            "adminctl": registry.exports(),
            "variables": dict(options.variables),
            "verbose": options.verbose,
        },
    )
    return CommandContext(
        settings=settings,
        options=options,
        bridge=bridge,
        config_loader=lambda: load_config(settings.config_path, options.variables, home_dir=settings.home_dir),
    )


def _dispatch(registry: CommandRegistry, context: CommandContext, tail: Sequence[str]) -> int:
    name = tail[0] if tail else HELP_COMMAND
    descriptor = registry.resolve(name)
    if descriptor is None:
        report_unknown_command(registry, name, context.stderr)
        record_structured_event(
            context.settings,
            "dispatch",
            payload={"command": name, "exit_code": 1},
            level="warn",
            status="not-found",
            component="cli",
        )
        return 1

    sub_argv = [f"{PROG} {name}", *tail[1:]]
    kind = "script" if descriptor.is_script_sourced else "native"
    context.debug(f"running {kind} command {name} with {len(sub_argv) - 1} argument(s)")
    started = time.perf_counter()
    try:
        exit_code = int(descriptor.run(sub_argv, context) or 0)
    except ScriptFailure as exc:
        print(str(exc), file=context.stderr)
        exit_code = 1
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=context.stderr)
        exit_code = 1
    duration_ms = (time.perf_counter() - started) * 1000
    context.debug(f"command {name} finished with exit code {exit_code} in {duration_ms:.1f} ms")
    record_structured_event(
        context.settings,
        "dispatch",
        payload={"command": name, "kind": kind, "exit_code": exit_code},
        level="info" if exit_code == 0 else "error",
        status="ok" if exit_code == 0 else "fail",
        component="cli",
        duration_ms=duration_ms,
    )
    return exit_code


def main(argv: Sequence[str] | None = None) -> int:
    raw_args = list(sys.argv[1:] if argv is None else argv)
    global_tokens, tail = split_global_args(raw_args)
    try:
        options = parse_global_options(global_tokens)
    except OptionParseError as exc:
        print(f"option parsing failed: {exc}", file=sys.stderr)
        return 1

    settings = SETTINGS
    try:
        registry = build_registry(settings)
    except DuplicateCommandError as exc:
        print(f"cannot register commands: {exc}", file=sys.stderr)
        return 1

    context = _build_context(settings, options, registry)
    try:
        if options.show_version:
            print(f"{PROG} {__version__}")
            return 0
        if options.show_help:
            print(build_parser().format_help(), end="")
            return 0
        if options.list_commands:
            print_command_list(registry, context)
            return 0
        return _dispatch(registry, context, tail)
    finally:
        close_pools()


if __name__ == "__main__":
    sys.exit(main())
