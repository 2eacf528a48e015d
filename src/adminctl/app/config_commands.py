"""Built-in native commands operating on the host configuration."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Mapping, Sequence

import yaml

from adminctl.adapters.config_loader import ConfigError, load_config
from adminctl.domain.command import CommandContext, CommandDescriptor, native_command
from adminctl.utils.argparsing import CommandArgumentParser, OptionParseError


def dump_config(value: Any, fmt: str = "yaml") -> str:
    if fmt == "json":
        return json.dumps(value, ensure_ascii=False, indent=2, default=str)
    return yaml.safe_dump(value, sort_keys=False, default_flow_style=False, allow_unicode=True).rstrip("\n")


def _parse(
    parser: argparse.ArgumentParser, argv: Sequence[str], context: CommandContext
) -> tuple[argparse.Namespace | None, int]:
    """Parse command options; ``None`` means stop with the returned exit code."""

    try:
        args = parser.parse_args(list(argv[1:]))
    except OptionParseError as exc:
        print(f"option parsing failed: {exc}", file=context.stderr)
        return None, 1
    if args.help:
        context.stdout.write(parser.format_help())
        return None, 0
    return args, 0


def _load(args: argparse.Namespace, context: CommandContext) -> Mapping[str, Any]:
    if args.config:
        return load_config(Path(args.config), context.options.variables, home_dir=context.settings.home_dir)
    return context.config


def _configtest_parser(prog: str) -> argparse.ArgumentParser:
    parser = CommandArgumentParser(prog=prog, description="Perform configuration file test")
    parser.add_argument("-h", "--help", action="store_true", help="Show this help")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress output")
    parser.add_argument("-c", "--config", help="Config file to test")
    return parser


def _configtest_help(full: bool, context: CommandContext) -> str:
    if full:
        return _configtest_parser("adminctl configtest").format_help().rstrip("\n")
    return "Perform configuration file test"


def _configtest_run(argv: Sequence[str], context: CommandContext) -> int:
    parser = _configtest_parser(argv[0] if argv else "adminctl configtest")
    args, code = _parse(parser, argv, context)
    if args is None:
        return code
    path = Path(args.config) if args.config else context.settings.config_path
    if not path.exists():
        print(f"configuration file {path} does not exist", file=context.stderr)
        return 1
    try:
        _load(args, context)
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=context.stderr)
        return 1
    if not args.quiet:
        print("syntax OK", file=context.stdout)
    return 0


def _configdump_parser(prog: str) -> argparse.ArgumentParser:
    parser = CommandArgumentParser(prog=prog, description="Dump the host configuration")
    parser.add_argument("-h", "--help", action="store_true", help="Show this help")
    parser.add_argument("-j", "--json", action="store_true", help="Emit JSON instead of YAML")
    parser.add_argument("-c", "--config", help="Config file to dump")
    parser.add_argument("sections", nargs="*", help="Dotted paths of sections to dump")
    return parser


def _configdump_help(full: bool, context: CommandContext) -> str:
    if full:
        return _configdump_parser("adminctl configdump").format_help().rstrip("\n")
    return "Dump the host configuration"


def _lookup(document: Mapping[str, Any], dotted: str) -> Any:
    node: Any = document
    for part in dotted.split("."):
        if isinstance(node, Mapping) and part in node:
            node = node[part]
        elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
            node = node[int(part)]
        else:
            raise KeyError(dotted)
    return node


def _configdump_run(argv: Sequence[str], context: CommandContext) -> int:
    parser = _configdump_parser(argv[0] if argv else "adminctl configdump")
    args, code = _parse(parser, argv, context)
    if args is None:
        return code
    try:
        document = _load(args, context)
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=context.stderr)
        return 1
    fmt = "json" if args.json else "yaml"
    if not args.sections:
        print(dump_config(dict(document), fmt), file=context.stdout)
        return 0
    for section in args.sections:
        try:
            value = _lookup(document, section)
        except KeyError:
            print(f"section {section} not found", file=context.stderr)
            return 1
        if not args.json:
            print(f"*** Section {section} ***", file=context.stdout)
        print(dump_config(value, fmt), file=context.stdout)
    return 0


def native_commands() -> list[CommandDescriptor]:
    return [
        native_command("configtest", _configtest_help, _configtest_run),
        native_command(
            "configdump",
            _configdump_help,
            _configdump_run,
            aliases=("dump",),
            exports={"dump_config": dump_config},
        ),
    ]
