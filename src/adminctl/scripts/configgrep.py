"""Search the host configuration for matching keys or scalar values."""

from __future__ import annotations

import argparse
from typing import Any, Iterator

name = "configgrep"
aliases = ("grep",)
description = "Search configuration keys and values for a pattern"


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="adminctl configgrep", description=description, add_help=False)
    parser.add_argument("pattern", help="Substring to look for")
    parser.add_argument("-i", "--ignore-case", action="store_true", help="Case-insensitive search")
    parser.add_argument("-k", "--keys-only", action="store_true", help="Match keys only")
    return parser


def walk(node: Any, prefix: str = "") -> Iterator[tuple[str, Any]]:
    if isinstance(node, dict):
        for key, value in node.items():
            yield from walk(value, f"{prefix}.{key}" if prefix else str(key))
    elif isinstance(node, list):
        for index, value in enumerate(node):
            yield from walk(value, f"{prefix}.{index}" if prefix else str(index))
    else:
        yield prefix, node


def handler(args: list[str], config: dict[str, Any]) -> int:
    parser = _parser()
    if "-h" in args or "--help" in args:
        print(parser.format_help(), end="")
        return 0
    try:
        options = parser.parse_args(args)
    except SystemExit:
        return 1
    needle = options.pattern.lower() if options.ignore_case else options.pattern
    found = 0
    for path, value in walk(config):
        haystacks = [path] if options.keys_only else [path, "" if value is None else str(value)]
        if options.ignore_case:
            haystacks = [item.lower() for item in haystacks]
        if any(needle in item for item in haystacks):
            print(f"{path} = {value}")
            found += 1
    return 0 if found else 1
