"""Help listing and per-command help for native and script commands."""

from __future__ import annotations

import io
from typing import Sequence, TextIO

from adminctl.app.command_service import CommandRegistry
from adminctl.domain.command import CommandContext, CommandDescriptor, CommandFlag, native_command

HELP_COMMAND = "help"
USAGE = "Usage: adminctl [global_options] command [command_options]"


def format_entry(name: str, summary: str) -> str:
    return f"  {name:<18} {summary:<60}"


class HelpAssembler:
    """Writes help text for the commands of one registry.

    Native commands return their text; script commands print their own help
    through the script bridge, so output goes straight to ``out`` in order.
    """

    def __init__(self, registry: CommandRegistry, context: CommandContext) -> None:
        self._registry = registry
        self._context = context

    def header(self, out: TextIO) -> None:
        out.write(f"Adminctl {self._context.settings.cli_version}\n")
        out.write(f"{USAGE}\n")

    def listing(self, out: TextIO) -> None:
        for descriptor in self._registry.visible():
            self._describe(descriptor, full=False, out=out)

    def detail(self, descriptor: CommandDescriptor, out: TextIO) -> None:
        self._describe(descriptor, full=True, out=out)

    def render_listing(self) -> str:
        buffer = io.StringIO()
        stdout = self._context.stdout
        self._context.stdout = buffer
        try:
            self.listing(buffer)
        finally:
            self._context.stdout = stdout
        return buffer.getvalue()

    def _describe(self, descriptor: CommandDescriptor, *, full: bool, out: TextIO) -> None:
        if descriptor.is_script_sourced:
            descriptor.help(full, self._context)
            return
        text = descriptor.help(full, self._context) or ""
        if full:
            out.write(f"{text}\n")
        else:
            out.write(format_entry(descriptor.name, text) + "\n")


def _help_help(full: bool, context: CommandContext) -> str:
    if full:
        return "Shows help for a specified command\nUsage: adminctl help <command>"
    return "Shows help for a specified command"


def help_command(registry: CommandRegistry) -> CommandDescriptor:
    """Build the ``help`` descriptor bound to the registry being built."""

    def run(argv: Sequence[str], context: CommandContext) -> int:
        return run_help(registry, argv, context)

    return native_command(HELP_COMMAND, _help_help, run, flags=CommandFlag.NO_HELP)


def report_unknown_command(registry: CommandRegistry, name: str, stream: TextIO) -> None:
    print(f"Invalid command name: {name}", file=stream)
    print("Suggested commands:", file=stream)
    for suggestion in registry.suggest(name):
        print(suggestion, file=stream)


def run_help(registry: CommandRegistry, argv: Sequence[str], context: CommandContext) -> int:
    assembler = HelpAssembler(registry, context)
    out = context.stdout
    target = argv[1] if len(argv) > 1 else HELP_COMMAND

    descriptor = registry.resolve(target)
    if descriptor is None:
        report_unknown_command(registry, target, context.stderr)
        return 1

    assembler.header(out)
    out.write("\n")
    if target == HELP_COMMAND:
        # listing, never self-description
        out.write("Available commands:\n")
        assembler.listing(out)
        return 0
    out.write(f"Showing help for {target} command\n\n")
    assembler.detail(descriptor, out)
    return 0


def print_command_list(registry: CommandRegistry, context: CommandContext) -> None:
    assembler = HelpAssembler(registry, context)
    out = context.stdout
    assembler.header(out)
    out.write("\nAvailable commands:\n")
    assembler.listing(out)
