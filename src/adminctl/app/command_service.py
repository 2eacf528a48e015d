"""Command registry and name resolution for adminctl."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, Sequence

from adminctl.domain.command import CommandDescriptor
from adminctl.domain.matching import maybe_match_name


class DuplicateCommandError(ValueError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Command {name} registered more than once")
        self.name = name


class CommandNotFoundError(RuntimeError):
    def __init__(self, name: str, suggestions: Sequence[str] = ()) -> None:
        super().__init__(f"Invalid command name: {name}")
        self.name = name
        self.suggestions = tuple(suggestions)


BuiltinFactory = Callable[["CommandRegistry"], CommandDescriptor]


class CommandRegistry:
    """Sorted, read-only collection of command descriptors.

    Use :meth:`build`; the registry is sealed once its descriptors are sorted.
    """

    def __init__(self) -> None:
        self._commands: tuple[CommandDescriptor, ...] = ()
        self._sealed = False

    @classmethod
    def build(
        cls,
        native: Iterable[CommandDescriptor],
        script_discovered: Iterable[CommandDescriptor] = (),
        builtins: Iterable[BuiltinFactory] = (),
    ) -> "CommandRegistry":
        registry = cls()
        merged = list(native)
        # builtins such as ``help`` keep a reference to the registry they belong to
        merged.extend(factory(registry) for factory in builtins)
        merged.extend(script_discovered)
        registry._seal(merged)
        return registry

    def _seal(self, descriptors: list[CommandDescriptor]) -> None:
        if self._sealed:
            raise RuntimeError("Command registry is already built")
        seen: set[str] = set()
        for descriptor in descriptors:
            if descriptor.name in seen:
                raise DuplicateCommandError(descriptor.name)
            seen.add(descriptor.name)
        self._commands = tuple(sorted(descriptors, key=lambda item: item.name))
        self._sealed = True

    def all(self) -> tuple[CommandDescriptor, ...]:
        return self._commands

    def visible(self) -> Iterator[CommandDescriptor]:
        return (cmd for cmd in self._commands if not cmd.hidden)

    def names(self) -> list[str]:
        return [cmd.name for cmd in self._commands]

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[CommandDescriptor]:
        return iter(self._commands)

    def resolve(self, name: str) -> CommandDescriptor | None:
        for descriptor in self._commands:
            if descriptor.name == name:
                return descriptor
        return None

    def get(self, name: str) -> CommandDescriptor:
        descriptor = self.resolve(name)
        if descriptor is None:
            raise CommandNotFoundError(name, list(self.suggest(name)))
        return descriptor

    def suggest(self, name: str) -> Iterator[str]:
        for descriptor in self._commands:
            if maybe_match_name(descriptor.name, name):
                yield descriptor.name
                continue
            for alias in descriptor.aliases:
                if maybe_match_name(alias, name):
                    yield alias

    def exports(self) -> dict[str, Callable[..., Any]]:
        """Merge the helpers native commands expose to scripts."""

        merged: dict[str, Callable[..., Any]] = {}
        for descriptor in self._commands:
            merged.update(descriptor.exports)
        return merged
