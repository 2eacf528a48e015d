"""Loading of script commands from the script namespace and entry points."""

from __future__ import annotations

import importlib
import pkgutil
import sys
from types import ModuleType
from typing import Any, Callable, Mapping, TextIO

from adminctl.domain.command import CommandDescriptor, script_command
from adminctl.plugins import ScriptManifest, iter_entry_points
from adminctl.settings import RuntimeSettings


def _manifest_from(target: Any, *, default_name: str, module_path: str, as_subcommand: bool) -> ScriptManifest | None:
    if isinstance(target, ModuleType):
        get = lambda key: getattr(target, key, None)  # noqa: E731
    elif isinstance(target, Mapping):
        get = target.get
    elif callable(target):
        doc = (target.__doc__ or "").strip()
        return ScriptManifest(
            name=default_name,
            module_path=module_path,
            as_subcommand=as_subcommand,
            description=doc.splitlines()[0] if doc else None,
        )
    else:
        return None
    if not callable(get("handler")):
        return None
    name = get("name") or default_name
    aliases = get("aliases") or ()
    description = get("description")
    if isinstance(aliases, str):
        aliases = (aliases,)
    return ScriptManifest(
        name=str(name),
        module_path=module_path,
        as_subcommand=as_subcommand,
        aliases=tuple(str(alias) for alias in aliases),
        description=str(description) if description is not None else None,
    )


def _iter_namespace_modules(namespace: str) -> list[str]:
    package = importlib.import_module(namespace)
    path = getattr(package, "__path__", None)
    if path is None:
        return []
    names = []
    for info in pkgutil.iter_modules(path):
        if info.name.startswith("_"):
            continue
        names.append(info.name)
    return sorted(names)


class ScriptDiscovery:
    """Collects script commands; broken scripts are reported and skipped."""

    def __init__(
        self,
        settings: RuntimeSettings,
        *,
        importer: Callable[[str], ModuleType] = importlib.import_module,
        stderr: TextIO | None = None,
    ) -> None:
        self._settings = settings
        self._importer = importer
        self._stderr = stderr
        self.skipped: list[tuple[str, str]] = []

    def _report(self, module_path: str, reason: str) -> None:
        self.skipped.append((module_path, reason))
        print(f"cannot load script command {module_path}: {reason}", file=self._stderr or sys.stderr)

    def namespace_manifests(self) -> list[ScriptManifest]:
        namespace = self._settings.script_namespace
        try:
            module_names = _iter_namespace_modules(namespace)
        except ImportError as exc:
            self._report(namespace, str(exc))
            return []
        manifests = []
        for module_name in module_names:
            try:
                module = self._importer(f"{namespace}.{module_name}")
            except Exception as exc:
                self._report(f"{namespace}.{module_name}", f"{type(exc).__name__}: {exc}")
                continue
            manifest = _manifest_from(module, default_name=module_name, module_path=module_name, as_subcommand=True)
            if manifest is None:
                self._report(f"{namespace}.{module_name}", "no handler function")
                continue
            manifests.append(manifest)
        return manifests

    def entry_point_manifests(self) -> list[ScriptManifest]:
        manifests = []
        for entry_point in sorted(iter_entry_points(), key=lambda ep: ep.name):
            try:
                target = entry_point.load()
            except Exception as exc:
                self._report(entry_point.value, f"{type(exc).__name__}: {exc}")
                continue
            manifest = _manifest_from(
                target,
                default_name=entry_point.name,
                module_path=entry_point.value,
                as_subcommand=False,
            )
            if manifest is None:
                self._report(entry_point.value, "no handler function")
                continue
            # entry point names take precedence over the module's own name
            manifests.append(
                ScriptManifest(
                    name=entry_point.name,
                    module_path=manifest.module_path,
                    as_subcommand=False,
                    aliases=manifest.aliases,
                    description=manifest.description,
                )
            )
        return manifests

    def commands(self) -> list[CommandDescriptor]:
        descriptors = []
        for manifest in [*self.namespace_manifests(), *self.entry_point_manifests()]:
            descriptors.append(
                script_command(
                    manifest.name,
                    manifest.module_path,
                    as_subcommand=manifest.as_subcommand,
                    aliases=manifest.aliases,
                    description=manifest.description,
                )
            )
        return descriptors


def load_script_commands(settings: RuntimeSettings, *, stderr: TextIO | None = None) -> list[CommandDescriptor]:
    return ScriptDiscovery(settings, stderr=stderr).commands()
