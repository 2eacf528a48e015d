from __future__ import annotations

import importlib
import io
import os
import sys
import textwrap
import uuid
from pathlib import Path
from typing import Any, Callable, Mapping

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
SANDBOX_HOME = ROOT / ".test_place" / "global-home"
os.environ.setdefault("ADMINCTL_HOME", str(SANDBOX_HOME))
SANDBOX_HOME.mkdir(parents=True, exist_ok=True)
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from adminctl.domain.command import CommandContext  # noqa: E402
from adminctl.settings import GlobalOptions, RuntimeSettings  # noqa: E402


class ScriptPackage:
    """A throwaway importable package whose modules act as script commands."""

    def __init__(self, root: Path) -> None:
        self.namespace = f"adm_scripts_{uuid.uuid4().hex[:10]}"
        self.path = root / self.namespace
        self.path.mkdir(parents=True)
        (self.path / "__init__.py").write_text("", encoding="utf-8")

    def add(self, name: str, source: str) -> str:
        (self.path / f"{name}.py").write_text(textwrap.dedent(source), encoding="utf-8")
        importlib.invalidate_caches()
        return f"{self.namespace}.{name}"


@pytest.fixture()
def runtime_settings(tmp_path: Path) -> RuntimeSettings:
    home = tmp_path / "home"
    home.mkdir(parents=True, exist_ok=True)
    return RuntimeSettings(
        home_dir=home,
        config_path=home / "adminctl.yaml",
        log_dir=home / "logs",
    )


@pytest.fixture()
def script_package(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ScriptPackage:
    root = tmp_path / "scripts_root"
    root.mkdir()
    monkeypatch.syspath_prepend(str(root))
    return ScriptPackage(root)


@pytest.fixture()
def make_context() -> Callable[..., CommandContext]:
    def factory(
        settings: RuntimeSettings,
        bridge: Any,
        *,
        config: Mapping[str, Any] | None = None,
        options: GlobalOptions | None = None,
    ) -> CommandContext:
        document = dict(config or {})
        return CommandContext(
            settings=settings,
            options=options or GlobalOptions(),
            bridge=bridge,
            config_loader=lambda: document,
            stdout=io.StringIO(),
            stderr=io.StringIO(),
        )

    return factory
