from __future__ import annotations

import pytest

from adminctl.scripts import configgrep

CONFIG = {
    "options": {"pidfile": "/run/adminctl.pid", "Workers": 4},
    "servers": [{"host": "alpha"}, {"host": "beta"}],
}


def test_matches_keys_and_values(capsys: pytest.CaptureFixture[str]) -> None:
    assert configgrep.handler(["alpha"], CONFIG) == 0
    assert capsys.readouterr().out.splitlines() == ["servers.0.host = alpha"]


def test_keys_only_and_case(capsys: pytest.CaptureFixture[str]) -> None:
    assert configgrep.handler(["-k", "-i", "workers"], CONFIG) == 0
    assert capsys.readouterr().out.splitlines() == ["options.Workers = 4"]
    assert configgrep.handler(["-k", "workers"], CONFIG) == 1


def test_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert configgrep.handler(["--help"], {}) == 0
    assert "usage: adminctl configgrep" in capsys.readouterr().out


def test_walk_paths() -> None:
    assert dict(configgrep.walk(CONFIG))["servers.1.host"] == "beta"
