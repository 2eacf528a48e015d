from __future__ import annotations

import io
from dataclasses import replace

import pytest

from adminctl.app.script_bridge import (
    ScriptBridge,
    ScriptError,
    ScriptHandlerTypeError,
    ScriptLoadError,
)
from adminctl.runtime import ContextPool
from adminctl.settings import RuntimeSettings
from adminctl.utils.telemetry import iter_events


@pytest.fixture()
def pool():
    pool = ContextPool(key=0)
    yield pool
    pool.close()


@pytest.fixture()
def settings(runtime_settings: RuntimeSettings, script_package) -> RuntimeSettings:
    return replace(runtime_settings, script_namespace=script_package.namespace)


@pytest.fixture()
def bridge(settings: RuntimeSettings, pool: ContextPool) -> ScriptBridge:
    def factory(config, globals_=None):
        pool.globals.update(globals_ or {})
        return pool

    return ScriptBridge(settings, globals_={"variables": {"ENV": "test"}}, pool_factory=factory)


RECORDER = """
calls = []

def handler(args, config):
    calls.append((args, config))
    return 0
"""


def test_invoke_passes_args_and_config_copy(bridge: ScriptBridge, script_package, pool: ContextPool) -> None:
    module_path = script_package.add("recorder", RECORDER)
    config = {"section": {"key": "value"}, "list": [1, 2]}

    bridge.invoke(["adminctl recorder", "--flag", "target"], config, "recorder", True)

    module = __import__(module_path, fromlist=["calls"])
    args, received = module.calls[0]
    assert args == ["--flag", "target"]
    assert received == config
    assert received is not config
    assert pool.acquired == pool.released == 1


def test_top_level_module_path(bridge: ScriptBridge, script_package) -> None:
    module_path = script_package.add("toplevel", RECORDER)
    bridge.invoke(["adminctl toplevel", "x"], {}, module_path, False)
    module = __import__(module_path, fromlist=["calls"])
    assert module.calls == [(["x"], {})]


def test_function_attribute_expression(bridge: ScriptBridge, script_package) -> None:
    module_path = script_package.add(
        "funcs",
        """
        seen = []

        def run(args, config):
            seen.extend(args)
        """,
    )
    bridge.invoke(["adminctl run", "a", "b"], {}, f"{module_path}:run", False)
    module = __import__(module_path, fromlist=["seen"])
    assert module.seen == ["a", "b"]


def test_mapping_tables_provide_handlers(bridge: ScriptBridge, script_package) -> None:
    module_path = script_package.add(
        "tables",
        """
        seen = []
        command = {"handler": lambda args, config: seen.append(args)}
        """,
    )
    bridge.invoke(["adminctl t", "1"], {}, f"{module_path}:command", False)
    module = __import__(module_path, fromlist=["seen"])
    assert module.seen == [["1"]]


def test_import_expression(bridge: ScriptBridge, settings: RuntimeSettings) -> None:
    assert bridge.import_expression("stat", True) == f"{settings.script_namespace}.stat"
    assert bridge.import_expression("pkg.stat", False) == "pkg.stat"


def test_missing_module_is_a_load_error(bridge: ScriptBridge, pool: ContextPool) -> None:
    with pytest.raises(ScriptLoadError) as excinfo:
        bridge.invoke(["adminctl ghost"], {}, "ghost", True)
    assert "ghost" in str(excinfo.value)
    assert pool.in_use == 0
    assert pool.acquired == pool.released == 1


def test_import_time_failure_is_a_load_error(bridge: ScriptBridge, script_package) -> None:
    script_package.add("broken", "raise ValueError('bad script')\n")
    with pytest.raises(ScriptLoadError) as excinfo:
        bridge.invoke(["adminctl broken"], {}, "broken", True)
    assert "bad script" in str(excinfo.value)


def test_non_table_result_is_a_load_error(bridge: ScriptBridge, script_package) -> None:
    module_path = script_package.add("numbers", "answer = 42\n")
    with pytest.raises(ScriptLoadError):
        bridge.invoke(["adminctl n"], {}, f"{module_path}:answer", False)


def test_table_without_handler_is_rejected_without_leaking(
    bridge: ScriptBridge, script_package, pool: ContextPool
) -> None:
    script_package.add("nohandler", "description = 'no handler here'\n")
    with pytest.raises(ScriptHandlerTypeError) as excinfo:
        bridge.invoke(["adminctl nohandler"], {}, "nohandler", True)
    assert excinfo.value.found_type == "nil"
    assert pool.acquired == pool.released == 1
    assert pool.in_use == 0


def test_non_callable_handler_names_its_type(bridge: ScriptBridge, script_package) -> None:
    script_package.add("strhandler", "handler = 'not a function'\n")
    with pytest.raises(ScriptHandlerTypeError) as excinfo:
        bridge.invoke(["adminctl strhandler"], {}, "strhandler", True)
    assert excinfo.value.found_type == "str"
    assert "not str" in str(excinfo.value)


def test_runtime_failure_raises_script_error(
    bridge: ScriptBridge, script_package, pool: ContextPool, settings: RuntimeSettings
) -> None:
    script_package.add(
        "failing",
        """
        def handler(args, config):
            raise RuntimeError("cannot reach host")
        """,
    )
    with pytest.raises(ScriptError) as excinfo:
        bridge.invoke(["adminctl failing"], {}, "failing", True)
    assert excinfo.value.code == 2
    assert "cannot reach host" in excinfo.value.message
    assert str(excinfo.value).startswith("call to script failed (2):")
    assert pool.in_use == 0
    events = [evt for evt in iter_events(settings) if evt["event"] == "script.error"]
    assert events and events[-1]["payload"]["code"] == 2


def test_non_zero_result_raises_script_error(bridge: ScriptBridge, script_package) -> None:
    script_package.add("exitcode", "def handler(args, config):\n    return 4\n")
    with pytest.raises(ScriptError) as excinfo:
        bridge.invoke(["adminctl exitcode"], {}, "exitcode", True)
    assert excinfo.value.code == 4


def test_async_handlers_are_awaited(bridge: ScriptBridge, script_package, settings: RuntimeSettings) -> None:
    module_path = script_package.add(
        "asyncscript",
        """
        import asyncio

        from adminctl.runtime import current_context

        results = []

        async def handler(args, config):
            await asyncio.sleep(0)
            results.append((args, current_context().globals["variables"]))
            return 0
        """,
    )
    bridge.invoke(["adminctl asyncscript", "q"], {}, "asyncscript", True)
    module = __import__(module_path, fromlist=["results"])
    assert module.results == [(["q"], {"ENV": "test"})]
    assert any(evt["event"] == "script.call" for evt in iter_events(settings))


def test_short_help_is_formatted_by_the_bridge(bridge: ScriptBridge, pool: ContextPool) -> None:
    out = io.StringIO()
    bridge.print_help("stat", "stat", True, full=False, description="Show statistics", config={}, out=out)
    bridge.print_help("bare", "bare", True, full=False, description=None, config={}, out=out)
    lines = out.getvalue().splitlines()
    assert lines[0] == f"  {'stat':<18} {'Show statistics':<60}"
    assert lines[1].split() == ["bare", "no", "description"]
    assert pool.acquired == 0


def test_full_help_runs_handler_with_help_flag(bridge: ScriptBridge, script_package) -> None:
    module_path = script_package.add("helpful", RECORDER)
    bridge.print_help("helpful", "helpful", True, full=True, description=None, config={"a": 1}, out=io.StringIO())
    module = __import__(module_path, fromlist=["calls"])
    assert module.calls == [(["--help"], {"a": 1})]


def test_full_help_failures_are_reported(bridge: ScriptBridge, capsys: pytest.CaptureFixture[str]) -> None:
    bridge.print_help("ghost", "ghost", True, full=True, description=None, config={}, out=io.StringIO())
    assert "cannot show help for ghost" in capsys.readouterr().err
