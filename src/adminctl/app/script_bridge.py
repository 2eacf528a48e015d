"""Invocation of script-sourced commands on the pooled script runtime."""

from __future__ import annotations

import importlib
import sys
import time
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Callable, Mapping, Sequence, TextIO

from adminctl.runtime import ContextPool, ExecutionContext, marshal_args, pool_for_config, to_runtime
from adminctl.settings import RuntimeSettings
from adminctl.utils.telemetry import record_structured_event

PoolFactory = Callable[..., ContextPool]


class ScriptFailure(RuntimeError):
    """Base class for failures of a script-sourced command."""


class ScriptLoadError(ScriptFailure):
    pass


class ScriptHandlerTypeError(ScriptFailure):
    def __init__(self, expression: str, found_type: str) -> None:
        super().__init__(f"script {expression} must provide a function and not {found_type}")
        self.expression = expression
        self.found_type = found_type


class ScriptError(ScriptFailure):
    def __init__(self, code: int, message: str, *, expression: str = "") -> None:
        super().__init__(f"call to script failed ({code}): {message}")
        self.code = code
        self.message = message
        self.expression = expression


@dataclass
class InvocationContext:
    """Arguments and configuration handed to one script call."""

    expression: str
    args: list[str]
    config: Any
    code: int = 0
    message: str | None = None

    @property
    def failed(self) -> bool:
        return self.code != 0


def _is_table(value: Any) -> bool:
    return isinstance(value, (ModuleType, Mapping))


def _table_field(table: Any, key: str) -> Any:
    if isinstance(table, Mapping):
        return table.get(key)
    return getattr(table, key, None)


def _type_name(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, ModuleType):
        return "module"
    return type(value).__name__


class ScriptBridge:
    """Runs script handlers as ``handler(args, config)`` on pooled contexts."""

    def __init__(
        self,
        settings: RuntimeSettings,
        *,
        globals_: Mapping[str, Any] | None = None,
        pool_factory: PoolFactory = pool_for_config,
        importer: Callable[[str], ModuleType] = importlib.import_module,
    ) -> None:
        self._settings = settings
        self._globals = dict(globals_ or {})
        self._pool_factory = pool_factory
        self._importer = importer

    def import_expression(self, module_path: str, as_subcommand: bool) -> str:
        if as_subcommand:
            return f"{self._settings.script_namespace}.{module_path}"
        return module_path

    def load_handler(self, module_path: str, as_subcommand: bool) -> Callable[..., Any]:
        expression = self.import_expression(module_path, as_subcommand)
        target = self._evaluate(expression)
        if _is_table(target):
            handler = _table_field(target, "handler")
        elif callable(target):
            handler = target
        else:
            raise ScriptLoadError(
                f"cannot execute script {expression}: it returned {_type_name(target)}, "
                "expected a table or a function"
            )
        if not callable(handler) or isinstance(handler, type):
            raise ScriptHandlerTypeError(expression, _type_name(handler))
        return handler

    def _evaluate(self, expression: str) -> Any:
        module_name, _, attribute = expression.partition(":")
        try:
            target: Any = self._importer(module_name)
        except Exception as exc:
            raise ScriptLoadError(f"cannot execute script {expression}: {exc}") from exc
        for part in filter(None, attribute.split(".")):
            try:
                target = getattr(target, part)
            except AttributeError as exc:
                raise ScriptLoadError(f"cannot execute script {expression}: {exc}") from exc
        return target

    def invoke(
        self,
        argv: Sequence[str],
        config: Mapping[str, Any],
        module_path: str,
        as_subcommand: bool,
    ) -> None:
        pool = self._pool_factory(config, globals_=self._globals)
        expression = self.import_expression(module_path, as_subcommand)
        with pool.context() as context:
            try:
                handler = self.load_handler(module_path, as_subcommand)
            except ScriptFailure as exc:
                record_structured_event(
                    self._settings,
                    "script.error",
                    payload={"script": expression, "stage": "load", "message": str(exc)},
                    level="error",
                    status="fail",
                    component="script-bridge",
                )
                raise
            invocation = InvocationContext(
                expression=expression,
                args=marshal_args(argv),
                config=to_runtime(config),
            )
            context.data = invocation
            started = time.perf_counter()
            code = context.call(handler, invocation.args, invocation.config, on_error=self._on_error)
            duration_ms = (time.perf_counter() - started) * 1000
            if code != 0:
                raise ScriptError(code, invocation.message or "", expression=expression)
            record_structured_event(
                self._settings,
                "script.call",
                payload={"script": expression, "args": len(invocation.args)},
                status="ok",
                component="script-bridge",
                duration_ms=duration_ms,
            )

    def _on_error(self, context: ExecutionContext, code: int, message: str) -> None:
        invocation: InvocationContext = context.data
        invocation.code = code
        invocation.message = message
        record_structured_event(
            self._settings,
            "script.error",
            payload={"script": invocation.expression, "stage": "call", "code": code, "message": message},
            level="error",
            status="fail",
            component="script-bridge",
        )

    def print_help(
        self,
        name: str,
        module_path: str,
        as_subcommand: bool,
        *,
        full: bool,
        description: str | None,
        config: Mapping[str, Any],
        out: TextIO,
    ) -> None:
        if not full:
            out.write(f"  {name:<18} {(description or 'no description'):<60}\n")
            return
        try:
            self.invoke([name, "--help"], config, module_path, as_subcommand)
        except ScriptFailure as exc:
            print(f"cannot show help for {name}: {exc}", file=sys.stderr)
