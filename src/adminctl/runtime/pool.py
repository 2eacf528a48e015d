"""Pooled execution contexts that run script handlers."""

from __future__ import annotations

import asyncio
import inspect
import threading
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, Mapping

RUNTIME_ERROR = 2

ErrorCallback = Callable[["ExecutionContext", int, str], None]

_CURRENT: ContextVar["ExecutionContext | None"] = ContextVar("adminctl_execution_context", default=None)


def current_context() -> "ExecutionContext":
    """Return the execution context of the running script handler."""

    context = _CURRENT.get()
    if context is None:
        raise RuntimeError("No script execution context is active")
    return context


def _completion_code(result: Any) -> tuple[int, str]:
    if result is None or result is True:
        return 0, ""
    if result is False:
        return 1, "handler reported failure"
    if isinstance(result, int):
        return result, f"handler returned {result}" if result else ""
    return 0, ""


def _exit_status(status: Any) -> tuple[int, str]:
    if status is None or status == 0:
        return 0, ""
    code = status if isinstance(status, int) and not isinstance(status, bool) else 1
    return code, f"script exited with status {status}"


def _describe(exc: BaseException, *, verbose: bool) -> str:
    if verbose:
        return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip()
    return f"{type(exc).__name__}: {exc}"


class ExecutionContext:
    """One reusable slot of the script runtime.

    ``frame`` holds the state of the call in progress and is emptied when the
    context goes back to its pool; ``data`` carries the caller's per-call
    record (the bridge stores its invocation context there).
    """

    def __init__(self, pool: "ContextPool", ident: int) -> None:
        self.pool = pool
        self.ident = ident
        self.frame: dict[str, Any] = {}
        self.data: Any = None

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self.pool.loop

    @property
    def globals(self) -> dict[str, Any]:
        return self.pool.globals

    def call(self, handler: Callable[..., Any], *args: Any, on_error: ErrorCallback) -> int:
        """Run ``handler`` to completion and return its completion code.

        Coroutine handlers run on the pool's event loop and may suspend while
        they await I/O. ``sys.exit()`` inside a handler ends only the handler, its
        status becoming the completion code. A non-zero code is passed to
        ``on_error`` before return.
        """

        self.frame["handler"] = handler
        self.frame["args"] = args
        token = _CURRENT.set(self)
        try:
            result = handler(*args)
            if inspect.isawaitable(result):
                result = self.loop.run_until_complete(result)
        except SystemExit as exc:
            code, message = _exit_status(exc.code)
        except Exception as exc:
            code, message = RUNTIME_ERROR, _describe(exc, verbose=bool(self.globals.get("verbose")))
        else:
            code, message = _completion_code(result)
        finally:
            _CURRENT.reset(token)
        self.frame["code"] = code
        if code != 0:
            on_error(self, code, message)
        return code

    def reset(self) -> None:
        self.frame.clear()
        self.data = None


class ContextPool:
    """Execution contexts shared by every script call made for one config."""

    def __init__(self, key: int, *, globals_: Mapping[str, Any] | None = None) -> None:
        self.key = key
        self.globals: dict[str, Any] = dict(globals_ or {})
        self._free: list[ExecutionContext] = []
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._created = 0
        self.acquired = 0
        self.released = 0

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        return self._loop

    @property
    def in_use(self) -> int:
        return self.acquired - self.released

    def acquire(self) -> ExecutionContext:
        with self._lock:
            if self._free:
                context = self._free.pop()
            else:
                self._created += 1
                context = ExecutionContext(self, self._created)
            self.acquired += 1
        return context

    def release(self, context: ExecutionContext) -> None:
        if context.pool is not self:
            raise ValueError("Execution context belongs to another pool")
        context.reset()
        with self._lock:
            self._free.append(context)
            self.released += 1

    @contextmanager
    def context(self) -> Iterator[ExecutionContext]:
        context = self.acquire()
        try:
            yield context
        finally:
            self.release(context)

    def close(self) -> None:
        with self._lock:
            self._free.clear()
        if self._loop is not None and not self._loop.is_closed():
            self._loop.close()
        self._loop = None


_POOLS: dict[int, tuple[object, ContextPool]] = {}


def pool_for_config(config: object, *, globals_: Mapping[str, Any] | None = None) -> ContextPool:
    """Return the pool bound to ``config``, creating it on first use.

    Pools are keyed by the identity of the configuration object; the object is
    kept referenced so that its identity cannot be reused while the pool lives.
    """

    key = id(config)
    entry = _POOLS.get(key)
    if entry is not None and entry[0] is config:
        pool = entry[1]
        if globals_:
            pool.globals.update(globals_)
        return pool
    pool = ContextPool(key, globals_=globals_)
    _POOLS[key] = (config, pool)
    return pool


def close_pools() -> None:
    for _, pool in list(_POOLS.values()):
        pool.close()
    _POOLS.clear()
