"""Execution runtime for script-sourced commands."""

from __future__ import annotations

from .pool import (
    RUNTIME_ERROR,
    ContextPool,
    ExecutionContext,
    close_pools,
    current_context,
    pool_for_config,
)
from .structured import marshal_args, to_runtime

__all__ = [
    "RUNTIME_ERROR",
    "ContextPool",
    "ExecutionContext",
    "close_pools",
    "current_context",
    "marshal_args",
    "pool_for_config",
    "to_runtime",
]
