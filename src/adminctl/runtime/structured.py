"""Conversion of host configuration documents into script-side values."""

from __future__ import annotations

import datetime as _dt
from typing import Any, Mapping, Sequence

SCALARS = (str, int, float, bool, type(None))


def to_runtime(value: Any) -> Any:
    """Copy a mapping/sequence/scalar document into plain script values.

    Mappings become ``dict`` (key order preserved, keys stringified), other
    sequences become ``list``; scalars pass through. Scripts receive a copy and
    cannot mutate the host's document.
    """

    if isinstance(value, SCALARS):
        return value
    if isinstance(value, Mapping):
        return {str(key): to_runtime(item) for key, item in value.items()}
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, (_dt.date, _dt.time)):
        return value.isoformat()
    if isinstance(value, (Sequence, set, frozenset)):
        return [to_runtime(item) for item in value]
    return str(value)


def marshal_args(argv: Sequence[str]) -> list[str]:
    """Forwarded script arguments: everything after the display name in argv[0]."""

    return [str(arg) for arg in list(argv)[1:]]
