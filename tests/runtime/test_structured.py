from __future__ import annotations

import datetime as dt

from adminctl.runtime import marshal_args, to_runtime


def test_mappings_keep_key_order_and_are_copied() -> None:
    source = {"zeta": 1, "alpha": {"nested": [1, 2, {"deep": True}]}, "mid": None}
    converted = to_runtime(source)

    assert list(converted) == ["zeta", "alpha", "mid"]
    assert converted == source
    converted["alpha"]["nested"].append(3)
    assert source["alpha"]["nested"] == [1, 2, {"deep": True}]


def test_sequences_and_scalars() -> None:
    converted = to_runtime(
        {
            1: ("a", "b"),
            "when": dt.date(2024, 5, 1),
            "raw": b"bytes",
            "ratio": 0.5,
            "flag": False,
        }
    )
    assert converted == {
        "1": ["a", "b"],
        "when": "2024-05-01",
        "raw": "bytes",
        "ratio": 0.5,
        "flag": False,
    }


def test_marshal_args_drops_display_name() -> None:
    assert marshal_args(["adminctl stat", "-v", "file"]) == ["-v", "file"]
    assert marshal_args(["adminctl stat"]) == []
    assert marshal_args([]) == []
