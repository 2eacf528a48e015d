"""argparse helpers that report errors instead of exiting the process."""

from __future__ import annotations

import argparse
from typing import NoReturn


class OptionParseError(ValueError):
    pass


class CommandArgumentParser(argparse.ArgumentParser):
    """ArgumentParser raising :class:`OptionParseError` on bad input."""

    def __init__(self, *args, **kwargs) -> None:
        kwargs.setdefault("add_help", False)
        kwargs.setdefault("allow_abbrev", False)
        super().__init__(*args, **kwargs)

    def error(self, message: str) -> NoReturn:
        raise OptionParseError(message)
