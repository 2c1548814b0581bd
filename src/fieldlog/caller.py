# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Caller location and timestamp capture.

The logger never hard-codes a stack depth: the default resolver walks
outward until it leaves the fieldlog package (and any extra module
prefixes registered by wrapper libraries).
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Iterable
from datetime import datetime
from types import FrameType
from typing import Protocol

UNKNOWN_CALLER = "???:0:???"

_PACKAGE = __name__.partition(".")[0]


class CallerResolver(Protocol):
    """Returns the location of the user code that issued the log call."""

    def __call__(self) -> str: ...


def format_frame(frame: FrameType) -> str:
    """``file:line:function`` with the file reduced to its basename."""
    code = frame.f_code
    return f"{os.path.basename(code.co_filename)}:{frame.f_lineno}:{code.co_name}"


class StackCallerResolver:
    """Resolve the first frame outside of fieldlog (and *skip_modules*)."""

    __slots__ = ("_skip",)

    def __init__(self, skip_modules: Iterable[str] = ()) -> None:
        self._skip: tuple[str, ...] = (_PACKAGE, *skip_modules)

    def _is_internal(self, frame: FrameType) -> bool:
        name = frame.f_globals.get("__name__", "")
        return any(name == p or name.startswith(p + ".") for p in self._skip)

    def __call__(self) -> str:
        frame: FrameType | None = sys._getframe(1)
        while frame is not None and self._is_internal(frame):
            frame = frame.f_back
        if frame is None:
            return UNKNOWN_CALLER
        return format_frame(frame)


class FixedCallerResolver:
    """Always returns the same location. Useful for reproducible output."""

    __slots__ = ("location",)

    def __init__(self, location: str) -> None:
        self.location = location

    def __call__(self) -> str:
        return self.location


Clock = Callable[[], datetime]


def format_timestamp(moment: datetime, time_format: str) -> str:
    return moment.strftime(time_format)
