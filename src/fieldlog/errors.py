# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""fieldlog exception hierarchy.

All fieldlog-specific errors inherit from FieldLogError, allowing callers
to catch the base class for any fieldlog failure or specific subclasses
for targeted handling.
"""

from __future__ import annotations

from typing import Any


class FieldLogError(Exception):
    """Base exception for all fieldlog errors."""


class HandlerError(FieldLogError):
    """A registered handler raised while being notified of a log call.

    The original exception is available as ``__cause__`` (and ``error``).
    """

    def __init__(self, message: str, *, handler: Any = None, severity: int = 0, shape: int = 0) -> None:
        super().__init__(message)
        self.handler = handler
        self.severity = severity
        self.shape = shape

    @property
    def error(self) -> BaseException | None:
        return self.__cause__


class ReentrantLogError(FieldLogError):
    """A thread tried to log through a logger whose lock it already holds.

    Raised when a handler calls back into the logger that is dispatching to it.
    """
