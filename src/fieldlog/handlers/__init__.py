# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Handler contract: sinks notified synchronously with every emitted call.

Usage:
    from fieldlog.handlers.slack import SlackHandler

    logger.add_handler(SlackHandler(token, channel="#ops"))

Handlers run on the calling thread while the logger's lock is held, so they
must return promptly and must not log through the logger notifying them.
Failures are raised; the logger applies its HandlerErrorPolicy.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from ..fields import Fields, Shape
from ..levels import Severity

if TYPE_CHECKING:
    from ..logger import Logger


class Handler(Protocol):
    """Handler protocol for log call fan-out."""

    def print_msg(self, shape: Shape, logger: Logger, severity: Severity, fields: Fields) -> None: ...


@dataclass(frozen=True, slots=True)
class HandledCall:
    shape: Shape
    severity: Severity
    fields: Fields


class NullHandler:
    """No-op handler."""

    def print_msg(self, shape: Shape, logger: Logger, severity: Severity, fields: Fields) -> None:
        pass


class ListHandler:
    """In-memory handler. Captures every notification in order."""

    def __init__(self) -> None:
        self.calls: list[HandledCall] = []
        self._lock = threading.Lock()

    def print_msg(self, shape: Shape, logger: Logger, severity: Severity, fields: Fields) -> None:
        with self._lock:
            self.calls.append(HandledCall(shape=shape, severity=severity, fields=fields))

    def clear(self) -> None:
        with self._lock:
            self.calls.clear()
