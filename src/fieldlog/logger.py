# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Leveled, structured logger with synchronous handler fan-out.

One call = gate -> capture -> build Fields -> render -> notify handlers,
all under a single non-reentrant lock. Two calls never interleave their
output, and every handler sees the exact Fields object that was rendered.

Design choices:

- **Gate first** — a gated-out call touches nothing: no capture, no render,
  no handler.
- **Lock-free reads** — ``get_verbosity()``/``get_flags()`` read a single
  attribute, so handlers can consult the logger while it holds the lock.
- **Explicit error policy** — handler failures are discarded (with a
  diagnostic log line), collected, or propagated; see HandlerErrorPolicy.
- **Fatal** — ``fatal*`` methods call ``exit_func(1)`` after dispatch, even
  if a handler failed.
"""

from __future__ import annotations

import contextlib
import logging
import sys
import threading
from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import TextIO

from .caller import CallerResolver, Clock, StackCallerResolver, format_timestamp
from .config import Flag, HandlerErrorPolicy, LoggerConfig
from .errors import HandlerError, ReentrantLogError
from .fields import CALLER_KEY, LEVEL_KEY, MSG_KEY, TS_KEY, Field, Fields, Shape, Value, build_message
from .formatter import render
from .handlers import Handler
from .levels import SEVERITIES, Severity

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _LevelOutput:
    target: TextIO | None = None  # None: sys.stdout/sys.stderr looked up at write time
    color: bool = True


def _default_target(severity: Severity) -> TextIO:
    if severity <= Severity.ERROR:
        return sys.stderr
    return sys.stdout


def _check_level(severity: int) -> Severity:
    try:
        level = Severity(severity)
    except ValueError:
        raise ValueError(f"not a log level: {severity!r}") from None
    if level == Severity.NONE:
        raise ValueError("NONE is not a log level")
    return level


class Logger:
    """Leveled logger owning per-level outputs, flags, and handlers."""

    def __init__(
        self,
        config: LoggerConfig | None = None,
        *,
        caller_resolver: CallerResolver | None = None,
        clock: Clock | None = None,
        exit_func: Callable[[int], object] | None = None,
    ) -> None:
        config = config or LoggerConfig()
        self._verbosity: Severity = config.verbosity
        self._flags: Flag = config.flags
        self._time_format: str = config.time_format
        self._log_format: bool = config.log_format
        self._policy: HandlerErrorPolicy = config.handler_error_policy
        self._outputs: dict[Severity, _LevelOutput] = {s: _LevelOutput(color=config.color) for s in SEVERITIES}
        self._handlers: list[Handler] = []
        self._errors: deque[HandlerError] = deque(maxlen=config.max_collected_errors)

        self._caller: CallerResolver = caller_resolver or StackCallerResolver()
        self._clock: Clock = clock or datetime.now
        self._exit: Callable[[int], object] = exit_func or sys.exit

        self._lock = threading.Lock()
        self._owner: int | None = None

    def __repr__(self) -> str:
        return f"<Logger verbosity={self._verbosity.name} flags={int(self._flags)} handlers={len(self._handlers)}>"

    @contextlib.contextmanager
    def _locked(self) -> Iterator[None]:
        me = threading.get_ident()
        if self._owner == me:
            raise ReentrantLogError("logger re-entered from its own dispatch (handlers must not log through it)")
        with self._lock:
            self._owner = me
            try:
                yield
            finally:
                self._owner = None

    # ── Configuration ────────────────────────────────────────────

    def set_verbosity(self, verbosity: int) -> None:
        """Set the threshold. Values outside [NONE, DEBUG] are clamped."""
        with self._locked():
            self._verbosity = Severity.clamp(verbosity)

    def get_verbosity(self) -> Severity:
        return self._verbosity

    def is_enabled(self, severity: int) -> bool:
        return Severity(severity).enabled_at(self._verbosity)

    def set_flags(self, flags: int) -> None:
        with self._locked():
            self._flags = Flag(flags)

    def get_flags(self) -> Flag:
        return self._flags

    def set_time_format(self, time_format: str) -> None:
        """strftime pattern for the ``ts`` field."""
        if not time_format:
            raise ValueError("time_format must be a non-empty strftime pattern")
        with self._locked():
            self._time_format = time_format

    def get_time_format(self) -> str:
        return self._time_format

    def enable_log_format(self) -> None:
        with self._locked():
            self._log_format = True

    def disable_log_format(self) -> None:
        """Write the raw message only: no prefix, no extras, no color."""
        with self._locked():
            self._log_format = False

    def set_output(self, target: TextIO) -> None:
        """Send every level to *target*."""
        with self._locked():
            for out in self._outputs.values():
                out.target = target

    def set_level_output(self, severity: int, target: TextIO) -> None:
        level = _check_level(severity)
        with self._locked():
            self._outputs[level].target = target

    def enable_color(self) -> None:
        with self._locked():
            for out in self._outputs.values():
                out.color = True

    def disable_color(self) -> None:
        with self._locked():
            for out in self._outputs.values():
                out.color = False

    def enable_level_color(self, severity: int) -> None:
        level = _check_level(severity)
        with self._locked():
            self._outputs[level].color = True

    def disable_level_color(self, severity: int) -> None:
        level = _check_level(severity)
        with self._locked():
            self._outputs[level].color = False

    # ── Handlers ─────────────────────────────────────────────────

    def add_handler(self, handler: Handler) -> None:
        """Append *handler*; handlers are notified in registration order."""
        if not callable(getattr(handler, "print_msg", None)):
            raise TypeError(f"{handler!r} does not implement print_msg()")
        with self._locked():
            self._handlers.append(handler)

    @property
    def handlers(self) -> tuple[Handler, ...]:
        return tuple(self._handlers)

    def set_handler_error_policy(self, policy: HandlerErrorPolicy | str) -> None:
        with self._locked():
            self._policy = HandlerErrorPolicy(policy)

    def handler_errors(self) -> list[HandlerError]:
        """Snapshot of failures kept under the COLLECT policy."""
        return list(self._errors)

    def drain_handler_errors(self) -> list[HandlerError]:
        with self._locked():
            errors = list(self._errors)
            self._errors.clear()
        return errors

    # ── Core ─────────────────────────────────────────────────────

    def log(self, shape: Shape, severity: int, *args: object, fmt: str = "") -> None:
        """Gate, build, render and dispatch one call of *shape* at *severity*."""
        severity = Severity(severity)
        failures: list[HandlerError] = []
        with self._locked():
            if not severity.enabled_at(self._verbosity):
                return
            fields = self._build_fields(shape, severity, args, fmt)
            self._write(severity, fields)
            failures = self._dispatch(shape, severity, fields)
            policy = self._policy
        if failures:
            self._handle_failures(policy, failures)

    def _build_fields(self, shape: Shape, severity: Severity, args: tuple[object, ...], fmt: str) -> Fields:
        prefix: list[Field] = []
        if self._flags & Flag.TIMESTAMP:
            prefix.append(Field(TS_KEY, Value(format_timestamp(self._clock(), self._time_format))))
        if self._flags & Flag.CALLER:
            prefix.append(Field(CALLER_KEY, Value(self._caller())))
        prefix.append(Field(LEVEL_KEY, Value(severity.label)))

        msg, extras = build_message(shape, args, fmt)
        return Fields(prefix=tuple(prefix), payload=(Field(MSG_KEY, Value(msg)), *extras))

    def _write(self, severity: Severity, fields: Fields) -> None:
        out = self._outputs[severity]
        line = render(
            fields,
            severity,
            log_format=self._log_format,
            full_structured=bool(self._flags & Flag.FULL_STRUCTURED),
            color=out.color,
        )
        target = out.target or _default_target(severity)
        target.write(line)
        flush = getattr(target, "flush", None)
        if flush is not None:
            flush()

    def _dispatch(self, shape: Shape, severity: Severity, fields: Fields) -> list[HandlerError]:
        failures: list[HandlerError] = []
        for handler in self._handlers:
            try:
                handler.print_msg(shape, self, severity, fields)
            except Exception as exc:
                err = HandlerError(
                    f"handler {handler!r} failed on {severity.label} call: {exc}",
                    handler=handler,
                    severity=severity,
                    shape=shape,
                )
                err.__cause__ = exc
                failures.append(err)
        return failures

    def _handle_failures(self, policy: HandlerErrorPolicy, failures: list[HandlerError]) -> None:
        if policy is HandlerErrorPolicy.PROPAGATE:
            raise failures[0]
        if policy is HandlerErrorPolicy.COLLECT:
            self._errors.extend(failures)
            return
        for err in failures:
            logger.warning("log handler failed: %s", err, exc_info=err.__cause__)

    def _fatal(self, shape: Shape, *args: object, fmt: str = "") -> None:
        try:
            self.log(shape, Severity.FATAL, *args, fmt=fmt)
        finally:
            self._exit(1)

    # ── Debug ────────────────────────────────────────────────────

    def debug(self, *args: object) -> None:
        self.log(Shape.PRINT, Severity.DEBUG, *args)

    def debugf(self, fmt: str, *args: object) -> None:
        self.log(Shape.PRINTF, Severity.DEBUG, *args, fmt=fmt)

    def debugln(self, *args: object) -> None:
        self.log(Shape.PRINTLN, Severity.DEBUG, *args)

    def debugw(self, msg: str, *keyvalues: object) -> None:
        self.log(Shape.PRINTW, Severity.DEBUG, msg, *keyvalues)

    # ── Info ─────────────────────────────────────────────────────

    def info(self, *args: object) -> None:
        self.log(Shape.PRINT, Severity.INFO, *args)

    def infof(self, fmt: str, *args: object) -> None:
        self.log(Shape.PRINTF, Severity.INFO, *args, fmt=fmt)

    def infoln(self, *args: object) -> None:
        self.log(Shape.PRINTLN, Severity.INFO, *args)

    def infow(self, msg: str, *keyvalues: object) -> None:
        self.log(Shape.PRINTW, Severity.INFO, msg, *keyvalues)

    # ── Warn ─────────────────────────────────────────────────────

    def warn(self, *args: object) -> None:
        self.log(Shape.PRINT, Severity.WARN, *args)

    def warnf(self, fmt: str, *args: object) -> None:
        self.log(Shape.PRINTF, Severity.WARN, *args, fmt=fmt)

    def warnln(self, *args: object) -> None:
        self.log(Shape.PRINTLN, Severity.WARN, *args)

    def warnw(self, msg: str, *keyvalues: object) -> None:
        self.log(Shape.PRINTW, Severity.WARN, msg, *keyvalues)

    # ── Error ────────────────────────────────────────────────────

    def error(self, *args: object) -> None:
        self.log(Shape.PRINT, Severity.ERROR, *args)

    def errorf(self, fmt: str, *args: object) -> None:
        self.log(Shape.PRINTF, Severity.ERROR, *args, fmt=fmt)

    def errorln(self, *args: object) -> None:
        self.log(Shape.PRINTLN, Severity.ERROR, *args)

    def errorw(self, msg: str, *keyvalues: object) -> None:
        self.log(Shape.PRINTW, Severity.ERROR, msg, *keyvalues)

    # ── Fatal (log, dispatch, then exit_func(1)) ─────────────────

    def fatal(self, *args: object) -> None:
        self._fatal(Shape.PRINT, *args)

    def fatalf(self, fmt: str, *args: object) -> None:
        self._fatal(Shape.PRINTF, *args, fmt=fmt)

    def fatalln(self, *args: object) -> None:
        self._fatal(Shape.PRINTLN, *args)

    def fatalw(self, msg: str, *keyvalues: object) -> None:
        self._fatal(Shape.PRINTW, msg, *keyvalues)
