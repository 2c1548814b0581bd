# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""fieldlog: leveled, structured logging with synchronous handler fan-out.

Usage:
    import fieldlog

    fieldlog.configure(fieldlog.LoggerConfig(verbosity=fieldlog.DEBUG))
    fieldlog.info("listening on ", port)
    fieldlog.warnw("slow request", "path", "/api", "ms", 812.5)

The module-level functions forward to one process-wide Logger, created by
``configure()`` (or lazily, with defaults, on first use). Instance loggers
are plain ``Logger(...)`` objects.
"""

from __future__ import annotations

import threading
from typing import TextIO

from .config import DEFAULT_TIME_FORMAT, Flag, HandlerErrorPolicy, LoggerConfig
from .errors import FieldLogError, HandlerError, ReentrantLogError
from .fields import Field, Fields, Kind, Shape, Value
from .handlers import Handler, ListHandler, NullHandler
from .levels import Severity
from .logger import Logger

__version__ = "0.3.0"

NONE = Severity.NONE
FATAL = Severity.FATAL
ERROR = Severity.ERROR
WARN = Severity.WARN
INFO = Severity.INFO
DEBUG = Severity.DEBUG

TIMESTAMP = Flag.TIMESTAMP
CALLER = Flag.CALLER
FULL_STRUCTURED = Flag.FULL_STRUCTURED

__all__ = [
    "CALLER",
    "DEBUG",
    "DEFAULT_TIME_FORMAT",
    "ERROR",
    "FATAL",
    "FULL_STRUCTURED",
    "INFO",
    "NONE",
    "TIMESTAMP",
    "WARN",
    "Field",
    "FieldLogError",
    "Fields",
    "Flag",
    "Handler",
    "HandlerError",
    "HandlerErrorPolicy",
    "Kind",
    "ListHandler",
    "Logger",
    "LoggerConfig",
    "NullHandler",
    "ReentrantLogError",
    "Severity",
    "Shape",
    "Value",
    "configure",
    "get_logger",
]

_default: Logger | None = None
_default_lock = threading.Lock()


def configure(config: LoggerConfig | None = None, **kwargs) -> Logger:
    """Create the process-wide logger.

    Idempotent: subsequent calls return the existing logger unchanged;
    use its setters to reconfigure. *kwargs* go to the Logger constructor
    (caller_resolver, clock, exit_func).
    """
    global _default
    with _default_lock:
        if _default is None:
            _default = Logger(config, **kwargs)
        return _default


def get_logger() -> Logger:
    """The process-wide logger, created with defaults on first use."""
    if _default is not None:
        return _default
    return configure()


def _reset_for_testing() -> None:
    """Drop the process-wide logger for test isolation."""
    global _default
    with _default_lock:
        _default = None


# ── Configuration forwarding ─────────────────────────────────────


def set_verbosity(verbosity: int) -> None:
    get_logger().set_verbosity(verbosity)


def get_verbosity() -> Severity:
    return get_logger().get_verbosity()


def set_flags(flags: int) -> None:
    get_logger().set_flags(flags)


def get_flags() -> Flag:
    return get_logger().get_flags()


def set_time_format(time_format: str) -> None:
    get_logger().set_time_format(time_format)


def enable_log_format() -> None:
    get_logger().enable_log_format()


def disable_log_format() -> None:
    get_logger().disable_log_format()


def set_output(target: TextIO) -> None:
    get_logger().set_output(target)


def set_level_output(severity: int, target: TextIO) -> None:
    get_logger().set_level_output(severity, target)


def enable_color() -> None:
    get_logger().enable_color()


def disable_color() -> None:
    get_logger().disable_color()


def enable_level_color(severity: int) -> None:
    get_logger().enable_level_color(severity)


def disable_level_color(severity: int) -> None:
    get_logger().disable_level_color(severity)


def add_handler(handler: Handler) -> None:
    get_logger().add_handler(handler)


# ── Log forwarding ───────────────────────────────────────────────


def debug(*args: object) -> None:
    get_logger().debug(*args)


def debugf(fmt: str, *args: object) -> None:
    get_logger().debugf(fmt, *args)


def debugln(*args: object) -> None:
    get_logger().debugln(*args)


def debugw(msg: str, *keyvalues: object) -> None:
    get_logger().debugw(msg, *keyvalues)


def info(*args: object) -> None:
    get_logger().info(*args)


def infof(fmt: str, *args: object) -> None:
    get_logger().infof(fmt, *args)


def infoln(*args: object) -> None:
    get_logger().infoln(*args)


def infow(msg: str, *keyvalues: object) -> None:
    get_logger().infow(msg, *keyvalues)


def warn(*args: object) -> None:
    get_logger().warn(*args)


def warnf(fmt: str, *args: object) -> None:
    get_logger().warnf(fmt, *args)


def warnln(*args: object) -> None:
    get_logger().warnln(*args)


def warnw(msg: str, *keyvalues: object) -> None:
    get_logger().warnw(msg, *keyvalues)


def error(*args: object) -> None:
    get_logger().error(*args)


def errorf(fmt: str, *args: object) -> None:
    get_logger().errorf(fmt, *args)


def errorln(*args: object) -> None:
    get_logger().errorln(*args)


def errorw(msg: str, *keyvalues: object) -> None:
    get_logger().errorw(msg, *keyvalues)


def fatal(*args: object) -> None:
    get_logger().fatal(*args)


def fatalf(fmt: str, *args: object) -> None:
    get_logger().fatalf(fmt, *args)


def fatalln(*args: object) -> None:
    get_logger().fatalln(*args)


def fatalw(msg: str, *keyvalues: object) -> None:
    get_logger().fatalw(msg, *keyvalues)
