# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Severity scale: NONE < FATAL < ERROR < WARN < INFO < DEBUG.

Leaf module — no fieldlog imports. A call at severity S is emitted iff
``S <= verbosity``; lower values are more severe.
"""

from __future__ import annotations

from enum import IntEnum


class Severity(IntEnum):
    NONE = 0
    FATAL = 1
    ERROR = 2
    WARN = 3
    INFO = 4
    DEBUG = 5

    @property
    def label(self) -> str:
        return _LABELS.get(self, "")

    @property
    def style(self) -> str:
        """rich style name used to emphasize message text."""
        return _STYLES.get(self, "")

    @classmethod
    def clamp(cls, value: int) -> Severity:
        """Clamp *value* into [NONE, DEBUG]. Never raises."""
        if value < cls.NONE:
            return cls.NONE
        if value > cls.DEBUG:
            return cls.DEBUG
        return cls(int(value))

    @classmethod
    def parse(cls, name: str) -> Severity:
        """Look up a severity by (case-insensitive) name."""
        key = name.strip().upper()
        key = _ALIASES.get(key, key)
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"unknown severity {name!r}") from None

    def enabled_at(self, verbosity: int) -> bool:
        """True if a call at this severity passes the *verbosity* gate."""
        return self != Severity.NONE and self <= verbosity


# Real severities, most severe first
SEVERITIES: tuple[Severity, ...] = (
    Severity.FATAL,
    Severity.ERROR,
    Severity.WARN,
    Severity.INFO,
    Severity.DEBUG,
)

_LABELS: dict[Severity, str] = {
    Severity.FATAL: "FATAL",
    Severity.ERROR: "ERROR",
    Severity.WARN: "WARN",
    Severity.INFO: "INFO",
    Severity.DEBUG: "DEBUG",
}

_STYLES: dict[Severity, str] = {
    Severity.FATAL: "magenta",
    Severity.ERROR: "red",
    Severity.WARN: "yellow",
    Severity.INFO: "green",
    Severity.DEBUG: "white",
}

_ALIASES = {"WARNING": "WARN", "CRITICAL": "FATAL", "OFF": "NONE"}
