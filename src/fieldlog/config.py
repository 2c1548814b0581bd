# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Logger configuration: output flags, handler error policy, LoggerConfig."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntFlag

from .levels import Severity

DEFAULT_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


class Flag(IntFlag):
    """Prefix/rendering flags. Combine with ``|``."""

    TIMESTAMP = 1
    CALLER = 2
    FULL_STRUCTURED = 4


class HandlerErrorPolicy(Enum):
    """What the logger does when a handler raises."""

    DISCARD = "discard"  # report on the fieldlog diagnostic logger, then drop
    COLLECT = "collect"  # keep for handler_errors() / drain_handler_errors()
    PROPAGATE = "propagate"  # raise the first failure after dispatch completes


@dataclass(frozen=True, slots=True)
class LoggerConfig:
    """Immutable initial configuration for a Logger."""

    verbosity: Severity = Severity.INFO
    flags: Flag = Flag(0)
    time_format: str = DEFAULT_TIME_FORMAT
    log_format: bool = True  # False: raw message only, no prefix, no color
    color: bool = True
    handler_error_policy: HandlerErrorPolicy = HandlerErrorPolicy.DISCARD
    max_collected_errors: int = 100

    def __post_init__(self) -> None:
        # Frozen: normalize through object.__setattr__
        object.__setattr__(self, "verbosity", Severity.clamp(self.verbosity))
        object.__setattr__(self, "flags", Flag(self.flags))
        if not self.time_format:
            raise ValueError("time_format must be a non-empty strftime pattern")
        if not isinstance(self.handler_error_policy, HandlerErrorPolicy):
            object.__setattr__(self, "handler_error_policy", HandlerErrorPolicy(self.handler_error_policy))
        if self.max_collected_errors <= 0:
            raise ValueError(f"max_collected_errors must be > 0, got {self.max_collected_errors}")
