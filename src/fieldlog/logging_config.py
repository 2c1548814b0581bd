# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Diagnostics channel for fieldlog itself (handler failures, webhook posts).

fieldlog modules log through stdlib ``logging.getLogger(__name__)``. This
module routes the ``fieldlog`` logger tree through a structlog
ProcessorFormatter: ConsoleRenderer for terminals, JSONRenderer for
machine collection. Leaf module — no fieldlog imports.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

DIAGNOSTICS_LOGGER = "fieldlog"


def configure(*, json_output: bool = False, level: str = "WARNING", stream: TextIO | None = None) -> logging.Logger:
    """Attach one structlog-formatted handler to the ``fieldlog`` logger.

    Args:
        json_output: True for JSON lines, False for human-readable console output.
        level: Diagnostics level (default WARNING; unknown names fall back to WARNING).
        stream: Destination (default: sys.stderr at call time).

    Repeated calls replace the previous handler instead of stacking.
    """
    pre_chain: list = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=pre_chain,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(formatter)

    diag = logging.getLogger(DIAGNOSTICS_LOGGER)
    diag.handlers.clear()
    diag.addHandler(handler)
    diag.setLevel(getattr(logging, level.upper(), logging.WARNING))
    diag.propagate = False
    return diag
