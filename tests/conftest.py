# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import fieldlog  # noqa: F401
except ImportError:
    raise ImportError("fieldlog is not installed. Run: pip install -e '.[dev]'") from None

import io
import logging
from datetime import datetime

import pytest
import structlog

FIXED_TIME = datetime(2026, 3, 14, 15, 9, 26, 535897)


@pytest.fixture(autouse=True)
def _reset_state():
    """Reset the process-wide logger and diagnostics logging around each test."""
    import fieldlog

    diag = logging.getLogger("fieldlog")
    old_handlers = diag.handlers[:]
    old_level = diag.level
    old_propagate = diag.propagate
    fieldlog._reset_for_testing()
    yield
    fieldlog._reset_for_testing()
    diag.handlers = old_handlers
    diag.setLevel(old_level)
    diag.propagate = old_propagate
    structlog.reset_defaults()


@pytest.fixture
def buf():
    return io.StringIO()


@pytest.fixture
def exits():
    """Records exit codes instead of terminating the test process."""
    return []


@pytest.fixture
def make_logger(buf, exits):
    """Logger writing every level to ``buf``, fixed clock, recorded exits."""
    from fieldlog import Logger, LoggerConfig

    def _make(config=None, **kwargs):
        kwargs.setdefault("clock", lambda: FIXED_TIME)
        kwargs.setdefault("exit_func", exits.append)
        logger = Logger(config or LoggerConfig(), **kwargs)
        logger.set_output(buf)
        return logger

    return _make
