# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Render Fields into one output line.

Three modes:

- **plain** — ``[ts ][caller ]LEVEL:  message k=v ...`` with severity emphasis.
- **fully structured** — ``ts=... caller=... level=LEVEL msg="..." k=v ...``.
- **unformatted** — the message text only, uncolored.

Every rendered line ends with exactly one newline.
"""

from __future__ import annotations

import functools
import re

from rich.color import ColorSystem
from rich.style import Style

from .fields import LEVEL_KEY, Field, Fields
from .levels import Severity

# Level label column: "DEBUG: ", "INFO:  "
LEVEL_COLUMN_WIDTH = 7

_ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]")
_NEEDS_QUOTING_RE = re.compile(r'[\s"=]')


def strip_ansi(text: str) -> str:
    return _ANSI_ESCAPE_RE.sub("", text)


@functools.lru_cache(maxsize=32)
def _style(name: str) -> Style:
    return Style.parse(name)


def emphasize(text: str, style: str, *, enabled: bool = True) -> str:
    """Wrap *text* in ANSI codes for *style*; identity when disabled."""
    if not enabled or not style or not text:
        return text
    return _style(style).render(text, color_system=ColorSystem.STANDARD)


def needs_quoting(text: str) -> bool:
    return not text or _NEEDS_QUOTING_RE.search(text) is not None


def quote(text: str) -> str:
    """Double-quote *text*, escaping backslashes and quotes."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def quote_if_needed(text: str) -> str:
    return quote(text) if needs_quoting(text) else text


def level_label(severity: Severity) -> str:
    return f"{severity.label}:".ljust(LEVEL_COLUMN_WIDTH)


def _chomp(text: str) -> str:
    return text[:-1] if text.endswith("\n") else text


def _terminate(line: str) -> str:
    return line if line.endswith("\n") else line + "\n"


# ── Plain ────────────────────────────────────────────────────────


def render_prefix(fields: Fields, severity: Severity, *, color: bool = True) -> str:
    """``[ts ][caller ]LEVEL:`` padded to the label column."""
    parts = [f"{f.text} " for f in fields.prefix if f.key != LEVEL_KEY]
    parts.append(emphasize(level_label(severity), f"bold {severity.style}", enabled=color))
    return "".join(parts)


def render_extras(extras: tuple[Field, ...], severity: Severity, *, color: bool = True) -> str:
    """`` k=v k2="v 2"`` or ``""`` when there are no extras."""
    if not extras:
        return ""
    pairs = (f"{emphasize(f.key, severity.style, enabled=color)}={quote_if_needed(f.text)}" for f in extras)
    return " " + " ".join(pairs)


def render_plain(fields: Fields, severity: Severity, *, color: bool = True) -> str:
    msg = _chomp(fields.msg)
    return (
        render_prefix(fields, severity, color=color)
        + emphasize(msg, severity.style, enabled=color)
        + render_extras(fields.extras, severity, color=color)
        + "\n"
    )


# ── Fully structured ─────────────────────────────────────────────


def render_structured(fields: Fields) -> str:
    parts = [f"{f.key}={quote_if_needed(f.text)}" for f in fields.prefix]
    for i, f in enumerate(fields.payload):
        if i == 0:
            # msg is always quoted
            parts.append(f"{f.key}={quote(_chomp(f.text))}")
        else:
            parts.append(f"{f.key}={quote_if_needed(f.text)}")
    return " ".join(parts) + "\n"


# ── Unformatted ──────────────────────────────────────────────────


def render_unformatted(fields: Fields) -> str:
    return _terminate(fields.msg)


def render(
    fields: Fields,
    severity: Severity,
    *,
    log_format: bool = True,
    full_structured: bool = False,
    color: bool = True,
) -> str:
    """Pick the rendering mode from the logger configuration."""
    if not log_format:
        return render_unformatted(fields)
    if full_structured:
        return render_structured(fields)
    return render_plain(fields, severity, color=color)
