# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Field model for a single log call.

Every argument is serialized exactly once, at the call boundary, into a
``Value`` (scalar text or structured text). Renderers and handlers only ever
see text, never the original objects.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping, Sequence, Set
from dataclasses import dataclass
from enum import Enum, IntEnum

# Key used when a key/value argument list has no key for a value
MISSING_KEY = "missing"

TS_KEY = "ts"
CALLER_KEY = "caller"
LEVEL_KEY = "level"
MSG_KEY = "msg"


class Shape(IntEnum):
    """Call style of a log method."""

    PRINT = 0  # debug(*args)
    PRINTF = 1  # debugf(fmt, *args)
    PRINTLN = 2  # debugln(*args)
    PRINTW = 3  # debugw(msg, *keyvalues)


class Kind(Enum):
    SCALAR = "scalar"
    STRUCTURED = "structured"


@dataclass(frozen=True, slots=True)
class Value:
    """Pre-stringified field value."""

    text: str
    kind: Kind = Kind.SCALAR

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class Field:
    key: str
    value: Value

    @property
    def text(self) -> str:
        return self.value.text


@dataclass(frozen=True, slots=True)
class Fields:
    """Prefix (ts, caller, level) + payload (msg, user pairs) of one call."""

    prefix: tuple[Field, ...] = ()
    payload: tuple[Field, ...] = ()

    @property
    def msg(self) -> str:
        for f in self.payload:
            if f.key == MSG_KEY:
                return f.text
        return ""

    @property
    def extras(self) -> tuple[Field, ...]:
        """Payload fields after the leading ``msg``."""
        return self.payload[1:]

    def get(self, key: str, default: str | None = None) -> str | None:
        """First value for *key*, searching prefix then payload."""
        for f in (*self.prefix, *self.payload):
            if f.key == key:
                return f.text
        return default


# ── Serialization ────────────────────────────────────────────────


def is_composite(obj: object) -> bool:
    """Composite shapes (containers, records) get a structural dump."""
    if isinstance(obj, (str, bytes, bytearray)):
        return False
    if isinstance(obj, (Mapping, Sequence, Set)):
        return True
    return dataclasses.is_dataclass(obj) and not isinstance(obj, type)


def to_value(obj: object) -> Value:
    """Serialize *obj* into a Value. Never raises."""
    if isinstance(obj, Value):
        return obj
    if isinstance(obj, str):
        return Value(obj)
    try:
        if is_composite(obj):
            return Value(repr(obj), Kind.STRUCTURED)
        return Value(str(obj))
    except Exception:
        # Broken __str__/__repr__: fall back to the generic object dump
        return Value(object.__repr__(obj), Kind.STRUCTURED)


def to_key(obj: object) -> str:
    key = to_value(obj).text
    if not key.strip():
        return MISSING_KEY
    return key


def pair_keyvalues(args: Sequence[object]) -> list[Field]:
    """Pair a flat ``k1, v1, k2, v2, ...`` list into Fields.

    An odd trailing element becomes the value of a ``missing`` key.
    """
    out: list[Field] = []
    n = len(args)
    i = 0
    while i + 1 < n:
        out.append(Field(to_key(args[i]), to_value(args[i + 1])))
        i += 2
    if i < n:
        out.append(Field(MISSING_KEY, to_value(args[i])))
    return out


# ── Message building ─────────────────────────────────────────────


def join_print(args: Iterable[object]) -> str:
    """Concatenate operands; a space separates two adjacent non-string operands."""
    parts: list[str] = []
    prev_is_str = True
    for i, arg in enumerate(args):
        is_str = isinstance(arg, str)
        if i > 0 and not is_str and not prev_is_str:
            parts.append(" ")
        parts.append(to_value(arg).text)
        prev_is_str = is_str
    return "".join(parts)


def join_println(args: Iterable[object]) -> str:
    """Operands separated by single spaces, newline-terminated."""
    return " ".join(to_value(a).text for a in args) + "\n"


def format_printf(fmt: str, args: Sequence[object]) -> str:
    """printf-style ``fmt % args``, applied even when there are no args.

    A format/argument mismatch does not raise: the arguments are appended
    as ``%!(arg, ...)`` so the call is still logged. A format that
    needs arguments but gets none is kept verbatim.
    """
    try:
        return fmt % tuple(args)
    except (TypeError, ValueError, KeyError):
        if not args:
            return fmt
        return f"{fmt}%!({', '.join(to_value(a).text for a in args)})"


def build_message(shape: Shape, args: Sequence[object], fmt: str = "") -> tuple[str, list[Field]]:
    """Return ``(msg, extra_fields)`` for a call of *shape*."""
    if shape == Shape.PRINTF:
        return format_printf(fmt, args), []
    if shape == Shape.PRINTLN:
        return join_println(args), []
    if shape == Shape.PRINTW:
        if not args:
            return "", []
        return to_value(args[0]).text, pair_keyvalues(args[1:])
    return join_print(args), []
