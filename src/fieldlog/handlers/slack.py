# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Slack incoming-webhook handler.

Plain shapes post one ``text`` line (``*LEVEL*: message``); the structured
shape posts one attachment field per key (``*Key*: value``). The transport
is a blocking HTTP POST bounded by ``timeout``. It runs inside the logger's
lock, so every log call waits for Slack.
"""

from __future__ import annotations

import json
import logging
import re
import threading
import urllib.request
from collections.abc import Callable
from typing import TYPE_CHECKING

from ..config import Flag
from ..fields import LEVEL_KEY, Field, Fields, Shape
from ..levels import Severity

if TYPE_CHECKING:
    from ..logger import Logger

# Version lookup for the User-Agent header
try:
    from importlib.metadata import version as _pkg_version

    _FIELDLOG_VERSION = _pkg_version("fieldlog")
except Exception:
    _FIELDLOG_VERSION = "unknown"

logger = logging.getLogger(__name__)

SLACK_WEBHOOK_URL = "https://hooks.slack.com/services/"
USER_AGENT = f"fieldlog/{_FIELDLOG_VERSION}"
_DEFAULT_TIMEOUT = 10.0

# Attachment color per level
COLORS: dict[Severity, str] = {
    Severity.FATAL: "#cc0000",
    Severity.ERROR: "danger",
    Severity.WARN: "warning",
    Severity.INFO: "good",
    Severity.DEBUG: "#7e7e7c",
}

Transport = Callable[[str, bytes, float], None]


def post_json(url: str, body: bytes, timeout: float) -> None:
    """POST *body* as JSON. HTTP and network errors propagate unmodified."""
    req = urllib.request.Request(
        url,
        data=body,
        headers={"Content-Type": "application/json", "User-Agent": USER_AGENT},
        method="POST",
    )
    with urllib.request.urlopen(req, timeout=timeout) as resp:  # noqa: S310  # nosec B310
        resp.read()


def webhook_url(token: str) -> str:
    """Full URLs are used as-is; bare tokens go under hooks.slack.com."""
    if token.startswith(("http://", "https://")):
        return token
    return SLACK_WEBHOOK_URL + token


_WORD_START_RE = re.compile(r"(?<!\w)\w")


def title_key(key: str) -> str:
    """Upper-case the first letter of each word; the rest is left as is."""
    return _WORD_START_RE.sub(lambda m: m.group().upper(), key)


def _field_entry(f: Field) -> dict[str, str]:
    return {"value": f"*{title_key(f.key)}*: {f.text}"}


class SlackHandler:
    """Post log calls to a Slack channel through an incoming webhook."""

    def __init__(
        self,
        token: str,
        username: str = "",
        icon_emoji: str = "",
        icon_url: str = "",
        channel: str = "",
        title: str = "",
        verbosity: int = Severity.INFO,
        *,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: Transport | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {timeout}")
        self.url = webhook_url(token)
        self.username = username
        self.icon_emoji = icon_emoji
        self.icon_url = icon_url
        self.channel = channel
        self.title = title
        self.verbosity = Severity.clamp(verbosity)
        self.timeout = timeout
        self._transport: Transport = transport or post_json
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<SlackHandler channel={self.channel!r} verbosity={self.verbosity.name}>"

    def print_msg(self, shape: Shape, log: Logger, severity: Severity, fields: Fields) -> None:
        with self._lock:
            if not Severity(severity).enabled_at(self.verbosity):
                return
            if shape == Shape.PRINTW:
                full = bool(log.get_flags() & Flag.FULL_STRUCTURED)
                message = self.build_structured(severity, fields, full=full)
            else:
                message = self.build_plain(severity, fields)
            body = json.dumps(message, ensure_ascii=False).encode("utf-8")
            logger.debug("posting %d bytes to %s", len(body), self.channel or "webhook default channel")
            self._transport(self.url, body, self.timeout)

    # ── Payload ──────────────────────────────────────────────────

    def _message(self, severity: Severity) -> dict:
        attachment: dict = {"color": COLORS.get(Severity(severity), "")}
        if self.title:
            attachment["title"] = self.title
        attachment["mrkdwn_in"] = ["text", "fields"]

        message: dict = {}
        for key, value in (
            ("username", self.username),
            ("icon_emoji", self.icon_emoji),
            ("icon_url", self.icon_url),
            ("channel", self.channel),
        ):
            if value:
                message[key] = value
        message["attachments"] = [attachment]
        return message

    def build_plain(self, severity: Severity, fields: Fields) -> dict:
        """``text`` = prefix values (level as ``*LEVEL*:``) + message."""
        message = self._message(severity)
        prefix = ""
        for f in fields.prefix:
            value = f"*{f.text}*:" if f.key == LEVEL_KEY else f.text
            prefix += value + " "
        message["attachments"][0]["text"] = prefix + fields.msg
        return message

    def build_structured(self, severity: Severity, fields: Fields, *, full: bool = False) -> dict:
        """One ``*Key*: value`` entry per field; msg goes to ``text`` unless *full*."""
        message = self._message(severity)
        attachment = message["attachments"][0]
        entries: list[dict[str, str]] = []
        for i, f in enumerate(fields.payload):
            if i == 0 and not full:
                attachment["text"] = f.text
            else:
                entries.append(_field_entry(f))
        entries.extend(_field_entry(f) for f in fields.prefix)
        if entries:
            attachment["fields"] = entries
        return message
