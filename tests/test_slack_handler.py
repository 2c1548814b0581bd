# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for fieldlog.handlers.slack — payload shape, gating, transport."""

from __future__ import annotations

import json
import threading
import urllib.error
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from fieldlog import Flag, HandlerError, HandlerErrorPolicy, Logger, LoggerConfig, Severity
from fieldlog.caller import FixedCallerResolver
from fieldlog.handlers.slack import COLORS, SLACK_WEBHOOK_URL, SlackHandler, post_json, title_key, webhook_url

CHANNEL = "C4JLPQB7X"
FIXED_TS = "2026-03-14T15:09:26"  # conftest FIXED_TIME, default time format


class _Capture:
    """Transport stub: records (url, decoded payload, timeout)."""

    def __init__(self) -> None:
        self.posts: list[tuple[str, dict, float]] = []

    def __call__(self, url: str, body: bytes, timeout: float) -> None:
        self.posts.append((url, json.loads(body.decode("utf-8")), timeout))

    @property
    def last(self) -> dict | None:
        return self.posts[-1][1] if self.posts else None


def _expected(color, text=None, fields=None, title=None):
    attachment = {"color": color, "mrkdwn_in": ["text", "fields"]}
    if title:
        attachment["title"] = title
    if text is not None:
        attachment["text"] = text
    if fields is not None:
        attachment["fields"] = [{"value": v} for v in fields]
    return {"username": "Golog", "channel": CHANNEL, "attachments": [attachment]}


@pytest.fixture
def capture():
    return _Capture()


# ── URL ──────────────────────────────────────────────────────────


class TestWebhookUrl:
    def test_token(self):
        assert webhook_url("T000/B000/XXX") == SLACK_WEBHOOK_URL + "T000/B000/XXX"

    def test_full_url(self):
        assert webhook_url("http://127.0.0.1:9/hook") == "http://127.0.0.1:9/hook"

    def test_invalid_timeout(self):
        with pytest.raises(ValueError, match="timeout"):
            SlackHandler("tok", timeout=0)


# ── Plain shapes ─────────────────────────────────────────────────


class TestSimpleLog:
    def test_simple_log_sequence(self, make_logger, capture):
        logger = make_logger()
        logger.add_handler(SlackHandler("tok", "Golog", "", "", CHANNEL, "", Severity.INFO, transport=capture))

        logger.debug("This is debug log")
        assert capture.last is None

        logger.info("This is info log ", "level info\n")
        assert capture.last == _expected("good", text="*INFO*: This is info log level info\n")

        logger.warnln("This is warn log", "level warning")
        assert capture.last == _expected("warning", text="*WARN*: This is warn log level warning\n")

        logger.errorf("This is %s log\n", "error")
        assert capture.last == _expected("danger", text="*ERROR*: This is error log\n")

        logger.errorw("This is error log", "field1", "value1", "field2", "value2")
        assert capture.last == _expected(
            "danger",
            text="This is error log",
            fields=["*Field1*: value1", "*Field2*: value2", "*Level*: ERROR"],
        )
        assert len(capture.posts) == 4

    def test_end_to_end_info(self, make_logger, buf, capture):
        logger = make_logger(LoggerConfig(color=False))
        logger.add_handler(SlackHandler("tok", transport=capture))
        logger.info("This is ", "info log")

        assert buf.getvalue() == "INFO:  This is info log\n"
        attachment = capture.last["attachments"][0]
        assert attachment["color"] == COLORS[Severity.INFO]
        assert attachment["text"] == "*INFO*: This is info log"

    def test_prefix_decoration(self, make_logger, capture):
        logger = make_logger(caller_resolver=FixedCallerResolver("app.py:3:main"))
        logger.set_flags(Flag.TIMESTAMP | Flag.CALLER)
        logger.add_handler(SlackHandler("tok", transport=capture))
        logger.warn("disk low")
        assert capture.last["attachments"][0]["text"] == f"{FIXED_TS} app.py:3:main *WARN*: disk low"

    def test_empty_identity_fields_omitted(self, make_logger, capture):
        logger = make_logger()
        logger.add_handler(SlackHandler("tok", transport=capture))
        logger.info("x")
        assert set(capture.last) == {"attachments"}
        assert "title" not in capture.last["attachments"][0]

    def test_icons_and_url(self, make_logger, capture):
        logger = make_logger()
        logger.add_handler(
            SlackHandler("T1/B2/C3", icon_emoji=":fire:", icon_url="https://x/i.png", timeout=2.5, transport=capture)
        )
        logger.info("x")
        url, payload, timeout = capture.posts[0]
        assert url == SLACK_WEBHOOK_URL + "T1/B2/C3"
        assert payload["icon_emoji"] == ":fire:"
        assert payload["icon_url"] == "https://x/i.png"
        assert timeout == 2.5


class TestHandlerVerbosity:
    def test_handler_is_stricter_than_logger(self, make_logger, capture):
        logger = make_logger(LoggerConfig(verbosity=Severity.DEBUG))
        logger.add_handler(SlackHandler("tok", verbosity=Severity.ERROR, transport=capture))
        logger.warn("not posted")
        logger.error("posted")
        assert len(capture.posts) == 1
        assert capture.last["attachments"][0]["text"] == "*ERROR*: posted"

    def test_verbosity_clamped(self):
        assert SlackHandler("tok", verbosity=12).verbosity is Severity.DEBUG

    def test_fatal_color(self, make_logger, capture, exits):
        logger = make_logger()
        logger.add_handler(SlackHandler("tok", transport=capture))
        logger.fatal("down")
        assert capture.last["attachments"][0]["color"] == "#cc0000"
        assert exits == [1]


# ── Structured shape ─────────────────────────────────────────────


class TestStructuredLog:
    def test_structured_log(self, make_logger, capture):
        logger = make_logger()
        logger.set_flags(Flag.TIMESTAMP | Flag.CALLER | Flag.FULL_STRUCTURED)
        logger.set_time_format("%Y-%m-%d %H:%M:%S")
        handler = SlackHandler("tok", "Golog", "", "", CHANNEL, "Structured Log", Severity.INFO, transport=capture)
        logger.add_handler(handler)

        logger.debugw("This is debug log", "field1", "value1", "field2", "value2")
        assert capture.last is None

        logger.infow("This is info log", "field1", "value1", "field2", "value2")
        payload = capture.last
        values = [f["value"] for f in payload["attachments"][0]["fields"]]
        assert values[:3] == ["*Msg*: This is info log", "*Field1*: value1", "*Field2*: value2"]
        assert values[3] == "*Ts*: 2026-03-14 15:09:26"
        assert values[4].startswith("*Caller*: test_slack_handler.py:")
        assert values[4].endswith(":test_structured_log")
        assert values[5] == "*Level*: INFO"
        assert "text" not in payload["attachments"][0]

    def test_mixed_case_keys_keep_their_casing(self, make_logger, capture):
        logger = make_logger()
        logger.add_handler(SlackHandler("tok", transport=capture))
        logger.infow("m", "userID", "u1", "k1v", 2)
        values = [f["value"] for f in capture.last["attachments"][0]["fields"]]
        assert values[:2] == ["*UserID*: u1", "*K1v*: 2"]

    def test_title_key(self):
        assert title_key("field1") == "Field1"
        assert title_key("userID") == "UserID"
        assert title_key("request id") == "Request Id"
        assert title_key("") == ""
        assert payload["attachments"][0]["title"] == "Structured Log"
        assert payload["attachments"][0]["color"] == "good"

    def test_build_structured_directly(self):
        from fieldlog.fields import Field, Fields, Value

        fields = Fields(
            prefix=(Field("level", Value("WARN")),),
            payload=(Field("msg", Value("m")), Field("request_id", Value("abc"))),
        )
        handler = SlackHandler("tok")
        semi = handler.build_structured(Severity.WARN, fields)
        assert semi["attachments"][0]["text"] == "m"
        full = handler.build_structured(Severity.WARN, fields, full=True)
        assert [f["value"] for f in full["attachments"][0]["fields"]] == [
            "*Msg*: m",
            "*Request_Id*: abc",
            "*Level*: WARN",
        ]


# ── Transport ────────────────────────────────────────────────────


class _Sink(BaseHTTPRequestHandler):
    received: list[dict] = []
    status = 200

    def do_POST(self):  # noqa: N802
        length = int(self.headers["Content-Length"])
        type(self).received.append(
            {"body": json.loads(self.rfile.read(length)), "content_type": self.headers["Content-Type"]}
        )
        self.send_response(type(self).status)
        self.end_headers()
        self.wfile.write(b"ok")

    def log_message(self, format, *args):  # noqa: A002
        pass


@pytest.fixture
def sink_server():
    _Sink.received = []
    _Sink.status = 200
    server = ThreadingHTTPServer(("127.0.0.1", 0), _Sink)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}/services/hook"
    server.shutdown()
    server.server_close()


class TestTransport:
    def test_posts_json(self, make_logger, sink_server):
        logger = make_logger()
        logger.add_handler(SlackHandler(sink_server, "Golog", channel=CHANNEL))
        logger.info("This is info log")
        assert len(_Sink.received) == 1
        assert _Sink.received[0]["content_type"] == "application/json"
        assert _Sink.received[0]["body"] == _expected("good", text="*INFO*: This is info log")

    def test_http_error_propagates_unmodified(self, sink_server):
        _Sink.status = 500
        with pytest.raises(urllib.error.HTTPError) as exc_info:
            post_json(sink_server, b"{}", 5.0)
        assert exc_info.value.code == 500

    def test_http_error_surfaces_through_policy(self, sink_server):
        _Sink.status = 404
        logger = Logger(LoggerConfig(handler_error_policy=HandlerErrorPolicy.PROPAGATE), exit_func=lambda c: None)
        logger.set_output(_NullStream())
        logger.add_handler(SlackHandler(sink_server))
        with pytest.raises(HandlerError) as exc_info:
            logger.error("x")
        assert isinstance(exc_info.value.__cause__, urllib.error.HTTPError)


class _NullStream:
    def write(self, text: str) -> None:
        pass
