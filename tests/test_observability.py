"""
Tests for structured logging
"""

import json
import logging

import pytest

from qr_gateway.observability import (
    ContextLogger,
    LogSettings,
    StructuredFormatter,
    TextFormatter,
    request_id_var,
)


def make_record(logger_name="qr_gateway.test", **fields):
    """Build a record the way ContextLogger would."""
    adapter = ContextLogger(logging.getLogger(logger_name), {})
    msg, kwargs = adapter.process("QR code generated", dict(fields))
    return logging.getLogger(logger_name).makeRecord(
        logger_name, logging.INFO, __file__, 1, msg, None, None, extra=kwargs["extra"],
    )


class TestFormatters:

    def test_json_fields(self):
        token = request_id_var.set("abcd1234")
        try:
            line = StructuredFormatter().format(make_record(kind="person", frame=True))
        finally:
            request_id_var.reset(token)

        data = json.loads(line)
        assert data["message"] == "QR code generated"
        assert data["service"] == "qr-gateway"
        assert data["request_id"] == "abcd1234"
        assert data["kind"] == "person"
        assert data["frame"] is True
        assert "levelno" not in data

    def test_json_unserializable_field(self):
        data = json.loads(StructuredFormatter().format(make_record(size=(1, 2), obj=object())))
        assert data["size"] == [1, 2]
        assert data["obj"].startswith("<object")

    def test_text_fields(self):
        line = TextFormatter().format(make_record(kind="organisation"))
        assert "QR code generated" in line
        assert "kind=organisation" in line


class TestLogSettings:

    @pytest.mark.parametrize("env,fmt,expected", [
        ("production", None, True),
        ("development", None, False),
        ("development", "json", True),
        ("production", "text", False),
    ])
    def test_format(self, monkeypatch, env, fmt, expected):
        monkeypatch.setenv("QR_GATEWAY_ENV", env)
        if fmt:
            monkeypatch.setenv("QR_GATEWAY_LOG_FORMAT", fmt)
        else:
            monkeypatch.delenv("QR_GATEWAY_LOG_FORMAT", raising=False)
        assert LogSettings.from_env().json_output is expected

    def test_level(self, monkeypatch):
        monkeypatch.setenv("QR_GATEWAY_LOG_LEVEL", "debug")
        assert LogSettings.from_env().level == logging.DEBUG

    def test_unknown_level(self, monkeypatch):
        monkeypatch.setenv("QR_GATEWAY_LOG_LEVEL", "chatty")
        assert LogSettings.from_env().level == logging.INFO
