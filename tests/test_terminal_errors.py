"""Tests for okapi.server.terminal_errors — fault reporting."""

import logging

import pytest
from conftest import make_request

from okapi.server.terminal_errors import (
    _is_app_frame,
    format_compact_traceback,
    format_minimal_error,
    log_error,
)


def _raise_here() -> RuntimeError:
    try:
        raise RuntimeError("Something went wrong!")
    except RuntimeError as exc:
        return exc


class TestIsAppFrame:
    def test_site_packages(self) -> None:
        assert not _is_app_frame("/venv/lib/python3.12/site-packages/uvicorn/main.py")

    def test_synthetic(self) -> None:
        assert not _is_app_frame("<string>")

    def test_application_file(self) -> None:
        assert _is_app_frame("/srv/app/sampleapp/app.py")


class TestFormatting:
    def test_compact(self) -> None:
        text = format_compact_traceback(_raise_here())
        lines = text.splitlines()
        assert lines[0] == "RuntimeError: Something went wrong!"
        assert "Trace (app frames):" in text
        assert "_raise_here" in text

    def test_compact_without_traceback(self) -> None:
        assert format_compact_traceback(ValueError("bare")) == "ValueError: bare"

    def test_minimal(self) -> None:
        text = format_minimal_error(_raise_here())
        assert text.startswith("RuntimeError at ")
        assert text.endswith(": Something went wrong!")
        assert "\n" not in text


class TestLogError:
    @pytest.mark.parametrize("style", ["compact", "minimal", "full"])
    def test_logs_at_error(self, style, caplog, monkeypatch) -> None:
        monkeypatch.setenv("OKAPI_TRACEBACK", style)
        with caplog.at_level(logging.ERROR, logger="okapi.server"):
            log_error(_raise_here(), make_request("GET", "/error"))
        (record,) = caplog.records
        assert record.levelno == logging.ERROR
        assert record.getMessage().startswith("500 GET /error")
        if style == "full":
            assert record.exc_info is not None
        else:
            assert "Something went wrong!" in record.getMessage()

    def test_without_request(self, caplog) -> None:
        with caplog.at_level(logging.ERROR, logger="okapi.server"):
            log_error(ValueError("x"))
        assert caplog.records[0].getMessage().startswith("Server error")
