"""
Tests for structured logging helpers.
"""
import json
import logging

from pythonjsonlogger import jsonlogger

from objectstore.utils.logging import (
    REDACTED,
    StructuredLogger,
    configure_logging,
    log_storage_failure,
    log_storage_request,
    redact_secret,
)

logger = logging.getLogger("objectstore.tests")


class TestRedactSecret:
    """Tests for redact_secret()."""

    def test_replaces_every_occurrence(self):
        """Test all copies of the secret are replaced."""
        assert redact_secret("a SECRET b SECRET", "SECRET") == f"a {REDACTED} b {REDACTED}"

    def test_no_secret(self):
        """Test text is unchanged without a secret."""
        assert redact_secret("plain", None) == "plain"
        assert redact_secret("plain", "") == "plain"


class TestLogHelpers:
    """Tests for the storage event helpers."""

    def test_request_fields(self, caplog):
        """Test log_storage_request attaches event fields."""
        with caplog.at_level(logging.INFO, logger="objectstore.tests"):
            log_storage_request(logger, operation="upload", bucket="b", key="k", duration_ms=1.234)

        record = caplog.records[-1]
        assert record.event == "storage_request"
        assert record.operation == "upload"
        assert record.bucket == "b"
        assert record.key == "k"
        assert record.duration_ms == 1.23

    def test_failure_redacts(self, caplog):
        """Test log_storage_failure scrubs the secret and logs at error level."""
        with caplog.at_level(logging.ERROR, logger="objectstore.tests"):
            log_storage_failure(logger, operation="start", error="denied for TOPSECRET", secret="TOPSECRET")

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.event == "storage_failure"
        assert "TOPSECRET" not in record.getMessage()
        assert "TOPSECRET" not in record.error


class TestStructuredLogger:
    """Tests for StructuredLogger.configure()."""

    def test_configures_json_output(self, capsys):
        """Test configure installs a JSON formatter with the service name."""
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        StructuredLogger.reset()
        try:
            configure_logging("objectstore-test", "DEBUG")
            configure_logging("ignored", "ERROR")

            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, jsonlogger.JsonFormatter)
            assert root.level == logging.DEBUG

            log_storage_request(logger, operation="start", bucket="assets-test")
            line = capsys.readouterr().out.strip().splitlines()[-1]
            payload = json.loads(line)
            assert payload["service"] == "objectstore-test"
            assert payload["event"] == "storage_request"
            assert payload["bucket"] == "assets-test"
        finally:
            root.handlers = saved_handlers
            root.setLevel(saved_level)
            StructuredLogger.reset()
