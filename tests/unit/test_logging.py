"""Tests for the structlog configuration and secret redaction."""

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from statsproxy.config import Settings
from statsproxy.core.logging import (
    QUIET_LOGGERS,
    REDACTED,
    configure_logging,
    get_logger,
    redact_secrets,
)


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Undo ``configure_logging`` so later tests see structlog defaults."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)


class TestRedactSecrets:
    """Tests for the redaction processor."""

    def test_masks_credential_keys_case_insensitively(self) -> None:
        event = redact_secrets(
            logging.getLogger("test"),
            "info",
            {"event": "login", "username": "admin", "Password": "s3cret", "token": "T1"},
        )

        assert event == {
            "event": "login",
            "username": "admin",
            "Password": REDACTED,
            "token": REDACTED,
        }

    def test_masks_nested_values(self) -> None:
        event = redact_secrets(
            logging.getLogger("test"),
            "info",
            {
                "event": "upstream_call",
                "headers": {"Authorization": "Bearer T1", "Accept": "*/*"},
                "attempts": [{"access_token": "T2", "status": 401}],
            },
        )

        assert event["headers"] == {"Authorization": REDACTED, "Accept": "*/*"}
        assert event["attempts"] == [{"access_token": REDACTED, "status": 401}]


class TestConfigureLogging:
    """Tests for the configured output pipeline."""

    def test_json_output_is_redacted(
        self, restore_logging: None, capsys: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(
            Settings(_env_file=None, log_format="json")  # type: ignore[arg-type, call-arg]
        )

        get_logger("statsproxy.tests").info(
            "analytics_login", username="admin", password="s3cret"
        )

        line = capsys.readouterr().out.strip().splitlines()[-1]
        entry = json.loads(line)
        assert entry["event"] == "analytics_login"
        assert entry["password"] == REDACTED
        assert entry["username"] == "admin"
        assert entry["service"] == "statsproxy"
        assert "s3cret" not in line

    def test_quiets_library_loggers(self, restore_logging: None) -> None:
        configure_logging(Settings(_env_file=None))  # type: ignore[call-arg]

        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
