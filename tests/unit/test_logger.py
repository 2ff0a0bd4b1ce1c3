"""Unit tests for log sanitization."""

import logging

import pytest

from shoora_mail.lib.logger import (
    PIISanitizer,
    SanitizingFormatter,
    StructuredLogger,
    hash_address,
)


def format_record(msg: str, *args) -> str:
    record = logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)
    return SanitizingFormatter(fmt="%(message)s").format(record)


@pytest.mark.unit
class TestPIISanitizer:

    def test_email_local_part_masked(self):
        assert PIISanitizer.sanitize("login for john.doe@example.com") == "login for ***@example.com"

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("password=hunter2", "password=***"),
            ("secret: 'abc123'", "secret: '***'"),
            ("PASS=xyz other=1", "PASS=*** other=1"),
        ],
    )
    def test_secrets_masked(self, text, expected):
        assert PIISanitizer.sanitize(text) == expected

    def test_non_string_input(self):
        assert PIISanitizer.sanitize(42) == "42"


@pytest.mark.unit
class TestSanitizingFormatter:

    def test_message_is_sanitized(self):
        assert format_record("user jane@example.com password=pw") == "user ***@example.com password=***"

    def test_args_are_sanitized(self):
        assert format_record("user %s", "jane@example.com") == "user ***@example.com"


@pytest.mark.unit
class TestStructuredLogger:

    def test_fields_are_appended(self):
        logger = StructuredLogger("shoora_mail.test")

        formatted = logger._format_message("Mailbox operation", operation="delete", folder="INBOX")

        assert formatted == "Mailbox operation | operation=delete | folder=INBOX"
        assert logger._format_message("plain") == "plain"

    def test_fields_do_not_leak_between_calls(self):
        logger = StructuredLogger("shoora_mail.test")

        logger._format_message("first", session="s1")

        assert logger._format_message("second", folder="INBOX") == "second | folder=INBOX"

    def test_log_operation(self, caplog):
        logger = StructuredLogger("shoora_mail.test.ops")
        logger.logger.propagate = True

        with caplog.at_level(logging.INFO, logger="shoora_mail.test.ops"):
            logger.log_operation("move", "INBOX", "ok", duration_ms=12.5)

        assert "operation=move | folder=INBOX | status=ok | duration_ms=12.50" in caplog.text


@pytest.mark.unit
class TestHashAddress:

    def test_stable_and_case_insensitive(self):
        assert hash_address("Jane@Example.com") == hash_address("jane@example.com")
        assert len(hash_address("jane@example.com")) == 12

    def test_does_not_contain_address(self):
        assert "jane" not in hash_address("jane@example.com")
