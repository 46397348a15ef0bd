"""Tests for logging utilities."""

import logging

import pytest

from userauth.errors.exceptions import AuthenticationCanceledError
from userauth.logging.setup import NOISY_LOGGERS, setup_logging
from userauth.logging.utilities import log_exception, log_with_context, mask_identity


class TestMaskIdentity:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("alice@contoso.com", "al***@contoso.com"),
            ("ab@contoso.com", "a***@contoso.com"),
            ("alice", "al***"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_mask(self, value, expected):
        assert mask_identity(value) == expected


class TestLogWithContext:
    def test_extra_fields_attached(self, caplog):
        logger = logging.getLogger("test.context")
        with caplog.at_level(logging.INFO, logger="test.context"):
            log_with_context(logger, logging.INFO, "Renewing", tenant_id="t1", flow="silent")

        record = caplog.records[0]
        assert record.tenant_id == "t1"
        assert record.flow == "silent"

    def test_reserved_keys_dropped(self, caplog):
        logger = logging.getLogger("test.context")
        with caplog.at_level(logging.INFO, logger="test.context"):
            log_with_context(logger, logging.INFO, "msg", message="clash", lineno=1, tenant_id="t1")

        assert caplog.records[0].getMessage() == "msg"
        assert caplog.records[0].tenant_id == "t1"


class TestLogException:
    def test_category_and_message(self, caplog):
        logger = logging.getLogger("test.exception")
        error = AuthenticationCanceledError("User canceled")

        with caplog.at_level(logging.WARNING, logger="test.exception"):
            log_exception(logger, error, "Failed", level=logging.WARNING, include_traceback=False)

        record = caplog.records[0]
        assert record.error_category == "user_canceled"
        assert record.error_message == "User canceled"
        assert record.error_type == "AuthenticationCanceledError"
        assert record.exc_info is None

    def test_truncates_long_messages(self, caplog):
        logger = logging.getLogger("test.exception")
        with caplog.at_level(logging.ERROR, logger="test.exception"):
            log_exception(logger, RuntimeError("x" * 600), "Failed")

        assert len(caplog.records[0].error_message) == 503
        assert caplog.records[0].exc_info is not None


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers = root.handlers[:]
        level = root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_console_only(self):
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_file_handler(self, tmp_path):
        setup_logging(name="auth", log_dir=tmp_path / "logs")

        logging.getLogger("userauth.test").info("hello")

        assert (tmp_path / "logs" / "auth.log").exists()
        assert len(logging.getLogger().handlers) == 2

    def test_suppresses_noisy_loggers(self):
        setup_logging()
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
