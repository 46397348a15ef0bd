"""Log formatters for JSON and console output."""

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any

from userauth.logging.context import get_log_context
from userauth.utils.json_serializers import json_serializer


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with context injection.

    Produces one JSON object per line. Credential material is never written:
    fields that could carry tokens or secrets are redacted.
    """

    # Fields to extract from LogRecord extras
    EXTRA_FIELDS = [
        # Configuration
        "authority",
        "ad_endpoint",
        "ad_domain",
        "client_id",
        "redirect_uri",
        "validate_authority",
        "scopes",
        # Token state
        "expires_on",
        "current_time",
        "threshold_seconds",
        "remaining_seconds",
        "tenant_id",
        "user",
        "home_account_id",
        "environment",
        "login_type",
        "flow",
        "renew",
        "force_expired",
        "account_count",
        "token_cache_path",
        # Errors
        "error_category",
        "error_message",
        "error_type",
        "provider_error_code",
        # Timing
        "duration_ms",
        # Sensitive, always redacted
        "access_token",
        "password",
        "secret",
    ]

    NUMERIC_FIELDS = {
        "threshold_seconds": float,
        "remaining_seconds": float,
        "duration_ms": float,
        "account_count": int,
    }

    REDACTED_FIELDS = frozenset({"access_token", "password", "secret"})

    # Bearer tokens embedded in free-text messages
    BEARER_PATTERN = re.compile(r"(Bearer\s+)[A-Za-z0-9\-_\.=]+", re.IGNORECASE)

    def _sanitize_value(self, key: str, value: Any) -> Any:
        if key in self.REDACTED_FIELDS:
            return "[REDACTED]"
        if isinstance(value, str):
            return self.BEARER_PATTERN.sub(r"\1[REDACTED]", value)
        return value

    def _ensure_type(self, field: str, value: Any) -> Any:
        if field not in self.NUMERIC_FIELDS or value is None:
            return value

        try:
            return self.NUMERIC_FIELDS[field](value)
        except (ValueError, TypeError):
            return None

    def _base_log_entry(self, record: logging.LogRecord) -> dict[str, Any]:
        return {
            "ts": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": self.BEARER_PATTERN.sub(r"\1[REDACTED]", record.getMessage()),
        }

    @staticmethod
    def _inject_context(log_entry: dict[str, Any], log_context: dict[str, Any]) -> None:
        for field, value in log_context.items():
            if value:
                log_entry[field] = value

    def _inject_extra_fields(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                typed_value = self._ensure_type(field, value)
                log_entry[field] = self._sanitize_value(field, typed_value)

    def _inject_exception(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        if not record.exc_info:
            return

        exc_type, exc_value, _ = record.exc_info
        log_entry["exception"] = {
            "type": exc_type.__name__ if exc_type else None,
            "message": str(exc_value) if exc_value else None,
            "stacktrace": self.formatException(record.exc_info),
        }

    def format(self, record: logging.LogRecord) -> str:
        log_entry = self._base_log_entry(record)
        self._inject_context(log_entry, get_log_context())

        if record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL):
            log_entry["file"] = f"{record.filename}:{record.lineno}"

        self._inject_extra_fields(log_entry, record)
        self._inject_exception(log_entry, record)

        return json.dumps(log_entry, default=json_serializer, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter with color-coded log levels.

    Colors are auto-disabled when output is not a TTY (pipes, files).
    """

    # ANSI color codes
    COLORS = {
        logging.DEBUG: "\033[36m",  # Cyan
        logging.INFO: "\033[32m",  # Green
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",  # Red
        logging.CRITICAL: "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._use_colors = sys.stderr.isatty()

    def _format_level_name(self, record: logging.LogRecord) -> str:
        level_name = record.levelname
        color = self.COLORS.get(record.levelno, "")
        if not self._use_colors or not color:
            return level_name
        return f"{color}{level_name}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console output with optional color coding."""
        log_context = get_log_context()

        parts = [
            datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            self._format_level_name(record),
        ]
        if log_context["operation"]:
            parts.append(f"[{log_context['operation']}]")
        if log_context["flow"]:
            parts.append(f"[{log_context['flow']}]")

        message = f"{' - '.join(parts)} - {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message
