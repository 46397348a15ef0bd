"""
Structured logging module.

Provides console and JSON file logging with context propagation.
"""

from userauth.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from userauth.logging.formatters import ConsoleFormatter, JSONFormatter
from userauth.logging.setup import setup_logging
from userauth.logging.utilities import log_exception, log_with_context, mask_identity

__all__ = [
    # Setup
    "setup_logging",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    # Utilities
    "log_with_context",
    "log_exception",
    "mask_identity",
]
