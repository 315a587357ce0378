"""Utility modules for docassist.

- **errors** -- Domain exception hierarchy rooted at DocAssistError; each
  layer raises its own subclass so callers can handle failures granularly.
- **ids** -- Time-prefixed identifiers for conversations and escalations.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from docassist.utils.errors import (
    ConfigurationError,
    DocAssistError,
    DocumentNotFoundError,
    InferenceError,
    InvalidConfigurationError,
    RetrievalError,
    UnknownConversationError,
    UnknownEscalationError,
    UnsupportedFormatError,
)
from docassist.utils.ids import make_timestamped_id
from docassist.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "DocAssistError",
    "DocumentNotFoundError",
    "InferenceError",
    "InvalidConfigurationError",
    "RetrievalError",
    "UnknownConversationError",
    "UnknownEscalationError",
    "UnsupportedFormatError",
    "configure_logging",
    "get_logger",
    "make_timestamped_id",
]
