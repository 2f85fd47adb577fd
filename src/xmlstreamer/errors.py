from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Invalid streamer configuration. Raised before any source is opened."""


class CursorError(Exception):
    """Failure reported by a cursor adapter (open, read, skip, materialize, close)."""


class StreamError(Exception):
    """
    Exception raised when an error occurs while streaming an XML document.

    The message is the cursor's diagnostic, unchanged. `operation` names the
    cursor operation that failed.
    """

    def __init__(self, message: str, operation: Optional[str] = None) -> None:
        super().__init__(message)
        self.operation = operation


@contextmanager
def translated(operation: str) -> Iterator[None]:
    """Re-raise any CursorError raised in the block as a StreamError."""
    try:
        yield
    except CursorError as exc:
        logger.debug("Cursor %s failed: %s", operation, exc)
        raise StreamError(str(exc), operation=operation) from exc
