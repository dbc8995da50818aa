"""
Exceptions raised by html-entity-parser.

Severity model:
  - ConfigurationError  -> FAIL FAST: raised by the builder call that caused it.
  - TraversalError      -> FAIL HARD: aborts the current document only.
  - RowProcessingError  -> RECOVERABLE: handed to the error handler, the run continues.
  - DownloadError / LinkFollowingError -> RECOVERABLE, reported like row errors.
"""

from __future__ import annotations

from typing import Any, Optional


class HtmlEntityParserError(Exception):
    """Base exception for all html-entity-parser errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(HtmlEntityParserError):
    """Invalid entity, field, path or settings definition."""


class TraversalError(HtmlEntityParserError):
    """The element tree cannot be traversed (e.g. a node is reachable twice)."""


class RowProcessingError(HtmlEntityParserError):
    """
    A value transform, download or row processor failed for one row.

    Carries enough context for an error handler to decide whether to keep
    going (return normally) or to stop the run (re-raise).
    """

    def __init__(
        self,
        message: str,
        *,
        entity_name: str,
        field_name: Optional[str] = None,
        row: Optional[list[Any]] = None,
        cause: Optional[BaseException] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.entity_name = entity_name
        self.field_name = field_name
        self.row = row
        self.cause = cause


class DownloadError(RowProcessingError):
    """A resource referenced by a `download()` field could not be fetched."""


class LinkFollowingError(RowProcessingError):
    """A page referenced by a `follow_link()` field could not be fetched or parsed."""
