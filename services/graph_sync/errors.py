"""
Graph Sync Errors
=================

Exception hierarchy for the CDC graph synchronizer.

Version: 0.1.0
"""

from typing import Any


class GraphSyncError(Exception):
    """Base class for synchronizer errors."""


class EnvelopeParseError(GraphSyncError):
    """A change-event payload could not be decoded. Never retried."""


class UnknownTableError(GraphSyncError):
    """A change event names a table that is not mirrored into the graph."""

    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"No translator for table '{table}'")


class TranslatorApplyError(GraphSyncError):
    """A change event could not be applied to the graph."""

    def __init__(self, table: str, message: str, key: dict[str, Any] | None = None) -> None:
        self.table = table
        self.key = key or {}
        super().__init__(f"{table}: {message}")


class RecordValidationError(TranslatorApplyError):
    """A row image is missing required columns or carries unusable values."""


class EndpointMissingError(TranslatorApplyError):
    """A relationship endpoint is not (yet) in the graph."""


class BulkLoadTableError(GraphSyncError):
    """A source table could not be read during bulk load."""

    def __init__(self, table: str, cause: BaseException) -> None:
        self.table = table
        self.cause = cause
        super().__init__(f"Failed to load table '{table}': {cause}")
