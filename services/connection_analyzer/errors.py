"""
Connection Analyzer Errors
==========================

Version: 0.1.0
"""

from typing import Any


class ConnectionAnalyzerError(Exception):
    """Base class for recommendation engine errors."""

    status_code: int = 500
    error_code: str = "analyzer_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class QueryNotFoundError(ConnectionAnalyzerError):
    """The requester does not exist in the graph."""

    status_code = 404
    error_code = "not_found"


class InvalidIdentifierError(ConnectionAnalyzerError):
    """The requester identifier is malformed."""

    status_code = 400
    error_code = "invalid_identifier"
