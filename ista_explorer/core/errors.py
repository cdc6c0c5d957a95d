from typing import Any, Dict, Optional


class ExplorerError(Exception):
    """Base exception for all ISTA Explorer errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class QueryExecutionError(ExplorerError):
    """The query engine failed to run a statement.

    `message` is the engine's own message, kept verbatim for the user.
    """

    def __init__(self, message: str, query: Optional[str] = None, **kwargs):
        details = {"query": query[:500] if query else None, **kwargs}
        super().__init__(message, details)


class QueryTimeoutError(QueryExecutionError):
    """The query did not finish before its deadline."""


class ConfigurationError(ExplorerError):
    """Invalid settings value."""
