"""Domain exceptions.

The search layer favors silent normalization of user input, so only two
situations raise: a caller handing over an invalid query, and the data
store failing to execute the generated query.
"""

from typing import Any


class SearchError(Exception):
    """Base class for all search exceptions.

    All search errors inherit from this class to allow catching
    search-specific errors at the application layer.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize search error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Query Errors
# ============================================================================


class InvalidSearchQueryError(SearchError):
    """Raised when a search query violates the caller contract.

    Pagination values are validated once, when the query is built.
    The engine itself trusts the query afterwards.
    """

    def __init__(self, field: str, value: Any, reason: str) -> None:
        """Initialize invalid search query error.

        Args:
            field: Name of the offending query attribute.
            value: Value that was rejected.
            reason: Why the value was rejected.
        """
        super().__init__(
            f"Invalid search query: {field}={value!r} ({reason})",
            details={"field": field, "value": value, "reason": reason},
        )


# ============================================================================
# Execution Errors
# ============================================================================


class QueryExecutionError(SearchError):
    """Raised when the data store cannot execute the generated query.

    Covers connectivity failures as well as malformed queries, for
    example a predicate on a field the store does not know. No retry
    is attempted; the original exception is chained as the cause.
    """

    def __init__(self, message: str, backend: str, **details: Any) -> None:
        """Initialize query execution error.

        Args:
            message: Human-readable error message.
            backend: Name of the adapter backend that failed.
            **details: Additional error context.
        """
        super().__init__(message, details={"backend": backend, **details})
        self.backend = backend
