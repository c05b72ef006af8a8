"""
Error Taxonomy - Consistent error codes across the engine.

Usage:
    from conceptgraph.config.errors import ErrorCode, ConceptGraphError

    raise ConceptGraphError(ErrorCode.QUERY_NODE_NOT_FOUND, "No node 'x'")

Build stages accumulate recoverable defects into report models rather than
raising. The exceptions here are reserved for the fatal build-level failures
and for typed query failures surfaced to callers.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Extraction defects (per unit, recoverable)
    EXTRACTION_FAILED = "EXTRACTION_FAILED"

    # Manual edge source defects (fatal to the build)
    SCHEMA_INVALID = "SCHEMA_INVALID"

    # Integrity defects (fatal only in strict mode)
    INTEGRITY_VIOLATION = "INTEGRITY_VIOLATION"
    INTEGRITY_DUPLICATE_NODE = "INTEGRITY_DUPLICATE_NODE"

    # Cache defects (converted to a rebuild)
    CACHE_CORRUPT = "CACHE_CORRUPT"
    CACHE_VERSION_MISMATCH = "CACHE_VERSION_MISMATCH"

    # Query defects
    QUERY_NODE_NOT_FOUND = "QUERY_NODE_NOT_FOUND"
    QUERY_GRAPH_NOT_SEALED = "QUERY_GRAPH_NOT_SEALED"
    QUERY_UNKNOWN_ALGORITHM = "QUERY_UNKNOWN_ALGORITHM"
    QUERY_INVALID_PARAMS = "QUERY_INVALID_PARAMS"

    # Build lifecycle
    BUILD_ABORTED = "BUILD_ABORTED"
    BUILD_CANCELLED = "BUILD_CANCELLED"
    BUILD_INVALID_TRANSITION = "BUILD_INVALID_TRANSITION"
    GRAPH_SEALED = "GRAPH_SEALED"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ConceptGraphError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ExtractionError(ConceptGraphError):
    """Raised by extraction adapters when a unit cannot be turned into drafts."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EXTRACTION_FAILED, message, details)


class CacheDefectError(ConceptGraphError):
    """Snapshot is unreadable, corrupt, or from another format version."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.CACHE_CORRUPT,
    ) -> None:
        super().__init__(code, message, details)


# --- Build-level failures ---


class BuildAbortedError(ConceptGraphError):
    """A build reached the Aborted state; all of its work was discarded."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.BUILD_ABORTED,
    ) -> None:
        super().__init__(code, message, details)


class SchemaDefectError(BuildAbortedError):
    """The manual edge source is malformed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details, code=ErrorCode.SCHEMA_INVALID)


class IntegrityDefectError(BuildAbortedError):
    """Validation found defects while running in strict mode."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details, code=ErrorCode.INTEGRITY_VIOLATION)


class BuildCancelledError(BuildAbortedError):
    """The build was cancelled during extraction."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details, code=ErrorCode.BUILD_CANCELLED)


class InvalidTransitionError(ConceptGraphError):
    """Builder was asked to move between states that are not adjacent."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.BUILD_INVALID_TRANSITION, message, details)


class SealedGraphError(ConceptGraphError):
    """A mutation was attempted on a sealed graph."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.GRAPH_SEALED, message, details)


class DuplicateNodeError(ConceptGraphError):
    """A node id is already present in the graph."""

    def __init__(self, node_id: str) -> None:
        super().__init__(
            ErrorCode.INTEGRITY_DUPLICATE_NODE,
            f"Duplicate node id: {node_id}",
            {"node_id": node_id},
        )
        self.node_id = node_id


# --- Query failures ---


class QueryError(ConceptGraphError):
    """Typed failure surfaced to callers of the query surface."""


class NodeNotFoundError(QueryError):
    """The requested node id does not exist."""

    def __init__(self, node_id: str) -> None:
        super().__init__(
            ErrorCode.QUERY_NODE_NOT_FOUND,
            f"Unknown node id: {node_id}",
            {"node_id": node_id},
        )
        self.node_id = node_id


class GraphNotSealedError(QueryError):
    """An algorithm was invoked before a graph was sealed."""

    def __init__(self, message: str = "No sealed graph is available") -> None:
        super().__init__(ErrorCode.QUERY_GRAPH_NOT_SEALED, message)


class UnknownAlgorithmError(QueryError):
    """run_algorithm was called with a name that is not registered."""

    def __init__(self, name: str, available: list[str]) -> None:
        super().__init__(
            ErrorCode.QUERY_UNKNOWN_ALGORITHM,
            f"Unknown algorithm: {name}",
            {"name": name, "available": available},
        )


class InvalidQueryError(QueryError):
    """Query parameters failed validation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.QUERY_INVALID_PARAMS, message, details)
