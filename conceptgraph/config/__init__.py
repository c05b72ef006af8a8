"""
Configuration - Engine settings, error taxonomy, and content manifests.
"""

from .errors import (
    BuildAbortedError,
    BuildCancelledError,
    CacheDefectError,
    ConceptGraphError,
    DuplicateNodeError,
    ErrorCode,
    ExtractionError,
    GraphNotSealedError,
    IntegrityDefectError,
    InvalidQueryError,
    InvalidTransitionError,
    NodeNotFoundError,
    QueryError,
    SchemaDefectError,
    SealedGraphError,
    UnknownAlgorithmError,
)
from .manifest import (
    FORMAT_VERSION,
    ContentManifest,
    compute_file_checksum,
    compute_manual_edges_hash,
    compute_unit_hash,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "ConceptGraphError",
    "ExtractionError",
    "CacheDefectError",
    "BuildAbortedError",
    "SchemaDefectError",
    "IntegrityDefectError",
    "BuildCancelledError",
    "InvalidTransitionError",
    "SealedGraphError",
    "DuplicateNodeError",
    "QueryError",
    "NodeNotFoundError",
    "GraphNotSealedError",
    "UnknownAlgorithmError",
    "InvalidQueryError",
    # Manifests
    "FORMAT_VERSION",
    "ContentManifest",
    "compute_unit_hash",
    "compute_file_checksum",
    "compute_manual_edges_hash",
]
