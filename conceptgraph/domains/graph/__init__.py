"""
Graph Domain - Concept graph entities and the graph container.

This domain handles:
- Node, edge, relationship and origin types
- Id-indexed graph storage with dangling-edge tracking
- Sealing a built graph for read-only serving
- Integrity validation (dangling edges, orphan variants, canonical cycles)
"""

from .graph_data import GraphData
from .models import (
    COVERS,
    EXTENDS,
    INTRODUCES,
    LEADS_TO,
    PREREQUISITE,
    RELATES_TO,
    VARIANT_OF,
    Direction,
    Edge,
    EdgeKey,
    EdgeOrigin,
    GraphStats,
    Node,
    Relationship,
    RelationshipKind,
)
from .validation import (
    CanonicalCycleDefect,
    DanglingEdgeDefect,
    OrphanReason,
    OrphanVariantDefect,
    ValidationReport,
    validate_graph,
)

__all__ = [
    # Models
    "Node",
    "Edge",
    "EdgeKey",
    "EdgeOrigin",
    "Relationship",
    "RelationshipKind",
    "Direction",
    "GraphStats",
    # Well-known relationships
    "PREREQUISITE",
    "LEADS_TO",
    "RELATES_TO",
    "EXTENDS",
    "INTRODUCES",
    "COVERS",
    "VARIANT_OF",
    # Implementations
    "GraphData",
    # Validation
    "ValidationReport",
    "DanglingEdgeDefect",
    "OrphanVariantDefect",
    "OrphanReason",
    "CanonicalCycleDefect",
    "validate_graph",
]
