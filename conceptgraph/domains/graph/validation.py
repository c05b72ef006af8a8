"""
Graph Validation - Integrity defect sweep.

Used by the builder's Validating stage and by on-demand validation against a
sealed graph. The sweep never mutates the graph.
"""

from __future__ import annotations

import logging
from enum import Enum

import networkx as nx
from pydantic import BaseModel, Field

from .graph_data import GraphData

logger = logging.getLogger(__name__)

__all__ = [
    "CanonicalCycleDefect",
    "DanglingEdgeDefect",
    "OrphanReason",
    "OrphanVariantDefect",
    "ValidationReport",
    "validate_graph",
]


class DanglingEdgeDefect(BaseModel):
    """Edge with at least one endpoint that does not resolve."""

    source_id: str
    target_id: str
    relationship: str
    origin: str
    missing: list[str]


class OrphanReason(str, Enum):
    """Why a variant's canonical parent is unusable."""

    MISSING_PARENT = "missing_parent"
    NON_CANONICAL_PARENT = "non_canonical_parent"


class OrphanVariantDefect(BaseModel):
    """Variant node whose canonical parent is missing or not canonical."""

    node_id: str
    canonical_id: str
    reason: OrphanReason


class CanonicalCycleDefect(BaseModel):
    """Cycle among canonical-parent links, e.g. ``a -> b -> a``."""

    node_ids: list[str]


class ValidationReport(BaseModel):
    """Structured record of integrity defects."""

    dangling_edges: list[DanglingEdgeDefect] = Field(default_factory=list)
    orphan_variants: list[OrphanVariantDefect] = Field(default_factory=list)
    canonical_cycles: list[CanonicalCycleDefect] = Field(default_factory=list)

    @property
    def defect_count(self) -> int:
        return len(self.dangling_edges) + len(self.orphan_variants) + len(self.canonical_cycles)

    @property
    def is_valid(self) -> bool:
        return self.defect_count == 0

    def summary(self) -> str:
        """One-line summary for logs."""
        return (
            f"{len(self.dangling_edges)} dangling edges, "
            f"{len(self.orphan_variants)} orphan variants, "
            f"{len(self.canonical_cycles)} canonical cycles"
        )


def validate_graph(graph: GraphData) -> ValidationReport:
    """
    Run the full defect sweep.

    Checks:
    - Dangling edges (endpoint not in the graph)
    - Orphan variants (canonical parent missing, or itself not canonical)
    - Cycles among canonical-parent chains

    Args:
        graph: Graph to inspect (sealed or not)

    Returns:
        ValidationReport with every defect found
    """
    dangling = [
        DanglingEdgeDefect(
            source_id=edge.source_id,
            target_id=edge.target_id,
            relationship=edge.relationship.name,
            origin=edge.origin.value,
            missing=[
                endpoint
                for endpoint in (edge.source_id, edge.target_id)
                if not graph.contains_node(endpoint)
            ],
        )
        for edge in graph.dangling_edges
    ]

    cycles = _find_canonical_cycles(graph)
    in_cycle = {node_id for cycle in cycles for node_id in cycle}

    orphans: list[OrphanVariantDefect] = []
    for node in graph.iter_nodes():
        if node.is_canonical or node.id in in_cycle or node.canonical_id is None:
            continue
        parent = graph.get_node(node.canonical_id)
        if parent is None:
            reason = OrphanReason.MISSING_PARENT
        elif not parent.is_canonical:
            reason = OrphanReason.NON_CANONICAL_PARENT
        else:
            continue
        orphans.append(
            OrphanVariantDefect(node_id=node.id, canonical_id=node.canonical_id, reason=reason)
        )

    report = ValidationReport(
        dangling_edges=dangling,
        orphan_variants=orphans,
        canonical_cycles=[CanonicalCycleDefect(node_ids=c + [c[0]]) for c in cycles],
    )

    if report.is_valid:
        logger.debug("Validation clean")
    else:
        logger.warning("Validation found defects: %s", report.summary())

    return report


def _find_canonical_cycles(graph: GraphData) -> list[list[str]]:
    """Cycles among variant-to-parent links, each rotated to its smallest id."""
    parents = nx.DiGraph()
    for node in graph.iter_nodes():
        if not node.is_canonical and node.canonical_id and graph.contains_node(node.canonical_id):
            parents.add_edge(node.id, node.canonical_id)

    cycles: list[list[str]] = []
    for ring in nx.simple_cycles(parents):
        start = ring.index(min(ring))
        cycles.append(ring[start:] + ring[:start])

    cycles.sort()
    return cycles
