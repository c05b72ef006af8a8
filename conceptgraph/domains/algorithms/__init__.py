"""
Algorithms Domain - Structural queries over a sealed concept graph.

This domain handles:
- Prerequisite closure and learning order
- Weighted shortest paths and k-hop neighborhoods
- Betweenness centrality and bridge detection
- Name-based dispatch for service and CLI callers
"""

from .engine import DEFAULT_MAX_DEPTH, AlgorithmEngine, edge_cost
from .models import (
    BridgesResult,
    CentralityResult,
    CentralityScore,
    ClosureResult,
    LearningOrderResult,
    NeighborhoodResult,
    PathResult,
    RelatedNode,
    RelatedResult,
)

__all__ = [
    # Engine
    "AlgorithmEngine",
    "DEFAULT_MAX_DEPTH",
    "edge_cost",
    # Results
    "ClosureResult",
    "LearningOrderResult",
    "PathResult",
    "NeighborhoodResult",
    "RelatedNode",
    "RelatedResult",
    "CentralityScore",
    "CentralityResult",
    "BridgesResult",
]
