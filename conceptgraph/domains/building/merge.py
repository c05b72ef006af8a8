"""
Graph Merger - Fold per-unit extractions into one graph.

Nodes are merged first (canonical nodes ahead of variants), then edges in
unit discovery order, so the result is independent of the order in which
extraction tasks finished.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from conceptgraph.domains.graph import VARIANT_OF, Edge, EdgeKey, EdgeOrigin, GraphData, Node

from .models import DuplicateNodeDefect, UnitExtraction, VariantRename

logger = logging.getLogger(__name__)

__all__ = ["GraphMerger", "MergeOutcome", "variant_node_id"]


@dataclass
class MergeOutcome:
    """Counters and defects recorded while merging."""

    duplicate_nodes: list[DuplicateNodeDefect] = field(default_factory=list)
    variant_renames: list[VariantRename] = field(default_factory=list)
    deduped_edges: int = 0
    edges_replaced_by_precedence: int = 0
    manual_origin_ignored: int = 0


def variant_node_id(canonical_id: str, node: Node, unit_path: str) -> str:
    """Id for a variant that collides with its canonical parent."""
    suffix = node.source_id or PurePosixPath(unit_path).stem
    return f"{canonical_id}@{suffix}"


class GraphMerger:
    """
    Merges extractions into an unsealed GraphData.

    Rules:
    - Canonical nodes are placed before variants, so a variant never takes
      its parent's id; otherwise the first node wins an id collision and
      later ones are duplicate defects
    - A variant colliding with its own canonical parent is renamed
    - Edge collisions on (source, target, relationship) keep the edge with the
      higher-precedence origin, else the first one seen
    - Manual-origin edges are reserved for the overlay stage and ignored here
    """

    def merge(self, extractions: Sequence[UnitExtraction]) -> tuple[GraphData, MergeOutcome]:
        """
        Merge extractions.

        Args:
            extractions: Successful extractions in discovery order

        Returns:
            Tuple of (graph, outcome)
        """
        graph = GraphData()
        outcome = MergeOutcome()
        owners: dict[str, str] = {}
        unit_edges: list[tuple[int, str, list[Edge]]] = []

        # Canonical nodes claim their ids before variants; discovery order otherwise
        ranked = sorted(enumerate(extractions), key=lambda item: not item[1].node.is_canonical)
        for index, extraction in ranked:
            node = extraction.node
            existing = graph.get_node(node.id)

            if existing is not None:
                renamed = self._try_rename_variant(node, existing, extraction.path)
                if renamed is None or graph.contains_node(renamed.id):
                    logger.warning(
                        "Duplicate node %s in %s (kept %s)",
                        node.id,
                        extraction.path,
                        owners[node.id],
                    )
                    outcome.duplicate_nodes.append(
                        DuplicateNodeDefect(
                            node_id=node.id,
                            kept_path=owners[node.id],
                            dropped_path=extraction.path,
                        )
                    )
                    unit_edges.append((index, extraction.path, extraction.edges))
                    continue

                outcome.variant_renames.append(
                    VariantRename(original_id=node.id, new_id=renamed.id, path=extraction.path)
                )
                edges = [self._reattach(e, node.id, renamed.id) for e in extraction.edges]
                node = renamed
                unit_edges.append((index, extraction.path, edges))
            else:
                unit_edges.append((index, extraction.path, extraction.edges))

            graph.add_node(node)
            owners[node.id] = extraction.path

        pending: dict[EdgeKey, Edge] = {}
        unit_edges.sort(key=lambda item: item[0])
        for _, path, edges in unit_edges:
            for edge in edges:
                if edge.origin is EdgeOrigin.MANUAL:
                    logger.warning("Ignoring manual-origin edge from %s: %s", path, edge.describe())
                    outcome.manual_origin_ignored += 1
                    continue

                current = pending.get(edge.key)
                if current is None:
                    pending[edge.key] = edge
                elif edge.origin.precedence > current.origin.precedence:
                    pending[edge.key] = edge
                    outcome.edges_replaced_by_precedence += 1
                else:
                    outcome.deduped_edges += 1

        for edge in pending.values():
            graph.add_edge(edge)

        logger.info(
            "Merged %d nodes and %d edges (%d duplicates, %d variants renamed, %d edges deduped)",
            graph.node_count,
            graph.edge_count,
            len(outcome.duplicate_nodes),
            len(outcome.variant_renames),
            outcome.deduped_edges + outcome.edges_replaced_by_precedence,
        )
        return graph, outcome

    @staticmethod
    def _try_rename_variant(node: Node, existing: Node, unit_path: str) -> Node | None:
        if node.is_canonical or not existing.is_canonical:
            return None
        if node.canonical_id != existing.id:
            return None
        new_id = variant_node_id(existing.id, node, unit_path)
        return node.as_variant_of(existing.id, node_id=new_id)

    @staticmethod
    def _reattach(edge: Edge, old_id: str, new_id: str) -> Edge:
        """Point a renamed unit's edges at its new id; variant_of keeps its parent."""
        update = {}
        if edge.source_id == old_id:
            update["source_id"] = new_id
        if edge.target_id == old_id and edge.relationship != VARIANT_OF:
            update["target_id"] = new_id
        return edge.model_copy(update=update) if update else edge
