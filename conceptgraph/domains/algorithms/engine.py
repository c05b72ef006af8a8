"""
Algorithm Engine - Read-only algorithms over a sealed concept graph.

Traversal cost of an edge is ``1 / weight``, so strong relationships are cheap
to follow. Every result is deterministic: ties are broken by hop count, then
by node id.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

import networkx as nx
from pydantic import BaseModel, ValidationError

from conceptgraph.config.errors import (
    GraphNotSealedError,
    InvalidQueryError,
    UnknownAlgorithmError,
)
from conceptgraph.domains.graph import (
    LEADS_TO,
    PREREQUISITE,
    Direction,
    Edge,
    GraphData,
    GraphStats,
    Relationship,
    ValidationReport,
    validate_graph,
)

from .models import (
    BridgesResult,
    CentralityParams,
    CentralityResult,
    CentralityScore,
    ClosureParams,
    ClosureResult,
    EmptyParams,
    LearningOrderParams,
    LearningOrderResult,
    NeighborhoodParams,
    NeighborhoodResult,
    PathParams,
    PathResult,
    RelatedNode,
    RelatedParams,
    RelatedResult,
)

logger = logging.getLogger(__name__)

__all__ = ["AlgorithmEngine", "edge_cost"]

DEFAULT_MAX_DEPTH = 10


def edge_cost(edge: Edge) -> float:
    """Traversal cost of an edge."""
    return 1.0 / edge.weight


class AlgorithmEngine:
    """
    Graph algorithms bound to one sealed graph.

    Example:
        >>> engine = AlgorithmEngine(graph)
        >>> closure = engine.prerequisite_closure("calculus", max_depth=3)
        >>> [n.id for n in closure.layers[0]]
        ['functions', 'limits']
    """

    def __init__(
        self,
        graph: GraphData,
        max_depth: int = DEFAULT_MAX_DEPTH,
        include_leads_to: bool = False,
    ) -> None:
        if not graph.is_sealed:
            raise GraphNotSealedError("Algorithms require a sealed graph")
        self._graph = graph
        self._max_depth = max_depth
        self._include_leads_to = include_leads_to
        self._registry: dict[str, tuple[type[BaseModel], Callable[..., BaseModel]]] = {
            "prerequisites": (ClosureParams, self.prerequisite_closure),
            "learning_order": (LearningOrderParams, self.learning_order),
            "path": (PathParams, self.shortest_path),
            "neighborhood": (NeighborhoodParams, self.neighborhood),
            "related": (RelatedParams, self.related),
            "centrality": (CentralityParams, self.centrality),
            "bridges": (EmptyParams, self.bridges),
            "validate": (EmptyParams, self.validate),
            "stats": (EmptyParams, self.stats),
        }

    @property
    def graph(self) -> GraphData:
        return self._graph

    @property
    def algorithms(self) -> list[str]:
        return sorted(self._registry)

    def run(self, name: str, params: dict[str, Any] | None = None) -> BaseModel:
        """
        Run an algorithm by name.

        Args:
            name: Algorithm name (see ``algorithms``)
            params: Keyword parameters for the algorithm

        Returns:
            The algorithm's result model

        Raises:
            UnknownAlgorithmError: If the name is not registered
            InvalidQueryError: If the parameters do not validate
        """
        if name not in self._registry:
            raise UnknownAlgorithmError(name, self.algorithms)

        params_model, method = self._registry[name]
        try:
            parsed = params_model.model_validate(params or {})
        except ValidationError as e:
            raise InvalidQueryError(
                f"Invalid parameters for {name}",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e

        kwargs = parsed.model_dump(exclude_unset=True, exclude={"relationships"})
        kwargs.update(self._relationship_kwargs(parsed))
        logger.debug("Running %s with %s", name, kwargs)
        return method(**kwargs)

    # --- Prerequisites ---

    def prerequisite_closure(
        self,
        node_id: str,
        max_depth: int | None = None,
        include_leads_to: bool | None = None,
    ) -> ClosureResult:
        """
        Transitive prerequisites of a node.

        Walks incoming prerequisite edges breadth-first, visiting each node
        once. Cycles among the collected nodes (the target included) are
        reported separately.

        Args:
            node_id: Target node
            max_depth: Number of layers to expand (capped by the engine limit)
            include_leads_to: Also follow leads_to edges backwards

        Returns:
            ClosureResult with one layer per distance, nearest first
        """
        target = self._graph.require_node(node_id)
        depth = self._depth(max_depth)
        relationships = self._prerequisite_relationships(include_leads_to)

        visited = {node_id}
        frontier = [node_id]
        layers: list[list[str]] = []

        for _ in range(depth):
            layer = sorted(
                {
                    edge.source_id
                    for current in frontier
                    for edge in self._graph.get_edges(current, Direction.IN, relationships)
                    if edge.source_id not in visited
                }
            )
            if not layer:
                frontier = []
                break
            visited.update(layer)
            layers.append(layer)
            frontier = layer

        depth_limited = any(
            edge.source_id not in visited
            for current in frontier
            for edge in self._graph.get_edges(current, Direction.IN, relationships)
        )

        subgraph = self._closure_subgraph(visited, relationships)
        cycles = sorted(_closed_cycle(ring) for ring in nx.simple_cycles(subgraph))

        return ClosureResult(
            target=target,
            layers=[[self._graph.require_node(i) for i in layer] for layer in layers],
            cycles=cycles,
            max_depth=depth,
            depth_limited=depth_limited,
        )

    def learning_order(
        self,
        node_id: str,
        include_leads_to: bool | None = None,
    ) -> LearningOrderResult:
        """
        Prerequisites in an order where each concept follows its own prerequisites.

        Falls back to deepest-layer-first when the prerequisites contain cycles.
        """
        closure = self.prerequisite_closure(node_id, self._max_depth, include_leads_to)
        relationships = self._prerequisite_relationships(include_leads_to)
        members = {node_id, *(n.id for n in closure.nodes)}

        subgraph = self._closure_subgraph(members, relationships)
        subgraph.remove_edges_from(list(nx.selfloop_edges(subgraph)))

        try:
            order = list(nx.lexicographical_topological_sort(subgraph))
            has_cycles = closure.has_cycles
        except nx.NetworkXUnfeasible:
            order = [n.id for layer in reversed(closure.layers) for n in layer] + [node_id]
            has_cycles = True

        # The target goes last even when a cycle would pull it forward
        order = [i for i in order if i != node_id] + [node_id]
        return LearningOrderResult(
            target=closure.target,
            ordered=[self._graph.require_node(i) for i in order],
            has_cycles=has_cycles,
        )

    # --- Paths ---

    def shortest_path(
        self,
        from_id: str,
        to_id: str,
        relationships: Iterable[Relationship] | None = None,
    ) -> PathResult:
        """
        Lowest-cost directed path.

        networkx yields every minimum-cost path; among those the one with the
        fewest hops wins, then the lexicographically smallest node sequence.

        Args:
            from_id: Start node
            to_id: End node
            relationships: Optional allowlist of relationships to follow

        Returns:
            PathResult; ``found`` is False when an endpoint is unknown or no
            path exists
        """
        if not self._graph.contains_node(from_id) or not self._graph.contains_node(to_id):
            logger.debug("Path endpoint not in graph: %s -> %s", from_id, to_id)
            return PathResult.not_found()

        if from_id == to_id:
            return PathResult(found=True, nodes=[self._graph.require_node(from_id)])

        projection = self._cost_projection(relationships)
        try:
            candidates = nx.all_shortest_paths(projection, from_id, to_id, weight="cost")
            path = min(candidates, key=lambda p: (len(p), p))
        except nx.NetworkXNoPath:
            return PathResult.not_found()

        edges = [projection[u][v]["edge"] for u, v in zip(path, path[1:])]
        return PathResult(
            found=True,
            nodes=[self._graph.require_node(i) for i in path],
            edges=edges,
            total_cost=sum(projection[u][v]["cost"] for u, v in zip(path, path[1:])),
        )

    def neighborhood(
        self,
        node_id: str,
        radius: int = 1,
        relationships: Iterable[Relationship] | None = None,
    ) -> NeighborhoodResult:
        """
        Nodes within ``radius`` hops (either direction) and the edges among them.
        """
        center = self._graph.require_node(node_id)
        if radius < 0:
            raise InvalidQueryError("radius must be non-negative", details={"radius": radius})
        radius = min(radius, self._max_depth)
        allowed_names = {r.name for r in relationships} if relationships is not None else None

        view = self._graph.nx_graph
        if allowed_names is not None:
            view = nx.subgraph_view(view, filter_edge=lambda u, v, k: k in allowed_names)
        distances = nx.single_source_shortest_path_length(
            view.to_undirected(as_view=True), node_id, cutoff=radius
        )

        edges = [
            edge
            for edge in self._graph.iter_edges()
            if edge.source_id in distances
            and edge.target_id in distances
            and (allowed_names is None or edge.relationship.name in allowed_names)
        ]
        ordered = sorted(distances, key=lambda i: (distances[i], i))

        return NeighborhoodResult(
            center=center,
            radius=radius,
            nodes=[self._graph.require_node(i) for i in ordered],
            edges=edges,
            distances={i: distances[i] for i in ordered},
        )

    def related(
        self,
        node_id: str,
        direction: Direction | str = Direction.BOTH,
        relationships: Iterable[Relationship] | None = None,
    ) -> RelatedResult:
        """Direct neighbors together with the relationship linking them."""
        center = self._graph.require_node(node_id)
        related = []
        for edge in self._graph.get_edges(node_id, direction, relationships):
            outgoing = edge.source_id == node_id
            related.append(
                RelatedNode(
                    node=self._graph.require_node(edge.target_id if outgoing else edge.source_id),
                    relationship=edge.relationship.name,
                    direction=Direction.OUT if outgoing else Direction.IN,
                    weight=edge.weight,
                )
            )
        return RelatedResult(center=center, related=related)

    # --- Whole-graph measures ---

    def centrality(self, limit: int | None = None) -> CentralityResult:
        """
        Betweenness centrality over lowest-cost paths.

        Args:
            limit: Keep only the top ``limit`` nodes

        Returns:
            Scores sorted by score descending, then id ascending
        """
        projection = self._cost_projection(None)
        raw = nx.betweenness_centrality(projection, weight="cost", normalized=True)
        scores = sorted(
            (
                CentralityScore(
                    node_id=node_id,
                    title=self._graph.require_node(node_id).title,
                    score=round(score, 12),
                )
                for node_id, score in raw.items()
            ),
            key=lambda s: (-s.score, s.node_id),
        )
        if limit is not None:
            scores = scores[:limit]
        return CentralityResult(scores=scores)

    def bridges(self) -> BridgesResult:
        """
        Bridge edges of the undirected projection.

        Parallel edges between the same two nodes (in either direction) are
        never bridges; self-loops are ignored.
        """
        undirected = nx.MultiGraph()
        undirected.add_nodes_from(self._graph.nx_graph.nodes)
        for u, v in self._graph.nx_graph.edges():
            if u != v:
                undirected.add_edge(u, v)

        found: list[Edge] = []
        for u, v in nx.bridges(undirected):
            found.extend(self._graph.edges_between(u, v))
            found.extend(self._graph.edges_between(v, u))

        found.sort(key=lambda e: e.key)
        return BridgesResult(edges=found)

    def validate(self) -> ValidationReport:
        """Integrity defect sweep of the bound graph."""
        return validate_graph(self._graph)

    def stats(self) -> GraphStats:
        return self._graph.get_stats()

    # --- Internals ---

    def _depth(self, requested: int | None) -> int:
        if requested is None:
            return self._max_depth
        if requested < 1:
            raise InvalidQueryError("max_depth must be at least 1", details={"max_depth": requested})
        return min(requested, self._max_depth)

    def _prerequisite_relationships(self, include_leads_to: bool | None) -> list[Relationship]:
        if include_leads_to is None:
            include_leads_to = self._include_leads_to
        return [PREREQUISITE, LEADS_TO] if include_leads_to else [PREREQUISITE]

    def _closure_subgraph(
        self,
        members: set[str],
        relationships: list[Relationship],
    ) -> nx.DiGraph:
        """Prerequisite edges among ``members`` as a simple digraph."""
        subgraph = nx.DiGraph()
        subgraph.add_nodes_from(sorted(members))
        for member in sorted(members):
            for edge in self._graph.get_edges(member, Direction.OUT, relationships):
                if edge.target_id in members:
                    subgraph.add_edge(edge.source_id, edge.target_id)
        return subgraph

    def _cost_projection(self, relationships: Iterable[Relationship] | None) -> nx.DiGraph:
        """
        Simple digraph keeping the cheapest allowed edge per node pair.

        Equal costs keep the relationship name that sorts first.
        """
        allowed = {r.name for r in relationships} if relationships is not None else None
        projection = nx.DiGraph()
        projection.add_nodes_from(self._graph.nx_graph.nodes)
        multi_edges = sorted(
            self._graph.nx_graph.edges(keys=True, data="edge"), key=lambda item: item[:3]
        )
        for source, target, name, edge in multi_edges:
            if allowed is not None and name not in allowed:
                continue
            cost = edge_cost(edge)
            existing = projection.get_edge_data(source, target)
            if existing is None or cost < existing["cost"]:
                projection.add_edge(source, target, cost=cost, edge=edge)
        return projection

    @staticmethod
    def _relationship_kwargs(parsed: BaseModel) -> dict[str, Any]:
        if "relationships" not in parsed.model_fields_set:
            return {}
        return {"relationships": getattr(parsed, "relationships")}


def _closed_cycle(ring: list[str]) -> list[str]:
    """Cycle rotated to start at its smallest id and closed, e.g. ``[a, b, a]``."""
    start = ring.index(min(ring))
    rotated = ring[start:] + ring[:start]
    return [*rotated, rotated[0]]
