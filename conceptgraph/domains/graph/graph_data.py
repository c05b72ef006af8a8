"""
Graph Data - The concept graph container.

Backed by a NetworkX MultiDiGraph (one parallel edge per relationship name),
with an id-indexed node lookup and a flat, ordered edge list used for
deterministic serialization and diffing.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

import networkx as nx

from conceptgraph.config.errors import (
    DuplicateNodeError,
    NodeNotFoundError,
    SealedGraphError,
)

from .models import (
    Direction,
    Edge,
    EdgeKey,
    GraphStats,
    Node,
    Relationship,
)

logger = logging.getLogger(__name__)

__all__ = ["GraphData"]


class GraphData:
    """
    Concept graph container.

    Built wholesale by one build cycle, then sealed. A sealed instance is
    immutable and safe to share across concurrent readers.

    Edges whose endpoints do not resolve are kept in the flat edge list and
    reported by ``dangling_edges``; they join the adjacency structure as soon
    as both endpoints exist.

    Example:
        >>> graph = GraphData()
        >>> graph.add_node(Node(id="sets", title="Sets"))
        >>> graph.add_node(Node(id="functions", title="Functions"))
        >>> graph.add_edge(Edge(source_id="sets", target_id="functions", relationship="prerequisite"))
        >>> graph.seal()
    """

    def __init__(self) -> None:
        self._graph = nx.MultiDiGraph()
        self._nodes: dict[str, Node] = {}
        self._edges: dict[EdgeKey, Edge] = {}
        self._dangling: set[EdgeKey] = set()
        self._sealed = False

    # --- Mutation (build time only) ---

    def add_node(self, node: Node) -> str:
        """
        Add a node.

        Raises:
            DuplicateNodeError: If a node with the same id already exists
            SealedGraphError: If the graph is sealed
        """
        self._check_mutable()
        if node.id in self._nodes:
            raise DuplicateNodeError(node.id)

        self._nodes[node.id] = node
        self._graph.add_node(node.id)

        # Attach edges that were waiting for this endpoint
        for key in sorted(k for k in self._dangling if node.id in (k[0], k[1])):
            edge = self._edges[key]
            if self._resolves(edge):
                self._dangling.discard(key)
                self._attach(edge)

        logger.debug("Added node: %s", node.id)
        return node.id

    def add_edge(self, edge: Edge) -> EdgeKey:
        """
        Add an edge, replacing any edge with the same (source, target, relationship).

        Edges with unresolved endpoints are retained and flagged as dangling.
        """
        self._check_mutable()
        key = edge.key
        if key in self._edges:
            self._detach(key)

        self._edges[key] = edge
        if self._resolves(edge):
            self._attach(edge)
        else:
            self._dangling.add(key)
            logger.debug("Dangling edge retained: %s", edge.describe())

        return key

    def remove_edge(self, key: EdgeKey) -> Edge:
        """Remove an edge by key."""
        self._check_mutable()
        edge = self._edges.pop(key)
        self._detach(key)
        return edge

    def seal(self) -> None:
        """Make the graph read-only."""
        if self._sealed:
            return
        nx.freeze(self._graph)
        self._sealed = True
        logger.debug(
            "Sealed graph: %d nodes, %d edges (%d dangling)",
            self.node_count,
            self.edge_count,
            len(self._dangling),
        )

    # --- Reads ---

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        """Number of edges, dangling ones included."""
        return len(self._edges)

    @property
    def nx_graph(self) -> nx.MultiDiGraph:
        """Adjacency structure. Frozen once the graph is sealed."""
        return self._graph

    def contains_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Node | None:
        """Get a node by id, or None."""
        return self._nodes.get(node_id)

    def require_node(self, node_id: str) -> Node:
        """Get a node by id, raising NodeNotFoundError when absent."""
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def get_edge(self, key: EdgeKey) -> Edge | None:
        return self._edges.get(key)

    def edges_between(self, source_id: str, target_id: str) -> list[Edge]:
        """All edges from source to target, any relationship."""
        return [e for k, e in self._edges.items() if k[0] == source_id and k[1] == target_id]

    def iter_nodes(self) -> Iterator[Node]:
        """Nodes in ascending id order."""
        for node_id in sorted(self._nodes):
            yield self._nodes[node_id]

    def iter_edges(self) -> Iterator[Edge]:
        """Edges in insertion order."""
        yield from self._edges.values()

    @property
    def dangling_edges(self) -> list[Edge]:
        """Edges with at least one unresolved endpoint."""
        return [self._edges[k] for k in self._edges if k in self._dangling]

    def get_edges(
        self,
        node_id: str,
        direction: Direction | str = Direction.BOTH,
        relationships: Iterable[Relationship] | None = None,
    ) -> list[Edge]:
        """
        Get edges incident to a node.

        Args:
            node_id: Node id
            direction: "out", "in", or "both"
            relationships: Optional relationship filter

        Returns:
            Matching edges, ordered by (neighbor id, relationship name)
        """
        self.require_node(node_id)
        direction = Direction(direction)
        allowed = {r.name for r in relationships} if relationships is not None else None
        edges: list[tuple[str, str, Edge]] = []

        if direction in (Direction.OUT, Direction.BOTH):
            for _, target, name, data in self._graph.out_edges(node_id, keys=True, data=True):
                if allowed is None or name in allowed:
                    edges.append((target, name, data["edge"]))

        if direction in (Direction.IN, Direction.BOTH):
            for source, _, name, data in self._graph.in_edges(node_id, keys=True, data=True):
                if allowed is None or name in allowed:
                    # Self-loops are already listed as outgoing
                    if direction is Direction.BOTH and source == node_id:
                        continue
                    edges.append((source, name, data["edge"]))

        edges.sort(key=lambda item: (item[0], item[1]))
        return [edge for _, _, edge in edges]

    def get_neighbors(
        self,
        node_id: str,
        direction: Direction | str = Direction.BOTH,
        relationships: Iterable[Relationship] | None = None,
    ) -> list[Node]:
        """
        Get neighboring nodes.

        Args:
            node_id: Node id
            direction: "out", "in", or "both"
            relationships: Optional relationship filter

        Returns:
            Distinct neighboring nodes in ascending id order
        """
        seen: dict[str, Node] = {}
        for edge in self.get_edges(node_id, direction, relationships):
            other = edge.target_id if edge.source_id == node_id else edge.source_id
            if other not in seen:
                seen[other] = self._nodes[other]
        return [seen[k] for k in sorted(seen)]

    def get_stats(self) -> GraphStats:
        """Get graph statistics."""
        nodes_by_category: dict[str, int] = {}
        edges_by_relationship: dict[str, int] = {}
        edges_by_origin: dict[str, int] = {}
        canonical = 0

        for node in self._nodes.values():
            category = node.category or "uncategorized"
            nodes_by_category[category] = nodes_by_category.get(category, 0) + 1
            if node.is_canonical:
                canonical += 1

        for edge in self._edges.values():
            name = edge.relationship.name
            edges_by_relationship[name] = edges_by_relationship.get(name, 0) + 1
            origin = edge.origin.value
            edges_by_origin[origin] = edges_by_origin.get(origin, 0) + 1

        return GraphStats(
            total_nodes=self.node_count,
            total_edges=self.edge_count,
            canonical_nodes=canonical,
            variant_nodes=self.node_count - canonical,
            dangling_edges=len(self._dangling),
            nodes_by_category=dict(sorted(nodes_by_category.items())),
            edges_by_relationship=dict(sorted(edges_by_relationship.items())),
            edges_by_origin=dict(sorted(edges_by_origin.items())),
        )

    # --- Internals ---

    def _check_mutable(self) -> None:
        if self._sealed:
            raise SealedGraphError("Sealed graphs cannot be modified")

    def _resolves(self, edge: Edge) -> bool:
        return edge.source_id in self._nodes and edge.target_id in self._nodes

    def _attach(self, edge: Edge) -> None:
        self._graph.add_edge(
            edge.source_id,
            edge.target_id,
            key=edge.relationship.name,
            edge=edge,
            weight=edge.weight,
        )

    def _detach(self, key: EdgeKey) -> None:
        if key in self._dangling:
            self._dangling.discard(key)
            return
        source, target, name = key
        if self._graph.has_edge(source, target, key=name):
            self._graph.remove_edge(source, target, key=name)
