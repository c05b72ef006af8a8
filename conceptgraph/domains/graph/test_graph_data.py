"""Tests for the Graph Data container."""

import pytest

from conceptgraph.config.errors import (
    DuplicateNodeError,
    NodeNotFoundError,
    SealedGraphError,
)

from .graph_data import GraphData
from .models import PREREQUISITE, RELATES_TO, Direction, Edge, EdgeOrigin, Node


@pytest.fixture
def graph() -> GraphData:
    """Create a small graph: a -> b -> c, plus a -relates_to-> c."""
    g = GraphData()
    for node_id in ("a", "b", "c"):
        g.add_node(Node(id=node_id, title=node_id.upper(), category="math"))
    g.add_edge(Edge(source_id="a", target_id="b", relationship=PREREQUISITE))
    g.add_edge(Edge(source_id="b", target_id="c", relationship=PREREQUISITE))
    g.add_edge(Edge(source_id="a", target_id="c", relationship=RELATES_TO))
    return g


def test_add_and_get_node(graph: GraphData):
    """Test adding and retrieving a node."""
    node = graph.get_node("a")
    assert node is not None
    assert node.title == "A"
    assert graph.node_count == 3
    assert graph.get_node("missing") is None


def test_duplicate_node_rejected(graph: GraphData):
    """Test that duplicate ids are a defect."""
    with pytest.raises(DuplicateNodeError) as exc_info:
        graph.add_node(Node(id="a", title="Again"))
    assert exc_info.value.node_id == "a"


def test_dangling_edge_is_retained(graph: GraphData):
    """Test that edges to missing nodes are kept and flagged."""
    graph.add_edge(Edge(source_id="a", target_id="ghost", relationship=PREREQUISITE))

    assert graph.edge_count == 4
    dangling = graph.dangling_edges
    assert len(dangling) == 1
    assert dangling[0].target_id == "ghost"
    # Not part of the adjacency structure
    assert not graph.nx_graph.has_node("ghost")


def test_dangling_edge_attaches_when_node_arrives(graph: GraphData):
    """Test that a dangling edge resolves once its endpoint is added."""
    graph.add_edge(Edge(source_id="late", target_id="a", relationship=PREREQUISITE))
    assert len(graph.dangling_edges) == 1

    graph.add_node(Node(id="late", title="Late"))

    assert graph.dangling_edges == []
    assert [n.id for n in graph.get_neighbors("a", direction="in")] == ["late"]


def test_same_triple_replaces(graph: GraphData):
    """Test that one edge exists per (source, target, relationship)."""
    graph.add_edge(
        Edge(
            source_id="a",
            target_id="b",
            relationship=PREREQUISITE,
            weight=0.4,
            origin=EdgeOrigin.MANUAL,
        )
    )

    edges = graph.edges_between("a", "b")
    assert len(edges) == 1
    assert edges[0].weight == 0.4
    assert graph.edge_count == 3


def test_get_neighbors(graph: GraphData):
    """Test getting neighboring nodes."""
    out = graph.get_neighbors("a", direction=Direction.OUT)
    assert [n.id for n in out] == ["b", "c"]

    filtered = graph.get_neighbors("a", direction="out", relationships=[PREREQUISITE])
    assert [n.id for n in filtered] == ["b"]

    incoming = graph.get_neighbors("c", direction="in")
    assert [n.id for n in incoming] == ["a", "b"]

    both = graph.get_neighbors("b")
    assert [n.id for n in both] == ["a", "c"]


def test_get_neighbors_unknown_node(graph: GraphData):
    """Test that unknown ids are a typed query failure."""
    with pytest.raises(NodeNotFoundError):
        graph.get_neighbors("nope")


def test_remove_edge(graph: GraphData):
    """Test removing an edge by key."""
    removed = graph.remove_edge(("a", "c", "relates_to"))
    assert removed.relationship == RELATES_TO
    assert graph.edge_count == 2
    assert [n.id for n in graph.get_neighbors("a", direction="out")] == ["b"]


def test_seal_blocks_mutation(graph: GraphData):
    """Test that sealed graphs are read-only."""
    graph.seal()
    assert graph.is_sealed

    with pytest.raises(SealedGraphError):
        graph.add_node(Node(id="d", title="D"))
    with pytest.raises(SealedGraphError):
        graph.add_edge(Edge(source_id="a", target_id="b", relationship=RELATES_TO))
    with pytest.raises(SealedGraphError):
        graph.remove_edge(("a", "b", "prerequisite"))

    # Reads still work
    assert graph.get_node("a") is not None


def test_iteration_order(graph: GraphData):
    """Test deterministic iteration."""
    assert [n.id for n in graph.iter_nodes()] == ["a", "b", "c"]
    assert [e.key for e in graph.iter_edges()] == [
        ("a", "b", "prerequisite"),
        ("b", "c", "prerequisite"),
        ("a", "c", "relates_to"),
    ]


def test_get_stats(graph: GraphData):
    """Test getting graph statistics."""
    graph.add_node(Node(id="a-variant", title="A'", is_canonical=False, canonical_id="a"))

    stats = graph.get_stats()
    assert stats.total_nodes == 4
    assert stats.total_edges == 3
    assert stats.canonical_nodes == 3
    assert stats.variant_nodes == 1
    assert stats.nodes_by_category == {"math": 3, "uncategorized": 1}
    assert stats.edges_by_relationship == {"prerequisite": 2, "relates_to": 1}
    assert stats.edges_by_origin == {"frontmatter": 3}
