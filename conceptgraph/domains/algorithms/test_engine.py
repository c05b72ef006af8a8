"""Tests for the Algorithm Engine."""

import pytest

from conceptgraph.config.errors import (
    GraphNotSealedError,
    InvalidQueryError,
    NodeNotFoundError,
    UnknownAlgorithmError,
)
from conceptgraph.domains.graph import (
    LEADS_TO,
    PREREQUISITE,
    RELATES_TO,
    Edge,
    GraphData,
    Node,
)

from .engine import AlgorithmEngine
from .models import ClosureResult, PathResult


def build_graph(nodes: list[str], edges: list[tuple[str, str, object, float | None]]) -> GraphData:
    graph = GraphData()
    for node_id in nodes:
        graph.add_node(Node(id=node_id, title=node_id.upper()))
    for source, target, relationship, weight in edges:
        graph.add_edge(
            Edge(source_id=source, target_id=target, relationship=relationship, weight=weight)
        )
    graph.seal()
    return graph


@pytest.fixture
def curriculum() -> AlgorithmEngine:
    """
    sets -> functions -> limits -> calculus
    functions -> calculus
    algebra -> functions
    """
    graph = build_graph(
        ["algebra", "calculus", "functions", "limits", "sets"],
        [
            ("sets", "functions", PREREQUISITE, None),
            ("algebra", "functions", PREREQUISITE, None),
            ("functions", "limits", PREREQUISITE, None),
            ("limits", "calculus", PREREQUISITE, None),
            ("functions", "calculus", PREREQUISITE, None),
            ("calculus", "sets", RELATES_TO, None),
        ],
    )
    return AlgorithmEngine(graph)


def test_requires_sealed_graph():
    """Test the engine refuses a graph that is still being built."""
    with pytest.raises(GraphNotSealedError):
        AlgorithmEngine(GraphData())


# --- Prerequisites ---


def test_prerequisite_closure_layers(curriculum: AlgorithmEngine):
    """Test prerequisites are grouped by distance, nearest first."""
    result = curriculum.prerequisite_closure("calculus")

    assert [[n.id for n in layer] for layer in result.layers] == [
        ["functions", "limits"],
        ["algebra", "sets"],
    ]
    assert not result.has_cycles
    assert not result.depth_limited


def test_prerequisite_closure_depth_limit(curriculum: AlgorithmEngine):
    """Test max_depth bounds the traversal."""
    result = curriculum.prerequisite_closure("calculus", max_depth=1)

    assert [n.id for n in result.nodes] == ["functions", "limits"]
    assert result.depth_limited


def test_prerequisite_closure_cycle_terminates():
    """Test A -> B -> A terminates and reports the cycle."""
    engine = AlgorithmEngine(
        build_graph(["a", "b"], [("a", "b", PREREQUISITE, None), ("b", "a", PREREQUISITE, None)])
    )

    result = engine.prerequisite_closure("a", max_depth=10)

    assert [n.id for n in result.nodes] == ["b"]
    assert result.has_cycles
    assert result.cycles == [["a", "b", "a"]]


def test_prerequisite_closure_cycle_across_branches():
    """Test a cycle between two direct prerequisites is still reported."""
    engine = AlgorithmEngine(
        build_graph(
            ["a", "b", "t"],
            [
                ("a", "t", PREREQUISITE, None),
                ("b", "t", PREREQUISITE, None),
                ("a", "b", PREREQUISITE, None),
                ("b", "a", PREREQUISITE, None),
            ],
        )
    )

    result = engine.prerequisite_closure("t")

    assert [[n.id for n in layer] for layer in result.layers] == [["a", "b"]]
    assert result.has_cycles
    assert result.cycles == [["a", "b", "a"]]
    assert engine.learning_order("t").has_cycles


def test_prerequisite_closure_leads_to():
    """Test leads_to edges are followed only when asked."""
    engine = AlgorithmEngine(
        build_graph(
            ["a", "b", "c"],
            [("a", "b", LEADS_TO, None), ("b", "c", PREREQUISITE, None)],
        )
    )

    assert [n.id for n in engine.prerequisite_closure("c").nodes] == ["b"]
    assert [n.id for n in engine.prerequisite_closure("c", include_leads_to=True).nodes] == [
        "b",
        "a",
    ]


def test_prerequisite_closure_unknown_node(curriculum: AlgorithmEngine):
    """Test unknown ids are a typed query failure."""
    with pytest.raises(NodeNotFoundError):
        curriculum.prerequisite_closure("topology")


def test_prerequisite_closure_invalid_depth(curriculum: AlgorithmEngine):
    """Test non-positive depth is rejected."""
    with pytest.raises(InvalidQueryError):
        curriculum.prerequisite_closure("calculus", max_depth=0)


def test_learning_order(curriculum: AlgorithmEngine):
    """Test every concept follows its own prerequisites."""
    result = curriculum.learning_order("calculus")

    order = [n.id for n in result.ordered]
    assert order == ["algebra", "sets", "functions", "limits", "calculus"]
    assert not result.has_cycles


def test_learning_order_with_cycle():
    """Test a cycle falls back to layer order and is flagged."""
    engine = AlgorithmEngine(
        build_graph(
            ["a", "b", "c"],
            [
                ("a", "b", PREREQUISITE, None),
                ("b", "a", PREREQUISITE, None),
                ("b", "c", PREREQUISITE, None),
            ],
        )
    )

    result = engine.learning_order("c")
    assert result.has_cycles
    assert [n.id for n in result.ordered][-1] == "c"


# --- Paths ---


def test_shortest_path_chain():
    """Test A -> B -> C is found with unit costs."""
    engine = AlgorithmEngine(
        build_graph(
            ["a", "b", "c"],
            [("a", "b", PREREQUISITE, 1.0), ("b", "c", PREREQUISITE, 1.0)],
        )
    )

    result = engine.shortest_path("a", "c")

    assert result.found
    assert [n.id for n in result.nodes] == ["a", "b", "c"]
    assert result.total_cost == pytest.approx(2.0)
    assert result.hops == 2


def test_shortest_path_disconnected():
    """Test disconnected nodes give no path, not an error."""
    engine = AlgorithmEngine(build_graph(["a", "b"], []))

    result = engine.shortest_path("a", "b")

    assert result == PathResult.not_found()


def test_shortest_path_prefers_strong_edges():
    """Test cost is 1/weight, so two strong hops beat one weak hop."""
    engine = AlgorithmEngine(
        build_graph(
            ["a", "b", "c"],
            [
                ("a", "c", RELATES_TO, 0.2),
                ("a", "b", PREREQUISITE, 1.0),
                ("b", "c", PREREQUISITE, 1.0),
            ],
        )
    )

    assert [n.id for n in engine.shortest_path("a", "c").nodes] == ["a", "b", "c"]


def test_shortest_path_tie_break():
    """Test equal-cost paths resolve to the smallest id sequence."""
    engine = AlgorithmEngine(
        build_graph(
            ["a", "m", "x", "z"],
            [
                ("a", "x", PREREQUISITE, None),
                ("a", "m", PREREQUISITE, None),
                ("x", "z", PREREQUISITE, None),
                ("m", "z", PREREQUISITE, None),
            ],
        )
    )

    assert [n.id for n in engine.shortest_path("a", "z").nodes] == ["a", "m", "z"]


def test_shortest_path_relationship_filter():
    """Test the allowlist restricts which edges are followed."""
    engine = AlgorithmEngine(
        build_graph(["a", "b"], [("a", "b", RELATES_TO, None)])
    )

    assert engine.shortest_path("a", "b").found
    assert not engine.shortest_path("a", "b", relationships=[PREREQUISITE]).found


@pytest.mark.parametrize(("from_id", "to_id"), [("missing", "b"), ("a", "missing")])
def test_shortest_path_unknown_endpoint(from_id: str, to_id: str):
    """Test an unknown endpoint gives no path, not an error."""
    engine = AlgorithmEngine(build_graph(["a", "b"], [("a", "b", PREREQUISITE, None)]))

    result = engine.shortest_path(from_id, to_id)

    assert result == PathResult.not_found()


def test_shortest_path_same_node():
    """Test a path from a node to itself is the node alone."""
    engine = AlgorithmEngine(build_graph(["a"], []))

    result = engine.shortest_path("a", "a")

    assert result.found
    assert [n.id for n in result.nodes] == ["a"]
    assert result.hops == 0


def test_shortest_path_fewer_hops_on_equal_cost():
    """Test equal-cost paths prefer fewer hops."""
    engine = AlgorithmEngine(
        build_graph(
            ["a", "b", "z"],
            [
                ("a", "b", PREREQUISITE, 1.0),
                ("b", "z", PREREQUISITE, 1.0),
                ("a", "z", RELATES_TO, 0.5),
            ],
        )
    )

    result = engine.shortest_path("a", "z")

    assert [n.id for n in result.nodes] == ["a", "z"]
    assert result.total_cost == pytest.approx(2.0)


# --- Neighborhood ---


def test_neighborhood(curriculum: AlgorithmEngine):
    """Test radius-bounded neighborhood and its induced edges."""
    result = curriculum.neighborhood("limits", radius=1)

    assert result.distances == {"limits": 0, "calculus": 1, "functions": 1}
    edge_keys = {e.key for e in result.edges}
    assert edge_keys == {
        ("functions", "limits", "prerequisite"),
        ("limits", "calculus", "prerequisite"),
        ("functions", "calculus", "prerequisite"),
    }


def test_neighborhood_radius_zero(curriculum: AlgorithmEngine):
    """Test radius 0 is just the center."""
    result = curriculum.neighborhood("limits", radius=0)
    assert [n.id for n in result.nodes] == ["limits"]
    assert result.edges == []


def test_neighborhood_relationship_filter(curriculum: AlgorithmEngine):
    """Test only allowed relationships are walked and returned."""
    result = curriculum.neighborhood("calculus", radius=2, relationships=[RELATES_TO])

    assert result.distances == {"calculus": 0, "sets": 1}
    assert [e.key for e in result.edges] == [("calculus", "sets", "relates_to")]


# --- Whole-graph measures ---


def test_bridges_two_triangles():
    """Test two triangles joined by one edge yield exactly that bridge."""
    engine = AlgorithmEngine(
        build_graph(
            ["a", "b", "c", "d", "e", "f"],
            [
                ("a", "b", RELATES_TO, None),
                ("b", "c", RELATES_TO, None),
                ("c", "a", RELATES_TO, None),
                ("d", "e", RELATES_TO, None),
                ("e", "f", RELATES_TO, None),
                ("f", "d", RELATES_TO, None),
                ("c", "d", PREREQUISITE, None),
            ],
        )
    )

    result = engine.bridges()

    assert [e.key for e in result.edges] == [("c", "d", "prerequisite")]


def test_bridges_ignores_parallel_edges():
    """Test a doubly linked pair is not a bridge."""
    engine = AlgorithmEngine(
        build_graph(
            ["a", "b"],
            [("a", "b", PREREQUISITE, None), ("b", "a", RELATES_TO, None)],
        )
    )

    assert engine.bridges().edges == []


def test_centrality_ranks_hub_first(curriculum: AlgorithmEngine):
    """Test the node on most shortest paths ranks first."""
    result = curriculum.centrality()

    assert result.scores[0].node_id == "functions"
    scores = [s.score for s in result.scores]
    assert scores == sorted(scores, reverse=True)
    assert len(curriculum.centrality(limit=2).scores) == 2


def test_validate_and_stats(curriculum: AlgorithmEngine):
    """Test validation and statistics pass through."""
    assert curriculum.validate().is_valid
    assert curriculum.stats().total_nodes == 5


# --- Dispatch ---


def test_run_dispatch(curriculum: AlgorithmEngine):
    """Test running algorithms by name with dict parameters."""
    result = curriculum.run("prerequisites", {"node_id": "calculus", "max_depth": 1})
    assert isinstance(result, ClosureResult)
    assert [n.id for n in result.nodes] == ["functions", "limits"]

    path = curriculum.run("path", {"from_id": "sets", "to_id": "calculus",
                                   "relationships": ["prereq"]})
    assert [n.id for n in path.nodes] == ["sets", "functions", "calculus"]


def test_run_unknown_algorithm(curriculum: AlgorithmEngine):
    """Test unknown names list what is available."""
    with pytest.raises(UnknownAlgorithmError) as exc_info:
        curriculum.run("pagerank")
    assert "bridges" in exc_info.value.details["available"]


def test_run_invalid_params(curriculum: AlgorithmEngine):
    """Test bad parameters become InvalidQueryError."""
    with pytest.raises(InvalidQueryError):
        curriculum.run("neighborhood", {"node_id": "sets", "radius": -1})
    with pytest.raises(InvalidQueryError):
        curriculum.run("bridges", {"unexpected": True})
