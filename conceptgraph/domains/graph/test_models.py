"""
Tests for graph domain models.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from .models import (
    LEADS_TO,
    PREREQUISITE,
    RELATES_TO,
    Edge,
    EdgeOrigin,
    Node,
    Relationship,
    RelationshipKind,
)


# --- Relationship Tests ---


@pytest.mark.parametrize(
    ("kind", "weight"),
    [
        (RelationshipKind.PREREQUISITE, 1.0),
        (RelationshipKind.LEADS_TO, 1.0),
        (RelationshipKind.EXTENDS, 0.9),
        (RelationshipKind.VARIANT_OF, 0.9),
        (RelationshipKind.INTRODUCES, 0.8),
        (RelationshipKind.COVERS, 0.8),
        (RelationshipKind.RELATES_TO, 0.7),
    ],
)
def test_relationship_default_weights(kind: RelationshipKind, weight: float) -> None:
    """Test the fixed default weight table."""
    assert Relationship.of(kind).default_weight() == weight


def test_custom_relationship() -> None:
    """Test the open tag carries its label."""
    rel = Relationship.custom("implies")
    assert rel.is_custom
    assert rel.name == "implies"
    assert rel.default_weight() == 0.5


def test_relationship_parse_aliases() -> None:
    """Test parsing accepts the common aliases."""
    assert Relationship.parse("prereq") == PREREQUISITE
    assert Relationship.parse("LeadsTo") == LEADS_TO
    assert Relationship.parse("related") == RELATES_TO
    assert Relationship.parse("Variant-Of").kind is RelationshipKind.VARIANT_OF
    assert Relationship.parse("contrasts_with") == Relationship.custom("contrasts_with")


def test_custom_label_cannot_shadow_well_known() -> None:
    """Test a custom tag named like a closed-set tag is rejected."""
    with pytest.raises(ValidationError):
        Relationship.custom("prerequisite")
    with pytest.raises(ValidationError):
        Relationship(kind=RelationshipKind.CUSTOM)
    with pytest.raises(ValidationError):
        Relationship(kind=RelationshipKind.EXTENDS, label="x")


def test_relationship_serializes_to_name() -> None:
    """Test relationships dump as plain strings."""
    edge = Edge(source_id="a", target_id="b", relationship=Relationship.custom("implies"))
    dumped = edge.model_dump(mode="json")
    assert dumped["relationship"] == "implies"
    assert Edge.model_validate(dumped) == edge


def test_relationship_is_hashable() -> None:
    """Test relationships can key dicts and sets."""
    assert len({PREREQUISITE, Relationship.parse("prerequisite"), RELATES_TO}) == 2


# --- EdgeOrigin Tests ---


def test_origin_precedence() -> None:
    """Test Manual > ContentBody > Frontmatter > Inferred."""
    ranked = sorted(EdgeOrigin, key=lambda o: o.precedence, reverse=True)
    assert ranked == [
        EdgeOrigin.MANUAL,
        EdgeOrigin.CONTENT_BODY,
        EdgeOrigin.FRONTMATTER,
        EdgeOrigin.INFERRED,
    ]


# --- Node Tests ---


def test_node_defaults() -> None:
    """Test Node with required fields."""
    node = Node(id="sets", title="Sets")
    assert node.is_canonical is True
    assert node.canonical_id is None
    assert node.metadata == {}


def test_variant_requires_parent() -> None:
    """Test the local half of the canonical invariant."""
    with pytest.raises(ValidationError):
        Node(id="v", title="V", is_canonical=False)
    with pytest.raises(ValidationError):
        Node(id="c", title="C", canonical_id="other")


def test_as_variant_of() -> None:
    """Test converting a node into a variant."""
    node = Node(id="sets", title="Sets", source_id="book-a")
    variant = node.as_variant_of("sets", node_id="sets@book-a")
    assert variant.id == "sets@book-a"
    assert not variant.is_canonical
    assert variant.canonical_id == "sets"


def test_node_is_immutable() -> None:
    """Test Node is frozen."""
    node = Node(id="sets", title="Sets")
    with pytest.raises(ValidationError):
        node.title = "Changed"  # type: ignore[misc]


# --- Edge Tests ---


def test_edge_default_weight() -> None:
    """Test missing weights come from the relationship."""
    assert Edge(source_id="a", target_id="b", relationship="prerequisite").weight == 1.0
    assert Edge(source_id="a", target_id="b", relationship="relates_to").weight == 0.7
    assert Edge(source_id="a", target_id="b", relationship="implies", weight=None).weight == 0.5


def test_edge_weight_bounds() -> None:
    """Test weight must lie in (0, 1]."""
    with pytest.raises(ValidationError):
        Edge(source_id="a", target_id="b", relationship=PREREQUISITE, weight=0.0)
    with pytest.raises(ValidationError):
        Edge(source_id="a", target_id="b", relationship=PREREQUISITE, weight=1.5)


def test_edge_key_and_describe() -> None:
    """Test edge identity helpers."""
    edge = Edge(source_id="a", target_id="b", relationship=LEADS_TO)
    assert edge.key == ("a", "b", "leads_to")
    assert edge.describe() == "a -[leads_to]-> b"
    assert edge.origin is EdgeOrigin.FRONTMATTER
