"""
Graph Models - Entity types for the concept graph.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_serializer, model_validator


class RelationshipKind(str, Enum):
    """Closed set of well-known relationship tags, plus the open tag."""

    PREREQUISITE = "prerequisite"
    LEADS_TO = "leads_to"
    RELATES_TO = "relates_to"
    EXTENDS = "extends"
    INTRODUCES = "introduces"
    COVERS = "covers"
    VARIANT_OF = "variant_of"
    CUSTOM = "custom"  # Open tag, carries a domain-supplied label


_DEFAULT_WEIGHTS: dict[RelationshipKind, float] = {
    RelationshipKind.PREREQUISITE: 1.0,
    RelationshipKind.LEADS_TO: 1.0,
    RelationshipKind.EXTENDS: 0.9,
    RelationshipKind.VARIANT_OF: 0.9,
    RelationshipKind.INTRODUCES: 0.8,
    RelationshipKind.COVERS: 0.8,
    RelationshipKind.RELATES_TO: 0.7,
    RelationshipKind.CUSTOM: 0.5,
}

_ALIASES: dict[str, RelationshipKind] = {
    "prerequisite": RelationshipKind.PREREQUISITE,
    "prerequisites": RelationshipKind.PREREQUISITE,
    "prereq": RelationshipKind.PREREQUISITE,
    "leads_to": RelationshipKind.LEADS_TO,
    "leadsto": RelationshipKind.LEADS_TO,
    "relates_to": RelationshipKind.RELATES_TO,
    "relatesto": RelationshipKind.RELATES_TO,
    "related": RelationshipKind.RELATES_TO,
    "extends": RelationshipKind.EXTENDS,
    "introduces": RelationshipKind.INTRODUCES,
    "covers": RelationshipKind.COVERS,
    "variant_of": RelationshipKind.VARIANT_OF,
    "variantof": RelationshipKind.VARIANT_OF,
}


def _lookup_kind(text: str) -> RelationshipKind | None:
    normalized = text.strip().lower().replace("-", "_").replace(" ", "_")
    return _ALIASES.get(normalized)


class Relationship(BaseModel):
    """
    Relationship tag on an edge.

    Serializes to its plain name (``"prerequisite"``, or the custom label)
    and validates from either a name, a ``RelationshipKind`` or a dict.

    Example:
        >>> Relationship.parse("prereq").default_weight()
        1.0
        >>> Relationship.custom("implies").name
        'implies'
    """

    kind: RelationshipKind
    label: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def coerce_name(cls, data: Any) -> Any:
        """Accept plain names and enum members."""
        if isinstance(data, RelationshipKind):
            return {"kind": data}
        if isinstance(data, str):
            kind = _lookup_kind(data)
            if kind is None:
                return {"kind": RelationshipKind.CUSTOM, "label": data.strip()}
            return {"kind": kind}
        return data

    @model_validator(mode="after")
    def check_label(self) -> Relationship:
        """Custom tags need a label that does not shadow a well-known name."""
        if self.kind is RelationshipKind.CUSTOM:
            if not self.label:
                raise ValueError("custom relationship requires a non-empty label")
            if _lookup_kind(self.label) is not None:
                raise ValueError(f"custom label shadows well-known relationship: {self.label}")
        elif self.label is not None:
            raise ValueError(f"{self.kind.value} relationship does not take a label")
        return self

    @model_serializer(mode="plain")
    def serialize(self) -> str:
        return self.name

    @classmethod
    def parse(cls, text: str) -> Relationship:
        """Parse a relationship name, accepting common aliases."""
        return cls.model_validate(text)

    @classmethod
    def of(cls, kind: RelationshipKind) -> Relationship:
        return cls(kind=kind)

    @classmethod
    def custom(cls, label: str) -> Relationship:
        return cls(kind=RelationshipKind.CUSTOM, label=label)

    @property
    def name(self) -> str:
        """Well-known name, or the custom label."""
        if self.kind is RelationshipKind.CUSTOM:
            return self.label or ""
        return self.kind.value

    @property
    def is_custom(self) -> bool:
        return self.kind is RelationshipKind.CUSTOM

    def default_weight(self) -> float:
        """Weight used when an extractor does not supply one."""
        return _DEFAULT_WEIGHTS[self.kind]

    def __str__(self) -> str:
        return self.name


PREREQUISITE = Relationship.of(RelationshipKind.PREREQUISITE)
LEADS_TO = Relationship.of(RelationshipKind.LEADS_TO)
RELATES_TO = Relationship.of(RelationshipKind.RELATES_TO)
EXTENDS = Relationship.of(RelationshipKind.EXTENDS)
INTRODUCES = Relationship.of(RelationshipKind.INTRODUCES)
COVERS = Relationship.of(RelationshipKind.COVERS)
VARIANT_OF = Relationship.of(RelationshipKind.VARIANT_OF)


class EdgeOrigin(str, Enum):
    """Where an edge came from. Used for merge precedence and provenance only."""

    FRONTMATTER = "frontmatter"
    CONTENT_BODY = "content_body"
    MANUAL = "manual"
    INFERRED = "inferred"

    @property
    def precedence(self) -> int:
        """Higher wins: Manual > ContentBody > Frontmatter > Inferred."""
        return _ORIGIN_PRECEDENCE[self]


_ORIGIN_PRECEDENCE: dict[EdgeOrigin, int] = {
    EdgeOrigin.MANUAL: 3,
    EdgeOrigin.CONTENT_BODY: 2,
    EdgeOrigin.FRONTMATTER: 1,
    EdgeOrigin.INFERRED: 0,
}


class Direction(str, Enum):
    """Edge direction relative to a node."""

    OUT = "out"
    IN = "in"
    BOTH = "both"


class Node(BaseModel):
    """Concept node in the graph."""

    id: str = Field(min_length=1)
    title: str
    category: str | None = None
    source_id: str | None = None
    is_canonical: bool = True
    canonical_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_canonical(self) -> Node:
        """Variants point at a canonical parent; canonical nodes do not."""
        if not self.is_canonical and not self.canonical_id:
            raise ValueError(f"non-canonical node {self.id!r} requires canonical_id")
        if self.is_canonical and self.canonical_id is not None:
            raise ValueError(f"canonical node {self.id!r} cannot have canonical_id")
        return self

    def as_variant_of(self, canonical_id: str, node_id: str | None = None) -> Node:
        """Copy of this node marked as a variant of ``canonical_id``."""
        return Node(
            id=node_id or self.id,
            title=self.title,
            category=self.category,
            source_id=self.source_id,
            is_canonical=False,
            canonical_id=canonical_id,
            metadata=dict(self.metadata),
        )

    def __hash__(self) -> int:
        return hash(self.id)


EdgeKey = tuple[str, str, str]


class Edge(BaseModel):
    """Directed, weighted edge in the graph."""

    source_id: str
    target_id: str
    relationship: Relationship
    weight: float = Field(gt=0.0, le=1.0)
    origin: EdgeOrigin = EdgeOrigin.FRONTMATTER

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def fill_default_weight(cls, data: Any) -> Any:
        """Fill a missing weight from the relationship's default."""
        if isinstance(data, dict) and data.get("weight") is None and "relationship" in data:
            relationship = Relationship.model_validate(data["relationship"])
            data = {**data, "relationship": relationship, "weight": relationship.default_weight()}
        return data

    @property
    def key(self) -> EdgeKey:
        """Identity of the edge: (source, target, relationship name)."""
        return (self.source_id, self.target_id, self.relationship.name)

    @property
    def pair(self) -> tuple[str, str]:
        return (self.source_id, self.target_id)

    def describe(self) -> str:
        """Human-readable form, e.g. ``a -[prerequisite]-> b``."""
        return f"{self.source_id} -[{self.relationship.name}]-> {self.target_id}"


class GraphStats(BaseModel):
    """Statistics about a graph."""

    total_nodes: int = 0
    total_edges: int = 0
    canonical_nodes: int = 0
    variant_nodes: int = 0
    dangling_edges: int = 0
    nodes_by_category: dict[str, int] = Field(default_factory=dict)
    edges_by_relationship: dict[str, int] = Field(default_factory=dict)
    edges_by_origin: dict[str, int] = Field(default_factory=dict)
