"""
Algorithm Models - Parameters and results of graph algorithms.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from conceptgraph.domains.graph import Direction, Edge, Node, Relationship


def _parse_relationships(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (str, Relationship)):
        value = [value]
    return [v if isinstance(v, Relationship) else Relationship.parse(str(v)) for v in value]


# --- Parameters ---


class RelationshipFilter(BaseModel):
    """Optional relationship allowlist shared by several algorithms."""

    relationships: list[Relationship] | None = None

    model_config = {"extra": "forbid"}

    @field_validator("relationships", mode="before")
    @classmethod
    def parse_relationships(cls, value: Any) -> Any:
        return _parse_relationships(value)


class ClosureParams(BaseModel):
    node_id: str
    max_depth: int | None = Field(default=None, ge=1)
    include_leads_to: bool | None = None

    model_config = {"extra": "forbid"}


class LearningOrderParams(BaseModel):
    node_id: str
    include_leads_to: bool | None = None

    model_config = {"extra": "forbid"}


class PathParams(RelationshipFilter):
    from_id: str
    to_id: str


class NeighborhoodParams(RelationshipFilter):
    node_id: str
    radius: int = Field(default=1, ge=0)


class RelatedParams(RelationshipFilter):
    node_id: str
    direction: Direction = Direction.BOTH


class CentralityParams(BaseModel):
    limit: int | None = Field(default=None, ge=1)

    model_config = {"extra": "forbid"}


class EmptyParams(BaseModel):
    model_config = {"extra": "forbid"}


# --- Results ---


class ClosureResult(BaseModel):
    """Transitive prerequisites of a node, grouped by distance."""

    target: Node
    layers: list[list[Node]] = Field(default_factory=list)
    cycles: list[list[str]] = Field(default_factory=list)
    max_depth: int
    depth_limited: bool = False

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    @property
    def nodes(self) -> list[Node]:
        """All prerequisites, nearest layer first."""
        return [node for layer in self.layers for node in layer]


class LearningOrderResult(BaseModel):
    """Prerequisites of a node in a study order ending with the node itself."""

    target: Node
    ordered: list[Node] = Field(default_factory=list)
    has_cycles: bool = False


class PathResult(BaseModel):
    """Lowest-cost path between two nodes."""

    found: bool
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    total_cost: float = 0.0

    @classmethod
    def not_found(cls) -> PathResult:
        return cls(found=False)

    @property
    def hops(self) -> int:
        return len(self.edges)


class NeighborhoodResult(BaseModel):
    """Induced subgraph within a radius of a node."""

    center: Node
    radius: int
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    distances: dict[str, int] = Field(default_factory=dict)


class CentralityScore(BaseModel):
    node_id: str
    title: str
    score: float


class CentralityResult(BaseModel):
    """Betweenness centrality, highest first."""

    scores: list[CentralityScore] = Field(default_factory=list)


class BridgesResult(BaseModel):
    """Edges whose removal disconnects their endpoints (direction ignored)."""

    edges: list[Edge] = Field(default_factory=list)


class RelatedNode(BaseModel):
    node: Node
    relationship: str
    direction: Direction
    weight: float


class RelatedResult(BaseModel):
    """Direct neighbors with the connecting relationship."""

    center: Node
    related: list[RelatedNode] = Field(default_factory=list)
