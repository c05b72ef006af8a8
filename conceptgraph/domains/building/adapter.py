"""
Metadata Extraction Adapter - Reference adapter for structured metadata.

Reads a unit's metadata mapping:

    id          node id (defaults to the unit path stem)
    title       display title (defaults to the id)
    category    optional category
    source      optional source identifier
    variant_of  canonical parent id; marks the node as a variant
                and adds a variant_of edge to the parent

Relationship lists (a string or a list of strings):

    prerequisites   edges from each listed id to this unit
    leads_to, related, extends, introduces, covers
                    edges from this unit to each listed id

Free-form relations:

    relations: [{"to": "x", "relationship": "contrasts_with", "weight": 0.4}]

Body references written as ``[[target-id]]`` become relates_to edges with
content-body origin.
"""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from conceptgraph.config.errors import ExtractionError
from conceptgraph.domains.graph import (
    COVERS,
    EXTENDS,
    INTRODUCES,
    LEADS_TO,
    PREREQUISITE,
    RELATES_TO,
    VARIANT_OF,
    Edge,
    EdgeOrigin,
    Node,
    Relationship,
)

__all__ = ["EdgeDraft", "EdgeSpec", "MetadataExtractionAdapter", "NodeDraft"]

# Metadata key -> relationship of edges between this unit and the listed ids
RELATION_KEYS: dict[str, Relationship] = {
    "prerequisites": PREREQUISITE,
    "leads_to": LEADS_TO,
    "related": RELATES_TO,
    "extends": EXTENDS,
    "introduces": INTRODUCES,
    "covers": COVERS,
}

_RESERVED_KEYS = {"id", "title", "category", "source", "variant_of", "relations", *RELATION_KEYS}

_WIKI_LINK = re.compile(r"\[\[([^\[\]|]+)(?:\|[^\[\]]*)?\]\]")


class NodeDraft(BaseModel):
    """Node fields read from metadata."""

    id: str = Field(min_length=1)
    title: str
    category: str | None = None
    source_id: str | None = None
    variant_of: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)


class EdgeSpec(BaseModel):
    """One declared edge."""

    target_id: str = Field(min_length=1)
    relationship: Relationship
    weight: float | None = Field(default=None, gt=0.0, le=1.0)
    origin: EdgeOrigin = EdgeOrigin.FRONTMATTER
    # Listed id points at this unit (prerequisites)
    incoming: bool = False


class EdgeDraft(BaseModel):
    """All edges declared by one unit."""

    specs: list[EdgeSpec] = Field(default_factory=list)


class MetadataExtractionAdapter:
    """
    ExtractionAdapter over metadata mappings.

    Example:
        >>> adapter = MetadataExtractionAdapter()
        >>> draft = adapter.derive_node(Path("."), "sets.json", {"title": "Sets"}, "")
        >>> adapter.node_draft_to_node(draft).id
        'sets'
    """

    def derive_node(self, base_path: Path, unit_path: str, metadata: Any, body: str) -> NodeDraft:
        meta = _require_mapping(metadata, unit_path)
        node_id = meta.get("id", PurePosixPath(unit_path).stem)
        try:
            return NodeDraft(
                id=node_id,
                title=meta.get("title", node_id),
                category=meta.get("category"),
                source_id=meta.get("source"),
                variant_of=meta.get("variant_of"),
                extra={k: v for k, v in meta.items() if k not in _RESERVED_KEYS},
            )
        except ValidationError as e:
            raise ExtractionError(
                f"Invalid node metadata in {unit_path}",
                details={"path": unit_path, "errors": [err["msg"] for err in e.errors()]},
            ) from e

    def derive_edges(self, metadata: Any, body: str) -> EdgeDraft | None:
        meta = _require_mapping(metadata)
        specs: list[EdgeSpec] = []

        try:
            for key, relationship in RELATION_KEYS.items():
                for target in _as_id_list(meta.get(key), key):
                    specs.append(
                        EdgeSpec(
                            target_id=target,
                            relationship=relationship,
                            incoming=relationship == PREREQUISITE,
                        )
                    )

            variant_of = meta.get("variant_of")
            if variant_of is not None:
                specs.append(EdgeSpec(target_id=variant_of, relationship=VARIANT_OF))

            relations = meta.get("relations") or []
            if not isinstance(relations, list):
                raise ExtractionError("'relations' must be a list")
            for item in relations:
                if not isinstance(item, dict):
                    raise ExtractionError("'relations' entries must be mappings")
                specs.append(
                    EdgeSpec(
                        target_id=item.get("to"),
                        relationship=item.get("relationship"),
                        weight=item.get("weight"),
                    )
                )
        except ValidationError as e:
            raise ExtractionError(
                "Invalid edge metadata",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e

        for target in dict.fromkeys(m.strip() for m in _WIKI_LINK.findall(body or "")):
            if target:
                specs.append(
                    EdgeSpec(
                        target_id=target,
                        relationship=RELATES_TO,
                        origin=EdgeOrigin.CONTENT_BODY,
                    )
                )

        return EdgeDraft(specs=specs) if specs else None

    def node_draft_to_node(self, draft: NodeDraft) -> Node:
        return Node(
            id=draft.id,
            title=draft.title,
            category=draft.category,
            source_id=draft.source_id,
            is_canonical=draft.variant_of is None,
            canonical_id=draft.variant_of,
            metadata=draft.extra,
        )

    def edge_draft_to_edges(self, from_id: str, draft: EdgeDraft) -> list[Edge]:
        edges = [
            Edge(
                source_id=spec.target_id if spec.incoming else from_id,
                target_id=from_id if spec.incoming else spec.target_id,
                relationship=spec.relationship,
                weight=spec.weight,
                origin=spec.origin,
            )
            for spec in draft.specs
        ]
        return edges


def _require_mapping(metadata: Any, unit_path: str | None = None) -> dict[str, Any]:
    if not isinstance(metadata, dict):
        raise ExtractionError(
            "Unit metadata must be a mapping",
            details={"path": unit_path, "found": type(metadata).__name__},
        )
    return metadata


def _as_id_list(value: Any, key: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ExtractionError(f"'{key}' must be a string or a list of strings")
