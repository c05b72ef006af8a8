"""
Building Models - Data types for the build pipeline.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from conceptgraph.domains.graph import Edge, Node, Relationship, ValidationReport


class ContentUnit(BaseModel):
    """One unit of source content (typically one file)."""

    path: str = Field(..., min_length=1)
    metadata: Any = None
    body: str = ""

    model_config = {"frozen": True}


class UnitExtraction(BaseModel):
    """Converted nodes and edges from one unit, keyed by its content hash."""

    path: str
    content_hash: str
    node: Node
    edges: list[Edge] = Field(default_factory=list)


class ExtractionStage(str, Enum):
    """Adapter call that failed."""

    DERIVE_NODE = "derive_node"
    DERIVE_EDGES = "derive_edges"
    CONVERT = "convert"


class ExtractionDefect(BaseModel):
    """A unit that was excluded because extraction failed."""

    path: str
    stage: ExtractionStage
    error_type: str
    message: str


class DuplicateNodeDefect(BaseModel):
    """A node dropped because an earlier unit claimed the same id."""

    node_id: str
    kept_path: str
    dropped_path: str


class VariantRename(BaseModel):
    """A colliding variant stored under a derived id."""

    original_id: str
    new_id: str
    path: str


class BuildState(str, Enum):
    """Lifecycle of a single build."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    EXTRACTING = "extracting"
    MERGING = "merging"
    OVERLAYING_MANUAL = "overlaying_manual"
    VALIDATING = "validating"
    SEALED = "sealed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (BuildState.SEALED, BuildState.ABORTED)


class ManualEdgeEntry(BaseModel):
    """One curated edge from the manual edge file."""

    from_id: str = Field(..., alias="from", min_length=1)
    to_id: str = Field(..., alias="to", min_length=1)
    relationship: Relationship
    weight: float | None = Field(default=None, gt=0.0, le=1.0)
    note: str | None = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BuildReport(BaseModel):
    """Outcome of one build."""

    state: BuildState = BuildState.IDLE

    # Discovery / extraction
    units_discovered: int = 0
    units_extracted: int = 0
    units_reused: int = 0
    units_excluded: int = 0
    extraction_defects: list[ExtractionDefect] = Field(default_factory=list)

    # Merge
    duplicate_nodes: list[DuplicateNodeDefect] = Field(default_factory=list)
    variant_renames: list[VariantRename] = Field(default_factory=list)
    deduped_edges: int = 0
    edges_replaced_by_precedence: int = 0
    manual_origin_ignored: int = 0

    # Manual overlay
    manual_edges_applied: int = 0
    manual_edges_superseded: int = 0

    # Result
    node_count: int = 0
    edge_count: int = 0
    validation: ValidationReport = Field(default_factory=ValidationReport)

    from_cache: bool = False
    duration_ms: float = 0.0

    @property
    def defect_count(self) -> int:
        """Defects of every kind recorded during the build."""
        return (
            len(self.extraction_defects)
            + len(self.duplicate_nodes)
            + self.validation.defect_count
        )

    def to_persisted(self) -> dict[str, Any]:
        """Dump the fields that depend only on build inputs."""
        return self.model_dump(
            mode="json",
            exclude={"units_reused", "units_extracted", "from_cache", "duration_ms"},
        )
