"""
Building Domain - From content units to a sealed concept graph.

This domain handles:
- Adapter and content-source contracts
- Parallel per-unit extraction with defect collection and cancellation
- Merging, manual edge overlay and validation
- The build state machine and its report
"""

from .adapter import EdgeDraft, EdgeSpec, MetadataExtractionAdapter, NodeDraft
from .builder import BuildResult, GraphBuilder
from .contracts import ContentSource, ExtractionAdapter
from .extraction import CancelToken, DefectCollector, ExtractionBatch, ParallelExtractor
from .manual_edges import (
    ManualEdgeSource,
    OverlayOutcome,
    apply_manual_edges,
    parse_manual_edges,
)
from .merge import GraphMerger, MergeOutcome, variant_node_id
from .models import (
    BuildReport,
    BuildState,
    ContentUnit,
    DuplicateNodeDefect,
    ExtractionDefect,
    ExtractionStage,
    ManualEdgeEntry,
    UnitExtraction,
    VariantRename,
)
from .sources import DirectoryContentSource, InMemoryContentSource

__all__ = [
    # Contracts
    "ExtractionAdapter",
    "ContentSource",
    # Models
    "ContentUnit",
    "UnitExtraction",
    "ExtractionStage",
    "ExtractionDefect",
    "DuplicateNodeDefect",
    "VariantRename",
    "ManualEdgeEntry",
    "BuildState",
    "BuildReport",
    # Extraction
    "CancelToken",
    "DefectCollector",
    "ExtractionBatch",
    "ParallelExtractor",
    # Merge and overlay
    "GraphMerger",
    "MergeOutcome",
    "variant_node_id",
    "ManualEdgeSource",
    "OverlayOutcome",
    "apply_manual_edges",
    "parse_manual_edges",
    # Builder
    "GraphBuilder",
    "BuildResult",
    # Reference implementations
    "MetadataExtractionAdapter",
    "NodeDraft",
    "EdgeDraft",
    "EdgeSpec",
    "InMemoryContentSource",
    "DirectoryContentSource",
]
