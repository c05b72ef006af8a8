"""
Graph Snapshot - Deterministic JSON form of a sealed graph.

A snapshot holds the graph, its content manifest, the per-unit extraction
cache and the build report. Encoding sorts every mapping and carries no
timestamps, so rebuilding unchanged content yields byte-identical output.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from conceptgraph.config.errors import CacheDefectError, DuplicateNodeError, ErrorCode
from conceptgraph.config.manifest import FORMAT_VERSION, ContentManifest
from conceptgraph.domains.building import BuildReport, BuildResult, UnitExtraction
from conceptgraph.domains.graph import Edge, GraphData, Node

logger = logging.getLogger(__name__)

__all__ = ["GraphSnapshot", "decode_snapshot", "encode_snapshot"]


@dataclass
class GraphSnapshot:
    """Everything persisted for one sealed build."""

    graph: GraphData
    manifest: ContentManifest
    report: BuildReport
    extractions: dict[str, UnitExtraction] = field(default_factory=dict)

    @classmethod
    def from_build(cls, result: BuildResult) -> GraphSnapshot:
        return cls(
            graph=result.graph,
            manifest=result.manifest,
            report=result.report,
            extractions=dict(result.extractions),
        )


def encode_snapshot(snapshot: GraphSnapshot) -> str:
    """
    Encode a snapshot as canonical JSON text.

    Args:
        snapshot: Snapshot of a sealed graph

    Returns:
        JSON text with sorted keys and a trailing newline
    """
    document = {
        "format_version": FORMAT_VERSION,
        "manifest": snapshot.manifest.to_dict(),
        "graph": {
            "nodes": [n.model_dump(mode="json") for n in snapshot.graph.iter_nodes()],
            "edges": [e.model_dump(mode="json") for e in snapshot.graph.iter_edges()],
        },
        "extractions": {
            path: snapshot.extractions[path].model_dump(mode="json")
            for path in sorted(snapshot.extractions)
        },
        "report": snapshot.report.to_persisted(),
    }
    return json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def decode_snapshot(text: str) -> GraphSnapshot:
    """
    Decode snapshot text into a sealed graph and its metadata.

    Raises:
        CacheDefectError: If the text is not a snapshot of the current format
    """
    try:
        document: dict[str, Any] = json.loads(text)
    except json.JSONDecodeError as e:
        raise CacheDefectError(f"Snapshot is not valid JSON: {e.msg}") from e

    if not isinstance(document, dict):
        raise CacheDefectError("Snapshot root must be an object")

    version = document.get("format_version")
    if version != FORMAT_VERSION:
        raise CacheDefectError(
            f"Snapshot format {version!r} does not match {FORMAT_VERSION!r}",
            details={"found": version, "expected": FORMAT_VERSION},
            code=ErrorCode.CACHE_VERSION_MISMATCH,
        )

    try:
        manifest = ContentManifest.from_dict(document["manifest"])
        graph = GraphData()
        for raw in document["graph"]["nodes"]:
            graph.add_node(Node.model_validate(raw))
        for raw in document["graph"]["edges"]:
            graph.add_edge(Edge.model_validate(raw))
        graph.seal()

        extractions = {
            path: UnitExtraction.model_validate(raw)
            for path, raw in document.get("extractions", {}).items()
        }
        report = BuildReport.model_validate(document.get("report", {}))
    except (KeyError, TypeError, AttributeError, ValidationError, DuplicateNodeError) as e:
        raise CacheDefectError(f"Snapshot is malformed: {e}") from e

    problems = manifest.validate()
    if problems:
        raise CacheDefectError("Snapshot manifest is invalid", details={"errors": problems})

    logger.debug(
        "Decoded snapshot: %d nodes, %d edges, %d cached units",
        graph.node_count,
        graph.edge_count,
        len(extractions),
    )
    return GraphSnapshot(
        graph=graph,
        manifest=manifest,
        report=report.model_copy(update={"from_cache": True}),
        extractions=extractions,
    )
