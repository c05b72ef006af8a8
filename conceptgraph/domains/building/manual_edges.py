"""
Manual Edges - Curated edges overlaid on the merged graph.

The manual edge file is a JSON list of entries:

    [
      {"from": "sets", "to": "functions", "relationship": "prerequisite"},
      {"from": "a", "to": "b", "relationship": "relates_to", "weight": 0.3}
    ]

A manual entry supersedes every non-manual edge between the same pair of
nodes. Among manual entries with the same (from, to, relationship), the last
one wins.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from conceptgraph.config.errors import SchemaDefectError
from conceptgraph.config.manifest import compute_manual_edges_hash
from conceptgraph.domains.graph import Edge, EdgeKey, EdgeOrigin, GraphData

from .models import ManualEdgeEntry

logger = logging.getLogger(__name__)

__all__ = ["ManualEdgeSource", "OverlayOutcome", "apply_manual_edges", "parse_manual_edges"]


@dataclass
class OverlayOutcome:
    """Result of applying manual edges."""

    applied: int = 0
    superseded: list[EdgeKey] = field(default_factory=list)


def parse_manual_edges(raw: Any, origin: str = "<manual edges>") -> list[ManualEdgeEntry]:
    """
    Validate the decoded manual edge document.

    Args:
        raw: Decoded JSON value
        origin: Label used in error details

    Returns:
        Parsed entries in file order

    Raises:
        SchemaDefectError: If the root is not a list or any entry is invalid
    """
    if not isinstance(raw, list):
        raise SchemaDefectError(
            "Manual edge source must be a JSON list",
            details={"source": origin, "found": type(raw).__name__},
        )

    entries: list[ManualEdgeEntry] = []
    issues: list[dict[str, Any]] = []

    for index, item in enumerate(raw):
        try:
            entries.append(ManualEdgeEntry.model_validate(item))
        except ValidationError as e:
            issues.append(
                {
                    "index": index,
                    "from": item.get("from") if isinstance(item, dict) else None,
                    "to": item.get("to") if isinstance(item, dict) else None,
                    "errors": [err["msg"] for err in e.errors()],
                }
            )

    if issues:
        raise SchemaDefectError(
            f"{len(issues)} invalid manual edge entries",
            details={"source": origin, "issues": issues},
        )

    return entries


class ManualEdgeSource:
    """
    Manual edge file on disk.

    Example:
        >>> source = ManualEdgeSource(Path("content/manual_edges.json"))
        >>> entries = source.load()
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def checksum(self) -> str:
        """Hash recorded in the snapshot manifest."""
        return compute_manual_edges_hash(self.path)

    def load(self) -> list[ManualEdgeEntry]:
        """
        Load and validate entries.

        A missing file is treated as empty.

        Raises:
            SchemaDefectError: If the file is not valid JSON or fails validation
        """
        if not self.path.exists():
            logger.info("No manual edge file at %s", self.path)
            return []

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise SchemaDefectError(
                f"Manual edge file is not valid JSON: {e.msg}",
                details={"source": str(self.path), "line": e.lineno, "column": e.colno},
            ) from e

        entries = parse_manual_edges(raw, origin=str(self.path))
        logger.info("Loaded %d manual edges from %s", len(entries), self.path)
        return entries


def apply_manual_edges(graph: GraphData, entries: Sequence[ManualEdgeEntry]) -> OverlayOutcome:
    """
    Overlay manual edges onto an unsealed graph.

    Args:
        graph: Merged graph
        entries: Manual entries in file order

    Returns:
        OverlayOutcome with the keys of superseded non-manual edges
    """
    outcome = OverlayOutcome()

    for entry in entries:
        edge = Edge(
            source_id=entry.from_id,
            target_id=entry.to_id,
            relationship=entry.relationship,
            weight=entry.weight,
            origin=EdgeOrigin.MANUAL,
        )

        for existing in graph.edges_between(entry.from_id, entry.to_id):
            if existing.origin is EdgeOrigin.MANUAL:
                continue
            graph.remove_edge(existing.key)
            outcome.superseded.append(existing.key)
            logger.debug("Manual edge supersedes %s", existing.describe())

        graph.add_edge(edge)
        outcome.applied += 1

    if entries:
        logger.info(
            "Applied %d manual edges (%d superseded)",
            outcome.applied,
            len(outcome.superseded),
        )
    return outcome
