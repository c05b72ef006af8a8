"""
Graph Builder - Drives one build from content units to a sealed graph.

States:
    idle -> discovering -> extracting -> merging -> overlaying_manual
         -> validating -> sealed

Any stage may move to aborted. Sealed and aborted are terminal, so a builder
instance runs at most one build.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from conceptgraph.config.errors import IntegrityDefectError, InvalidTransitionError
from conceptgraph.config.manifest import NO_MANUAL_EDGES, ContentManifest
from conceptgraph.domains.graph import GraphData, validate_graph

from .contracts import ContentSource, ExtractionAdapter
from .extraction import CancelToken, DefectCollector, ParallelExtractor
from .manual_edges import ManualEdgeSource, apply_manual_edges
from .merge import GraphMerger
from .models import BuildReport, BuildState, ContentUnit, UnitExtraction

logger = logging.getLogger(__name__)

__all__ = ["BuildResult", "GraphBuilder"]


_TRANSITIONS: dict[BuildState, set[BuildState]] = {
    BuildState.IDLE: {BuildState.DISCOVERING, BuildState.ABORTED},
    BuildState.DISCOVERING: {BuildState.EXTRACTING, BuildState.ABORTED},
    BuildState.EXTRACTING: {BuildState.MERGING, BuildState.ABORTED},
    BuildState.MERGING: {BuildState.OVERLAYING_MANUAL, BuildState.ABORTED},
    BuildState.OVERLAYING_MANUAL: {BuildState.VALIDATING, BuildState.ABORTED},
    BuildState.VALIDATING: {BuildState.SEALED, BuildState.ABORTED},
    BuildState.SEALED: set(),
    BuildState.ABORTED: set(),
}


@dataclass
class BuildResult:
    """A sealed graph plus everything needed to persist it."""

    graph: GraphData
    report: BuildReport
    manifest: ContentManifest
    extractions: dict[str, UnitExtraction] = field(default_factory=dict)


class GraphBuilder:
    """
    Builds a sealed GraphData from a content source.

    Example:
        >>> builder = GraphBuilder(MetadataExtractionAdapter(), DirectoryContentSource(root))
        >>> result = await builder.build()
        >>> result.graph.is_sealed
        True
    """

    def __init__(
        self,
        adapter: ExtractionAdapter,
        source: ContentSource,
        manual_edges: ManualEdgeSource | None = None,
        strict: bool = False,
        max_concurrent: int = 8,
    ) -> None:
        self._source = source
        self._manual_edges = manual_edges
        self._strict = strict
        self._extractor = ParallelExtractor(adapter, max_concurrent=max_concurrent)
        self._state = BuildState.IDLE

    @property
    def state(self) -> BuildState:
        return self._state

    async def build(
        self,
        units: Sequence[ContentUnit] | None = None,
        cached: Mapping[str, UnitExtraction] | None = None,
        cancel: CancelToken | None = None,
    ) -> BuildResult:
        """
        Run one build.

        Args:
            units: Pre-discovered units; pulled from the source when omitted
            cached: Prior extractions reused for units whose hash is unchanged
            cancel: Cancellation token checked during extraction

        Returns:
            BuildResult with a sealed graph

        Raises:
            SchemaDefectError: If the manual edge source is malformed
            IntegrityDefectError: If strict validation finds defects
            BuildCancelledError: If cancelled during extraction
            InvalidTransitionError: If this builder already ran
        """
        start = time.perf_counter()
        report = BuildReport()

        try:
            self._transition(BuildState.DISCOVERING)
            if units is not None:
                discovered = list(units)
            else:
                discovered = await asyncio.to_thread(list, self._source.iter_units())
            discovered.sort(key=lambda u: u.path)
            report.units_discovered = len(discovered)
            logger.info("Discovered %d content units", len(discovered))

            self._transition(BuildState.EXTRACTING)
            collector = DefectCollector()
            batch = await self._extractor.extract_all(
                discovered,
                self._source.base_path,
                collector,
                cancel=cancel,
                cached=cached,
            )
            report.units_reused = batch.reused
            report.units_extracted = len(batch.extractions) - batch.reused
            report.extraction_defects = collector.defects
            report.units_excluded = len(report.extraction_defects)

            self._transition(BuildState.MERGING)
            graph, merged = GraphMerger().merge(batch.extractions)
            report.duplicate_nodes = merged.duplicate_nodes
            report.variant_renames = merged.variant_renames
            report.deduped_edges = merged.deduped_edges
            report.edges_replaced_by_precedence = merged.edges_replaced_by_precedence
            report.manual_origin_ignored = merged.manual_origin_ignored

            self._transition(BuildState.OVERLAYING_MANUAL)
            manual_hash = NO_MANUAL_EDGES
            if self._manual_edges is not None:
                manual_hash = await asyncio.to_thread(self._manual_edges.checksum)
                entries = await asyncio.to_thread(self._manual_edges.load)
                overlay = apply_manual_edges(graph, entries)
                report.manual_edges_applied = overlay.applied
                report.manual_edges_superseded = len(overlay.superseded)

            self._transition(BuildState.VALIDATING)
            report.validation = validate_graph(graph)
            if self._strict and (report.validation.defect_count or report.duplicate_nodes):
                raise IntegrityDefectError(
                    "Strict validation failed",
                    details={
                        "validation": report.validation.model_dump(mode="json"),
                        "duplicate_nodes": [d.model_dump() for d in report.duplicate_nodes],
                    },
                )

            graph.seal()
            self._transition(BuildState.SEALED)
        except BaseException:
            if not self._state.is_terminal:
                self._state = BuildState.ABORTED
            logger.warning("Build aborted")
            raise

        report.state = self._state
        report.node_count = graph.node_count
        report.edge_count = graph.edge_count
        report.duration_ms = (time.perf_counter() - start) * 1000

        manifest = ContentManifest(
            units=dict(batch.hashes),
            manual_edges_hash=manual_hash,
            strict=self._strict,
        )
        logger.info(
            "Build sealed: %d nodes, %d edges, %d defects in %.0fms",
            report.node_count,
            report.edge_count,
            report.defect_count,
            report.duration_ms,
        )
        return BuildResult(
            graph=graph,
            report=report,
            manifest=manifest,
            extractions={e.path: e for e in batch.extractions},
        )

    def _transition(self, target: BuildState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise InvalidTransitionError(
                f"Cannot move from {self._state.value} to {target.value}",
                details={"from": self._state.value, "to": target.value},
            )
        logger.debug("Build state: %s -> %s", self._state.value, target.value)
        self._state = target
