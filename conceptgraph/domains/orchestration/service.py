"""
Graph Service - Owns the published graph and its rebuilds.

Readers always see one complete sealed graph. A rebuild produces a new graph
off to the side and swaps it in only when it seals; a failed rebuild leaves
the previous graph serving.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel

from conceptgraph.config.errors import GraphNotSealedError
from conceptgraph.config.manifest import NO_MANUAL_EDGES, compute_unit_hash
from conceptgraph.config.settings import Settings, get_settings
from conceptgraph.domains.algorithms import AlgorithmEngine
from conceptgraph.domains.building import (
    BuildReport,
    CancelToken,
    ContentSource,
    ExtractionAdapter,
    GraphBuilder,
    ManualEdgeSource,
)
from conceptgraph.domains.graph import (
    Direction,
    GraphData,
    GraphStats,
    Node,
    Relationship,
    ValidationReport,
)
from conceptgraph.domains.persistence import GraphSnapshot, SnapshotStore

from .coordinator import BuildCoordinator

logger = logging.getLogger(__name__)

__all__ = ["GraphService"]


class GraphService:
    """
    Build-and-serve facade over the concept graph.

    Example:
        >>> service = GraphService(MetadataExtractionAdapter(), DirectoryContentSource(root))
        >>> await service.rebuild()
        >>> service.run_algorithm("prerequisites", {"node_id": "calculus"})
    """

    def __init__(
        self,
        adapter: ExtractionAdapter,
        source: ContentSource,
        settings: Settings | None = None,
        store: SnapshotStore | None = None,
        manual_edges: ManualEdgeSource | None = None,
        coordinator: BuildCoordinator | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._adapter = adapter
        self._source = source
        self._store = store or SnapshotStore(self._settings.cache_dir)
        if manual_edges is None and self._settings.manual_edges_path is not None:
            manual_edges = ManualEdgeSource(self._settings.manual_edges_path)
        self._manual_edges = manual_edges
        self._coordinator = coordinator or BuildCoordinator.instance()
        self._published: tuple[GraphData, AlgorithmEngine] | None = None
        self._last_report: BuildReport | None = None

    # --- Building ---

    @property
    def build_key(self) -> str:
        return str(self._store.cache_dir.resolve())

    @property
    def is_ready(self) -> bool:
        return self._published is not None

    @property
    def last_report(self) -> BuildReport | None:
        return self._last_report

    async def rebuild(self, force: bool = False, cancel: CancelToken | None = None) -> BuildReport:
        """
        Bring the published graph up to date with the content.

        Loads the cached snapshot when it matches the current content, reuses
        cached per-unit extractions for unchanged units otherwise, and runs a
        full build when ``force`` is set.

        Args:
            force: Ignore the cache entirely
            cancel: Cancellation token for the extraction stage

        Returns:
            Report of the build (``from_cache`` set when the snapshot was reused)

        Raises:
            BuildAbortedError: If the build aborted; the previous graph keeps serving
        """
        return await self._coordinator.run(self.build_key, lambda: self._rebuild(force, cancel))

    async def _rebuild(self, force: bool, cancel: CancelToken | None) -> BuildReport:
        discovered = await asyncio.to_thread(list, self._source.iter_units())
        units = sorted(discovered, key=lambda u: u.path)
        hashes = {u.path: compute_unit_hash(u.path, u.metadata, u.body) for u in units}
        manual_hash = (
            await asyncio.to_thread(self._manual_edges.checksum)
            if self._manual_edges is not None
            else NO_MANUAL_EDGES
        )
        strict = self._settings.strict_validation

        snapshot = None if force else await asyncio.to_thread(self._store.load)
        if snapshot is not None and snapshot.manifest.is_fresh(hashes, manual_hash, strict):
            logger.info("Graph cache is fresh; skipping rebuild")
            self._publish(snapshot.graph, snapshot.report)
            return snapshot.report

        if snapshot is not None:
            changed = snapshot.manifest.changed_units(hashes)
            logger.info("Incremental rebuild: %d of %d units changed", len(changed), len(units))

        builder = GraphBuilder(
            self._adapter,
            self._source,
            manual_edges=self._manual_edges,
            strict=strict,
            max_concurrent=self._settings.extraction_concurrency,
        )
        try:
            result = await builder.build(
                units=units,
                cached=snapshot.extractions if snapshot is not None else None,
                cancel=cancel,
            )
        except Exception as e:
            logger.error("Rebuild failed; previous graph stays published: %s", e)
            raise

        try:
            await asyncio.to_thread(self._store.save, GraphSnapshot.from_build(result))
        except OSError as e:
            logger.warning("Could not persist graph snapshot: %s", e)

        self._publish(result.graph, result.report)
        return result.report

    def _publish(self, graph: GraphData, report: BuildReport) -> None:
        engine = AlgorithmEngine(
            graph,
            max_depth=self._settings.max_traversal_depth,
            include_leads_to=self._settings.include_leads_to,
        )
        self._published = (graph, engine)
        self._last_report = report
        logger.info("Published graph: %d nodes, %d edges", graph.node_count, graph.edge_count)

    # --- Reads ---

    def _require(self) -> tuple[GraphData, AlgorithmEngine]:
        published = self._published
        if published is None:
            raise GraphNotSealedError()
        return published

    @property
    def graph(self) -> GraphData:
        return self._require()[0]

    def get_node(self, node_id: str) -> Node:
        """Get a node by id (NodeNotFoundError when absent)."""
        graph, _ = self._require()
        return graph.require_node(node_id)

    def get_neighbors(
        self,
        node_id: str,
        direction: Direction | str = Direction.BOTH,
        relationships: Iterable[Relationship | str] | None = None,
    ) -> list[Node]:
        graph, _ = self._require()
        allowed = (
            [r if isinstance(r, Relationship) else Relationship.parse(r) for r in relationships]
            if relationships is not None
            else None
        )
        return graph.get_neighbors(node_id, direction, allowed)

    def run_algorithm(self, name: str, params: dict[str, Any] | None = None) -> BaseModel:
        """Run a named algorithm against the published graph."""
        _, engine = self._require()
        return engine.run(name, params)

    def algorithms(self) -> list[str]:
        _, engine = self._require()
        return engine.algorithms

    def validate(self) -> ValidationReport:
        _, engine = self._require()
        return engine.validate()

    def info(self) -> GraphStats:
        _, engine = self._require()
        return engine.stats()
