"""
Parallel Extraction - Fan-out of adapter calls across content units.

Each unit is extracted on a worker thread behind a concurrency limit. A unit
that fails is recorded as a defect and excluded; it never aborts the build.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from conceptgraph.config.errors import BuildCancelledError
from conceptgraph.config.manifest import compute_unit_hash

from .contracts import ExtractionAdapter
from .models import ContentUnit, ExtractionDefect, ExtractionStage, UnitExtraction

logger = logging.getLogger(__name__)

__all__ = [
    "CancelToken",
    "DefectCollector",
    "ExtractionBatch",
    "ParallelExtractor",
]


class CancelToken:
    """
    Cooperative cancellation flag, checked at unit boundaries.

    Example:
        >>> token = CancelToken()
        >>> token.cancel()
        >>> token.is_cancelled
        True
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


class DefectCollector:
    """Thread-safe side channel for per-unit extraction defects."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._defects: list[ExtractionDefect] = []

    def add(self, defect: ExtractionDefect) -> None:
        with self._lock:
            self._defects.append(defect)

    @property
    def defects(self) -> list[ExtractionDefect]:
        """Collected defects ordered by unit path."""
        with self._lock:
            return sorted(self._defects, key=lambda d: d.path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._defects)


@dataclass
class ExtractionBatch:
    """Results of extracting a set of units."""

    extractions: list[UnitExtraction] = field(default_factory=list)
    hashes: dict[str, str] = field(default_factory=dict)
    reused: int = 0


class ParallelExtractor:
    """
    Runs an ExtractionAdapter over many units concurrently.

    Example:
        >>> extractor = ParallelExtractor(adapter, max_concurrent=8)
        >>> batch = await extractor.extract_all(units, Path("content"), DefectCollector())
    """

    def __init__(self, adapter: ExtractionAdapter, max_concurrent: int = 8) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._adapter = adapter
        self._max_concurrent = max_concurrent

    async def extract_all(
        self,
        units: Sequence[ContentUnit],
        base_path: Path,
        collector: DefectCollector,
        cancel: CancelToken | None = None,
        cached: Mapping[str, UnitExtraction] | None = None,
    ) -> ExtractionBatch:
        """
        Extract every unit, reusing cached results for unchanged units.

        Args:
            units: Units in discovery order
            base_path: Root passed through to the adapter
            collector: Receives one defect per failed unit
            cancel: Optional token; checked before each unit starts
            cached: Prior extractions by unit path

        Returns:
            Successful extractions in discovery order

        Raises:
            BuildCancelledError: If the token was cancelled during the batch
        """
        cancel = cancel or CancelToken()
        cached = cached or {}
        semaphore = asyncio.Semaphore(self._max_concurrent)
        batch = ExtractionBatch()
        reused = 0

        for unit in units:
            batch.hashes[unit.path] = compute_unit_hash(unit.path, unit.metadata, unit.body)

        async def extract_with_limit(unit: ContentUnit) -> UnitExtraction | None:
            nonlocal reused
            async with semaphore:
                if cancel.is_cancelled:
                    return None
                digest = batch.hashes[unit.path]
                prior = cached.get(unit.path)
                if prior is not None and prior.content_hash == digest:
                    reused += 1
                    return prior
                return await asyncio.to_thread(
                    self._extract_one, unit, base_path, digest, collector
                )

        results = await asyncio.gather(*(extract_with_limit(u) for u in units))

        if cancel.is_cancelled:
            logger.info("Extraction cancelled after %d units", sum(r is not None for r in results))
            raise BuildCancelledError("Build cancelled during extraction")

        batch.extractions = [r for r in results if r is not None]
        batch.reused = reused
        logger.info(
            "Extracted %d/%d units (%d reused, %d failed)",
            len(batch.extractions),
            len(units),
            reused,
            len(collector),
        )
        return batch

    def _extract_one(
        self,
        unit: ContentUnit,
        base_path: Path,
        digest: str,
        collector: DefectCollector,
    ) -> UnitExtraction | None:
        """Run the adapter for one unit on a worker thread."""
        stage = ExtractionStage.DERIVE_NODE
        try:
            node_draft = self._adapter.derive_node(base_path, unit.path, unit.metadata, unit.body)
            stage = ExtractionStage.DERIVE_EDGES
            edge_draft = self._adapter.derive_edges(unit.metadata, unit.body)
            stage = ExtractionStage.CONVERT
            node = self._adapter.node_draft_to_node(node_draft)
            edges = (
                self._adapter.edge_draft_to_edges(node.id, edge_draft)
                if edge_draft is not None
                else []
            )
        except Exception as e:
            logger.warning("Failed to extract %s (%s): %s", unit.path, stage.value, e)
            collector.add(
                ExtractionDefect(
                    path=unit.path,
                    stage=stage,
                    error_type=type(e).__name__,
                    message=str(e),
                )
            )
            return None

        return UnitExtraction(path=unit.path, content_hash=digest, node=node, edges=edges)
