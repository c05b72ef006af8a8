"""
Tests for snapshot encoding and the snapshot store.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conceptgraph.config.errors import CacheDefectError, ErrorCode
from conceptgraph.domains.building import (
    BuildResult,
    ContentUnit,
    GraphBuilder,
    InMemoryContentSource,
    MetadataExtractionAdapter,
)

from .snapshot import GraphSnapshot, decode_snapshot, encode_snapshot
from .store import SnapshotStore


UNITS = [
    ContentUnit(path="sets.json", metadata={"id": "sets", "title": "Sets"}),
    ContentUnit(
        path="functions.json",
        metadata={"id": "functions", "title": "Functions", "prerequisites": ["sets"]},
        body="Compare with [[relations]].",
    ),
    ContentUnit(path="broken.json", metadata="not a mapping"),
]


async def build(units: list[ContentUnit] = UNITS) -> BuildResult:
    return await GraphBuilder(MetadataExtractionAdapter(), InMemoryContentSource(units)).build()


async def test_encode_is_deterministic():
    """Test two builds of the same content encode to identical text."""
    first = encode_snapshot(GraphSnapshot.from_build(await build()))
    second = encode_snapshot(GraphSnapshot.from_build(await build(list(reversed(UNITS)))))

    assert first == second
    assert "duration_ms" not in first


async def test_decode_restores_sealed_graph():
    """Test decoding restores nodes, edges (dangling included) and the manifest."""
    result = await build()
    snapshot = decode_snapshot(encode_snapshot(GraphSnapshot.from_build(result)))

    assert snapshot.graph.is_sealed
    assert [n.id for n in snapshot.graph.iter_nodes()] == ["functions", "sets"]
    assert [e.key for e in snapshot.graph.iter_edges()] == [e.key for e in result.graph.iter_edges()]
    assert len(snapshot.graph.dangling_edges) == 1
    assert snapshot.manifest.units == result.manifest.units
    assert set(snapshot.extractions) == {"functions.json", "sets.json"}
    assert snapshot.report.from_cache
    assert len(snapshot.report.extraction_defects) == 1


async def test_reencode_is_byte_identical():
    """Test decode then encode reproduces the same bytes."""
    text = encode_snapshot(GraphSnapshot.from_build(await build()))
    assert encode_snapshot(decode_snapshot(text)) == text


def test_decode_version_mismatch():
    """Test another format version is a cache defect."""
    with pytest.raises(CacheDefectError) as exc_info:
        decode_snapshot(json.dumps({"format_version": "0"}))
    assert exc_info.value.code is ErrorCode.CACHE_VERSION_MISMATCH


@pytest.mark.parametrize("text", ["{not json", "[]", '{"format_version": "1"}'])
def test_decode_corrupt(text: str):
    """Test unreadable snapshots are cache defects."""
    with pytest.raises(CacheDefectError) as exc_info:
        decode_snapshot(text)
    assert exc_info.value.code is ErrorCode.CACHE_CORRUPT


# --- Store ---


async def test_store_round_trip(tmp_path: Path):
    """Test save then load through the file system."""
    store = SnapshotStore(tmp_path / "cache")
    assert store.load() is None

    path = store.save(GraphSnapshot.from_build(await build()))

    assert path.exists()
    assert not list((tmp_path / "cache").glob("*.tmp"))
    loaded = store.load()
    assert loaded is not None
    assert loaded.graph.node_count == 2


async def test_store_save_is_idempotent(tmp_path: Path):
    """Test saving an unchanged build leaves identical bytes on disk."""
    store = SnapshotStore(tmp_path)
    store.save(GraphSnapshot.from_build(await build()))
    before = store.path.read_bytes()

    store.save(GraphSnapshot.from_build(await build()))

    assert store.path.read_bytes() == before


def test_store_discards_corrupt_cache(tmp_path: Path):
    """Test a corrupt file is discarded instead of raised."""
    store = SnapshotStore(tmp_path)
    store.path.write_text("garbage", encoding="utf-8")

    with pytest.raises(CacheDefectError):
        store.read()
    assert store.load() is None
    assert not store.exists()


def test_store_discards_other_version(tmp_path: Path):
    """Test an outdated cache is discarded wholesale."""
    store = SnapshotStore(tmp_path)
    store.path.write_text(json.dumps({"format_version": "0"}), encoding="utf-8")

    assert store.load() is None
    assert not store.exists()
