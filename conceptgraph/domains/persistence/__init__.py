"""
Persistence Domain - Snapshots of sealed graphs for cheap restarts.

This domain handles:
- Deterministic snapshot encoding and decoding
- Atomic, locked writes to the cache directory
- Discarding corrupt or outdated caches
"""

from .snapshot import GraphSnapshot, decode_snapshot, encode_snapshot
from .store import SNAPSHOT_FILENAME, SnapshotStore

__all__ = [
    "GraphSnapshot",
    "encode_snapshot",
    "decode_snapshot",
    "SnapshotStore",
    "SNAPSHOT_FILENAME",
]
