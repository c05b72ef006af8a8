"""
Snapshot Store - On-disk cache of the last sealed graph.

Writes go to a temporary file in the cache directory and are moved into place
with ``os.replace`` while holding a file lock, so readers see either the old
snapshot or the new one.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from filelock import FileLock

from conceptgraph.config.errors import CacheDefectError

from .snapshot import GraphSnapshot, decode_snapshot, encode_snapshot

logger = logging.getLogger(__name__)

__all__ = ["SnapshotStore"]

SNAPSHOT_FILENAME = "graph.json"


class SnapshotStore:
    """
    File-backed snapshot persistence.

    Example:
        >>> store = SnapshotStore(Path("data/graph-cache"))
        >>> store.save(GraphSnapshot.from_build(result))
        >>> snapshot = store.load()
    """

    def __init__(self, cache_dir: Path, lock_timeout: float = 30.0) -> None:
        self.cache_dir = Path(cache_dir)
        self.path = self.cache_dir / SNAPSHOT_FILENAME
        self._lock_path = self.cache_dir / f"{SNAPSHOT_FILENAME}.lock"
        self._lock_timeout = lock_timeout

    def _lock(self) -> FileLock:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        return FileLock(str(self._lock_path), timeout=self._lock_timeout)

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> GraphSnapshot | None:
        """
        Read the snapshot.

        Returns:
            The snapshot, or None when nothing is cached

        Raises:
            CacheDefectError: If the cached file is corrupt or from another format
        """
        if not self.path.exists():
            return None
        with self._lock():
            try:
                text = self.path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None
            except (OSError, UnicodeDecodeError) as e:
                raise CacheDefectError(f"Cannot read snapshot: {e}") from e
        return decode_snapshot(text)

    def load(self) -> GraphSnapshot | None:
        """
        Read the snapshot, discarding it when it is unusable.

        Returns:
            The snapshot, or None when nothing usable is cached
        """
        try:
            snapshot = self.read()
        except CacheDefectError as e:
            logger.warning("Discarding graph cache (%s): %s", e.code.value, e.message)
            self.clear()
            return None

        if snapshot is not None:
            logger.info(
                "Loaded cached graph: %d nodes, %d edges",
                snapshot.graph.node_count,
                snapshot.graph.edge_count,
            )
        return snapshot

    def save(self, snapshot: GraphSnapshot) -> Path:
        """
        Persist a snapshot atomically.

        Returns:
            Path of the snapshot file
        """
        text = encode_snapshot(snapshot)
        with self._lock():
            fd, tmp_name = tempfile.mkstemp(
                dir=self.cache_dir, prefix=f".{SNAPSHOT_FILENAME}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                    f.write(text)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

        logger.info("Saved graph snapshot to %s", self.path)
        return self.path

    def clear(self) -> None:
        """Remove the cached snapshot."""
        with self._lock():
            self.path.unlink(missing_ok=True)
        logger.debug("Cleared graph cache at %s", self.cache_dir)
