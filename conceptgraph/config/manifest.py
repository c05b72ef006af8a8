"""
Content Manifest - Track per-unit content hashes for incremental rebuilds.

A manifest travels with every persisted graph snapshot and records:
- The snapshot format version (mismatch discards the cache wholesale)
- One content hash per content unit, keyed by identity path
- A hash of the manual edge source
- The validation mode the snapshot was built with

Usage:
    from conceptgraph.config.manifest import ContentManifest, compute_unit_hash

    manifest = ContentManifest(units={"intro.json": compute_unit_hash("intro.json", meta, body)})
    stale = manifest.changed_units(current_hashes)
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

FORMAT_VERSION = "1"

# Hash recorded when no manual edge source is configured or present.
NO_MANUAL_EDGES = "none"


@dataclass
class ContentManifest:
    """
    Manifest mapping content-unit identities to content hashes.

    Provides:
    - Freshness checks against the current corpus
    - The set of units that need re-extraction
    - Deterministic serialization (sorted keys, no timestamps)
    """

    format_version: str = FORMAT_VERSION
    units: dict[str, str] = field(default_factory=dict)
    manual_edges_hash: str = NO_MANUAL_EDGES
    strict: bool = False

    def changed_units(self, current: dict[str, str]) -> set[str]:
        """
        Units whose hash differs from (or is absent in) this manifest.

        Args:
            current: Mapping of identity path to freshly computed hash

        Returns:
            Identity paths that must be re-extracted
        """
        return {path for path, digest in current.items() if self.units.get(path) != digest}

    def is_fresh(
        self,
        current: dict[str, str],
        manual_edges_hash: str,
        strict: bool,
    ) -> bool:
        """True when the snapshot was built from exactly this input."""
        return (
            self.format_version == FORMAT_VERSION
            and self.units == current
            and self.manual_edges_hash == manual_edges_hash
            and self.strict == strict
        )

    def validate(self) -> list[str]:
        """
        Validate the manifest.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.format_version:
            errors.append("format_version is required")

        for path, digest in self.units.items():
            if not path:
                errors.append("unit with empty path")
            if not digest:
                errors.append(f"unit[{path}]: content hash is required")

        return errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "format_version": self.format_version,
            "units": dict(sorted(self.units.items())),
            "manual_edges_hash": self.manual_edges_hash,
            "strict": self.strict,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentManifest:
        """Create manifest from dictionary."""
        return cls(
            format_version=str(data["format_version"]),
            units={str(k): str(v) for k, v in data.get("units", {}).items()},
            manual_edges_hash=data.get("manual_edges_hash", NO_MANUAL_EDGES),
            strict=bool(data.get("strict", False)),
        )


def compute_unit_hash(path: str, metadata: Any, body: str) -> str:
    """
    Compute the content hash of one content unit.

    The hash covers the identity path, the canonical JSON form of the
    metadata and the body text, so it is independent of key order and of
    file modification times.

    Args:
        path: Identity path of the unit
        metadata: Structured metadata value
        body: Body text

    Returns:
        Hex SHA256 digest
    """
    payload = json.dumps(
        {"path": path, "metadata": metadata, "body": body},
        sort_keys=True,
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def compute_file_checksum(path: Path, algorithm: str = "sha256") -> str:
    """
    Compute checksum of a file.

    Args:
        path: Path to file
        algorithm: Hash algorithm (default: sha256)

    Returns:
        Hex digest of the file
    """
    hasher = hashlib.new(algorithm)

    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            hasher.update(chunk)

    return hasher.hexdigest()


def compute_manual_edges_hash(path: Path | None) -> str:
    """Checksum of the manual edge source, or a sentinel when there is none."""
    if path is None or not Path(path).exists():
        return NO_MANUAL_EDGES
    return compute_file_checksum(Path(path))
