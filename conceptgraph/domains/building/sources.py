"""
Content Sources - Where content units come from.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from .models import ContentUnit

logger = logging.getLogger(__name__)

__all__ = ["DirectoryContentSource", "InMemoryContentSource"]


class InMemoryContentSource:
    """Fixed list of units, mainly for tests and embedding."""

    def __init__(self, units: Iterable[ContentUnit], base_path: Path = Path(".")) -> None:
        self._units = list(units)
        self._base_path = Path(base_path)

    @property
    def base_path(self) -> Path:
        return self._base_path

    def iter_units(self) -> Iterator[ContentUnit]:
        yield from self._units

    def replace(self, units: Iterable[ContentUnit]) -> None:
        """Swap the corpus (simulates content edits between builds)."""
        self._units = list(units)


class DirectoryContentSource:
    """
    JSON unit files under a directory.

    Each file holds ``{"metadata": {...}, "body": "..."}``. Files that cannot
    be read as JSON still yield a unit with no metadata, so the failure
    surfaces as an extraction defect instead of vanishing.

    Example:
        >>> source = DirectoryContentSource(Path("content"))
        >>> paths = [u.path for u in source.iter_units()]
    """

    def __init__(
        self,
        root: Path,
        pattern: str = "**/*.json",
        exclude: Iterable[str] = ("manual_edges.json",),
    ) -> None:
        self.root = Path(root)
        self.pattern = pattern
        self.exclude = set(exclude)

    @property
    def base_path(self) -> Path:
        return self.root

    def iter_units(self) -> Iterator[ContentUnit]:
        if not self.root.is_dir():
            logger.warning("Content directory not found: %s", self.root)
            return

        for file_path in sorted(self.root.glob(self.pattern)):
            if not file_path.is_file() or file_path.name in self.exclude:
                continue

            unit_path = file_path.relative_to(self.root).as_posix()
            try:
                raw = json.loads(file_path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.warning("Unreadable content unit %s: %s", unit_path, e)
                yield ContentUnit(path=unit_path)
                continue

            if not isinstance(raw, dict):
                yield ContentUnit(path=unit_path, metadata=raw)
                continue

            body = raw.get("body", "")
            yield ContentUnit(
                path=unit_path,
                metadata=raw.get("metadata"),
                body=body if isinstance(body, str) else "",
            )
