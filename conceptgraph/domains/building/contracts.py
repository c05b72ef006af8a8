"""
Building Contracts - Interfaces supplied by the embedding domain.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from conceptgraph.domains.graph import Edge, Node

from .models import ContentUnit


@runtime_checkable
class ExtractionAdapter(Protocol):
    """
    Contract for turning one content unit into draft nodes and edges.

    Drafts are opaque to the builder: only the adapter produces and consumes
    them. Every method may run on a worker thread, so implementations must
    not share mutable state across calls.

    Example:
        >>> class MyAdapter:
        ...     def derive_node(self, base_path, unit_path, metadata, body): ...
        ...     def derive_edges(self, metadata, body): ...
        ...     def node_draft_to_node(self, draft): ...
        ...     def edge_draft_to_edges(self, from_id, draft): ...
        >>> assert isinstance(MyAdapter(), ExtractionAdapter)
    """

    def derive_node(
        self,
        base_path: Path,
        unit_path: str,
        metadata: Any,
        body: str,
    ) -> Any:
        """
        Derive a node draft from a unit.

        Args:
            base_path: Root the unit path is relative to
            unit_path: Identity path of the unit
            metadata: Parsed metadata block
            body: Unit body text

        Returns:
            Node draft

        Raises:
            ExtractionError: If the unit cannot describe a node
        """
        ...

    def derive_edges(self, metadata: Any, body: str) -> Any | None:
        """
        Derive an edge draft from a unit.

        Returns:
            Edge draft, or None when the unit declares no edges
        """
        ...

    def node_draft_to_node(self, draft: Any) -> Node:
        """Convert a node draft into a graph node."""
        ...

    def edge_draft_to_edges(self, from_id: str, draft: Any) -> list[Edge]:
        """
        Convert an edge draft into graph edges.

        Args:
            from_id: Id of the node derived from the same unit
            draft: Edge draft from derive_edges

        Returns:
            Edges originating at from_id (or pointing to it)
        """
        ...


@runtime_checkable
class ContentSource(Protocol):
    """
    Contract for discovering content units.

    Parsing files into metadata and body is the source's job; the builder
    only sees finished units.
    """

    def iter_units(self) -> Iterable[ContentUnit]:
        """Yield every unit currently in the corpus."""
        ...

    @property
    def base_path(self) -> Path:
        """Root the unit paths are relative to."""
        ...
