"""
ConceptGraph - Knowledge graph builder and query engine for structured content.

Example:
    >>> from conceptgraph.domains.orchestration import GraphService
    >>> service = GraphService(MetadataExtractionAdapter(), DirectoryContentSource(root))
    >>> await service.rebuild()
    >>> service.run_algorithm("prerequisites", {"node_id": "calculus"})
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
