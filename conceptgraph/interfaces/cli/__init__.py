"""
CLI Interface - Command-line tools for ConceptGraph.

Provides commands for:
- Building and caching the graph
- Prerequisite, path and neighborhood queries
- Graph statistics and validation
"""

from .main import app, main

__all__ = ["app", "main"]
