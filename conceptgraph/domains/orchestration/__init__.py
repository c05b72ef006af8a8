"""
Orchestration Domain - Build coordination and graph serving.

This domain handles:
- One build at a time per process, with request coalescing
- Cache-aware rebuilds and atomic publication of sealed graphs
- Read and algorithm access for service and CLI callers
"""

from .coordinator import BuildCoordinator
from .service import GraphService

__all__ = [
    "BuildCoordinator",
    "GraphService",
]
