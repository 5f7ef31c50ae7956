"""
Core Entities and Graph Model
"""
from .models import (
    DEFAULT_PRIORITY,
    Dependency,
    DependencyType,
    Issue,
    IssueStatus,
)
from .graph import Edge, IssueGraph, build_graph, resolve_dependency

__all__ = [
    "DEFAULT_PRIORITY",
    "Dependency",
    "DependencyType",
    "Issue",
    "IssueStatus",
    "Edge",
    "IssueGraph",
    "build_graph",
    "resolve_dependency",
]
