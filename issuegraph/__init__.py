"""
issuegraph - dependency graph analytics and triage for issue trackers.
"""
from issuegraph.core import Dependency, DependencyType, Issue, IssueStatus, build_graph
from issuegraph.analysis import (
    AnalysisCache,
    AnalysisSession,
    Analyzer,
    GraphStats,
    compute_triage,
    generate_insights,
    new_cached_analyzer,
)

__version__ = "1.0.0"

__all__ = [
    "Dependency",
    "DependencyType",
    "Issue",
    "IssueStatus",
    "build_graph",
    "AnalysisCache",
    "AnalysisSession",
    "Analyzer",
    "GraphStats",
    "compute_triage",
    "generate_insights",
    "new_cached_analyzer",
]
