"""
Graph Analytics

Two-phase analysis of issue dependency graphs: cheap structural numbers
on the calling thread, global centrality metrics in the background, a
fingerprint cache across reloads, and triage and priority hints built on
the results.
"""
from .models import (
    UNRELIABLE_HEIGHT,
    Cycle,
    GraphSummary,
    InsightItem,
    Insights,
    MetricKind,
    Phase1Stats,
    Phase2Stats,
    PriorityRecommendation,
    TriageMeta,
    TriageRecommendation,
    TriageResult,
)
from .summarizer import compute_phase1, is_blocked, open_blockers
from .deep_analytics import compute_phase2
from .graph_stats import GraphStats
from .analyzer import Analyzer
from .cache import (
    AnalysisCache,
    CachedAnalyzer,
    compute_fingerprint,
    get_default_cache,
    new_cached_analyzer,
)
from .triage import compute_triage, unblocks
from .priority import generate_priority_recommendations
from .insights import generate_insights
from .session import AnalysisSession

__all__ = [
    "UNRELIABLE_HEIGHT",
    "Cycle",
    "GraphSummary",
    "InsightItem",
    "Insights",
    "MetricKind",
    "Phase1Stats",
    "Phase2Stats",
    "PriorityRecommendation",
    "TriageMeta",
    "TriageRecommendation",
    "TriageResult",
    "compute_phase1",
    "is_blocked",
    "open_blockers",
    "compute_phase2",
    "GraphStats",
    "Analyzer",
    "AnalysisCache",
    "CachedAnalyzer",
    "compute_fingerprint",
    "get_default_cache",
    "new_cached_analyzer",
    "compute_triage",
    "unblocks",
    "generate_priority_recommendations",
    "generate_insights",
    "AnalysisSession",
]
