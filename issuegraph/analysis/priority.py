"""
Priority Recommendations

Compares what the dependency graph says about an issue with the priority
it was filed under, and suggests a new priority where the two disagree.

Graph importance (in [0, 1]):
    0.5 · PageRank / max PageRank
  + 0.3 · reliable height / max reliable height
  + 0.2 · unblocked dependents / max unblocked dependents

suggested = round(max_priority · (1 - importance))
confidence = |importance - stated importance|, where stated importance
is (max_priority - priority) / max_priority.

Only changes with confidence at or above
TriageConfig.priority_hint_min_confidence are reported.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from issuegraph.config import TriageConfig
from issuegraph.core import IssueGraph

from .graph_stats import GraphStats
from .models import UNRELIABLE_HEIGHT, PriorityRecommendation
from .triage import _priority_component, unblocks

logger = logging.getLogger(__name__)

IMPACT_WEIGHT = 0.5
DEPTH_WEIGHT = 0.3
REACH_WEIGHT = 0.2


def _clamp(priority: int, max_priority: int) -> int:
    return min(max(priority, 0), max_priority)


def generate_priority_recommendations(
    graph: IssueGraph,
    stats: GraphStats,
    config: Optional[TriageConfig] = None,
) -> List[PriorityRecommendation]:
    """
    Priority changes suggested by the published metrics of *stats*,
    ordered by confidence (highest first), then issue id.
    """
    config = config or TriageConfig()
    if not stats.is_phase2_ready():
        stats.wait_for_phase2()

    candidates = [i for i in graph.issues() if not i.is_closed]
    pageranks = {i.id: stats.get_pagerank_score(i.id) for i in candidates}
    heights = {i.id: stats.get_critical_path_score(i.id) for i in candidates}
    freed = {i.id: unblocks(graph, i.id) for i in candidates}

    max_pr = max(pageranks.values(), default=0.0)
    max_height = max((h for h in heights.values() if h != UNRELIABLE_HEIGHT), default=0.0)
    max_freed = max((len(f) for f in freed.values()), default=0)
    if max_pr <= 0:
        # no published PageRank: nothing to compare against
        return []

    recommendations: List[PriorityRecommendation] = []
    for issue in candidates:
        impact = pageranks[issue.id] / max_pr
        height = heights[issue.id]
        depth = height / max_height if max_height > 0 and height > 0 else 0.0
        reach = len(freed[issue.id]) / max_freed if max_freed > 0 else 0.0
        importance = IMPACT_WEIGHT * impact + DEPTH_WEIGHT * depth + REACH_WEIGHT * reach

        current = _clamp(issue.priority, config.max_priority)
        stated = _priority_component(issue.priority, config.max_priority)
        suggested = _clamp(round(config.max_priority * (1.0 - importance)), config.max_priority)
        confidence = min(abs(importance - stated), 1.0)
        if suggested == current or confidence < config.priority_hint_min_confidence:
            continue

        reasons: List[str] = []
        if suggested < current:
            if impact >= 0.5:
                reasons.append(f"High PageRank ({pageranks[issue.id]:.3f})")
            if depth > 0:
                reasons.append(f"Heads a blocking chain {int(height)} deep")
            if freed[issue.id]:
                n = len(freed[issue.id])
                reasons.append(f"Unblocks {n} {'issue' if n == 1 else 'issues'}")
        else:
            if impact < 0.5:
                reasons.append(f"Low graph centrality (PageRank {pageranks[issue.id]:.3f})")
            if not graph.dependents(issue.id, blocking_only=False):
                reasons.append("Nothing depends on it")

        recommendations.append(PriorityRecommendation(
            issue_id=issue.id,
            current_priority=issue.priority,
            suggested_priority=suggested,
            confidence=confidence,
            reasons=reasons,
        ))

    recommendations.sort(key=lambda r: (-r.confidence, r.issue_id))
    logger.debug(
        "Priority hints [gen %d]: %d of %d issues", stats.generation,
        len(recommendations), len(candidates),
    )
    return recommendations
