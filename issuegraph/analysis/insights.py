"""
Insights

Ranked highlights of the published metrics for an overview panel:
bottlenecks (betweenness), keystones (critical-path height), influencers
(eigenvector), hubs, authorities, PageRank leaders and cycles.

Before Phase 2 publishes only the cluster density is available and the
result is marked incomplete.
"""

from __future__ import annotations

from typing import Dict, List

from .algorithms import top_n
from .graph_stats import GraphStats
from .models import UNRELIABLE_HEIGHT, InsightItem, Insights, MetricKind


def _items(scores: Dict[str, float], limit: int) -> List[InsightItem]:
    return [
        InsightItem(issue_id, value)
        for issue_id, value in top_n(scores, limit)
        if value > 0
    ]


def generate_insights(stats: GraphStats, limit: int = 5) -> Insights:
    insights = Insights(cluster_density=stats.density)
    if not stats.is_phase2_ready():
        return insights

    heights = {
        k: v for k, v in stats.scores(MetricKind.CRITICAL_PATH).items()
        if v != UNRELIABLE_HEIGHT
    }
    insights.bottlenecks = _items(stats.scores(MetricKind.BETWEENNESS), limit)
    insights.keystones = _items(heights, limit)
    insights.influencers = _items(stats.scores(MetricKind.EIGENVECTOR), limit)
    insights.hubs = _items(stats.scores(MetricKind.HUB), limit)
    insights.authorities = _items(stats.scores(MetricKind.AUTHORITY), limit)
    insights.pagerank_leaders = _items(stats.scores(MetricKind.PAGERANK), limit)
    insights.cycles = [c.to_list() for c in stats.cycles()]
    insights.complete = True
    return insights
