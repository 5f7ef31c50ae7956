"""
Triage

Turns published graph metrics and issue metadata into a ranked list of
recommendations with human-readable reasons, plus "quick win" and
"blocker to clear" subsets.

Score components (each in [0, 1]):
    priority   : (max_priority - priority) / max_priority
    impact     : PageRank relative to the highest PageRank
    depth      : critical-path height relative to the deepest reliable height
    readiness  : 1 / (1 + open blocking prerequisites)
    staleness  : age in days / stale_days, capped at 1

score = Σ weight · component / Σ weight

Coefficients and thresholds live in TriageConfig and are tunable.
The function is cheap and meant to be re-run whenever Phase 2 publishes.
"""

from __future__ import annotations

import logging
import statistics
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from issuegraph.config import TriageConfig
from issuegraph.core import Issue, IssueGraph, IssueStatus, build_graph

from .analyzer import Analyzer
from .graph_stats import GraphStats
from .models import (
    UNRELIABLE_HEIGHT,
    TriageMeta,
    TriageRecommendation,
    TriageResult,
)
from .summarizer import open_blockers

logger = logging.getLogger(__name__)

TRIAGE_VERSION = "1.0.0"

COMPONENTS = ("priority", "impact", "depth", "readiness", "staleness")


def unblocks(graph: IssueGraph, issue_id: str) -> List[str]:
    """
    Non-closed dependents that would become unblocked if *issue_id* closed,
    i.e. whose only open ``blocks`` prerequisite is *issue_id*.
    """
    freed = []
    for dep_id in graph.dependents(issue_id, blocking_only=True):
        dependent = graph.issue(dep_id)
        if dependent is None or dependent.is_closed:
            continue
        if open_blockers(graph, dep_id) == [issue_id]:
            freed.append(dep_id)
    return freed


def _age_days(issue: Issue, now: datetime) -> float:
    ts = issue.updated_at or issue.created_at
    if ts is None:
        return 0.0
    return max((now - ts).total_seconds() / 86400.0, 0.0)


def _priority_component(priority: int, max_priority: int) -> float:
    clamped = min(max(priority, 0), max_priority)
    return (max_priority - clamped) / max_priority


def _reasons(
    issue: Issue,
    components: Dict[str, float],
    weights: Dict[str, float],
    freed: List[str],
    blockers: List[str],
    height: float,
    pagerank: float,
    age_days: float,
) -> List[str]:
    """Reasons ordered by their weighted contribution, largest first."""
    candidates: List[Tuple[float, str]] = []

    if components["priority"] > 0:
        candidates.append((
            weights["priority"] * components["priority"],
            f"High priority (P{issue.priority})" if components["priority"] >= 0.5
            else f"Priority P{issue.priority}",
        ))
    if components["impact"] > 0:
        candidates.append((
            weights["impact"] * components["impact"],
            f"Central in the dependency graph (PageRank {pagerank:.3f})",
        ))
    if components["depth"] > 0:
        candidates.append((
            weights["depth"] * components["depth"],
            f"Heads a blocking chain {int(height)} deep",
        ))
    if freed:
        shown = ", ".join(freed[:3]) + ("…" if len(freed) > 3 else "")
        noun = "issue" if len(freed) == 1 else "issues"
        # ranked alongside depth
        candidates.append((
            weights["depth"] * max(components["depth"], 0.5),
            f"Unblocks {len(freed)} {noun}: {shown}",
        ))
    if blockers:
        noun = "issue" if len(blockers) == 1 else "issues"
        candidates.append((
            weights["readiness"] * (1.0 - components["readiness"]),
            f"Blocked by {len(blockers)} open {noun}: {', '.join(blockers[:3])}",
        ))
    elif components["readiness"] >= 1.0:
        candidates.append((
            weights["readiness"] * 0.5,
            "Ready to start (no open blockers)",
        ))
    if components["staleness"] >= 0.5:
        candidates.append((
            weights["staleness"] * components["staleness"],
            f"Untouched for {int(age_days)} days",
        ))

    candidates.sort(key=lambda c: -c[0])
    return [text for _, text in candidates]


def _action(freed: List[str], blockers: List[str], quick_win: bool) -> str:
    if blockers:
        return f"Resolve blocker {blockers[0]} first"
    if freed:
        noun = "issue" if len(freed) == 1 else "issues"
        return f"Complete to unblock {len(freed)} {noun}"
    if quick_win:
        return "Quick win: start now"
    return "Start work"


def compute_triage(
    issues: Iterable[Issue],
    stats: Optional[GraphStats] = None,
    config: Optional[TriageConfig] = None,
    now: Optional[datetime] = None,
    graph: Optional[IssueGraph] = None,
) -> TriageResult:
    """
    Rank the non-closed issues in *issues*.

    When *stats* is None the issues are analyzed here and Phase 2 is
    awaited. When *stats* is given it is awaited as well; triage always
    works from final numbers.
    """
    issues = [i for i in issues if i is not None]
    config = config or TriageConfig()
    now = now or datetime.now(timezone.utc)

    if stats is None:
        analyzer = Analyzer(issues)
        graph = analyzer.graph
        stats = analyzer.analyze()
    elif not stats.is_phase2_ready():
        stats.wait_for_phase2()
    if graph is None:
        graph = build_graph(issues)

    weights = config.weights.as_dict()
    total_weight = config.weights.total

    candidates = [i for i in graph.issues() if not i.is_closed]
    pageranks = {i.id: stats.get_pagerank_score(i.id) for i in candidates}
    heights = {i.id: stats.get_critical_path_score(i.id) for i in candidates}
    max_pr = max(pageranks.values(), default=0.0)
    max_height = max((h for h in heights.values() if h != UNRELIABLE_HEIGHT), default=0.0)
    impacts = {
        iid: (pr / max_pr if max_pr > 0 else 0.0) for iid, pr in pageranks.items()
    }
    median_impact = statistics.median(impacts.values()) if impacts else 0.0

    recommendations: List[TriageRecommendation] = []
    actionable_ids = set()

    for issue in candidates:
        blockers = open_blockers(graph, issue.id)
        freed = unblocks(graph, issue.id)
        height = heights[issue.id]
        age = _age_days(issue, now)

        components = {
            "priority": _priority_component(issue.priority, config.max_priority),
            "impact": impacts[issue.id],
            "depth": (height / max_height) if max_height > 0 and height > 0 else 0.0,
            "readiness": 1.0 / (1 + len(blockers)),
            "staleness": min(age / config.stale_days, 1.0),
        }
        score = sum(weights[k] * components[k] for k in COMPONENTS) / total_weight

        actionable = not blockers and issue.status is not IssueStatus.BLOCKED
        if actionable:
            actionable_ids.add(issue.id)
        quick_win = (
            actionable
            and height != UNRELIABLE_HEIGHT
            and height <= config.quick_win_max_height
            and impacts[issue.id] > median_impact
        )

        freed_weight = 0.0
        for fid in freed:
            freed_issue = graph.issue(fid)
            if freed_issue is not None:
                freed_weight += _priority_component(freed_issue.priority, config.max_priority)
        is_blocker = bool(freed) and (
            len(freed) >= max(config.blocker_min_unblocks, 1)
            or (config.blocker_min_priority_weight > 0
                and freed_weight >= config.blocker_min_priority_weight)
        )

        rec = TriageRecommendation(
            id=issue.id,
            score=score,
            reasons=_reasons(
                issue, components, weights, freed, blockers,
                height, pageranks[issue.id], age,
            ),
            unblocks_ids=freed,
            action=_action(freed, blockers, quick_win),
            is_quick_win=quick_win,
            is_blocker=is_blocker,
            breakdown=components,
        )
        recommendations.append(rec)

    recommendations.sort(key=lambda r: (-r.score, r.id))

    quick_wins = [r for r in recommendations if r.is_quick_win][: config.quick_win_limit]
    blockers_to_clear = sorted(
        (r for r in recommendations if r.is_blocker),
        key=lambda r: (-len(r.unblocks_ids), -r.score, r.id),
    )
    top_picks = [r for r in recommendations if r.id in actionable_ids][: config.top_picks]

    logger.debug(
        "Triage [gen %d]: %d recommendations, %d quick wins, %d blockers",
        stats.generation, len(recommendations), len(quick_wins), len(blockers_to_clear),
    )

    return TriageResult(
        recommendations=recommendations,
        quick_wins=quick_wins,
        blockers_to_clear=blockers_to_clear,
        top_picks=top_picks,
        meta=TriageMeta(
            version=TRIAGE_VERSION,
            generated_at=now,
            issue_count=len(issues),
            generation=stats.generation,
            phase2_ready=stats.is_phase2_ready(),
        ),
    )
