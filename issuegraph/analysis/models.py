"""
Analysis Domain Models

Data structures shared by the two analysis phases, the result store,
triage and insights.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

#: Height recorded for issues whose downstream chain runs through a cycle.
UNRELIABLE_HEIGHT: float = -1.0


class MetricKind(str, Enum):
    """Per-node metrics published by Phase 2."""
    PAGERANK = "pagerank"
    BETWEENNESS = "betweenness"
    EIGENVECTOR = "eigenvector"
    HUB = "hub"
    AUTHORITY = "authority"
    CRITICAL_PATH = "critical_path"


# ---------------------------------------------------------------------------
# Phase results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Phase1Stats:
    """Cheap O(V+E) statistics computed on the calling thread."""
    node_count: int
    edge_count: int
    density: float
    open_count: int
    in_progress_count: int
    blocked_count: int
    closed_count: int
    blocked_ids: FrozenSet[str] = frozenset()
    actionable_ids: Tuple[str, ...] = ()

    @property
    def actionable_count(self) -> int:
        return len(self.actionable_ids)


@dataclass(frozen=True)
class Cycle:
    """A strongly connected component of size > 1, or a self-loop."""
    members: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.members)

    def __contains__(self, issue_id: object) -> bool:
        return issue_id in self.members

    def to_list(self) -> List[str]:
        return list(self.members)


@dataclass
class Phase2Stats:
    """
    Expensive global metrics. Built privately by the Phase 2 worker and
    never modified after it is handed to the result store.
    """
    pagerank: Dict[str, float] = field(default_factory=dict)
    betweenness: Dict[str, float] = field(default_factory=dict)
    eigenvector: Dict[str, float] = field(default_factory=dict)
    hub: Dict[str, float] = field(default_factory=dict)
    authority: Dict[str, float] = field(default_factory=dict)
    critical_path: Dict[str, float] = field(default_factory=dict)
    cycles: List[Cycle] = field(default_factory=list)
    #: Any cycle at all, including loops made only of non-blocking edges.
    has_cycle: bool = False
    #: A cycle among ``blocks`` edges (self-loops included).
    has_blocking_cycle: bool = False
    elapsed: Dict[str, float] = field(default_factory=dict)

    def scores(self, kind: MetricKind) -> Dict[str, float]:
        return getattr(self, kind.value)


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

@dataclass
class GraphSummary:
    """Aggregate numbers consumed by the drift/baseline comparator."""
    node_count: int
    edge_count: int
    density: float
    open_count: int
    in_progress_count: int
    blocked_count: int
    closed_count: int
    cycle_count: int
    actionable_count: int
    phase2_ready: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Triage
# ---------------------------------------------------------------------------

@dataclass
class TriageRecommendation:
    """Triage verdict for a single issue."""
    id: str
    score: float
    reasons: List[str] = field(default_factory=list)
    unblocks_ids: List[str] = field(default_factory=list)
    action: str = ""
    is_quick_win: bool = False
    is_blocker: bool = False
    breakdown: Dict[str, float] = field(default_factory=dict)

    @property
    def primary_reason(self) -> str:
        return self.reasons[0] if self.reasons else ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "score": round(self.score, 6),
            "reasons": list(self.reasons),
            "unblocks_ids": list(self.unblocks_ids),
            "action": self.action,
            "is_quick_win": self.is_quick_win,
            "is_blocker": self.is_blocker,
            "breakdown": {k: round(v, 6) for k, v in self.breakdown.items()},
        }


@dataclass
class TriageMeta:
    version: str
    generated_at: datetime
    issue_count: int
    generation: int
    phase2_ready: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "generated_at": self.generated_at.isoformat(),
            "issue_count": self.issue_count,
            "generation": self.generation,
            "phase2_ready": self.phase2_ready,
        }


@dataclass
class TriageResult:
    """Complete triage output for one data version."""
    recommendations: List[TriageRecommendation]
    quick_wins: List[TriageRecommendation]
    blockers_to_clear: List[TriageRecommendation]
    top_picks: List[TriageRecommendation]
    meta: TriageMeta

    def get(self, issue_id: str) -> Optional[TriageRecommendation]:
        for rec in self.recommendations:
            if rec.id == issue_id:
                return rec
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meta": self.meta.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "quick_wins": [r.id for r in self.quick_wins],
            "blockers_to_clear": [r.id for r in self.blockers_to_clear],
            "top_picks": [r.id for r in self.top_picks],
        }


@dataclass
class PriorityRecommendation:
    """Suggested priority change for an issue whose graph role and stated priority disagree."""
    issue_id: str
    current_priority: int
    suggested_priority: int
    confidence: float
    reasons: List[str] = field(default_factory=list)

    @property
    def direction(self) -> str:
        """``increase`` when the issue should become more urgent (lower number)."""
        return "increase" if self.suggested_priority < self.current_priority else "decrease"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "issue_id": self.issue_id,
            "current_priority": self.current_priority,
            "suggested_priority": self.suggested_priority,
            "confidence": round(self.confidence, 6),
            "direction": self.direction,
            "reasons": list(self.reasons),
        }


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------

@dataclass
class InsightItem:
    id: str
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "value": round(self.value, 6)}


@dataclass
class Insights:
    """Ranked highlights of the published metrics."""
    bottlenecks: List[InsightItem] = field(default_factory=list)
    keystones: List[InsightItem] = field(default_factory=list)
    influencers: List[InsightItem] = field(default_factory=list)
    hubs: List[InsightItem] = field(default_factory=list)
    authorities: List[InsightItem] = field(default_factory=list)
    pagerank_leaders: List[InsightItem] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)
    cluster_density: float = 0.0
    complete: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bottlenecks": [i.to_dict() for i in self.bottlenecks],
            "keystones": [i.to_dict() for i in self.keystones],
            "influencers": [i.to_dict() for i in self.influencers],
            "hubs": [i.to_dict() for i in self.hubs],
            "authorities": [i.to_dict() for i in self.authorities],
            "pagerank_leaders": [i.to_dict() for i in self.pagerank_leaders],
            "cycles": [list(c) for c in self.cycles],
            "cluster_density": round(self.cluster_density, 6),
            "complete": self.complete,
        }
