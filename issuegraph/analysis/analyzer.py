"""
Analyzer

Entry point for one data version: builds the issue graph, computes
Phase 1 on the calling thread and schedules Phase 2 on a background
thread.

Usage:
    analyzer = Analyzer(issues)
    stats = analyzer.analyze_async()   # returns immediately
    ...
    stats.wait_for_phase2()            # only where final numbers are needed
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Iterable, List, Optional

from issuegraph.config import AnalysisConfig, TriageConfig
from issuegraph.core import Issue, IssueGraph, build_graph

from . import deep_analytics
from .graph_stats import GraphStats
from .models import Phase2Stats, PriorityRecommendation
from .summarizer import compute_phase1


class Analyzer:
    """Runs the two-phase analysis for a single issue set."""

    def __init__(
        self,
        issues: Iterable[Issue],
        config: Optional[AnalysisConfig] = None,
    ) -> None:
        self._logger = logging.getLogger(__name__)
        self.issues: List[Issue] = [i for i in issues if i is not None]
        self.config = config or AnalysisConfig()
        self.graph: IssueGraph = build_graph(self.issues)
        self._stats: Optional[GraphStats] = None
        self._lock = threading.Lock()

    @property
    def stats(self) -> Optional[GraphStats]:
        """The GraphStats produced by the last analyze call, if any."""
        return self._stats

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def analyze_async(self) -> GraphStats:
        """
        Compute Phase 1 now and start Phase 2 in the background.

        Calling it again returns the same GraphStats; one Analyzer owns one
        generation.
        """
        with self._lock:
            if self._stats is not None:
                return self._stats
            start = time.perf_counter()
            stats = GraphStats(compute_phase1(self.graph))
            self._stats = stats

        self._logger.info(
            "Phase 1 [gen %d]: %d nodes, %d edges, density %.4f (%.3fs)",
            stats.generation, stats.node_count, stats.edge_count,
            stats.density, time.perf_counter() - start,
        )

        worker = threading.Thread(
            target=self._run_phase2,
            args=(stats,),
            name=f"issuegraph-phase2-{stats.generation}",
            daemon=True,
        )
        worker.start()
        return stats

    def analyze(self, timeout: Optional[float] = None) -> GraphStats:
        """Run both phases and wait for Phase 2."""
        stats = self.analyze_async()
        stats.wait_for_phase2(timeout)
        return stats

    def get_actionable_issues(self) -> List[Issue]:
        """
        Non-closed, non-blocked issues in input order. For a duplicated id
        only the copy held by the graph (the first) is returned.
        """
        if self._stats is not None:
            actionable = set(self._stats.phase1.actionable_ids)
        else:
            actionable = set(compute_phase1(self.graph).actionable_ids)
        return [
            i for i in self.issues
            if i.id in actionable and self.graph.issue(i.id) is i
        ]

    def generate_recommendations(
        self, config: Optional[TriageConfig] = None
    ) -> List[PriorityRecommendation]:
        """
        Priority changes suggested by PageRank, critical-path height and
        unblock count. Runs the analysis first if needed and waits for
        Phase 2.
        """
        from .priority import generate_priority_recommendations

        stats = self._stats if self._stats is not None else self.analyze_async()
        return generate_priority_recommendations(self.graph, stats, config)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run_phase2(self, stats: GraphStats) -> None:
        try:
            phase2 = deep_analytics.compute_phase2(self.graph, self.config)
        except Exception:
            self._logger.exception(
                "Phase 2 failed for generation %d; publishing empty results",
                stats.generation,
            )
            phase2 = Phase2Stats()
        stats._publish(phase2)
