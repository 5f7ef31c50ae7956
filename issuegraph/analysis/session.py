"""
Analysis Session

Consumer-side holder of the *current* data version. Every load (initial
or reload) produces a new GraphStats generation; the previous one stays
valid for whoever still holds it.

Phase 2 completion notifications carry the GraphStats they were computed
for. A notification for a generation that has since been replaced is
discarded, so a slow Phase 2 from before a reload can never overwrite the
triage of the newer data.

Usage:
    session = AnalysisSession(on_ready=lambda stats, triage: redraw())
    session.load(issues)       # returns immediately with Phase 1 numbers
    session.load(new_issues)   # file changed; older completion is ignored

on_ready runs on the Phase 2 worker thread.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional

from issuegraph.config import Settings
from issuegraph.core import Issue, IssueGraph

from .cache import AnalysisCache, new_cached_analyzer
from .graph_stats import GraphStats
from .models import PriorityRecommendation, TriageResult
from .priority import generate_priority_recommendations
from .triage import compute_triage

ReadyCallback = Callable[[GraphStats, TriageResult], None]


class AnalysisSession:
    """Tracks the live generation; refreshes triage and priority hints when Phase 2 lands."""

    def __init__(
        self,
        cache: Optional[AnalysisCache] = None,
        settings: Optional[Settings] = None,
        on_ready: Optional[ReadyCallback] = None,
    ) -> None:
        self._logger = logging.getLogger(__name__)
        self.cache = cache if cache is not None else AnalysisCache()
        self.settings = settings or Settings()
        self.on_ready = on_ready
        self._lock = threading.Lock()
        self._current: Optional[GraphStats] = None
        self._issues: List[Issue] = []
        self._graph: Optional[IssueGraph] = None
        self._triage: Optional[TriageResult] = None
        self._priority_hints: Dict[str, PriorityRecommendation] = {}
        self.reloads = 0
        self.cache_hits = 0
        self.stale_discards = 0

    @property
    def current(self) -> Optional[GraphStats]:
        return self._current

    @property
    def triage(self) -> Optional[TriageResult]:
        """Triage of the current generation, once its Phase 2 has landed."""
        return self._triage

    @property
    def priority_hints(self) -> Dict[str, PriorityRecommendation]:
        """Suggested priority changes for the current generation, keyed by issue id."""
        return self._priority_hints

    def load(self, issues: Iterable[Issue]) -> GraphStats:
        """Analyze *issues* and make them the current data version."""
        cached, hit = new_cached_analyzer(issues, self.cache, self.settings.analysis)
        stats = cached.analyze_async()

        with self._lock:
            if self._current is not None:
                self.reloads += 1
            if hit:
                self.cache_hits += 1
            self._current = stats
            self._issues = cached.issues
            self._graph = cached.analyzer.graph
            self._triage = None
            self._priority_hints = {}

        self._logger.info(
            "Loaded %d issues as generation %d (cache %s)",
            len(cached.issues), stats.generation, "hit" if hit else "miss",
        )
        stats.add_phase2_callback(self._handle_phase2_ready)
        return stats

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the current generation's Phase 2."""
        stats = self._current
        return stats.wait_for_phase2(timeout) if stats is not None else True

    def _handle_phase2_ready(self, stats: GraphStats) -> None:
        with self._lock:
            if stats is not self._current:
                self.stale_discards += 1
                self._logger.debug(
                    "Ignoring stale Phase 2 completion for generation %d", stats.generation,
                )
                return
            issues, graph = self._issues, self._graph

        triage = compute_triage(issues, stats, self.settings.triage, graph=graph)
        hints = {
            rec.issue_id: rec
            for rec in generate_priority_recommendations(graph, stats, self.settings.triage)
        }

        with self._lock:
            if stats is not self._current:
                self.stale_discards += 1
                return
            self._triage = triage
            self._priority_hints = hints

        if self.on_ready is not None:
            self.on_ready(stats, triage)
