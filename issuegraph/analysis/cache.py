"""
Fingerprint Cache

Reloads happen far more often than real structural changes, and Phase 2
is the expensive path. The cache remembers the most recently completed
analysis together with a content fingerprint of its issue set, and hands
it back when an identical issue set is analyzed again.

Only one generation is retained. Concurrent reloads are resolved by
tickets: a completion is stored only if no newer analysis has started
since, so a superseded generation can never overwrite a newer entry.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from issuegraph.config import AnalysisConfig, TriageConfig
from issuegraph.core import Issue

from .analyzer import Analyzer
from .graph_stats import GraphStats
from .models import PriorityRecommendation
from .priority import generate_priority_recommendations

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Fingerprint
# ---------------------------------------------------------------------------

def _canonical_issue(issue: Issue) -> list:
    deps = sorted(
        (d.depends_on_id, d.type.value)
        for d in issue.dependencies
        if d is not None
    )
    return [issue.id, issue.status.value, int(issue.priority), [list(d) for d in deps]]


def compute_fingerprint(issues: Iterable[Issue]) -> str:
    """
    SHA-256 over (id, status, priority, dependencies) of every issue.

    Independent of issue order and of dependency order within an issue.
    """
    records = sorted(
        (_canonical_issue(i) for i in issues if i is not None),
        key=lambda r: json.dumps(r, separators=(",", ":")),
    )
    canonical = json.dumps(records, separators=(",", ":"), sort_keys=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Entry:
    fingerprint: str
    stats: GraphStats


class AnalysisCache:
    """Thread-safe holder of the most recent completed analysis."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entry: Optional[_Entry] = None
        self._latest_ticket = 0
        self.hits = 0
        self.misses = 0

    def lookup(self, fingerprint: str) -> Optional[GraphStats]:
        with self._lock:
            entry = self._entry
            if entry is not None and entry.fingerprint == fingerprint:
                self.hits += 1
                return entry.stats
            self.misses += 1
            return None

    def begin(self) -> int:
        """Reserve a ticket for an analysis that is about to start."""
        with self._lock:
            self._latest_ticket += 1
            return self._latest_ticket

    def complete(self, ticket: int, fingerprint: str, stats: GraphStats) -> bool:
        """
        Store a Phase-2-complete result if *ticket* is still the newest.

        Returns False when the result was discarded as stale.
        """
        if not stats.is_phase2_ready():
            raise ValueError("only Phase-2-complete results can be cached")
        with self._lock:
            if ticket != self._latest_ticket:
                logger.debug(
                    "Discarding stale cache completion (ticket %d, latest %d)",
                    ticket, self._latest_ticket,
                )
                return False
            self._entry = _Entry(fingerprint, stats)
            return True

    def clear(self) -> None:
        with self._lock:
            self._entry = None

    @property
    def fingerprint(self) -> Optional[str]:
        entry = self._entry
        return entry.fingerprint if entry is not None else None


_default_cache = AnalysisCache()


def get_default_cache() -> AnalysisCache:
    """Cache shared by callers that do not bring their own."""
    return _default_cache


# ---------------------------------------------------------------------------
# Cached analyzer
# ---------------------------------------------------------------------------

class CachedAnalyzer:
    """Analyzer front-end that reuses a cached Phase-2-complete result."""

    def __init__(
        self,
        issues: Iterable[Issue],
        cache: AnalysisCache,
        config: Optional[AnalysisConfig] = None,
    ) -> None:
        self.issues: List[Issue] = [i for i in issues if i is not None]
        self.cache = cache
        self.fingerprint = compute_fingerprint(self.issues)
        self.analyzer = Analyzer(self.issues, config)
        self._cached = cache.lookup(self.fingerprint)
        self._stats: Optional[GraphStats] = None

    def was_cache_hit(self) -> bool:
        return self._cached is not None

    def analyze_async(self) -> GraphStats:
        if self._stats is not None:
            return self._stats

        if self._cached is not None:
            logger.info(
                "Cache hit for fingerprint %s (generation %d)",
                self.fingerprint[:12], self._cached.generation,
            )
            self._stats = self._cached
            return self._stats

        ticket = self.cache.begin()
        stats = self.analyzer.analyze_async()
        fingerprint = self.fingerprint
        stats.add_phase2_callback(
            lambda s: self.cache.complete(ticket, fingerprint, s)
        )
        self._stats = stats
        return stats

    def get_actionable_issues(self) -> List[Issue]:
        return self.analyzer.get_actionable_issues()

    def generate_recommendations(
        self, config: Optional[TriageConfig] = None
    ) -> List[PriorityRecommendation]:
        return generate_priority_recommendations(
            self.analyzer.graph, self.analyze_async(), config
        )


def new_cached_analyzer(
    issues: Iterable[Issue],
    cache: Optional[AnalysisCache] = None,
    config: Optional[AnalysisConfig] = None,
) -> Tuple[CachedAnalyzer, bool]:
    """
    Create a CachedAnalyzer for *issues*.

    Returns (analyzer, was_cache_hit). With *cache* None the module default
    cache is used.
    """
    cached = CachedAnalyzer(issues, cache if cache is not None else _default_cache, config)
    return cached, cached.was_cache_hit()
