"""
Graph Stats (Result Store)

One GraphStats exists per data version. Phase 1 numbers are set at
construction. Phase 2 numbers are published exactly once, as a whole:
the worker builds a complete Phase2Stats privately and the store swaps a
single reference under a lock before setting the ready event.

Completion callbacks run on the publishing thread before the ready event
is set, so anything waiting on wait_for_phase2 also sees their effects.

Readers never block (except wait_for_phase2) and never raise. Until
Phase 2 publishes, every per-node accessor returns 0.0 and cycles() is
empty.

Usage:
    stats = analyzer.analyze_async()
    stats.get_pagerank_score("bd-12")   # 0.0 until published
    stats.wait_for_phase2()
    stats.get_pagerank_score("bd-12")   # final value
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Callable, Dict, List, Optional

from .models import (
    UNRELIABLE_HEIGHT,
    Cycle,
    GraphSummary,
    MetricKind,
    Phase1Stats,
    Phase2Stats,
)

logger = logging.getLogger(__name__)

_generations = itertools.count(1)


class GraphStats:
    """Generation-scoped, write-once holder of analysis results."""

    def __init__(self, phase1: Phase1Stats) -> None:
        self.generation: int = next(_generations)
        self.phase1 = phase1
        self._phase2: Optional[Phase2Stats] = None
        self._lock = threading.Lock()
        self._ready = threading.Event()
        self._callbacks: List[Callable[["GraphStats"], None]] = []

    def __repr__(self) -> str:
        return (
            f"GraphStats(generation={self.generation}, nodes={self.node_count}, "
            f"edges={self.edge_count}, phase2_ready={self.is_phase2_ready()})"
        )

    # ------------------------------------------------------------------
    # Phase 1 aggregates
    # ------------------------------------------------------------------

    @property
    def node_count(self) -> int:
        return self.phase1.node_count

    @property
    def edge_count(self) -> int:
        return self.phase1.edge_count

    @property
    def density(self) -> float:
        return self.phase1.density

    # ------------------------------------------------------------------
    # Publication
    # ------------------------------------------------------------------

    def is_phase2_ready(self) -> bool:
        return self._phase2 is not None

    def wait_for_phase2(self, timeout: Optional[float] = None) -> bool:
        """
        Block until Phase 2 has published and its callbacks have run.
        Returns False on timeout.
        """
        return self._ready.wait(timeout)

    def add_phase2_callback(self, callback: Callable[["GraphStats"], None]) -> None:
        """
        Run *callback(self)* once Phase 2 has published.

        Runs immediately on the calling thread when already published,
        otherwise on the publishing thread before waiters are released, so a
        callback must not call wait_for_phase2 on this instance.
        """
        with self._lock:
            if self._phase2 is None:
                self._callbacks.append(callback)
                return
        callback(self)

    def _publish(self, phase2: Phase2Stats) -> None:
        with self._lock:
            if self._phase2 is not None:
                raise RuntimeError(
                    f"Phase 2 already published for generation {self.generation}"
                )
            self._phase2 = phase2
            callbacks, self._callbacks = self._callbacks, []

        try:
            for callback in callbacks:
                try:
                    callback(self)
                except Exception:
                    logger.exception(
                        "Phase 2 callback failed for generation %d", self.generation,
                    )
        finally:
            self._ready.set()

    # ------------------------------------------------------------------
    # Per-node accessors
    # ------------------------------------------------------------------

    def get_score(self, kind: MetricKind, issue_id: str) -> float:
        phase2 = self._phase2
        if phase2 is None:
            return 0.0
        return phase2.scores(kind).get(issue_id, 0.0)

    def scores(self, kind: MetricKind) -> Dict[str, float]:
        """Copy of a full score map; empty before Phase 2 publishes."""
        phase2 = self._phase2
        if phase2 is None:
            return {}
        return dict(phase2.scores(kind))

    def get_pagerank_score(self, issue_id: str) -> float:
        return self.get_score(MetricKind.PAGERANK, issue_id)

    def get_betweenness_score(self, issue_id: str) -> float:
        return self.get_score(MetricKind.BETWEENNESS, issue_id)

    def get_eigenvector_score(self, issue_id: str) -> float:
        return self.get_score(MetricKind.EIGENVECTOR, issue_id)

    def get_hub_score(self, issue_id: str) -> float:
        return self.get_score(MetricKind.HUB, issue_id)

    def get_authority_score(self, issue_id: str) -> float:
        return self.get_score(MetricKind.AUTHORITY, issue_id)

    def get_critical_path_score(self, issue_id: str) -> float:
        """Height of the issue; UNRELIABLE_HEIGHT when it sits on or above a cycle."""
        return self.get_score(MetricKind.CRITICAL_PATH, issue_id)

    def is_height_reliable(self, issue_id: str) -> bool:
        return self.get_critical_path_score(issue_id) != UNRELIABLE_HEIGHT

    # ------------------------------------------------------------------
    # Global results
    # ------------------------------------------------------------------

    def cycles(self) -> List[Cycle]:
        phase2 = self._phase2
        return list(phase2.cycles) if phase2 is not None else []

    @property
    def has_cycle(self) -> bool:
        """
        True for any cycle over all edge kinds, so a loop of ``related``
        edges counts even though every height stays reliable. Use
        has_blocking_cycle for cycles among ``blocks`` edges only.
        """
        phase2 = self._phase2
        return phase2.has_cycle if phase2 is not None else False

    @property
    def has_blocking_cycle(self) -> bool:
        phase2 = self._phase2
        return phase2.has_blocking_cycle if phase2 is not None else False

    @property
    def phase2_timings(self) -> Dict[str, float]:
        phase2 = self._phase2
        return dict(phase2.elapsed) if phase2 is not None else {}

    def summary(self) -> GraphSummary:
        p1 = self.phase1
        return GraphSummary(
            node_count=p1.node_count,
            edge_count=p1.edge_count,
            density=p1.density,
            open_count=p1.open_count,
            in_progress_count=p1.in_progress_count,
            blocked_count=p1.blocked_count,
            closed_count=p1.closed_count,
            cycle_count=len(self.cycles()),
            actionable_count=p1.actionable_count,
            phase2_ready=self.is_phase2_ready(),
        )
