"""
Unit Tests for issuegraph.analysis.graph_stats

Tests for:
    - pre-publication defaults
    - single-assignment publication and callbacks
    - reader consistency while Phase 2 publishes
"""

import threading

import pytest

from issuegraph.analysis import (
    Analyzer,
    Cycle,
    GraphStats,
    MetricKind,
    Phase1Stats,
    Phase2Stats,
    UNRELIABLE_HEIGHT,
)
from issuegraph.analysis import deep_analytics


@pytest.fixture
def phase1():
    return Phase1Stats(
        node_count=2,
        edge_count=1,
        density=0.5,
        open_count=2,
        in_progress_count=0,
        blocked_count=0,
        closed_count=0,
        blocked_ids=frozenset({"B"}),
        actionable_ids=("A",),
    )


@pytest.fixture
def phase2():
    return Phase2Stats(
        pagerank={"A": 0.6, "B": 0.4},
        betweenness={"A": 0.0, "B": 0.0},
        eigenvector={"A": 1.0, "B": 1.0},
        hub={"B": 1.0, "A": 0.0},
        authority={"A": 1.0, "B": 0.0},
        critical_path={"A": 1.0, "B": UNRELIABLE_HEIGHT},
        cycles=[Cycle(("B",))],
        has_cycle=True,
        has_blocking_cycle=True,
    )


class TestBeforePublication:
    """Readers see zero defaults until Phase 2 publishes."""

    def test_defaults(self, phase1):
        stats = GraphStats(phase1)
        assert not stats.is_phase2_ready()
        for kind in MetricKind:
            assert stats.get_score(kind, "A") == 0.0
            assert stats.scores(kind) == {}
        assert stats.cycles() == []
        assert stats.has_cycle is False
        assert stats.has_blocking_cycle is False
        assert stats.phase2_timings == {}

    def test_phase1_aggregates(self, phase1):
        stats = GraphStats(phase1)
        assert stats.node_count == 2
        assert stats.edge_count == 1
        assert stats.density == 0.5

    def test_wait_times_out(self, phase1):
        assert GraphStats(phase1).wait_for_phase2(timeout=0.01) is False

    def test_summary(self, phase1):
        summary = GraphStats(phase1).summary()
        assert summary.actionable_count == 1
        assert summary.cycle_count == 0
        assert summary.phase2_ready is False


class TestPublication:
    """Phase 2 is published exactly once and as a whole."""

    def test_values_after_publish(self, phase1, phase2):
        stats = GraphStats(phase1)
        stats._publish(phase2)
        assert stats.is_phase2_ready()
        assert stats.wait_for_phase2(timeout=0)
        assert stats.get_pagerank_score("A") == 0.6
        assert stats.get_authority_score("A") == 1.0
        assert stats.get_hub_score("B") == 1.0
        assert stats.get_critical_path_score("A") == 1.0
        assert stats.is_height_reliable("A")
        assert not stats.is_height_reliable("B")
        assert stats.has_cycle is True
        assert stats.has_blocking_cycle is True
        assert stats.summary().cycle_count == 1

    def test_unknown_id_is_zero(self, phase1, phase2):
        stats = GraphStats(phase1)
        stats._publish(phase2)
        assert stats.get_pagerank_score("missing") == 0.0

    def test_scores_is_a_copy(self, phase1, phase2):
        stats = GraphStats(phase1)
        stats._publish(phase2)
        stats.scores(MetricKind.PAGERANK)["A"] = 99.0
        assert stats.get_pagerank_score("A") == 0.6

    def test_second_publish_rejected(self, phase1, phase2):
        stats = GraphStats(phase1)
        stats._publish(phase2)
        with pytest.raises(RuntimeError):
            stats._publish(Phase2Stats())
        assert stats.get_pagerank_score("A") == 0.6

    def test_generation_is_unique(self, phase1):
        assert GraphStats(phase1).generation != GraphStats(phase1).generation


class TestCallbacks:
    """Tests for add_phase2_callback."""

    def test_callback_runs_on_publish(self, phase1, phase2):
        stats = GraphStats(phase1)
        seen = []
        stats.add_phase2_callback(lambda s: seen.append(s.get_pagerank_score("A")))
        assert seen == []
        stats._publish(phase2)
        assert seen == [0.6]

    def test_callback_after_publish_runs_immediately(self, phase1, phase2):
        stats = GraphStats(phase1)
        stats._publish(phase2)
        seen = []
        stats.add_phase2_callback(seen.append)
        assert seen == [stats]

    def test_failing_callback_does_not_block_waiters(self, phase1, phase2):
        stats = GraphStats(phase1)
        seen = []

        def broken(_):
            raise ValueError("boom")

        stats.add_phase2_callback(broken)
        stats.add_phase2_callback(seen.append)
        stats._publish(phase2)
        assert seen == [stats]
        assert stats.wait_for_phase2(timeout=0)

    def test_callbacks_finish_before_waiters_wake(self, phase1, phase2):
        stats = GraphStats(phase1)
        seen = []
        stats.add_phase2_callback(seen.append)
        publisher = threading.Thread(target=stats._publish, args=(phase2,))
        publisher.start()
        assert stats.wait_for_phase2(5)
        assert seen == [stats]
        publisher.join()


class TestConcurrentReaders:
    """Readers observe either the zero defaults or the final values."""

    @pytest.mark.slow
    def test_readers_never_see_partial_results(self, large_issues, monkeypatch):
        gate = threading.Event()
        real = deep_analytics.compute_phase2

        def gated(graph, config=None):
            gate.wait(10)
            return real(graph, config)

        monkeypatch.setattr(deep_analytics, "compute_phase2", gated)
        stats = Analyzer(large_issues).analyze_async()
        ids = ["N0", "N150", "N299"]
        observations = [[] for _ in range(8)]
        stop = threading.Event()

        def reader(log):
            while not stop.is_set():
                ready = stats.is_phase2_ready()
                values = tuple(stats.get_pagerank_score(i) for i in ids)
                heights = tuple(stats.get_critical_path_score(i) for i in ids)
                log.append((ready, values, heights))

        threads = [threading.Thread(target=reader, args=(log,)) for log in observations]
        for t in threads:
            t.start()
        try:
            gate.set()
            assert stats.wait_for_phase2(30)
        finally:
            stop.set()
            gate.set()
            for t in threads:
                t.join(10)

        final_pr = tuple(stats.get_pagerank_score(i) for i in ids)
        final_h = tuple(stats.get_critical_path_score(i) for i in ids)
        for log in observations:
            published = [False] * len(ids)
            for ready, values, heights in log:
                if ready:
                    assert values == final_pr
                    assert heights == final_h
                    continue
                for n, value in enumerate(values):
                    assert value in (0.0, final_pr[n])
                    assert heights[n] in (0.0, final_h[n])
                    # PageRank is strictly positive once published
                    if value != 0.0:
                        published[n] = True
                    elif published[n]:
                        pytest.fail("reader went back to defaults after publication")
