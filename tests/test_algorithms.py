"""
Unit Tests for issuegraph.analysis.algorithms

Tests for:
    - pagerank, betweenness, eigenvector, hits
    - critical_path_heights and find_cycles
    - rank_scores / top_n helpers
"""

import pytest
import networkx as nx

from issuegraph.analysis import UNRELIABLE_HEIGHT
from issuegraph.analysis.algorithms import (
    betweenness,
    critical_path_heights,
    eigenvector,
    find_cycles,
    hits,
    pagerank,
    rank_scores,
    top_n,
)
from issuegraph.core import build_graph

from conftest import make_issue


@pytest.fixture
def chain_graph(chain_issues):
    return build_graph(chain_issues)


@pytest.fixture
def star_graph(star_issues):
    return build_graph(star_issues)


# =============================================================================
# PageRank
# =============================================================================

class TestPageRank:

    def test_sums_to_one(self, star_graph):
        scores = pagerank(star_graph.simple())
        assert sum(scores.values()) == pytest.approx(1.0, abs=1e-9)

    def test_prerequisites_rank_higher(self, chain_graph):
        scores = pagerank(chain_graph.simple())
        assert scores["A"] > scores["B"] > scores["C"]

    def test_hub_ranks_highest(self, star_graph):
        scores = pagerank(star_graph.simple())
        assert max(scores, key=scores.get) == "HUB"
        assert scores["L1"] == pytest.approx(scores["X"])

    def test_symmetric_cycle(self, cycle_issues):
        scores = pagerank(build_graph(cycle_issues).simple())
        assert scores["A"] == pytest.approx(0.5)
        assert scores["B"] == pytest.approx(0.5)

    def test_single_node(self):
        G = nx.DiGraph()
        G.add_node("X")
        assert pagerank(G) == {"X": pytest.approx(1.0)}

    def test_empty_graph(self):
        assert pagerank(nx.DiGraph()) == {}

    def test_iteration_cap_still_normalized(self, star_graph):
        scores = pagerank(star_graph.simple(), max_iter=1)
        assert sum(scores.values()) == pytest.approx(1.0, abs=1e-9)


# =============================================================================
# Betweenness
# =============================================================================

class TestBetweenness:

    def test_middle_of_chain(self, chain_graph):
        scores = betweenness(chain_graph.simple())
        assert scores == {"A": 0.0, "B": 1.0, "C": 0.0}

    def test_star_has_no_intermediates(self, star_graph):
        scores = betweenness(star_graph.simple())
        assert all(v == 0.0 for v in scores.values())

    def test_unnormalized(self):
        issues = [make_issue("A")] + [
            make_issue(f"U{i}", blocked_by=["M"]) for i in range(3)
        ] + [make_issue("M", blocked_by=["A"])]
        scores = betweenness(build_graph(issues).simple())
        # U0, U1, U2 each reach A only through M
        assert scores["M"] == pytest.approx(3.0)

    def test_empty_graph(self):
        assert betweenness(nx.DiGraph()) == {}


# =============================================================================
# Eigenvector
# =============================================================================

class TestEigenvector:

    def test_path_centre_highest(self, chain_graph):
        scores = eigenvector(chain_graph.simple())
        assert scores["B"] == pytest.approx(1.0)
        assert scores["A"] == pytest.approx(2 ** -0.5, abs=1e-3)
        assert scores["C"] == pytest.approx(2 ** -0.5, abs=1e-3)

    def test_max_is_one(self, star_graph):
        scores = eigenvector(star_graph.simple())
        assert max(scores.values()) == pytest.approx(1.0)
        assert scores["HUB"] == pytest.approx(1.0)

    def test_no_edges_uniform(self):
        G = nx.DiGraph()
        G.add_nodes_from(["A", "B"])
        assert eigenvector(G) == {"A": 1.0, "B": 1.0}

    def test_self_loop_only_uniform(self):
        graph = build_graph([make_issue("A", blocked_by=["A"])])
        assert eigenvector(graph.simple()) == {"A": 1.0}


# =============================================================================
# HITS
# =============================================================================

class TestHits:

    def test_chain(self, chain_graph):
        hub, auth = hits(chain_graph.simple())
        assert hub == {"B": 1.0, "C": 1.0, "A": 0.0}
        assert auth == {"A": 1.0, "B": 1.0, "C": 0.0}

    def test_ranked_order(self, chain_graph):
        hub, auth = hits(chain_graph.simple())
        assert list(hub) == ["B", "C", "A"]
        assert list(auth) == ["A", "B", "C"]

    def test_star(self, star_graph):
        hub, auth = hits(star_graph.simple())
        assert auth["HUB"] == pytest.approx(1.0)
        assert hub["HUB"] == 0.0
        assert all(hub[f"L{i}"] == pytest.approx(1.0) for i in range(1, 5))
        assert hub["X"] == 0.0 and auth["X"] == 0.0

    def test_no_edges_all_zero(self):
        G = nx.DiGraph()
        G.add_nodes_from(["A", "B"])
        hub, auth = hits(G)
        assert hub == {"A": 0.0, "B": 0.0}
        assert auth == {"A": 0.0, "B": 0.0}

    def test_empty_graph(self):
        assert hits(nx.DiGraph()) == ({}, {})


# =============================================================================
# Critical Path
# =============================================================================

class TestCriticalPath:

    def test_chain_heights(self, chain_graph):
        heights, has_cycle = critical_path_heights(chain_graph.blocking())
        assert heights == {"A": 2.0, "B": 1.0, "C": 0.0}
        assert has_cycle is False

    def test_longest_chain_wins(self):
        issues = [
            make_issue("ROOT"),
            make_issue("SHORT", blocked_by=["ROOT"]),
            make_issue("MID", blocked_by=["ROOT"]),
            make_issue("LEAF", blocked_by=["MID"]),
        ]
        heights, _ = critical_path_heights(build_graph(issues).blocking())
        assert heights["ROOT"] == 2.0
        assert heights["SHORT"] == 0.0

    def test_cycle_members_unreliable(self, cycle_issues):
        heights, has_cycle = critical_path_heights(build_graph(cycle_issues).blocking())
        assert heights == {"A": UNRELIABLE_HEIGHT, "B": UNRELIABLE_HEIGHT}
        assert has_cycle is True

    def test_blockers_of_a_cycle_unreliable(self):
        issues = [
            make_issue("A", blocked_by=["B", "D"]),
            make_issue("B", blocked_by=["A"]),
            make_issue("C", blocked_by=["A"]),
            make_issue("D"),
        ]
        heights, _ = critical_path_heights(build_graph(issues).blocking())
        assert heights["D"] == UNRELIABLE_HEIGHT
        assert heights["C"] == 0.0

    def test_self_loop_ignored(self):
        issues = [make_issue("A", blocked_by=["A"]), make_issue("B", blocked_by=["A"])]
        heights, has_cycle = critical_path_heights(build_graph(issues).blocking())
        assert heights == {"A": 1.0, "B": 0.0}
        assert has_cycle is False

    def test_related_edges_ignored(self):
        issues = [make_issue("A"), make_issue("B", related=["A"])]
        heights, _ = critical_path_heights(build_graph(issues).blocking())
        assert heights == {"A": 0.0, "B": 0.0}

    def test_empty_graph(self):
        assert critical_path_heights(nx.DiGraph()) == ({}, False)


# =============================================================================
# Cycles
# =============================================================================

class TestFindCycles:

    def test_two_cycle(self, cycle_issues):
        cycles = find_cycles(build_graph(cycle_issues).simple())
        assert [c.to_list() for c in cycles] == [["A", "B"]]

    def test_self_loop_reported(self):
        cycles = find_cycles(build_graph([make_issue("A", blocked_by=["A"])]).simple())
        assert [c.members for c in cycles] == [("A",)]

    def test_self_loop_inside_scc_not_duplicated(self):
        issues = [make_issue("A", blocked_by=["A", "B"]), make_issue("B", blocked_by=["A"])]
        cycles = find_cycles(build_graph(issues).simple())
        assert [c.members for c in cycles] == [("A", "B")]

    def test_largest_first(self):
        issues = [
            make_issue("P", blocked_by=["Q"]),
            make_issue("Q", blocked_by=["P"]),
            make_issue("X", blocked_by=["Y"]),
            make_issue("Y", blocked_by=["Z"]),
            make_issue("Z", blocked_by=["X"]),
        ]
        cycles = find_cycles(build_graph(issues).simple())
        assert [c.members for c in cycles] == [("X", "Y", "Z"), ("P", "Q")]

    def test_related_cycle_detected(self):
        issues = [make_issue("A", related=["B"]), make_issue("B", related=["A"])]
        cycles = find_cycles(build_graph(issues).simple())
        assert len(cycles) == 1
        assert "A" in cycles[0]

    def test_dag_has_none(self, chain_graph):
        assert find_cycles(chain_graph.simple()) == []


# =============================================================================
# Helpers
# =============================================================================

class TestRanking:

    def test_rank_scores_breaks_ties_by_id(self):
        ranked = rank_scores({"b": 1.0, "a": 1.0, "c": 2.0})
        assert list(ranked) == ["c", "a", "b"]

    def test_top_n(self):
        scores = {"a": 3.0, "b": 2.0, "c": 1.0}
        assert top_n(scores, 2) == [("a", 3.0), ("b", 2.0)]
        assert top_n(scores, 2, exclude=["a"]) == [("b", 2.0), ("c", 1.0)]
