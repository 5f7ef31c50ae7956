"""
Issue Graph

Builds the in-memory directed graph that every analysis phase reads.

Edge semantics:
    u -> v  means "issue u depends on issue v". PageRank mass therefore
    flows towards prerequisites, and the issues "downstream" of v are its
    predecessors in this graph.

Dependencies are resolved to validated edges or dropped:
    - null entries are skipped
    - references to unknown issue ids are skipped
    - self-loops are kept
    - parallel edges of different kinds are kept (MultiDiGraph keyed by kind)

Usage:
    graph = build_graph(issues)
    graph.simple()     # collapsed DiGraph for centrality
    graph.blocking()   # DiGraph of ``blocks`` edges only
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

import networkx as nx

from .models import Dependency, DependencyType, Issue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edge:
    """A dependency whose endpoints both exist in the graph."""
    source: str
    target: str
    kind: DependencyType

    @property
    def is_blocking(self) -> bool:
        return self.kind.is_blocking()


def resolve_dependency(
    dep: Optional[Dependency],
    issue_id: str,
    known_ids: Set[str],
) -> Optional[Edge]:
    """
    Turn a raw dependency entry into a validated edge.

    The edge always leaves the owning issue *issue_id*; ``dep.issue_id`` is
    not consulted, so the edge set depends only on what the fingerprint
    hashes. Returns None for null entries and dangling references.
    """
    if dep is None:
        return None
    source = issue_id
    target = dep.depends_on_id
    if source not in known_ids or target not in known_ids:
        return None
    return Edge(source=source, target=target, kind=dep.type)


class IssueGraph:
    """Read-only view over issues and their validated dependency edges."""

    def __init__(
        self,
        issues: Dict[str, Issue],
        multigraph: nx.MultiDiGraph,
        dropped_dependencies: int = 0,
    ) -> None:
        self._issues = issues
        self._multigraph = multigraph
        self._simple: Optional[nx.DiGraph] = None
        self._blocking: Optional[nx.DiGraph] = None
        self.dropped_dependencies = dropped_dependencies

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def multigraph(self) -> nx.MultiDiGraph:
        return self._multigraph

    @property
    def node_ids(self) -> List[str]:
        return sorted(self._issues)

    @property
    def node_count(self) -> int:
        return self._multigraph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self._multigraph.number_of_edges()

    def __contains__(self, issue_id: object) -> bool:
        return issue_id in self._issues

    def __len__(self) -> int:
        return len(self._issues)

    def issue(self, issue_id: str) -> Optional[Issue]:
        return self._issues.get(issue_id)

    def issues(self) -> Iterable[Issue]:
        return self._issues.values()

    def edges(self) -> List[Edge]:
        return [
            Edge(u, v, kind)
            for u, v, kind in self._multigraph.edges(keys=True)
        ]

    # ------------------------------------------------------------------
    # Derived views (built lazily, never mutated afterwards)
    # ------------------------------------------------------------------

    def simple(self) -> nx.DiGraph:
        """All edge kinds collapsed into a single directed edge per pair."""
        if self._simple is None:
            G = nx.DiGraph()
            G.add_nodes_from(sorted(self._multigraph.nodes))
            G.add_edges_from(self._multigraph.edges())
            self._simple = G
        return self._simple

    def blocking(self) -> nx.DiGraph:
        """Only ``blocks`` edges; the basis for heights and blocked checks."""
        if self._blocking is None:
            G = nx.DiGraph()
            G.add_nodes_from(sorted(self._multigraph.nodes))
            G.add_edges_from(
                (u, v) for u, v, kind in self._multigraph.edges(keys=True)
                if kind.is_blocking()
            )
            self._blocking = G
        return self._blocking

    def dependents(self, issue_id: str, blocking_only: bool = True) -> List[str]:
        """Issues that depend on *issue_id*, sorted by id."""
        G = self.blocking() if blocking_only else self.simple()
        if issue_id not in G:
            return []
        return sorted(u for u in G.predecessors(issue_id) if u != issue_id)

    def prerequisites(self, issue_id: str, blocking_only: bool = True) -> List[str]:
        """Issues that *issue_id* depends on, sorted by id."""
        G = self.blocking() if blocking_only else self.simple()
        if issue_id not in G:
            return []
        return sorted(v for v in G.successors(issue_id) if v != issue_id)


def build_graph(issues: Iterable[Issue]) -> IssueGraph:
    """
    Build an IssueGraph from *issues*.

    Deterministic for a given input and O(V+E). The caller's issues are
    never modified.
    """
    by_id: Dict[str, Issue] = {}
    for issue in issues:
        if issue is None:
            continue
        if issue.id in by_id:
            logger.warning("Duplicate issue id %r ignored", issue.id)
            continue
        by_id[issue.id] = issue

    known: Set[str] = set(by_id)
    G = nx.MultiDiGraph()
    G.add_nodes_from(by_id)

    dropped = 0
    for issue in by_id.values():
        for dep in issue.dependencies:
            edge = resolve_dependency(dep, issue.id, known)
            if edge is None:
                dropped += 1
                continue
            G.add_edge(edge.source, edge.target, key=edge.kind)

    if dropped:
        logger.debug("Dropped %d null or dangling dependencies", dropped)

    return IssueGraph(by_id, G, dropped_dependencies=dropped)
