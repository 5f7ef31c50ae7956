"""
Fast-Path Summarizer (Phase 1)

O(V+E) statistics computed synchronously so a caller has something to
show before the expensive Phase 2 algorithms finish.
"""

from __future__ import annotations

from typing import List

from issuegraph.core import IssueGraph, IssueStatus

from .models import Phase1Stats


def open_blockers(graph: IssueGraph, issue_id: str) -> List[str]:
    """Existing, non-closed ``blocks`` prerequisites of *issue_id*."""
    result = []
    for dep_id in graph.prerequisites(issue_id, blocking_only=True):
        blocker = graph.issue(dep_id)
        if blocker is not None and not blocker.is_closed:
            result.append(dep_id)
    return result


def is_blocked(graph: IssueGraph, issue_id: str) -> bool:
    """
    True when the issue has an unresolved ``blocks`` prerequisite.

    Dangling references never block: they are not edges of the graph.
    A self-loop does not block either.
    """
    return bool(open_blockers(graph, issue_id))


def compute_density(node_count: int, edge_count: int) -> float:
    if node_count <= 1:
        return 0.0
    return edge_count / (node_count * (node_count - 1))


def compute_phase1(graph: IssueGraph) -> Phase1Stats:
    counts = {status: 0 for status in IssueStatus}
    blocked_ids = set()
    actionable: List[str] = []

    for issue in graph.issues():
        counts[issue.status] += 1
        if issue.is_closed:
            continue
        if issue.status is IssueStatus.BLOCKED or is_blocked(graph, issue.id):
            blocked_ids.add(issue.id)
        else:
            actionable.append(issue.id)

    n, e = graph.node_count, graph.edge_count
    return Phase1Stats(
        node_count=n,
        edge_count=e,
        density=compute_density(n, e),
        open_count=counts[IssueStatus.OPEN],
        in_progress_count=counts[IssueStatus.IN_PROGRESS],
        blocked_count=counts[IssueStatus.BLOCKED],
        closed_count=counts[IssueStatus.CLOSED],
        blocked_ids=frozenset(blocked_ids),
        actionable_ids=tuple(actionable),
    )
