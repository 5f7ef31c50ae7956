"""
Graph Algorithms

Pure functions over an immutable networkx graph. None of them raise for
malformed or degenerate input; they return documented defaults instead.

Algorithms:
    pagerank               : power iteration, dangling mass spread uniformly
    betweenness            : Brandes, unweighted, unnormalized
    eigenvector            : power iteration on the symmetrized adjacency
    hits                   : hub / authority, max-normalized every iteration
    critical_path_heights  : longest downstream ``blocks`` chain per node
    find_cycles            : SCCs of size > 1 plus self-loops

Edge direction follows the issue graph: u -> v means "u depends on v".
Nodes are processed in sorted id order so results are deterministic.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

import networkx as nx
import numpy as np

from .models import UNRELIABLE_HEIGHT, Cycle

logger = logging.getLogger(__name__)

DEFAULT_DAMPING = 0.85
DEFAULT_TOLERANCE = 1e-6
DEFAULT_MAX_ITER = 100


def _adjacency(G: nx.DiGraph) -> Tuple[List[str], np.ndarray]:
    nodes = sorted(G.nodes)
    A = nx.to_numpy_array(G, nodelist=nodes, weight=None, dtype=float)
    # Parallel edges collapse to a single unit entry
    np.clip(A, 0.0, 1.0, out=A)
    return nodes, A


def rank_scores(scores: Dict[str, float]) -> Dict[str, float]:
    """Order a score map by descending score, ties broken by issue id."""
    return dict(sorted(scores.items(), key=lambda kv: (-kv[1], kv[0])))


# ---------------------------------------------------------------------------
# PageRank
# ---------------------------------------------------------------------------

def pagerank(
    G: nx.DiGraph,
    damping: float = DEFAULT_DAMPING,
    tol: float = DEFAULT_TOLERANCE,
    max_iter: int = DEFAULT_MAX_ITER,
) -> Dict[str, float]:
    """
    PageRank by power iteration.

    Starts from uniform mass 1/N. Mass held by nodes without out-edges is
    redistributed uniformly. Stops when the L1 change drops below *tol* or
    after *max_iter* iterations. Scores sum to 1.
    """
    if G.number_of_nodes() == 0:
        return {}

    nodes, A = _adjacency(G)
    n = len(nodes)
    out_degree = A.sum(axis=1)
    dangling = out_degree == 0
    inv = np.zeros(n)
    inv[~dangling] = 1.0 / out_degree[~dangling]
    P = A * inv[:, np.newaxis]

    x = np.full(n, 1.0 / n)
    teleport = (1.0 - damping) / n
    iterations = 0
    for iterations in range(1, max_iter + 1):
        dangling_mass = x[dangling].sum()
        x_next = damping * (x @ P) + damping * dangling_mass / n + teleport
        delta = np.abs(x_next - x).sum()
        x = x_next
        if delta < tol:
            break
    else:
        logger.debug("PageRank hit the iteration cap (%d)", max_iter)

    total = x.sum()
    if total > 0 and np.isfinite(total):
        x = x / total
    else:
        x = np.full(n, 1.0 / n)
    logger.debug("PageRank finished after %d iterations", iterations)
    return {node: float(score) for node, score in zip(nodes, x)}


# ---------------------------------------------------------------------------
# Betweenness
# ---------------------------------------------------------------------------

def betweenness(G: nx.DiGraph) -> Dict[str, float]:
    """
    Raw Brandes betweenness over unweighted directed shortest paths.

    Values are left unnormalized so they stay comparable across analyses
    of differently sized graphs.
    """
    if G.number_of_nodes() == 0:
        return {}
    raw = nx.betweenness_centrality(G, normalized=False, weight=None)
    return {node: float(raw.get(node, 0.0)) for node in sorted(G.nodes)}


# ---------------------------------------------------------------------------
# Eigenvector centrality
# ---------------------------------------------------------------------------

def eigenvector(
    G: nx.DiGraph,
    tol: float = DEFAULT_TOLERANCE,
    max_iter: int = DEFAULT_MAX_ITER,
) -> Dict[str, float]:
    """
    Eigenvector centrality of the graph treated as undirected.

    Iterates on (S + I), where S is the symmetrized adjacency; the shift
    keeps the iteration from oscillating on bipartite structure without
    changing the dominant eigenvector. Normalized so the maximum is 1.
    Falls back to a uniform 1.0 when the result is all-zero or not finite.
    """
    if G.number_of_nodes() == 0:
        return {}

    nodes, A = _adjacency(G)
    n = len(nodes)
    S = np.maximum(A, A.T)
    np.fill_diagonal(S, 0.0)

    if not S.any():
        return {node: 1.0 for node in nodes}

    M = S + np.eye(n)
    x = np.full(n, 1.0 / n)
    for _ in range(max_iter):
        x_next = M @ x
        peak = x_next.max()
        if not np.isfinite(peak) or peak <= 0:
            break
        x_next = x_next / peak
        delta = np.abs(x_next - x).sum()
        x = x_next
        if delta < n * tol:
            break

    peak = x.max() if n else 0.0
    if not np.all(np.isfinite(x)) or peak <= 0:
        logger.warning("Eigenvector centrality degenerated; using uniform scores")
        return {node: 1.0 for node in nodes}
    x = x / peak
    return {node: float(score) for node, score in zip(nodes, x)}


# ---------------------------------------------------------------------------
# HITS
# ---------------------------------------------------------------------------

def hits(
    G: nx.DiGraph,
    tol: float = DEFAULT_TOLERANCE,
    max_iter: int = DEFAULT_MAX_ITER,
) -> Tuple[Dict[str, float], Dict[str, float]]:
    """
    Hub and authority scores.

    authority = Aᵀ·hub, hub = A·authority, each divided by its maximum
    every iteration. A graph without edges scores zero everywhere. Both
    maps are ordered by descending score with ties broken by issue id.
    """
    if G.number_of_nodes() == 0:
        return {}, {}

    nodes, A = _adjacency(G)
    n = len(nodes)
    if not A.any():
        zeros = {node: 0.0 for node in nodes}
        return dict(zeros), dict(zeros)

    hub = np.ones(n)
    auth = np.zeros(n)
    for _ in range(max_iter):
        auth_next = A.T @ hub
        peak = auth_next.max()
        if peak > 0:
            auth_next = auth_next / peak
        hub_next = A @ auth_next
        peak = hub_next.max()
        if peak > 0:
            hub_next = hub_next / peak
        delta = np.abs(hub_next - hub).sum() + np.abs(auth_next - auth).sum()
        hub, auth = hub_next, auth_next
        if delta < n * tol:
            break

    hub_scores = {node: float(v) for node, v in zip(nodes, hub)}
    auth_scores = {node: float(v) for node, v in zip(nodes, auth)}
    return rank_scores(hub_scores), rank_scores(auth_scores)


# ---------------------------------------------------------------------------
# Critical path
# ---------------------------------------------------------------------------

def critical_path_heights(B: nx.DiGraph) -> Tuple[Dict[str, float], bool]:
    """
    Longest downstream chain of ``blocks`` edges for every node.

    *B* holds only ``blocks`` edges (u -> v: u is blocked by v), so the
    chain below v runs through its predecessors. Heights are computed by
    dynamic programming over the condensation in topological order.

    Members of a cycle, and nodes whose downstream chain passes through a
    cycle, get UNRELIABLE_HEIGHT. Self-loops are ignored here.

    Returns (heights, has_cycle).
    """
    if B.number_of_nodes() == 0:
        return {}, False

    G = nx.DiGraph(B)
    G.remove_edges_from(list(nx.selfloop_edges(G)))

    C = nx.condensation(G)
    height: Dict[int, float] = {}
    unreliable: Dict[int, bool] = {}
    has_cycle = False

    for scc in nx.topological_sort(C):
        cyclic = len(C.nodes[scc]["members"]) > 1
        has_cycle = has_cycle or cyclic
        preds = list(C.predecessors(scc))
        unreliable[scc] = cyclic or any(unreliable[p] for p in preds)
        height[scc] = max((height[p] + 1 for p in preds), default=0)

    mapping = C.graph["mapping"]
    result: Dict[str, float] = {}
    for node in sorted(G.nodes):
        scc = mapping[node]
        result[node] = UNRELIABLE_HEIGHT if unreliable[scc] else float(height[scc])
    return result, has_cycle


# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------

def find_cycles(G: nx.DiGraph) -> List[Cycle]:
    """
    Report every strongly connected component of size > 1 as a cycle,
    plus self-loops on nodes that are not already part of such a component.

    Members are sorted; cycles are ordered largest first, then by members.
    """
    cycles: List[Cycle] = []
    in_scc = set()
    for component in nx.strongly_connected_components(G):
        if len(component) > 1:
            in_scc.update(component)
            cycles.append(Cycle(tuple(sorted(component))))

    for node, _ in nx.selfloop_edges(G):
        if node not in in_scc:
            cycles.append(Cycle((node,)))

    cycles.sort(key=lambda c: (-len(c), c.members))
    return cycles


def top_n(scores: Dict[str, float], n: int, exclude: Iterable[str] = ()) -> List[Tuple[str, float]]:
    """Highest *n* entries of *scores* by value, ties broken by id."""
    skip = set(exclude)
    ranked = [(k, v) for k, v in rank_scores(scores).items() if k not in skip]
    return ranked[:n]
