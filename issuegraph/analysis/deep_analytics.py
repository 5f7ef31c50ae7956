"""
Deep Analytics Engine (Phase 2)

Runs the expensive global algorithms over an immutable IssueGraph and
returns a complete, private Phase2Stats. The caller decides when and how
to publish it.

The algorithms only read the graph and fill disjoint fields of the
result, so with ``phase2_workers > 1`` they run concurrently on a thread
pool.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional, Tuple

import networkx as nx

from issuegraph.config import AnalysisConfig
from issuegraph.core import IssueGraph

from . import algorithms
from .models import Phase2Stats

logger = logging.getLogger(__name__)


def _jobs(graph: IssueGraph, config: AnalysisConfig) -> Dict[str, Callable[[], Any]]:
    simple = graph.simple()
    blocking = graph.blocking()
    return {
        "pagerank": lambda: algorithms.pagerank(
            simple, damping=config.damping, tol=config.tolerance, max_iter=config.max_iter,
        ),
        "betweenness": lambda: algorithms.betweenness(simple),
        "eigenvector": lambda: algorithms.eigenvector(
            simple, tol=config.tolerance, max_iter=config.max_iter,
        ),
        "hits": lambda: algorithms.hits(
            simple, tol=config.tolerance, max_iter=config.max_iter,
        ),
        "critical_path": lambda: algorithms.critical_path_heights(blocking),
        "cycles": lambda: algorithms.find_cycles(simple),
    }


def _defaults(graph: IssueGraph) -> Dict[str, Any]:
    zeros = {node: 0.0 for node in graph.node_ids}
    return {
        "pagerank": dict(zeros),
        "betweenness": dict(zeros),
        "eigenvector": dict(zeros),
        "hits": (dict(zeros), dict(zeros)),
        "critical_path": (dict(zeros), False),
        "cycles": [],
    }


def _timed(name: str, job: Callable[[], Any], fallback: Any) -> Tuple[Any, float]:
    start = time.perf_counter()
    try:
        value = job()
    except Exception as e:
        logger.warning("Phase 2 algorithm '%s' failed, using defaults: %s", name, e)
        value = fallback
    elapsed = time.perf_counter() - start
    logger.debug("Phase 2 %s took %.4fs", name, elapsed)
    return value, elapsed


def compute_phase2(graph: IssueGraph, config: Optional[AnalysisConfig] = None) -> Phase2Stats:
    """Compute every Phase 2 metric for *graph*."""
    config = config or AnalysisConfig()
    jobs = _jobs(graph, config)
    defaults = _defaults(graph)
    start = time.perf_counter()

    results: Dict[str, Any] = {}
    elapsed: Dict[str, float] = {}
    if config.phase2_workers > 1 and len(graph) > 0:
        with ThreadPoolExecutor(max_workers=config.phase2_workers) as executor:
            futures = {
                name: executor.submit(_timed, name, job, defaults[name])
                for name, job in jobs.items()
            }
            for name, future in futures.items():
                results[name], elapsed[name] = future.result()
    else:
        for name, job in jobs.items():
            results[name], elapsed[name] = _timed(name, job, defaults[name])

    hub, authority = results["hits"]
    heights, blocks_cycle = results["critical_path"]
    cycles = results["cycles"]

    stats = Phase2Stats(
        pagerank=results["pagerank"],
        betweenness=results["betweenness"],
        eigenvector=results["eigenvector"],
        hub=hub,
        authority=authority,
        critical_path=heights,
        cycles=cycles,
        has_cycle=bool(cycles) or blocks_cycle,
        has_blocking_cycle=blocks_cycle or nx.number_of_selfloops(graph.blocking()) > 0,
        elapsed=elapsed,
    )
    logger.info(
        "Phase 2 complete: %d nodes, %d edges, %d cycles in %.3fs",
        graph.node_count, graph.edge_count, len(cycles), time.perf_counter() - start,
    )
    return stats
