"""
Test Configuration and Fixtures
================================

Shared pytest fixtures for the issuegraph test suite.

Usage:
    pytest tests/                    # Run all tests
    pytest tests/ -v                 # Verbose output
    pytest tests/ -k "triage"        # Run only triage tests
    pytest tests/ --quick            # Skip slow tests
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import List

from issuegraph.core import Dependency, DependencyType, Issue, IssueStatus


# =============================================================================
# Custom Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")


def pytest_addoption(parser):
    """Add custom command line options"""
    parser.addoption(
        "--quick",
        action="store_true",
        default=False,
        help="Skip slow tests",
    )


def pytest_collection_modifyitems(config, items):
    """Skip slow tests if --quick is specified"""
    if config.getoption("--quick"):
        skip_slow = pytest.mark.skip(reason="Skipped with --quick")
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip_slow)


# =============================================================================
# Helpers
# =============================================================================

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_issue(
    issue_id: str,
    blocked_by=(),
    related=(),
    status: IssueStatus = IssueStatus.OPEN,
    priority: int = 2,
    age_days: float = 0.0,
) -> Issue:
    """Build an issue whose ``blocks`` prerequisites are *blocked_by*."""
    deps = [Dependency(issue_id, d, DependencyType.BLOCKS) for d in blocked_by]
    deps += [Dependency(issue_id, d, DependencyType.RELATED) for d in related]
    ts = NOW - timedelta(days=age_days)
    return Issue(
        id=issue_id,
        status=status,
        priority=priority,
        created_at=ts,
        updated_at=ts,
        dependencies=deps,
    )


# =============================================================================
# Issue Set Fixtures
# =============================================================================

@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def chain_issues() -> List[Issue]:
    """A blocks B blocks C."""
    return [
        make_issue("A"),
        make_issue("B", blocked_by=["A"]),
        make_issue("C", blocked_by=["B"]),
    ]


@pytest.fixture
def cycle_issues() -> List[Issue]:
    """A and B block each other."""
    return [
        make_issue("A", blocked_by=["B"]),
        make_issue("B", blocked_by=["A"]),
    ]


@pytest.fixture
def star_issues() -> List[Issue]:
    """HUB blocks four leaves; X is isolated."""
    return [
        make_issue("HUB", priority=1),
        make_issue("L1", blocked_by=["HUB"]),
        make_issue("L2", blocked_by=["HUB"]),
        make_issue("L3", blocked_by=["HUB"]),
        make_issue("L4", blocked_by=["HUB"]),
        make_issue("X", priority=3),
    ]


@pytest.fixture
def mixed_issues() -> List[Issue]:
    """
    A realistic backlog:

        EPIC <- API <- UI         (blocks)
        EPIC <- DB                (blocks)
        UI  ~~ DOCS               (related)
        OLD  closed, blocks API
        LONE standalone, stale
    """
    return [
        make_issue("EPIC", priority=0, age_days=3),
        make_issue("API", blocked_by=["EPIC", "OLD"], priority=1, age_days=2),
        make_issue("UI", blocked_by=["API"], related=["DOCS"], priority=2, age_days=1),
        make_issue("DB", blocked_by=["EPIC"], priority=2, age_days=5),
        make_issue("DOCS", priority=4, age_days=10),
        make_issue("OLD", status=IssueStatus.CLOSED, priority=1, age_days=40),
        make_issue("LONE", priority=3, age_days=90),
    ]


@pytest.fixture
def large_issues() -> List[Issue]:
    """Layered DAG of 300 issues for concurrency tests."""
    issues = []
    for i in range(300):
        prereqs = [f"N{j}" for j in (i - 1, i - 7, i - 31) if j >= 0]
        issues.append(make_issue(f"N{i}", blocked_by=prereqs, priority=i % 5))
    return issues
