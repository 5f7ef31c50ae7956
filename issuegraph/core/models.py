"""
Core Value Objects and Entities

Issues are owned by the caller. The analytics engine only reads them.

Dependency direction:
    Dependency(issue_id="B", depends_on_id="A", type=BLOCKS) is stored on B
    and reads "B depends on A" (equivalently "A blocks B").
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Priority assigned when an issue does not carry one.
DEFAULT_PRIORITY: int = 2


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class IssueStatus(str, Enum):
    """Lifecycle state of an issue."""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    CLOSED = "closed"

    @classmethod
    def parse(cls, value: Any) -> "IssueStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().replace("-", "_"))
        except ValueError:
            return cls.OPEN

    @property
    def is_closed(self) -> bool:
        return self is IssueStatus.CLOSED


class DependencyType(str, Enum):
    """Kind of dependency edge between two issues."""
    BLOCKS = "blocks"
    RELATED = "related"
    PARENT_CHILD = "parent-child"
    DISCOVERED_FROM = "discovered-from"

    @classmethod
    def parse(cls, value: Any) -> "DependencyType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().replace("_", "-"))
        except ValueError:
            return cls.RELATED

    def is_blocking(self) -> bool:
        """Only ``blocks`` edges take part in blocking and critical-path logic."""
        return self is DependencyType.BLOCKS


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Dependency:
    """Edge from a dependent issue to the issue it depends on."""
    issue_id: str
    depends_on_id: str
    type: DependencyType = DependencyType.BLOCKS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "issue_id": self.issue_id,
            "depends_on_id": self.depends_on_id,
            "type": self.type.value,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any], issue_id: str = "") -> "Dependency":
        return Dependency(
            issue_id=str(data.get("issue_id") or issue_id),
            depends_on_id=str(data.get("depends_on_id", "")),
            type=DependencyType.parse(data.get("type", DependencyType.BLOCKS)),
        )


@dataclass
class Issue:
    """A unit of work tracked in the dependency graph."""
    id: str
    status: IssueStatus = IssueStatus.OPEN
    priority: int = DEFAULT_PRIORITY
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    dependencies: List[Optional[Dependency]] = field(default_factory=list)
    title: str = ""

    @property
    def is_closed(self) -> bool:
        return self.status is IssueStatus.CLOSED

    def blocking_dependencies(self) -> List[Dependency]:
        """Non-null ``blocks`` dependencies, in declaration order."""
        return [d for d in self.dependencies if d is not None and d.type.is_blocking()]

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "status": self.status.value,
            "priority": self.priority,
            "dependencies": [d.to_dict() for d in self.dependencies if d is not None],
        }
        if self.title:
            result["title"] = self.title
        if self.created_at:
            result["created_at"] = self.created_at.isoformat()
        if self.updated_at:
            result["updated_at"] = self.updated_at.isoformat()
        return result

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Issue":
        issue_id = str(data["id"])
        deps: List[Optional[Dependency]] = []
        for raw in data.get("dependencies") or []:
            deps.append(Dependency.from_dict(raw, issue_id) if raw else None)
        return Issue(
            id=issue_id,
            status=IssueStatus.parse(data.get("status", IssueStatus.OPEN)),
            priority=int(data.get("priority", DEFAULT_PRIORITY)),
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
            dependencies=deps,
            title=data.get("title", ""),
        )


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    # Naive timestamps are taken as UTC
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts
