"""Data models for the task import pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class Priority(str, Enum):
    """Task priority levels."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class TaskStatus(str, Enum):
    """Task board columns, in workflow order."""

    WAITING_FOR_APPROVAL = "Waiting for Approval"
    BACKLOG = "Backlog"
    IN_PROGRESS = "In Progress"
    BLOCKED = "Blocked"
    DONE = "Done"


@dataclass
class RawTaskFields:
    """Unvalidated fields pulled from one task block or spreadsheet row.

    Every field is optional; ``None`` means the label or cell was absent.
    """

    title: str | None = None
    priority: str | None = None
    status: str | None = None
    description: str | None = None
    due_date: str | None = None
    assignee_email: str | None = None


@dataclass(frozen=True)
class ExtractedTaskRecord:
    """A canonical task record, ready for bulk insertion."""

    title: str
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.BACKLOG
    description: str = ""
    due_date: date | None = None
    assignee_email: str | None = None

    def to_row(self) -> dict[str, Any]:
        """Render the record as a ``tasks`` table row (without ids)."""
        return {
            "title": self.title,
            "priority": self.priority.value,
            "status": self.status.value,
            "description": self.description,
            "due_date": self.due_date.isoformat() if self.due_date else None,
        }


@dataclass(frozen=True)
class TextDocument:
    """Decoded text of a ``.txt``/``.md``/``.pdf`` upload."""

    content: str


@dataclass(frozen=True)
class GridDocument:
    """Cell values of a spreadsheet upload, header row included."""

    rows: list[list[Any]] = field(default_factory=list)


DocumentInput = TextDocument | GridDocument


@dataclass
class NormalizationResult:
    """Records accepted by the normalizer plus the number rejected."""

    records: list[ExtractedTaskRecord] = field(default_factory=list)
    rejected: int = 0


@dataclass
class ImportResult:
    """Outcome of importing one document into a project."""

    project_id: str
    tasks_created: int
    task_ids: list[str] = field(default_factory=list)
    rejected: int = 0
    unresolved_assignees: list[str] = field(default_factory=list)
