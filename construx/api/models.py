"""Pydantic request/response schemas for the Construx API."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field

from construx.ingestion.models import ExtractedTaskRecord, Priority, TaskStatus


class TaskRecord(BaseModel):
    """A parsed task record, as returned by the preview endpoint."""

    title: str
    priority: Priority
    status: TaskStatus
    description: str = ""
    due_date: date | None = None
    assignee_email: str | None = None

    @classmethod
    def from_record(cls, record: ExtractedTaskRecord) -> TaskRecord:
        return cls(
            title=record.title,
            priority=record.priority,
            status=record.status,
            description=record.description,
            due_date=record.due_date,
            assignee_email=record.assignee_email,
        )


class ImportResponse(BaseModel):
    """Response body for the task document import endpoint."""

    project_id: str
    tasks_created: int
    task_ids: list[str]
    rejected: int = 0
    unresolved_assignees: list[str] = []


class PreviewResponse(BaseModel):
    """Response body for the task document preview endpoint."""

    project_id: str
    tasks: list[TaskRecord]
    rejected: int = 0


class TaskCreate(BaseModel):
    """Request body for creating a single task."""

    title: str = Field(min_length=1)
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.BACKLOG
    description: str = ""
    due_date: date | None = None
    assignee_id: str | None = None
    created_by: str | None = None


class TaskUpdate(BaseModel):
    """Request body for a partial task update; omitted fields are unchanged."""

    title: str | None = Field(default=None, min_length=1)
    priority: Priority | None = None
    status: TaskStatus | None = None
    description: str | None = None
    due_date: date | None = None
    assignee_id: str | None = None
    progress: int | None = Field(default=None, ge=0, le=100)


class TaskCreatedResponse(BaseModel):
    """Response body for the single task create endpoint."""

    id: str
    project_id: str


class AuditSuggestionRequest(BaseModel):
    """Request body for the document audit suggestion endpoint."""

    document_name: str
    version_number: int = Field(ge=1)
    upload_count: int = Field(ge=0)
    modification_count: int = Field(ge=0)
    last_uploaded_by: str


class AuditSuggestionResponse(BaseModel):
    """Response body for the document audit suggestion endpoint."""

    audit_recommended: bool
    reason: str
