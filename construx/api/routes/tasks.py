"""Task endpoints: document import/preview, list, create and update."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from postgrest.exceptions import APIError

from construx.api.models import (
    ImportResponse,
    PreviewResponse,
    TaskCreate,
    TaskCreatedResponse,
    TaskRecord,
    TaskUpdate,
)
from construx.config import settings
from construx.ingestion.errors import (
    DocumentReadError,
    EmptyDocumentError,
    UnsupportedFileTypeError,
)
from construx.ingestion.models import ExtractedTaskRecord, Priority, TaskStatus
from construx.ingestion.parsers import extract_input
from construx.ingestion.pipeline import import_tasks
from construx.ingestion.readers import read_document
from construx.ingestion.storage import get_supabase_client, insert_task, list_tasks, update_task

logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_upload(file: UploadFile) -> bytes:
    """Read an upload, enforcing the configured size limit."""
    raw = await file.read()
    max_bytes = settings.max_upload_mb * 1024 * 1024
    if len(raw) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.max_upload_mb} MB.",
        )
    return raw


@router.post("/api/projects/{project_id}/tasks/import", response_model=ImportResponse)
async def import_task_document(
    project_id: str,
    file: Annotated[UploadFile, File(...)],
    created_by: Annotated[str | None, Form()] = None,
) -> ImportResponse:
    """Create tasks in bulk from an uploaded task document.

    Accepts ``.txt``/``.md``/``.pdf`` documents using the ``# Task:`` block
    template, and ``.xlsx``/``.xls``/``.csv`` spreadsheets with the columns
    ``title, priority, status, description, due_date, assignee_email``.
    """
    raw = await _read_upload(file)

    try:
        result = import_tasks(
            raw,
            file.filename or "",
            project_id,
            content_type=file.content_type,
            created_by=created_by,
        )
    except UnsupportedFileTypeError as exc:
        raise HTTPException(status_code=415, detail=str(exc)) from exc
    except DocumentReadError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except EmptyDocumentError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except APIError as exc:
        # Database rejected the insert: not the client's fault.
        logger.exception("Task insert failed for project %s", project_id)
        raise HTTPException(status_code=503, detail=f"Database error: {exc.message}") from exc

    return ImportResponse(
        project_id=result.project_id,
        tasks_created=result.tasks_created,
        task_ids=result.task_ids,
        rejected=result.rejected,
        unresolved_assignees=result.unresolved_assignees,
    )


@router.post("/api/projects/{project_id}/tasks/preview", response_model=PreviewResponse)
async def preview_task_document(
    project_id: str,
    file: Annotated[UploadFile, File(...)],
) -> PreviewResponse:
    """Parse an uploaded task document without creating any tasks."""
    raw = await _read_upload(file)

    try:
        document = read_document(raw, file.filename or "", file.content_type)
    except UnsupportedFileTypeError as exc:
        raise HTTPException(status_code=415, detail=str(exc)) from exc
    except DocumentReadError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    extracted = extract_input(document)
    return PreviewResponse(
        project_id=project_id,
        tasks=[TaskRecord.from_record(r) for r in extracted.records],
        rejected=extracted.rejected,
    )


@router.get("/api/projects/{project_id}/tasks")
async def get_project_tasks(
    project_id: str,
    status: TaskStatus | None = None,
    priority: Priority | None = None,
) -> list[dict[str, Any]]:
    """List a project's tasks ordered by due date."""
    client = get_supabase_client()
    return list_tasks(
        client,
        project_id,
        status=status.value if status else None,
        priority=priority.value if priority else None,
    )


@router.post(
    "/api/projects/{project_id}/tasks",
    response_model=TaskCreatedResponse,
    status_code=201,
)
async def create_task(project_id: str, body: TaskCreate) -> TaskCreatedResponse:
    """Create a single task in a project."""
    title = body.title.strip()
    if not title:
        raise HTTPException(status_code=422, detail="Task title is required.")

    record = ExtractedTaskRecord(
        title=title,
        priority=body.priority,
        status=body.status,
        description=body.description.strip(),
        due_date=body.due_date,
    )
    client = get_supabase_client()
    task_id = insert_task(
        client,
        project_id,
        record,
        assignee_id=body.assignee_id,
        created_by=body.created_by,
    )
    return TaskCreatedResponse(id=task_id, project_id=project_id)


@router.patch("/api/tasks/{task_id}")
async def patch_task(task_id: str, body: TaskUpdate) -> dict[str, Any]:
    """Update the given fields of a task."""
    changes = body.model_dump(mode="json", exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    client = get_supabase_client()
    row = update_task(client, task_id, changes)
    if row is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return row
