"""Supabase storage helpers for project tasks."""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, cast

from supabase import Client, create_client

from construx.config import settings

if TYPE_CHECKING:
    from construx.ingestion.models import ExtractedTaskRecord


def get_supabase_client() -> Client:
    """Create and return a Supabase client from settings."""
    return create_client(settings.supabase_url, settings.supabase_key)


def new_task_ids(count: int) -> list[str]:
    """Return *count* task ids in the ``TASK-<millis>-<n>`` format."""
    stamp = time.time_ns() // 1_000_000
    return [f"TASK-{stamp}-{n}" for n in range(1, count + 1)]


def _ilike_filter(column: str, values: Iterable[str]) -> str:
    """Build a PostgREST ``or`` filter matching *column* against each value, ignoring case."""
    quoted = (v.replace("\\", "\\\\").replace('"', '\\"') for v in values)
    return ",".join(f'{column}.ilike."{v}"' for v in quoted)


def resolve_assignees(client: Client, emails: Iterable[str]) -> dict[str, str]:
    """Map assignee emails (lower-cased) to user ids with a single lookup.

    Matching ignores case on both sides: ``users.email`` may be stored as
    ``PMC@Example.com``.  ``ilike`` treats ``_`` and ``%`` as wildcards, so
    the returned rows are filtered down to exact matches.
    """
    wanted = sorted({e.strip().lower() for e in emails if e and e.strip()})
    if not wanted:
        return {}

    result = client.table("users").select("id, email").or_(_ilike_filter("email", wanted)).execute()
    rows = cast(list[dict[str, Any]], result.data)
    found = {str(r["email"]).lower(): str(r["id"]) for r in rows if r.get("email")}
    return {email: found[email] for email in wanted if email in found}


def insert_tasks(
    client: Client,
    project_id: str,
    records: list[ExtractedTaskRecord],
    created_by: str | None = None,
    assignee_ids: Mapping[str, str] | None = None,
) -> list[str]:
    """Insert all task records into a project at once and return their ids.

    Assignee emails are resolved through *assignee_ids* when given, otherwise
    looked up in the ``users`` table.  Unknown emails leave the task
    unassigned.
    """
    if not records:
        return []

    if assignee_ids is None:
        assignee_ids = resolve_assignees(
            client, [r.assignee_email for r in records if r.assignee_email]
        )

    task_ids = new_task_ids(len(records))
    rows: list[dict[str, Any]] = []
    for task_id, record in zip(task_ids, records):
        row = record.to_row()
        row.update(
            {
                "id": task_id,
                "project_id": project_id,
                "assignee_id": assignee_ids.get(record.assignee_email or ""),
                "created_by": created_by,
            }
        )
        rows.append(row)

    # Whole array in one INSERT statement: all rows land or none do.
    client.table("tasks").insert(rows).execute()

    return task_ids


def insert_task(
    client: Client,
    project_id: str,
    record: ExtractedTaskRecord,
    assignee_id: str | None = None,
    created_by: str | None = None,
) -> str:
    """Insert a single task and return its id."""
    (task_id,) = new_task_ids(1)
    row = record.to_row()
    row.update(
        {
            "id": task_id,
            "project_id": project_id,
            "assignee_id": assignee_id,
            "created_by": created_by,
        }
    )
    client.table("tasks").insert(row).execute()
    return task_id


def list_tasks(
    client: Client,
    project_id: str,
    status: str | None = None,
    priority: str | None = None,
) -> list[dict[str, Any]]:
    """Return a project's tasks, optionally filtered by status and priority."""
    query = client.table("tasks").select("*").eq("project_id", project_id)
    if status:
        query = query.eq("status", status)
    if priority:
        query = query.eq("priority", priority)
    result = query.order("due_date").execute()
    return cast(list[dict[str, Any]], result.data)


def update_task(client: Client, task_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
    """Update a task by id; return the updated row, or None if none matched."""
    result = client.table("tasks").update(changes).eq("id", task_id).execute()
    rows = cast(list[dict[str, Any]], result.data)
    return rows[0] if rows else None
