"""End-to-end task import pipeline: read -> parse -> normalize -> store."""

from __future__ import annotations

import logging

from construx.ingestion.errors import EmptyDocumentError
from construx.ingestion.models import ImportResult
from construx.ingestion.parsers import extract_input
from construx.ingestion.readers import read_document
from construx.ingestion.storage import get_supabase_client, insert_tasks, resolve_assignees

logger = logging.getLogger(__name__)


def import_tasks(
    raw: bytes,
    filename: str,
    project_id: str,
    content_type: str | None = None,
    created_by: str | None = None,
) -> ImportResult:
    """Full import pipeline for one uploaded task document.

    Args:
        raw: Uploaded file bytes.
        filename: Original upload filename (selects the reader).
        project_id: Project the tasks are created in.
        content_type: Upload MIME type, used when the filename has no extension.
        created_by: Id of the user performing the import.

    Returns:
        An :class:`ImportResult` with the created task ids.

    Raises:
        UnsupportedFileTypeError: If the file type has no reader.
        DocumentReadError: If the file cannot be decoded.
        EmptyDocumentError: If no valid task was found; nothing is stored.
    """
    # 1. Read
    document = read_document(raw, filename, content_type)

    # 2. Parse + normalize
    extracted = extract_input(document)
    if not extracted.records:
        raise EmptyDocumentError()

    # 3. Store
    client = get_supabase_client()
    emails = {r.assignee_email for r in extracted.records if r.assignee_email}
    assignee_ids = resolve_assignees(client, emails)
    unresolved = sorted(emails - assignee_ids.keys())
    if unresolved:
        logger.warning(
            "No user found for %d assignee email(s) in %s: %s",
            len(unresolved),
            filename,
            ", ".join(unresolved),
        )

    task_ids = insert_tasks(
        client,
        project_id,
        extracted.records,
        created_by=created_by,
        assignee_ids=assignee_ids,
    )
    logger.info(
        "Imported %d tasks from %s into project %s (%d rejected)",
        len(task_ids),
        filename,
        project_id,
        extracted.rejected,
    )

    return ImportResult(
        project_id=project_id,
        tasks_created=len(task_ids),
        task_ids=task_ids,
        rejected=extracted.rejected,
        unresolved_assignees=unresolved,
    )
