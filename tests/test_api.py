"""Tests for API endpoints (no Supabase or Anthropic access required)."""

from unittest.mock import MagicMock, patch

from anthropic import APIStatusError
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from construx.api.main import app
from construx.assist.audit import AuditSuggestion
from construx.ingestion.models import ImportResult

client = TestClient(app)
client_no_raise = TestClient(app, raise_server_exceptions=False)

TASK_DOC = b"# Task: Fix leak\n**Priority:** High\n\n---\n\n# Task: Paint wall\n"


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


# --- Task document import ---

def test_import_requires_file():
    response = client.post("/api/projects/PROJ-1/tasks/import")
    assert response.status_code == 422


def test_import_returns_created_ids():
    result = ImportResult(
        project_id="PROJ-1",
        tasks_created=2,
        task_ids=["TASK-1-1", "TASK-1-2"],
        unresolved_assignees=["ghost@example.com"],
    )
    with patch("construx.api.routes.tasks.import_tasks", return_value=result) as fake_import:
        response = client.post(
            "/api/projects/PROJ-1/tasks/import",
            files={"file": ("tasks.md", TASK_DOC, "text/markdown")},
            data={"created_by": "u-1"},
        )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["tasks_created"] == 2
    assert data["task_ids"] == ["TASK-1-1", "TASK-1-2"]
    assert data["unresolved_assignees"] == ["ghost@example.com"]
    args, kwargs = fake_import.call_args
    assert args == (TASK_DOC, "tasks.md", "PROJ-1")
    assert kwargs["created_by"] == "u-1"


def test_import_end_to_end_with_mocked_supabase():
    mock_supabase = MagicMock()
    mock_supabase.table.return_value.select.return_value.or_.return_value.execute.return_value.data = []

    with patch("construx.ingestion.pipeline.get_supabase_client", return_value=mock_supabase):
        response = client.post(
            "/api/projects/PROJ-1/tasks/import",
            files={"file": ("tasks.md", TASK_DOC, "text/markdown")},
        )

    assert response.status_code == 200, response.text
    assert response.json()["tasks_created"] == 2
    rows = mock_supabase.table.return_value.insert.call_args.args[0]
    assert [r["title"] for r in rows] == ["Fix leak", "Paint wall"]


def test_import_document_without_tasks_returns_422():
    with patch("construx.ingestion.pipeline.get_supabase_client") as get_client:
        response = client.post(
            "/api/projects/PROJ-1/tasks/import",
            files={"file": ("notes.txt", b"No tasks in here.", "text/plain")},
        )
    assert response.status_code == 422
    assert response.json()["detail"] == "No valid tasks found in document."
    get_client.assert_not_called()


def test_import_unsupported_type_returns_415():
    response = client.post(
        "/api/projects/PROJ-1/tasks/import",
        files={"file": ("plan.docx", b"PK\x03\x04", "application/octet-stream")},
    )
    assert response.status_code == 415
    assert "unsupported" in response.json()["detail"].lower()


def test_import_unreadable_file_returns_400():
    response = client.post(
        "/api/projects/PROJ-1/tasks/import",
        files={"file": ("tasks.txt", b"\xff\xfe\xfa", "text/plain")},
    )
    assert response.status_code == 400


def test_import_too_large_returns_413():
    with patch("construx.api.routes.tasks.settings") as mock_settings:
        mock_settings.max_upload_mb = 0
        response = client.post(
            "/api/projects/PROJ-1/tasks/import",
            files={"file": ("tasks.md", TASK_DOC, "text/markdown")},
        )
    assert response.status_code == 413


def test_import_database_error_returns_503():
    error = APIError({"message": "insert failed", "code": "23503", "hint": None, "details": None})
    with patch("construx.api.routes.tasks.import_tasks", side_effect=error):
        response = client.post(
            "/api/projects/PROJ-1/tasks/import",
            files={"file": ("tasks.md", TASK_DOC, "text/markdown")},
        )
    assert response.status_code == 503
    assert "insert failed" in response.json()["detail"]


def test_preview_does_not_store():
    with patch("construx.ingestion.storage.get_supabase_client") as get_client:
        response = client.post(
            "/api/projects/PROJ-1/tasks/preview",
            files={"file": ("tasks.md", TASK_DOC, "text/markdown")},
        )
    assert response.status_code == 200
    data = response.json()
    assert [t["title"] for t in data["tasks"]] == ["Fix leak", "Paint wall"]
    assert data["tasks"][0]["priority"] == "High"
    assert data["tasks"][1]["status"] == "Backlog"
    assert data["tasks"][1]["due_date"] is None
    get_client.assert_not_called()


# --- Task CRUD ---

def test_list_tasks_passes_filters():
    with (
        patch("construx.api.routes.tasks.get_supabase_client", return_value=MagicMock()),
        patch("construx.api.routes.tasks.list_tasks", return_value=[{"id": "TASK-1"}]) as fake_list,
    ):
        response = client.get("/api/projects/PROJ-1/tasks?status=In%20Progress&priority=High")

    assert response.status_code == 200
    assert response.json() == [{"id": "TASK-1"}]
    assert fake_list.call_args.kwargs == {"status": "In Progress", "priority": "High"}


def test_list_tasks_rejects_unknown_status():
    response = client.get("/api/projects/PROJ-1/tasks?status=Someday")
    assert response.status_code == 422


def test_create_task():
    with (
        patch("construx.api.routes.tasks.get_supabase_client", return_value=MagicMock()),
        patch("construx.api.routes.tasks.insert_task", return_value="TASK-5-1") as fake_insert,
    ):
        response = client.post(
            "/api/projects/PROJ-1/tasks",
            json={"title": "  Order rebar ", "priority": "Low", "due_date": "2025-02-01"},
        )

    assert response.status_code == 201
    assert response.json() == {"id": "TASK-5-1", "project_id": "PROJ-1"}
    record = fake_insert.call_args.args[2]
    assert record.title == "Order rebar"
    assert record.priority.value == "Low"
    assert record.status.value == "Backlog"
    assert record.due_date.isoformat() == "2025-02-01"


def test_create_task_validates_enums():
    response = client.post("/api/projects/PROJ-1/tasks", json={"title": "T", "priority": "Urgent"})
    assert response.status_code == 422


def test_create_task_blank_title():
    response = client.post("/api/projects/PROJ-1/tasks", json={"title": "   "})
    assert response.status_code == 422


def test_patch_task():
    with (
        patch("construx.api.routes.tasks.get_supabase_client", return_value=MagicMock()),
        patch(
            "construx.api.routes.tasks.update_task",
            return_value={"id": "TASK-1", "status": "Done"},
        ) as fake_update,
    ):
        response = client.patch("/api/tasks/TASK-1", json={"status": "Done"})

    assert response.status_code == 200
    assert fake_update.call_args.args[1:] == ("TASK-1", {"status": "Done"})


def test_patch_missing_task_returns_404():
    with (
        patch("construx.api.routes.tasks.get_supabase_client", return_value=MagicMock()),
        patch("construx.api.routes.tasks.update_task", return_value=None),
    ):
        response = client.patch("/api/tasks/TASK-404", json={"status": "Done"})
    assert response.status_code == 404


def test_patch_without_fields_returns_400():
    response = client.patch("/api/tasks/TASK-1", json={})
    assert response.status_code == 400


# --- Document audit suggestions ---

AUDIT_BODY = {
    "document_name": "Structural-Blueprints-Rev4.pdf",
    "version_number": 4,
    "upload_count": 5,
    "modification_count": 12,
    "last_uploaded_by": "Sarah Walker",
}


def test_audit_suggestion_not_configured_returns_503():
    with patch("construx.api.routes.documents.settings") as mock_settings:
        mock_settings.anthropic_api_key = ""
        response = client.post("/api/documents/audit-suggestion", json=AUDIT_BODY)
    assert response.status_code == 503
    assert "not configured" in response.json()["detail"]


def test_audit_suggestion():
    suggestion = AuditSuggestion(audit_recommended=True, reason="12 modifications on version 4.")
    with (
        patch("construx.api.routes.documents.settings") as mock_settings,
        patch(
            "construx.api.routes.documents.suggest_document_audit", return_value=suggestion
        ) as fake_suggest,
    ):
        mock_settings.anthropic_api_key = "test-key"
        response = client.post("/api/documents/audit-suggestion", json=AUDIT_BODY)

    assert response.status_code == 200
    assert response.json() == {
        "audit_recommended": True,
        "reason": "12 modifications on version 4.",
    }
    activity = fake_suggest.call_args.args[0]
    assert activity.modification_count == 12


def test_audit_suggestion_llm_error_returns_503():
    error = APIStatusError(
        "Overloaded",
        response=MagicMock(status_code=529, headers={}),
        body=None,
    )
    with (
        patch("construx.api.routes.documents.settings") as mock_settings,
        patch("construx.api.routes.documents.suggest_document_audit", side_effect=error),
    ):
        mock_settings.anthropic_api_key = "test-key"
        response = client_no_raise.post("/api/documents/audit-suggestion", json=AUDIT_BODY)
    assert response.status_code == 503


def test_audit_suggestion_validates_counts():
    body = dict(AUDIT_BODY, upload_count=-1)
    response = client.post("/api/documents/audit-suggestion", json=body)
    assert response.status_code == 422
