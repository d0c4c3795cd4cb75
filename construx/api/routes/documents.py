"""Document endpoints: audit suggestions for project documents."""

from __future__ import annotations

from anthropic import APIError
from fastapi import APIRouter, HTTPException

from construx.api.models import AuditSuggestionRequest, AuditSuggestionResponse
from construx.assist.audit import DocumentActivity, suggest_document_audit
from construx.config import settings

router = APIRouter()


@router.post("/api/documents/audit-suggestion", response_model=AuditSuggestionResponse)
async def document_audit_suggestion(body: AuditSuggestionRequest) -> AuditSuggestionResponse:
    """Suggest whether a document (or its uploader) should be audited."""
    if not settings.anthropic_api_key:
        raise HTTPException(
            status_code=503,
            detail="Audit suggestions are not configured (set ANTHROPIC_API_KEY).",
        )

    activity = DocumentActivity(
        document_name=body.document_name,
        version_number=body.version_number,
        upload_count=body.upload_count,
        modification_count=body.modification_count,
        last_uploaded_by=body.last_uploaded_by,
    )

    try:
        suggestion = suggest_document_audit(activity)
    except APIError as exc:
        # Upstream LLM error: return a JSON 503 so CORS headers survive.
        raise HTTPException(status_code=503, detail=f"LLM unavailable: {exc.message}") from exc
    except ValueError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return AuditSuggestionResponse(
        audit_recommended=suggestion.audit_recommended,
        reason=suggestion.reason,
    )
