"""Claude-powered document audit suggestions."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from anthropic import Anthropic

from construx.config import settings


@dataclass
class DocumentActivity:
    """Upload/modification history of a project document."""

    document_name: str
    version_number: int
    upload_count: int
    modification_count: int
    last_uploaded_by: str


@dataclass
class AuditSuggestion:
    """Whether an audit is recommended, and why."""

    audit_recommended: bool
    reason: str


AUDIT_TOOL: dict[str, Any] = {
    "name": "record_audit_suggestion",
    "description": "Record whether the document or its uploader should be audited.",
    "input_schema": {
        "type": "object",
        "properties": {
            "audit_recommended": {
                "type": "boolean",
                "description": "Whether an audit is recommended for the document or user.",
            },
            "reason": {
                "type": "string",
                "description": "The reason for the audit recommendation.",
            },
        },
        "required": ["audit_recommended", "reason"],
    },
}

SYSTEM_PROMPT = (
    "You are an assistant that analyzes construction project document activity "
    "and suggests when an audit is necessary.\n\n"
    "Consider these factors:\n"
    "- A high upload or modification count for a given version may indicate "
    "instability or potential issues.\n"
    "- Frequent uploads by the same user may indicate a need for closer "
    "monitoring or training.\n\n"
    "Use the record_audit_suggestion tool to return your answer."
)


def suggest_document_audit(activity: DocumentActivity) -> AuditSuggestion:
    """Ask Claude whether a document's activity warrants an audit."""
    client = Anthropic(api_key=settings.anthropic_api_key)

    response = client.messages.create(
        model=settings.llm_model,
        max_tokens=512,
        system=SYSTEM_PROMPT,
        tools=[AUDIT_TOOL],
        tool_choice={"type": "tool", "name": "record_audit_suggestion"},
        messages=[
            {
                "role": "user",
                "content": (
                    f"Document Name: {activity.document_name}\n"
                    f"Version Number: {activity.version_number}\n"
                    f"Upload Count: {activity.upload_count}\n"
                    f"Modification Count: {activity.modification_count}\n"
                    f"Last Uploaded By: {activity.last_uploaded_by}"
                ),
            }
        ],
    )

    return _parse_tool_response(response)


def _parse_tool_response(response: Any) -> AuditSuggestion:
    """Parse the Claude tool_use response into an AuditSuggestion."""
    for block in response.content:
        if block.type != "tool_use" or block.name != "record_audit_suggestion":
            continue

        data = block.input
        if isinstance(data, str):
            data = json.loads(data)

        return AuditSuggestion(
            audit_recommended=bool(data.get("audit_recommended", False)),
            reason=str(data.get("reason", "")),
        )

    raise ValueError("Claude response did not include an audit suggestion")
