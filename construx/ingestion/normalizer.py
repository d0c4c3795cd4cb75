"""Record normalizer: defaults and enum coercion for raw task fields."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import date
from enum import Enum
from typing import TypeVar

from construx.ingestion.errors import ValidationError
from construx.ingestion.models import (
    ExtractedTaskRecord,
    NormalizationResult,
    Priority,
    RawTaskFields,
    TaskStatus,
)

logger = logging.getLogger(__name__)

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

E = TypeVar("E", bound=Enum)


def _coerce_enum(value: str | None, enum_cls: type[E], default: E) -> E:
    """Match *value* against the enum values case-insensitively."""
    if not value:
        return default
    wanted = " ".join(value.split()).casefold()
    for member in enum_cls:
        if member.value.casefold() == wanted:
            return member
    return default


def parse_due_date(value: str | None) -> date | None:
    """Return the calendar date for a ``YYYY-MM-DD`` string, else ``None``.

    Strings that match the pattern but name an impossible day
    (``2024-02-30``) are treated as malformed.
    """
    if not value:
        return None
    value = value.strip()
    if not _ISO_DATE_RE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def normalize_record(raw: RawTaskFields) -> ExtractedTaskRecord:
    """Turn raw extracted fields into a canonical task record.

    Raises:
        ValidationError: If the title is missing or blank.
    """
    title = (raw.title or "").strip()
    if not title:
        raise ValidationError("Task title is required.")

    email = (raw.assignee_email or "").strip().lower()

    return ExtractedTaskRecord(
        title=title,
        priority=_coerce_enum(raw.priority, Priority, Priority.MEDIUM),
        status=_coerce_enum(raw.status, TaskStatus, TaskStatus.BACKLOG),
        description=(raw.description or "").strip(),
        due_date=parse_due_date(raw.due_date),
        assignee_email=email or None,
    )


def normalize_records(raws: Iterable[RawTaskFields]) -> NormalizationResult:
    """Normalize every raw record, counting (not raising on) rejects."""
    result = NormalizationResult()
    for raw in raws:
        try:
            result.records.append(normalize_record(raw))
        except ValidationError as exc:
            logger.debug("Rejected task record %r: %s", raw, exc)
            result.rejected += 1
    return result
