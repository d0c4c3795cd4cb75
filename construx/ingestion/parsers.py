"""Task document parsers for Markdown/plain-text blocks and spreadsheet grids.

Text documents follow the task block template::

    # Task: <title>

    **Priority:** High|Medium|Low
    **Status:** Waiting for Approval|Backlog|In Progress|Blocked|Done
    **Due Date:** YYYY-MM-DD

    **Description:**
    <free text, may span multiple lines>

with blocks separated by a ``---`` line.  Grids carry a header row followed by
rows in the fixed column order ``title, priority, status, description,
due_date, assignee_email``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Sequence
from datetime import date, datetime
from typing import Any

from construx.ingestion.models import (
    DocumentInput,
    ExtractedTaskRecord,
    GridDocument,
    NormalizationResult,
    RawTaskFields,
    TaskStatus,
    TextDocument,
)
from construx.ingestion.normalizer import normalize_records

logger = logging.getLogger(__name__)

# A line made only of three or more hyphens (Markdown horizontal rule).
_SEPARATOR_RE = re.compile(r"^-{3,}$")

# Status phrases, longest first so "In Progress" never loses to a prefix.
_STATUS_ALTERNATIVES = "|".join(
    re.escape(s.value).replace(r"\ ", r"[ \t]+")
    for s in sorted(TaskStatus, key=lambda s: len(s.value), reverse=True)
)

_TITLE_RE = re.compile(r"^[ \t]*#+[ \t]*Task:(?P<title>.*)$", re.MULTILINE)
_PRIORITY_RE = re.compile(r"\*\*Priority:\*\*[ \t]*(?P<priority>(?i:High|Medium|Low))\b")
_STATUS_RE = re.compile(rf"\*\*Status:\*\*[ \t]*(?P<status>(?i:{_STATUS_ALTERNATIVES}))\b")
_DUE_DATE_RE = re.compile(r"\*\*Due Date:\*\*[ \t]*(?P<due_date>\d{4}-\d{2}-\d{2})(?!\d)")
_DESCRIPTION_RE = re.compile(r"\*\*Description:\*\*(?P<description>.*)\Z", re.DOTALL)

# Positional column contract for spreadsheet rows.
GRID_COLUMNS = ("title", "priority", "status", "description", "due_date", "assignee_email")


def split_blocks(content: str) -> Iterator[str]:
    """Yield the trimmed, non-empty task blocks of *content*.

    Blocks are delimited by lines consisting solely of ``---`` (three or more
    hyphens, surrounding whitespace ignored).  Input without separators is a
    single block.  Each call starts a fresh pass over *content*.
    """
    current: list[str] = []
    for line in content.splitlines():
        if _SEPARATOR_RE.match(line.strip()):
            block = "\n".join(current).strip()
            if block:
                yield block
            current = []
        else:
            current.append(line)

    block = "\n".join(current).strip()
    if block:
        yield block


def _first(pattern: re.Pattern[str], block: str, group: str) -> str | None:
    match = pattern.search(block)
    if match is None:
        return None
    value = match.group(group).strip()
    return value or None


def extract_fields(block: str) -> RawTaskFields:
    """Extract the labelled task fields from a single block.

    Each label is scanned independently over the whole block, so field order
    does not matter.  When a label repeats, the first occurrence wins.
    Missing labels leave the field as ``None``; ``title is None`` means the
    block has no ``# Task:`` heading.  A heading with nothing after the
    prefix gives an empty title, which the normalizer rejects.
    """
    title_match = _TITLE_RE.search(block)
    return RawTaskFields(
        title=title_match.group("title").strip() if title_match else None,
        priority=_first(_PRIORITY_RE, block, "priority"),
        status=_first(_STATUS_RE, block, "status"),
        due_date=_first(_DUE_DATE_RE, block, "due_date"),
        description=_first(_DESCRIPTION_RE, block, "description"),
    )


def iter_document_fields(content: str) -> Iterator[RawTaskFields]:
    """Yield raw fields for every block that has a title line."""
    for index, block in enumerate(split_blocks(content)):
        fields = extract_fields(block)
        if fields.title is None:
            logger.debug("Skipping block %d: no '# Task:' line found", index)
            continue
        yield fields


def _cell_text(cell: Any) -> str | None:
    """Render a spreadsheet cell as trimmed text (``None`` when blank)."""
    if cell is None:
        return None
    if isinstance(cell, datetime):
        return cell.date().isoformat()
    if isinstance(cell, date):
        return cell.isoformat()
    if isinstance(cell, float) and cell.is_integer():
        cell = int(cell)
    text = str(cell).strip()
    return text or None


def iter_grid_fields(rows: Sequence[Sequence[Any]]) -> Iterator[RawTaskFields]:
    """Yield raw fields for every data row (row 0 is the header) with a title."""
    for index, row in enumerate(rows[1:], start=1):
        values = {
            column: _cell_text(row[position]) if position < len(row) else None
            for position, column in enumerate(GRID_COLUMNS)
        }
        if values["title"] is None:
            logger.debug("Skipping row %d: empty title cell", index)
            continue
        yield RawTaskFields(**values)


def parse_document(content: str) -> list[ExtractedTaskRecord]:
    """Parse a Markdown/plain-text task document into canonical records.

    Returns an empty list when no block carries a ``# Task:`` title.
    """
    return normalize_records(iter_document_fields(content)).records


def parse_grid(rows: Sequence[Sequence[Any]]) -> list[ExtractedTaskRecord]:
    """Parse spreadsheet rows (header first) into canonical records.

    Columns are positional; header names are not checked.
    """
    return normalize_records(iter_grid_fields(rows)).records


def extract_input(document: DocumentInput) -> NormalizationResult:
    """Run the matching parser for *document* and keep the reject count."""
    if isinstance(document, GridDocument):
        return normalize_records(iter_grid_fields(document.rows))
    if isinstance(document, TextDocument):
        return normalize_records(iter_document_fields(document.content))
    msg = f"Unsupported document input: {type(document).__name__}"
    raise TypeError(msg)


def parse_input(document: DocumentInput) -> list[ExtractedTaskRecord]:
    """Dispatch a decoded upload to :func:`parse_document` or :func:`parse_grid`."""
    return extract_input(document).records
