"""Upload readers: decode raw file bytes into text or a cell grid.

Every supported file type is reduced to one of two shapes before parsing:
:class:`TextDocument` (``.txt``, ``.md``, ``.pdf``) or :class:`GridDocument`
(``.xlsx``, ``.xls``, ``.csv``).
"""

from __future__ import annotations

import csv
import io
import logging
import zipfile
from collections.abc import Callable
from typing import Any

import xlrd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from pypdf import PdfReader
from pypdf.errors import PyPdfError
from xlrd.compdoc import CompDocError

from construx.ingestion.errors import DocumentReadError, UnsupportedFileTypeError
from construx.ingestion.models import DocumentInput, GridDocument, TextDocument

logger = logging.getLogger(__name__)

# Content types accepted for extensionless uploads.
CONTENT_TYPE_EXTENSIONS = {
    "text/plain": "txt",
    "text/markdown": "md",
    "text/x-markdown": "md",
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/vnd.ms-excel": "xls",
    "text/csv": "csv",
}


def _decode_text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise DocumentReadError(f"File is not valid UTF-8 text: {exc}") from exc


def read_text(raw: bytes) -> TextDocument:
    """Decode a plain-text or Markdown upload."""
    return TextDocument(content=_decode_text(raw))


def _page_text(page: Any) -> str:
    """Rebuild the text of one PDF page with its line breaks.

    A new line starts whenever a text run sits lower on the page than the
    previous run (PDF y coordinates grow upwards).
    """
    parts: list[str] = []
    last_y: float | None = None

    def visitor(text: str, cm: list[float], tm: list[float], font_dict: Any, font_size: Any) -> None:
        nonlocal last_y
        if not text:
            return
        # y of the run in page space: (tm x cm)[5]
        y = tm[4] * cm[1] + tm[5] * cm[3] + cm[5]
        if last_y is not None and y < last_y and parts and not parts[-1].endswith("\n"):
            parts.append("\n")
        parts.append(text)
        last_y = y

    page.extract_text(visitor_text=visitor)
    return "".join(parts)


def read_pdf(raw: bytes) -> TextDocument:
    """Extract the text of a PDF upload, pages joined in page order."""
    try:
        reader = PdfReader(io.BytesIO(raw))
        pages = [_page_text(page) for page in reader.pages]
    except PyPdfError as exc:
        raise DocumentReadError(f"Could not read PDF: {exc}") from exc

    logger.debug("Extracted text from %d PDF pages", len(pages))
    return TextDocument(content="\n".join(pages))


def read_xlsx(raw: bytes) -> GridDocument:
    """Read the cell values of the first worksheet of an ``.xlsx`` upload."""
    try:
        workbook = load_workbook(io.BytesIO(raw), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise DocumentReadError(f"Could not read spreadsheet: {exc}") from exc

    try:
        if not workbook.worksheets:
            return GridDocument(rows=[])
        sheet = workbook.worksheets[0]
        rows = [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()

    return GridDocument(rows=rows)


def _xls_cell(cell: Any, datemode: int) -> Any:
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate_as_datetime(cell.value, datemode)
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return None
    return cell.value


def read_xls(raw: bytes) -> GridDocument:
    """Read the cell values of the first sheet of a legacy ``.xls`` upload."""
    try:
        book = xlrd.open_workbook(file_contents=raw)
    except (xlrd.XLRDError, CompDocError) as exc:
        raise DocumentReadError(f"Could not read spreadsheet: {exc}") from exc

    try:
        if book.nsheets == 0:
            return GridDocument(rows=[])
        sheet = book.sheet_by_index(0)
        rows = [
            [_xls_cell(cell, book.datemode) for cell in sheet.row(i)]
            for i in range(sheet.nrows)
        ]
    finally:
        book.release_resources()

    return GridDocument(rows=rows)


def read_csv(raw: bytes) -> GridDocument:
    """Read a comma-separated upload into rows of strings."""
    text = _decode_text(raw)
    try:
        rows = list(csv.reader(io.StringIO(text)))
    except csv.Error as exc:
        raise DocumentReadError(f"Could not read CSV: {exc}") from exc
    return GridDocument(rows=rows)


READERS: dict[str, Callable[[bytes], DocumentInput]] = {
    "txt": read_text,
    "md": read_text,
    "markdown": read_text,
    "pdf": read_pdf,
    "xlsx": read_xlsx,
    "xls": read_xls,
    "csv": read_csv,
}


def file_extension(filename: str, content_type: str | None = None) -> str:
    """Return the lower-cased extension, falling back to the content type."""
    name = filename.rsplit("/", 1)[-1]
    if "." in name:
        return name.rsplit(".", 1)[-1].lower()
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    return CONTENT_TYPE_EXTENSIONS.get(mime, "")


def read_document(raw: bytes, filename: str, content_type: str | None = None) -> DocumentInput:
    """Decode an uploaded file into text or a grid, based on its type.

    Raises:
        UnsupportedFileTypeError: If no reader handles the file type.
        DocumentReadError: If the file content cannot be decoded.
    """
    ext = file_extension(filename, content_type)
    reader = READERS.get(ext)
    if reader is None:
        msg = (
            f"Unsupported task document type: {ext or filename!r}. "
            f"Supported: {sorted(READERS)}"
        )
        raise UnsupportedFileTypeError(msg)
    return reader(raw)
