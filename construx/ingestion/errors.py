"""Exceptions raised by the task import pipeline."""

from __future__ import annotations


class TaskImportError(Exception):
    """Base class for task import failures."""


class ValidationError(TaskImportError):
    """A raw record cannot become a canonical task (e.g. empty title)."""


class EmptyDocumentError(TaskImportError):
    """The document produced zero valid task records."""

    def __init__(self, message: str = "No valid tasks found in document.") -> None:
        super().__init__(message)


class UnsupportedFileTypeError(TaskImportError):
    """The uploaded file type has no reader."""


class DocumentReadError(TaskImportError):
    """The uploaded file could not be decoded into text or a grid."""
