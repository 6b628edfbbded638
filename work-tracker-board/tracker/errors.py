"""Exceptions raised by the work tracker core."""
from __future__ import annotations


class TrackerError(Exception):
    """Base class for work tracker errors."""


class CSVImportError(TrackerError):
    """The uploaded CSV could not be turned into a document.

    The import is aborted and the current document is left untouched.
    """


class ValidationError(TrackerError):
    """A form or view setting was rejected."""
