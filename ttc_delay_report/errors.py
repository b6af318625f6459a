"""
errors.py

Exceptions raised by the delay report pipeline.

File-system problems (missing or unreadable input) surface as the
built-in OSError; the DelayDataError family is about the *content* of the
data. ChartExportError is an OSError raised when writing a chart image
fails.
"""

from __future__ import annotations


class DelayDataError(Exception):
    """Base class for data-quality failures that abort a report build."""


class SchemaError(DelayDataError):
    """Expected columns are absent after header normalization."""

    def __init__(self, missing: list[str], where: str = "delay data"):
        self.missing = list(missing)
        super().__init__(f"{where} is missing required columns: {', '.join(self.missing)}")


class FormatError(DelayDataError):
    """A date value does not split into exactly year-month-day."""


class CategoryError(DelayDataError):
    """A value falls outside a closed vocabulary (e.g. week-day names)."""


class ChartExportError(OSError):
    """A figure could not be exported as a static image (kaleido/Chrome)."""
