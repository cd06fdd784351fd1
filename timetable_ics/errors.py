"""
Exception types.

All errors the package raises on purpose derive from TimetableError, so callers
can catch one type at the outermost layer.
"""

from __future__ import annotations


class TimetableError(Exception):
    """Base class for timetable conversion errors."""


class TimetableParseError(TimetableError, ValueError):
    """Input is not a valid timetable (bad JSON, missing or mistyped fields)."""


class ConfigError(TimetableError, ValueError):
    """Configuration file contains an invalid value."""


class ConversionFailure(TimetableError):
    """Conversion aborted. The original exception is available as __cause__."""


class InvalidLessonTime(ValueError):
    """
    A lesson's start/end time cannot be used.

    Raised while mapping a single lesson; the mapper turns it into a skip
    instead of failing the whole conversion.
    """
