"""
Central data model definitions used across the project.

This module defines the canonical structure of the timetable input and of the
calendar events derived from it, so that:
- the loader, the mapper and the ICS builder share the same field names
- input records stay read-only once loaded
- lesson types are classified once, at the boundary, instead of at every use
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class Teacher:
    full_name: str
    id: str = ""
    short_name: str = ""


@dataclass(frozen=True)
class Room:
    name: str
    id: str = ""


@dataclass(frozen=True)
class LessonCore:
    """
    Fields shared by periodic and block lessons.

    The is_* flags are free-form marker strings from the source system
    (e.g. "A"/"N"), not booleans.
    """

    id: str
    course_name: str
    start_time: str
    end_time: str
    room: str = ""
    campus: str = ""
    teachers: Tuple[Teacher, ...] = ()
    study_id: str = ""
    course_id: str = ""
    course_code: str = ""
    period_id: str = ""
    faculty_code: str = ""
    room_structured: Optional[Room] = None
    is_seminar: str = ""
    is_consultation: str = ""
    is_default_campus: str = ""


@dataclass(frozen=True)
class PeriodicLesson(LessonCore):
    """
    A lesson repeating on a fixed weekday.

    day_of_week uses 0=Sunday .. 6=Saturday. A non-empty week marker means the
    lesson only runs in odd or even weeks.
    """

    day_of_week: int = 0
    periodicity: int = 1
    week: str = ""
    type_name: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class BlockLesson(LessonCore):
    """A one-off lesson on a single date (YYYYMMDD)."""

    date: str = ""
    type_name: Optional[str] = None


@dataclass(frozen=True)
class TimetableData:
    modification_date: str
    periodic_lessons: Tuple[PeriodicLesson, ...] = ()
    block_lessons: Tuple[BlockLesson, ...] = ()
    days_off: Tuple[object, ...] = ()


class LessonKind(Enum):
    LECTURE = "lecture"
    SEMINAR = "seminar"
    OTHER = "other"


@dataclass(frozen=True)
class LessonType:
    """
    Classified lesson type.

    label keeps the original text, which is what ends up in CATEGORIES.
    """

    kind: LessonKind
    label: str

    @classmethod
    def classify(
        cls,
        type_name: Optional[str],
        lecture_tokens: Iterable[str],
        seminar_tokens: Iterable[str],
        default_label: str,
    ) -> "LessonType":
        label = default_label if type_name is None else type_name
        key = label.lower()
        if key in {t.lower() for t in lecture_tokens}:
            return cls(LessonKind.LECTURE, label)
        if key in {t.lower() for t in seminar_tokens}:
            return cls(LessonKind.SEMINAR, label)
        return cls(LessonKind.OTHER, label)


@dataclass(frozen=True)
class CalendarEvent:
    """
    One VEVENT, fully resolved.

    start/end are timezone-aware; rrule is None for one-off events.
    """

    uid: str
    summary: str
    start: datetime
    end: datetime
    location: str
    description: str
    lesson_type: LessonType
    rrule: Optional[str] = None


@dataclass(frozen=True)
class SkippedLesson:
    """A lesson that was left out of the calendar, and why."""

    lesson_id: str
    course_name: str
    source: str  # "periodic" or "block"
    reason: str


@dataclass(frozen=True)
class ConversionResult:
    document: str
    events: Tuple[CalendarEvent, ...] = ()
    skipped: Tuple[SkippedLesson, ...] = ()
