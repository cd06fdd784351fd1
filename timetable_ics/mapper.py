"""
Mapping (TimetableData -> CalendarEvent).

Periodic lessons:
- first occurrence = first date on/after the semester start (modificationDate)
  whose weekday matches the lesson's dayOfWeek (0=Sunday)
- weekly RRULE up to the configured semester end, INTERVAL=2 for lessons with a
  week parity marker, INTERVAL=<periodicity> for periodicity > 1

Block lessons:
- single occurrence on the lesson's own date, no RRULE

Lessons whose start or end hour is 0 or unparseable are skipped (midnight
lessons never make it into the calendar). Skips are collected, not raised.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, List, Optional, Tuple, Union

from timetable_ics.config import ConverterConfig
from timetable_ics.errors import InvalidLessonTime
from timetable_ics.export_ics import DocumentBuilder, format_utc
from timetable_ics.model import (
    BlockLesson,
    CalendarEvent,
    LessonType,
    PeriodicLesson,
    SkippedLesson,
    TimetableData,
)

logger = logging.getLogger(__name__)

DEFAULTS = ConverterConfig()

UidFactory = Callable[[], str]


def new_uid() -> str:
    return str(uuid.uuid4())


def parse_yyyymmdd(value: str) -> date:
    return date(int(value[0:4]), int(value[4:6]), int(value[6:8]))


def sunday_based_weekday(d: date) -> int:
    """0=Sunday .. 6=Saturday (date.weekday() is 0=Monday)."""
    return (d.weekday() + 1) % 7


def first_occurrence(semester_start: date, day_of_week: int) -> date:
    days_until_first = (day_of_week - sunday_based_weekday(semester_start) + 7) % 7
    return semester_start + timedelta(days=days_until_first)


def parse_clock(hhmm: str, end_of_day: bool = False) -> Tuple[int, int]:
    """
    Parse 'HH:MM' into (hour, minute).

    Raises InvalidLessonTime if the hour is 0 or not a number, or if either
    part is out of range. "00:xx" is rejected on purpose: lessons starting or
    ending in the midnight hour are dropped. With end_of_day, "24:00" is
    accepted and returned as (24, 0).
    """
    parts = hhmm.strip().split(":")
    try:
        hour = int(parts[0])
    except ValueError:
        raise InvalidLessonTime(f"unparseable hour in {hhmm!r}") from None
    if not hour:
        raise InvalidLessonTime(f"hour is 0 in {hhmm!r}")
    if hour > 24 or hour < 0 or (hour == 24 and not end_of_day):
        raise InvalidLessonTime(f"hour out of range in {hhmm!r}")

    minute = 0
    if len(parts) > 1:
        try:
            minute = int(parts[1])
        except ValueError:
            raise InvalidLessonTime(f"unparseable minute in {hhmm!r}") from None
    if not 0 <= minute <= 59:
        raise InvalidLessonTime(f"minute out of range in {hhmm!r}")
    if hour == 24 and minute:
        raise InvalidLessonTime(f"{hhmm!r} is past the end of the day")
    return hour, minute


def build_rrule(lesson: PeriodicLesson, until: datetime) -> str:
    rrule = f"FREQ=WEEKLY;UNTIL={format_utc(until)}"
    if lesson.periodicity > 1 or lesson.week:
        interval = 2 if lesson.week else lesson.periodicity
        rrule += f";INTERVAL={interval}"
    return rrule


def build_description(lesson: Union[PeriodicLesson, BlockLesson], lesson_type: LessonType) -> str:
    lines = [
        f"Course: {lesson.course_name}",
        f"Type: {lesson_type.label}",
        f"Teachers: {', '.join(t.full_name for t in lesson.teachers)}",
        f"Room: {lesson.room}",
        f"Campus: {lesson.campus}",
    ]
    note = getattr(lesson, "note", None)
    if note:
        lines.append(f"Note: {note}")
    return "\n".join(lines)


@dataclass(frozen=True)
class MappingResult:
    events: Tuple[CalendarEvent, ...]
    skipped: Tuple[SkippedLesson, ...]


class EventMapper:
    """
    Turns lessons into calendar events.

    semester_end bounds every RRULE; tz is the zone of the lesson times;
    uid_factory produces the per-event identifier (inject a deterministic one
    in tests).
    """

    def __init__(
        self,
        semester_end: datetime,
        tz: tzinfo,
        lecture_tokens: Tuple[str, ...] = DEFAULTS.lecture_tokens,
        seminar_tokens: Tuple[str, ...] = DEFAULTS.seminar_tokens,
        default_type: str = DEFAULTS.default_type,
        uid_factory: Optional[UidFactory] = None,
    ) -> None:
        self.semester_end = semester_end
        self.tz = tz
        self.lecture_tokens = lecture_tokens
        self.seminar_tokens = seminar_tokens
        self.default_type = default_type
        self.uid_factory = uid_factory or new_uid

    @classmethod
    def from_config(cls, config: ConverterConfig, uid_factory: Optional[UidFactory] = None) -> "EventMapper":
        return cls(
            semester_end=config.semester_end,
            tz=config.tzinfo(),
            lecture_tokens=config.lecture_tokens,
            seminar_tokens=config.seminar_tokens,
            default_type=config.default_type,
            uid_factory=uid_factory,
        )

    def classify(self, type_name: Optional[str]) -> LessonType:
        return LessonType.classify(type_name, self.lecture_tokens, self.seminar_tokens, self.default_type)

    def _instants(self, day: date, lesson: Union[PeriodicLesson, BlockLesson]) -> Tuple[datetime, datetime]:
        start_h, start_m = parse_clock(lesson.start_time)
        end_h, end_m = parse_clock(lesson.end_time, end_of_day=True)
        start = datetime(day.year, day.month, day.day, start_h, start_m, tzinfo=self.tz)
        if end_h == 24:
            # "24:00" is midnight at the start of the next day
            next_day = day + timedelta(days=1)
            end = datetime(next_day.year, next_day.month, next_day.day, tzinfo=self.tz)
        else:
            end = datetime(day.year, day.month, day.day, end_h, end_m, tzinfo=self.tz)
        if end <= start:
            raise InvalidLessonTime(f"end {lesson.end_time!r} is not after start {lesson.start_time!r}")
        return start, end

    def _event(
        self,
        lesson: Union[PeriodicLesson, BlockLesson],
        start: datetime,
        end: datetime,
        rrule: Optional[str],
    ) -> CalendarEvent:
        lesson_type = self.classify(lesson.type_name)
        return CalendarEvent(
            uid=self.uid_factory(),
            summary=lesson.course_name,
            start=start,
            end=end,
            location=f"{lesson.room}, {lesson.campus}",
            description=build_description(lesson, lesson_type),
            lesson_type=lesson_type,
            rrule=rrule,
        )

    def map_periodic(self, lesson: PeriodicLesson, semester_start: date) -> CalendarEvent:
        day = first_occurrence(semester_start, lesson.day_of_week)
        start, end = self._instants(day, lesson)
        return self._event(lesson, start, end, build_rrule(lesson, self.semester_end))

    def map_block(self, lesson: BlockLesson) -> CalendarEvent:
        start, end = self._instants(parse_yyyymmdd(lesson.date), lesson)
        return self._event(lesson, start, end, None)

    def map_timetable(self, data: TimetableData) -> MappingResult:
        """
        Map all lessons, periodic ones first, keeping input order.
        """
        semester_start = parse_yyyymmdd(data.modification_date)
        events: List[CalendarEvent] = []
        skipped: List[SkippedLesson] = []

        for lesson in data.periodic_lessons:
            try:
                events.append(self.map_periodic(lesson, semester_start))
            except InvalidLessonTime as exc:
                skipped.append(_skip(lesson, "periodic", exc))

        for lesson in data.block_lessons:
            try:
                events.append(self.map_block(lesson))
            except InvalidLessonTime as exc:
                skipped.append(_skip(lesson, "block", exc))

        logger.debug("Mapped %d events, skipped %d lessons", len(events), len(skipped))
        return MappingResult(events=tuple(events), skipped=tuple(skipped))


def _skip(lesson: Union[PeriodicLesson, BlockLesson], source: str, exc: InvalidLessonTime) -> SkippedLesson:
    logger.warning("Skipping %s lesson %s (%s): %s", source, lesson.id or "?", lesson.course_name, exc)
    return SkippedLesson(lesson_id=lesson.id, course_name=lesson.course_name, source=source, reason=str(exc))


def build_document(
    data: TimetableData,
    config: ConverterConfig,
    uid_factory: Optional[UidFactory] = None,
) -> Tuple[str, MappingResult]:
    """
    Map a timetable and render the full ICS document.
    """
    mapping = EventMapper.from_config(config, uid_factory).map_timetable(data)
    builder = DocumentBuilder(product_id=config.product_id, uid_domain=config.uid_domain)
    for event in mapping.events:
        builder = builder.add(event)
    return builder.render(), mapping
