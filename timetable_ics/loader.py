"""
Loading (AIS JSON -> TimetableData).

The AIS timetable export looks like:

    {
      "modificationDate": "20250210",
      "periodicLessons": [{"dayOfWeek": "2", "startTime": "09:00", ...}],
      "blockLessons": [{"date": "20250315", "startTime": "14:00", ...}],
      "daysOff": []
    }

Only the structure is checked here. Time strings are passed through untouched,
deciding whether a lesson is usable is the mapper's job.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import requests

from timetable_ics.errors import TimetableParseError
from timetable_ics.model import BlockLesson, PeriodicLesson, Room, Teacher, TimetableData


def _require_dict(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise TimetableParseError(f"{where}: expected an object, got {type(value).__name__}")
    return value


def _str(obj: dict[str, Any], key: str, where: str, required: bool = False) -> str:
    value = obj.get(key)
    if value is None:
        if required:
            raise TimetableParseError(f"{where}.{key}: missing")
        return ""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise TimetableParseError(f"{where}.{key}: expected a string, got {type(value).__name__}")
    return str(value)


def _optional_str(obj: dict[str, Any], key: str, where: str) -> Optional[str]:
    if obj.get(key) is None:
        return None
    return _str(obj, key, where)


def _int(obj: dict[str, Any], key: str, where: str, default: Optional[int] = None) -> int:
    value = obj.get(key)
    if value is None or value == "":
        if default is None:
            raise TimetableParseError(f"{where}.{key}: missing")
        return default
    if isinstance(value, bool):
        raise TimetableParseError(f"{where}.{key}: expected an integer, got {value!r}")
    try:
        return int(str(value).strip())
    except ValueError:
        raise TimetableParseError(f"{where}.{key}: expected an integer, got {value!r}") from None


def _yyyymmdd(obj: dict[str, Any], key: str, where: str) -> str:
    value = _str(obj, key, where, required=True).strip()
    if len(value) != 8 or not value.isdigit():
        raise TimetableParseError(f"{where}.{key}: expected YYYYMMDD, got {value!r}")
    try:
        datetime.strptime(value, "%Y%m%d")
    except ValueError:
        raise TimetableParseError(f"{where}.{key}: no such calendar date {value!r}") from None
    return value


def _list(obj: dict[str, Any], key: str) -> list[Any]:
    value = obj.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise TimetableParseError(f"{key}: expected a list, got {type(value).__name__}")
    return value


def _teachers(raw: dict[str, Any], where: str) -> tuple[Teacher, ...]:
    out: list[Teacher] = []
    for i, t in enumerate(_list(raw, "teachers")):
        t_where = f"{where}.teachers[{i}]"
        t = _require_dict(t, t_where)
        out.append(
            Teacher(
                full_name=_str(t, "fullName", t_where),
                id=_str(t, "id", t_where),
                short_name=_str(t, "shortName", t_where),
            )
        )
    return tuple(out)


def _room(raw: dict[str, Any], where: str) -> Optional[Room]:
    value = raw.get("roomStructured")
    if value is None:
        return None
    r_where = f"{where}.roomStructured"
    value = _require_dict(value, r_where)
    return Room(name=_str(value, "name", r_where), id=_str(value, "id", r_where))


def _core_fields(raw: dict[str, Any], where: str) -> dict[str, Any]:
    """
    Fields shared by both lesson shapes, as keyword arguments.
    """
    return {
        "id": _str(raw, "id", where),
        "course_name": _str(raw, "courseName", where, required=True),
        "start_time": _str(raw, "startTime", where, required=True),
        "end_time": _str(raw, "endTime", where, required=True),
        "room": _str(raw, "room", where),
        "campus": _str(raw, "campus", where),
        "teachers": _teachers(raw, where),
        "study_id": _str(raw, "studyId", where),
        "course_id": _str(raw, "courseId", where),
        "course_code": _str(raw, "courseCode", where),
        "period_id": _str(raw, "periodId", where),
        "faculty_code": _str(raw, "facultyCode", where),
        "room_structured": _room(raw, where),
        "is_seminar": _str(raw, "isSeminar", where),
        "is_consultation": _str(raw, "isConsultation", where),
        "is_default_campus": _str(raw, "isDefaultCampus", where),
    }


def parse_periodic_lesson(raw: Any, where: str = "periodicLesson") -> PeriodicLesson:
    raw = _require_dict(raw, where)
    day = _int(raw, "dayOfWeek", where)
    if not 0 <= day <= 6:
        raise TimetableParseError(f"{where}.dayOfWeek: expected 0..6 (0=Sunday), got {day}")
    periodicity = _int(raw, "periodicity", where, default=1)
    if periodicity < 1:
        raise TimetableParseError(f"{where}.periodicity: must be >= 1, got {periodicity}")

    return PeriodicLesson(
        **_core_fields(raw, where),
        day_of_week=day,
        periodicity=periodicity,
        week=_str(raw, "week", where),
        type_name=_optional_str(raw, "typeName", where),
        note=_optional_str(raw, "note", where),
    )


def parse_block_lesson(raw: Any, where: str = "blockLesson") -> BlockLesson:
    raw = _require_dict(raw, where)
    return BlockLesson(
        **_core_fields(raw, where),
        date=_yyyymmdd(raw, "date", where),
        type_name=_optional_str(raw, "typeName", where),
    )


def parse_timetable(data: Any) -> TimetableData:
    """
    Validate decoded JSON and build a TimetableData.

    Raises TimetableParseError naming the first offending field.
    """
    root = _require_dict(data, "timetable")
    periodic = tuple(
        parse_periodic_lesson(raw, f"periodicLessons[{i}]") for i, raw in enumerate(_list(root, "periodicLessons"))
    )
    block = tuple(parse_block_lesson(raw, f"blockLessons[{i}]") for i, raw in enumerate(_list(root, "blockLessons")))

    return TimetableData(
        modification_date=_yyyymmdd(root, "modificationDate", "timetable"),
        periodic_lessons=periodic,
        block_lessons=block,
        days_off=tuple(_list(root, "daysOff")),
    )


def load_timetable_json(text: str) -> TimetableData:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TimetableParseError(f"Invalid JSON: {exc}") from exc
    return parse_timetable(data)


def load_timetable_file(path: str | Path) -> TimetableData:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise TimetableParseError(f"Cannot read {p}: {exc}") from exc
    return load_timetable_json(text)


def fetch_timetable(url: str, timeout: float = 30, session: Any = None) -> TimetableData:
    """
    Download a timetable export over HTTP(S).

    session may be a requests.Session (or anything with a compatible get()),
    e.g. one that already carries the AIS login cookies.
    """
    http = session if session is not None else requests
    try:
        resp = http.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise TimetableParseError(f"Cannot fetch {url}: {exc}") from exc
    return load_timetable_json(resp.text)


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))
