"""
iCalendar (.ics) export.

We convert calendar events into a calendar file that can be imported into:
- Google Calendar
- Outlook
- Apple Calendar

The builder is immutable: add_event() returns a new builder, render() is a pure
function of the collected events.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

from timetable_ics.config import UTC_BASIC_FORMAT, ConverterConfig
from timetable_ics.model import CalendarEvent, LessonKind, LessonType

CRLF = "\r\n"

DEFAULTS = ConverterConfig()


@dataclass(frozen=True)
class EventColor:
    color: str
    apple: str
    google: str


COLORS = {
    LessonKind.LECTURE: EventColor(color="5", apple="4CD964", google="#10"),
    LessonKind.SEMINAR: EventColor(color="9", apple="FF2D55", google="#11"),
    LessonKind.OTHER: EventColor(color="0", apple="007AFF", google="#9"),
}


def ics_escape(text: str) -> str:
    """
    Escape text for ICS TEXT values: backslash, comma and semicolon get a
    backslash prefix, newlines become the literal two characters \\n.
    """
    return (
        text.replace("\\", "\\\\").replace(";", "\\;").replace(",", "\\,").replace("\r\n", "\\n").replace("\n", "\\n")
    )


def format_utc(dt: datetime) -> str:
    """
    Convert an instant to the UTC basic format 'YYYYMMDDTHHMMSSZ'.

    Sub-second precision is dropped.
    """
    return dt.astimezone(timezone.utc).strftime(UTC_BASIC_FORMAT)


def render_event(event: CalendarEvent, uid_domain: str) -> str:
    """
    Render one VEVENT block (CRLF-joined, no trailing line break).
    """
    color = COLORS[event.lesson_type.kind]
    lines = [
        "BEGIN:VEVENT",
        f"DTSTART:{format_utc(event.start)}",
        f"DTEND:{format_utc(event.end)}",
        f"SUMMARY:{ics_escape(event.summary)}",
        f"LOCATION:{ics_escape(event.location)}",
        f"DESCRIPTION:{ics_escape(event.description)}",
        f"COLOR:{color.color}",
        f"X-APPLE-CALENDAR-COLOR:#{color.apple}",
        f"X-GOOGLE-CALENDAR-COLOR:{color.google}",
        f"CATEGORIES:{ics_escape(event.lesson_type.label)}",
        "X-MICROSOFT-CDO-BUSYSTATUS:BUSY",
        "TRANSP:OPAQUE",
    ]
    if event.rrule:
        lines.append(f"RRULE:{event.rrule}")
    lines.append(f"UID:{event.uid}@{uid_domain}")
    lines.append("END:VEVENT")
    return CRLF.join(lines)


@dataclass(frozen=True)
class DocumentBuilder:
    """
    Collects calendar events and renders the VCALENDAR document.
    """

    product_id: str = DEFAULTS.product_id
    uid_domain: str = DEFAULTS.uid_domain
    events: Tuple[CalendarEvent, ...] = ()

    def add(self, event: CalendarEvent) -> "DocumentBuilder":
        return DocumentBuilder(self.product_id, self.uid_domain, self.events + (event,))

    def add_event(
        self,
        uid: str,
        summary: str,
        start: datetime,
        end: datetime,
        location: str,
        description: str,
        lesson_type: LessonType,
        rrule: Optional[str] = None,
    ) -> "DocumentBuilder":
        event = CalendarEvent(
            uid=uid,
            summary=str(summary),
            start=start,
            end=end,
            location=str(location),
            description=str(description),
            lesson_type=lesson_type,
            rrule=rrule,
        )
        return self.add(event)

    def render(self) -> str:
        lines = [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            f"PRODID:{self.product_id}",
            "CALSCALE:GREGORIAN",
            "METHOD:PUBLISH",
        ]
        lines.extend(render_event(ev, self.uid_domain) for ev in self.events)
        lines.append("END:VCALENDAR")
        return CRLF.join(lines)


def write_ics(document: str, out_path: str | Path) -> Path:
    """
    Write a rendered document to disk as UTF-8, keeping CRLF line breaks.

    The file is written to a temporary sibling first and then moved into place,
    so readers never see a half-written calendar.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{out.name}.", suffix=".tmp", dir=out.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(document.encode("utf-8"))
        os.replace(tmp_name, out)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return out
