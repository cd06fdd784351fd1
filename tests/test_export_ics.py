"""
Unit tests for the ICS document builder.

Covers:
- text escaping of free-text fields
- UTC basic date format
- exact VEVENT layout (with and without RRULE)
- colour/category table per lesson kind
- empty calendar envelope and immutable builder
- atomic file writing
"""

import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

from timetable_ics.config import ConverterConfig
from timetable_ics.export_ics import CRLF, DocumentBuilder, format_utc, ics_escape, render_event, write_ics
from timetable_ics.model import CalendarEvent, LessonKind, LessonType

UTC = timezone.utc

EMPTY_CALENDAR = (
    "BEGIN:VCALENDAR\r\n"
    "VERSION:2.0\r\n"
    "PRODID:-//AIS Calendar Converter//EN\r\n"
    "CALSCALE:GREGORIAN\r\n"
    "METHOD:PUBLISH\r\n"
    "END:VCALENDAR"
)


def _event(kind: LessonKind = LessonKind.LECTURE, label: str = "prednáška", rrule=None) -> CalendarEvent:
    return CalendarEvent(
        uid="uid-1",
        summary="Algorithms",
        start=datetime(2025, 2, 11, 9, 0, tzinfo=UTC),
        end=datetime(2025, 2, 11, 10, 30, tzinfo=UTC),
        location="R101, Main",
        description="Course: Algorithms\nRoom: R101",
        lesson_type=LessonType(kind, label),
        rrule=rrule,
    )


class TestEscape(unittest.TestCase):
    def test_special_characters_get_one_backslash(self) -> None:
        self.assertEqual(ics_escape("a,b;c\\d"), "a\\,b\\;c\\\\d")

    def test_newline_becomes_literal_backslash_n(self) -> None:
        self.assertEqual(ics_escape("line1\nline2"), "line1\\nline2")
        self.assertEqual(ics_escape("line1\r\nline2"), "line1\\nline2")

    def test_plain_text_unchanged(self) -> None:
        self.assertEqual(ics_escape("Matematická analýza 1"), "Matematická analýza 1")

    def test_backslash_is_not_escaped_twice(self) -> None:
        # "\," in the input is a backslash followed by a comma: both get escaped once
        self.assertEqual(ics_escape("\\,"), "\\\\\\,")


class TestFormatUtc(unittest.TestCase):
    def test_utc_basic_format(self) -> None:
        self.assertEqual(format_utc(datetime(2025, 2, 11, 9, 5, 7, tzinfo=UTC)), "20250211T090507Z")

    def test_drops_microseconds(self) -> None:
        self.assertEqual(format_utc(datetime(2025, 2, 11, 9, 0, 0, 999999, tzinfo=UTC)), "20250211T090000Z")

    def test_converts_to_utc(self) -> None:
        local = datetime(2025, 2, 11, 9, 0, tzinfo=ZoneInfo("Europe/Bratislava"))
        self.assertEqual(format_utc(local), "20250211T080000Z")
        plus_two = datetime(2025, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=2)))
        self.assertEqual(format_utc(plus_two), "20241231T230000Z")


class TestRenderEvent(unittest.TestCase):
    def test_exact_block_with_rrule(self) -> None:
        text = render_event(_event(rrule="FREQ=WEEKLY;UNTIL=20250630T215959Z"), "ais.calendar")
        expected = CRLF.join(
            [
                "BEGIN:VEVENT",
                "DTSTART:20250211T090000Z",
                "DTEND:20250211T103000Z",
                "SUMMARY:Algorithms",
                "LOCATION:R101\\, Main",
                "DESCRIPTION:Course: Algorithms\\nRoom: R101",
                "COLOR:5",
                "X-APPLE-CALENDAR-COLOR:#4CD964",
                "X-GOOGLE-CALENDAR-COLOR:#10",
                "CATEGORIES:prednáška",
                "X-MICROSOFT-CDO-BUSYSTATUS:BUSY",
                "TRANSP:OPAQUE",
                "RRULE:FREQ=WEEKLY;UNTIL=20250630T215959Z",
                "UID:uid-1@ais.calendar",
                "END:VEVENT",
            ]
        )
        self.assertEqual(text, expected)

    def test_no_rrule_line_without_rule(self) -> None:
        text = render_event(_event(), "ais.calendar")
        self.assertNotIn("RRULE", text)
        self.assertIn("TRANSP:OPAQUE\r\nUID:uid-1@ais.calendar", text)

    def test_colours_per_kind(self) -> None:
        seminar = render_event(_event(LessonKind.SEMINAR, "cvičenie"), "x")
        self.assertIn("COLOR:9\r\n", seminar)
        self.assertIn("X-APPLE-CALENDAR-COLOR:#FF2D55", seminar)
        self.assertIn("X-GOOGLE-CALENDAR-COLOR:#11", seminar)
        self.assertIn("CATEGORIES:cvičenie", seminar)

        other = render_event(_event(LessonKind.OTHER, "Lab; group A"), "x")
        self.assertIn("COLOR:0\r\n", other)
        self.assertIn("X-APPLE-CALENDAR-COLOR:#007AFF", other)
        self.assertIn("X-GOOGLE-CALENDAR-COLOR:#9", other)
        self.assertIn("CATEGORIES:Lab\\; group A", other)


class TestDocumentBuilder(unittest.TestCase):
    def test_empty_calendar(self) -> None:
        self.assertEqual(DocumentBuilder().render(), EMPTY_CALENDAR)

    def test_add_event_returns_new_builder(self) -> None:
        empty = DocumentBuilder()
        one = empty.add_event(
            "uid-1",
            "Algorithms",
            datetime(2025, 2, 11, 9, 0, tzinfo=UTC),
            datetime(2025, 2, 11, 10, 30, tzinfo=UTC),
            "R101, Main",
            "desc",
            LessonType(LessonKind.LECTURE, "lecture"),
        )
        self.assertEqual(len(empty.events), 0)
        self.assertEqual(len(one.events), 1)
        self.assertEqual(empty.render(), EMPTY_CALENDAR)

    def test_render_is_repeatable_and_wraps_events(self) -> None:
        builder = DocumentBuilder().add(_event()).add(_event(LessonKind.SEMINAR, "cvičenie"))
        text = builder.render()
        self.assertEqual(text, builder.render())
        self.assertTrue(text.startswith("BEGIN:VCALENDAR\r\nVERSION:2.0\r\n"))
        self.assertTrue(text.endswith("END:VEVENT\r\nEND:VCALENDAR"))
        self.assertEqual(text.count("BEGIN:VEVENT"), 2)
        # every line break is CRLF
        self.assertNotIn("\n", text.replace("\r\n", ""))

    def test_defaults_follow_config(self) -> None:
        cfg = ConverterConfig()
        builder = DocumentBuilder()
        self.assertEqual(builder.product_id, cfg.product_id)
        self.assertEqual(builder.uid_domain, cfg.uid_domain)

    def test_custom_product_id_and_domain(self) -> None:
        text = DocumentBuilder(product_id="-//Test//EN", uid_domain="example.org").add(_event()).render()
        self.assertIn("PRODID:-//Test//EN\r\n", text)
        self.assertIn("UID:uid-1@example.org\r\n", text)


class TestWriteIcs(unittest.TestCase):
    def test_writes_utf8_and_keeps_crlf(self) -> None:
        document = DocumentBuilder().add(_event(LessonKind.SEMINAR, "cvičenie")).render()
        with tempfile.TemporaryDirectory() as d:
            out = write_ics(document, Path(d) / "sub" / "out.ics")
            raw = out.read_bytes()
            self.assertEqual(raw.decode("utf-8"), document)
            self.assertIn(b"\r\nEND:VCALENDAR", raw)
            # no temporary files left behind
            self.assertEqual([p.name for p in out.parent.iterdir()], ["out.ics"])


if __name__ == "__main__":
    unittest.main()
