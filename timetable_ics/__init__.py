"""
timetable_ics: convert an AIS university timetable export into an iCalendar file.
"""

from timetable_ics.convert import build_calendar, convert_file, convert_timetable_json
from timetable_ics.errors import ConversionFailure, TimetableError, TimetableParseError

__all__ = [
    "build_calendar",
    "convert_file",
    "convert_timetable_json",
    "ConversionFailure",
    "TimetableError",
    "TimetableParseError",
]
