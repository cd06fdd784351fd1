"""
CLI (Command Line Interface).

    timetable-ics convert <timetable.json | url> [-o out.ics] [--config cfg.json]
    timetable-ics preview <timetable.json | url> [--config cfg.json]

convert writes the .ics file, preview only shows what would be exported.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from timetable_ics.config import ConverterConfig, load_config
from timetable_ics.convert import build_calendar, convert_file, load_source
from timetable_ics.errors import ConfigError, ConversionFailure, TimetableError
from timetable_ics.model import ConversionResult

console = Console()


def _print_skipped(result: ConversionResult) -> None:
    if not result.skipped:
        return

    table = Table(title=f"Skipped lessons ({len(result.skipped)})", box=box.SIMPLE)
    table.add_column("Kind")
    table.add_column("ID")
    table.add_column("Course")
    table.add_column("Reason")
    for s in result.skipped:
        table.add_row(s.source, s.lesson_id or "-", s.course_name, s.reason)
    console.print(table)


def _cmd_convert(args: argparse.Namespace, config: ConverterConfig) -> int:
    """
    Convert a timetable export into an .ics file.
    """
    try:
        result, written = convert_file(args.source, args.out, config)
    except ConversionFailure as exc:
        print(f"Conversion failed: {exc}", file=sys.stderr)
        return 1

    print(f"Exported {len(result.events)} events to: {written}")
    if result.skipped:
        print(f"Skipped {len(result.skipped)} lessons (see --verbose or preview)")
    return 0


def _cmd_preview(args: argparse.Namespace, config: ConverterConfig) -> int:
    """
    Show the events that would be exported, without writing anything.
    """
    try:
        data = load_source(args.source)
        result = build_calendar(data, config)
    except TimetableError as exc:
        print(f"Cannot read timetable: {exc}", file=sys.stderr)
        return 1

    if not result.events:
        console.print("No events.")
    else:
        local = config.tzinfo()
        table = Table(title=f"Events ({len(result.events)})", box=box.SIMPLE_HEAVY)
        table.add_column("Course")
        table.add_column("Type")
        table.add_column("First start")
        table.add_column("End")
        table.add_column("Repeats")
        table.add_column("Location")
        for ev in result.events:
            table.add_row(
                ev.summary,
                ev.lesson_type.label,
                ev.start.astimezone(local).strftime("%a %Y-%m-%d %H:%M"),
                ev.end.astimezone(local).strftime("%H:%M"),
                ev.rrule or "once",
                ev.location,
            )
        console.print(table)

    _print_skipped(result)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="timetable-ics", description="AIS timetable to iCalendar converter")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_convert = sub.add_parser("convert", help="Convert a timetable export to .ics")
    p_convert.add_argument("source", type=str, help="Timetable JSON file or http(s) URL")
    p_convert.add_argument("-o", "--out", type=str, default=None, help="Output .ics path")
    p_convert.add_argument("--config", type=str, default=None, help="JSON config file")

    p_preview = sub.add_parser("preview", help="List the events that would be exported")
    p_preview.add_argument("source", type=str, help="Timetable JSON file or http(s) URL")
    p_preview.add_argument("--config", type=str, default=None, help="JSON config file")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        raise SystemExit(1)

    if args.command == "convert":
        raise SystemExit(_cmd_convert(args, config))
    if args.command == "preview":
        raise SystemExit(_cmd_preview(args, config))

    raise SystemExit(2)
