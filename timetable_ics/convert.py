"""
Conversion entry points.

    build_calendar()          TimetableData -> ConversionResult (pure)
    convert_timetable_json()  JSON text     -> ConversionResult
    convert_file()            path or URL   -> .ics file on disk

Any failure in the last two is logged and re-raised as ConversionFailure;
nothing is written to disk unless the whole document was rendered.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from timetable_ics.config import ConverterConfig
from timetable_ics.errors import ConversionFailure
from timetable_ics.export_ics import write_ics
from timetable_ics.loader import fetch_timetable, is_url, load_timetable_file, load_timetable_json
from timetable_ics.mapper import UidFactory, build_document
from timetable_ics.model import ConversionResult, TimetableData

logger = logging.getLogger(__name__)


def build_calendar(
    data: TimetableData,
    config: Optional[ConverterConfig] = None,
    uid_factory: Optional[UidFactory] = None,
) -> ConversionResult:
    cfg = config or ConverterConfig()
    document, mapping = build_document(data, cfg, uid_factory)
    return ConversionResult(document=document, events=mapping.events, skipped=mapping.skipped)


def convert_timetable_json(
    text: str,
    config: Optional[ConverterConfig] = None,
    uid_factory: Optional[UidFactory] = None,
) -> ConversionResult:
    try:
        data = load_timetable_json(text)
        return build_calendar(data, config, uid_factory)
    except Exception as exc:
        logger.exception("Error converting timetable")
        raise ConversionFailure(str(exc)) from exc


def load_source(source: str | Path) -> TimetableData:
    """
    Load a timetable from a local file or an http(s) URL.
    """
    if isinstance(source, str) and is_url(source):
        return fetch_timetable(source)
    return load_timetable_file(source)


def convert_file(
    source: str | Path,
    out_path: str | Path | None = None,
    config: Optional[ConverterConfig] = None,
    uid_factory: Optional[UidFactory] = None,
) -> tuple[ConversionResult, Path]:
    """
    Convert a timetable export and write the .ics file.

    Returns the result and the path written. out_path defaults to the
    configured filename in the current directory.
    """
    cfg = config or ConverterConfig()
    target = Path(out_path) if out_path is not None else Path(cfg.filename)
    try:
        data = load_source(source)
        result = build_calendar(data, cfg, uid_factory)
        written = write_ics(result.document, target)
    except Exception as exc:
        logger.exception("Error converting timetable %s", source)
        raise ConversionFailure(str(exc)) from exc

    logger.info("Wrote %d events to %s (%d lessons skipped)", len(result.events), written, len(result.skipped))
    return result, written
