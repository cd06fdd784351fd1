"""
Converter configuration.

Defaults reproduce the summer 2025 AIS export. A JSON file can override any
key, e.g. to move the recurrence end to the next semester:

    {"semester_end": "20260131T225959Z", "filename": "timetable_zs_2025.ics"}
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from timetable_ics.errors import ConfigError

logger = logging.getLogger(__name__)

UTC_BASIC_FORMAT = "%Y%m%dT%H%M%SZ"


@dataclass(frozen=True)
class ConverterConfig:
    semester_end: datetime = datetime(2025, 6, 30, 21, 59, 59, tzinfo=timezone.utc)
    timezone: str = "Europe/Bratislava"
    lecture_tokens: Tuple[str, ...] = ("prednáška", "lecture")
    seminar_tokens: Tuple[str, ...] = ("cvičenie", "seminar")
    default_type: str = "prednáška"
    uid_domain: str = "ais.calendar"
    product_id: str = "-//AIS Calendar Converter//EN"
    filename: str = "timetable_ls_2025.ics"

    def tzinfo(self) -> ZoneInfo:
        """
        Zone the lesson wall-clock times are expressed in.
        """
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigError(f"Unknown timezone: {self.timezone!r}") from exc


def _parse_semester_end(value: Any) -> datetime:
    if not isinstance(value, str):
        raise ConfigError(f"semester_end must be a string like 20250630T215959Z, got {value!r}")
    try:
        return datetime.strptime(value.strip(), UTC_BASIC_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError as exc:
        raise ConfigError(f"Invalid semester_end: {value!r}") from exc


def _parse_tokens(key: str, value: Any) -> Tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(x, str) for x in value):
        raise ConfigError(f"{key} must be a list of strings")
    return tuple(value)


def config_from_dict(data: dict[str, Any]) -> ConverterConfig:
    """
    Build a config from a (partial) dict; missing keys keep their defaults.
    """
    known = set(ConverterConfig.__dataclass_fields__)
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    overrides: dict[str, Any] = {}
    for key, value in data.items():
        if key == "semester_end":
            overrides[key] = _parse_semester_end(value)
        elif key in ("lecture_tokens", "seminar_tokens"):
            overrides[key] = _parse_tokens(key, value)
        else:
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"{key} must be a non-empty string")
            overrides[key] = value.strip()

    cfg = replace(ConverterConfig(), **overrides)
    # fail early on a bad zone name instead of in the middle of a conversion
    cfg.tzinfo()
    return cfg


def load_config(path: str | Path | None = None) -> ConverterConfig:
    """
    Load configuration from a JSON file.

    No path or a missing file -> defaults.
    Unreadable or non-JSON file -> warning + defaults.
    Valid JSON with invalid values -> ConfigError.
    """
    if path is None:
        return ConverterConfig()

    config_path = Path(path)
    if not config_path.exists():
        logger.info("Config file %s not found, using defaults", config_path)
        return ConverterConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Could not read config %s (%s), using defaults", config_path, exc)
        return ConverterConfig()

    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must contain a JSON object")
    return config_from_dict(data)
