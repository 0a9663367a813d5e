"""Pipeline step functions: load input documents, recognize, and query"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import ValidationError

from trackhours.core.grammar import clean_rule_line, parse_heading_dates
from trackhours.core.lookup import intervals_for_date
from trackhours.core.models import CalendarEntry, DateResult, DebugYear, UnknownRules, Year
from trackhours.core.recognize.calendar import group_calendar_entries, recognize_calendar
from trackhours.core.recognize.recognizers import recognize_years, strip_debug_result


logger = logging.getLogger(__name__)


def load_document(path: str) -> dict[str, Any]:
    """Read a YAML (or JSON) mapping from path."""
    try:
        data = yaml.safe_load(Path(path).read_text())
    except (OSError, yaml.YAMLError) as e:
        raise ValueError(f"Invalid {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid {path}: expected a mapping at the top level")
    return data


def _iso(value: Any) -> Any:
    """YAML reads unquoted dates as date/datetime; the models hold them as ISO text."""
    return value.isoformat() if isinstance(value, (date, datetime)) else value


def _unknown_rules(year: int, raw: Mapping[str, Any]) -> UnknownRules:
    """Build a rule block from raw input, deriving missing dates from its heading."""
    text = clean_rule_line(str(raw.get("text", "")))
    start_date, end_date = _iso(raw.get("start_date")), _iso(raw.get("end_date"))
    if not (start_date and end_date):
        dates = parse_heading_dates(year, text)
        if dates is None:
            raise ValueError(f"No dates in heading {text!r}")
        start_date, end_date = dates
    lines = [clean_rule_line(str(line)) for line in raw.get("rules") or []]
    return UnknownRules(text=text, start_date=start_date, end_date=end_date, rules=[line for line in lines if line])


def load_years(path: str) -> list[Year]:
    """Load narrative rule blocks: {years: [{year, rules: [{text, start_date?, end_date?, rules}]}]}"""
    data = load_document(path)
    try:
        years = [
            Year(year=int(y["year"]), rules=[_unknown_rules(int(y["year"]), r) for r in y.get("rules") or []])
            for y in data.get("years") or []
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid {path}: {e}") from e
    logger.debug("Loaded %d year(s) from %s", len(years), path)
    return years


def load_rainout(data: Any, source: str) -> dict[str, bool]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid {source}: rainout must map dates to booleans")
    return {str(k): bool(v) for k, v in data.items()}


def load_calendar(path: str, rainout_path: Optional[str] = None) -> tuple[list[CalendarEntry], dict[str, bool]]:
    """Load calendar entries and the rain-out map; a separate rain-out file wins over the inline one."""
    data = load_document(path)
    try:
        entries = [
            CalendarEntry.model_validate({k: _iso(v) for k, v in e.items()} if isinstance(e, dict) else e)
            for e in data.get("entries") or []
        ]
    except ValidationError as e:
        raise ValueError(f"Invalid {path}: {e}") from e
    rainout = load_rainout(data.get("rainout"), path)
    if rainout_path:
        extra = load_document(rainout_path)
        rainout.update(load_rainout(extra.get("rainout", extra), rainout_path))
    return entries, rainout


def run_recognize(years: list[Year], strict: bool = False) -> list[DebugYear]:
    """Run the recognizer registry over every rule block."""
    return recognize_years(years, strict=strict)


def run_calendar(entries: list[CalendarEntry], rainout: Mapping[str, bool]) -> list[DebugYear]:
    """Group calendar entries by day and compile each listed day."""
    return recognize_calendar(group_calendar_entries(entries), rainout)


def run_query(
    path: str,
    date: str,
    calendar: bool = False,
    rainout_path: Optional[str] = None,
    strict: bool = False,
    assume_open_january: bool = True,
    ) -> Optional[DateResult]:
    """Compile the document at path and look up one date."""
    if calendar:
        debug = run_calendar(*load_calendar(path, rainout_path))
    else:
        debug = run_recognize(load_years(path), strict)
    return intervals_for_date(strip_debug_result(debug), date, assume_open_january)
