"""Lexical grammar for the narrative schedule: months, weekdays, clock times, spans, date ranges"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

from trackhours.core.parsing import (
    end_anchored,
    first_of,
    keep_left,
    keep_right,
    map_parser,
    optional,
    regex,
    separated_by1,
    sequence,
)
from trackhours.core.utils.dates import MINUTES_PER_DAY, short_date, to_minute


MONTHS = (
    r"(Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|Jun(?:e)?|Jul(?:y)?|Aug(?:ust)?"
    r"|Sep(?:tember)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)
MONTHS_TABLE = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
DAY_NUMBER = r"([1-3][0-9]|[1-9])"
DATE_RANGE_RE = rf"{MONTHS}\s+{DAY_NUMBER}(?:\s*(?:-|thru|through)\s*(?:{MONTHS}\s+)?{DAY_NUMBER})?"
HEADING_DATE_RE = re.compile(rf"{MONTHS}\s+\b(\d{{1,2}})\b(?:\s*-\s*(\d{{1,2}}))?", re.IGNORECASE)
TIME_RE = r"(\d{1,2})(?::(\d{2}))?\s*([ap](?:\.m\.|m))"
WEEKDAY_RE = r"\b(Sun(?:day)?|Mon(?:day)?|Tue(?:sday)?|Wed(?:nesday)?|Thu(?:rs(?:day)?)?|Fri(?:day)?|Sat(?:urday)?)s?\b"

WEEKDAYS: dict[str, int] = {"Sun": 0, "Mon": 1, "Tue": 2, "Wed": 3, "Thu": 4, "Fri": 5, "Sat": 6}
SATURDAY, SUNDAY = WEEKDAYS["Sat"], WEEKDAYS["Sun"]


def month_to_iso(month: str) -> str:
    """'September' -> '09'"""
    key = month[:3].title()
    if key not in MONTHS_TABLE:
        raise ValueError(f"Failed to parse month: {month}")
    return f"{MONTHS_TABLE.index(key) + 1:02d}"


@dataclass(frozen=True)
class DateRange:
    """Year-less inclusive range of month/day strings ('03', '12')."""
    start_month: str
    start_day:   str
    end_month:   str
    end_day:     str

    def contains(self, d: date) -> bool:
        fmt = short_date(d)
        return f"{d.year}-{self.start_month}-{self.start_day}" <= fmt <= f"{d.year}-{self.end_month}-{self.end_day}"

    def started_by(self, d: date) -> bool:
        return short_date(d) >= f"{d.year}-{self.start_month}-{self.start_day}"


@dataclass(frozen=True)
class TimeSpan:
    """Minute bounds (end exclusive). ``open`` is the status between the bounds."""
    start_minute: int
    end_minute:   int
    open:         bool = False


@dataclass(frozen=True)
class WeekdayException:
    """From ``starting`` onward, ``weekday`` stays closed until ``open_minute``."""
    weekday:     int
    starting:    DateRange
    open_minute: int


# --- tokens ---

whitespace = regex(r"\s+")
separator = regex(r"\s*(?:,\s*(?:and)?|and)\s*")
optional_colon = regex(r"\s*[,:]?\s*")

month = map_parser(regex(MONTHS), lambda m: month_to_iso(m.group(1)))
day_number = map_parser(regex(DAY_NUMBER), lambda m: m.group(1).zfill(2))
weekday = map_parser(regex(WEEKDAY_RE), lambda m: WEEKDAYS[m.group(1)[:3].title()])


def _date_range(m: re.Match) -> DateRange:
    start_month = month_to_iso(m.group(1))
    end_month = month_to_iso(m.group(3)) if m.group(3) else start_month
    start_day = m.group(2).zfill(2)
    return DateRange(start_month, start_day, end_month, (m.group(4) or m.group(2)).zfill(2))


date_range = map_parser(regex(DATE_RANGE_RE), _date_range)


def _time_minute(m: re.Match) -> int:
    pm = m.group(3).lower().startswith("p")
    return to_minute(int(m.group(1)) % 12 + (12 if pm else 0), int(m.group(2) or 0))


time_to_minute = first_of(
    map_parser(regex(TIME_RE), _time_minute),
    map_parser(regex(r"noon"), lambda _: to_minute(12, 0)),
)

time_span = first_of(
    # "8:00 AM to 8:45 PM"
    map_parser(
        sequence(
            keep_right(regex(r"\s*(?:from\s+)?"), time_to_minute),
            keep_right(regex(r"\s+to\s+"), keep_left(time_to_minute, optional(whitespace))),
        ),
        lambda v: TimeSpan(v[0], v[1], open=False),
    ),
    # "before 2 p.m. and after 6:45 p.m."
    map_parser(
        sequence(
            keep_right(regex(r"\s*before\s+"), time_to_minute),
            keep_right(regex(r"\s+and after\s+"), keep_left(time_to_minute, optional(whitespace))),
        ),
        lambda v: TimeSpan(v[0], v[1], open=False),
    ),
    map_parser(regex(r"\s*all day\s*"), lambda _: TimeSpan(0, MINUTES_PER_DAY, open=True)),
)

# "Friday, September 15" -> "09-15"
long_date = map_parser(
    sequence(
        keep_left(weekday, separator),
        keep_left(month, optional(whitespace)),
        day_number,
    ),
    lambda v: f"{v[1]}-{v[2]}",
)

# "Tuesdays*, Wednesdays, Thursdays* and Fridays" -> [2, 3, 4, 5]
weekday_list = keep_left(
    separated_by1(keep_left(weekday, optional(regex(r"\*"))), separator),
    optional_colon,
)

# "*On Tuesdays beginning March 12, the cycling track will be open after 8:45 p.m."
on_weekday_exception = map_parser(
    sequence(
        keep_right(regex(r"\s*\*?On\s+"), weekday),
        keep_right(regex(r"\s*beginning\s*"), date_range),
        keep_right(regex(r"\s*,\s+the (?:cycling )?track will be open after\s*"), time_to_minute),
    ),
    lambda v: WeekdayException(v[0], v[1], v[2]),
)

weekday_exceptions = keep_right(
    regex(r"\s*\(\s*"),
    keep_left(separated_by1(on_weekday_exception, regex(r"\s*\.?\s*")), regex(r"\s*\)\s*")),
)

exception_prelude = end_anchored(regex(r"\s*EXCEPT:\s*"))


# --- headings and body lines ---

def parse_heading_dates(year: int, text: str) -> Optional[tuple[str, str]]:
    """Derive (start_date, end_date) from a heading like 'March 1 - May 31' or 'August 5-13'."""
    matches = HEADING_DATE_RE.finditer(text)
    m = next(matches, None)
    if m is None:
        return None
    start_month = month_to_iso(m.group(1))
    start_date = f"{year}-{start_month}-{m.group(2).zfill(2)}"
    end_date = start_date
    if m.group(3):
        end_date = f"{year}-{start_month}-{m.group(3).zfill(2)}"
    elif (m := next(matches, None)) is not None:
        end_date = f"{year}-{month_to_iso(m.group(1))}-{m.group(2).zfill(2)}"
    return start_date, end_date


def clean_rule_line(text: str) -> str:
    """Normalize an extracted body line: HTML space/bullet entities, runs of spaces, edges."""
    text = text.replace("&nbsp;", " ").replace("&bull;", "-")
    return re.sub(r"[ ]+", " ", text).strip()
