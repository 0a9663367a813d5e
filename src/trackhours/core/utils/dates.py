"""Minute-of-day and calendar-date arithmetic with locale-free string forms"""

from datetime import date, datetime, timedelta
from typing import Callable, TypeVar


T = TypeVar("T")

SHORT_DATE_FORMAT = "%Y-%m-%d"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


def to_minute(hour: int, minute: int) -> int:
    """Minute of day; hours outside 0-23 are allowed (to_minute(24, -1) == 23:59)."""
    return hour * 60 + minute


MINUTES_PER_DAY = to_minute(24, 0)
LAST_MINUTE = to_minute(24, -1)


def parse_date(text: str) -> date:
    """Parse a short date ('2024-03-12') into a date."""
    return datetime.strptime(text, SHORT_DATE_FORMAT).date()


def short_date(d: date) -> str:
    return d.strftime(SHORT_DATE_FORMAT)


def month_day(d: date) -> str:
    """'09-15' style month and day, used to match year-less dates."""
    return d.strftime("%m-%d")


def weekday_number(d: date) -> int:
    """Weekday with Sunday as 0 and Saturday as 6."""
    return d.isoweekday() % 7


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def format_time(day: str, hour: int, minute: int) -> str:
    return f"{day} {hour:02d}:{minute:02d}"


def format_minute(d: date, minute: int) -> str:
    """Timestamp ``minute`` minutes after midnight of ``d``, rolling over days as needed."""
    return (datetime.combine(d, datetime.min.time()) + timedelta(minutes=minute)).strftime(TIMESTAMP_FORMAT)


def start_of_day(day: str) -> str:
    return format_time(day, 0, 0)


def end_of_day(day: str) -> str:
    return format_time(day, 23, 59)


def parse_timestamp(timestamp: str) -> datetime:
    return datetime.strptime(timestamp, TIMESTAMP_FORMAT)


def timestamp_date(timestamp: str) -> str:
    return timestamp.split(" ")[0]


def time_to_minutes(time: str) -> int:
    """'18:45' -> 1125"""
    h, m = time.split(":")
    return to_minute(int(h), int(m))


def timestamp_to_minutes(timestamp: str) -> int:
    return time_to_minutes(timestamp.split(" ")[1])


def adjacent_timestamps(a: str, b: str) -> bool:
    """True if ``b`` is exactly one minute after ``a``."""
    return parse_timestamp(a) + timedelta(minutes=1) == parse_timestamp(b)


def daily(start_date: str, end_date: str, f: Callable[[date], list[T]]) -> list[T]:
    """Call ``f`` for every day from start_date to end_date inclusive and concatenate the results."""
    result: list[T] = []
    day, end = parse_date(start_date), parse_date(end_date)
    while day <= end:
        result.extend(f(day))
        day = add_days(day, 1)
    return result


# --- clamping and friendly forms for one-day views ---

def clamp_start(day: str, timestamp: str) -> str:
    """Start time of an interval as seen on ``day`` ('00:00' if it began earlier)."""
    ts_date, ts_time = timestamp.split(" ")
    return ts_time if ts_date == day else "00:00"


def clamp_end(day: str, timestamp: str) -> str:
    ts_date, ts_time = timestamp.split(" ")
    return ts_time if ts_date == day else "23:59"


def interval_minutes(h_start: str, h_end: str) -> int:
    return time_to_minutes(h_end) - time_to_minutes(h_start)


def friendly_date(day: str) -> str:
    """'2024-03-12' -> 'Tue, Mar 12'"""
    d = parse_date(day)
    return f"{d.strftime('%a, %b')} {d.day}"


def _friendly_minute(minutes: int) -> str:
    hh, mm = divmod(minutes, 60)
    h12 = hh % 12
    ampm = "am" if h12 == hh else "pm"
    return f"{12 if h12 == 0 else h12}{'' if mm == 0 else f':{mm:02d}'}{ampm}"


def friendly_time(time: str) -> str:
    """'18:45' -> '6:45pm'"""
    return _friendly_minute(time_to_minutes(time))


def friendly_time_end(time: str) -> str:
    """Inclusive end time shown as the exclusive minute after it ('13:59' -> '2pm')."""
    return _friendly_minute(time_to_minutes(time) + 1)


def friendly_time_span(h_start: str, h_end: str) -> str:
    if h_start == "00:00" and h_end == "23:59":
        return "all day"
    if h_start == "00:00":
        return f"until {friendly_time_end(h_end)}"
    if h_end == "23:59":
        return f"from {friendly_time(h_start)}"
    return f"from {friendly_time(h_start)} to {friendly_time_end(h_end)}"
