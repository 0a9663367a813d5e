"""Point queries against a compiled multi-year result"""

from typing import Iterable, Optional

from trackhours.core.models import DateResult, KnownResult, KnownRules, RuleInterval, UnknownResult, Year
from trackhours.core.utils.dates import clamp_end, clamp_start, timestamp_date


JANUARY_ASSUMPTION = "[polofield.bike assumption] PF is historically open all January"


def _assumed_january(year: int) -> KnownResult:
    jan1, jan31 = f"{year}-01-01", f"{year}-01-31"
    intervals = [RuleInterval(open=True, start_timestamp=f"{jan1} 00:00", end_timestamp=f"{jan31} 23:59")]
    rule = KnownRules(
        text=f"January {year}",
        start_date=jan1,
        end_date=jan31,
        rules=[JANUARY_ASSUMPTION],
        intervals=intervals,
    )
    return KnownResult(intervals=intervals, rule=rule)


def intervals_for_date(result: Iterable[Year], date: str, assume_open_january: bool = True) -> Optional[DateResult]:
    """Find the rule covering date; known rules keep only intervals touching that day.

    Intervals are filtered, not re-sliced: use clip_to_day for timestamps bounded by the day.
    When nothing covers the date and it falls in the January after the latest year,
    an assumed open-all-month rule is returned.
    """
    max_year: Optional[int] = None
    year = int(date.split("-")[0])
    for sched in result:
        max_year = sched.year if max_year is None else max(max_year, sched.year)
        if sched.year != year:
            continue
        for rule in sched.rules:
            if rule.start_date <= date <= rule.end_date:
                if rule.type == "unknown_rules":
                    return UnknownResult(rule=rule)
                intervals = [
                    i for i in rule.intervals
                    if timestamp_date(i.start_timestamp) <= date <= timestamp_date(i.end_timestamp)
                ]
                return KnownResult(intervals=intervals, rule=rule)

    if assume_open_january and max_year is not None:
        next_year = max_year + 1
        if f"{next_year}-01-01" <= date <= f"{next_year}-01-31":
            return _assumed_january(next_year)
    return None


def clip_to_day(day: str, intervals: Iterable[RuleInterval]) -> list[RuleInterval]:
    """Clamp interval timestamps to day's 00:00-23:59."""
    return [
        i.model_copy(update={
            "start_timestamp": f"{day} {clamp_start(day, i.start_timestamp)}",
            "end_timestamp": f"{day} {clamp_end(day, i.end_timestamp)}",
        })
        for i in intervals
    ]
