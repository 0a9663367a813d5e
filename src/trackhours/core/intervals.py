"""Interval construction, day-by-day evaluation, and run-length compression"""

from datetime import date
from typing import Callable, Iterable, Optional, Sequence

from trackhours.core.models import KnownRules, RuleInterval, UnknownRules
from trackhours.core.utils.dates import (
    LAST_MINUTE,
    MINUTES_PER_DAY,
    adjacent_timestamps,
    daily,
    end_of_day,
    format_minute,
    start_of_day,
    to_minute,
)


# One schedule clause: the day's intervals, or None if the clause does not apply.
DateRuleStep = Callable[[date], Optional[list[RuleInterval]]]
# An override applied to the intervals a base clause produced for the day.
ExceptionRuleStep = Callable[[date, Optional[list[RuleInterval]]], Optional[list[RuleInterval]]]


def date_interval(d: date, open: bool, comment: Optional[str] = None) -> RuleInterval:
    """The whole of day ``d`` as a single interval."""
    return RuleInterval(
        open=open,
        start_timestamp=format_minute(d, 0),
        end_timestamp=format_minute(d, LAST_MINUTE),
        comment=comment,
    )


def day_interval(start_date: str, end_date: str, open: bool, comment: Optional[str] = None) -> RuleInterval:
    """One interval from 00:00 of start_date to 23:59 of end_date."""
    return RuleInterval(
        open=open,
        start_timestamp=start_of_day(start_date),
        end_timestamp=end_of_day(end_date),
        comment=comment,
    )


def minute_intervals(
    d: date,
    start_minute: int,
    end_minute: int,
    open: bool,
    comment: Optional[str] = None,
    ) -> list[RuleInterval]:
    """``open`` from start_minute up to (not including) end_minute, the inverse around it."""
    result = []
    if start_minute > 0:
        result.append(RuleInterval(
            open=not open,
            start_timestamp=format_minute(d, 0),
            end_timestamp=format_minute(d, start_minute - 1),
        ))
    result.append(RuleInterval(
        open=open,
        start_timestamp=format_minute(d, start_minute),
        end_timestamp=format_minute(d, end_minute - 1),
        comment=comment,
    ))
    if end_minute < MINUTES_PER_DAY:
        result.append(RuleInterval(
            open=not open,
            start_timestamp=format_minute(d, end_minute),
            end_timestamp=format_minute(d, LAST_MINUTE),
        ))
    return result


def closed_minute_intervals(d: date, start_minute: int, end_minute: int, comment: Optional[str] = None) -> list[RuleInterval]:
    return minute_intervals(d, start_minute, end_minute, False, comment)


def closed_intervals(d: date, start_hour: int, end_hour: int, comment: Optional[str] = None) -> list[RuleInterval]:
    return closed_minute_intervals(d, to_minute(start_hour, 0), to_minute(end_hour, 0), comment)


def compress_intervals(intervals: Iterable[RuleInterval]) -> list[RuleInterval]:
    """Merge neighbours with equal status and comment whose timestamps are one minute apart."""
    result: list[RuleInterval] = []
    for interval in intervals:
        prev = result[-1] if result else None
        if (
            prev is not None
            and prev.open == interval.open
            and prev.comment == interval.comment
            and adjacent_timestamps(prev.end_timestamp, interval.start_timestamp)
        ):
            result[-1] = prev.model_copy(update={"end_timestamp": interval.end_timestamp})
        else:
            result.append(interval)
    return result


def to_known(rule: UnknownRules, intervals: Iterable[RuleInterval]) -> KnownRules:
    return KnownRules(
        text=rule.text,
        start_date=rule.start_date,
        end_date=rule.end_date,
        rules=list(rule.rules),
        intervals=compress_intervals(intervals),
    )


def reduce_predicates(predicates: Sequence[DateRuleStep]) -> Callable[[date], list[RuleInterval]]:
    """First applicable clause wins; a day no clause covers is open all day."""
    def evaluate(d: date) -> list[RuleInterval]:
        for p in predicates:
            r = p(d)
            if r:
                return r
        return [date_interval(d, True)]
    return evaluate


def reduce_exception_steps(exceptions: Sequence[ExceptionRuleStep]) -> ExceptionRuleStep:
    """First override that returns intervals wins; otherwise the base intervals stand."""
    def apply(d: date, intervals: Optional[list[RuleInterval]]) -> Optional[list[RuleInterval]]:
        for f in exceptions:
            r = f(d, intervals)
            if r:
                return r
        return intervals
    return apply


def compile_rule(rule: UnknownRules, predicates: Sequence[DateRuleStep]) -> KnownRules:
    """Expand ``predicates`` over every day of the rule and compress the result."""
    return to_known(rule, daily(rule.start_date, rule.end_date, reduce_predicates(predicates)))
