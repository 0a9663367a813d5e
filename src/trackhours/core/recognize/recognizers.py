"""Ordered recognizers that compile narrative schedule notices into intervals.

Two styles share the registry: single-shot recognizers match the whole joined
text of a rule with one regular expression, and line recognizers walk the body
lines through a prelude -> rules -> exception state machine. The first
recognizer in registry order that returns a result wins.
"""

import logging
import re
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Callable, Iterable, NamedTuple, Optional, Protocol, Sequence

from trackhours.core.errors import RuleInvariantError
from trackhours.core.grammar import (
    SATURDAY,
    SUNDAY,
    DateRange,
    TimeSpan,
    WeekdayException,
    date_range,
    exception_prelude,
    long_date,
    separator,
    time_span,
    weekday,
    weekday_exceptions,
    weekday_list,
)
from trackhours.core.intervals import (
    DateRuleStep,
    ExceptionRuleStep,
    closed_intervals,
    closed_minute_intervals,
    compile_rule,
    date_interval,
    day_interval,
    minute_intervals,
    reduce_exception_steps,
    to_known,
)
from trackhours.core.models import DebugYear, KnownRules, RecognizedRule, RuleInterval, UnknownRules, Year
from trackhours.core.parsing import (
    Parser,
    end_anchored,
    first_of,
    keep_left,
    keep_right,
    many1,
    map_parser,
    optional,
    regex,
    separated_by1,
    sequence,
    stream,
)
from trackhours.core.utils.dates import daily, month_day, parse_date, timestamp_to_minutes, weekday_number


logger = logging.getLogger(__name__)

DEFAULT_PROGRAM_COMMENT = "Youth and Adult Sports Programs"


class Recognizer(Protocol):
    name: str

    def __call__(self, rule: UnknownRules) -> Optional[KnownRules]: ...


# --- single-shot recognizers ---

@dataclass(frozen=True)
class RegexRecognizer:
    """Match the space-joined body lines against one pattern and expand a template."""
    name:     str
    pattern:  re.Pattern
    template: Callable[[UnknownRules, re.Match], Optional[list[RuleInterval]]]

    def __call__(self, rule: UnknownRules) -> Optional[KnownRules]:
        m = self.pattern.fullmatch(" ".join(rule.rules))
        intervals = self.template(rule, m) if m else None
        return None if intervals is None else to_known(rule, intervals)


def _hour(value: str, ampm: str) -> int:
    return int(value) % 12 + (12 if ampm.lower() == "p" else 0)


def _closed_for_one_event(rule: UnknownRules, m: re.Match) -> Optional[list[RuleInterval]]:
    start_hour = _hour(m.group("start"), m.group("startampm") or m.group("ampm"))
    end_hour = _hour(m.group("end"), m.group("ampm"))
    if start_hour >= end_hour:
        # "from 9 to 5 p.m.": the shared meridiem would invert the closure
        logger.debug("closed_for_one_event: start %d:00 is not before end %d:00", start_hour, end_hour)
        return None
    comment = m.group("comment").strip()
    return daily(rule.start_date, rule.end_date, lambda d: closed_intervals(d, start_hour, end_hour, comment))


def _open_after(rule: UnknownRules, m: re.Match) -> list[RuleInterval]:
    start_hour = _hour(m.group("start"), m.group("startampm"))
    return daily(rule.start_date, rule.end_date, lambda d: closed_intervals(d, 0, start_hour))


open_all_day_every_day = RegexRecognizer(
    "open_all_day_every_day",
    re.compile(
        r"The Cycle Track will remain open - Polo Fields? Closed"
        r"|The Cycle Track Will be Open Mondays through Sundays all day",
        re.IGNORECASE,
    ),
    lambda rule, m: [day_interval(rule.start_date, rule.end_date, True)],
)

closed_for_outside_lands = RegexRecognizer(
    "closed_for_outside_lands",
    re.compile(
        r"The Cycle Track will be closed for Outside Lands Load in, Event and Load Out"
        r"(?: and Polo Fields Concert Event and Load Out)?",
        re.IGNORECASE,
    ),
    lambda rule, m: [day_interval(rule.start_date, rule.end_date, False, "Outside Lands")],
)

closed_for_one_event = RegexRecognizer(
    "closed_for_one_event",
    re.compile(
        r"The Cycle Track (?:will be )?Closed for (?P<comment>(?:\w+ )+)from (?P<start>\d+) "
        r"(?:(?P<startampm>[ap])\.m\. )?to (?P<end>\d+) (?P<ampm>[ap])\.m\.",
        re.IGNORECASE,
    ),
    _closed_for_one_event,
)

open_after = RegexRecognizer(
    "open_after",
    re.compile(r"The Cycle Track will be open after (?P<start>\d+) (?P<startampm>[ap])\.m\.", re.IGNORECASE),
    _open_after,
)


# --- clause grammars for line recognizers ---

def _closed_on_month_days(month_days: Sequence[str], span: TimeSpan, comment: Optional[str]) -> DateRuleStep:
    def step(d: date) -> Optional[list[RuleInterval]]:
        if month_day(d) in month_days:
            return closed_minute_intervals(d, span.start_minute, span.end_minute, comment)
        return None
    return step


# "Friday, September 15 when track is closed from 7:30 a.m. to 12:30 p.m. for Sacred Heart Walkathon"
fall_exception: Parser[DateRuleStep] = map_parser(
    end_anchored(sequence(
        separated_by1(long_date, separator),
        keep_right(regex(r"\s*when track is closed\s*"), time_span),
        map_parser(regex(r"\s*for\s+(.*)"), lambda m: m.group(1)),
    )),
    lambda v: _closed_on_month_days(*v),
)


def _weekday_in_range(day: int, days: DateRange, span: TimeSpan, comment: Optional[str]) -> DateRuleStep:
    def step(d: date) -> Optional[list[RuleInterval]]:
        if weekday_number(d) == day and days.contains(d):
            return minute_intervals(
                d, span.start_minute, span.end_minute, span.open, comment or DEFAULT_PROGRAM_COMMENT,
            )
        return None
    return step


# "Sundays, from March 3 thru May 12, when track will be open before 10 a.m. and after 6:45 p.m."
# "Sunday, May 19 when track will be open all day with the field closed due to the Bay to Breakers event"
spring_exception: Parser[DateRuleStep] = map_parser(
    end_anchored(sequence(
        weekday,
        keep_right(regex(r"\s*(?:,\s*)?(?:from\s+)?"), date_range),
        keep_right(regex(r"\s*(?:,\s*)?when track will be open\s*"), time_span),
        optional(map_parser(
            regex(r"\s*with the field closed due to the Bay to Breakers event\.?\s*"),
            lambda _: "Bay to Breakers",
        )),
    )),
    lambda v: _weekday_in_range(*v),
)


def weekday_exception_step(exc: WeekdayException) -> ExceptionRuleStep:
    """Move the evening reopening of one weekday to ``exc.open_minute`` from ``exc.starting`` on."""
    def apply(d: date, intervals: Optional[list[RuleInterval]]) -> Optional[list[RuleInterval]]:
        if not intervals or weekday_number(d) != exc.weekday or not exc.starting.started_by(d):
            return None
        if len(intervals) != 3:
            raise RuleInvariantError(f"Expecting 3 intervals on {d}, got {len(intervals)}")
        closure = intervals[1]
        if not closure.comment:
            raise RuleInvariantError(f"Missing comment on the closure of {d}")
        return closed_minute_intervals(
            d, timestamp_to_minutes(closure.start_timestamp), exc.open_minute, closure.comment,
        )
    return apply


# "Tuesdays*, Wednesdays, Thursdays* and Fridays before 2 p.m. and after 6:45 p.m. (*On Tuesdays ...)"
weekday_times_data = end_anchored(sequence(weekday_list, time_span, optional(weekday_exceptions)))


def weekday_times(rule: UnknownRules, comment: Optional[str]) -> Parser[DateRuleStep]:
    first_day, last_day = parse_date(rule.start_date), parse_date(rule.end_date)

    def compile_step(v: tuple) -> DateRuleStep:
        days, span, exceptions_data = v
        exceptions = reduce_exception_steps([weekday_exception_step(e) for e in exceptions_data or []])

        def step(d: date) -> Optional[list[RuleInterval]]:
            if d < first_day or d > last_day or weekday_number(d) not in days:
                return None
            intervals = minute_intervals(
                d, span.start_minute, span.end_minute, span.open, None if span.open else comment,
            )
            return exceptions(d, intervals)
        return step

    return map_parser(weekday_times_data, compile_step)


closed_on_date_range = sequence(
    keep_left(date_range, regex(r"\s*\(closed\s*")),
    keep_left(time_span, regex(r"\s*\)\s*(?:and\s)?")),
)

# "- Saturdays and Sundays all day EXCEPT on July 8 (closed 7:30 AM to 5:30 PM) and July 9 (closed ...)"
weekend_times_data = keep_right(
    regex(r"(?:- )?Saturdays and Sundays all day EXCEPT on "),
    end_anchored(many1(closed_on_date_range)),
)


def weekend_times(rule: UnknownRules, comment: Optional[str]) -> Parser[DateRuleStep]:
    def compile_step(closures: list[tuple[DateRange, TimeSpan]]) -> DateRuleStep:
        def step(d: date) -> Optional[list[RuleInterval]]:
            if weekday_number(d) not in (SATURDAY, SUNDAY):
                return None
            for days, span in closures:
                if days.contains(d):
                    return closed_minute_intervals(d, span.start_minute, span.end_minute, comment)
            return [date_interval(d, True)]
        return step

    return map_parser(weekend_times_data, compile_step)


# "Saturdays and Sundays before 7 a.m. and after 6:15 p.m. EXCEPT:"
weekend_except_data = keep_right(
    regex(r"(?:- )?Saturdays and Sundays\s+"),
    keep_left(time_span, exception_prelude),
)


def weekend_except(rule: UnknownRules, comment: Optional[str]) -> Parser[DateRuleStep]:
    def compile_step(span: TimeSpan) -> DateRuleStep:
        def step(d: date) -> Optional[list[RuleInterval]]:
            if weekday_number(d) not in (SATURDAY, SUNDAY):
                return None
            return closed_minute_intervals(d, span.start_minute, span.end_minute, comment)
        return step

    return map_parser(weekend_except_data, compile_step)


def _open_with_note(month_days: Sequence[str], comment: str) -> DateRuleStep:
    def step(d: date) -> Optional[list[RuleInterval]]:
        return [date_interval(d, True, comment)] if month_day(d) in month_days else None
    return step


# "Monday, January 22 and Tuesday, January 23 - Partial closures of the track in the morning for asphalt repairs."
partial_closures: Parser[DateRuleStep] = map_parser(
    end_anchored(sequence(
        sequence(long_date, keep_right(regex(r"\s*and\s*"), long_date)),
        map_parser(regex(r"\s*-\s*(Partial closures.*)\.\s*"), lambda m: m.group(1)),
    )),
    lambda v: _open_with_note(*v),
)


def _closed_on_dated_spans(day_spans: Sequence[tuple[str, TimeSpan]], comment: str) -> DateRuleStep:
    def step(d: date) -> Optional[list[RuleInterval]]:
        for day, span in day_spans:
            if month_day(d) == day:
                return closed_minute_intervals(d, span.start_minute, span.end_minute, comment)
        return None
    return step


# "Saturday, February 24 from 7:45 a.m. to 4:45 p.m. and Sunday, February from 7:45 a.m. to 3:45 p.m.
#  when track will be closed for a sports tournament."
weekend_tournament: Parser[DateRuleStep] = map_parser(
    end_anchored(sequence(
        separated_by1(
            sequence(
                # the posted notice drops the day number from the Sunday
                first_of(long_date, map_parser(regex(r"Sunday, February(?: 25)?"), lambda _: "02-25")),
                time_span,
            ),
            regex(r"\s*and\s*"),
        ),
        map_parser(regex(r"\s*when track will be closed for a sports tournament\.\s*"), lambda _: "Sports Tournament"),
    )),
    lambda v: _closed_on_dated_spans(*v),
)


# --- line recognizers ---

class ScanState(str, Enum):
    prelude = "prelude"
    rules = "rules"
    exception = "exception"


class Clause(NamedTuple):
    parser:   Parser[DateRuleStep]
    priority: bool = False          # True: checked before every clause collected so far


ClauseFactory = Callable[[UnknownRules, Optional[str]], Sequence[Clause]]


@dataclass(frozen=True)
class Scan:
    """Recognizer progress after consuming some lines."""
    state:      ScanState = ScanState.prelude
    comment:    Optional[str] = None
    predicates: tuple[DateRuleStep, ...] = ()

    def add(self, clause: Clause, step: DateRuleStep) -> "Scan":
        predicates = (step, *self.predicates) if clause.priority else (*self.predicates, step)
        return replace(self, predicates=predicates)


def _no_clauses(rule: UnknownRules, comment: Optional[str]) -> Sequence[Clause]:
    return ()


@dataclass(frozen=True)
class LineRecognizer:
    """A prelude sentence, then base clause lines, then an optional EXCEPT: block."""
    name:       str
    prelude:    Parser[Optional[str]]
    rules:      ClauseFactory = _no_clauses
    exceptions: ClauseFactory = _no_clauses

    def step(self, rule: UnknownRules, scan: Scan, line: str) -> Optional[Scan]:
        """Consume one line; None means the line fits no grammar of the current state."""
        s = stream(line)
        if scan.state is ScanState.prelude:
            r = self.prelude(s)
            return None if r is None else Scan(ScanState.rules, r.value)

        factory = self.rules if scan.state is ScanState.rules else self.exceptions
        for clause in factory(rule, scan.comment):
            r = clause.parser(s)
            if r is not None:
                return scan.add(clause, r.value)

        if scan.state is ScanState.rules and exception_prelude(s) is not None:
            return replace(scan, state=ScanState.exception)
        return None

    def __call__(self, rule: UnknownRules) -> Optional[KnownRules]:
        if not rule.rules:
            return None
        scan = Scan()
        for line in rule.rules:
            next_scan = self.step(rule, scan, line)
            if next_scan is None:
                logger.debug("%s: no match in state %s: %r", self.name, scan.state.value, line)
                return None
            scan = next_scan
        return compile_rule(rule, scan.predicates)


march_may = LineRecognizer(
    "march_may",
    map_parser(
        end_anchored(regex(r"(.*?)Begin. The Cycle Track Will be Open:\s*")),
        lambda m: m.group(1).strip(),
    ),
    rules=lambda rule, comment: [Clause(weekday_times(rule, comment))],
    exceptions=lambda rule, comment: [Clause(spring_exception, priority=True)],
)

jan_feb = LineRecognizer(
    "jan_feb",
    map_parser(end_anchored(regex(r"The Cycle Track will remain open - Polo Fields? Closed\s*")), lambda _: None),
    exceptions=lambda rule, comment: [Clause(partial_closures), Clause(weekend_tournament)],
)

fall = LineRecognizer(
    "fall",
    map_parser(
        end_anchored(regex(r"Fall (.+?)\s*begin\. The Cycle Track Will be Open:\s*")),
        lambda m: m.group(1).strip(),
    ),
    rules=lambda rule, comment: [Clause(weekday_times(rule, comment)), Clause(weekend_times(rule, comment))],
    exceptions=lambda rule, comment: [
        Clause(fall_exception, priority=True),
        Clause(weekend_except(rule, comment)),
    ],
)

RECOGNIZERS: tuple[Recognizer, ...] = (
    open_all_day_every_day,
    closed_for_outside_lands,
    closed_for_one_event,
    open_after,
    march_may,
    jan_feb,
    fall,
)


# --- entry points ---

def recognize_rule(rule: UnknownRules, recognizers: Sequence[Recognizer] = RECOGNIZERS) -> RecognizedRule:
    """Try each recognizer in order; the rule passes through unknown if none matches."""
    for recognizer in recognizers:
        known = recognizer(rule)
        if known is not None:
            logger.debug("%s matched %r", recognizer.name, rule.text)
            return RecognizedRule(recognizer=recognizer.name, rules=known)
    logger.warning("No recognizer matched %r (%s to %s)", rule.text, rule.start_date, rule.end_date)
    return RecognizedRule(rules=rule)


def recognize_years(
    years: Iterable[Year],
    recognizers: Sequence[Recognizer] = RECOGNIZERS,
    strict: bool = False,
    ) -> list[DebugYear]:
    """Recognize every unknown rule; an invariant failure leaves only that rule unknown unless strict."""
    result = []
    for year in years:
        rules = []
        for rule in year.rules:
            if isinstance(rule, KnownRules):
                rules.append(RecognizedRule(rules=rule))
                continue
            try:
                rules.append(recognize_rule(rule, recognizers))
            except RuleInvariantError:
                if strict:
                    raise
                logger.exception("Recognizer invariant failed for %r; reporting it unknown", rule.text)
                rules.append(RecognizedRule(rules=rule))
        result.append(DebugYear(year=year.year, rules=rules))
    return result


def strip_debug_result(debug: Iterable[DebugYear]) -> list[Year]:
    return [Year(year=y.year, rules=[r.rules for r in y.rules]) for y in debug]
