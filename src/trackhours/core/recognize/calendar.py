"""Day-by-day calendar listings: entry-name grammar, gap filling, and the field rain-out override"""

import logging
import re
from itertools import groupby
from typing import Iterable, Iterator, Mapping, NamedTuple, Optional

from trackhours.core.errors import CalendarEntryError
from trackhours.core.intervals import to_known
from trackhours.core.models import (
    CalendarDate,
    CalendarEntry,
    CalendarYear,
    DebugYear,
    ParsedEntry,
    RecognizedRule,
    RuleInterval,
    UnknownRules,
)
from trackhours.core.parsing import (
    end_anchored,
    first_of,
    keep_right,
    map_parser,
    optional,
    regex,
    sequence,
    stream,
)
from trackhours.core.utils.dates import LAST_MINUTE, MINUTES_PER_DAY, format_time, to_minute


logger = logging.getLogger(__name__)

CALENDAR_RECOGNIZER = "calendar"
RAINOUT_COMMENT = "Field Rained Out, Cycle Track Open All Day"
NOON = to_minute(12, 0)
MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


class CtxTime(NamedTuple):
    """A clock time and whether it carried an explicit am/pm."""
    value: int
    ampm:  bool


class MinuteSpan(NamedTuple):
    start_minute: Optional[int] = None
    end_minute:   Optional[int] = None


def _ctx_time(m: re.Match) -> CtxTime:
    meridiem = m.group(3)
    pm = bool(meridiem) and meridiem.lower().startswith("p")
    return CtxTime(to_minute(int(m.group(1)) % 12 + (12 if pm else 0), int(m.group(2) or 0)), meridiem is not None)


ctx_time_to_minute = first_of(
    map_parser(regex(r"(\d{1,2})(?::(\d{2}))?\s*([ap](?:\.m\.|m))?"), _ctx_time),
    map_parser(regex(r"noon"), lambda _: CtxTime(NOON, True)),
)
time_to_minute = map_parser(ctx_time_to_minute, lambda t: t.value)


def apply_time(cur: CtxTime, ctx: CtxTime) -> int:
    """A bare morning number paired with an explicit afternoon time moves to the afternoon."""
    if not cur.ampm and ctx.ampm and ctx.value >= NOON and cur.value < NOON:
        return cur.value + NOON
    return cur.value


# "2-10 p.m.", "5 a.m. to 2 p.m.", "2:00 PM - 8:45 PM"
ctx_minute_range = map_parser(
    sequence(ctx_time_to_minute, regex(r"\s*(?:to|-|–)\s*"), ctx_time_to_minute),
    lambda v: MinuteSpan(apply_time(v[0], v[2]), apply_time(v[2], v[0])),
)

time_span = first_of(
    map_parser(regex(r"\s*all day\s*"), lambda _: MinuteSpan(0, MINUTES_PER_DAY)),
    map_parser(keep_right(regex(r"\s*until\s+"), time_to_minute), lambda end: MinuteSpan(end_minute=end)),
    map_parser(keep_right(regex(r"\s*after\s+"), time_to_minute), lambda start: MinuteSpan(start_minute=start)),
    ctx_minute_range,
)

track_status = map_parser(regex(r"(?:cycle|cycling) track (?:(open)|closed)\s*"), lambda m: m.group(1) is not None)
trailing_comment = map_parser(regex(r"\s*\((.+)\)\s*"), lambda m: m.group(1).strip())

# "Cycle Track Open for Public Use Until 8:30 a.m.", "Cycle Track Closed Until 7:00 AM (Turkey Trot event)"
cycle_track = end_anchored(sequence(
    track_status,
    regex(r"(?:for public use\s*)?"),
    time_span,
    optional(trailing_comment),
))
track_in_use = map_parser(
    end_anchored(regex(r"(?:cycle|cycling) track in use for .+")),
    lambda m: m.group(0).strip(),
)
only_status = end_anchored(track_status)

# "September 7, 2025, 8:30 AM - 11:30 AM"
subheader_range = end_anchored(keep_right(regex(r"\w+\s+\d+,\s+\d+,\s+"), ctx_minute_range))


def _subheader_start(m: re.Match) -> str:
    month, day, year, all_day, hour, minute, ampm = m.groups()
    iso_date = f"{year.zfill(4)}-{MONTH_NAMES.index(month.title()) + 1:02d}-{day.zfill(2)}"
    if all_day:
        return f"{iso_date}T00:00"
    return f"{iso_date}T{int(hour) % 12 + (12 if ampm.upper() == 'PM' else 0):02d}:{minute}"


# "September 7, 2025, 6:45 PM" -> "2025-09-07T18:45"
subheader_date_only = map_parser(
    regex(rf"({'|'.join(MONTH_NAMES)}) (\d{{1,2}}), (\d{{4}}), (?:(All Day)|(\d{{1,2}}):(\d{{2}}) ([AP]M))"),
    _subheader_start,
)

LISTED_TIME_RE = re.compile(r"\d{4}-\d{2}-\d{2}T(\d{2}):(\d{2})")


def fix_event(entry: CalendarEntry) -> CalendarEntry:
    """Clean the sub-header text and fill a missing name or start date from the other fields."""
    sub_header = re.sub(r"\s+", " ", re.sub(r"&nbsp;|&thinsp;", " ", entry.sub_header_date, flags=re.IGNORECASE))
    if "&" in sub_header:
        logger.error("Invalid sub-header date %r -> %r", entry.sub_header_date, sub_header)
    start_date = entry.start_date
    if not start_date:
        r = subheader_date_only(stream(sub_header))
        if r is None:
            raise CalendarEntryError(f"Invalid sub-header date {sub_header!r}")
        start_date = r.value
    return entry.model_copy(update={
        "name": entry.name or entry.heading_name,
        "start_date": start_date,
        "sub_header_date": sub_header,
    })


def _listed_start_minute(entry: CalendarEntry) -> Optional[int]:
    m = LISTED_TIME_RE.match(entry.start_date)
    if m:
        return to_minute(int(m.group(1)), int(m.group(2)))
    r = subheader_range(stream(entry.sub_header_date))
    return r.value.start_minute if r else None


def parse_entry(entry: CalendarEntry) -> ParsedEntry:
    """Reduce an entry to a status and bounds; names without times take them from the sub-header."""
    s = stream(entry.name)
    r = cycle_track(s)
    if r is not None:
        open_, _, span, comment = r.value
        start_minute = span.start_minute
        if start_minute is None and not open_:
            # a closure "until" a time begins at its listed start
            start_minute = _listed_start_minute(entry)
        return ParsedEntry(open=open_, start_minute=start_minute, end_minute=span.end_minute, comment=comment)

    times = subheader_range(stream(entry.sub_header_date))
    in_use = track_in_use(s)
    if in_use is not None and times is not None:
        return ParsedEntry(open=False, start_minute=times.value.start_minute,
                           end_minute=times.value.end_minute, comment=in_use.value)
    status = only_status(s)
    if status is not None and times is not None:
        return ParsedEntry(open=status.value, start_minute=times.value.start_minute,
                           end_minute=times.value.end_minute)
    raise CalendarEntryError(f"Invalid name {entry.name!r} (sub-header {entry.sub_header_date!r})")


def parse_and_reorder_entries(calendar_date: CalendarDate) -> list[ParsedEntry]:
    """Parse a day's entries and order them by start minute; open-ended starts sort first."""
    parsed = [parse_entry(e) for e in calendar_date.entries]
    return sorted(parsed, key=lambda p: -1 if p.start_minute is None else p.start_minute)


def _timestamp(day: str, minute: int) -> str:
    return format_time(day, *divmod(minute, 60))


def get_intervals(calendar_date: CalendarDate, field_rained_out: bool = False) -> list[RuleInterval]:
    """Cover the whole day: listed entries, with gaps taking the inverse of the entry that follows."""
    day = calendar_date.date
    if field_rained_out or not calendar_date.entries:
        comment = RAINOUT_COMMENT if field_rained_out else None
        return [RuleInterval(open=True, start_timestamp=_timestamp(day, 0),
                             end_timestamp=_timestamp(day, LAST_MINUTE), comment=comment)]

    intervals: list[RuleInterval] = []
    cursor = 0
    last: Optional[ParsedEntry] = None
    for entry in parse_and_reorder_entries(calendar_date):
        start = cursor if entry.start_minute is None else max(entry.start_minute, cursor)
        end = MINUTES_PER_DAY if entry.end_minute is None else min(entry.end_minute, MINUTES_PER_DAY)
        if end <= start:
            logger.debug("Entry %s on %s is covered by earlier entries", entry, day)
            continue
        if start > cursor:
            intervals.append(RuleInterval(open=not entry.open, start_timestamp=_timestamp(day, cursor),
                                          end_timestamp=_timestamp(day, start - 1)))
        intervals.append(RuleInterval(open=entry.open, start_timestamp=_timestamp(day, start),
                                      end_timestamp=_timestamp(day, end - 1), comment=entry.comment))
        cursor, last = end, entry

    if last is None:
        raise CalendarEntryError(f"No usable entries on {day}")
    if cursor < MINUTES_PER_DAY:
        intervals.append(RuleInterval(open=not last.open, start_timestamp=_timestamp(day, cursor),
                                      end_timestamp=_timestamp(day, LAST_MINUTE)))
    return intervals


def format_rules(calendar_date: CalendarDate, field_rained_out: bool) -> list[str]:
    rules = [f"{e.name}\t{e.start_date}\t{e.description}\t{e.sub_header_date}" for e in calendar_date.entries]
    if field_rained_out:
        rules.append(f"Field Rained Out\t{calendar_date.date}\t\t")
    return rules


def recognize_calendar_date(calendar_date: CalendarDate, rainout: Mapping[str, bool]) -> RecognizedRule:
    """Compile one listed day; a day with an unreadable entry is reported unknown."""
    field_rained_out = bool(rainout.get(calendar_date.date, False))
    rule = UnknownRules(
        text=calendar_date.date,
        start_date=calendar_date.date,
        end_date=calendar_date.date,
        rules=format_rules(calendar_date, field_rained_out),
    )
    try:
        intervals = get_intervals(calendar_date, field_rained_out)
    except CalendarEntryError as e:
        logger.warning("Calendar date %s is unknown: %s", calendar_date.date, e)
        return RecognizedRule(rules=rule)
    return RecognizedRule(recognizer=CALENDAR_RECOGNIZER, rules=to_known(rule, intervals))


def _fixed_entries(entries: Iterable[CalendarEntry]) -> Iterator[CalendarEntry]:
    for entry in entries:
        try:
            fixed = fix_event(entry)
        except CalendarEntryError as e:
            logger.warning("Dropping calendar entry %r: %s", entry.name or entry.heading_name, e)
            continue
        if not re.match(r"\d{4}-\d{2}-\d{2}", fixed.start_date):
            logger.warning("Dropping calendar entry %r: invalid start date %r", fixed.name, fixed.start_date)
            continue
        yield fixed


def group_calendar_entries(entries: Iterable[CalendarEntry]) -> list[CalendarYear]:
    """Group fixed entries by listed date, then by year; listing order is kept within a day.

    An entry whose date cannot be read is logged and dropped; the other days are unaffected.
    """
    fixed = sorted(_fixed_entries(entries), key=lambda e: e.start_date[:10])
    years: list[CalendarYear] = []
    for day, day_entries in groupby(fixed, key=lambda e: e.start_date[:10]):
        year = int(day[:4])
        if not years or years[-1].year != year:
            years.append(CalendarYear(year=year))
        years[-1].dates.append(CalendarDate(date=day, entries=list(day_entries)))
    return years


def recognize_calendar(years: Iterable[CalendarYear], rainout: Optional[Mapping[str, bool]] = None) -> list[DebugYear]:
    rainout = rainout or {}
    return [
        DebugYear(year=y.year, rules=[recognize_calendar_date(d, rainout) for d in y.dates])
        for y in years
    ]
