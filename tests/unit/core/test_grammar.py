"""Unit tests for core/grammar.py"""

from datetime import date

import pytest

from trackhours.core.grammar import (
    DateRange,
    TimeSpan,
    WeekdayException,
    clean_rule_line,
    date_range,
    exception_prelude,
    long_date,
    month_to_iso,
    parse_heading_dates,
    time_span,
    time_to_minute,
    weekday,
    weekday_exceptions,
    weekday_list,
)
from trackhours.core.parsing import stream
from trackhours.core.utils.dates import to_minute


@pytest.mark.parametrize("text, minute", [
    ("8:00 AM", to_minute(8, 0)),
    ("2 p.m.", to_minute(14, 0)),
    ("2pm", to_minute(14, 0)),
    ("2 pm", to_minute(14, 0)),
    ("6:45 p.m.", to_minute(18, 45)),
    ("6:45 pm", to_minute(18, 45)),
    ("6:45pm", to_minute(18, 45)),
    ("12:30 p.m.", to_minute(12, 30)),
    ("12 a.m.", to_minute(0, 0)),
    ("noon", to_minute(12, 0)),
])
def test_time_to_minute(text, minute):
    """Clock times with am/pm, optional minutes, and 'noon'."""
    r = time_to_minute(stream(text))
    assert r.value == minute
    assert r.stream.at_end


def test_time_requires_meridiem():
    """A bare number is not a narrative clock time."""
    assert time_to_minute(stream("2")) is None


@pytest.mark.parametrize("text, span", [
    ("8:00 AM to 8:45 PM", TimeSpan(to_minute(8, 0), to_minute(20, 45))),
    ("from noon to 6 p.m.", TimeSpan(to_minute(12, 0), to_minute(18, 0))),
    ("before 2 p.m. and after 6:45 p.m.", TimeSpan(to_minute(14, 0), to_minute(18, 45))),
    ("all day", TimeSpan(0, to_minute(24, 0), open=True)),
])
def test_time_span(text, span):
    """The three span forms, fully consumed."""
    r = time_span(stream(text))
    assert r.value == span
    assert r.stream.at_end


@pytest.mark.parametrize("month, iso", [("January", "01"), ("sep", "09"), ("Oct", "10"), ("OCTOBER", "10")])
def test_month_to_iso(month, iso):
    """Month names and abbreviations in any case."""
    assert month_to_iso(month) == iso


def test_month_to_iso_rejects_unknown():
    """An unknown month name raises ValueError."""
    with pytest.raises(ValueError, match="Failed to parse month"):
        month_to_iso("Smarch")


def test_weekday_plurals_and_abbreviations():
    """Sunday is 0; plural and short forms are accepted."""
    assert weekday(stream("Sundays")).value == 0
    assert weekday(stream("Thurs")).value == 4
    assert weekday(stream("Sat")).value == 6


@pytest.mark.parametrize("text, expected", [
    ("March 3 thru May 12", DateRange("03", "03", "05", "12")),
    ("October 7 - 9", DateRange("10", "07", "10", "09")),
    ("May 19", DateRange("05", "19", "05", "19")),
])
def test_date_range(text, expected):
    """Year-less ranges; a single day is its own range."""
    assert date_range(stream(text)).value == expected


def test_date_range_contains_and_started_by():
    """Membership checks use the tested date's own year."""
    days = DateRange("03", "03", "05", "12")
    assert days.contains(date(2024, 3, 3))
    assert days.contains(date(2025, 5, 12))
    assert not days.contains(date(2024, 5, 13))
    assert days.started_by(date(2024, 6, 1))
    assert not days.started_by(date(2024, 3, 2))


def test_long_date():
    """'Friday, September 15' -> '09-15'"""
    assert long_date(stream("Friday, September 15")).value == "09-15"
    assert long_date(stream("Sunday, October 1")).value == "10-01"


def test_weekday_list_with_asterisks():
    """Asterisked weekdays are ordinary list members."""
    r = weekday_list(stream("Tuesdays*, Wednesdays, Thursdays* and Fridays before"))
    assert r.value == [2, 3, 4, 5]
    assert r.stream.rest == "before"


def test_weekday_exceptions():
    """Parenthesized '*On <weekday> beginning <date>' clauses."""
    text = (
        "(*On Tuesdays beginning March 12, the cycling track will be open after 8:45 p.m. "
        "On Thursdays beginning March 14, the track will be open after 8:45 p.m.)"
    )
    r = weekday_exceptions(stream(text))
    assert r.stream.at_end
    assert r.value == [
        WeekdayException(2, DateRange("03", "12", "03", "12"), to_minute(20, 45)),
        WeekdayException(4, DateRange("03", "14", "03", "14"), to_minute(20, 45)),
    ]


def test_exception_prelude_is_end_anchored():
    """'EXCEPT:' must be the whole remaining line."""
    assert exception_prelude(stream("EXCEPT:")) is not None
    assert exception_prelude(stream("EXCEPT: Sundays")) is None


@pytest.mark.parametrize("text, dates", [
    ("March 1 - May 31", ("2024-03-01", "2024-05-31")),
    ("August 5-13", ("2024-08-05", "2024-08-13")),
    ("Nov 28", ("2024-11-28", "2024-11-28")),
])
def test_parse_heading_dates(text, dates):
    """Heading forms: two month/days, a same-month day range, or one day."""
    assert parse_heading_dates(2024, text) == dates


def test_parse_heading_dates_without_date():
    """A heading with no month/day yields None."""
    assert parse_heading_dates(2024, "Schedule") is None


def test_clean_rule_line():
    """HTML space and bullet entities become plain text."""
    assert clean_rule_line("  Mondays&nbsp;&nbsp;all   day ") == "Mondays all day"
    assert clean_rule_line("&bull; Saturdays") == "- Saturdays"
