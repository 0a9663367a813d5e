"""Unit tests for core/lookup.py"""

import pytest

from trackhours.core.lookup import JANUARY_ASSUMPTION, clip_to_day, intervals_for_date
from trackhours.core.models import KnownRules, RuleInterval, UnknownRules, Year


def _interval(open, start, end, comment=None):
    return RuleInterval(open=open, start_timestamp=start, end_timestamp=end, comment=comment)


@pytest.fixture(name="result")
def result_fixture():
    """A 2023 result with one known and one unknown rule."""
    known = KnownRules(
        text="November 1 - December 31",
        start_date="2023-11-01",
        end_date="2023-12-31",
        rules=["..."],
        intervals=[
            _interval(True, "2023-11-01 00:00", "2023-12-05 13:59"),
            _interval(False, "2023-12-05 14:00", "2023-12-05 18:44", "Programs"),
            _interval(True, "2023-12-05 18:45", "2023-12-31 23:59"),
        ],
    )
    unknown = UnknownRules(text="October 1 - 31", start_date="2023-10-01", end_date="2023-10-31", rules=["?"])
    return [Year(year=2023, rules=[unknown, known])]


def test_unknown_rule_result(result):
    """A date covered by an unknown rule returns the raw rule."""
    found = intervals_for_date(result, "2023-10-15")
    assert found.type == "unknown"
    assert found.rule.text == "October 1 - 31"


def test_known_rule_filters_intervals(result):
    """Only intervals touching the date are returned, not re-sliced."""
    found = intervals_for_date(result, "2023-12-05")
    assert found.type == "known"
    assert [i.start_timestamp for i in found.intervals] == [
        "2023-11-01 00:00", "2023-12-05 14:00", "2023-12-05 18:45",
    ]
    assert [i.start_timestamp for i in intervals_for_date(result, "2023-12-06").intervals] == ["2023-12-05 18:45"]


def test_clip_to_day(result):
    """clip_to_day clamps filtered intervals to the day's edges."""
    found = intervals_for_date(result, "2023-12-05")
    assert clip_to_day("2023-12-05", found.intervals) == [
        _interval(True, "2023-12-05 00:00", "2023-12-05 13:59"),
        _interval(False, "2023-12-05 14:00", "2023-12-05 18:44", "Programs"),
        _interval(True, "2023-12-05 18:45", "2023-12-05 23:59"),
    ]


@pytest.mark.parametrize("day", ["2024-01-01", "2024-01-02", "2024-01-31"])
def test_january_assumption(result, day):
    """The January after the latest year is assumed open all month."""
    found = intervals_for_date(result, day)
    assert found.type == "known"
    assert found.rule.text == "January 2024"
    assert found.rule.rules == [JANUARY_ASSUMPTION]
    assert (found.rule.start_date, found.rule.end_date) == ("2024-01-01", "2024-01-31")
    assert found.intervals == [_interval(True, "2024-01-01 00:00", "2024-01-31 23:59")]


def test_january_assumption_can_be_disabled(result):
    """With the assumption off an uncovered date is absent."""
    assert intervals_for_date(result, "2024-01-01", assume_open_january=False) is None


@pytest.mark.parametrize("day", ["2023-09-30", "2024-02-01", "2025-01-01"])
def test_uncovered_date_is_absent(result, day):
    """Dates outside every rule and the assumed January are absent."""
    assert intervals_for_date(result, day) is None


def test_empty_result_is_absent():
    """No years means nothing to extrapolate from."""
    assert intervals_for_date([], "2024-01-01") is None
