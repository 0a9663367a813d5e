"""Shared schedule text samples and fixtures"""

import pytest

from trackhours.core.models import CalendarDate, CalendarEntry, UnknownRules


SPRING_LINES = [
    "Youth and Adult Sports Programs Begin. The Cycle Track Will be Open:",
    "Mondays all day",
    "Tuesdays*, Wednesdays, Thursdays* and Fridays before 2 p.m. and after 6:45 p.m. "
    "(*On Tuesdays beginning March 12, the cycling track will be open after 8:45 p.m. "
    "On Thursdays beginning March 14, the track will be open after 8:45 p.m.)",
    "Saturdays before 7 a.m. and after 6:45 p.m.",
    "Sundays before 7 a.m. and after 6:45 p.m.",
    "EXCEPT:",
    "Sundays, from March 3 thru May 12, when track will be open before 10 a.m. and after 6:45 p.m.",
    "Sunday, May 19 when track will be open all day with the field closed due to the Bay to Breakers event",
]

FALL_LINES = [
    "Fall Youth and Adult Sports Programs Begin. The Cycle Track Will be Open:",
    "Mondays all day",
    "Tuesdays, Wednesdays, Thursdays and Fridays before 2 p.m. and after 6:45 p.m.",
    "EXCEPT:",
    "Friday, September 13 when track is closed from 7:30 a.m. to 12:30 p.m. for Sacred Heart Walkathon",
    "Friday, October 4 when track is closed all day for Hardly Strictly Bluegrass",
    "Wednesday, November 20 when track is closed from noon to 6 p.m. for SFUSD Cross Country Finals",
    "Saturdays and Sundays before 7 a.m. and after 6:15 p.m. EXCEPT:",
    "Saturday, October 5 and Sunday, October 6 when track is closed all day for Hardly Strictly Bluegrass",
]

JAN_FEB_LINES = [
    "The Cycle Track will remain open - Polo Field Closed",
    "EXCEPT:",
    "Monday, January 22 and Tuesday, January 23 - Partial closures of the track in the morning for asphalt repairs.",
    "Saturday, February 24 from 7:45 a.m. to 4:45 p.m. and Sunday, February from 7:45 a.m. to 3:45 p.m. "
    "when track will be closed for a sports tournament.",
]

NARRATIVE_YAML = """\
years:
  - year: 2024
    rules:
      - text: "January 1 - February 29"
        rules:
          - "The Cycle Track will remain open - Polo Field Closed"
      - text: "March 1 - May 31"
        start_date: "2024-03-01"
        end_date: "2024-05-31"
        rules:
          - "Something&nbsp;nobody  planned for"
"""

CALENDAR_YAML = """\
entries:
  - name: "Cycle Track Open Until 2 p.m."
    start_date: "2025-09-10T05:00:00"
    sub_header_date: "September 10, 2025, 5:00 AM - 2:00 PM"
  - name: "Cycle Track Open After 6:45 p.m."
    start_date: "2025-09-10T18:45:00"
    sub_header_date: "September 10, 2025, 6:45 PM"
  - name: "Cycle Track Closed"
    sub_header_date: "September 11, 2025, 2:00 PM - 8:45 PM"
rainout:
  "2025-09-11": true
"""


def _rule(lines: list[str], start_date: str, end_date: str, text: str = "heading") -> UnknownRules:
    return UnknownRules(text=text, start_date=start_date, end_date=end_date, rules=lines)


@pytest.fixture(name="spring_rule")
def spring_rule_fixture():
    return _rule(SPRING_LINES, "2024-03-01", "2024-05-31", "March 1 - May 31")


@pytest.fixture(name="fall_rule")
def fall_rule_fixture():
    return _rule(FALL_LINES, "2024-09-01", "2024-11-30", "September 1 - November 30")


@pytest.fixture(name="jan_feb_rule")
def jan_feb_rule_fixture():
    return _rule(JAN_FEB_LINES, "2024-01-01", "2024-02-29", "January 1 - February 29")


@pytest.fixture(name="event_day")
def event_day_fixture():
    """A listed day with an open morning, a private event, and an open evening."""
    return CalendarDate(date="2025-09-07", entries=[
        CalendarEntry(
            name="Cycle Track Open for Public Use Until 8:30 a.m.",
            start_date="2025-09-07T05:00:00",
            sub_header_date="September 7, 2025, 5:00 AM - 8:30 AM",
        ),
        CalendarEntry(
            name="Cycle Track in Use for Private Event",
            start_date="2025-09-07T08:30",
            sub_header_date="September 7, 2025, 8:30 AM - 11:30 AM",
        ),
        CalendarEntry(
            name="Cycle Track Open for Public Use After 6:45 p.m.",
            start_date="2025-09-07T18:45:00",
            sub_header_date="September 7, 2025, 6:45 PM",
        ),
    ])


@pytest.fixture(name="narrative_file")
def narrative_file_fixture(tmp_path):
    path = tmp_path / "narrative.yaml"
    path.write_text(NARRATIVE_YAML)
    return path


@pytest.fixture(name="calendar_file")
def calendar_file_fixture(tmp_path):
    path = tmp_path / "calendar.yaml"
    path.write_text(CALENDAR_YAML)
    return path
