"""Data models for schedule rules, compiled intervals, and lookup results"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


class RuleInterval(BaseModel):
    """A minute-exact open/closed span; both timestamps are inclusive ('yyyy-mm-dd HH:MM')."""
    open:            bool
    start_timestamp: str
    end_timestamp:   str
    comment:         Optional[str] = None


class RulesBase(BaseModel):
    text:       str                 # raw heading, e.g. "March 1 - May 31"
    start_date: str                 # yyyy-mm-dd
    end_date:   str
    rules:      list[str] = []      # cleaned body lines, in source order


class UnknownRules(RulesBase):
    """A schedule block no recognizer matched; passed through verbatim."""
    type: Literal["unknown_rules"] = "unknown_rules"


class KnownRules(RulesBase):
    """A schedule block compiled into intervals by a recognizer."""
    type:      Literal["known_rules"] = "known_rules"
    intervals: list[RuleInterval]


AnyRules = Annotated[Union[UnknownRules, KnownRules], Field(discriminator="type")]


class Year(BaseModel):
    year:  int
    rules: list[AnyRules] = []


class RecognizedRule(BaseModel):
    """A rule together with the name of the recognizer that compiled it (None if unknown)."""
    recognizer: Optional[str] = None
    rules:      AnyRules


class DebugYear(BaseModel):
    year:  int
    rules: list[RecognizedRule] = []


class KnownResult(BaseModel):
    type:      Literal["known"] = "known"
    intervals: list[RuleInterval]
    rule:      KnownRules


class UnknownResult(BaseModel):
    type: Literal["unknown"] = "unknown"
    rule: UnknownRules


DateResult = Annotated[Union[KnownResult, UnknownResult], Field(discriminator="type")]


# --- calendar listing input ---

class CalendarEntry(BaseModel):
    """One event row of the public calendar listing."""
    name:            str = ""
    start_date:      str = ""       # '2025-09-07T05:00:00'; may be empty
    description:     str = ""
    sub_header_date: str = ""       # 'September 7, 2025, 5:00 AM - 8:30 AM'
    heading_name:    str = ""


class CalendarDate(BaseModel):
    date:    str
    entries: list[CalendarEntry] = []


class CalendarYear(BaseModel):
    year:  int
    dates: list[CalendarDate] = []


class ParsedEntry(BaseModel):
    """A calendar entry reduced to a status and optional minute bounds (end exclusive)."""
    open:         bool
    start_minute: Optional[int] = None
    end_minute:   Optional[int] = None
    comment:      Optional[str] = None
