"""CLI command implementations"""

import json
import logging
from typing import Annotated, Optional

import typer

from trackhours.config import Settings, load_config
from trackhours.core.errors import RuleInvariantError
from trackhours.core.lookup import clip_to_day
from trackhours.core.models import DebugYear
from trackhours.core.pipeline import load_calendar, load_years, run_calendar, run_query, run_recognize
from trackhours.core.recognize.recognizers import strip_debug_result
from trackhours.core.utils.dates import friendly_date, friendly_time_span, parse_date


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, then configure logging from it."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    return settings


def _output_format(as_json: Optional[bool]) -> Optional[str]:
    return "json" if as_json else None


def _echo_debug(debug: list[DebugYear], output_format: str) -> None:
    """Print one line per rule, or the plain result as JSON."""
    if output_format == "json":
        years = strip_debug_result(debug)
        typer.echo(json.dumps([y.model_dump(mode="json", exclude_none=True) for y in years], indent=2))
        return
    known = total = 0
    for year in debug:
        for r in year.rules:
            total += 1
            status = "known" if r.rules.type == "known_rules" else "unknown"
            known += status == "known"
            typer.echo(f"  {r.rules.start_date} - {r.rules.end_date}  {status:<7}  {r.recognizer or '-'}  {r.rules.text}")
    typer.echo(f"Recognized {known} of {total} rule(s)")


def recognize_cmd(
    path: Annotated[str, typer.Argument(help="YAML or JSON file of narrative rule blocks")],
    as_json: Annotated[Optional[bool], typer.Option("--json", help="Print the result as JSON")] = None,
    strict: Annotated[Optional[bool], typer.Option("--strict", help="Fail on recognizer invariant errors")] = None,
    ):
    """Compile narrative schedule notices into open/closed intervals."""
    settings = _settings(overrides={"output_format": _output_format(as_json), "strict": strict})
    try:
        debug = run_recognize(load_years(path), settings.strict)
    except ValueError as e:
        _fail(str(e))
    except RuleInvariantError as e:
        _fail("Recognizer invariant failed", e)
    _echo_debug(debug, settings.output_format)


def calendar_cmd(
    path: Annotated[str, typer.Argument(help="YAML or JSON file of calendar entries")],
    rainout: Annotated[Optional[str], typer.Option("--rainout", help="YAML or JSON map of rained-out dates")] = None,
    as_json: Annotated[Optional[bool], typer.Option("--json", help="Print the result as JSON")] = None,
    ):
    """Compile a day-by-day calendar listing into open/closed intervals."""
    settings = _settings(overrides={"output_format": _output_format(as_json)})
    try:
        debug = run_calendar(*load_calendar(path, rainout))
    except ValueError as e:
        _fail(str(e))
    _echo_debug(debug, settings.output_format)


def query_cmd(
    path: Annotated[str, typer.Argument(help="YAML or JSON input file")],
    date: Annotated[str, typer.Argument(help="Date to look up (yyyy-mm-dd)")],
    calendar: Annotated[bool, typer.Option("--calendar", help="Input is a calendar listing")] = False,
    rainout: Annotated[Optional[str], typer.Option("--rainout", help="YAML or JSON map of rained-out dates")] = None,
    ):
    """Print the open/closed hours for one date."""
    settings = _settings()
    try:
        parse_date(date)
    except ValueError as e:
        _fail(f"Invalid date {date!r}", e)
    try:
        result = run_query(path, date, calendar, rainout, settings.strict, settings.assume_open_january)
    except ValueError as e:
        _fail(str(e))
    except RuleInvariantError as e:
        _fail("Recognizer invariant failed", e)

    if result is None:
        typer.echo(f"No rule covers {date}.")
        raise typer.Exit(1)
    typer.echo(f"{friendly_date(date)}: {result.rule.text} ({result.type})")
    if result.type == "unknown":
        for line in result.rule.rules:
            typer.echo(f"  {line}")
        return
    for interval in clip_to_day(date, result.intervals):
        span = friendly_time_span(interval.start_timestamp.split(" ")[1], interval.end_timestamp.split(" ")[1])
        status = "open" if interval.open else "closed"
        comment = f"  ({interval.comment})" if interval.comment else ""
        typer.echo(f"  {status:<6} {span}{comment}")
