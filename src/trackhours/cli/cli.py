"""CLI entrypoint: Typer app definition and command registration"""

import typer

from trackhours.cli.commands import calendar_cmd, query_cmd, recognize_cmd


app = typer.Typer(name="trackhours", no_args_is_help=True, help="Cycle track schedule recognizer and hours lookup")

app.command(name="recognize")(recognize_cmd)
app.command(name="calendar")(calendar_cmd)
app.command(name="query")(query_cmd)
