import logging
from typing import Annotated

import typer

from json_pilot.cli.edit import compress, escape, sort_keys, unescape
from json_pilot.cli.overlay import diagnostics, overlay, toggle
from json_pilot.cli.query import query
from json_pilot.cli.serve import serve_app
from json_pilot.cli.watch import watch

app = typer.Typer(
    name="json-pilot",
    help="Inspect, query and reshape JSON documents.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def _configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log progress messages.")] = False,
) -> None:
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")


app.command("overlay")(overlay)
app.command("toggle")(toggle)
app.command("diagnostics")(diagnostics)
app.command("query")(query)
app.command("compress")(compress)
app.command("sort-keys")(sort_keys)
app.command("escape")(escape)
app.command("unescape")(unescape)
app.command("watch")(watch)
app.add_typer(serve_app, name="serve")


def main() -> None:
    app()
