from typing import Annotated

import typer

from json_pilot.cli.common import console, open_session
from json_pilot.core.query import render_result
from json_pilot.models import QueryKind


def query(
    path: Annotated[str, typer.Argument(help="Path to a JSON document, or '-' for stdin.")],
    query_string: Annotated[str, typer.Argument(help="JSONPath query or expression.")],
    kind: Annotated[QueryKind, typer.Option("--kind", "-k", help="Query language.")] = QueryKind.JSONPATH,
) -> None:
    """Run a JSONPath query or a sandboxed expression against a document."""
    session, _ = open_session(path)
    result = session.run_query(query_string, kind)
    if result is None:
        raise typer.Exit(code=1)
    if result.kind == "none":
        console.print("(no result)")
        return
    typer.echo(render_result(result))
