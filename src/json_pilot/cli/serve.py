from enum import Enum
from typing import Annotated

import typer

from json_pilot.cli.common import console
from json_pilot.core.config import load_formatting_options

serve_app = typer.Typer(help="Serve the document tools over HTTP or MCP.")


class McpTransport(str, Enum):
    STDIO = "stdio"
    HTTP = "http"
    SSE = "sse"


def _announce(what: str) -> None:
    formatting = load_formatting_options()
    indent = "tabs" if not formatting.insert_spaces else f"{formatting.tab_size} spaces"
    console.print(f"[green]Starting {what}[/green] (expanded JSON indents with {indent})")


@serve_app.command("api")
def api(
    host: Annotated[str, typer.Option(help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on.")] = 8000,
) -> None:
    """Serve overlay, toggle, query and transform routes over HTTP."""
    import uvicorn

    from json_pilot.api.app import create_app

    _announce(f"API server on {host}:{port}")
    uvicorn.run(create_app(), host=host, port=port)


@serve_app.command("mcp")
def mcp(
    transport: Annotated[McpTransport, typer.Option(help="MCP transport.")] = McpTransport.STDIO,
    host: Annotated[str, typer.Option(help="Interface to bind (http/sse only).")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on (http/sse only).")] = 8765,
) -> None:
    """Expose the document tools to MCP clients."""
    from json_pilot.mcp.server import create_mcp_server

    server = create_mcp_server()
    if transport is McpTransport.STDIO:
        # stdout carries the protocol
        server.run(transport="stdio")
        return
    _announce(f"MCP server ({transport.value}) on {host}:{port}")
    server.run(transport=transport.value, host=host, port=port)  # type: ignore[arg-type]
