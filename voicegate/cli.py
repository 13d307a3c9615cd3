from __future__ import annotations

import json
import webbrowser
from typing import Optional

import httpx
import typer
import uvicorn

from voicegate.core.config import get_settings

cli = typer.Typer(name="voicegate", help="Voice conversation gate for agent hooks")


@cli.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind"),
    port: Optional[int] = typer.Option(None, "--port", help="Port to listen on"),
    open_browser: Optional[bool] = typer.Option(
        None, "--open-browser/--no-open-browser", help="Open the voice page once started"
    ),
) -> None:
    """Start the HTTP server."""
    settings = get_settings()
    bind_host = host or settings.host
    bind_port = port or settings.port
    should_open = settings.auto_open_browser if open_browser is None else open_browser
    if should_open:
        webbrowser.open(f"http://localhost:{bind_port}")
    uvicorn.run("voicegate.main:app", host=bind_host, port=bind_port)


@cli.command()
def status(
    url: Optional[str] = typer.Option(None, "--url", help="Base URL of a running server"),
) -> None:
    """Print the state of a running server."""
    settings = get_settings()
    base = url or f"http://{settings.host}:{settings.port}"
    try:
        response = httpx.get(f"{base}/health", timeout=5.0)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        typer.echo(f"Server unreachable at {base}: {exc}")
        raise typer.Exit(code=1)
    typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
