"""Serve subgroup: run the HTTP daemon."""

from typing import Annotated

import typer

serve_app = typer.Typer(help="Run background services.", no_args_is_help=True)


@serve_app.command("daemon")
def daemon(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8787,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Start the lanlearner HTTP daemon."""
    import uvicorn

    typer.secho(f"Starting lanlearner daemon on http://{host}:{port}", fg="green")
    uvicorn.run("lanlearner.server:app", host=host, port=port, reload=reload)
