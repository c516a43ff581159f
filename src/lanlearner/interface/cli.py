"""Lanlearner CLI: root commands and subgroup registration."""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from lanlearner.application.config import config_files, resolve_config

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="lanlearner: spaced-repetition study tool with a two-tier syllabus.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Register subgroups
# ---------------------------------------------------------------------------

from lanlearner.interface.bin_commands import bin_app  # noqa: E402
from lanlearner.interface.category_commands import category_app  # noqa: E402
from lanlearner.interface.data_commands import data_app  # noqa: E402
from lanlearner.interface.item_commands import item_app  # noqa: E402
from lanlearner.interface.review_commands import review_app  # noqa: E402
from lanlearner.interface.serve_commands import serve_app  # noqa: E402
from lanlearner.interface.sync_commands import sync_app  # noqa: E402

app.add_typer(category_app, name="category")
app.add_typer(item_app, name="item")
app.add_typer(review_app, name="review")
app.add_typer(sync_app, name="sync")
app.add_typer(bin_app, name="bin")
app.add_typer(data_app, name="data")
app.add_typer(serve_app, name="serve")

config_app = typer.Typer(help="Manage lanlearner configuration.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    data_dir: Annotated[
        Path | None, typer.Option("--data-dir", help="Directory holding the study store.")
    ] = None,
):
    """Global settings for lanlearner."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {"data_dir": data_dir, "verbose": verbose or None}
    if verbose >= 2:
        logging.getLogger().setLevel(logging.DEBUG)
    elif verbose == 1:
        logging.getLogger().setLevel(logging.INFO)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    from lanlearner.interface._common import _resolve_with_overrides

    config = _resolve_with_overrides(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


@config_app.command("path")
def config_path():
    """Show which config file is in effect."""
    existing = [f for f in config_files() if f.exists()]
    if existing:
        typer.echo(str(existing[0]))
    else:
        typer.echo(f"No config file found. Create {config_files()[0]} to override defaults.")


@app.command()
def logs():
    """Print the log directory."""
    config = resolve_config()
    config.log_dir.mkdir(parents=True, exist_ok=True)
    typer.echo(str(config.log_dir))
