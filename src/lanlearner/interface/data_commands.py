"""Data subgroup: sheet export/import and page export."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from lanlearner.interface._common import (
    _resolve_with_overrides,
    get_repo,
    hierarchy_of,
    not_found,
    storage_guard,
)

data_app = typer.Typer(help="Import and export study data.", no_args_is_help=True)


@data_app.command("export")
def export(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Output YAML file.")],
):
    """Export words, knowledge points and the new-knowledge syllabus as sheets."""
    from lanlearner.application.interchange import export_sheets
    from lanlearner.infrastructure.interchange_file import write_sheets

    state = get_repo(ctx).state
    written = write_sheets(path, export_sheets(state))
    typer.secho(f"Exported to {written}", fg="green")


@data_app.command("import")
def import_(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="YAML file produced by 'data export'.")],
    skip_existing: Annotated[
        bool, typer.Option("--skip-existing", help="Leave items with a matching headword or title untouched.")
    ] = False,
):
    """Merge sheets from a file; matching headwords and titles update the stored items."""
    from lanlearner.application.interchange import merge_sheets
    from lanlearner.infrastructure.interchange_file import InterchangeFileError, read_sheets

    try:
        sheets = read_sheets(path)
    except InterchangeFileError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1) from None

    repo = get_repo(ctx)
    with storage_guard():
        report = merge_sheets(repo.state, sheets, skip_existing=skip_existing)
        repo.persist(*report.changed)
    typer.echo(report.message)


@data_app.command("page")
def page(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Title of the exported page.")],
    category: Annotated[
        str | None, typer.Option(help="Export only beneath this category.")
    ] = None,
    new_knowledge: Annotated[
        bool, typer.Option("--new-knowledge", "-n", help="Export the new-knowledge hierarchy.")
    ] = False,
):
    """Publish a hierarchy and its knowledge points as a page."""
    from lanlearner.application.factory import get_page_exporter
    from lanlearner.application.page_export import build_page_blocks
    from lanlearner.infrastructure.adapters.page_export import PageExportError

    hierarchy = hierarchy_of(new_knowledge)
    state = get_repo(ctx).state
    tree = state.tree_for(hierarchy)
    if category is not None and category not in tree:
        raise not_found("Category", category)

    blocks = build_page_blocks(tree, state.points_for(hierarchy), parent_id=category)
    if not blocks:
        typer.secho("Nothing to export.", fg="yellow")
        return

    exporter = get_page_exporter(_resolve_with_overrides(ctx))

    async def run():
        try:
            return await exporter.create_page(title, blocks)
        finally:
            await exporter.close()

    try:
        created = asyncio.run(run())
    except PageExportError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1) from None
    typer.secho(f"Exported {len(blocks)} blocks: {created['url']}", fg="green")
