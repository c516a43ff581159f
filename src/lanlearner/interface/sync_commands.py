"""Sync subgroup: promote new-knowledge items into the main syllabus."""

from typing import Annotated

import typer

from lanlearner.interface._common import get_repo, storage_guard

sync_app = typer.Typer(help="Copy new knowledge into the main syllabus.", no_args_is_help=True)

_COLORS = {"created": "green", "updated": "cyan", "skipped": "yellow"}


def _service(ctx: typer.Context):
    from lanlearner.application.sync_service import SyncService

    return SyncService(get_repo(ctx))


def _report(result) -> None:
    typer.secho(result.message, fg=_COLORS.get(result.status.value))


@sync_app.command("point")
def point(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="New-knowledge item id.")],
):
    """Copy one new-knowledge item into the main syllabus (or refresh its copy)."""
    with storage_guard():
        _report(_service(ctx).sync_knowledge_point(item_id))


@sync_app.command("category")
def category(
    ctx: typer.Context,
    category_id: Annotated[str, typer.Argument(help="New-knowledge category id.")],
):
    """Sync every item in a new-knowledge category and its subcategories."""
    with storage_guard():
        results = _service(ctx).sync_category(category_id)
    if not results:
        typer.echo("Nothing to sync.")
        return
    for result in results:
        _report(result)


@sync_app.command("graduate")
def graduate(ctx: typer.Context):
    """Mirror the primary subject and its direct children into the main syllabus."""
    with storage_guard():
        _report(_service(ctx).graduate_top_level_categories())
