"""Review subgroup: what is due and recording outcomes."""

from typing import Annotated

import typer

from lanlearner.domain.models import ReviewOutcome
from lanlearner.interface._common import format_item, get_repo, not_found, storage_guard

review_app = typer.Typer(help="Review due items.", no_args_is_help=True)


def _service(ctx: typer.Context):
    from lanlearner.application.item_service import ItemService

    return ItemService(get_repo(ctx))


@review_app.command("due")
def due(ctx: typer.Context):
    """List items due today or earlier."""
    items = _service(ctx).due_items()
    if not items:
        typer.secho("Nothing due.", fg="green")
        return
    for item in items:
        typer.echo(format_item(item))


@review_app.command("summary")
def summary(ctx: typer.Context):
    """Due count and the next few upcoming reviews."""
    result = _service(ctx).review_summary()
    typer.echo(f"Due now: {len(result.due)} of {result.total_items} items")
    if result.upcoming:
        typer.echo("Upcoming:")
        for item in result.upcoming:
            typer.echo(f"  {format_item(item)}")


@review_app.command("mark")
def mark(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item id.")],
    outcome: Annotated[ReviewOutcome, typer.Argument(help="remembered or forgot.")],
):
    """Record a review outcome and reschedule the item."""
    with storage_guard():
        item = _service(ctx).review_item(item_id, outcome)
    if item is None:
        raise not_found("Item", item_id)
    typer.echo(format_item(item))
