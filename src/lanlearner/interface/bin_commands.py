"""Recycle bin subgroup."""

from typing import Annotated

import typer

from lanlearner.interface._common import get_repo, not_found, storage_guard

bin_app = typer.Typer(help="Recently deleted items.", no_args_is_help=True)


def _service(ctx: typer.Context):
    from lanlearner.application.recycle_bin import RecycleBinService

    return RecycleBinService(get_repo(ctx))


@bin_app.command("list")
def list_entries(ctx: typer.Context):
    """Items deleted in the last 24 hours, newest first."""
    with storage_guard():
        entries = _service(ctx).entries()
    if not entries:
        typer.echo("Recycle bin is empty.")
        return
    for entry in entries:
        deleted = entry.deleted_at.strftime("%Y-%m-%d %H:%M")
        typer.echo(f"{entry.item.id}  [{entry.item.kind}] {entry.item.label}  (deleted {deleted})")


@bin_app.command("restore")
def restore(ctx: typer.Context, item_id: Annotated[str, typer.Argument(help="Item id.")]):
    """Put a deleted item back."""
    with storage_guard():
        item = _service(ctx).restore(item_id)
    if item is None:
        raise not_found("Recycle bin entry", item_id)
    typer.secho(f"Restored '{item.label}'.", fg="green")
