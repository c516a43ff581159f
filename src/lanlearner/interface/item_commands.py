"""Item subgroup: capture, edit, move and delete learning items."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from lanlearner.domain.models import KnowledgePoint
from lanlearner.interface._common import (
    _resolve_with_overrides,
    format_item,
    get_repo,
    hierarchy_of,
    not_found,
    storage_guard,
)

item_app = typer.Typer(help="Manage words and knowledge points.", no_args_is_help=True)


def _service(ctx: typer.Context):
    from lanlearner.application.item_service import ItemService

    return ItemService(get_repo(ctx))


@item_app.command("add-word")
def add_word(
    ctx: typer.Context,
    headword: Annotated[str, typer.Argument(help="The word or phrase.")],
    definition: Annotated[str | None, typer.Option(help="Definition.")] = None,
    pos: Annotated[str | None, typer.Option("--pos", help="Part of speech.")] = None,
    example: Annotated[str, typer.Option(help="Example sentence.")] = "",
    notes: Annotated[str | None, typer.Option(help="Free-form notes.")] = None,
    lookup: Annotated[
        bool, typer.Option("--lookup", help="Fill missing fields from the dictionary service.")
    ] = False,
):
    """Add a vocabulary item."""
    if lookup and (definition is None or pos is None):
        from lanlearner.application.factory import get_definition_lookup

        client = get_definition_lookup(_resolve_with_overrides(ctx))

        async def run():
            try:
                return await client.lookup(headword)
            finally:
                await client.close()

        found = asyncio.run(run())
        if found.ok:
            definition = definition or found.definition
            pos = pos or found.part_of_speech
            example = example or found.example
        else:
            typer.secho(f"{found.error}. Enter the definition manually.", fg="yellow", err=True)

    if not headword.strip() or not definition or not pos:
        typer.secho("A headword, --definition and --pos are required.", fg="red", err=True)
        raise typer.Exit(1)

    with storage_guard():
        item = _service(ctx).add_lexical_item(headword, definition, pos, example, notes)
    typer.echo(item.id)


@item_app.command("add-point")
def add_point(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Knowledge point title.")],
    body: Annotated[str, typer.Argument(help="Knowledge point content.")],
    category: Annotated[str | None, typer.Option(help="Category id.")] = None,
    notes: Annotated[str | None, typer.Option(help="Free-form notes.")] = None,
    image_url: Annotated[str | None, typer.Option(help="Image URL.")] = None,
    image_name: Annotated[str | None, typer.Option(help="Image caption.")] = None,
    new_knowledge: Annotated[
        bool, typer.Option("--new-knowledge", "-n", help="File under the new-knowledge hierarchy.")
    ] = False,
):
    """Add a knowledge point."""
    if not title.strip() or not body.strip():
        typer.secho("Title and body must not be empty.", fg="red", err=True)
        raise typer.Exit(1)
    with storage_guard():
        kp = _service(ctx).add_knowledge_point(
            title,
            body,
            category_id=category,
            hierarchy=hierarchy_of(new_knowledge),
            notes=notes,
            image_url=image_url,
            image_name=image_name,
        )
    typer.echo(kp.id)


@item_app.command("show")
def show(ctx: typer.Context, item_id: Annotated[str, typer.Argument(help="Item id.")]):
    """Show an item."""
    item = _service(ctx).get(item_id)
    if item is None:
        raise not_found("Item", item_id)
    typer.echo(format_item(item))
    if isinstance(item, KnowledgePoint):
        typer.echo(item.body)
    elif item.example:
        typer.echo(f"e.g. {item.example}")
    if item.notes:
        typer.echo(f"Notes: {item.notes}")


@item_app.command("list")
def list_items(
    ctx: typer.Context,
    kind: Annotated[
        str | None, typer.Option(help="Only 'word' or 'knowledge' items.")
    ] = None,
):
    """List all items."""
    items = _service(ctx).state.all_items()
    if kind:
        items = [i for i in items if i.kind == kind]
    for item in items:
        typer.echo(format_item(item))
    if not items:
        typer.echo("No items.")


@item_app.command("search")
def search(ctx: typer.Context, prefix: Annotated[str, typer.Argument(help="Headword prefix.")]):
    """Find words by headword prefix."""
    for word in _service(ctx).search_words(prefix):
        typer.echo(format_item(word))


@item_app.command("edit")
def edit(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item id.")],
    headword: Annotated[str | None, typer.Option()] = None,
    definition: Annotated[str | None, typer.Option()] = None,
    pos: Annotated[str | None, typer.Option("--pos")] = None,
    example: Annotated[str | None, typer.Option()] = None,
    title: Annotated[str | None, typer.Option()] = None,
    body: Annotated[str | None, typer.Option()] = None,
    notes: Annotated[str | None, typer.Option()] = None,
    image_url: Annotated[str | None, typer.Option()] = None,
    image_name: Annotated[str | None, typer.Option()] = None,
):
    """Edit an item's content. Options that don't apply to the item are ignored."""
    with storage_guard():
        item = _service(ctx).edit_item(
            item_id,
            headword=headword,
            definition=definition,
            part_of_speech=pos,
            example=example,
            title=title,
            body=body,
            notes=notes,
            image_url=image_url,
            image_name=image_name,
        )
    if item is None:
        raise not_found("Item", item_id)
    typer.echo(format_item(item))


@item_app.command("move")
def move(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Knowledge point id.")],
    category: Annotated[
        str | None, typer.Option(help="Target category id (omit to uncategorize).")
    ] = None,
):
    """Move a knowledge point to another category in its hierarchy."""
    with storage_guard():
        kp = _service(ctx).move_knowledge_point(item_id, category)
    if kp is None:
        raise not_found("Knowledge point", item_id)
    typer.secho(f"Moved '{kp.title}'.", fg="green")


@item_app.command("delete")
def delete(ctx: typer.Context, item_id: Annotated[str, typer.Argument(help="Item id.")]):
    """Move an item to the recycle bin."""
    with storage_guard():
        item = _service(ctx).delete_item(item_id)
    if item is None:
        raise not_found("Item", item_id)
    typer.echo(f"Moved '{item.label}' to the recycle bin (restorable for 24 hours).")


@item_app.command("examples")
def examples(
    word: Annotated[str, typer.Argument(help="Word to search for.")],
    path: Annotated[Path, typer.Argument(help="Plain-text document.", exists=True)],
    limit: Annotated[int, typer.Option(help="Maximum sentences to show.")] = 5,
):
    """Find example sentences for a word in a plain-text document."""
    from lanlearner.application.utils.text import find_example_sentences

    found = find_example_sentences(word, path.read_text(encoding="utf-8", errors="replace"))
    if not found:
        typer.echo(f"No examples of '{word}' found.")
        return
    for sentence in found[:limit]:
        typer.echo(f"- {sentence}")
