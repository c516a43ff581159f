"""Category subgroup: both hierarchies, learned state, primary subject and learning plan."""

from typing import Annotated

import typer

from lanlearner.interface._common import get_repo, hierarchy_of, not_found, storage_guard

category_app = typer.Typer(help="Manage syllabus categories.", no_args_is_help=True)

NewKnowledgeOption = Annotated[
    bool, typer.Option("--new-knowledge", "-n", help="Operate on the new-knowledge hierarchy.")
]


def _service(ctx: typer.Context):
    from lanlearner.application.taxonomy_service import TaxonomyService

    return TaxonomyService(get_repo(ctx))


@category_app.command("list")
def list_categories(ctx: typer.Context, new_knowledge: NewKnowledgeOption = False):
    """Print the category tree."""
    service = _service(ctx)
    tree = service.state.tree_for(hierarchy_of(new_knowledge))
    if not len(tree):
        typer.echo("No categories.")
        return
    primary = service.state.primary_subject_id
    for category, depth in tree.walk():
        marks = ""
        if new_knowledge and category.is_learned:
            marks += " [learned]"
        if new_knowledge and category.id == primary:
            marks += " [primary]"
        typer.echo(f"{'  ' * depth}{category.title}{marks}  ({category.id})")


@category_app.command("add")
def add(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Category title.")],
    parent: Annotated[str | None, typer.Option(help="Parent category id.")] = None,
    new_knowledge: NewKnowledgeOption = False,
):
    """Add a category (top-level unless --parent is given)."""
    if not title.strip():
        typer.secho("Title must not be empty.", fg="red", err=True)
        raise typer.Exit(1)
    with storage_guard():
        category = _service(ctx).add_category(title, parent, hierarchy_of(new_knowledge))
    typer.echo(category.id)


@category_app.command("update")
def update(
    ctx: typer.Context,
    category_id: Annotated[str, typer.Argument(help="Category id.")],
    title: Annotated[str | None, typer.Option(help="New title.")] = None,
    parent: Annotated[
        str | None, typer.Option(help="New parent id ('root' for top level).")
    ] = None,
    new_knowledge: NewKnowledgeOption = False,
):
    """Rename and/or move a category."""
    with storage_guard():
        category = _service(ctx).update_category(
            category_id, title, parent, hierarchy_of(new_knowledge)
        )
    if category is None:
        raise not_found("Category", category_id)
    typer.secho(f"Updated '{category.title}'.", fg="green")


@category_app.command("delete")
def delete(
    ctx: typer.Context,
    category_id: Annotated[str, typer.Argument(help="Category id.")],
    cascade: Annotated[
        bool,
        typer.Option(
            "--cascade/--reparent",
            help="Recycle the items beneath it instead of leaving them uncategorized.",
        ),
    ] = False,
    new_knowledge: NewKnowledgeOption = False,
):
    """Delete a category and all its subcategories."""
    from lanlearner.application.taxonomy_service import DeletionMode

    mode = DeletionMode.CASCADE if cascade else DeletionMode.REPARENT
    with storage_guard():
        result = _service(ctx).delete_category(category_id, mode, hierarchy_of(new_knowledge))
    if not result.removed_categories:
        raise not_found("Category", category_id)

    typer.echo(f"Deleted {len(result.removed_categories)} categories.")
    if result.uncategorized_items:
        typer.echo(f"{len(result.uncategorized_items)} items are now uncategorized.")
    if result.recycled_items:
        typer.echo(f"{len(result.recycled_items)} items moved to the recycle bin.")
    if result.plan_cleared:
        typer.secho("Learning plan cleared.", fg="yellow")
    if result.primary_subject_cleared:
        typer.secho("Primary subject cleared.", fg="yellow")


@category_app.command("learned")
def learned(
    ctx: typer.Context,
    category_id: Annotated[str, typer.Argument(help="New-knowledge category id.")],
    undo: Annotated[bool, typer.Option("--undo", help="Mark as not learned.")] = False,
):
    """Mark a new-knowledge category as learned (or not learned with --undo)."""
    service = _service(ctx)
    if category_id not in service.state.new_knowledge_tree:
        raise not_found("Category", category_id)
    with storage_guard():
        changed = service.mark_unlearned(category_id) if undo else service.mark_learned(category_id)
    typer.echo(f"{len(changed)} categories changed.")


@category_app.command("primary")
def primary(
    ctx: typer.Context,
    category_id: Annotated[
        str | None, typer.Argument(help="Top-level new-knowledge category id.")
    ] = None,
    clear: Annotated[bool, typer.Option("--clear", help="Unset the primary subject.")] = False,
):
    """Show or set the primary subject."""
    service = _service(ctx)
    if category_id is None and not clear:
        subject = service.state.new_knowledge_tree.get(service.state.primary_subject_id)
        typer.echo(subject.title if subject else "No primary subject selected.")
        return
    with storage_guard():
        ok = service.set_primary_subject(None if clear else category_id)
    if not ok:
        typer.secho("Only a top-level new-knowledge category can be primary.", fg="red", err=True)
        raise typer.Exit(1)
    typer.secho("Primary subject updated.", fg="green")


@category_app.command("plan")
def plan(
    ctx: typer.Context,
    category_id: Annotated[
        str | None, typer.Argument(help="New-knowledge category to study next.")
    ] = None,
    clear: Annotated[bool, typer.Option("--clear", help="Clear the learning plan.")] = False,
    done: Annotated[
        bool, typer.Option("--done", help="Mark the planned category learned.")
    ] = False,
):
    """Show, set, complete or clear the learning plan."""
    service = _service(ctx)
    with storage_guard():
        if clear:
            service.clear_learning_plan()
            typer.echo("Learning plan cleared.")
            return
        if done:
            changed = service.complete_learning_plan()
            typer.echo(f"{len(changed)} categories marked learned.")
            return
        if category_id is not None:
            result = service.set_learning_plan(category_id)
            if result is None:
                raise not_found("Category", category_id)

    current = service.state.learning_plan
    if current is None:
        typer.echo("No learning plan.")
        return
    subject = service.state.new_knowledge_tree.get(current.subject_id)
    typer.echo(f"{subject.title if subject else '?'} > {current.category_name}")


@category_app.command("progress")
def progress(
    ctx: typer.Context,
    subject_id: Annotated[
        str | None, typer.Argument(help="Subject id (defaults to the primary subject).")
    ] = None,
):
    """Learned counts for the first two levels of a subject."""
    stats = _service(ctx).subject_progress(subject_id)
    typer.echo(f"Level 1: {stats.level1_learned}/{stats.level1_total} learned")
    typer.echo(f"Level 2: {stats.level2_learned}/{stats.level2_total} learned")
