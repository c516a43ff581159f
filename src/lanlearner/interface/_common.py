"""Shared helpers for CLI subgroups."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import typer

from lanlearner.application.config import AppConfig, resolve_config
from lanlearner.application.state import StateRepository
from lanlearner.domain.errors import StorageQuotaExceeded
from lanlearner.domain.models import Hierarchy, KnowledgePoint, LearningItem

logger = logging.getLogger(__name__)


def _resolve_with_overrides(ctx: typer.Context | None = None, **kwargs: Any) -> AppConfig:
    overrides: dict[str, Any] = {}
    if ctx is not None and isinstance(ctx.obj, dict):
        overrides.update(ctx.obj.get("overrides", {}))
    overrides.update(kwargs)
    return resolve_config(overrides)


def get_repo(ctx: typer.Context) -> StateRepository:
    from lanlearner.application.factory import get_repository

    repo = get_repository(_resolve_with_overrides(ctx))
    # Loading may write back seeds and repairs
    with storage_guard():
        repo.load()
    return repo


@contextmanager
def storage_guard() -> Iterator[None]:
    """Report a full store and exit non-zero instead of dumping a traceback."""
    try:
        yield
    except StorageQuotaExceeded as e:
        logger.error(str(e))
        typer.secho(
            f"Storage is full: {e}. Empty the recycle bin or export and prune old items.",
            fg="red",
            err=True,
        )
        raise typer.Exit(1) from None


def hierarchy_of(new_knowledge: bool) -> Hierarchy:
    return Hierarchy.NEW_KNOWLEDGE if new_knowledge else Hierarchy.MAIN


def not_found(what: str, item_id: str) -> typer.Exit:
    typer.secho(f"{what} '{item_id}' not found.", fg="red", err=True)
    return typer.Exit(1)


def format_item(item: LearningItem) -> str:
    due = item.next_review_at.date().isoformat() if item.next_review_at else "-"
    if isinstance(item, KnowledgePoint):
        return f"{item.id}  [knowledge] {item.title}  (stage {item.srs_stage}, due {due})"
    return (
        f"{item.id}  [word] {item.headword} ({item.part_of_speech}): {item.definition}"
        f"  (stage {item.srs_stage}, due {due})"
    )
