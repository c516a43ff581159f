"""
Recycle bin for deleted learning items.

Entries expire lazily: every read path purges entries older than the
retention window first, so there is no background timer. Restoring repairs
category and subject references against the current trees before the item
goes back into its store partition.
"""

import logging
from dataclasses import replace
from datetime import datetime

from lanlearner.application.srs import utcnow
from lanlearner.application.state import AppState, StateKey, StateRepository
from lanlearner.domain.constants import RECYCLE_BIN_RETENTION
from lanlearner.domain.models import KnowledgePoint, LearningItem, LexicalItem, RecycleBinEntry

logger = logging.getLogger(__name__)


def soft_delete(state: AppState, item: LearningItem, now: datetime | None = None) -> RecycleBinEntry:
    entry = RecycleBinEntry(item=item, deleted_at=now or utcnow())
    state.recycle_bin.append(entry)
    return entry


def purge_expired(state: AppState, now: datetime | None = None) -> int:
    """Drop entries with ``now - deleted_at >= retention``. Returns how many were dropped."""
    now = now or utcnow()
    kept = [e for e in state.recycle_bin if now - e.deleted_at < RECYCLE_BIN_RETENTION]
    purged = len(state.recycle_bin) - len(kept)
    if purged:
        logger.info(f"Purged {purged} expired recycle bin entries")
        state.recycle_bin[:] = kept
    return purged


def target_partition(item: LearningItem) -> StateKey:
    """Partition an item belongs to, decided by the presence of a subject tag."""
    if isinstance(item, LexicalItem):
        return StateKey.WORDS
    if item.subject_id is not None:
        return StateKey.NEW_KNOWLEDGE_POINTS
    return StateKey.KNOWLEDGE_POINTS


def repair_for_restore(state: AppState, item: LearningItem) -> LearningItem:
    """Null out category/subject references that no longer resolve."""
    if not isinstance(item, KnowledgePoint):
        return item

    if item.subject_id is not None:
        tree = state.new_knowledge_tree
        category_id = item.category_id if item.category_id in tree else None
        subject_id = item.subject_id if item.subject_id in tree else None
        if item.category_id is not None and category_id is None:
            subject_id = None
    else:
        tree = state.main_tree
        category_id = item.category_id if item.category_id in tree else None
        subject_id = None

    if category_id != item.category_id or subject_id != item.subject_id:
        logger.info(f"Restored item {item.id}: stale category references cleared")
        return replace(item, category_id=category_id, subject_id=subject_id)
    return item


def restore(state: AppState, item_id: str, now: datetime | None = None) -> tuple[LearningItem, StateKey] | None:
    """
    Move an entry back into the item store.

    The partition is chosen before repair, from the subject tag the item was
    deleted with. If the partition already holds an item with the same id the
    insert is skipped, but the entry still leaves the bin.

    Returns:
        (restored item, partition key), or None when no live entry has ``item_id``.
    """
    purge_expired(state, now)
    entry = next((e for e in state.recycle_bin if e.item.id == item_id), None)
    if entry is None:
        return None

    key = target_partition(entry.item)
    item = repair_for_restore(state, entry.item)
    partition = state.partition(key)
    if any(existing.id == item.id for existing in partition):
        logger.info(f"Item {item.id} already present; recycle bin entry dropped")
    else:
        partition.append(item)
    state.recycle_bin.remove(entry)
    return item, key


class RecycleBinService:
    def __init__(self, repo: StateRepository):
        self._repo = repo

    def entries(self, now: datetime | None = None) -> list[RecycleBinEntry]:
        """Live entries, newest first."""
        state = self._repo.state
        if purge_expired(state, now):
            self._repo.persist(StateKey.RECYCLE_BIN)
        return sorted(state.recycle_bin, key=lambda e: e.deleted_at, reverse=True)

    def restore(self, item_id: str, now: datetime | None = None) -> LearningItem | None:
        state = self._repo.state
        before = len(state.recycle_bin)
        result = restore(state, item_id, now)
        if result is None:
            if len(state.recycle_bin) != before:
                self._repo.persist(StateKey.RECYCLE_BIN)
            return None
        item, key = result
        self._repo.persist(key, StateKey.RECYCLE_BIN)
        return item
