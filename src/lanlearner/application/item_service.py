"""
Learning item store: capture, edit, review and soft deletion of lexical items
and knowledge points across the three store partitions.
"""

import logging
from dataclasses import replace
from datetime import datetime

from lanlearner.application import srs
from lanlearner.application.id_service import generate_id
from lanlearner.application.recycle_bin import soft_delete
from lanlearner.application.state import StateKey, StateRepository
from lanlearner.domain.constants import UPCOMING_PREVIEW_SIZE
from lanlearner.domain.models import (
    Hierarchy,
    KnowledgePoint,
    LearningItem,
    LexicalItem,
    ReviewOutcome,
    ReviewSummary,
)

logger = logging.getLogger(__name__)


class ItemService:
    """
    Application service for the learning item store.

    Every mutator persists the partitions it touched before returning.
    """

    def __init__(self, repo: StateRepository):
        self._repo = repo

    @property
    def state(self):
        return self._repo.state

    # ---------- Creation ----------

    def add_lexical_item(
        self,
        headword: str,
        definition: str,
        part_of_speech: str,
        example: str = "",
        notes: str | None = None,
        now: datetime | None = None,
    ) -> LexicalItem:
        now = now or srs.utcnow()
        item = LexicalItem(
            id=generate_id(),
            headword=headword.strip(),
            definition=definition.strip(),
            part_of_speech=part_of_speech.strip(),
            example=example.strip(),
            notes=notes or None,
            created_at=now,
            next_review_at=srs.first_review_at(now),
        )
        self.state.words.append(item)
        self._repo.persist(StateKey.WORDS)
        logger.info(f"Added word '{item.headword}' ({item.id})")
        return item

    def add_knowledge_point(
        self,
        title: str,
        body: str,
        category_id: str | None = None,
        hierarchy: Hierarchy = Hierarchy.MAIN,
        notes: str | None = None,
        image_url: str | None = None,
        image_name: str | None = None,
        now: datetime | None = None,
    ) -> KnowledgePoint:
        """
        Create a knowledge point in either hierarchy.

        Unknown categories file the item at the hierarchy root. In the
        new-knowledge hierarchy the subject is the category's top-level
        ancestor, falling back to the primary subject when uncategorized.
        """
        now = now or srs.utcnow()
        state = self.state
        tree = state.tree_for(hierarchy)
        if category_id is not None and category_id not in tree:
            logger.warning(f"Unknown category {category_id}; filing at root")
            category_id = None

        subject_id = None
        if hierarchy is Hierarchy.NEW_KNOWLEDGE:
            top = tree.top_level_of(category_id)
            subject_id = top.id if top else state.primary_subject_id

        item_id = generate_id()
        kp = KnowledgePoint(
            id=item_id,
            title=title.strip(),
            body=body.strip(),
            category_id=category_id,
            master_id=item_id,
            subject_id=subject_id,
            image_url=image_url,
            image_name=image_name,
            notes=notes or None,
            created_at=now,
            next_review_at=srs.first_review_at(now),
        )
        state.points_for(hierarchy).append(kp)
        self._repo.persist(_points_key(hierarchy))
        logger.info(f"Added knowledge point '{kp.title}' ({kp.id}) to {hierarchy.value}")
        return kp

    # ---------- Lookup ----------

    def get(self, item_id: str) -> LearningItem | None:
        found = self.state.locate(item_id)
        return found[0] if found else None

    def due_items(self, now: datetime | None = None) -> list[LearningItem]:
        """Items due today or earlier, oldest due date first."""
        due = [i for i in self.state.all_items() if srs.is_due(i.next_review_at, now)]
        return sorted(due, key=lambda i: i.next_review_at)

    def upcoming_items(self, now: datetime | None = None,
                       limit: int = UPCOMING_PREVIEW_SIZE) -> list[LearningItem]:
        upcoming = [
            i
            for i in self.state.all_items()
            if i.next_review_at is not None and not srs.is_due(i.next_review_at, now)
        ]
        return sorted(upcoming, key=lambda i: i.next_review_at)[:limit]

    def review_summary(self, now: datetime | None = None) -> ReviewSummary:
        return ReviewSummary(
            due=self.due_items(now),
            upcoming=self.upcoming_items(now),
            total_items=len(self.state.all_items()),
        )

    def search_words(self, prefix: str) -> list[LexicalItem]:
        prefix = prefix.strip().lower()
        return [w for w in self.state.words if w.headword.lower().startswith(prefix)]

    # ---------- Mutation ----------

    def update_item(self, item: LearningItem) -> LearningItem | None:
        """Replace the stored item with the same id. Returns None if it is not stored."""
        found = self.state.locate(item.id)
        if found is None:
            return None
        _, key = found
        partition = self.state.partition(key)
        index = next(i for i, existing in enumerate(partition) if existing.id == item.id)
        partition[index] = item
        self._repo.persist(key)
        return item

    def edit_item(self, item_id: str, **changes) -> LearningItem | None:
        """Update payload fields of an item; unknown or empty fields are ignored."""
        item = self.get(item_id)
        if item is None:
            return None
        editable = _EDITABLE_FIELDS[type(item)]
        updates = {k: v for k, v in changes.items() if k in editable and v is not None}
        if not updates:
            return item
        return self.update_item(replace(item, **updates))

    def review_item(self, item_id: str, outcome: ReviewOutcome,
                    now: datetime | None = None) -> LearningItem | None:
        item = self.get(item_id)
        if item is None:
            return None
        reviewed = srs.apply_review(item, outcome, now)
        logger.debug(
            f"Reviewed {item_id}: {outcome.value}, stage {item.srs_stage} -> {reviewed.srs_stage}"
        )
        return self.update_item(reviewed)

    def move_knowledge_point(self, item_id: str, category_id: str | None) -> KnowledgePoint | None:
        """
        Re-file a knowledge point within its own hierarchy.

        An unknown target category files it at the root. Moving a new-knowledge
        item also updates its subject.
        """
        found = self.state.locate(item_id)
        if found is None or not isinstance(found[0], KnowledgePoint):
            return None
        kp, key = found
        hierarchy = (
            Hierarchy.NEW_KNOWLEDGE if key is StateKey.NEW_KNOWLEDGE_POINTS else Hierarchy.MAIN
        )
        tree = self.state.tree_for(hierarchy)
        if category_id is not None and category_id not in tree:
            category_id = None

        updates: dict = {"category_id": category_id}
        if hierarchy is Hierarchy.NEW_KNOWLEDGE:
            top = tree.top_level_of(category_id)
            updates["subject_id"] = top.id if top else self.state.primary_subject_id
        return self.update_item(replace(kp, **updates))

    def delete_item(self, item_id: str, now: datetime | None = None) -> LearningItem | None:
        """Move an item to the recycle bin."""
        state = self.state
        found = state.locate(item_id)
        if found is None:
            return None
        item, key = found
        state.partition(key).remove(item)
        soft_delete(state, item, now)
        self._repo.persist(key, StateKey.RECYCLE_BIN)
        logger.info(f"Moved {item.kind} '{item.label}' to the recycle bin")
        return item


_EDITABLE_FIELDS = {
    LexicalItem: {"headword", "definition", "part_of_speech", "example", "notes"},
    KnowledgePoint: {"title", "body", "notes", "image_url", "image_name"},
}


def _points_key(hierarchy: Hierarchy) -> StateKey:
    if hierarchy is Hierarchy.NEW_KNOWLEDGE:
        return StateKey.NEW_KNOWLEDGE_POINTS
    return StateKey.KNOWLEDGE_POINTS
