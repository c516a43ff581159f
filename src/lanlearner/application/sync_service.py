"""
Promotion of new-knowledge items into the main hierarchy.

The two hierarchies have disjoint id spaces, so category structure is
mirrored by case-insensitive title matching. Copies are independent
snapshots linked back to their origin only through ``master_id``.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from lanlearner.application import srs
from lanlearner.application.id_service import generate_id
from lanlearner.application.state import StateKey, StateRepository
from lanlearner.domain.models import KnowledgePoint
from lanlearner.domain.taxonomy import CategoryTree

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


@dataclass
class SyncResult:
    status: SyncStatus
    message: str
    source_id: str | None = None
    copy_id: str | None = None
    target_category_id: str | None = None


@dataclass
class GraduationResult:
    status: SyncStatus
    message: str
    created_categories: list[str] = field(default_factory=list)


def find_deepest_main_category(main_tree: CategoryTree, titles: list[str]) -> str | None:
    """
    Greedy prefix match of ``titles`` against the main hierarchy.

    Descends from the root one title at a time and stops at the first title
    with no matching child. Nothing is created.

    Returns:
        The deepest matched category id, or None when not even the first
        title matched (the main root).
    """
    current: str | None = None
    for title in titles:
        child = main_tree.find_child_by_title(current, title)
        if child is None:
            break
        current = child.id
    return current


class SyncService:
    def __init__(self, repo: StateRepository):
        self._repo = repo

    def graduate_top_level_categories(self) -> GraduationResult:
        """
        Mirror the primary subject and its direct children into the main
        hierarchy, creating whatever is missing. One level deep only.
        """
        state = self._repo.state
        nk_tree = state.new_knowledge_tree
        subject = nk_tree.get(state.primary_subject_id)
        if subject is None:
            return GraduationResult(SyncStatus.SKIPPED, "No primary subject selected")

        main_tree = state.main_tree
        created: list[str] = []

        top = main_tree.find_child_by_title(None, subject.title)
        if top is None:
            top = main_tree.add(generate_id(), subject.title)
            created.append(top.id)

        for child in nk_tree.children_of(subject.id):
            if main_tree.find_child_by_title(top.id, child.title) is None:
                created.append(main_tree.add(generate_id(), child.title, top.id).id)

        if not created:
            return GraduationResult(
                SyncStatus.SKIPPED, f"'{subject.title}' is already present in the main syllabus"
            )

        self._repo.persist(StateKey.SYLLABUS)
        logger.info(f"Graduated '{subject.title}': {len(created)} categories created")
        return GraduationResult(
            SyncStatus.CREATED,
            f"Created {len(created)} categories for '{subject.title}'",
            created_categories=created,
        )

    def _sync_one(self, kp: KnowledgePoint, now: datetime) -> SyncResult:
        state = self._repo.state
        nk_tree = state.new_knowledge_tree

        if kp.category_id is None:
            return SyncResult(
                SyncStatus.SKIPPED, f"'{kp.title}' has no category to sync from", source_id=kp.id
            )
        if kp.category_id not in nk_tree:
            return SyncResult(
                SyncStatus.SKIPPED, f"No target category resolvable for '{kp.title}'", source_id=kp.id
            )

        target = find_deepest_main_category(state.main_tree, nk_tree.path_titles(kp.category_id))
        existing = next((p for p in state.knowledge_points if p.master_id == kp.id), None)

        if existing is not None:
            # Payload and filing only; the copy keeps its own review history
            existing.title = kp.title
            existing.body = kp.body
            existing.notes = kp.notes
            existing.image_url = kp.image_url
            existing.image_name = kp.image_name
            existing.category_id = target
            return SyncResult(
                SyncStatus.UPDATED,
                f"Updated '{kp.title}' in the main syllabus",
                source_id=kp.id,
                copy_id=existing.id,
                target_category_id=target,
            )

        copy = KnowledgePoint(
            id=generate_id(),
            title=kp.title,
            body=kp.body,
            category_id=target,
            master_id=kp.id,
            subject_id=None,
            image_url=kp.image_url,
            image_name=kp.image_name,
            notes=kp.notes,
            created_at=now,
            next_review_at=srs.first_review_at(now),
            srs_stage=0,
        )
        state.knowledge_points.append(copy)
        return SyncResult(
            SyncStatus.CREATED,
            f"Copied '{kp.title}' to the main syllabus",
            source_id=kp.id,
            copy_id=copy.id,
            target_category_id=target,
        )

    def sync_knowledge_point(self, kp_id: str, now: datetime | None = None) -> SyncResult:
        """
        Copy (or refresh the copy of) one new-knowledge item into the main hierarchy.

        Outcomes are reported, never raised.
        """
        now = now or srs.utcnow()
        kp = next((p for p in self._repo.state.new_knowledge_points if p.id == kp_id), None)
        if kp is None:
            return SyncResult(SyncStatus.SKIPPED, "Nothing to sync", source_id=kp_id)

        result = self._sync_one(kp, now)
        if result.status is not SyncStatus.SKIPPED:
            self._repo.persist(StateKey.KNOWLEDGE_POINTS)
        logger.info(result.message)
        return result

    def sync_category(self, category_id: str, now: datetime | None = None) -> list[SyncResult]:
        """Sync every new-knowledge item filed in ``category_id`` or beneath it."""
        now = now or srs.utcnow()
        state = self._repo.state
        nk_tree = state.new_knowledge_tree
        if category_id not in nk_tree:
            return []

        subtree = nk_tree.descendants_of(category_id) | {category_id}
        results = [
            self._sync_one(kp, now)
            for kp in list(state.new_knowledge_points)
            if kp.category_id in subtree
        ]
        if any(r.status is not SyncStatus.SKIPPED for r in results):
            self._repo.persist(StateKey.KNOWLEDGE_POINTS)
        logger.info(f"Synced {len(results)} items under {nk_tree.path_string(category_id)}")
        return results
