"""
Category management for both hierarchies, plus the new-knowledge study
pointers (primary subject, learning plan) and learned-state marking.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from lanlearner.application.id_service import generate_id
from lanlearner.application.progress import subject_progress
from lanlearner.application.propagation import mark_learned, mark_unlearned
from lanlearner.application.recycle_bin import soft_delete
from lanlearner.application.state import StateKey, StateRepository
from lanlearner.domain.models import Category, Hierarchy, LearningPlan, SubjectProgress

logger = logging.getLogger(__name__)


class DeletionMode(str, Enum):
    # Items under the deleted subtree become uncategorized
    REPARENT = "reparent"
    # Items under the deleted subtree go to the recycle bin
    CASCADE = "cascade"


@dataclass
class DeletionResult:
    removed_categories: set[str] = field(default_factory=set)
    uncategorized_items: list[str] = field(default_factory=list)
    recycled_items: list[str] = field(default_factory=list)
    plan_cleared: bool = False
    primary_subject_cleared: bool = False


def _syllabus_key(hierarchy: Hierarchy) -> StateKey:
    if hierarchy is Hierarchy.NEW_KNOWLEDGE:
        return StateKey.NEW_KNOWLEDGE_SYLLABUS
    return StateKey.SYLLABUS


def _points_key(hierarchy: Hierarchy) -> StateKey:
    if hierarchy is Hierarchy.NEW_KNOWLEDGE:
        return StateKey.NEW_KNOWLEDGE_POINTS
    return StateKey.KNOWLEDGE_POINTS


class TaxonomyService:
    def __init__(self, repo: StateRepository):
        self._repo = repo

    @property
    def state(self):
        return self._repo.state

    # ---------- Categories ----------

    def add_category(self, title: str, parent_id: str | None = None,
                     hierarchy: Hierarchy = Hierarchy.MAIN) -> Category:
        tree = self.state.tree_for(hierarchy)
        category = tree.add(generate_id(), title, parent_id)
        self._repo.persist(_syllabus_key(hierarchy))
        logger.info(f"Added category '{category.title}' ({category.id}) to {hierarchy.value}")
        return category

    def update_category(self, category_id: str, title: str | None = None,
                        parent_id: str | None = None,
                        hierarchy: Hierarchy = Hierarchy.MAIN) -> Category | None:
        """
        Rename and/or re-parent. Moving a new-knowledge category re-derives the
        subject of the items filed beneath it.
        """
        state = self.state
        tree = state.tree_for(hierarchy)
        category = tree.update(category_id, title, parent_id)
        if category is None:
            return None

        keys = [_syllabus_key(hierarchy)]
        if hierarchy is Hierarchy.NEW_KNOWLEDGE and parent_id is not None:
            subtree = tree.descendants_of(category_id) | {category_id}
            subject = tree.top_level_of(category_id)
            for kp in state.new_knowledge_points:
                if kp.category_id in subtree and subject and kp.subject_id != subject.id:
                    kp.subject_id = subject.id
                    keys.append(StateKey.NEW_KNOWLEDGE_POINTS)
            if state.learning_plan and state.learning_plan.category_id in subtree and subject:
                state.learning_plan.subject_id = subject.id
                keys.append(StateKey.LEARNING_PLAN)
            if state.primary_subject_id == category_id and not tree.is_top_level(category_id):
                state.primary_subject_id = None
                keys.append(StateKey.PRIMARY_SUBJECT)
        self._repo.persist(*keys)
        return category

    def delete_category(self, category_id: str, mode: DeletionMode = DeletionMode.REPARENT,
                        hierarchy: Hierarchy = Hierarchy.MAIN,
                        now: datetime | None = None) -> DeletionResult:
        """
        Delete a category and its descendants.

        In REPARENT mode the affected knowledge points lose their category
        (and, in the new-knowledge hierarchy, their subject). In CASCADE mode
        they move to the recycle bin. Either way the learning plan and the
        primary subject are cleared if they pointed into the deleted subtree,
        and all touched collections are written in one batch.
        """
        state = self.state
        tree = state.tree_for(hierarchy)
        removed = tree.remove_subtree(category_id)
        result = DeletionResult(removed_categories=removed)
        if not removed:
            return result

        keys = {_syllabus_key(hierarchy)}
        points = state.points_for(hierarchy)
        affected = [kp for kp in points if kp.category_id in removed]
        if affected:
            keys.add(_points_key(hierarchy))

        if mode is DeletionMode.CASCADE:
            for kp in affected:
                points.remove(kp)
                soft_delete(state, kp, now)
                result.recycled_items.append(kp.id)
            if affected:
                keys.add(StateKey.RECYCLE_BIN)
        else:
            for kp in affected:
                kp.category_id = None
                if hierarchy is Hierarchy.NEW_KNOWLEDGE:
                    kp.subject_id = None
                result.uncategorized_items.append(kp.id)

        if hierarchy is Hierarchy.NEW_KNOWLEDGE:
            for kp in points:
                if kp.subject_id in removed:
                    kp.subject_id = None
                    keys.add(_points_key(hierarchy))

        plan = state.learning_plan
        if plan is not None and (plan.category_id in removed or plan.subject_id in removed):
            state.learning_plan = None
            result.plan_cleared = True
            keys.add(StateKey.LEARNING_PLAN)

        if state.primary_subject_id in removed:
            state.primary_subject_id = None
            result.primary_subject_cleared = True
            keys.add(StateKey.PRIMARY_SUBJECT)

        self._repo.persist(*keys)
        logger.info(
            f"Deleted {len(removed)} categories from {hierarchy.value} ({mode.value}): "
            f"{len(result.uncategorized_items)} uncategorized, "
            f"{len(result.recycled_items)} recycled"
        )
        return result

    # ---------- Learned state ----------

    def mark_learned(self, category_id: str) -> set[str]:
        changed = mark_learned(self.state.new_knowledge_tree, category_id)
        if changed:
            self._repo.persist(StateKey.NEW_KNOWLEDGE_SYLLABUS)
        return changed

    def mark_unlearned(self, category_id: str) -> set[str]:
        changed = mark_unlearned(self.state.new_knowledge_tree, category_id)
        if changed:
            self._repo.persist(StateKey.NEW_KNOWLEDGE_SYLLABUS)
        return changed

    def complete_learning_plan(self) -> set[str]:
        """Mark the planned category learned."""
        plan = self.state.learning_plan
        if plan is None:
            return set()
        return self.mark_learned(plan.category_id)

    # ---------- Study pointers ----------

    def set_primary_subject(self, category_id: str | None) -> bool:
        """Designate a top-level new-knowledge category as primary (None unsets)."""
        state = self.state
        if category_id is not None and not state.new_knowledge_tree.is_top_level(category_id):
            logger.warning(f"{category_id} is not a top-level new-knowledge category")
            return False
        state.primary_subject_id = category_id
        self._repo.persist(StateKey.PRIMARY_SUBJECT)
        return True

    def set_learning_plan(self, category_id: str) -> LearningPlan | None:
        """Point the learning plan at a new-knowledge category and its owning subject."""
        state = self.state
        tree = state.new_knowledge_tree
        category = tree.get(category_id)
        subject = tree.top_level_of(category_id)
        if category is None or subject is None:
            logger.warning(f"Could not determine top-level subject for {category_id}")
            state.learning_plan = None
        else:
            state.learning_plan = LearningPlan(
                subject_id=subject.id, category_id=category.id, category_name=category.title
            )
        self._repo.persist(StateKey.LEARNING_PLAN)
        return state.learning_plan

    def clear_learning_plan(self) -> None:
        self.state.learning_plan = None
        self._repo.persist(StateKey.LEARNING_PLAN)

    def subject_progress(self, subject_id: str | None = None) -> SubjectProgress:
        """Progress under a subject, defaulting to the primary subject."""
        return subject_progress(
            self.state.new_knowledge_tree, subject_id or self.state.primary_subject_id
        )
