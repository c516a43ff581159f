"""
Application state and its persistence.

All entity collections live in one explicit ``AppState`` owned by a
``StateRepository``. Services mutate the state in memory and then call
``persist`` with the collections they touched; the repository writes them in
a single store batch so related collections commit together.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from lanlearner.application.id_service import generate_id
from lanlearner.domain.constants import (
    DEFAULT_MAIN_CATEGORIES,
    MAIN_ROOT_ID,
    NEW_KNOWLEDGE_ROOT_ID,
)
from lanlearner.domain.interfaces import KeyValueStore
from lanlearner.domain.models import (
    Category,
    Hierarchy,
    KnowledgePoint,
    LearningItem,
    LearningPlan,
    LexicalItem,
    RecycleBinEntry,
)
from lanlearner.domain.taxonomy import CategoryTree

logger = logging.getLogger(__name__)


class StateKey(str, Enum):
    WORDS = "words"
    KNOWLEDGE_POINTS = "knowledge_points"
    SYLLABUS = "syllabus"
    NEW_KNOWLEDGE_SYLLABUS = "new_knowledge_syllabus"
    NEW_KNOWLEDGE_POINTS = "new_knowledge_points"
    RECYCLE_BIN = "recently_deleted"
    LEARNING_PLAN = "learning_plan"
    PRIMARY_SUBJECT = "primary_subject_id"


@dataclass
class AppState:
    main_tree: CategoryTree = field(default_factory=lambda: CategoryTree(MAIN_ROOT_ID))
    new_knowledge_tree: CategoryTree = field(
        default_factory=lambda: CategoryTree(NEW_KNOWLEDGE_ROOT_ID)
    )
    words: list[LexicalItem] = field(default_factory=list)
    knowledge_points: list[KnowledgePoint] = field(default_factory=list)
    new_knowledge_points: list[KnowledgePoint] = field(default_factory=list)
    recycle_bin: list[RecycleBinEntry] = field(default_factory=list)
    learning_plan: LearningPlan | None = None
    primary_subject_id: str | None = None

    def tree_for(self, hierarchy: Hierarchy) -> CategoryTree:
        if hierarchy is Hierarchy.NEW_KNOWLEDGE:
            return self.new_knowledge_tree
        return self.main_tree

    def points_for(self, hierarchy: Hierarchy) -> list[KnowledgePoint]:
        if hierarchy is Hierarchy.NEW_KNOWLEDGE:
            return self.new_knowledge_points
        return self.knowledge_points

    def all_items(self) -> list[LearningItem]:
        return [*self.words, *self.knowledge_points, *self.new_knowledge_points]

    def locate(self, item_id: str) -> tuple[LearningItem, StateKey] | None:
        """Find an item and the partition holding it."""
        partitions: list[tuple[list[Any], StateKey]] = [
            (self.words, StateKey.WORDS),
            (self.knowledge_points, StateKey.KNOWLEDGE_POINTS),
            (self.new_knowledge_points, StateKey.NEW_KNOWLEDGE_POINTS),
        ]
        for items, key in partitions:
            for item in items:
                if item.id == item_id:
                    return item, key
        return None

    def partition(self, key: StateKey) -> list[Any]:
        if key is StateKey.WORDS:
            return self.words
        if key is StateKey.KNOWLEDGE_POINTS:
            return self.knowledge_points
        if key is StateKey.NEW_KNOWLEDGE_POINTS:
            return self.new_knowledge_points
        raise ValueError(f"{key} is not an item partition")


def repair_references(state: AppState) -> set[StateKey]:
    """
    Null out any category, subject, plan or primary-subject reference that
    points at a category which no longer exists.

    Dangling references are repaired silently, never reported as failures.

    Returns:
        Keys of the collections that were modified.
    """
    changed: set[StateKey] = set()

    for kp in state.knowledge_points:
        if kp.category_id is not None and kp.category_id not in state.main_tree:
            logger.info(f"Knowledge point {kp.id}: dropped stale category {kp.category_id}")
            kp.category_id = None
            changed.add(StateKey.KNOWLEDGE_POINTS)

    nk_tree = state.new_knowledge_tree
    for kp in state.new_knowledge_points:
        if kp.category_id is not None and kp.category_id not in nk_tree:
            logger.info(f"Knowledge point {kp.id}: dropped stale category {kp.category_id}")
            kp.category_id = None
            kp.subject_id = None
            changed.add(StateKey.NEW_KNOWLEDGE_POINTS)
        if kp.subject_id is not None and kp.subject_id not in nk_tree:
            logger.info(f"Knowledge point {kp.id}: dropped stale subject {kp.subject_id}")
            kp.subject_id = None
            changed.add(StateKey.NEW_KNOWLEDGE_POINTS)

    plan = state.learning_plan
    if plan is not None and (plan.category_id not in nk_tree or plan.subject_id not in nk_tree):
        logger.info("Learning plan referenced a deleted category; cleared")
        state.learning_plan = None
        changed.add(StateKey.LEARNING_PLAN)

    primary = state.primary_subject_id
    if primary is not None and not nk_tree.is_top_level(primary):
        logger.info("Primary subject no longer exists; cleared")
        state.primary_subject_id = None
        changed.add(StateKey.PRIMARY_SUBJECT)

    return changed


class StateRepository:
    """
    Owns the ``AppState`` and writes it through a ``KeyValueStore``.

    The state is loaded lazily on first access; cross-references are
    validated at load time and repaired collections are written back.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._state: AppState | None = None

    @property
    def state(self) -> AppState:
        if self._state is None:
            self._state = self.load()
        return self._state

    def load(self) -> AppState:
        store = self.store
        dirty: set[StateKey] = set()

        raw_syllabus = store.load(StateKey.SYLLABUS.value, None)
        if not isinstance(raw_syllabus, list):
            main_tree = CategoryTree(MAIN_ROOT_ID)
            for title in DEFAULT_MAIN_CATEGORIES:
                main_tree.add(generate_id(), title)
            dirty.add(StateKey.SYLLABUS)
        else:
            main_tree = CategoryTree(MAIN_ROOT_ID, _categories(raw_syllabus))

        state = AppState(
            main_tree=main_tree,
            new_knowledge_tree=CategoryTree(
                NEW_KNOWLEDGE_ROOT_ID,
                _categories(store.load(StateKey.NEW_KNOWLEDGE_SYLLABUS.value, [])),
            ),
            words=[
                LexicalItem.from_dict(d)
                for d in _records(store.load(StateKey.WORDS.value, []))
            ],
            knowledge_points=[
                KnowledgePoint.from_dict(d)
                for d in _records(store.load(StateKey.KNOWLEDGE_POINTS.value, []))
            ],
            new_knowledge_points=[
                KnowledgePoint.from_dict(d)
                for d in _records(store.load(StateKey.NEW_KNOWLEDGE_POINTS.value, []))
            ],
            recycle_bin=[
                entry
                for entry in (
                    RecycleBinEntry.from_dict(d)
                    for d in _records(store.load(StateKey.RECYCLE_BIN.value, []))
                )
                if entry is not None
            ],
            learning_plan=LearningPlan.from_dict(store.load(StateKey.LEARNING_PLAN.value, None)),
            primary_subject_id=store.load(StateKey.PRIMARY_SUBJECT.value, None),
        )

        dirty |= repair_references(state)
        self._state = state
        if dirty:
            self.persist(*dirty)
        return state

    def persist(self, *keys: StateKey) -> None:
        """
        Write the given collections in one batch.

        Raises:
            StorageQuotaExceeded: Propagated from the store; nothing was written.
        """
        if not keys:
            return
        with self.store.batch():
            for key in dict.fromkeys(keys):
                self.store.save(key.value, self.serialize(key))

    def persist_all(self) -> None:
        self.persist(*StateKey)

    def serialize(self, key: StateKey) -> Any:
        state = self.state
        if key is StateKey.SYLLABUS:
            return state.main_tree.to_list()
        if key is StateKey.NEW_KNOWLEDGE_SYLLABUS:
            return state.new_knowledge_tree.to_list()
        if key is StateKey.RECYCLE_BIN:
            return [entry.to_dict() for entry in state.recycle_bin]
        if key is StateKey.LEARNING_PLAN:
            return state.learning_plan.to_dict() if state.learning_plan else None
        if key is StateKey.PRIMARY_SUBJECT:
            return state.primary_subject_id
        return [item.to_dict() for item in state.partition(key)]


def _records(raw: Any) -> list[dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    return [r for r in raw if isinstance(r, dict) and r.get("id")]


def _categories(raw: Any) -> list[Category]:
    return [Category.from_dict(r) for r in _records(raw)]
