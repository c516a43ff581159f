from unittest.mock import patch

import pytest

from lanlearner.application.state import StateKey, StateRepository
from lanlearner.domain.constants import DEFAULT_MAIN_CATEGORIES
from lanlearner.domain.errors import StorageQuotaExceeded
from lanlearner.domain.models import LexicalItem
from lanlearner.infrastructure.storage import JsonFileStore


def test_fresh_store_seeds_main_hierarchy(seeded_repo, store):
    titles = [c.title for c in seeded_repo.state.main_tree.top_level()]
    assert titles == DEFAULT_MAIN_CATEGORIES
    assert len(store.load(StateKey.SYLLABUS.value, [])) == len(DEFAULT_MAIN_CATEGORIES)


def test_empty_stored_syllabus_is_not_reseeded(repo):
    assert len(repo.state.main_tree) == 0


def test_load_repairs_dangling_references(store):
    store.save(StateKey.SYLLABUS.value, [{"id": "g", "title": "Grammar", "parent_id": "root"}])
    store.save(
        StateKey.NEW_KNOWLEDGE_SYLLABUS.value,
        [{"id": "econ", "title": "Economics", "parent_id": "new_knowledge_root"}],
    )
    store.save(
        StateKey.KNOWLEDGE_POINTS.value,
        [
            {"id": "k1", "title": "ok", "body": "", "category_id": "g"},
            {"id": "k2", "title": "stale", "body": "", "category_id": "deleted"},
        ],
    )
    store.save(
        StateKey.NEW_KNOWLEDGE_POINTS.value,
        [{"id": "n1", "title": "x", "body": "", "category_id": "gone", "subject_id": "econ"}],
    )
    store.save(
        StateKey.LEARNING_PLAN.value,
        {"subject_id": "econ", "category_id": "gone", "category_name": "Gone"},
    )
    store.save(StateKey.PRIMARY_SUBJECT.value, "gone")

    state = StateRepository(store).state

    assert [kp.category_id for kp in state.knowledge_points] == ["g", None]
    assert state.new_knowledge_points[0].category_id is None
    assert state.new_knowledge_points[0].subject_id is None
    assert state.learning_plan is None
    assert state.primary_subject_id is None
    # Repairs are written back
    assert store.load(StateKey.PRIMARY_SUBJECT.value, "x") is None
    assert store.load(StateKey.KNOWLEDGE_POINTS.value, [])[1]["category_id"] is None


def test_load_tolerates_malformed_records(store):
    store.save(StateKey.SYLLABUS.value, [])
    store.save(StateKey.WORDS.value, [
        {"headword": "no id"}, "junk", {"id": "w1", "headword": "ok"},
        {"id": "w2", "headword": "a", "srs_stage": "two"},
    ])
    store.save(StateKey.KNOWLEDGE_POINTS.value, [{"id": "k1", "title": "T", "body": "B", "srs_stage": [3]}])
    store.save(StateKey.RECYCLE_BIN.value, [{"item": {"id": "x"}}])

    state = StateRepository(store).state

    assert [(w.id, w.srs_stage) for w in state.words] == [("w1", 0), ("w2", 0)]
    assert [(kp.id, kp.srs_stage) for kp in state.knowledge_points] == [("k1", 0)]
    assert state.recycle_bin == []


def test_persist_is_one_batch(repo, data_dir):
    store = repo.store
    with patch.object(store, "batch", wraps=store.batch) as batch:
        repo.persist(StateKey.WORDS, StateKey.RECYCLE_BIN, StateKey.WORDS)
    batch.assert_called_once()
    assert (data_dir / "words.json").exists()
    assert (data_dir / "recently_deleted.json").exists()


def test_persist_quota_error_writes_nothing(data_dir):
    store = JsonFileStore(data_dir, quota_bytes=10_000)
    store.save(StateKey.SYLLABUS.value, [])
    repo = StateRepository(store)
    repo.state.words.extend(
        LexicalItem(id=f"w{i}", headword="x" * 200, definition="d", part_of_speech="n")
        for i in range(100)
    )
    with pytest.raises(StorageQuotaExceeded):
        repo.persist(StateKey.WORDS, StateKey.KNOWLEDGE_POINTS)
    assert not (data_dir / "words.json").exists()
    assert not (data_dir / "knowledge_points.json").exists()
