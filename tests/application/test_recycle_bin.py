from datetime import timedelta

import pytest

from lanlearner.application.item_service import ItemService
from lanlearner.application.recycle_bin import RecycleBinService, purge_expired, restore
from lanlearner.application.state import StateKey, StateRepository
from lanlearner.application.taxonomy_service import DeletionMode, TaxonomyService
from lanlearner.domain.constants import RECYCLE_BIN_RETENTION
from lanlearner.domain.models import Hierarchy

NK = Hierarchy.NEW_KNOWLEDGE


@pytest.fixture
def items(repo):
    return ItemService(repo)


@pytest.fixture
def taxonomy(repo):
    return TaxonomyService(repo)


@pytest.fixture
def bin_service(repo):
    return RecycleBinService(repo)


def test_entries_within_retention_survive(items, bin_service, now):
    word = items.add_lexical_item("run", "move", "verb", now=now)
    items.delete_item(word.id, now)

    just_inside = now + RECYCLE_BIN_RETENTION - timedelta(seconds=1)
    assert [e.item.id for e in bin_service.entries(just_inside)] == [word.id]


def test_entries_at_retention_are_purged(items, bin_service, store, now):
    word = items.add_lexical_item("run", "move", "verb", now=now)
    items.delete_item(word.id, now)

    assert bin_service.entries(now + RECYCLE_BIN_RETENTION) == []
    assert StateRepository(store).state.recycle_bin == []


def test_entries_newest_first(items, bin_service, now):
    a = items.add_lexical_item("a", "d", "n", now=now)
    b = items.add_lexical_item("b", "d", "n", now=now)
    items.delete_item(a.id, now)
    items.delete_item(b.id, now + timedelta(minutes=5))
    assert [e.item.id for e in bin_service.entries(now + timedelta(minutes=10))] == [b.id, a.id]


def test_restore_round_trip(items, bin_service, store, now):
    word = items.add_lexical_item("run", "move", "verb", now=now)
    items.delete_item(word.id, now)

    restored = bin_service.restore(word.id, now + timedelta(hours=1))

    assert restored == word
    state = StateRepository(store).state
    assert state.words == [word]
    assert state.recycle_bin == []


def test_restore_expired_fails(items, bin_service, now):
    word = items.add_lexical_item("run", "move", "verb", now=now)
    items.delete_item(word.id, now)
    assert bin_service.restore(word.id, now + timedelta(hours=25)) is None
    assert items.state.words == []


def test_restore_repairs_deleted_category(items, taxonomy, bin_service, now):
    grammar = taxonomy.add_category("Grammar")
    kp = items.add_knowledge_point("Tenses", "...", grammar.id, now=now)
    items.delete_item(kp.id, now)
    taxonomy.delete_category(grammar.id)

    restored = bin_service.restore(kp.id, now)

    assert restored.category_id is None
    assert items.state.knowledge_points == [restored]


def test_restore_nk_item_goes_back_to_nk_partition(items, taxonomy, bin_service, now):
    econ = taxonomy.add_category("Economics", hierarchy=NK)
    micro = taxonomy.add_category("Micro", econ.id, hierarchy=NK)
    kp = items.add_knowledge_point("Elasticity", "...", micro.id, NK, now=now)
    taxonomy.delete_category(micro.id, DeletionMode.CASCADE, NK, now=now)

    restored = bin_service.restore(kp.id, now)

    # Partition is chosen from the subject tag before the stale category is cleared
    assert items.state.new_knowledge_points == [restored]
    assert restored.category_id is None
    assert restored.subject_id is None


def test_restore_skips_duplicate_id(items, repo, now):
    word = items.add_lexical_item("run", "move", "verb", now=now)
    items.delete_item(word.id, now)
    state = repo.state
    state.words.append(word)

    result = restore(state, word.id, now)

    assert result is not None
    assert state.words == [word]
    assert state.recycle_bin == []


def test_purge_expired_counts(items, repo, now):
    for name in ("a", "b"):
        items.delete_item(items.add_lexical_item(name, "d", "n", now=now).id, now)
    assert purge_expired(repo.state, now + timedelta(days=2)) == 2
    repo.persist(StateKey.RECYCLE_BIN)
