from datetime import timedelta

import pytest

from lanlearner.application import srs
from lanlearner.application.item_service import ItemService
from lanlearner.application.state import StateRepository
from lanlearner.application.taxonomy_service import TaxonomyService
from lanlearner.domain.models import Hierarchy, ReviewOutcome


@pytest.fixture
def items(repo):
    return ItemService(repo)


@pytest.fixture
def taxonomy(repo):
    return TaxonomyService(repo)


def test_new_word_is_stage_zero_due_tomorrow(items, now):
    word = items.add_lexical_item(" serendipity ", "happy accident", "noun", now=now)
    assert word.headword == "serendipity"
    assert word.srs_stage == 0
    assert word.created_at == now
    assert word.next_review_at == srs.first_review_at(now)


def test_knowledge_point_unknown_category_files_at_root(items, now):
    kp = items.add_knowledge_point("Title", "Body", "missing", now=now)
    assert kp.category_id is None
    assert kp.master_id == kp.id


def test_nk_point_without_category_takes_primary_subject(items, taxonomy, now):
    econ = taxonomy.add_category("Economics", hierarchy=Hierarchy.NEW_KNOWLEDGE)
    taxonomy.set_primary_subject(econ.id)
    kp = items.add_knowledge_point("Loose", "...", None, Hierarchy.NEW_KNOWLEDGE, now=now)
    assert kp.subject_id == econ.id
    assert items.state.new_knowledge_points == [kp]


def test_review_persists_schedule(items, store, now):
    word = items.add_lexical_item("run", "move fast", "verb", now=now)
    items.review_item(word.id, ReviewOutcome.REMEMBERED, now)
    items.review_item(word.id, ReviewOutcome.REMEMBERED, now)

    stored = StateRepository(store).state.words[0]
    assert stored.srs_stage == 2
    assert stored.next_review_at == srs.add_days(now.date(), 7)


def test_review_unknown_item(items, now):
    assert items.review_item("ghost", ReviewOutcome.FORGOT, now) is None


def test_due_and_upcoming(items, now):
    due = items.add_lexical_item("old", "d", "adj", now=now - timedelta(days=3))
    later = items.add_lexical_item("new", "d", "adj", now=now)

    assert [i.id for i in items.due_items(now)] == [due.id]
    assert [i.id for i in items.upcoming_items(now)] == [later.id]

    summary = items.review_summary(now)
    assert summary.total_items == 2
    assert len(summary.due) == 1


def test_edit_item_ignores_foreign_fields(items, now):
    word = items.add_lexical_item("run", "move fast", "verb", now=now)
    edited = items.edit_item(word.id, definition="go quickly", title="ignored")
    assert edited.definition == "go quickly"
    assert edited.srs_stage == 0


def test_move_knowledge_point(items, taxonomy, now):
    grammar = taxonomy.add_category("Grammar")
    kp = items.add_knowledge_point("Tenses", "...", None, now=now)
    moved = items.move_knowledge_point(kp.id, grammar.id)
    assert moved.category_id == grammar.id
    assert items.move_knowledge_point(kp.id, "missing").category_id is None


def test_delete_moves_to_recycle_bin(items, store, now):
    word = items.add_lexical_item("run", "move fast", "verb", now=now)
    items.delete_item(word.id, now)

    state = StateRepository(store).state
    assert state.words == []
    assert [e.item.id for e in state.recycle_bin] == [word.id]
    assert state.recycle_bin[0].deleted_at == now


def test_search_words(items, now):
    items.add_lexical_item("Apple", "fruit", "noun", now=now)
    items.add_lexical_item("apply", "use", "verb", now=now)
    items.add_lexical_item("banana", "fruit", "noun", now=now)
    assert {w.headword for w in items.search_words("app")} == {"Apple", "apply"}
