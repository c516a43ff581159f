import pytest

from lanlearner.application.item_service import ItemService
from lanlearner.application.state import StateRepository
from lanlearner.application.taxonomy_service import DeletionMode, TaxonomyService
from lanlearner.domain.models import Hierarchy

NK = Hierarchy.NEW_KNOWLEDGE


@pytest.fixture
def taxonomy(repo):
    return TaxonomyService(repo)


@pytest.fixture
def items(repo):
    return ItemService(repo)


def reload(store):
    return StateRepository(store).state


def test_add_category_persists(taxonomy, store):
    grammar = taxonomy.add_category("Grammar")
    tenses = taxonomy.add_category("Tenses", grammar.id)
    state = reload(store)
    assert state.main_tree.path_titles(tenses.id) == ["Grammar", "Tenses"]


def test_delete_reparent_uncategorizes_items(taxonomy, items, store, now):
    grammar = taxonomy.add_category("Grammar")
    tenses = taxonomy.add_category("Tenses", grammar.id)
    kp = items.add_knowledge_point("Past simple", "...", tenses.id, now=now)

    result = taxonomy.delete_category(grammar.id, DeletionMode.REPARENT)

    assert result.removed_categories == {grammar.id, tenses.id}
    assert result.uncategorized_items == [kp.id]
    state = reload(store)
    assert len(state.main_tree) == 0
    assert state.knowledge_points[0].category_id is None
    assert state.recycle_bin == []


def test_delete_cascade_recycles_items(taxonomy, items, store, now):
    grammar = taxonomy.add_category("Grammar")
    kp = items.add_knowledge_point("Articles", "...", grammar.id, now=now)
    other = items.add_knowledge_point("Loose", "...", None, now=now)

    result = taxonomy.delete_category(grammar.id, DeletionMode.CASCADE, now=now)

    assert result.recycled_items == [kp.id]
    state = reload(store)
    assert [p.id for p in state.knowledge_points] == [other.id]
    assert [e.item.id for e in state.recycle_bin] == [kp.id]


def test_delete_nk_clears_subject_plan_and_primary(taxonomy, items, store, now):
    econ = taxonomy.add_category("Economics", hierarchy=NK)
    micro = taxonomy.add_category("Microeconomics", econ.id, hierarchy=NK)
    kp = items.add_knowledge_point("Elasticity", "...", micro.id, NK, now=now)
    assert kp.subject_id == econ.id
    taxonomy.set_primary_subject(econ.id)
    taxonomy.set_learning_plan(micro.id)

    result = taxonomy.delete_category(econ.id, DeletionMode.REPARENT, NK)

    assert result.plan_cleared and result.primary_subject_cleared
    state = reload(store)
    assert state.learning_plan is None
    assert state.primary_subject_id is None
    moved = state.new_knowledge_points[0]
    assert moved.category_id is None and moved.subject_id is None


def test_delete_leaves_no_dangling_references(taxonomy, items, store, now):
    a = taxonomy.add_category("A")
    b = taxonomy.add_category("B", a.id)
    c = taxonomy.add_category("C")
    for cid in (a.id, b.id, c.id):
        items.add_knowledge_point(f"kp-{cid}", "...", cid, now=now)

    taxonomy.delete_category(a.id)

    state = reload(store)
    for kp in state.knowledge_points:
        assert kp.category_id is None or kp.category_id in state.main_tree


def test_delete_unknown_category_is_noop(taxonomy):
    assert taxonomy.delete_category("ghost").removed_categories == set()


def test_primary_subject_must_be_top_level(taxonomy):
    econ = taxonomy.add_category("Economics", hierarchy=NK)
    micro = taxonomy.add_category("Micro", econ.id, hierarchy=NK)
    assert not taxonomy.set_primary_subject(micro.id)
    assert taxonomy.set_primary_subject(econ.id)
    assert taxonomy.state.primary_subject_id == econ.id
    assert taxonomy.set_primary_subject(None)
    assert taxonomy.state.primary_subject_id is None


def test_learning_plan_resolves_subject(taxonomy, store):
    econ = taxonomy.add_category("Economics", hierarchy=NK)
    micro = taxonomy.add_category("Micro", econ.id, hierarchy=NK)
    elastic = taxonomy.add_category("Elasticity", micro.id, hierarchy=NK)

    plan = taxonomy.set_learning_plan(elastic.id)

    assert plan.subject_id == econ.id
    assert plan.category_name == "Elasticity"
    assert reload(store).learning_plan == plan

    taxonomy.clear_learning_plan()
    assert reload(store).learning_plan is None


def test_complete_learning_plan_marks_learned(taxonomy, store):
    econ = taxonomy.add_category("Economics", hierarchy=NK)
    micro = taxonomy.add_category("Micro", econ.id, hierarchy=NK)
    taxonomy.set_learning_plan(micro.id)

    changed = taxonomy.complete_learning_plan()

    assert changed == {micro.id, econ.id}
    assert reload(store).new_knowledge_tree.get(econ.id).is_learned


def test_moving_nk_category_rederives_subject(taxonomy, items, now):
    econ = taxonomy.add_category("Economics", hierarchy=NK)
    hist = taxonomy.add_category("History", hierarchy=NK)
    topic = taxonomy.add_category("Trade", econ.id, hierarchy=NK)
    kp = items.add_knowledge_point("Tariffs", "...", topic.id, NK, now=now)
    assert kp.subject_id == econ.id

    taxonomy.update_category(topic.id, parent_id=hist.id, hierarchy=NK)

    assert items.get(kp.id).subject_id == hist.id


def test_subject_progress(taxonomy):
    econ = taxonomy.add_category("Economics", hierarchy=NK)
    micro = taxonomy.add_category("Micro", econ.id, hierarchy=NK)
    taxonomy.add_category("Macro", econ.id, hierarchy=NK)
    elastic = taxonomy.add_category("Elasticity", micro.id, hierarchy=NK)
    taxonomy.add_category("Supply", micro.id, hierarchy=NK)
    taxonomy.set_primary_subject(econ.id)
    taxonomy.mark_learned(elastic.id)

    progress = taxonomy.subject_progress()

    assert (progress.level1_learned, progress.level1_total) == (0, 2)
    assert (progress.level2_learned, progress.level2_total) == (1, 2)
