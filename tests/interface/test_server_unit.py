from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from lanlearner.application.item_service import ItemService
from lanlearner.application.taxonomy_service import TaxonomyService
from lanlearner.consts import VERSION
from lanlearner.domain.errors import StorageQuotaExceeded
from lanlearner.domain.models import Hierarchy
from lanlearner.server import app, get_state_repository


@pytest.fixture
def client(repo):
    app.dependency_overrides[get_state_repository] = lambda: repo
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version(client):
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_due_and_review(client, repo):
    yesterday = datetime.now(timezone.utc) - timedelta(days=2)
    kp = ItemService(repo).add_knowledge_point("Tenses", "body", now=yesterday)

    due = client.get("/items/due").json()
    assert [i["id"] for i in due] == [kp.id]
    assert due[0]["kind"] == "knowledge"

    response = client.post(f"/items/{kp.id}/review", json={"outcome": "remembered"})
    assert response.status_code == 200
    assert response.json()["srs_stage"] == 1
    assert client.get("/items/due").json() == []


def test_review_validation_and_missing_item(client):
    assert client.post("/items/nope/review", json={"outcome": "remembered"}).status_code == 404
    assert client.post("/items/nope/review", json={"outcome": "maybe"}).status_code == 422


def test_sync_and_graduate(client, repo):
    taxonomy = TaxonomyService(repo)
    econ = taxonomy.add_category("Economics", hierarchy=Hierarchy.NEW_KNOWLEDGE)
    kp = ItemService(repo).add_knowledge_point(
        "Elasticity", "body", econ.id, hierarchy=Hierarchy.NEW_KNOWLEDGE
    )

    skipped = client.post("/new-knowledge/graduate").json()
    assert skipped["status"] == "skipped"

    synced = client.post(f"/new-knowledge/points/{kp.id}/sync").json()
    assert synced["status"] == "created"
    assert synced["target_category_id"] is None

    taxonomy.set_primary_subject(econ.id)
    graduated = client.post("/new-knowledge/graduate").json()
    assert graduated["status"] == "created"
    assert len(graduated["created_categories"]) == 1

    resynced = client.post(f"/new-knowledge/points/{kp.id}/sync").json()
    assert resynced["status"] == "updated"
    assert resynced["target_category_id"] == graduated["created_categories"][0]

    assert client.post("/new-knowledge/points/nope/sync").json()["message"] == "Nothing to sync"


def test_recycle_bin_endpoints(client, repo):
    items = ItemService(repo)
    word = items.add_lexical_item("run", "move fast", "verb")
    items.delete_item(word.id)

    entries = client.get("/recycle-bin").json()
    assert [e["item"]["id"] for e in entries] == [word.id]

    restored = client.post(f"/recycle-bin/{word.id}/restore")
    assert restored.status_code == 200
    assert restored.json()["label"] == "run"
    assert client.get("/recycle-bin").json() == []
    assert client.post(f"/recycle-bin/{word.id}/restore").status_code == 404


def test_storage_full_maps_to_507(client, repo):
    kp = ItemService(repo).add_knowledge_point("Tenses", "body")
    with patch.object(
        repo, "persist", side_effect=StorageQuotaExceeded("knowledge_points", 20, 10)
    ):
        response = client.post(f"/items/{kp.id}/review", json={"outcome": "forgot"})
    assert response.status_code == 507
    assert "Storage quota exceeded" in response.json()["detail"]
