from datetime import datetime, timezone

import pytest

from lanlearner.application.state import StateKey, StateRepository
from lanlearner.infrastructure.storage import JsonFileStore


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    for var in ("LANLEARNER_DATA_DIR", "LANLEARNER_STORAGE_QUOTA_BYTES", "LANLEARNER_VERBOSE"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def now():
    return datetime(2024, 3, 10, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def data_dir(tmp_path):
    d = tmp_path / "data"
    d.mkdir()
    return d


@pytest.fixture
def store(data_dir):
    return JsonFileStore(data_dir)


@pytest.fixture
def seeded_repo(store):
    """Repository over a fresh store; the main hierarchy gets its default seed."""
    return StateRepository(store)


@pytest.fixture
def repo(store):
    """Repository over a store whose hierarchies start empty."""
    store.save(StateKey.SYLLABUS.value, [])
    return StateRepository(store)
