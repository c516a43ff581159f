from pathlib import Path

import pytest
from pydantic import ValidationError

from lanlearner.application.config import AppConfig, resolve_config
from lanlearner.domain.constants import DEFAULT_STORAGE_QUOTA_BYTES


def test_defaults(mock_home):
    config = resolve_config()
    assert config.storage_quota_bytes == DEFAULT_STORAGE_QUOTA_BYTES
    assert config.data_dir == mock_home / ".local/share/lanlearner"


def test_toml_file_is_read(mock_home):
    cfg = mock_home / ".config/lanlearner/config.toml"
    cfg.parent.mkdir(parents=True)
    cfg.write_text('storage_quota_bytes = 1234\ndictionary_url = "http://dict.local"\n')

    config = resolve_config()

    assert config.storage_quota_bytes == 1234
    assert config.dictionary_url == "http://dict.local"


def test_env_beats_toml_and_cli_beats_env(mock_home, monkeypatch, tmp_path):
    cfg = mock_home / ".lanlearner.toml"
    cfg.write_text("storage_quota_bytes = 1234\n")
    monkeypatch.setenv("LANLEARNER_STORAGE_QUOTA_BYTES", "5678")

    assert resolve_config().storage_quota_bytes == 5678
    assert resolve_config({"storage_quota_bytes": 42, "data_dir": None}).storage_quota_bytes == 42


def test_data_dir_is_expanded(mock_home):
    config = resolve_config({"data_dir": "~/study"})
    assert config.data_dir == Path(mock_home / "study").resolve()


def test_quota_must_be_positive(mock_home):
    with pytest.raises(ValidationError):
        AppConfig(storage_quota_bytes=0)
