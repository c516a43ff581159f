import pytest

from lanlearner.infrastructure.interchange_file import (
    InterchangeFileError,
    dump_sheets,
    load_sheets,
    read_sheets,
    write_sheets,
)


def test_multiline_cells_use_block_literals():
    text = dump_sheets({"knowledge_points": [{"title": "Tenses", "body": "line 1\nline 2"}]})
    assert "body: |" in text
    assert load_sheets(text)["knowledge_points"][0]["body"] == "line 1\nline 2"


def test_write_then_read(tmp_path):
    path = write_sheets(tmp_path / "out" / "export.yaml", {"words": [{"headword": "über"}]})
    assert "über" in path.read_text(encoding="utf-8")
    assert read_sheets(path) == {"words": [{"headword": "über"}]}


def test_duplicate_keys_rejected():
    with pytest.raises(InterchangeFileError, match="duplicate key 'title'"):
        load_sheets("knowledge_points:\n  - title: a\n    title: b\n")


def test_top_level_must_be_mapping():
    with pytest.raises(InterchangeFileError):
        load_sheets("- just\n- a list\n")


def test_empty_file_is_empty_mapping():
    assert load_sheets("") == {}


def test_missing_file(tmp_path):
    with pytest.raises(InterchangeFileError, match="Could not read"):
        read_sheets(tmp_path / "absent.yaml")
