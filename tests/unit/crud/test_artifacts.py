"""Unit tests for crud/artifacts.py"""

import json
import logging

import pytest

from vaultpub.core.export import build_index
from vaultpub.core.models import ExportRecord
from vaultpub.core.nodes import FileStat, Root
from vaultpub.crud.artifacts import (
    artifact_path,
    copy_path,
    delete_published_artifacts,
    index_path,
    is_published_artifact,
    is_snapshot_copy,
    is_source_document,
    read_index,
    render_json,
    write_artifact,
    write_copy,
    write_index,
)


def _record(path="a.ast.json", tags=("t",)) -> ExportRecord:
    return ExportRecord(
        path=path, name="a.md", basename="a", stat=FileStat(mtime=5),
        tags=list(tags), slug="a", ast=Root(),
    )


@pytest.mark.parametrize("source,draft,expected", [
    ("posts/a.md", False, "posts/a.ast.json"),
    ("posts/a.md", True, "posts/a.draft.ast.json"),
    ("a.md", False, "a.ast.json"),
])
def test_artifact_path(source, draft, expected):
    assert artifact_path(source, draft) == expected


def test_copy_path():
    assert copy_path("posts/a.md") == "posts/a.published.md"
    assert copy_path("posts/a.md", draft=True) == "posts/a.draft.md"


def test_index_path():
    assert index_path("blog") == "blog/main.meta.json"
    assert index_path("") == "main.meta.json"


def test_path_classifiers():
    assert is_snapshot_copy("a.published.md") and is_snapshot_copy("a.draft.md")
    assert is_source_document("a.md")
    assert not is_source_document("a.published.md")
    assert not is_source_document("a.ast.json")
    assert is_published_artifact("a.ast.json")
    assert not is_published_artifact("a.draft.ast.json")


def test_render_json_is_stable():
    payload = {"b": 1, "a": "ü"}
    assert render_json(payload) == '{\n  "b": 1,\n  "a": "ü"\n}'


def test_write_artifact_and_copy(mem_vault):
    written = write_artifact(mem_vault, "notes/a.md", _record())
    assert written == "notes/a.ast.json"
    data = json.loads(mem_vault.read_file(written))
    assert data["ast"] == {"type": "root", "children": []}
    assert write_copy(mem_vault, "notes/a.md", "raw", draft=True) == "notes/a.draft.md"
    assert mem_vault.read_file("notes/a.draft.md") == "raw"


def test_delete_published_artifacts_keeps_drafts(mem_vault):
    for p in ("notes/a.ast.json", "notes/sub/b.ast.json", "notes/a.draft.ast.json", "other/c.ast.json"):
        mem_vault.write_file(p, "{}")
    deleted = delete_published_artifacts(mem_vault, "notes")
    assert deleted == ["notes/a.ast.json", "notes/sub/b.ast.json"]
    assert mem_vault.file_exists("notes/a.draft.ast.json")
    assert mem_vault.file_exists("other/c.ast.json")


def test_index_write_then_read(mem_vault):
    index = build_index([_record("a.ast.json"), _record("b.ast.json", tags=())])
    assert write_index(mem_vault, "notes", index) == "notes/main.meta.json"
    loaded = read_index(mem_vault, "notes")
    assert sorted(loaded.paths()) == ["a.ast.json", "b.ast.json"]


def test_read_index_missing_is_empty(mem_vault):
    assert read_index(mem_vault, "notes").files == []


@pytest.mark.parametrize("text", ["{not json", "[1, 2]"])
def test_read_index_invalid_is_empty(mem_vault, caplog, text):
    mem_vault.write_file("notes/main.meta.json", text)
    with caplog.at_level(logging.WARNING, logger="vaultpub.crud.artifacts"):
        assert read_index(mem_vault, "notes").files == []
    assert "Invalid index" in caplog.text


def test_read_index_drops_malformed_entries(mem_vault, caplog):
    good = _record().to_flat(include_ast=False)
    mem_vault.write_file("notes/main.meta.json", json.dumps({"files": [good, {"name": "no path"}]}))
    with caplog.at_level(logging.WARNING, logger="vaultpub.crud.artifacts"):
        index = read_index(mem_vault, "notes")
    assert index.paths() == ["a.ast.json"]
    assert "Dropping malformed index entry" in caplog.text
