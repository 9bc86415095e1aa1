"""Unit tests for core/assemble.py"""

import json

import pytest

from vaultpub.config import BaseFolderConfig, Settings
from vaultpub.core.assemble import assemble_document, assemble_text, normalize_tags


@pytest.fixture(name="settings")
def settings_fixture():
    return Settings(base_folders=["blog", "notes"])


@pytest.mark.parametrize("value,expected", [
    (None, []),
    ("a, #b, a", ["a", "b"]),
    (["#x", "y", "#x", None, ""], ["x", "y"]),
    (42, ["42"]),
])
def test_normalize_tags(value, expected):
    assert normalize_tags(value) == expected


def test_assemble_document_record_fields(vault, settings):
    """Identity, normalized tags, slug, and preview are derived from the source."""
    record = assemble_document(vault, "blog/post.md", BaseFolderConfig(path="blog"), settings)
    assert record.path == "post.ast.json"
    assert (record.name, record.basename) == ("post.md", "post")
    assert record.stat == vault.stat_of("blog/post.md")
    assert record.tags == ["intro", "meta"]
    assert record.slug == "post"
    # the embed resolves to notes/cover.png, which lies outside 'blog'
    assert record.preview == "notes/cover.png"
    assert record.frontmatter["title"] == "Hello"


def test_assemble_preview_relative_to_base(vault, settings):
    vault.write_file("notes/card.md", "---\npreview: '![[cover.png]]'\n---\nCard\n")
    record = assemble_document(vault, "notes/card.md", BaseFolderConfig(path="notes"), settings)
    assert record.path == "card.ast.json"
    assert record.preview == "cover.png"


def test_assemble_unresolved_preview_is_none(vault, settings):
    vault.write_file("notes/x.md", "---\npreview: '![[nowhere.png]]'\n---\n")
    record = assemble_document(vault, "notes/x.md", BaseFolderConfig(path="notes"), settings)
    assert record.preview is None
    assert "preview" not in record.to_flat()


def test_assemble_frontmatter_slug_wins(vault, settings):
    vault.write_file("notes/My Note.md", "Body\n")
    record = assemble_text(vault, "notes/My Note.md", "---\nslug: custom\n---\n", BaseFolderConfig(path="notes"), settings)
    assert record.slug == "custom"
    no_slug = assemble_text(vault, "notes/My Note.md", "Body\n", BaseFolderConfig(path="notes"), settings)
    assert no_slug.slug == "my-note"


def test_flat_record_layout(vault, settings):
    """Identity keys first, then frontmatter, then derived fields; positions never appear."""
    record = assemble_document(vault, "blog/post.md", BaseFolderConfig(path="blog"), settings)
    flat = record.to_flat()
    assert list(flat)[:4] == ["path", "name", "basename", "stat"]
    assert list(flat)[-4:] == ["tags", "slug", "preview", "ast"]
    assert flat["title"] == "Hello"
    assert flat["tags"] == ["intro", "meta"]
    assert "position" not in json.dumps(flat)
    assert flat["ast"]["type"] == "root"


def test_identity_keys_beat_frontmatter(vault, settings):
    vault.write_file("notes/a.md", "---\npath: elsewhere\nname: Bob\n---\n")
    record = assemble_document(vault, "notes/a.md", BaseFolderConfig(path="notes"), settings)
    flat = record.to_flat()
    assert flat["path"] == "a.ast.json"
    assert flat["name"] == "a.md"


def test_links_in_record_carry_metadata(vault):
    settings = Settings(base_folders=[{"path": "blog", "metadata_keys": [{"metadataKey": "status"}]}])
    record = assemble_document(vault, "blog/post.md", settings.base_folders[0], settings)
    wikilink = next(n for n in record.ast.walk() if n.type == "wikilink")
    assert wikilink.file_accessor.path == "notes/Foo.md"
    assert [(m.key, m.value) for m in wikilink.file_accessor.metadata] == [("status", "in progress")]
