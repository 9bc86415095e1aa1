"""Unit tests for core/utils/slug.py and core/utils/paths.py"""

import pytest

from vaultpub.core.utils.paths import is_within, normalize_path, relative_to, split_name
from vaultpub.core.utils.slug import kebabize


@pytest.mark.parametrize("text,expected", [
    ("Hello World", "hello-world"),
    ("my_file_name", "my-file-name"),
    ("  leading and trailing  ", "leading-and-trailing"),
    ("multiple---hyphens", "multiple-hyphens"),
    ("Special! Ch@rs#", "special-ch-rs"),
    ("Post 2024.01", "post-2024-01"),
    ("", ""),
])
def test_kebabize(text, expected):
    """kebabize converts text to a lowercase hyphenated slug."""
    assert kebabize(text) == expected


def test_kebabize_preserves_hyphens():
    assert kebabize("already-slugified") == "already-slugified"


@pytest.mark.parametrize("path,expected", [
    ("notes/a.md", "notes/a.md"),
    ("./notes//a.md", "notes/a.md"),
    ("notes\\sub\\a.md", "notes/sub/a.md"),
    ("/notes/a.md", "notes/a.md"),
    ("notes/sub/../a.md", "notes/a.md"),
    (".", ""),
])
def test_normalize_path(path, expected):
    assert normalize_path(path) == expected


def test_is_within():
    assert is_within("notes/a.md", "notes")
    assert not is_within("notesextra/a.md", "notes")
    assert is_within("anything.md", "")


def test_relative_to():
    assert relative_to("notes/sub/a.md", "notes") == "sub/a.md"
    assert relative_to("blog/a.md", "notes") == "blog/a.md"
    assert relative_to("a.md", "") == "a.md"


def test_split_name():
    assert split_name("a/b/My Note.md") == ("My Note.md", "My Note")
    assert split_name("cover.png") == ("cover.png", "cover")
