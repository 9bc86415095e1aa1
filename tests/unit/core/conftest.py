"""Shared fixtures for core unit tests"""

import pytest

from vaultpub.config import MetadataKey
from vaultpub.core.parse import parse_fragment
from vaultpub.core.resolve import LinkResolver, ResolverContext
from vaultpub.crud.memory_vault import MemoryVault


FOO_MD = """\
---
status: in progress
author: Ann
rating: 4
---

# Foo
"""

POST_MD = """\
---
title: Hello
tags: [intro, "#meta"]
preview: "![[cover.png]]"
---

# Hello

See [[Foo]] and ![[cover.png]] #inline
"""


@pytest.fixture(name="vault")
def vault_fixture():
    return MemoryVault({
        "notes/Foo.md": FOO_MD,
        "notes/sub/Bar.md": "# Bar\n",
        "notes/cover.png": "PNG",
        "blog/post.md": POST_MD,
    })


@pytest.fixture(name="resolver")
def resolver_fixture(vault):
    return LinkResolver(vault, "notes", [MetadataKey(key="status"), MetadataKey(key="author", label="By")])


@pytest.fixture(name="ctx")
def ctx_fixture(resolver):
    """Context for a document at notes/page.md inside the 'notes' base folder."""
    return ResolverContext(resolver=resolver, source_path="notes/page.md")


@pytest.fixture(name="parse")
def parse_fixture(ctx):
    """Parse a body fragment and return the Root node."""
    def _parse(text: str):
        return parse_fragment(text, ctx)
    return _parse


@pytest.fixture(name="nodes_of")
def nodes_of_fixture():
    """Collect every node of one kind from a tree, in document order."""
    def _nodes_of(root, kind: str) -> list:
        return [node for node in root.walk() if node.type == kind]
    return _nodes_of
