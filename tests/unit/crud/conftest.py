"""Shared fixtures for crud unit tests"""

import pytest

from vaultpub.crud.memory_vault import MemoryVault
from vaultpub.crud.vault import FileSystemVault


@pytest.fixture(name="fs_vault")
def fs_vault_fixture(tmp_path):
    """FileSystemVault over a small directory tree, including a dot-directory."""
    root = tmp_path / "vault"
    (root / "notes" / "sub").mkdir(parents=True)
    (root / ".obsidian").mkdir()
    (root / "notes" / "Foo.md").write_text("---\nstatus: done\n---\n# Foo\n", encoding="utf-8")
    (root / "notes" / "sub" / "Bar.md").write_text("# Bar\n", encoding="utf-8")
    (root / ".obsidian" / "app.json").write_text("{}", encoding="utf-8")
    return FileSystemVault(root)


@pytest.fixture(name="mem_vault")
def mem_vault_fixture():
    return MemoryVault({
        "notes/Foo.md": "---\nstatus: done\n---\n# Foo\n",
        "notes/sub/Bar.md": "# Bar\n",
    })
