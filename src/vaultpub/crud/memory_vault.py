from __future__ import annotations

import itertools

from vaultpub.core.errors import PersistenceError
from vaultpub.core.nodes import FileStat
from vaultpub.core.utils.paths import is_within, normalize_path
from vaultpub.crud.vault import Vault


class MemoryVault(Vault):
    """Dict-backed vault. Each write advances a logical clock used as mtime."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        super().__init__()
        self._files: dict[str, str] = {}
        self._stats: dict[str, FileStat] = {}
        self._clock = itertools.count(1)
        for path, text in (files or {}).items():
            self.write_file(path, text)

    def put(self, path: str, text: str, mtime: int | None = None) -> None:
        """Write text and optionally pin its modification time."""
        self.write_file(path, text)
        if mtime is not None:
            path = normalize_path(path)
            self._stats[path] = self._stats[path].model_copy(update={"mtime": mtime})

    def read_file(self, path: str) -> str:
        try:
            return self._files[normalize_path(path)]
        except KeyError:
            raise PersistenceError(path, "read failed: no such file") from None

    def write_file(self, path: str, text: str) -> None:
        path = normalize_path(path)
        tick = next(self._clock)
        created = self._stats[path].ctime if path in self._stats else tick
        self._files[path] = text
        self._stats[path] = FileStat(ctime=created, mtime=tick, size=len(text.encode("utf-8")))
        self._track(path, exists=True)

    def delete_file(self, path: str) -> None:
        path = normalize_path(path)
        self._files.pop(path, None)
        self._stats.pop(path, None)
        self._track(path, exists=False)

    def file_exists(self, path: str) -> bool:
        return normalize_path(path) in self._files

    def list_files(self, root: str = "") -> list[str]:
        root = normalize_path(root)
        return sorted(p for p in self._files if is_within(p, root))

    def stat_of(self, path: str) -> FileStat:
        try:
            return self._stats[normalize_path(path)]
        except KeyError:
            raise PersistenceError(path, "stat failed: no such file") from None
