"""Vault access: file I/O, link-target lookup, and cached header fields.

All paths crossing this boundary are vault-relative POSIX strings.
"""

from __future__ import annotations

import bisect
import logging
import os
import posixpath
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from vaultpub.core.errors import HeaderParseError, PersistenceError
from vaultpub.core.extensions import DOC_EXTENSION
from vaultpub.core.nodes import FileStat
from vaultpub.core.scan import scan_header
from vaultpub.core.utils.paths import normalize_path


log = logging.getLogger(__name__)


class LinkIndex:
    """Basename index over vault files implementing wiki-style link lookup.

    Lookup order: exact vault path, path relative to the linking document,
    then the first file (in sorted path order) whose name matches.
    """

    def __init__(self, paths=()) -> None:
        self._lock = threading.Lock()
        self._paths: set[str] = set()
        self._by_name: dict[str, list[str]] = {}
        for p in paths:
            self.add(p)

    def add(self, path: str) -> None:
        with self._lock:
            if path in self._paths:
                return
            self._paths.add(path)
            bisect.insort(self._by_name.setdefault(posixpath.basename(path).lower(), []), path)

    def discard(self, path: str) -> None:
        with self._lock:
            if path not in self._paths:
                return
            self._paths.discard(path)
            self._by_name[posixpath.basename(path).lower()].remove(path)

    def __contains__(self, path: str) -> bool:
        return path in self._paths

    def resolve(self, target: str, from_path: str) -> str | None:
        target = target.strip()
        if not target:
            return from_path
        target = normalize_path(target)
        candidates = [target] if target.endswith(DOC_EXTENSION) else [f"{target}{DOC_EXTENSION}", target]

        with self._lock:
            for c in candidates:
                if c in self._paths:
                    return c

            folder = posixpath.dirname(from_path)
            for c in candidates:
                rel = normalize_path(posixpath.join(folder, c))
                if rel in self._paths:
                    return rel

            for c in candidates:
                suffix = f"/{c.lower()}"
                matches = [
                    p for p in self._by_name.get(posixpath.basename(c).lower(), [])
                    if "/" not in c or p.lower() == c.lower() or p.lower().endswith(suffix)
                ]
                if matches:
                    if len(matches) > 1:
                        log.warning("Ambiguous link %r from %s matches %s; using %s", target, from_path, matches, matches[0])
                    return matches[0]
        return None


class Vault(ABC):
    """Storage collaborator consumed by the parser, assembler and indexer."""

    def __init__(self) -> None:
        self._links: LinkIndex | None = None
        self._links_lock = threading.Lock()
        self._headers: dict[str, tuple[int, dict[str, Any] | None]] = {}
        self._headers_lock = threading.Lock()

    @abstractmethod
    def read_file(self, path: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def write_file(self, path: str, text: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_file(self, path: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def list_files(self, root: str = "") -> list[str]:
        """Return sorted paths of every file under root."""
        raise NotImplementedError

    @abstractmethod
    def stat_of(self, path: str) -> FileStat:
        raise NotImplementedError

    def _link_index(self) -> LinkIndex:
        with self._links_lock:
            if self._links is None:
                self._links = LinkIndex(self.list_files())
            return self._links

    def refresh(self) -> None:
        """Drop the link index and header cache so the next lookup rescans the vault."""
        with self._links_lock:
            self._links = None
        with self._headers_lock:
            self._headers.clear()

    def _track(self, path: str, exists: bool) -> None:
        """Keep the link index and header cache in step with writes and deletes."""
        with self._headers_lock:
            self._headers.pop(path, None)
        with self._links_lock:
            if self._links is None:
                return
            if exists:
                self._links.add(path)
            else:
                self._links.discard(path)

    def resolve_link_target(self, raw_target: str, from_path: str) -> str | None:
        """Return the vault path a link target points at, or None when dangling."""
        return self._link_index().resolve(raw_target, from_path)

    def get_header_fields_of(self, path: str) -> dict[str, Any] | None:
        """Return the YAML header of a document, cached per modification time."""
        if not path.endswith(DOC_EXTENSION) or not self.file_exists(path):
            return None
        mtime = self.stat_of(path).mtime
        with self._headers_lock:
            cached = self._headers.get(path)
        if cached and cached[0] == mtime:
            return cached[1]
        try:
            header = scan_header(self.read_file(path))
        except HeaderParseError as e:
            log.warning("Ignoring header of %s: %s", path, e)
            header = None
        with self._headers_lock:
            self._headers[path] = (mtime, header)
        return header


class FileSystemVault(Vault):
    """Vault backed by a directory tree. Dot-directories are not part of the vault."""

    def __init__(self, root: Path | str) -> None:
        super().__init__()
        self.root = Path(root)

    def _abs(self, path: str) -> Path:
        return self.root / normalize_path(path)

    def read_file(self, path: str) -> str:
        try:
            return self._abs(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(path, f"read failed: {e}") from e

    def write_file(self, path: str, text: str) -> None:
        target = self._abs(path)
        tmp = target.with_name(f".{target.name}.{threading.get_ident()}.tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(text, encoding="utf-8")
            os.replace(tmp, target)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise PersistenceError(path, f"write failed: {e}") from e
        self._track(normalize_path(path), exists=True)

    def delete_file(self, path: str) -> None:
        try:
            self._abs(path).unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(path, f"delete failed: {e}") from e
        self._track(normalize_path(path), exists=False)

    def file_exists(self, path: str) -> bool:
        return self._abs(path).is_file()

    def list_files(self, root: str = "") -> list[str]:
        base = self._abs(root)
        if not base.is_dir():
            return []
        found = []
        for p in base.rglob("*"):
            rel = p.relative_to(self.root)
            if p.is_file() and not any(part.startswith(".") for part in rel.parts):
                found.append(rel.as_posix())
        return sorted(found)

    def stat_of(self, path: str) -> FileStat:
        try:
            st = self._abs(path).stat()
        except OSError as e:
            raise PersistenceError(path, f"stat failed: {e}") from e
        return FileStat(ctime=int(st.st_ctime * 1000), mtime=int(st.st_mtime * 1000), size=st.st_size)
