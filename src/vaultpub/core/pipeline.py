"""Collection operations: full rebuild, per-document draft, and per-document publish"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Iterable

from vaultpub.config import BaseFolderConfig, Settings
from vaultpub.core.assemble import assemble_text
from vaultpub.core.errors import NotInBaseFolderError, SnapshotSourceError, VaultpubError
from vaultpub.core.export import build_index, upsert_record
from vaultpub.core.models import ExportRecord
from vaultpub.core.utils.diff import diff_summary, unified_diff
from vaultpub.core.utils.paths import is_within, normalize_path
from vaultpub.crud.artifacts import (
    artifact_path,
    copy_path,
    delete_published_artifacts,
    is_snapshot_copy,
    is_source_document,
    read_index,
    write_artifact,
    write_copy,
    write_index,
)
from vaultpub.crud.vault import Vault


log = logging.getLogger(__name__)


@dataclass
class DocumentFailure:
    path: str
    error: str


@dataclass
class FolderReport:
    """Outcome of rebuilding one base folder."""
    folder: str
    index_path: str | None = None
    written: list[str] = field(default_factory=list)        # artifact paths
    failures: list[DocumentFailure] = field(default_factory=list)
    deleted: int = 0


@dataclass
class RebuildReport:
    folders: list[FolderReport] = field(default_factory=list)

    @property
    def failures(self) -> list[DocumentFailure]:
        return [f for r in self.folders for f in r.failures]

    @property
    def ok(self) -> bool:
        return not self.failures

    def counts(self) -> dict[str, int]:
        return {
            "written": sum(len(r.written) for r in self.folders),
            "failed": len(self.failures),
            "deleted": sum(r.deleted for r in self.folders),
        }


@dataclass
class DraftResult:
    source_path: str
    artifact_path: str
    copy_path: str
    changed: bool


@dataclass
class PublishResult:
    source_path: str
    artifact_path: str
    copy_path: str
    index_path: str
    changed: bool                       # artifact content differs from the previous publish
    diff: list[str] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)


class CollectionIndexer:
    """Drive assembly across base folders and keep main.meta.json consistent with published artifacts."""

    def __init__(self, vault: Vault, settings: Settings) -> None:
        self.vault = vault
        self.settings = settings
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, folder: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(folder, threading.Lock())

    def base_folder_for(self, path: str) -> BaseFolderConfig:
        for base in self.settings.base_folders:
            if is_within(path, base.path):
                return base
        raise NotInBaseFolderError(path)

    def _folders(self, root_folders: Iterable[str] | None) -> list[BaseFolderConfig]:
        if root_folders is None:
            return list(self.settings.base_folders)
        configured = {b.path: b for b in self.settings.base_folders}
        folders = []
        for root in root_folders:
            base = BaseFolderConfig(path=root)
            folders.append(configured.get(base.path, base))
        return folders

    def _check_source(self, path: str) -> tuple[str, BaseFolderConfig]:
        path = normalize_path(path)
        if is_snapshot_copy(path):
            raise SnapshotSourceError(path)
        return path, self.base_folder_for(path)

    # --- full rebuild ---

    def _export_one(self, source_path: str, base: BaseFolderConfig) -> tuple[ExportRecord, str]:
        record = assemble_text(self.vault, source_path, self.vault.read_file(source_path), base, self.settings)
        return record, write_artifact(self.vault, source_path, record)

    def _rebuild_folder(self, base: BaseFolderConfig) -> FolderReport:
        report = FolderReport(folder=base.path)
        report.deleted = len(delete_published_artifacts(self.vault, base.path))
        sources = [p for p in self.vault.list_files(base.path) if is_source_document(p)]
        log.info("Rebuilding %s: %d document(s)", base.path or "<vault>", len(sources))

        records: list[ExportRecord] = []
        with ThreadPoolExecutor(max_workers=self.settings.max_workers) as pool:
            futures = {pool.submit(self._export_one, p, base): p for p in sources}
            for future in as_completed(futures):
                source = futures[future]
                try:
                    record, written = future.result()
                except VaultpubError as e:
                    log.error("Failed to export %s: %s", source, e)
                    report.failures.append(DocumentFailure(source, str(e)))
                    continue
                except Exception as e:
                    # one bad document must not abort the folder
                    log.exception("Unexpected error exporting %s", source)
                    report.failures.append(DocumentFailure(source, f"{type(e).__name__}: {e}"))
                    continue
                records.append(record)
                report.written.append(written)

        report.written.sort()
        report.failures.sort(key=lambda f: f.path)
        try:
            with self._lock_for(base.path):
                report.index_path = write_index(self.vault, base.path, build_index(records))
        except VaultpubError as e:
            log.error("Failed to write index for %s: %s", base.path, e)
            report.failures.append(DocumentFailure(base.path, str(e)))
        return report

    def rebuild_all(self, root_folders: Iterable[str] | None = None) -> RebuildReport:
        """Regenerate every published artifact and index under each root; failures are collected, not raised."""
        report = RebuildReport()
        self.vault.refresh()
        for base in self._folders(root_folders):
            report.folders.append(self._rebuild_folder(base))
        return report

    # --- single document ---

    def draft_one(self, path: str) -> DraftResult:
        """Write the draft pair for one document. The index is not touched."""
        source, base = self._check_source(path)
        raw = self.vault.read_file(source)
        record = assemble_text(self.vault, source, raw, base, self.settings)

        target = artifact_path(source, draft=True)
        previous = self.vault.read_file(target) if self.vault.file_exists(target) else None
        written = write_artifact(self.vault, source, record, draft=True)
        return DraftResult(
            source_path=source,
            artifact_path=written,
            copy_path=write_copy(self.vault, source, raw, draft=True),
            changed=previous != self.vault.read_file(written),
        )

    def publish_one(self, path: str) -> PublishResult:
        """Write the published pair and upsert the record into the base folder's index."""
        source, base = self._check_source(path)
        raw = self.vault.read_file(source)
        record = assemble_text(self.vault, source, raw, base, self.settings)

        target, copy = artifact_path(source), copy_path(source)
        with self._lock_for(base.path):
            previous_ast = self.vault.read_file(target) if self.vault.file_exists(target) else ""
            previous_raw = self.vault.read_file(copy) if self.vault.file_exists(copy) else ""
            written = write_artifact(self.vault, source, record)
            write_copy(self.vault, source, raw)
            index = upsert_record(read_index(self.vault, base.path), record)
            index_file = write_index(self.vault, base.path, index)

        log.info("Published %s -> %s", source, written)
        return PublishResult(
            source_path=source,
            artifact_path=written,
            copy_path=copy,
            index_path=index_file,
            changed=previous_ast != self.vault.read_file(written),
            diff=unified_diff(previous_raw, raw, from_label=f"{copy} (previous)", to_label=source),
            summary=diff_summary(previous_raw, raw),
        )
