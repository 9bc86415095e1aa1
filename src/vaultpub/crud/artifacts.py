"""Artifact naming and persistence: per-document AST JSON, raw snapshot copies, and main.meta.json"""

import json
import logging
import posixpath
from typing import Any

from pydantic import ValidationError

from vaultpub.core.extensions import DOC_EXTENSION
from vaultpub.core.models import AggregateIndex, ExportRecord
from vaultpub.crud.vault import Vault


log = logging.getLogger(__name__)

AST_SUFFIX = ".ast.json"
DRAFT_AST_SUFFIX = ".draft.ast.json"
DRAFT_COPY_SUFFIX = f".draft{DOC_EXTENSION}"
PUBLISHED_COPY_SUFFIX = f".published{DOC_EXTENSION}"
INDEX_NAME = "main.meta.json"


def _stem(source_path: str) -> str:
    return source_path[: -len(DOC_EXTENSION)] if source_path.endswith(DOC_EXTENSION) else source_path


def artifact_path(source_path: str, draft: bool = False) -> str:
    """'posts/a.md' -> 'posts/a.ast.json' (or 'posts/a.draft.ast.json')."""
    return _stem(source_path) + (DRAFT_AST_SUFFIX if draft else AST_SUFFIX)


def copy_path(source_path: str, draft: bool = False) -> str:
    """'posts/a.md' -> 'posts/a.published.md' (or 'posts/a.draft.md')."""
    return _stem(source_path) + (DRAFT_COPY_SUFFIX if draft else PUBLISHED_COPY_SUFFIX)


def index_path(base_folder: str) -> str:
    return posixpath.join(base_folder, INDEX_NAME) if base_folder else INDEX_NAME


def is_snapshot_copy(path: str) -> bool:
    return path.endswith(DRAFT_COPY_SUFFIX) or path.endswith(PUBLISHED_COPY_SUFFIX)


def is_source_document(path: str) -> bool:
    return path.endswith(DOC_EXTENSION) and not is_snapshot_copy(path)


def is_published_artifact(path: str) -> bool:
    return path.endswith(AST_SUFFIX) and not path.endswith(DRAFT_AST_SUFFIX)


def render_json(payload: Any) -> str:
    """Deterministic JSON text for artifacts: fixed indent, insertion-ordered keys."""
    return json.dumps(payload, indent=2, ensure_ascii=False)


def write_artifact(vault: Vault, source_path: str, record: ExportRecord, draft: bool = False) -> str:
    """Write the record's AST JSON next to the source; return the written path."""
    path = artifact_path(source_path, draft)
    vault.write_file(path, render_json(record.to_flat()))
    return path


def write_copy(vault: Vault, source_path: str, raw: str, draft: bool = False) -> str:
    path = copy_path(source_path, draft)
    vault.write_file(path, raw)
    return path


def delete_published_artifacts(vault: Vault, root: str) -> list[str]:
    """Delete every published AST artifact under root (drafts are kept); return the deleted paths."""
    deleted = [p for p in vault.list_files(root) if is_published_artifact(p)]
    for p in deleted:
        vault.delete_file(p)
    return deleted


def read_index(vault: Vault, base_folder: str) -> AggregateIndex:
    """Load main.meta.json; a missing or unreadable index is treated as empty."""
    path = index_path(base_folder)
    if not vault.file_exists(path):
        return AggregateIndex()
    try:
        data = json.loads(vault.read_file(path))
    except json.JSONDecodeError as e:
        log.warning("Invalid index %s, starting from empty: %s", path, e)
        return AggregateIndex()
    if not isinstance(data, dict):
        log.warning("Invalid index %s, starting from empty: not a JSON object", path)
        return AggregateIndex()

    files = []
    for entry in data.get("files") or []:
        try:
            files.append(ExportRecord.from_flat(entry))
        except (KeyError, TypeError, ValidationError) as e:
            log.warning("Dropping malformed index entry in %s: %s", path, e)
    return AggregateIndex(files=files)


def write_index(vault: Vault, base_folder: str, index: AggregateIndex) -> str:
    path = index_path(base_folder)
    vault.write_file(path, render_json(index.to_payload()))
    return path
