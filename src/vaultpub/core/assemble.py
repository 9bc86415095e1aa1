"""Assemble one document into an ExportRecord: identity, frontmatter, tags, slug, preview, tree"""

import logging
from typing import Any

from vaultpub.config import BaseFolderConfig, Settings
from vaultpub.core.models import ExportRecord
from vaultpub.core.nodes import LINK_BEARING
from vaultpub.core.parse import parse_document, parse_fragment
from vaultpub.core.resolve import ResolverContext
from vaultpub.core.utils.paths import relative_to, split_name
from vaultpub.core.utils.slug import kebabize
from vaultpub.crud.artifacts import artifact_path
from vaultpub.crud.vault import Vault


log = logging.getLogger(__name__)


def normalize_tags(value: Any) -> list[str]:
    """Coerce a frontmatter `tags` value to a de-duplicated list without leading '#'."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    elif not isinstance(value, list):
        value = [value]
    tags = (str(t).strip().lstrip("#") for t in value if t is not None)
    return list(dict.fromkeys(t for t in tags if t))


def resolve_preview(value: Any, ctx: ResolverContext, base_folder: str) -> str | None:
    """Return the base-relative path of the first resolved link in a preview fragment."""
    if not isinstance(value, str) or not value.strip():
        return None
    for node in parse_fragment(value, ctx).walk():
        if isinstance(node, LINK_BEARING) and node.file_accessor and node.file_accessor.resolved:
            return relative_to(node.file_accessor.path, base_folder)
    log.debug("Preview %r in %s did not resolve", value, ctx.source_path)
    return None


def assemble_text(
    vault: Vault,
    source_path: str,
    raw: str,
    base: BaseFolderConfig,
    settings: Settings,
    ) -> ExportRecord:
    """Build the ExportRecord for source_path from already-read text."""
    ctx = ResolverContext.for_document(vault, source_path, base, settings)
    parsed = parse_document(raw, ctx)
    frontmatter = parsed.frontmatter
    name, basename = split_name(source_path)
    slug = frontmatter.get("slug")

    return ExportRecord(
        path=relative_to(artifact_path(source_path), base.path),
        name=name,
        basename=basename,
        stat=vault.stat_of(source_path),
        frontmatter=frontmatter,
        tags=normalize_tags(frontmatter.get("tags")),
        slug=str(slug) if slug else kebabize(basename),
        preview=resolve_preview(frontmatter.get("preview"), ctx.with_config(parsed.effective_config), base.path),
        ast=parsed.tree,
    )


def assemble_document(vault: Vault, source_path: str, base: BaseFolderConfig, settings: Settings) -> ExportRecord:
    return assemble_text(vault, source_path, vault.read_file(source_path), base, settings)
