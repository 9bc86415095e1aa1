"""CLI command implementations"""

from typing import Annotated, Optional

import typer

from vaultpub.config import BaseFolderConfig, Settings, load_config
from vaultpub.core.errors import NotInBaseFolderError, VaultpubError
from vaultpub.core.parse import parse_document
from vaultpub.core.pipeline import CollectionIndexer, RebuildReport
from vaultpub.core.resolve import ResolverContext
from vaultpub.core.utils.paths import normalize_path
from vaultpub.crud.artifacts import render_json
from vaultpub.crud.vault import FileSystemVault


VaultOpt = Annotated[Optional[str], typer.Option("--vault", help="Vault root directory")]
FolderOpt = Annotated[Optional[list[str]], typer.Option("--base-folder", help="Base folder (repeatable)")]
ParserOpt = Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")]


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _indexer(settings: Settings) -> CollectionIndexer:
    return CollectionIndexer(FileSystemVault(settings.vault_root), settings)


def _echo_rebuild(report: RebuildReport) -> None:
    """Print per-document status and a summary line."""
    for folder in report.folders:
        for path in folder.written:
            typer.echo(f"  written: {path}")
        for failure in folder.failures:
            typer.echo(f"  failed: {failure.path} ({failure.error})")
        if folder.index_path:
            typer.echo(f"  index: {folder.index_path}")
    counts = report.counts()
    typer.echo(
        f"Rebuild complete - "
        f"{counts['written']} written, "
        f"{counts['failed']} failed, "
        f"{counts['deleted']} stale artifact(s) removed"
    )


def rebuild_cmd(
    vault: VaultOpt = None,
    folders: FolderOpt = None,
    parser: ParserOpt = None,
    workers: Annotated[Optional[int], typer.Option("--max-workers", help="Worker threads")] = None,
    ):
    """Regenerate every published artifact and main.meta.json under each base folder."""
    settings = _settings(overrides={
        "vault_root": vault, "base_folders": folders,
        "parser_config": parser, "max_workers": workers,
    })
    if not settings.base_folders:
        _fail("No base folders configured. Pass --base-folder or set base_folders in config.yaml.")

    report = _indexer(settings).rebuild_all()
    _echo_rebuild(report)
    if not report.ok:
        raise typer.Exit(1)


def publish_cmd(
    path: Annotated[str, typer.Argument(help="Vault-relative document path")],
    vault: VaultOpt = None,
    folders: FolderOpt = None,
    parser: ParserOpt = None,
    show_diff: Annotated[bool, typer.Option("--diff", help="Print a diff against the previous publish")] = False,
    ):
    """Publish one document: write its artifact pair and upsert it into the index."""
    settings = _settings(overrides={"vault_root": vault, "base_folders": folders, "parser_config": parser})
    try:
        result = _indexer(settings).publish_one(path)
    except VaultpubError as e:
        _fail(f"Publish failed for {path}", e)

    status = "published" if result.changed else "unchanged"
    typer.echo(f"  {status}: {result.source_path} -> {result.artifact_path}")
    if show_diff and result.diff:
        typer.echo("".join(result.diff), nl=False)
    s = result.summary
    typer.echo(
        f"Publish complete - +{s['added']} -{s['deleted']} lines "
        f"({s['unchanged']} unchanged), index {result.index_path}"
    )


def draft_cmd(
    path: Annotated[str, typer.Argument(help="Vault-relative document path")],
    vault: VaultOpt = None,
    folders: FolderOpt = None,
    parser: ParserOpt = None,
    ):
    """Write a draft artifact pair for one document without touching the index."""
    settings = _settings(overrides={"vault_root": vault, "base_folders": folders, "parser_config": parser})
    try:
        result = _indexer(settings).draft_one(path)
    except VaultpubError as e:
        _fail(f"Draft failed for {path}", e)

    status = "drafted" if result.changed else "unchanged"
    typer.echo(f"  {status}: {result.source_path} -> {result.artifact_path}")
    typer.echo(f"Draft complete - copy at {result.copy_path}")


def parse_cmd(
    path: Annotated[str, typer.Argument(help="Vault-relative document path")],
    vault: VaultOpt = None,
    folders: FolderOpt = None,
    parser: ParserOpt = None,
    ):
    """Print a document's effective config, frontmatter, and AST as JSON."""
    settings = _settings(overrides={"vault_root": vault, "base_folders": folders, "parser_config": parser})
    indexer = _indexer(settings)
    source = normalize_path(path)
    try:
        base = indexer.base_folder_for(source)
    except NotInBaseFolderError:
        base = BaseFolderConfig(path="")

    try:
        ctx = ResolverContext.for_document(indexer.vault, source, base, settings)
        parsed = parse_document(indexer.vault.read_file(source), ctx)
    except VaultpubError as e:
        _fail(f"Parse failed for {path}", e)

    typer.echo(render_json({
        "effective_config": parsed.effective_config,
        "frontmatter": parsed.frontmatter,
        "ast": parsed.tree.model_dump(mode="json", exclude_none=True),
    }))
