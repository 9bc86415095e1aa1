"""Document parsing: header/footer scan, effective config merge, and tree construction"""

from typing import Any, Iterable

from vaultpub.core.errors import FooterParseError, ParseError
from vaultpub.core.extensions import make_parser
from vaultpub.core.models import ParsedDocument
from vaultpub.core.nodes import Root
from vaultpub.core.resolve import ResolverContext
from vaultpub.core.scan import scan_document
from vaultpub.core.tree import build_tree


FRONTMATTER_KEY = "kanban-plugin"


def split_settings(
    header: dict[str, Any],
    footer: Any,
    setting_keys: Iterable[str],
    ) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return (effective_config, frontmatter).

    The footer object is the base config; header keys in setting_keys override
    it and every other header key is frontmatter. FRONTMATTER_KEY lands in
    both, with the legacy value "basic" read as "board".
    """
    if not isinstance(footer, dict):
        raise FooterParseError(f"Settings footer must be a JSON object, got {type(footer).__name__}")
    keys = set(setting_keys)
    config = dict(footer)
    frontmatter = {}
    for k, v in header.items():
        if k == FRONTMATTER_KEY:
            value = "board" if v == "basic" else v
            config[k] = frontmatter[k] = value
        elif k in keys:
            config[k] = v
        else:
            frontmatter[k] = v
    return config, frontmatter


def _tokens(text: str, ctx: ResolverContext) -> list:
    return make_parser(ctx.preset, ctx.date_trigger, ctx.time_trigger).parse(text)


def parse_document(raw: str, ctx: ResolverContext) -> ParsedDocument:
    """Parse a full document. Structural header/footer errors carry the source path."""
    try:
        scanned = scan_document(raw)
        config, frontmatter = split_settings(scanned.header, scanned.footer, ctx.setting_keys)
    except ParseError as e:
        if e.path is None:
            e.path = ctx.source_path
        raise

    doc_ctx = ctx.with_config(config)
    tree = build_tree(_tokens(scanned.body, doc_ctx), doc_ctx, scanned.body_line_offset)
    return ParsedDocument(effective_config=config, frontmatter=frontmatter, tree=tree)


def parse_fragment(text: str, ctx: ResolverContext) -> Root:
    """Parse a short fragment with the document's extensions but no header/footer extraction."""
    return build_tree(_tokens(text, ctx), ctx)
