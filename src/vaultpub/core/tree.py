"""Build the typed node tree from a markdown-it token stream.

Block and inline tokens are mapped through dispatch tables keyed on token type.
Link-bearing nodes are resolved through the ResolverContext as they are built,
so resolution follows pre-order document order.
"""

import logging
from typing import Callable

from markdown_it.token import Token

from vaultpub.core import nodes as n
from vaultpub.core.resolve import ResolverContext


log = logging.getLogger(__name__)

BlockOpener = Callable[[Token], n._Node]
InlineBuilder = Callable[[Token, ResolverContext], n._Node]

_TRANSPARENT = {"thead_open", "thead_close", "tbody_open", "tbody_close"}


def _align(token: Token) -> str | None:
    style = token.attrGet("style") or ""
    return style.removeprefix("text-align:").strip() or None


def _code_info(token: Token) -> tuple[str | None, str | None]:
    lang, _, meta = token.info.strip().partition(" ")
    return lang or None, meta.strip() or None


# --- block dispatch ---

BLOCK_OPENERS: dict[str, BlockOpener] = {
    "paragraph_open":   lambda t: n.Paragraph(),
    "heading_open":     lambda t: n.Heading(depth=int(t.tag[1:])),
    "blockquote_open":  lambda t: n.Blockquote(),
    "bullet_list_open": lambda t: n.ListNode(ordered=False),
    "ordered_list_open": lambda t: n.ListNode(ordered=True, start=int(t.attrGet("start") or 1)),
    "list_item_open":   lambda t: n.ListItem(checked=t.meta.get("checked")),
    "table_open":       lambda t: n.Table(),
    "tr_open":          lambda t: n.TableRow(),
    "th_open":          lambda t: n.TableCell(header=True, align=_align(t)),
    "td_open":          lambda t: n.TableCell(header=False, align=_align(t)),
}

BLOCK_LEAVES: dict[str, BlockOpener] = {
    "fence":      lambda t: n.Code(value=t.content, lang=_code_info(t)[0], meta=_code_info(t)[1]),
    "code_block": lambda t: n.Code(value=t.content),
    "hr":         lambda t: n.ThematicBreak(),
    "html_block": lambda t: n.Html(value=t.content),
}


# --- inline dispatch ---

def _wikilink(t: Token, ctx: ResolverContext) -> n._Node:
    return n.Wikilink(value=t.content, file_accessor=ctx.resolve(t.content, is_embed=False))


def _embed_wikilink(t: Token, ctx: ResolverContext) -> n._Node:
    return n.EmbedWikilink(value=t.content, file_accessor=ctx.resolve(t.content, is_embed=True))


def _embed_link(t: Token, ctx: ResolverContext) -> n._Node:
    target = t.meta["target"]
    return n.EmbedLink(
        url=target, title=t.attrGet("title"), alt=t.content,
        file_accessor=ctx.resolve(target, is_embed=True),
    )


INLINE_LEAVES: dict[str, InlineBuilder] = {
    "text":           lambda t, ctx: n.Text(value=t.content),
    "code_inline":    lambda t, ctx: n.InlineCode(value=t.content),
    "softbreak":      lambda t, ctx: n.Break(hard=False),
    "hardbreak":      lambda t, ctx: n.Break(hard=True),
    "html_inline":    lambda t, ctx: n.Html(value=t.content),
    "image":          lambda t, ctx: n.Image(url=t.attrGet("src") or "", title=t.attrGet("title"), alt=t.content),
    "tag":            lambda t, ctx: n.Tag(value=t.content),
    "blockid":        lambda t, ctx: n.BlockId(value=t.content),
    "date":           lambda t, ctx: n.Date(date=t.content),
    "date_link":      lambda t, ctx: n.DateLink(date=t.content),
    "time":           lambda t, ctx: n.Time(time=t.content),
    "wikilink":       _wikilink,
    "embed_wikilink": _embed_wikilink,
    "embed_link":     _embed_link,
}

INLINE_OPENERS: dict[str, InlineBuilder] = {
    "em_open":     lambda t, ctx: n.Emphasis(),
    "strong_open": lambda t, ctx: n.Strong(),
    "s_open":      lambda t, ctx: n.Delete(),
    "link_open":   lambda t, ctx: n.Link(url=t.attrGet("href") or "", title=t.attrGet("title")),
    "internal_link_open": lambda t, ctx: n.InternalLink(
        url=t.meta["target"], title=t.attrGet("title"),
        file_accessor=ctx.resolve(t.meta["target"], is_embed=False),
    ),
}


def build_inline(tokens: list[Token], ctx: ResolverContext, position: n.Position | None = None) -> list[n._Node]:
    """Convert the children of an `inline` token into inline nodes."""
    out: list[n._Node] = []
    stack: list[list[n._Node]] = [out]
    for t in tokens:
        if t.nesting == -1:
            if len(stack) > 1:
                stack.pop()
            continue

        table = INLINE_OPENERS if t.nesting == 1 else INLINE_LEAVES
        builder = table.get(t.type)
        if builder is None:
            log.debug("Unhandled inline token %s", t.type)
            if t.nesting == 1:
                # unknown wrapper: its children join the enclosing container
                stack.append(stack[-1])
            continue
        node = builder(t, ctx)
        node.position = position
        stack[-1].append(node)
        if t.nesting == 1:
            stack.append(node.children)
    return out


def _position(t: Token, line_offset: int) -> n.Position | None:
    if not t.map:
        return None
    return n.Position(start_line=t.map[0] + line_offset, end_line=t.map[1] + line_offset)


def build_tree(tokens: list[Token], ctx: ResolverContext, line_offset: int = 0) -> n.Root:
    """Fold a block token stream into a Root node."""
    root = n.Root()
    stack: list[n._Node] = [root]
    for t in tokens:
        if t.type in _TRANSPARENT:
            continue
        if t.type == "inline":
            parent = stack[-1]
            children = build_inline(t.children or [], ctx, _position(t, line_offset))
            if children and isinstance(children[-1], n.BlockId) and hasattr(parent, "block_id"):
                parent.block_id = children.pop().value
            parent.children.extend(children)
            continue
        if t.nesting == -1:
            if len(stack) > 1:
                stack.pop()
            continue

        table = BLOCK_OPENERS if t.nesting == 1 else BLOCK_LEAVES
        builder = table.get(t.type)
        if builder is None:
            log.debug("Unhandled block token %s", t.type)
            if t.nesting == 1:
                stack.append(stack[-1])
            continue
        node = builder(t)
        node.position = _position(t, line_offset)
        stack[-1].children.append(node)
        if t.nesting == 1:
            stack.append(node)
    return root
