"""markdown-it extensions for the vault dialect.

Inline rules (wrapped spans, tags, block ids) are inserted before the core
`link` rule; the task-list rule runs on block tokens before inline parsing and
the internal-link rule reclassifies parsed links afterwards. Rules only
produce tokens: link resolution happens when the tree is built.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore
from markdown_it.rules_inline import StateInline


DOC_EXTENSION = ".md"
DEFAULT_DATE_TRIGGER = "@"
DEFAULT_TIME_TRIGGER = "@@"

TAG_RE = re.compile(r"#([\w/-]+)")
BLOCK_ID_RE = re.compile(r"\^([A-Za-z0-9-]+)\s*")
TASK_RE = re.compile(r"\[([ xX])\](?:[ \t]+|(?=\n)|$)")
SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
WORD_CHAR_RE = re.compile(r"\w")

InlineRule = Callable[[StateInline, bool], bool]


@dataclass(frozen=True)
class WrappedSyntax:
    """A span delimited by an opening and closing marker on one line."""
    name: str           # token type produced
    opener: str
    closer: str


def wrapped_syntaxes(
    date_trigger: str = DEFAULT_DATE_TRIGGER,
    time_trigger: str = DEFAULT_TIME_TRIGGER,
    ) -> list[WrappedSyntax]:
    """Return the wrapped-span syntaxes in match priority order (longest opener first)."""
    syntaxes = [
        WrappedSyntax("time", f"{time_trigger}{{", "}"),
        WrappedSyntax("date_link", f"{date_trigger}[[", "]]"),
        WrappedSyntax("date", f"{date_trigger}{{", "}"),
        WrappedSyntax("embed_wikilink", "![[", "]]"),
        WrappedSyntax("wikilink", "[[", "]]"),
    ]
    return sorted(syntaxes, key=lambda s: len(s.opener), reverse=True)


def wrapped_rule(syntax: WrappedSyntax) -> InlineRule:
    """Build an inline rule matching `opener interior closer` where the interior is non-empty."""
    opener, closer = syntax.opener, syntax.closer

    def rule(state: StateInline, silent: bool) -> bool:
        src, pos = state.src, state.pos
        if not src.startswith(opener, pos):
            return False
        start = pos + len(opener)
        line_end = src.find("\n", start, state.posMax)
        limit = state.posMax if line_end < 0 else line_end
        end = src.find(closer, start, limit)
        if end <= start:
            return False
        if not silent:
            token = state.push(syntax.name, "", 0)
            token.content = src[start:end]
            token.markup = opener
        state.pos = end + len(closer)
        return True

    return rule


def tag_rule(state: StateInline, silent: bool) -> bool:
    src, pos = state.src, state.pos
    if src[pos] != "#":
        return False
    if pos > 0 and WORD_CHAR_RE.match(src[pos - 1]):
        return False
    m = TAG_RE.match(src, pos, state.posMax)
    if not m:
        return False
    if not silent:
        token = state.push("tag", "", 0)
        token.content = m.group(1)
        token.markup = "#"
    state.pos = m.end()
    return True


def blockid_rule(state: StateInline, silent: bool) -> bool:
    """Match a trailing `^identifier` that ends the inline content of a block."""
    src, pos = state.src, state.pos
    if src[pos] != "^":
        return False
    if pos > 0 and not src[pos - 1].isspace():
        return False
    m = BLOCK_ID_RE.match(src, pos, state.posMax)
    if not m or m.end() != state.posMax:
        return False
    if not silent:
        # the whitespace before the marker belongs to the id, not the text
        state.pending = state.pending.rstrip()
        token = state.push("blockid", "", 0)
        token.content = m.group(1)
        token.markup = "^"
    state.pos = state.posMax
    return True


def task_list_rule(state: StateCore) -> None:
    """Strip `[ ]` / `[x]` markers from list items and record `checked` on the item token."""
    tokens = state.tokens
    for i, token in enumerate(tokens[:-2]):
        if token.type != "list_item_open":
            continue
        if tokens[i + 1].type != "paragraph_open" or tokens[i + 2].type != "inline":
            continue
        inline = tokens[i + 2]
        m = TASK_RE.match(inline.content)
        if not m:
            continue
        token.meta["checked"] = m.group(1) != " "
        inline.content = inline.content[m.end():]


def is_internal_target(href: str) -> bool:
    """True for scheme-less targets naming a vault document."""
    return bool(href) and not SCHEME_RE.match(href) and "://" not in href and href.endswith(DOC_EXTENSION)


def internal_link_rule(state: StateCore) -> None:
    """Reclassify links/images to vault documents as internal links/embeds."""
    for block in state.tokens:
        if block.type != "inline" or not block.children:
            continue
        opened: list[bool] = []
        for child in block.children:
            if child.type == "link_open":
                href = child.attrGet("href") or ""
                internal = is_internal_target(href)
                if internal:
                    child.type = "internal_link_open"
                    child.meta["target"] = href
                opened.append(internal)
            elif child.type == "link_close":
                if opened and opened.pop():
                    child.type = "internal_link_close"
            elif child.type == "image":
                src = child.attrGet("src") or ""
                if is_internal_target(src):
                    child.type = "embed_link"
                    child.meta["target"] = src


def use_extensions(
    md: MarkdownIt,
    date_trigger: str = DEFAULT_DATE_TRIGGER,
    time_trigger: str = DEFAULT_TIME_TRIGGER,
    ) -> MarkdownIt:
    """Install every vault-dialect rule on md and return it."""
    for syntax in wrapped_syntaxes(date_trigger, time_trigger):
        md.inline.ruler.before("link", syntax.name, wrapped_rule(syntax))
    md.inline.ruler.before("link", "tag", tag_rule)
    md.inline.ruler.before("link", "blockid", blockid_rule)
    md.core.ruler.after("block", "task_list", task_list_rule)
    md.core.ruler.push("internal_link", internal_link_rule)
    return md


@lru_cache(maxsize=16)
def make_parser(
    preset: str = "gfm-like",
    date_trigger: str = DEFAULT_DATE_TRIGGER,
    time_trigger: str = DEFAULT_TIME_TRIGGER,
    ) -> MarkdownIt:
    """Build (and cache) a MarkdownIt instance for the preset with the vault extensions."""
    md = MarkdownIt(preset, options_update={"linkify": False})
    return use_extensions(md, date_trigger, time_trigger)
