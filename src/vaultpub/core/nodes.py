"""Typed document tree: one pydantic model per node kind, discriminated on `type`.

Link-bearing kinds carry their resolved FileAccessor from construction. The
`position` field is kept in memory only and never serialized.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, SerializerFunctionWrapHandler, model_serializer


# --- link payload ---

class FileStat(BaseModel):
    ctime: int = 0          # milliseconds since epoch
    mtime: int = 0
    size:  int = 0


class MetadataEntry(BaseModel):
    """One header field copied from a link target."""
    key:               str
    label:             str
    contains_markdown: bool = False
    hide_label:        bool = False
    value:             Any = None
    value_type:        str = "string"

    @model_serializer(mode="wrap")
    def _keep_null_value(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        # value stays present under exclude_none
        data = handler(self)
        data.setdefault("value", None)
        return data


class FileAccessor(BaseModel):
    """Resolved link payload. File identity fields stay None for dangling links."""
    target:    str
    is_embed:  bool
    subpath:   Optional[str] = None
    alias:     Optional[str] = None
    path:      Optional[str] = None     # vault-relative path of the resolved file
    stats:     Optional[FileStat] = None
    base_path: Optional[str] = None     # path relative to the base folder
    slug:      Optional[str] = None     # non-embed links only
    metadata:  Optional[list[MetadataEntry]] = None

    @property
    def resolved(self) -> bool:
        return self.path is not None


class Position(BaseModel):
    start_line: int
    end_line:   int


class _Node(BaseModel):
    position: Optional[Position] = Field(default=None, exclude=True)


# --- inline nodes ---

class Text(_Node):
    type: Literal["text"] = "text"
    value: str


class InlineCode(_Node):
    type: Literal["inlineCode"] = "inlineCode"
    value: str


class Break(_Node):
    type: Literal["break"] = "break"
    hard: bool = False


class Html(_Node):
    type: Literal["html"] = "html"
    value: str


class Emphasis(_Node):
    type: Literal["emphasis"] = "emphasis"
    children: list[InlineNode] = Field(default_factory=list)


class Strong(_Node):
    type: Literal["strong"] = "strong"
    children: list[InlineNode] = Field(default_factory=list)


class Delete(_Node):
    type: Literal["delete"] = "delete"
    children: list[InlineNode] = Field(default_factory=list)


class Link(_Node):
    type: Literal["link"] = "link"
    url: str
    title: Optional[str] = None
    children: list[InlineNode] = Field(default_factory=list)


class Image(_Node):
    type: Literal["image"] = "image"
    url: str
    title: Optional[str] = None
    alt: str = ""


class Tag(_Node):
    type: Literal["tag"] = "tag"
    value: str


class BlockId(_Node):
    type: Literal["blockId"] = "blockId"
    value: str


class Date(_Node):
    type: Literal["date"] = "date"
    date: str


class DateLink(_Node):
    type: Literal["dateLink"] = "dateLink"
    date: str


class Time(_Node):
    type: Literal["time"] = "time"
    time: str


class Wikilink(_Node):
    type: Literal["wikilink"] = "wikilink"
    value: str
    file_accessor: Optional[FileAccessor] = None


class EmbedWikilink(_Node):
    type: Literal["embedWikilink"] = "embedWikilink"
    value: str
    file_accessor: Optional[FileAccessor] = None


class InternalLink(_Node):
    type: Literal["internalLink"] = "internalLink"
    url: str
    title: Optional[str] = None
    children: list[InlineNode] = Field(default_factory=list)
    file_accessor: Optional[FileAccessor] = None


class EmbedLink(_Node):
    type: Literal["embedLink"] = "embedLink"
    url: str
    title: Optional[str] = None
    alt: str = ""
    file_accessor: Optional[FileAccessor] = None


InlineNode = Annotated[
    Union[
        Text, InlineCode, Break, Html, Emphasis, Strong, Delete, Link, Image,
        Tag, BlockId, Date, DateLink, Time,
        Wikilink, EmbedWikilink, InternalLink, EmbedLink,
    ],
    Field(discriminator="type"),
]

LINK_BEARING = (Wikilink, EmbedWikilink, InternalLink, EmbedLink)


# --- block nodes ---

class Paragraph(_Node):
    type: Literal["paragraph"] = "paragraph"
    children: list[InlineNode] = Field(default_factory=list)
    block_id: Optional[str] = None


class Heading(_Node):
    type: Literal["heading"] = "heading"
    depth: int
    children: list[InlineNode] = Field(default_factory=list)
    block_id: Optional[str] = None


class Blockquote(_Node):
    type: Literal["blockquote"] = "blockquote"
    children: list[BlockNode] = Field(default_factory=list)


class ListItem(_Node):
    type: Literal["listItem"] = "listItem"
    checked: Optional[bool] = None      # None when the item has no checkbox
    children: list[BlockNode] = Field(default_factory=list)


class ListNode(_Node):
    type: Literal["list"] = "list"
    ordered: bool = False
    start: Optional[int] = None
    children: list[ListItem] = Field(default_factory=list)


class Code(_Node):
    type: Literal["code"] = "code"
    lang: Optional[str] = None
    meta: Optional[str] = None
    value: str


class ThematicBreak(_Node):
    type: Literal["thematicBreak"] = "thematicBreak"


class TableCell(_Node):
    type: Literal["tableCell"] = "tableCell"
    header: bool = False
    align: Optional[str] = None
    children: list[InlineNode] = Field(default_factory=list)


class TableRow(_Node):
    type: Literal["tableRow"] = "tableRow"
    children: list[TableCell] = Field(default_factory=list)


class Table(_Node):
    type: Literal["table"] = "table"
    children: list[TableRow] = Field(default_factory=list)


BlockNode = Annotated[
    Union[Paragraph, Heading, Blockquote, ListNode, Code, ThematicBreak, Html, Table],
    Field(discriminator="type"),
]


class Root(_Node):
    type: Literal["root"] = "root"
    children: list[BlockNode] = Field(default_factory=list)

    def walk(self):
        """Yield every descendant node in pre-order."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(getattr(node, "children", None) or []))


for _model in (
    Emphasis, Strong, Delete, Link, InternalLink,
    Paragraph, Heading, Blockquote, ListItem, ListNode, TableCell, TableRow, Table, Root,
):
    _model.model_rebuild()
