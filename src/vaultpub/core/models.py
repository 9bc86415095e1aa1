"""Parse results, export records, and the aggregate index"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, Field

from vaultpub.core.nodes import FileStat, Root


IDENTITY_KEYS = ("path", "name", "basename", "stat")
RESERVED_KEYS = IDENTITY_KEYS + ("tags", "slug", "preview", "ast")


@dataclass
class ParsedDocument:
    """Internal parse result for one document; not persisted directly."""
    effective_config: dict[str, Any]
    frontmatter:      dict[str, Any]
    tree:             Root


class ExportRecord(BaseModel):
    """One document's exportable record. Serialized flat: identity, frontmatter, then derived fields."""
    path:        str                      # artifact path relative to the base folder
    name:        str                      # source file name, e.g. 'post.md'
    basename:    str                      # source name without extension
    stat:        FileStat
    frontmatter: dict[str, Any] = Field(default_factory=dict)
    tags:        list[str] = Field(default_factory=list)
    slug:        str
    preview:     Optional[str] = None
    ast:         Optional[Root] = None

    def to_flat(self, include_ast: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "path": self.path,
            "name": self.name,
            "basename": self.basename,
            "stat": self.stat.model_dump(),
        }
        data.update((k, v) for k, v in self.frontmatter.items() if k not in RESERVED_KEYS)
        data["tags"] = list(self.tags)
        data["slug"] = self.slug
        if self.preview is not None:
            data["preview"] = self.preview
        if include_ast and self.ast is not None:
            data["ast"] = self.ast.model_dump(mode="json", exclude_none=True)
        return data

    @classmethod
    def from_flat(cls, data: dict[str, Any]) -> ExportRecord:
        """Rebuild a record (without ast) from an index entry."""
        return cls(
            path=data["path"],
            name=data.get("name", ""),
            basename=data.get("basename", ""),
            stat=data.get("stat") or {},
            frontmatter={k: v for k, v in data.items() if k not in RESERVED_KEYS},
            tags=data.get("tags") or [],
            slug=data.get("slug") or "",
            preview=data.get("preview"),
        )


class TagEntry(BaseModel):
    path:    str
    slug:    str
    preview: Optional[str] = None


class TagGroup(BaseModel):
    name:    str
    entries: list[TagEntry] = Field(default_factory=list)


class AggregateIndex(BaseModel):
    """Collection-wide state: records newest first plus the tag index derived from them."""
    files: list[ExportRecord] = Field(default_factory=list)
    tags:  list[TagGroup] = Field(default_factory=list)

    def paths(self) -> list[str]:
        return [r.path for r in self.files]

    def tag_map(self) -> dict[str, list[str]]:
        return {g.name: [e.path for e in g.entries] for g in self.tags}

    def to_payload(self) -> dict[str, Any]:
        return {
            "files": [r.to_flat(include_ast=False) for r in self.files],
            "tags": [g.model_dump(mode="json", exclude_none=True) for g in self.tags],
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> AggregateIndex:
        return cls(
            files=[ExportRecord.from_flat(entry) for entry in data.get("files") or []],
            tags=data.get("tags") or [],
        )
