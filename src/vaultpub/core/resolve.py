"""Link resolution: raw wikilink/markdown targets to FileAccessor payloads"""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass, field, replace
from functools import cached_property
from typing import Any, Iterable
from urllib.parse import unquote

from pydantic import ValidationError

from vaultpub.config import DEFAULT_SETTING_KEYS, BaseFolderConfig, MetadataKey, Settings
from vaultpub.core.extensions import DEFAULT_DATE_TRIGGER, DEFAULT_TIME_TRIGGER
from vaultpub.core.nodes import FileAccessor, MetadataEntry
from vaultpub.core.utils.paths import relative_to, split_name
from vaultpub.core.utils.slug import kebabize
from vaultpub.crud.vault import Vault


log = logging.getLogger(__name__)

_LABEL_SEP_RE = re.compile(r"[-_]+")


def normalize_target(raw: str) -> tuple[str, str | None, str | None]:
    """Split a raw link target into (root, subpath, alias).

    'Note%20A#^blk|Shown' -> ('Note A', '#^blk', 'Shown')
    """
    text = unicodedata.normalize("NFC", unquote(raw).replace("\u00a0", " "))
    root, has_alias, alias = text.partition("|")
    root, _, sub = root.partition("#")
    # an escaped table pipe leaves a trailing backslash behind
    root = root.rstrip("\\").strip()
    return root, (f"#{sub}" if sub else None), (alias.strip() or None) if has_alias else None


def display_label(key: str) -> str:
    """'publish-date' -> 'Publish date'."""
    text = _LABEL_SEP_RE.sub(" ", key).strip()
    return text[:1].upper() + text[1:]


def value_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        return "list"
    if isinstance(value, dict):
        return "object"
    return "string"


class LinkResolver:
    """Resolve link targets within one base folder, copying configured header fields."""

    def __init__(self, vault: Vault, base_folder: str = "", metadata_keys: Iterable[MetadataKey] = ()) -> None:
        self.vault = vault
        self.base_folder = base_folder
        self.metadata_keys = list(metadata_keys)

    def metadata_for(self, path: str, keys: list[MetadataKey]) -> list[MetadataEntry]:
        header = self.vault.get_header_fields_of(path) or {}
        return [
            MetadataEntry(
                key=k.key,
                label=k.label or display_label(k.key),
                contains_markdown=k.contains_markdown,
                hide_label=k.hide_label,
                value=header[k.key],
                value_type=value_type(header[k.key]),
            )
            for k in keys
            if k.key in header
        ]

    def resolve(
        self,
        raw_target: str,
        source_path: str,
        is_embed: bool,
        metadata_keys: list[MetadataKey] | None = None,
        ) -> FileAccessor:
        """Return the accessor for raw_target; dangling targets keep only target/flag/subpath/alias."""
        target, subpath, alias = normalize_target(raw_target)
        path = self.vault.resolve_link_target(target, source_path)
        if path is None:
            log.debug("Unresolved link %r in %s", raw_target, source_path)
            return FileAccessor(target=target, is_embed=is_embed, subpath=subpath, alias=alias)

        extra: dict[str, Any] = {}
        if not is_embed:
            keys = self.metadata_keys if metadata_keys is None else metadata_keys
            extra = {"slug": kebabize(split_name(path)[1]), "metadata": self.metadata_for(path, keys)}
        return FileAccessor(
            target=target,
            is_embed=is_embed,
            subpath=subpath,
            alias=alias,
            path=path,
            stats=self.vault.stat_of(path),
            base_path=relative_to(path, self.base_folder),
            **extra,
        )


@dataclass(frozen=True)
class ResolverContext:
    """Everything a parse needs from the outside world, passed explicitly."""
    resolver: LinkResolver
    source_path: str
    config: dict[str, Any] = field(default_factory=dict)
    setting_keys: frozenset[str] = frozenset(DEFAULT_SETTING_KEYS)
    preset: str = "gfm-like"

    @classmethod
    def for_document(cls, vault: Vault, source_path: str, base: BaseFolderConfig, settings: Settings) -> ResolverContext:
        return cls(
            resolver=LinkResolver(vault, base.path, base.metadata_keys),
            source_path=source_path,
            setting_keys=frozenset(settings.setting_keys),
            preset=settings.parser_config,
        )

    def with_config(self, config: dict[str, Any]) -> ResolverContext:
        return replace(self, config=dict(config))

    @property
    def date_trigger(self) -> str:
        return str(self.config.get("date-trigger") or DEFAULT_DATE_TRIGGER)

    @property
    def time_trigger(self) -> str:
        return str(self.config.get("time-trigger") or DEFAULT_TIME_TRIGGER)

    @cached_property
    def metadata_keys(self) -> list[MetadataKey]:
        """Document-level `metadata-keys` override the base folder's list."""
        raw = self.config.get("metadata-keys")
        if not isinstance(raw, list):
            return self.resolver.metadata_keys
        keys = []
        for item in raw:
            try:
                keys.append(MetadataKey.model_validate(item))
            except ValidationError as e:
                log.warning("Skipping invalid metadata key %r in %s: %s", item, self.source_path, e)
        return keys

    def resolve(self, raw_target: str, is_embed: bool) -> FileAccessor:
        return self.resolver.resolve(raw_target, self.source_path, is_embed, self.metadata_keys)
