"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


CONFIG_FILE = "config.yaml"

# Header keys that configure the board/renderer rather than describe the document.
DEFAULT_SETTING_KEYS = [
    "kanban-plugin",
    "lane-width",
    "new-note-folder",
    "new-note-template",
    "hide-card-count",
    "hide-tags-in-title",
    "hide-tags-display",
    "hide-date-in-title",
    "hide-date-display",
    "link-date-to-daily-note",
    "show-checkboxes",
    "show-relative-date",
    "date-trigger",
    "time-trigger",
    "date-format",
    "time-format",
    "date-display-format",
    "date-picker-week-start",
    "metadata-keys",
    "tag-colors",
    "tag-sort",
    "date-colors",
    "move-tags",
    "move-dates",
    "archive-with-date",
    "max-archive-size",
    "prepend-archive-date",
]


class MetadataKey(BaseModel):
    """A target-document header field copied onto resolved links."""
    model_config = ConfigDict(populate_by_name=True)

    key:               str = Field(validation_alias=AliasChoices("key", "metadataKey"))
    label:             Optional[str] = None
    contains_markdown: bool = Field(default=False, validation_alias=AliasChoices("contains_markdown", "containsMarkdown"))
    hide_label:        bool = Field(default=False, validation_alias=AliasChoices("hide_label", "shouldHideLabel"))


class BaseFolderConfig(BaseModel):
    path:          str = Field(description="Vault-relative folder; '' or '.' means the whole vault")
    metadata_keys: list[MetadataKey] = Field(default_factory=list)

    @field_validator("path")
    @classmethod
    def _normalize_path(cls, v: str) -> str:
        v = v.replace("\\", "/").strip().strip("/")
        return "" if v == "." else v


class Settings(BaseModel):
    app_name:      str = "vaultpub"
    vault_root:    str = Field(default=".",        description="Directory holding the vault")
    base_folders:  list[BaseFolderConfig] = Field(default_factory=list, description="Folders exported as collections")
    setting_keys:  list[str] = Field(default_factory=lambda: list(DEFAULT_SETTING_KEYS),
                                     description="Header keys merged into the effective config")
    parser_config: str = Field(default="gfm-like", description="MarkdownIt parser preset name")
    max_workers:   int = Field(default=4, ge=1,    description="Worker threads for a full rebuild")

    @field_validator("base_folders", mode="before")
    @classmethod
    def _coerce_folders(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [p for p in v.split(",") if p.strip()]
        if isinstance(v, list):
            return [{"path": item} if isinstance(item, str) else item for item in v]
        return v

    @field_validator("setting_keys", mode="before")
    @classmethod
    def _coerce_keys(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [k.strip() for k in v.split(",") if k.strip()]
        return v


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then VAULTPUB_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"VAULTPUB_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
