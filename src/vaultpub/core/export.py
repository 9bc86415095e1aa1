"""Aggregate index construction: record ordering, tag index, and single-record upsert"""

from vaultpub.core.models import AggregateIndex, ExportRecord, TagEntry, TagGroup


def sort_records(records: list[ExportRecord]) -> list[ExportRecord]:
    """Newest-modified first; path breaks ties so order never depends on completion order."""
    return sorted(records, key=lambda r: (-r.stat.mtime, r.path))


def build_tag_index(records: list[ExportRecord]) -> list[TagGroup]:
    """Single pass over records in order; groups appear in first-seen order."""
    groups: dict[str, TagGroup] = {}
    for r in records:
        for tag in dict.fromkeys(r.tags):
            group = groups.setdefault(tag, TagGroup(name=tag))
            group.entries.append(TagEntry(path=r.path, slug=r.slug, preview=r.preview))
    return list(groups.values())


def build_index(records: list[ExportRecord]) -> AggregateIndex:
    """Recompute the whole index; the tag index is never patched incrementally."""
    files = [r.model_copy(update={"ast": None}) for r in sort_records(records)]
    return AggregateIndex(files=files, tags=build_tag_index(files))


def upsert_record(index: AggregateIndex, record: ExportRecord) -> AggregateIndex:
    """Replace the record with the same path (or append it) and rebuild the index."""
    files = [r for r in index.files if r.path != record.path]
    files.append(record)
    return build_index(files)
