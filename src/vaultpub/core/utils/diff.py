"""Line diffs between the previous and current published copy of a document"""

import difflib


def diff_summary(old: str, new: str) -> dict[str, int]:
    """Return added/deleted/unchanged line counts between two texts."""
    counts = {"added": 0, "deleted": 0, "unchanged": 0}
    matcher = difflib.SequenceMatcher(None, old.splitlines(), new.splitlines())
    for op, i1, i2, j1, j2 in matcher.get_opcodes():
        if op == "equal":
            counts["unchanged"] += i2 - i1
            continue
        if op in ("replace", "delete"):
            counts["deleted"] += i2 - i1
        if op in ("replace", "insert"):
            counts["added"] += j2 - j1
    return counts


def unified_diff(old: str, new: str, from_label: str, to_label: str, context: int = 3) -> list[str]:
    """Return unified diff lines (newline-terminated) from old to new; [] when identical."""
    return list(difflib.unified_diff(
        old.splitlines(keepends=True),
        new.splitlines(keepends=True),
        fromfile=from_label,
        tofile=to_label,
        n=context,
    ))
