"""Slug generation for document identifiers"""

import re


_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def kebabize(text: str) -> str:
    """Lowercase text, collapse non-alphanumeric runs to single hyphens, trim hyphens."""
    return _NON_ALNUM_RE.sub("-", text.lower()).strip("-")
