"""Vault path helpers: all vault paths are relative POSIX strings"""

import posixpath


def normalize_path(path: str) -> str:
    """Return a vault-relative POSIX path without leading './' or slashes."""
    path = posixpath.normpath(path.replace("\\", "/"))
    return "" if path == "." else path.lstrip("/")


def is_within(path: str, folder: str) -> bool:
    """True when path lies under folder ('' is the vault root and contains everything)."""
    return not folder or path.startswith(f"{folder}/")


def relative_to(path: str, folder: str) -> str:
    """Strip the folder prefix from path; paths outside folder are returned unchanged."""
    if folder and path.startswith(f"{folder}/"):
        return path[len(folder) + 1:]
    return path


def split_name(path: str) -> tuple[str, str]:
    """Return (name, basename) where basename drops the final extension: 'a/b.md' -> ('b.md', 'b')."""
    name = posixpath.basename(path)
    stem, _ = posixpath.splitext(name)
    return name, stem
