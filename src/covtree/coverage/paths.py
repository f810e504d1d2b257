"""Path string helpers.

Reported paths come from many tools and platforms, so they are handled as
``/``-separated strings rather than ``Path`` objects of the running OS.
"""

import re

_WINDOWS_ABS_RE = re.compile(r"^[A-Za-z]:/")


def to_posix(path: str) -> str:
    """Normalize separators to ``/``."""
    return path.replace("\\", "/")


def is_absolute(path: str) -> bool:
    """True for POSIX, UNC and drive-letter absolute paths."""
    posix = to_posix(path)
    return posix.startswith("/") or bool(_WINDOWS_ABS_RE.match(posix))


def strip_root(path: str, root: str) -> str | None:
    """Return ``path`` relative to ``root`` using a case-insensitive prefix match.

    The match must end on a segment boundary (``/proj`` is not a prefix of
    ``/project/x``). Returns None when ``path`` is not under ``root``.
    """
    posix_path = to_posix(path)
    posix_root = to_posix(root).rstrip("/")
    if not posix_path.lower().startswith(posix_root.lower()):
        return None
    rest = posix_path[len(posix_root) :]
    if rest and not rest.startswith("/"):
        return None
    return rest.lstrip("/")


def split_segments(path: str) -> list[str]:
    """Split a path into segments, dropping empty and ``.`` segments."""
    return [s for s in to_posix(path).split("/") if s and s != "."]


def has_suffix(path: str, suffix: str, *, ignore_case: bool = False) -> bool:
    """True when ``suffix`` equals ``path`` or its trailing segments."""
    if ignore_case:
        path, suffix = path.lower(), suffix.lower()
    return path == suffix or path.endswith("/" + suffix)
