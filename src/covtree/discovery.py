"""Project roots, coverage/project file discovery and content loading."""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger()

# Never descended into when listing project files
PRUNED_DIRS = frozenset({".git", ".hg", ".svn", "__pycache__", ".covtree"})

ContentLoader = Callable[[Path], str]


@dataclass(frozen=True, slots=True)
class ProjectRoot:
    """A workspace folder: absolute path plus display name."""

    path: Path
    name: str

    @classmethod
    def from_path(cls, path: Path | str, name: str | None = None) -> ProjectRoot:
        resolved = Path(path).expanduser().resolve()
        return cls(path=resolved, name=name or resolved.name or str(resolved))


class FileDiscovery(Protocol):
    """Lists coverage files and project files under a root."""

    def coverage_files(self, root: Path, patterns: Sequence[tuple[str, str]]) -> list[Path]:
        """Coverage files matching ``(path_glob, file_name_glob)`` pairs, in discovery order."""
        ...

    def project_files(self, root: Path, ignore: Sequence[str]) -> list[str]:
        """Absolute paths of every file under ``root`` not matched by ``ignore``."""
        ...


def matches_glob(rel_path: str, pattern: str) -> bool:
    """Check if a path matches a glob pattern, with ** support."""
    if fnmatch.fnmatch(rel_path, pattern):
        return True
    if pattern.startswith("**/"):
        return fnmatch.fnmatch(rel_path, pattern[3:])
    return False


def is_ignored(rel_path: str, ignore: Iterable[str]) -> bool:
    return any(matches_glob(rel_path, pattern) for pattern in ignore)


def coverage_patterns(paths: Iterable[str], names: Iterable[str]) -> list[tuple[str, str]]:
    """Cross product of coverage file paths and file names."""
    names = list(names)
    return [(path_glob, name_glob) for path_glob in paths for name_glob in names]


class GlobFileDiscovery:
    """File system discovery via ``Path.glob`` and ``os.walk``."""

    def __init__(self, ignore: Sequence[str] = ()) -> None:
        self._ignore = tuple(ignore)

    def coverage_files(self, root: Path, patterns: Sequence[tuple[str, str]]) -> list[Path]:
        found: list[Path] = []
        seen: set[Path] = set()
        for path_glob, name_glob in patterns:
            pattern = f"{path_glob.strip('/')}/{name_glob}" if path_glob.strip("/.") else name_glob
            try:
                matches = sorted(root.glob(pattern))
            except (OSError, ValueError) as e:
                logger.warning(
                    "coverage_glob_failed", root=str(root), pattern=pattern, error=str(e)
                )
                continue
            for match in matches:
                if match in seen or not match.is_file():
                    continue
                rel = match.relative_to(root).as_posix()
                if is_ignored(rel, self._ignore):
                    continue
                seen.add(match)
                found.append(match)
        logger.debug("coverage_files_discovered", root=str(root), count=len(found))
        return found

    def project_files(self, root: Path, ignore: Sequence[str]) -> list[str]:
        patterns = (*self._ignore, *ignore)
        files: list[str] = []
        for dirpath, dirnames, filenames in os.walk(root):
            rel_dir = Path(dirpath).relative_to(root).as_posix()
            prefix = "" if rel_dir == "." else f"{rel_dir}/"
            # Prune in place so os.walk skips them
            dirnames[:] = [
                d
                for d in sorted(dirnames)
                if d not in PRUNED_DIRS and not is_ignored(f"{prefix}{d}/", patterns)
            ]
            for filename in sorted(filenames):
                if not is_ignored(f"{prefix}{filename}", patterns):
                    files.append(os.path.join(dirpath, filename))
        return files


def read_text_file(path: Path) -> str:
    """Default content loader. Raises OSError or UnicodeDecodeError."""
    return path.read_text(encoding="utf-8")
