"""
Module registry and path resolution for ``aayaat`` imports.

A module is identified by its canonical (resolved, absolute) file path. The
registry remembers which modules finished importing during the run and
which are still being imported, in import order; meeting an in-progress
module again means the imports form a cycle.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Set

SOURCE_SUFFIX = ".nep"


class ModuleRegistry:
    """Tracks imported modules for one run."""

    def __init__(self):
        self._completed: Set[Path] = set()
        self._in_progress: List[Path] = []

    def is_completed(self, path: Path) -> bool:
        return path in self._completed

    def is_in_progress(self, path: Path) -> bool:
        return path in self._in_progress

    @property
    def completed(self) -> Set[Path]:
        return set(self._completed)

    @property
    def in_progress(self) -> List[Path]:
        return list(self._in_progress)

    def snapshot(self) -> Set[Path]:
        return set(self._completed)

    def restore(self, completed: Set[Path]) -> None:
        """Forget modules completed since :meth:`snapshot`."""
        self._completed = set(completed)

    def cycle_through(self, path: Path) -> List[Path]:
        """The import chain from the earlier visit of path back to path."""
        start = self._in_progress.index(path)
        return self._in_progress[start:] + [path]

    @contextmanager
    def importing(self, path: Path) -> Iterator[Path]:
        """
        Mark path as in progress for the duration of the block.

        The module is recorded as completed only when the block exits
        normally; on error it is simply dropped from the in-progress chain.
        """
        self._in_progress.append(path)
        try:
            yield path
            self._completed.add(path)
        finally:
            self._in_progress.pop()


def _with_suffix(name: str) -> Path:
    path = Path(name)
    if path.suffix == "":
        path = path.with_suffix(SOURCE_SUFFIX)
    return path


def candidate_paths(name: str, importer_dir: Optional[Path],
                    search_paths: Sequence[Path]) -> List[Path]:
    """
    Places an import name may refer to, in lookup order.

    Lookup order:
        1. The importing file's directory
        2. The current working directory
        3. Configured search paths
    """
    relative = _with_suffix(name).expanduser()
    if relative.is_absolute():
        return [relative]
    roots: List[Path] = []
    if importer_dir is not None:
        roots.append(importer_dir)
    roots.append(Path.cwd())
    roots.extend(search_paths)
    return [root / relative for root in roots]


def resolve_module(name: str, importer_dir: Optional[Path],
                   search_paths: Sequence[Path]) -> Optional[Path]:
    """Canonical path of the first existing candidate, or None."""
    for candidate in candidate_paths(name, importer_dir, search_paths):
        if candidate.is_file():
            return candidate.resolve()
    return None


def read_module(path: Path, encoding: str = "utf-8") -> str:
    """Read module source text; raises OSError or UnicodeDecodeError."""
    with path.open("r", encoding=encoding) as fp:
        return fp.read()


def display_path(path: Path) -> str:
    """Path relative to the working directory when possible."""
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)
