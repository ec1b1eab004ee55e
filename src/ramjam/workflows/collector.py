"""Resolve file and directory arguments into workflow document paths."""

from __future__ import annotations

import stat
from collections.abc import Iterable, Sequence
from pathlib import Path

from ramjam.workflows.errors import NoFilesFoundError, NoPathsProvidedError, PathAccessError

DEFAULT_EXTENSIONS = (".yaml", ".yml")


def collect_files(path: str | Path, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> list[Path]:
    """Resolve one path into workflow documents.

    A file is returned as is. A directory yields its direct entries whose name
    ends with one of `extensions`, sorted by name; subdirectories are ignored.

    Raises:
        PathAccessError: If the path does not exist or cannot be listed.
    """
    path = Path(path)
    try:
        info = path.stat()
    except OSError as exc:
        raise PathAccessError(str(path), exc.strerror or str(exc)) from exc
    if not stat.S_ISDIR(info.st_mode):
        return [path]

    try:
        entries = list(path.iterdir())
    except OSError as exc:
        raise PathAccessError(str(path), exc.strerror or str(exc), listing=True) from exc

    suffixes = tuple(extensions)
    files = [entry for entry in entries if not entry.is_dir() and entry.name.endswith(suffixes)]
    return sorted(files, key=lambda entry: entry.name)


def collect_paths(paths: Iterable[str | Path], extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> list[Path]:
    """Resolve every path in order and concatenate the results.

    Raises:
        NoPathsProvidedError: If `paths` is empty.
        PathAccessError: If any path cannot be resolved.
        NoFilesFoundError: If nothing was found.
    """
    paths = list(paths)
    if not paths:
        raise NoPathsProvidedError()

    files: list[Path] = []
    for path in paths:
        files.extend(collect_files(path, extensions))

    if not files:
        raise NoFilesFoundError()
    return files
