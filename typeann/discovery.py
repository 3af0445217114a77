"""Resolve explicit files, directories and recursive roots into a file list."""

from __future__ import annotations

import errno
import os
from pathlib import Path
from typing import Callable, Iterable, List, Sequence

from .errors import DiscoveryError

FileFilter = Callable[[Path], bool]

ANNOTATED_INFIX = ".ann"


def source_filter(suffixes: Iterable[str]) -> FileFilter:
    """Accept files whose extension is one of ``suffixes``."""
    accepted = frozenset(suffixes)

    def _accept(path: Path) -> bool:
        return path.suffix in accepted

    return _accept


def analysis_filter(suffixes: Iterable[str]) -> FileFilter:
    """Like :func:`source_filter` but rejects annotated outputs (``x.ann.erl``)."""
    is_source = source_filter(suffixes)

    def _accept(path: Path) -> bool:
        if not is_source(path):
            return False
        return not path.name.endswith(f"{ANNOTATED_INFIX}{path.suffix}")

    return _accept


def discover_files(
    entries: Sequence[str | Path],
    recursive: Sequence[str | Path],
    accept: FileFilter,
) -> List[Path]:
    """Return absolute paths: explicit entries first, then recursive roots.

    Duplicates are removed keeping the position of the first occurrence.
    """
    found = _process_files_and_dirs([_absolute(entry) for entry in entries], accept)
    for directory in recursive:
        found.extend(_list_dir(_absolute(directory), accept, recursive=True))
    return remove_duplicates(found)


def remove_duplicates(paths: Iterable[Path]) -> List[Path]:
    """Drop repeated paths, keeping the input order of first occurrences."""
    seen: set[Path] = set()
    unique: List[Path] = []
    for path in paths:
        if path in seen:
            continue
        seen.add(path)
        unique.append(path)
    return unique


def _process_files_and_dirs(entries: Sequence[Path], accept: FileFilter) -> List[Path]:
    found: List[Path] = []
    for entry in entries:
        if entry.is_file():
            if accept(entry):
                found.append(entry)
        else:
            found.extend(_list_dir(entry, accept, recursive=False))
    return found


def _list_dir(directory: Path, accept: FileFilter, *, recursive: bool) -> List[Path]:
    try:
        names = sorted(os.listdir(directory))
    except PermissionError as exc:
        raise DiscoveryError(f'no access permission to dir "{directory}"') from exc
    except FileNotFoundError as exc:
        raise DiscoveryError(f"cannot access {directory}: No such file or directory") from exc
    except OSError as exc:
        if exc.errno == errno.ENOTDIR:
            raise DiscoveryError(f"cannot access {directory}: Not a directory") from exc
        raise DiscoveryError(f"error listing directory {directory}: {exc.strerror or exc}") from exc

    subdirs: List[Path] = []
    files: List[Path] = []
    for name in names:
        child = directory / name
        if child.is_file():
            files.append(child)
        else:
            subdirs.append(child)

    found = _process_files_and_dirs(files, accept)
    if recursive:
        for subdir in subdirs:
            found.extend(_list_dir(subdir, accept, recursive=True))
    return found


def _absolute(entry: str | Path) -> Path:
    return Path(os.path.abspath(os.path.expanduser(str(entry))))


__all__ = [
    "ANNOTATED_INFIX",
    "FileFilter",
    "analysis_filter",
    "discover_files",
    "remove_duplicates",
    "source_filter",
]
