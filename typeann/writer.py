"""Inject annotation lines into source files without disturbing other bytes."""

from __future__ import annotations

import errno
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Deque, Iterable, Iterator, Optional

from .discovery import ANNOTATED_INFIX
from .errors import AnnotationWriteError
from .logging import get_logger
from .models import FIRST_LINE, FunctionSignature

logger = get_logger("writer")

ANNOTATION_DIR = "typer_ann"

Renderer = Callable[[FunctionSignature], Optional[str]]


@dataclass(frozen=True)
class PendingAnnotation:
    """A function waiting for its annotation line after ``line``."""

    line: int
    signature: FunctionSignature


def annotated_path(source: Path) -> Path:
    """Return ``<dir>/typer_ann/<root>.ann<ext>`` for ``source``."""
    return source.parent / ANNOTATION_DIR / f"{source.stem}{ANNOTATED_INFIX}{source.suffix}"


def inject_annotations(
    content: bytes,
    pending: Iterable[PendingAnnotation],
    render: Renderer,
) -> Iterator[bytes]:
    """Yield ``content`` with rendered annotations after their declared lines.

    Lines are counted by ``\\n``. Right after the terminator of line N, every
    pending annotation for line N is emitted followed by the same terminator
    the crossed line used. ``FIRST_LINE`` entries come before the first byte,
    negative lines never match, and entries past the last terminated line are
    dropped. Everything else is copied unchanged.
    """
    queue: Deque[PendingAnnotation] = deque(
        sorted(
            (entry for entry in pending if entry.line >= FIRST_LINE),
            key=lambda entry: entry.line,
        )
    )

    leading_terminator = b"\r\n" if _first_line_uses_crlf(content) else b"\n"
    while queue and queue[0].line == FIRST_LINE:
        yield from _emit(queue.popleft(), render, leading_terminator)

    position = 0
    line_no = 0
    while queue:
        end = content.find(b"\n", position)
        if end == -1:
            break
        line_no += 1
        yield content[position : end + 1]
        terminator = b"\r\n" if end > position and content[end - 1 : end] == b"\r" else b"\n"
        position = end + 1
        while queue and queue[0].line == line_no:
            yield from _emit(queue.popleft(), render, terminator)

    if position < len(content):
        yield content[position:]

    if queue:
        logger.debug(
            "No line %s in file; skipped annotations for %s",
            ", ".join(str(entry.line) for entry in queue),
            ", ".join(str(entry.signature) for entry in queue),
        )


def _emit(entry: PendingAnnotation, render: Renderer, terminator: bytes) -> Iterator[bytes]:
    text = render(entry.signature)
    if text is None:
        return
    yield text.encode("utf-8") + terminator


def _first_line_uses_crlf(content: bytes) -> bool:
    end = content.find(b"\n")
    return end > 0 and content[end - 1 : end] == b"\r"


class AnnotationWriter:
    """Writes annotated copies next to the source, or over it in place."""

    def __init__(self, *, in_place: bool = False) -> None:
        self.in_place = in_place

    def target_for(self, source: Path) -> Path:
        return source if self.in_place else annotated_path(source)

    def write(
        self,
        source: Path,
        pending: Iterable[PendingAnnotation],
        render: Renderer,
    ) -> Path:
        """Annotate ``source`` and return the path written."""
        logger.info("Processing file: %s", source)
        content = self._read(source)
        target = self.target_for(source)
        if not self.in_place:
            self._make_annotation_dir(target.parent)
        # Start from an empty file: drop the original (in place) or a stale output.
        self._delete(target)
        self._write(target, inject_annotations(content, list(pending), render))
        logger.info("Saved as: %s", target)
        return target

    @staticmethod
    def _read(source: Path) -> bytes:
        try:
            return source.read_bytes()
        except OSError as exc:
            raise AnnotationWriteError(
                f"Cannot read {source}: {exc.strerror or exc}", str(source)
            ) from exc

    @staticmethod
    def _make_annotation_dir(directory: Path) -> None:
        try:
            directory.mkdir(exist_ok=True)
        except OSError as exc:
            raise AnnotationWriteError(_describe(exc, directory.parent), str(directory)) from exc

    @staticmethod
    def _delete(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise AnnotationWriteError(f"Error in deleting file {path}", str(path)) from exc

    @staticmethod
    def _write(target: Path, chunks: Iterable[bytes]) -> None:
        try:
            with target.open("xb") as handle:
                for chunk in chunks:
                    handle.write(chunk)
        except OSError as exc:
            raise AnnotationWriteError(_describe(exc, target), str(target)) from exc


def _describe(exc: OSError, path: Path) -> str:
    if exc.errno == errno.ENOSPC:
        return f"Not enough space in {path}"
    if exc.errno in (errno.EACCES, errno.EPERM):
        return f"No write permission in {path}"
    return f"Unhandled error {exc.strerror or exc} when writing {path}"


__all__ = [
    "ANNOTATION_DIR",
    "AnnotationWriter",
    "PendingAnnotation",
    "Renderer",
    "annotated_path",
    "inject_annotations",
]
