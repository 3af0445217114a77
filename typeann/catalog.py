"""Catalog of the functions each analyzed file defines or pulls in.

Definitions reported by the front-end carry the file they physically come
from. Those matching the analyzed file are *own* and are kept sorted by line
so the writer can process the file top to bottom; the rest came in through
textual inclusion and are *attributed* to their origin file in the order the
front-end reported them.
"""

from __future__ import annotations

import os
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List

from .models import UNKNOWN_LINE, FunctionOccurrence, FunctionSignature, ModuleUnit

# Compiler-generated module bookkeeping, never shown or annotated.
SYNTHETIC_FUNCTIONS = frozenset(
    {FunctionSignature("module_info", 0), FunctionSignature("module_info", 1)}
)


def is_synthetic(signature: FunctionSignature) -> bool:
    return signature in SYNTHETIC_FUNCTIONS


def is_own_origin(origin_file: str, path: Path) -> bool:
    """Return True when ``origin_file`` denotes the analyzed ``path``.

    Besides an exact match, a bare file name (no directory part) equal to the
    analyzed file's name counts as the same file. Two directories holding
    same-named files cannot be told apart this way; inconsistent include types
    are reported by the merger instead.
    """
    if origin_file == str(path):
        return True
    return os.path.basename(origin_file) == origin_file and origin_file == path.name


@dataclass
class FileCatalog:
    """Functions and declarations cataloged for one analyzed file."""

    path: Path
    module: str
    exported: List[FunctionSignature] = field(default_factory=list)
    own: List[FunctionOccurrence] = field(default_factory=list)
    attributed: List[FunctionOccurrence] = field(default_factory=list)
    records: Dict[str, str] = field(default_factory=dict)

    def shown(self) -> List[FunctionOccurrence]:
        """Own occurrences followed by the ones pulled in from other files."""
        return [*self.own, *self.attributed]


def build_file_catalog(path: Path, unit: ModuleUnit) -> FileCatalog:
    """Partition ``unit``'s definitions into own and attributed occurrences."""
    catalog = FileCatalog(path=path, module=unit.module, records=dict(unit.records))
    catalog.exported = [sig for sig in unit.exports if not is_synthetic(sig)]

    own: List[FunctionOccurrence] = []
    for definition in unit.definitions:
        signature = definition.signature
        if is_synthetic(signature):
            continue
        # Front-end positions are 1-based; anything lower has no usable position.
        line = definition.line if definition.line >= 1 else UNKNOWN_LINE
        occurrence = FunctionOccurrence(
            origin_file=definition.origin_file,
            line=line,
            name=signature.name,
            arity=signature.arity,
        )
        if is_own_origin(definition.origin_file, path):
            own.append(occurrence)
        else:
            catalog.attributed.append(occurrence)

    catalog.own = sorted(own, key=lambda occurrence: occurrence.line)
    return catalog


class Catalog:
    """Per-run catalog of every analyzed file, in discovery order."""

    def __init__(self) -> None:
        self._files: "OrderedDict[Path, FileCatalog]" = OrderedDict()

    def add(self, entry: FileCatalog) -> None:
        if entry.path in self._files:
            raise ValueError(f"File already cataloged: {entry.path}")
        self._files[entry.path] = entry

    def __iter__(self) -> Iterator[FileCatalog]:
        return iter(self._files.values())


__all__ = [
    "Catalog",
    "FileCatalog",
    "SYNTHETIC_FUNCTIONS",
    "build_file_catalog",
    "is_own_origin",
    "is_synthetic",
]
