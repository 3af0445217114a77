"""Aggregate the types of functions defined in shared include files.

An include file's functions are type-checked once per module that includes
it, so several originating files may report a type for the same function.
The merger only keeps a function while every report agrees; the first
disagreement drops it for the rest of the run.
"""

from __future__ import annotations

import os
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from .logging import get_logger
from .models import FunctionOccurrence, FunctionSignature, TypeInfo
from .resolver import ModuleTypes

logger = get_logger("inclusion")


@dataclass(frozen=True)
class AggregatedFunction:
    """A reconciled include-file function, ready for the writer."""

    line: int
    name: str
    arity: int
    type_info: TypeInfo

    @property
    def signature(self) -> FunctionSignature:
        return FunctionSignature(self.name, self.arity)


class GeneratorFilter:
    """Recognizes parser-generator sources and the files generated from them.

    Generated code is duplicated mechanically into every includer, so it
    would only produce spurious inconsistencies.
    """

    def __init__(self, sources: Mapping[str, str], preamble: Optional[str] = None) -> None:
        self._sources = dict(sources)
        self._preamble = preamble
        self._filtered: List[str] = []

    @property
    def filtered(self) -> List[str]:
        return list(self._filtered)

    def is_generated(self, file: str) -> bool:
        """Return True when ``file`` must stay out of the aggregate.

        Seeing a generator source also filters its generated output for the
        remainder of the run.
        """
        if file in self._filtered:
            return True
        root, extension = os.path.splitext(file)
        output_extension = self._sources.get(extension)
        if output_extension is not None:
            self._remember(file)
            self._remember(root + output_extension)
            return True
        return self._preamble is not None and os.path.basename(file) == self._preamble

    def _remember(self, file: str) -> None:
        if file not in self._filtered:
            self._filtered.append(file)


class InclusionMerger:
    """Folds attributed occurrences from every originating file, in order."""

    def __init__(self, generators: GeneratorFilter) -> None:
        self._generators = generators
        self._aggregate: "OrderedDict[str, OrderedDict[FunctionSignature, Tuple[int, TypeInfo]]]" = (
            OrderedDict()
        )
        self._dropped: Dict[str, Set[FunctionSignature]] = {}
        self.warnings: List[str] = []

    def add_module(self, occurrences: Iterable[FunctionOccurrence], types: ModuleTypes) -> None:
        """Merge every attributed occurrence of one originating module."""
        for occurrence in occurrences:
            if self._generators.is_generated(occurrence.origin_file):
                continue
            self.add(occurrence, types.lookup(occurrence.signature))

    def add(self, occurrence: FunctionOccurrence, type_info: TypeInfo) -> None:
        file = occurrence.origin_file
        signature = occurrence.signature
        if signature in self._dropped.get(file, ()):
            return

        entries = self._aggregate.get(file)
        if entries is None:
            entries = OrderedDict()
            self._aggregate[file] = entries

        current = entries.get(signature)
        if current is None:
            entries[signature] = (occurrence.line, type_info)
            return
        if _same_type(current[1], type_info):
            return

        del entries[signature]
        self._dropped.setdefault(file, set()).add(signature)
        if not entries:
            del self._aggregate[file]
        message = (
            f"Skip function {signature} in file {file} because of inconsistent type"
        )
        self.warnings.append(message)
        logger.warning(message)

    def finalize(self) -> "OrderedDict[str, List[AggregatedFunction]]":
        """Return each include file's functions sorted by line.

        Files filtered as generated are removed here too, which covers
        outputs aggregated before their generator source showed up.
        """
        for file in self._generators.filtered:
            self._aggregate.pop(file, None)

        result: "OrderedDict[str, List[AggregatedFunction]]" = OrderedDict()
        for file, entries in self._aggregate.items():
            functions = [
                AggregatedFunction(line=line, name=sig.name, arity=sig.arity, type_info=type_info)
                for sig, (line, type_info) in entries.items()
            ]
            functions.sort(key=lambda function: function.line)
            result[file] = functions
        return result


def _same_type(left: TypeInfo, right: TypeInfo) -> bool:
    # Contract and SignaturePair never compare equal to each other.
    return type(left) is type(right) and left == right


__all__ = ["AggregatedFunction", "GeneratorFilter", "InclusionMerger"]
