"""Core data models shared across typeann components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union

# Occurrence has no usable source position; never matches an insertion point.
UNKNOWN_LINE = -1
# Emit before the first original byte (whole-file writes).
FIRST_LINE = 0


@dataclass(frozen=True, order=True)
class FunctionSignature:
    """A function identity within one module."""

    name: str
    arity: int

    def __str__(self) -> str:
        return f"{self.name}/{self.arity}"


@dataclass(frozen=True)
class FunctionOccurrence:
    """Where a function definition physically lives."""

    origin_file: str
    line: int
    name: str
    arity: int

    @property
    def signature(self) -> FunctionSignature:
        return FunctionSignature(self.name, self.arity)


@dataclass(frozen=True)
class Contract:
    """Declared contract text, already checked against the inferred type."""

    text: str


@dataclass(frozen=True)
class SignaturePair:
    """Raw inferred type: return type plus argument types."""

    return_type: str
    arg_types: Tuple[str, ...] = ()


TypeInfo = Union[Contract, SignaturePair]


@dataclass(frozen=True)
class FunctionDefinition:
    """A definition reported by the front-end, tagged with its origin file."""

    signature: FunctionSignature
    line: int
    origin_file: str


@dataclass
class ModuleUnit:
    """Front-end output for one source file."""

    module: str
    path: str
    exports: List[FunctionSignature] = field(default_factory=list)
    definitions: List[FunctionDefinition] = field(default_factory=list)
    records: Dict[str, str] = field(default_factory=dict)


__all__ = [
    "Contract",
    "FIRST_LINE",
    "FunctionDefinition",
    "FunctionOccurrence",
    "FunctionSignature",
    "ModuleUnit",
    "SignaturePair",
    "TypeInfo",
    "UNKNOWN_LINE",
]
