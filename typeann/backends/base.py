"""Interfaces for the language front-end and the type oracle.

typeann never parses source text and never infers types. A backend supplies
both halves: a :class:`FrontEnd` that turns a file into a
:class:`~typeann.models.ModuleUnit`, and a :class:`TypeOracle` wrapping the
success-typing engine and its persisted type table.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from ..models import FunctionSignature, ModuleUnit, SignaturePair

_PLAIN_NAME = re.compile(r"^[a-z][A-Za-z0-9_@]*$")


class ContractStatus(Enum):
    OK = "ok"
    RANGE_WARNING = "range_warning"
    FATAL = "fatal"


@dataclass(frozen=True)
class ContractCheck:
    """Outcome of checking a declared contract against an inferred type."""

    status: ContractStatus
    reason: Optional[str] = None

    @property
    def is_fatal(self) -> bool:
        return self.status is ContractStatus.FATAL


@dataclass(frozen=True)
class DeclaredContract:
    """A contract as written in the source, rendered by the oracle."""

    text: str


class FrontEnd(ABC):
    """Turns a source file into an analyzable module unit."""

    @abstractmethod
    def compile(
        self,
        path: Path,
        *,
        includes: Sequence[str],
        macros: Mapping[str, Any],
    ) -> ModuleUnit:
        """Return the module unit for ``path``; raise ``FrontEndError`` on failure."""


class TypeOracle(ABC):
    """Contract for the external inference engine."""

    @abstractmethod
    def load_type_table(self, path: Optional[Path]) -> None:
        """Load the persisted type table (``None`` selects the default location)."""

    @abstractmethod
    def seed_trusted(self, unit: ModuleUnit) -> None:
        """Register contracts and records of a trusted file."""

    @abstractmethod
    def add_module(self, unit: ModuleUnit, *, use_contracts: bool) -> None:
        """Register a module to be analyzed."""

    @abstractmethod
    def unresolved_calls(self) -> List[str]:
        """Return call targets outside the analyzed modules and the type table."""

    def unresolved_types(self) -> List[str]:
        """Return remote types that could not be resolved."""
        return []

    @abstractmethod
    def analyze(self) -> None:
        """Run success typing over the registered modules."""

    @abstractmethod
    def lookup_module(self, module: str) -> List[Tuple[FunctionSignature, SignaturePair]]:
        """Return the inferred signature of every function in ``module``."""

    @abstractmethod
    def lookup_contract(
        self, module: str, signature: FunctionSignature
    ) -> Optional[DeclaredContract]:
        """Return the declared contract for a function, if any."""

    @abstractmethod
    def validate_contract(
        self, contract: DeclaredContract, inferred: SignaturePair
    ) -> ContractCheck:
        """Check that ``contract`` is compatible with ``inferred``."""

    def format_name(self, name: str) -> str:
        if _PLAIN_NAME.match(name):
            return name
        escaped = name.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"

    def format_signature(self, pair: SignaturePair, records: Mapping[str, str]) -> str:
        args = ", ".join(pair.arg_types)
        return f"({args}) -> {pair.return_type}"


@dataclass
class Backend:
    """A front-end and oracle pair plus the language facts typeann needs."""

    name: str
    front_end: FrontEnd
    oracle: TypeOracle
    source_suffixes: Tuple[str, ...] = (".erl",)


__all__ = [
    "Backend",
    "ContractCheck",
    "ContractStatus",
    "DeclaredContract",
    "FrontEnd",
    "TypeOracle",
]
