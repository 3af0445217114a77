"""Resolve the TypeInfo of every function in a module through the oracle."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping

from .backends.base import ContractStatus, TypeOracle
from .errors import InvalidContractError, MissingTypeInfoError
from .logging import get_logger
from .models import Contract, FunctionSignature, SignaturePair, TypeInfo

logger = get_logger("resolver")


@dataclass
class ModuleTypes:
    """Resolved types for one module, keyed by signature."""

    module: str
    types: Dict[FunctionSignature, TypeInfo] = field(default_factory=dict)

    def lookup(self, signature: FunctionSignature) -> TypeInfo:
        # Every cataloged function must have been typed; a gap means the
        # analysis itself is broken.
        try:
            return self.types[signature]
        except KeyError:
            raise MissingTypeInfoError(
                f"No type info for function: {self.module}:{signature}"
            ) from None


def resolve_module_types(
    oracle: TypeOracle,
    module: str,
    records: Mapping[str, str],
    *,
    show_succ: bool = False,
) -> ModuleTypes:
    """Pick a contract or the raw inferred pair for every function of ``module``.

    With ``show_succ`` declared contracts are ignored entirely. Otherwise a
    contract that validates (possibly with range warnings) wins over the
    inferred pair, and an invalid contract aborts the run.
    """
    resolved = ModuleTypes(module=module)
    for signature, inferred in oracle.lookup_module(module):
        if show_succ:
            resolved.types[signature] = inferred
            continue
        resolved.types[signature] = _resolve_one(oracle, module, signature, inferred, records)
    logger.debug("Resolved %d function types for module %s", len(resolved.types), module)
    return resolved


def _resolve_one(
    oracle: TypeOracle,
    module: str,
    signature: FunctionSignature,
    inferred: SignaturePair,
    records: Mapping[str, str],
) -> TypeInfo:
    contract = oracle.lookup_contract(module, signature)
    if contract is None:
        return inferred

    check = oracle.validate_contract(contract, inferred)
    if not check.is_fatal:
        if check.status is ContractStatus.RANGE_WARNING:
            logger.debug("Contract of %s:%s accepted with range warning", module, signature)
        return Contract(contract.text)

    inferred_text = oracle.format_signature(inferred, records)
    message = f"Error in contract of function {module}:{signature}"
    if check.reason:
        message += f": {check.reason}"
    message += (
        f"\n\t The contract is: {contract.text}"
        f"\n\t but the inferred signature is: {inferred_text}"
    )
    raise InvalidContractError(message)


__all__ = ["ModuleTypes", "resolve_module_types"]
