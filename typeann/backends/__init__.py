"""Backend interfaces and entry-point discovery."""

from __future__ import annotations

from importlib import metadata
from typing import Dict, Iterable, Optional

from ..errors import BackendError
from .base import Backend, ContractCheck, ContractStatus, DeclaredContract, FrontEnd, TypeOracle

_ENTRY_POINT_GROUP = "typeann.backends"


def load_backend(name: Optional[str] = None) -> Backend:
    """Instantiate the backend registered under ``name``.

    When ``name`` is omitted and exactly one backend is installed, that one is
    used.
    """
    entries: Dict[str, metadata.EntryPoint] = {}
    for entry in _iter_entry_points():
        entries.setdefault(entry.name.lower(), entry)

    if name is None:
        if len(entries) == 1:
            (entry,) = entries.values()
        elif not entries:
            raise BackendError(
                f"No typeann backend is installed (entry point group '{_ENTRY_POINT_GROUP}')"
            )
        else:
            choices = ", ".join(sorted(entries))
            raise BackendError(f"Several backends are installed; choose one of: {choices}")
    else:
        entry = entries.get(name.lower())
        if entry is None:
            known = ", ".join(sorted(entries)) or "none"
            raise BackendError(f"Unknown backend '{name}' (installed: {known})")

    try:
        loaded = entry.load()
    except Exception as exc:
        raise BackendError(f"Failed to load backend entry point '{entry.name}': {exc}") from exc
    return _coerce_backend(entry.name, loaded)


def _coerce_backend(name: str, obj: object) -> Backend:
    if isinstance(obj, Backend):
        return obj
    if callable(obj):
        instance = obj()
        if isinstance(instance, Backend):
            return instance
    raise BackendError(f"Backend entry point '{name}' must be a Backend or a factory returning one")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    entry_points = metadata.entry_points()
    if hasattr(entry_points, "select"):
        return entry_points.select(group=_ENTRY_POINT_GROUP)  # type: ignore[return-value]
    return entry_points.get(_ENTRY_POINT_GROUP, [])  # type: ignore[return-value]


__all__ = [
    "Backend",
    "ContractCheck",
    "ContractStatus",
    "DeclaredContract",
    "FrontEnd",
    "TypeOracle",
    "load_backend",
]
