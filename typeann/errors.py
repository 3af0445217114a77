"""Exception types raised by typeann.

Every error below aborts the whole run; the CLI reports it and exits with
status 1. Recoverable conditions are logged as warnings instead.
"""

from __future__ import annotations


class TypeAnnError(RuntimeError):
    """Base class for fatal typeann errors."""


class ConfigError(TypeAnnError):
    """Raised when the configuration file cannot be parsed."""


class BackendError(TypeAnnError):
    """Raised when a backend cannot be located or instantiated."""


class DiscoveryError(TypeAnnError):
    """Raised when input files cannot be listed."""


class FrontEndError(TypeAnnError):
    """Raised when the front-end fails to convert a source file."""

    def __init__(self, path: str, reasons: list[str] | tuple[str, ...] | str) -> None:
        if isinstance(reasons, str):
            reasons = [reasons]
        self.path = path
        self.reasons = list(reasons)
        joined = "".join(f"{reason}\n" for reason in self.reasons)
        super().__init__(f"Analysis failed with error report:\n{joined}".rstrip("\n"))


class TypeTableError(TypeAnnError):
    """Raised when the persisted type table is missing or stale."""


class AnalysisError(TypeAnnError):
    """Raised when the inference engine fails."""


class MissingTypeInfoError(TypeAnnError):
    """Raised when a cataloged function has no type information."""


class InvalidContractError(TypeAnnError):
    """Raised when a declared contract contradicts the inferred signature."""


class AnnotationWriteError(TypeAnnError):
    """Raised when an annotated file cannot be written."""

    def __init__(self, message: str, path: str) -> None:
        self.path = path
        super().__init__(message)


__all__ = [
    "AnalysisError",
    "AnnotationWriteError",
    "BackendError",
    "ConfigError",
    "DiscoveryError",
    "FrontEndError",
    "InvalidContractError",
    "MissingTypeInfoError",
    "TypeAnnError",
    "TypeTableError",
]
