"""Render TypeInfo as annotation text."""

from __future__ import annotations

from typing import Mapping, Optional

from jinja2 import Environment, StrictUndefined, Template, TemplateError

from .backends.base import TypeOracle
from .config import AnnotationConfig
from .errors import ConfigError
from .models import Contract, FunctionSignature, SignaturePair, TypeInfo


class AnnotationFormatter:
    """Turns a function's TypeInfo into a declaration or documentation line."""

    def __init__(
        self,
        oracle: TypeOracle,
        *,
        edoc: bool = False,
        templates: AnnotationConfig | None = None,
    ) -> None:
        self.oracle = oracle
        self.edoc = edoc
        templates = templates or AnnotationConfig()
        self._env = Environment(
            autoescape=False,
            keep_trailing_newline=False,
            undefined=StrictUndefined,
        )
        source = templates.edoc_template if edoc else templates.spec_template
        self._template = self._compile(source)

    def type_text(self, type_info: TypeInfo, records: Mapping[str, str]) -> str:
        if isinstance(type_info, Contract):
            return type_info.text
        if isinstance(type_info, SignaturePair):
            return self.oracle.format_signature(type_info, records)
        raise TypeError(f"Unsupported type info: {type_info!r}")

    def render(
        self,
        signature: FunctionSignature,
        type_info: TypeInfo,
        records: Mapping[str, str],
        *,
        in_file: bool,
    ) -> Optional[str]:
        """Return the annotation line, or ``None`` when nothing should be written.

        Inside a file, a function with a declared contract already carries its
        declaration, so only the documentation syntax is emitted for it.
        """
        if in_file and not self.edoc and isinstance(type_info, Contract):
            return None
        try:
            text = self._template.render(
                name=self.oracle.format_name(signature.name),
                raw_name=signature.name,
                arity=signature.arity,
                type=self.type_text(type_info, records),
            )
        except TemplateError as exc:
            raise ConfigError(f"Annotation template failed for {signature}: {exc}") from exc
        return text.replace("\r", " ").replace("\n", " ")

    def _compile(self, source: str) -> Template:
        try:
            return self._env.from_string(source)
        except TemplateError as exc:
            raise ConfigError(f"Invalid annotation template {source!r}: {exc}") from exc


__all__ = ["AnnotationFormatter"]
