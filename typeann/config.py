"""Run configuration for typeann (.typeann.yml plus command-line overrides)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".typeann.yml"

DEFAULT_SPEC_TEMPLATE = "-spec {{ name }}{{ type }}."
DEFAULT_EDOC_TEMPLATE = "%% @spec {{ raw_name }}{{ type }}."


class Mode(str, Enum):
    """Terminal output mode, chosen once per run."""

    SHOW = "show"
    SHOW_EXPORTED = "show_exported"
    ANNOTATE = "annotate"
    ANNOTATE_IN_PLACE = "annotate_in_place"
    ANNOTATE_INC_FILES = "annotate_inc_files"


@dataclass
class AnnotationConfig:
    """Templates used to render annotation lines."""

    spec_template: str = DEFAULT_SPEC_TEMPLATE
    edoc_template: str = DEFAULT_EDOC_TEMPLATE


@dataclass
class GeneratorConfig:
    """Generator artifacts excluded from include aggregation."""

    sources: Dict[str, str] = field(default_factory=lambda: {".yrl": ".erl"})
    preamble: Optional[str] = "yeccpre.hrl"


@dataclass
class RunConfig:
    """Everything a single typeann run needs to know."""

    root: Path
    mode: Mode = Mode.SHOW
    backend: Optional[str] = None
    show_succ: bool = False
    no_spec: bool = False
    edoc: bool = False
    plt: Optional[Path] = None
    files: List[str] = field(default_factory=list)
    files_r: List[str] = field(default_factory=list)
    trusted: List[str] = field(default_factory=list)
    includes: List[str] = field(default_factory=list)
    macros: Dict[str, Any] = field(default_factory=dict)
    annotation: AnnotationConfig = field(default_factory=AnnotationConfig)
    generators: GeneratorConfig = field(default_factory=GeneratorConfig)


def load_config(config_path: Path) -> RunConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return RunConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    mode = parse_mode(data.get("mode")) if data.get("mode") is not None else Mode.SHOW

    plt_value = _as_str(data.get("plt"))
    plt = _relative_to(root, plt_value) if plt_value else None

    annotation = AnnotationConfig()
    annotation_data = _as_dict(data.get("annotation"))
    if annotation_data:
        annotation.spec_template = (
            _as_str(annotation_data.get("spec_template")) or annotation.spec_template
        )
        annotation.edoc_template = (
            _as_str(annotation_data.get("edoc_template")) or annotation.edoc_template
        )

    generators = GeneratorConfig()
    generator_data = _as_dict(data.get("generators"))
    if generator_data:
        if "sources" in generator_data:
            generators.sources = _as_suffix_map(generator_data.get("sources"))
        if "preamble" in generator_data:
            generators.preamble = _as_str(generator_data.get("preamble"))

    macros_data = data.get("macros")
    if macros_data is not None and not isinstance(macros_data, dict):
        raise ConfigError("macros must be a mapping of NAME: value")

    return RunConfig(
        root=root,
        mode=mode,
        backend=_as_str(data.get("backend")),
        show_succ=_as_bool(data.get("show_succ")) or False,
        no_spec=_as_bool(data.get("no_spec")) or False,
        edoc=_as_bool(data.get("edoc")) or False,
        plt=plt,
        files=[str(_relative_to(root, item)) for item in _as_str_list(data.get("files"))],
        files_r=[str(_relative_to(root, item)) for item in _as_str_list(data.get("files_r"))],
        trusted=[str(_relative_to(root, item)) for item in _as_str_list(data.get("trusted"))],
        includes=[str(_relative_to(root, item)) for item in _as_str_list(data.get("includes"))],
        macros={str(key): value for key, value in (macros_data or {}).items()},
        annotation=annotation,
        generators=generators,
    )


def apply_overrides(
    config: RunConfig,
    *,
    mode: Mode | None = None,
    backend: str | None = None,
    show_succ: bool = False,
    no_spec: bool = False,
    edoc: bool = False,
    plt: Path | None = None,
    files: Sequence[str] = (),
    files_r: Sequence[str] = (),
    trusted: Sequence[str] = (),
    includes: Sequence[str] = (),
    macros: Mapping[str, Any] | None = None,
) -> RunConfig:
    """Return a copy of ``config`` with command-line values layered on top.

    Flags only ever switch options on, list options extend the configured
    lists, and scalar options replace the configured value when given.
    """
    merged_macros = dict(config.macros)
    merged_macros.update(macros or {})
    return replace(
        config,
        mode=mode or config.mode,
        backend=backend or config.backend,
        show_succ=config.show_succ or show_succ,
        no_spec=config.no_spec or no_spec,
        edoc=config.edoc or edoc,
        plt=plt or config.plt,
        files=[*config.files, *files],
        files_r=[*config.files_r, *files_r],
        trusted=[*config.trusted, *trusted],
        includes=[*config.includes, *includes],
        macros=merged_macros,
    )


def parse_mode(value: Any) -> Mode:
    if isinstance(value, Mode):
        return value
    text = str(value).strip().lower().replace("-", "_")
    try:
        return Mode(text)
    except ValueError as exc:
        choices = ", ".join(mode.value for mode in Mode)
        raise ConfigError(f"Unknown mode '{value}' (expected one of: {choices})") from exc


def parse_macro(definition: str) -> tuple[str, Any]:
    """Parse ``NAME`` or ``NAME=VALUE``; a bare name defines ``true``."""
    name, sep, raw_value = definition.partition("=")
    name = name.strip()
    if not name:
        raise ConfigError(f"Invalid macro definition: '{definition}'")
    if not sep:
        return name, True
    try:
        value = yaml.safe_load(raw_value) if raw_value.strip() else ""
    except yaml.YAMLError:
        value = raw_value
    return name, value


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _relative_to(root: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else root / path


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


def _as_suffix_map(value: Any) -> Dict[str, str]:
    mapping: Dict[str, str] = {}
    for key, target in _as_dict(value).items():
        source = _as_suffix(str(key))
        output = _as_str(target)
        if output:
            mapping[source] = _as_suffix(output)
    return mapping


def _as_suffix(value: str) -> str:
    value = value.strip()
    return value if value.startswith(".") else f".{value}"


__all__ = [
    "AnnotationConfig",
    "CONFIG_FILENAME",
    "GeneratorConfig",
    "Mode",
    "RunConfig",
    "apply_overrides",
    "load_config",
    "parse_macro",
    "parse_mode",
]
