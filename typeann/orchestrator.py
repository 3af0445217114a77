"""Pipeline orchestration for the show and annotate modes."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, TextIO

from .backends.base import Backend
from .catalog import Catalog, FileCatalog, build_file_catalog
from .config import Mode, RunConfig
from .discovery import analysis_filter, discover_files, source_filter
from .errors import AnalysisError, DiscoveryError, FrontEndError, TypeAnnError
from .formatting import AnnotationFormatter
from .inclusion import GeneratorFilter, InclusionMerger
from .logging import get_logger
from .models import FunctionSignature, ModuleUnit
from .resolver import ModuleTypes, resolve_module_types
from .writer import AnnotationWriter, PendingAnnotation


@dataclass
class RunResult:
    """What a run produced."""

    mode: Mode
    files: List[Path]
    written: List[Path] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class Orchestrator:
    """Drives discovery, cataloging, type resolution and the selected mode."""

    def __init__(self, backend: Backend, *, stream: TextIO | None = None) -> None:
        self.backend = backend
        self.front_end = backend.front_end
        self.oracle = backend.oracle
        self.stream = stream
        self.logger = get_logger("orchestrator")

    def run(self, config: RunConfig) -> RunResult:
        """Execute one complete run; any fatal condition raises ``TypeAnnError``."""
        self.logger.debug("Run configuration: %r", config)
        self._seed_trusted(config)
        files = self._discover(config)
        self.logger.debug("Analyzing %d file(s)", len(files))
        self.oracle.load_type_table(config.plt)
        catalog = self._collect(files, config)
        self._analyze()

        formatter = AnnotationFormatter(
            self.oracle, edoc=config.edoc, templates=config.annotation
        )
        result = RunResult(mode=config.mode, files=files)
        handlers: Dict[Mode, Callable[[Catalog, RunConfig, AnnotationFormatter, RunResult], None]] = {
            Mode.SHOW: self._show,
            Mode.SHOW_EXPORTED: self._show_exported,
            Mode.ANNOTATE: self._annotate,
            Mode.ANNOTATE_IN_PLACE: self._annotate,
            Mode.ANNOTATE_INC_FILES: self._annotate_includes,
        }
        handlers[config.mode](catalog, config, formatter, result)
        return result

    # ------------------------------------------------------------------
    # Collection

    def _seed_trusted(self, config: RunConfig) -> None:
        if not config.trusted:
            return
        self.logger.debug("Extracting trusted type information...")
        trusted = discover_files(config.trusted, [], source_filter(self.backend.source_suffixes))
        for path in trusted:
            # Trusted files are often annotated outputs under typer_ann/, whose
            # includes resolve against the directory above.
            includes = [str(path.parent.parent), *config.includes]
            unit = self._compile(path, includes, config)
            self.oracle.seed_trusted(unit)

    def _discover(self, config: RunConfig) -> List[Path]:
        files = discover_files(
            config.files,
            config.files_r,
            analysis_filter(self.backend.source_suffixes),
        )
        if not files:
            raise DiscoveryError("no file(s) to analyze")
        return files

    def _collect(self, files: Sequence[Path], config: RunConfig) -> Catalog:
        catalog = Catalog()
        for path in files:
            includes = [str(path.parent), *config.includes]
            unit = self._compile(path, includes, config)
            self.oracle.add_module(unit, use_contracts=not config.no_spec)
            catalog.add(build_file_catalog(path, unit))
        return catalog

    def _compile(self, path: Path, includes: List[str], config: RunConfig) -> ModuleUnit:
        try:
            return self.front_end.compile(path, includes=includes, macros=config.macros)
        except FrontEndError as exc:
            self.logger.debug(
                "File=%s, Includes=%s, Macros=%s, Error=%s", path, includes, config.macros, exc
            )
            raise

    def _analyze(self) -> None:
        self._report_unresolved()
        self.logger.debug("Analyzing callgraph...")
        try:
            self.oracle.analyze()
        except TypeAnnError:
            raise
        except Exception as exc:
            raise AnalysisError(f"Analysis failed with message: {exc}") from exc

    def _report_unresolved(self) -> None:
        calls = sorted(set(self.oracle.unresolved_calls()))
        if not calls:
            return
        self.logger.warning("Unknown functions: %s", ", ".join(calls))
        # Remote types only go unresolved alongside unknown calls.
        types = sorted(set(self.oracle.unresolved_types()))
        if types:
            self.logger.warning("Unknown types: %s", ", ".join(types))

    def _types_for(self, entry: FileCatalog, config: RunConfig) -> ModuleTypes:
        return resolve_module_types(
            self.oracle, entry.module, entry.records, show_succ=config.show_succ
        )

    # ------------------------------------------------------------------
    # Modes

    def _show(
        self, catalog: Catalog, config: RunConfig, formatter: AnnotationFormatter, result: RunResult
    ) -> None:
        for entry in catalog:
            types = self._types_for(entry, config)
            signatures = [occurrence.signature for occurrence in entry.shown()]
            self._print_file(entry, signatures, types, formatter)

    def _show_exported(
        self, catalog: Catalog, config: RunConfig, formatter: AnnotationFormatter, result: RunResult
    ) -> None:
        for entry in catalog:
            types = self._types_for(entry, config)
            self._print_file(entry, entry.exported, types, formatter)

    def _annotate(
        self, catalog: Catalog, config: RunConfig, formatter: AnnotationFormatter, result: RunResult
    ) -> None:
        writer = AnnotationWriter(in_place=config.mode is Mode.ANNOTATE_IN_PLACE)
        for entry in catalog:
            types = self._types_for(entry, config)
            result.written.append(self._write_own(writer, entry, types, formatter))

    def _annotate_includes(
        self, catalog: Catalog, config: RunConfig, formatter: AnnotationFormatter, result: RunResult
    ) -> None:
        writer = AnnotationWriter(in_place=False)
        merger = InclusionMerger(
            GeneratorFilter(config.generators.sources, config.generators.preamble)
        )
        for entry in catalog:
            types = self._types_for(entry, config)
            result.written.append(self._write_own(writer, entry, types, formatter))
            merger.add_module(entry.attributed, types)

        for include_file, functions in merger.finalize().items():
            self.logger.debug(
                "Functions of %s: %s",
                include_file,
                ", ".join(f"{function.signature}@{function.line}" for function in functions),
            )
            rendered = {
                function.signature: formatter.render(
                    function.signature, function.type_info, {}, in_file=True
                )
                for function in functions
            }
            pending = [PendingAnnotation(function.line, function.signature) for function in functions]
            result.written.append(writer.write(Path(include_file), pending, rendered.get))
        result.warnings.extend(merger.warnings)

    # ------------------------------------------------------------------
    # Helpers

    def _write_own(
        self,
        writer: AnnotationWriter,
        entry: FileCatalog,
        types: ModuleTypes,
        formatter: AnnotationFormatter,
    ) -> Path:
        rendered = self._render_all(
            [occurrence.signature for occurrence in entry.own], types, entry.records, formatter
        )
        pending = [PendingAnnotation(occurrence.line, occurrence.signature) for occurrence in entry.own]
        return writer.write(entry.path, pending, rendered.get)

    @staticmethod
    def _render_all(
        signatures: Sequence[FunctionSignature],
        types: ModuleTypes,
        records: Mapping[str, str],
        formatter: AnnotationFormatter,
    ) -> Dict[FunctionSignature, Optional[str]]:
        # Resolve every type up front so a missing one aborts before any write.
        return {
            signature: formatter.render(signature, types.lookup(signature), records, in_file=True)
            for signature in signatures
        }

    def _print_file(
        self,
        entry: FileCatalog,
        signatures: Sequence[FunctionSignature],
        types: ModuleTypes,
        formatter: AnnotationFormatter,
    ) -> None:
        stream = self.stream or sys.stdout
        name = str(entry.path)
        stream.write(f'\n%% File: "{name}"\n')
        stream.write("%% " + "-" * (len(name) + 8) + "\n")
        for signature in signatures:
            text = formatter.render(signature, types.lookup(signature), entry.records, in_file=False)
            stream.write(f"{text}\n")


__all__ = ["Orchestrator", "RunResult"]
