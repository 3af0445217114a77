"""CLI entrypoints for typeann commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List

from .backends import load_backend
from .config import Mode, apply_overrides, load_config, parse_macro
from .errors import TypeAnnError
from .logging import configure_logging
from .orchestrator import Orchestrator


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_analysis_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    parser.add_argument(
        "paths",
        nargs="*",
        help="Source files or directories to analyze (directories are not recursed).",
    )
    parser.add_argument(
        "-r",
        "--recursive",
        dest="files_r",
        action="append",
        default=[],
        metavar="DIR",
        help="Directory to search recursively for source files (repeatable).",
    )
    parser.add_argument(
        "-T",
        "--trusted",
        action="append",
        default=[],
        metavar="FILE",
        help="File whose declared contracts are trusted and seeded before analysis.",
    )
    parser.add_argument(
        "-I",
        "--include",
        dest="includes",
        action="append",
        default=[],
        metavar="DIR",
        help="Additional include directory passed to the front-end.",
    )
    parser.add_argument(
        "-D",
        dest="macros",
        action="append",
        default=[],
        metavar="NAME[=VALUE]",
        help="Define a preprocessor macro for the front-end.",
    )
    parser.add_argument(
        "--plt",
        type=Path,
        default=None,
        help="Use this persisted type table instead of the backend default.",
    )
    parser.add_argument(
        "--show-success-typings",
        dest="show_succ",
        action="store_true",
        help="Ignore declared contracts and print the inferred signatures.",
    )
    parser.add_argument(
        "--no-spec",
        action="store_true",
        help="Do not read declared contracts from the analyzed files.",
    )
    parser.add_argument(
        "--edoc",
        action="store_true",
        help="Emit documentation comments instead of declarations.",
    )
    parser.add_argument(
        "--backend",
        default=None,
        help="Name of the installed backend (front-end and type oracle) to use.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to .typeann.yml (defaults to the current directory).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log output to this file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typeann",
        description="Show or inject inferred type information into source files.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    show_parser = subparsers.add_parser(
        "show",
        help="Print the type of every function, including ones from included files.",
    )
    _add_analysis_options(show_parser)

    exported_parser = subparsers.add_parser(
        "show-exported",
        help="Print the types of exported functions only.",
    )
    _add_analysis_options(exported_parser)

    annotate_parser = subparsers.add_parser(
        "annotate",
        help="Write annotated copies under typer_ann/ next to each file.",
    )
    _add_analysis_options(annotate_parser)
    placement = annotate_parser.add_mutually_exclusive_group()
    placement.add_argument(
        "--in-place",
        action="store_true",
        help="Overwrite the analyzed files instead of writing copies.",
    )
    placement.add_argument(
        "--inc-files",
        action="store_true",
        help="Also annotate included files whose types agree across all includers.",
    )

    return parser


def _mode_for(args: argparse.Namespace) -> Mode:
    if args.command == "show":
        return Mode.SHOW
    if args.command == "show-exported":
        return Mode.SHOW_EXPORTED
    if getattr(args, "in_place", False):
        return Mode.ANNOTATE_IN_PLACE
    if getattr(args, "inc_files", False):
        return Mode.ANNOTATE_INC_FILES
    return Mode.ANNOTATE


def _parse_macros(definitions: List[str]) -> Dict[str, Any]:
    macros: Dict[str, Any] = {}
    for definition in definitions:
        name, value = parse_macro(definition)
        macros[name] = value
    return macros


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for typeann commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = load_config(args.config or Path.cwd())
        config = apply_overrides(
            config,
            mode=_mode_for(args),
            backend=args.backend,
            show_succ=args.show_succ,
            no_spec=args.no_spec,
            edoc=args.edoc,
            plt=args.plt,
            files=args.paths,
            files_r=args.files_r,
            trusted=args.trusted,
            includes=args.includes,
            macros=_parse_macros(args.macros),
        )
        backend = load_backend(config.backend)
        Orchestrator(backend).run(config)
    except TypeAnnError as exc:
        parser.exit(1, f"typeann: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
