#!/usr/bin/env python3
"""pseudoconst/main.py — CLI entry-point for the pseudo-constness addon.

Usage examples
--------------
    # Report parameters and members that could be const
    cppcheck --dump demo.cpp
    python -m pseudoconst demo.cpp.dump

    # Debug modes
    python -m pseudoconst --dump-functions demo.cpp.dump
    python -m pseudoconst --dump-variables demo.cpp.dump
    python -m pseudoconst --dump-changes   demo.cpp.dump
    python -m pseudoconst --dump-usages    demo.cpp.dump

    # cppcheck addon JSON protocol on stdout
    python -m pseudoconst --cli demo.cpp.dump

Exit codes
----------
    0   Success.
    N   ``--error-exitcode N`` was given and at least one warning was emitted.
    2   Infrastructure failure (cppcheckdata missing, bad dump file, …).
    130 Interrupted.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from pseudoconst import __version__
from pseudoconst.diagnostics import DiagnosticsSink, SuppressionManager
from pseudoconst.errors import DumpLoadError
from pseudoconst.module_analysis import AnalysisMode, ModuleAnalysis, load_dump
from pseudoconst.plus_reporter import Reporter

_log = logging.getLogger("pseudoconst")

EXIT_OK: int = 0
EXIT_INFRA: int = 2


def _configure_logging(verbosity: int) -> None:
    """Set up the ``pseudoconst`` logger.

    0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    # replaces the package's NullHandler and any handler from an earlier main()
    _log.handlers[:] = [handler]
    _log.setLevel(level)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pseudoconst",
        description=(
            "Find function parameters and class members that are never "
            "written and could be declared const."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug).",
    )

    modes = parser.add_mutually_exclusive_group()
    modes.add_argument(
        "--dump-functions", dest="mode", action="store_const",
        const=AnalysisMode.FUNCTION_DECLARATIONS,
        help="Report every analysed function definition.",
    )
    modes.add_argument(
        "--dump-variables", dest="mode", action="store_const",
        const=AnalysisMode.VARIABLE_DECLARATIONS,
        help="Report the parameters and members each function is checked for.",
    )
    modes.add_argument(
        "--dump-changes", dest="mode", action="store_const",
        const=AnalysisMode.VARIABLE_CHANGES,
        help="Report every place a variable is written.",
    )
    modes.add_argument(
        "--dump-usages", dest="mode", action="store_const",
        const=AnalysisMode.VARIABLE_USAGES,
        help="Report every place a variable is read.",
    )
    modes.add_argument(
        "--pseudo-constness", dest="mode", action="store_const",
        const=AnalysisMode.PSEUDO_CONSTNESS,
        help="Report variables that could be const (default).",
    )
    parser.set_defaults(mode=AnalysisMode.PSEUDO_CONSTNESS)

    out = parser.add_argument_group("output")
    out.add_argument(
        "--cli", action="store_true",
        help="Emit cppcheck addon JSON lines on stdout (set by cppcheck).",
    )
    out.add_argument("--no-color", action="store_true", help="Disable coloured output.")
    out.add_argument(
        "--show-notes", action="store_true",
        help="Also show notes that are normally suppressed.",
    )
    out.add_argument(
        "--suppress", action="append", default=[], metavar="ID[:FILE[:LINE]]",
        help="Suppress a message id globally, per file or at one line.",
    )
    out.add_argument("--sarif", metavar="FILE", default=None, help="Write a SARIF 2.1.0 report.")
    out.add_argument("--html", metavar="FILE", default=None, help="Write an HTML report.")
    out.add_argument(
        "--error-exitcode", type=int, default=EXIT_OK, metavar="N",
        help="Exit code when warnings were emitted (default: 0).",
    )

    parser.add_argument("dump_files", nargs="+", metavar="DUMP", help="cppcheck .dump file(s).")
    return parser


def run(args: argparse.Namespace) -> int:
    suppressions = SuppressionManager()
    for text in args.suppress:
        suppressions.add_from_string(text)

    reporter = Reporter(
        colour=False if args.no_color else None,
        cli=args.cli,
        show_notes=args.show_notes,
        sarif_path=args.sarif,
        html_path=args.html,
        tool_version=__version__,
    )
    sink = DiagnosticsSink(reporter, suppressions)
    analysis = ModuleAnalysis(sink, args.mode)

    with reporter:
        for path in args.dump_files:
            data = load_dump(path)
            analysis.handle_dump(data)

    if reporter.stats.warning and args.error_exitcode:
        return args.error_exitcode
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI; ``argv`` defaults to ``sys.argv[1:]``."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        return run(args)
    except DumpLoadError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
