"""
pseudoconst/module_analysis.py
══════════════════════════════

Runs one analysis mode over a translation unit.

    cppcheck --dump file.c
        │
        ▼
    load_dump()            cppcheckdata.parsedump
        │
        ▼  for each configuration
    DeclarationCollector   one wrapper per function definition
        │
        ▼
    AnalysisMode           dump functions / variables / changes /
                           usages, or the pseudo-constness check
        │
        ▼
    DiagnosticsSink

Each configuration gets a fresh collector and state; nothing survives
between runs.

License: MIT
"""

from __future__ import annotations

import enum
import importlib
import logging
from typing import Any, Optional

from pseudoconst.constness import PseudoConstnessState
from pseudoconst.declarations import DeclarationCollector
from pseudoconst.diagnostics import DiagnosticsSink
from pseudoconst.errors import DumpLoadError

_log = logging.getLogger(__name__)


class AnalysisMode(enum.Enum):
    FUNCTION_DECLARATIONS = "functions"
    VARIABLE_DECLARATIONS = "variables"
    VARIABLE_CHANGES = "changes"
    VARIABLE_USAGES = "usages"
    PSEUDO_CONSTNESS = "pseudo-constness"


class ModuleAnalysis:
    """
    Applies one :class:`AnalysisMode` to every function of a configuration.

    Usage
    -----
    >>> analysis = ModuleAnalysis(sink, AnalysisMode.PSEUDO_CONSTNESS)
    >>> analysis.handle_dump(load_dump("file.c.dump"))
    """

    def __init__(self, sink: DiagnosticsSink, mode: AnalysisMode = AnalysisMode.PSEUDO_CONSTNESS) -> None:
        self.sink = sink
        self.mode = mode

    def handle_configuration(self, cfg: Any) -> Optional[PseudoConstnessState]:
        """
        Analyse one translation unit configuration.

        Returns the final state in pseudo-constness mode, None otherwise.
        """
        sink = self.sink.for_configuration(cfg)
        collector = DeclarationCollector().collect(cfg)

        if self.mode is AnalysisMode.FUNCTION_DECLARATIONS:
            collector.dump_declarations(sink)
        elif self.mode is AnalysisMode.VARIABLE_DECLARATIONS:
            collector.dump_variable_declarations(sink)
        elif self.mode is AnalysisMode.VARIABLE_CHANGES:
            collector.dump_changes(sink)
        elif self.mode is AnalysisMode.VARIABLE_USAGES:
            collector.dump_usages(sink)
        else:
            return collector.check_pseudoconstness(sink)
        return None

    def handle_dump(self, data: Any) -> int:
        """Analyse every configuration of a parsed dump; returns how many ran."""
        count = 0
        if hasattr(data, "iterconfigurations"):
            configurations = data.iterconfigurations()
        else:
            configurations = getattr(data, "configurations", None) or []
        for cfg in configurations:
            _log.info("checking configuration %r", getattr(cfg, "name", ""))
            self.handle_configuration(cfg)
            count += 1
        return count


def load_dump(path: str) -> Any:
    """
    Parse a cppcheck dump with cppcheck's own ``cppcheckdata`` module.

    ``cppcheckdata`` ships with cppcheck (``addons/cppcheckdata.py``) and
    must be importable, e.g. through ``PYTHONPATH``.
    """
    try:
        cppcheckdata = importlib.import_module("cppcheckdata")
    except ImportError as exc:
        raise DumpLoadError(
            "cppcheckdata is not importable; add cppcheck's addons directory to PYTHONPATH",
            path,
        ) from exc

    _log.info("parsing dump file: %s", path)
    try:
        return cppcheckdata.parsedump(path)
    except (OSError, ValueError, SyntaxError) as exc:
        raise DumpLoadError(f"cannot parse dump: {exc}", path) from exc
