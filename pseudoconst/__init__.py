"""
pseudoconst — Pseudo-constness Analysis for Cppcheck Dumps
==========================================================

Finds function parameters and class data members that are read but never
written in any analysed function body, and could therefore be declared
``const``.

Core modules
------------
scope_analysis
    Single-pass read / write classification of one function body.
variables
    Variable identities and parameter / data-member collection.
declarations
    Function wrappers (free function or method) and the collector that
    builds one per definition in a cppcheck configuration.
constness
    The order-independent cross-scope pseudo-constness state.
module_analysis
    Runs one of the five analysis modes over a dump.
diagnostics / plus_reporter
    Message catalogue, suppressions and rendering (terminal, cppcheck
    JSON, SARIF, HTML).

Quick start
-----------
>>> from pseudoconst import ModuleAnalysis, AnalysisMode, DiagnosticsSink, load_dump
>>> analysis = ModuleAnalysis(DiagnosticsSink(), AnalysisMode.PSEUDO_CONSTNESS)
>>> analysis.handle_dump(load_dump("demo.cpp.dump"))
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import Dict, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__author__ = "pseudoconst contributors"
__license__ = "MIT"
__all__: List[str] = []          # populated below

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

# ---------------------------------------------------------------------------
# Re-export registry: module_name → public names bound on the package
# ---------------------------------------------------------------------------

_CORE_MODULES: Dict[str, List[str]] = {
    "scope_analysis": [
        "ScopeAnalysis",
        "ScopeResult",
        "analyze",
    ],
    "variables": [
        "VariableIdentity",
        "VariableKind",
        "function_parameters",
        "record_fields",
    ],
    "constness": [
        "PseudoConstnessState",
    ],
    "declarations": [
        "DeclarationCollector",
        "DeclarationKind",
        "FunctionWrapper",
    ],
    "module_analysis": [
        "AnalysisMode",
        "ModuleAnalysis",
        "load_dump",
    ],
    "diagnostics": [
        "DiagnosticsSink",
        "MessageKind",
        "SuppressionManager",
    ],
    "plus_reporter": [
        "Reporter",
        "Severity",
        "SourceLocation",
    ],
    "errors": [
        "PseudoConstError",
        "DumpLoadError",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        raise ImportError(
            f"pseudoconst: required submodule '{module_rel_name}' "
            f"failed to import: {exc}"
        ) from exc

    current_module = sys.modules[__name__]
    for name in names:
        obj = getattr(mod, name, None)
        if obj is None:
            raise AttributeError(f"pseudoconst.{module_rel_name} does not export '{name}'")
        setattr(current_module, name, obj)
        __all__.append(name)


for _mod_name, _names in _CORE_MODULES.items():
    _import_names(_mod_name, _names)

del _mod_name, _names
