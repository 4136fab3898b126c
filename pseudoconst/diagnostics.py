"""
pseudoconst/diagnostics.py
══════════════════════════

The reporting seam between the analysis core and the :mod:`plus_reporter`.

The core only ever says *which* message applies *where*, with which
substitution arguments; rendering, colour, file output and suppression
all live behind :class:`DiagnosticsSink`.

  ┌──────────────┐  kind, location, args   ┌────────────────┐
  │ analysis core├────────────────────────▶│ DiagnosticsSink│
  └──────────────┘                         │  • %0 substit. │
                                           │  • suppression │
                                           └───────┬────────┘
                                                   ▼
                                            plus_reporter.Reporter

License: MIT
"""

from __future__ import annotations

import enum
import logging
import re
from collections import defaultdict
from fnmatch import fnmatch
from typing import Dict, Iterable, Optional, Set, Tuple

from pseudoconst.plus_reporter import Reporter, Severity, SourceLocation

_log = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — MESSAGE CATALOGUE
# ═════════════════════════════════════════════════════════════════════════

class MessageKind(enum.Enum):
    """
    Every message the analysis can emit.

    Each carries:
      • error_id   — stable identifier, used for suppression and SARIF rules
      • severity   — WARNING or NOTE
      • template   — message text with ``%0``-style placeholders
      • force_emit — notes used by the dump modes are always shown
      • cwe        — MITRE CWE number, 0 for none
    """

    PSEUDO_CONST = (
        "pseudoConstVariable", Severity.WARNING,
        "variable '%0' could be declared as const", False, 398,
    )
    VARIABLE_DECLARED = (
        "variableDeclared", Severity.NOTE,
        "variable '%0' declared here", True, 0,
    )
    FUNCTION_DECLARED = (
        "functionDeclared", Severity.NOTE,
        "function '%0' declared here", True, 0,
    )
    VARIABLE_CHANGED = (
        "variableChanged", Severity.NOTE,
        "variable '%0' was changed", True, 0,
    )
    VARIABLE_REFERENCED = (
        "variableReferenced", Severity.NOTE,
        "variable '%0' was referenced", True, 0,
    )

    def __init__(
        self,
        error_id: str,
        severity: Severity,
        template: str,
        force_emit: bool,
        cwe: int,
    ) -> None:
        self.error_id = error_id
        self.severity = severity
        self.template = template
        self.force_emit = force_emit
        self.cwe = cwe


_PLACEHOLDER = re.compile(r"%(\d+)")


def format_message(template: str, *args: object) -> str:
    """
    Substitute ``%0``, ``%1``… with the positional *args*.

    Placeholders without a matching argument are left as written.
    """
    def _sub(match: "re.Match[str]") -> str:
        idx = int(match.group(1))
        return str(args[idx]) if idx < len(args) else match.group(0)

    return _PLACEHOLDER.sub(_sub, template)


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — SUPPRESSION MANAGER
# ═════════════════════════════════════════════════════════════════════════

class SuppressionManager:
    """
    Manages diagnostic suppressions from multiple sources.

    Sources:
      1. Inline suppressions parsed by cppcheck (``cfg.suppressions``)
      2. File-level suppressions (passed programmatically)
      3. Global suppressions (command-line)

    Usage
    -----
    >>> sm = SuppressionManager()
    >>> sm.add_global_suppression("variableDeclared")
    >>> sm.add_file_suppression("pseudoConstVariable", "legacy/*.c")
    >>> sm.is_suppressed("pseudoConstVariable", SourceLocation("legacy/a.c", 3))
    True
    """

    def __init__(self) -> None:
        # {(file, line)} → set of error_ids suppressed at that location
        self._inline: Dict[Tuple[str, int], Set[str]] = defaultdict(set)
        # file pattern → set of error_ids
        self._file_level: Dict[str, Set[str]] = defaultdict(set)
        self._global: Set[str] = set()

    def copy(self) -> SuppressionManager:
        """An independent manager holding the same suppressions."""
        clone = SuppressionManager()
        for key, ids in self._inline.items():
            clone._inline[key] = set(ids)
        for pattern, ids in self._file_level.items():
            clone._file_level[pattern] = set(ids)
        clone._global = set(self._global)
        return clone

    def load_inline_suppressions(self, cfg: object) -> None:
        """Import the suppressions cppcheck recorded in the dump."""
        for supp in getattr(cfg, "suppressions", None) or []:
            error_id = getattr(supp, "errorId", None)
            file = getattr(supp, "fileName", "") or ""
            line = int(getattr(supp, "lineNumber", 0) or 0)
            if not error_id:
                continue
            if file and line:
                self.add_inline_suppression(error_id, file, line)
            elif file:
                self.add_file_suppression(error_id, file)
            else:
                self.add_global_suppression(error_id)

    def add_inline_suppression(self, error_id: str, file: str, line: int) -> None:
        self._inline[(file, line)].add(error_id)

    def add_file_suppression(self, error_id: str, file_pattern: str) -> None:
        """Suppress ``error_id`` in files matching ``file_pattern``."""
        self._file_level[file_pattern].add(error_id)

    def add_global_suppression(self, error_id: str) -> None:
        self._global.add(error_id)

    def add_from_string(self, text: str) -> None:
        """
        Parse a command-line suppression ``ID[:FILE[:LINE]]``.

        ``*`` as the id suppresses everything at that place.
        """
        parts = text.split(":")
        error_id = parts[0]
        if len(parts) == 1:
            self.add_global_suppression(error_id)
        elif len(parts) == 2:
            self.add_file_suppression(error_id, parts[1])
        else:
            # FILE may itself contain ':' (drive letters)
            file = ":".join(parts[1:-1])
            try:
                line = int(parts[-1])
            except ValueError:
                self.add_file_suppression(error_id, ":".join(parts[1:]))
            else:
                self.add_inline_suppression(error_id, file, line)

    def is_suppressed(self, error_id: str, loc: SourceLocation) -> bool:
        """Check whether ``error_id`` at ``loc`` should be dropped."""
        if error_id in self._global or "*" in self._global:
            return True

        # exact line, or the preceding line for a comment above the statement
        for line_offset in (0, 1):
            ids = self._inline.get((loc.file, loc.line - line_offset), set())
            if error_id in ids or "*" in ids:
                return True

        for pattern, ids in self._file_level.items():
            if error_id not in ids and "*" not in ids:
                continue
            if pattern == loc.file or loc.file.endswith(pattern) or fnmatch(loc.file, pattern):
                return True

        return False


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — SINK
# ═════════════════════════════════════════════════════════════════════════

class DiagnosticsSink:
    """
    Accepts ``(kind, location, args)`` reports from the analysis core.

    Parameters
    ----------
    reporter:
        The renderer / output fan-out.  A quiet plain reporter writing to
        stderr is created when omitted.
    suppressions:
        Filter applied before anything reaches the reporter.
    """

    def __init__(
        self,
        reporter: Optional[Reporter] = None,
        suppressions: Optional[SuppressionManager] = None,
    ) -> None:
        self.reporter = reporter if reporter is not None else Reporter(colour=False)
        self.suppressions = suppressions if suppressions is not None else SuppressionManager()

    def for_configuration(self, cfg: object) -> DiagnosticsSink:
        """
        A sink for one configuration: these suppressions plus the ones
        cppcheck recorded in *cfg*.  This sink's own suppressions are
        left untouched.
        """
        suppressions = self.suppressions.copy()
        suppressions.load_inline_suppressions(cfg)
        return DiagnosticsSink(self.reporter, suppressions)

    def report(
        self,
        kind: MessageKind,
        location: SourceLocation,
        *args: object,
        span_length: int = 0,
    ) -> None:
        """
        Emit one message.

        ``span_length`` underlines that many columns from the location in
        the terminal view (the variable or function name).
        """
        if self.suppressions.is_suppressed(kind.error_id, location):
            _log.debug("suppressed %s at %s", kind.error_id, location)
            self.reporter.record_suppressed()
            return

        diag = (
            self.reporter.diagnostic(kind.severity, kind.error_id, format_message(kind.template, *args))
            .at(location.file, location.line, location.column)
        )
        if span_length and location.column:
            diag.underline(location.column, span_length)
        if kind.cwe:
            diag.with_cwe(kind.cwe)
        if kind.force_emit:
            diag.force_emit()
        diag.emit()

    def report_all(self, kind: MessageKind, reports: Iterable[Tuple[SourceLocation, str]]) -> None:
        """Emit ``kind`` once per ``(location, name)`` pair."""
        for location, name in reports:
            self.report(kind, location, name, span_length=len(name))
