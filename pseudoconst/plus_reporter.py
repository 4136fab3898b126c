#!/usr/bin/env python3
"""
pseudoconst/plus_reporter.py
════════════════════════════

Diagnostic output for the pseudo-constness addon.

Every diagnostic goes through one :class:`Reporter`, which decides whether
it is shown and hands it on:

    text       coloured source excerpt on a TTY, cppcheck one-liners otherwise
    --cli      cppcheck addon protocol, one JSON object per line on stdout
    SARIF      2.1.0 log, when ``sarif_path`` or $REPORT_GENERATE_SARIF is set
    HTML       jinja2 page, when ``html_path`` or $REPORT_GENERATE_HTML is set

Report files are written by :meth:`Reporter.finish`.  Notes are hidden
unless built with ``force_emit()`` or the reporter was created with
``show_notes=True``; warnings are always shown.

Usage
─────
    with Reporter() as rep:
        (rep.diagnostic(Severity.WARNING, "pseudoConstVariable",
                        "variable 'n' could be declared as const")
            .at("demo.c", 14, 5)
            .underline(5, 1)
            .emit())
"""

from __future__ import annotations

import enum
import json
import linecache
import logging
import os
import sys
import textwrap
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TextIO, Union

import jinja2
from termcolor import colored, cprint

_log = logging.getLogger(__name__)

_CWE_URL = "https://cwe.mitre.org/data/definitions/{}.html"


# ═════════════════════════════════════════════════════════════════════════
#  SEVERITY
# ═════════════════════════════════════════════════════════════════════════

class Severity(enum.Enum):
    """
    Diagnostic severity and its spelling in each output.

      • label         — terminal text and stats field
      • cppcheck_name — cppcheck's ``severity`` string
      • color         — termcolor colour
      • sarif_level   — SARIF ``level``
    """

    WARNING = ("warning", "warning", "yellow", "warning")
    NOTE = ("note", "information", "cyan", "note")

    def __init__(self, label: str, cppcheck_name: str, color: str, sarif_level: str) -> None:
        self.label = label
        self.cppcheck_name = cppcheck_name
        self.color = color
        self.sarif_level = sarif_level

    @classmethod
    def from_string(cls, text: str) -> Severity:
        """Accepts either spelling, any case; unknown text is a warning."""
        wanted = text.strip().lower()
        return next((m for m in cls if wanted in (m.label, m.cppcheck_name)), cls.WARNING)


# ═════════════════════════════════════════════════════════════════════════
#  VALUE TYPES
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, order=True)
class SourceLocation:
    """``file:line[:column]``; ordering is file, then line, then column."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        parts = [self.file, str(self.line)]
        if self.column:
            parts.append(str(self.column))
        return ":".join(parts)


@dataclass(frozen=True)
class Span:
    """Columns ``start_col`` up to ``end_col`` (exclusive) of ``line``."""
    line: int
    start_col: int
    end_col: int


@dataclass
class ReporterStats:
    warning: int = 0
    note: int = 0
    suppressed: int = 0

    def record(self, severity: Severity) -> None:
        if severity is Severity.WARNING:
            self.warning += 1
        else:
            self.note += 1

    @property
    def total(self) -> int:
        return self.warning + self.note

    def summary_line(self) -> str:
        counted = [(self.warning, "warning"), (self.note, "note")]
        parts = [f"{n} {word}{'' if n == 1 else 's'}" for n, word in counted if n]
        if not parts:
            return "no diagnostics emitted"
        return f"{'; '.join(parts)} ({self.total} total)"


# ═════════════════════════════════════════════════════════════════════════
#  DIAGNOSTIC
# ═════════════════════════════════════════════════════════════════════════

class Diagnostic:
    """
    One message under construction.

    Builder methods return ``self``; :meth:`emit` hands the result to the
    reporter that created it.
    """

    def __init__(self, reporter: Reporter, severity: Severity, error_id: str, message: str) -> None:
        self._reporter = reporter
        self.severity = severity
        self.error_id = error_id
        self.message = message
        self.location: Optional[SourceLocation] = None
        self.spans: List[Span] = []
        self.cwe: Optional[int] = None
        self.forced = False

    def at(self, file: str, line: int, column: int = 0) -> Diagnostic:
        self.location = SourceLocation(file, line, column)
        return self

    def underline(self, column: int, length: int) -> Diagnostic:
        """Mark ``length`` columns from ``column`` on the diagnostic's line."""
        line = self.location.line if self.location else 0
        self.spans.append(Span(line, column, column + length))
        return self

    def with_cwe(self, cwe_id: int) -> Diagnostic:
        self.cwe = cwe_id
        return self

    def force_emit(self) -> Diagnostic:
        """Show this note even when the reporter hides notes."""
        self.forced = True
        return self

    def emit(self) -> None:
        self._reporter._accept(self)  # noqa: SLF001

    def cppcheck_line(self) -> str:
        """``[file:line]: (severity) message [errorId]``, as cppcheck prints it."""
        loc = self.location or SourceLocation()
        return (
            f"[{loc.file}:{loc.line}]: ({self.severity.cppcheck_name}) "
            f"{self.message} [{self.error_id}]"
        )

    def to_cppcheck_json(self, addon: str) -> Dict[str, Any]:
        """The object cppcheck reads from an addon run with ``--cli``."""
        loc = self.location or SourceLocation()
        payload: Dict[str, Any] = {
            "file": loc.file,
            "linenr": loc.line,
            "column": loc.column,
            "severity": self.severity.cppcheck_name,
            "message": self.message,
            "addon": addon,
            "errorId": self.error_id,
            "extra": "",
        }
        if self.cwe:
            payload["cwe"] = self.cwe
        return payload


# ═════════════════════════════════════════════════════════════════════════
#  RENDERERS
# ═════════════════════════════════════════════════════════════════════════

class _TextRenderer:
    """Coloured excerpts when ``colour`` is set, cppcheck one-liners otherwise."""

    def __init__(self, stream: TextIO, colour: bool) -> None:
        self._stream = stream
        self._colour = colour

    def render(self, diag: Diagnostic) -> None:
        if self._colour:
            self._stream.write("\n".join(self._excerpt(diag)) + "\n\n")
        else:
            self._stream.write(diag.cppcheck_line() + "\n")
        self._stream.flush()

    def summary(self, stats: ReporterStats) -> None:
        if self._colour:
            colour = "yellow" if stats.warning else "green"
            cprint(f"  ╰─ {stats.summary_line()}", colour, attrs=["bold"], file=self._stream)
        else:
            print(f"  {stats.summary_line()}", file=self._stream)

    def _excerpt(self, diag: Diagnostic) -> List[str]:
        sev = diag.severity
        head = colored(f"{sev.label}[{diag.error_id}]", sev.color, attrs=["bold"])
        lines = [f"{head}: {colored(diag.message, attrs=['bold'])}"]

        loc = diag.location
        if loc is not None:
            lines.append(f"  {colored('-->', 'blue', attrs=['bold'])} {loc}")
            lines.extend(self._underlined_source(loc, diag.spans, sev))

        if diag.cwe:
            lines.append(f"  = CWE-{diag.cwe}: {_CWE_URL.format(diag.cwe)}")
        return lines

    @staticmethod
    def _underlined_source(loc: SourceLocation, spans: Sequence[Span], sev: Severity) -> List[str]:
        if not spans:
            return []
        # empty when the file cannot be read; the carets still show the column
        source = linecache.getline(loc.file, loc.line).rstrip("\r\n")
        gutter = str(loc.line)
        bar = colored("|", "blue", attrs=["bold"])
        lines = [f" {colored(gutter, 'blue', attrs=['bold'])} {bar} {source}"]
        for span in spans:
            carets = "^" * max(span.end_col - span.start_col, 1)
            indent = " " * max(span.start_col - 1, 0)
            lines.append(f" {' ' * len(gutter)} {bar} {indent}{colored(carets, sev.color, attrs=['bold'])}")
        return lines


class _AddonRenderer:
    """cppcheck's addon protocol: one JSON object per line on stdout."""

    def __init__(self, addon: str, stream: Optional[TextIO] = None) -> None:
        self._addon = addon
        self._stream = stream if stream is not None else sys.stdout

    def render(self, diag: Diagnostic) -> None:
        print(json.dumps(diag.to_cppcheck_json(self._addon)), file=self._stream, flush=True)

    def summary(self, stats: ReporterStats) -> None:
        # stdout belongs to cppcheck
        _log.info("%s", stats.summary_line())


Renderer = Union[_TextRenderer, _AddonRenderer]


# ═════════════════════════════════════════════════════════════════════════
#  REPORT FILES
# ═════════════════════════════════════════════════════════════════════════

SARIF_VERSION = "2.1.0"
SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"


def sarif_log(diagnostics: Sequence[Diagnostic], tool_name: str, tool_version: str) -> Dict[str, Any]:
    """A SARIF log with one run, one rule per error id and one result per diagnostic."""
    rules: Dict[str, Dict[str, Any]] = {}
    results: List[Dict[str, Any]] = []

    for diag in diagnostics:
        if diag.error_id not in rules:
            rule: Dict[str, Any] = {"id": diag.error_id, "shortDescription": {"text": diag.message}}
            if diag.cwe:
                rule["properties"] = {"tags": [f"external/cwe/cwe-{diag.cwe}"]}
            rules[diag.error_id] = rule

        result: Dict[str, Any] = {
            "ruleId": diag.error_id,
            "ruleIndex": list(rules).index(diag.error_id),
            "level": diag.severity.sarif_level,
            "message": {"text": diag.message},
        }
        if diag.location is not None:
            region = {"startLine": diag.location.line}
            if diag.location.column:
                region["startColumn"] = diag.location.column
            result["locations"] = [{
                "physicalLocation": {
                    "artifactLocation": {"uri": diag.location.file},
                    "region": region,
                }
            }]
        if diag.cwe:
            result["properties"] = {"cwe": diag.cwe}
        results.append(result)

    driver = {"name": tool_name, "version": tool_version, "rules": list(rules.values())}
    return {
        "$schema": SARIF_SCHEMA,
        "version": SARIF_VERSION,
        "runs": [{"tool": {"driver": driver}, "results": results}],
    }


def _html_template() -> str:
    """$REPORT_HTML_TEMPLATE, then $PSEUDOCONST_RESOURCE_HOME/report-template.html, then the built-in page."""
    candidates = [os.environ.get("REPORT_HTML_TEMPLATE", "")]
    home = os.environ.get("PSEUDOCONST_RESOURCE_HOME", "")
    if home:
        candidates.append(os.path.join(home, "report-template.html"))
    for candidate in candidates:
        if candidate and os.path.isfile(candidate):
            _log.debug("HTML template: %s", candidate)
            return Path(candidate).read_text(encoding="utf-8")
    return _DEFAULT_HTML_TEMPLATE


def html_report(diagnostics: Sequence[Diagnostic]) -> str:
    rows = [
        {
            "severity": d.severity.label,
            "error_id": d.error_id,
            "message": d.message,
            "file": d.location.file if d.location else "",
            "line": d.location.line if d.location else 0,
            "column": d.location.column if d.location else 0,
            "cwe": d.cwe,
        }
        for d in diagnostics
    ]
    env = jinja2.Environment(autoescape=True)
    return env.from_string(_html_template()).render(
        diagnostics=rows, total=len(rows), cwe_url=_CWE_URL,
    )


# ═════════════════════════════════════════════════════════════════════════
#  REPORTER
# ═════════════════════════════════════════════════════════════════════════

class Reporter:
    """
    Central diagnostic dispatcher.

    Parameters
    ----------
    stream:
        Text output; stderr when omitted.
    colour:
        Force colour on or off; ``None`` means "when ``stream`` is a TTY".
    cli:
        Speak cppcheck's addon protocol on stdout instead of text.
    show_notes:
        Also show notes that were not force-emitted.
    sarif_path, html_path:
        Report files; default to $REPORT_GENERATE_SARIF / $REPORT_GENERATE_HTML.

    Used as a context manager, :meth:`finish` runs on exit.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        colour: Optional[bool] = None,
        cli: bool = False,
        show_notes: bool = False,
        sarif_path: Optional[str] = None,
        html_path: Optional[str] = None,
        tool_name: str = "pseudoconst",
        tool_version: str = "1.0.0",
    ) -> None:
        if stream is None:
            stream = sys.stderr
        if colour is None:
            colour = bool(getattr(stream, "isatty", None) and stream.isatty())

        self.tool_name = tool_name
        self.tool_version = tool_version
        self.show_notes = show_notes
        self.stats = ReporterStats()
        self.sarif_path = sarif_path or os.environ.get("REPORT_GENERATE_SARIF") or None
        self.html_path = html_path or os.environ.get("REPORT_GENERATE_HTML") or None
        self._renderer: Renderer = _AddonRenderer(tool_name) if cli else _TextRenderer(stream, colour)
        self._diagnostics: List[Diagnostic] = []

    def __enter__(self) -> Reporter:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.finish()

    def diagnostic(self, severity: Severity, error_id: str, message: str) -> Diagnostic:
        return Diagnostic(self, severity, error_id, message)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        """Every diagnostic that was shown, in emission order."""
        return list(self._diagnostics)

    def _accept(self, diag: Diagnostic) -> None:
        if diag.severity is Severity.NOTE and not (diag.forced or self.show_notes):
            return
        self.stats.record(diag.severity)
        self._diagnostics.append(diag)
        self._renderer.render(diag)

    def record_suppressed(self) -> None:
        self.stats.suppressed += 1

    def finish(self) -> ReporterStats:
        """Print the summary, write the report files, return the stats."""
        self._renderer.summary(self.stats)

        if self.sarif_path:
            document = sarif_log(self._diagnostics, self.tool_name, self.tool_version)
            self._write(self.sarif_path, json.dumps(document, indent=2), "SARIF")
        if self.html_path:
            self._write(self.html_path, html_report(self._diagnostics), "HTML")
        return self.stats

    @staticmethod
    def _write(path: str, text: str, what: str) -> None:
        try:
            Path(path).write_text(text, encoding="utf-8")
        except OSError as exc:
            _log.error("cannot write %s report to %s: %s", what, path, exc)
        else:
            _log.info("%s report written to %s", what, path)


_DEFAULT_HTML_TEMPLATE = textwrap.dedent("""\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Pseudo-constness Report</title>
  <style>
    body  { font-family: system-ui, sans-serif; margin: 2rem; color: #222; }
    table { border-collapse: collapse; width: 100%; }
    th, td { text-align: left; padding: 0.35rem 0.6rem; border-bottom: 1px solid #ddd; }
    th    { background: #f4f4f4; }
    td.loc, td.id { font-family: ui-monospace, monospace; white-space: nowrap; }
    tr.warning td.sev { color: #9a6700; font-weight: bold; }
    tr.note td.sev    { color: #0969da; }
    p.total { margin-top: 1rem; color: #555; }
  </style>
</head>
<body>
  <h1>Pseudo-constness Report</h1>
  <table>
    <tr><th>Severity</th><th>Location</th><th>Message</th><th>Id</th><th>CWE</th></tr>
    {% for d in diagnostics %}
    <tr class="{{ d.severity }}">
      <td class="sev">{{ d.severity }}</td>
      <td class="loc">{{ d.file }}:{{ d.line }}{% if d.column %}:{{ d.column }}{% endif %}</td>
      <td>{{ d.message }}</td>
      <td class="id">{{ d.error_id }}</td>
      <td>{% if d.cwe %}<a href="{{ cwe_url.format(d.cwe) }}">CWE-{{ d.cwe }}</a>{% endif %}</td>
    </tr>
    {% endfor %}
  </table>
  <p class="total">{{ total }} diagnostic{{ '' if total == 1 else 's' }} emitted.</p>
</body>
</html>
""")


__all__ = [
    "Diagnostic",
    "Reporter",
    "ReporterStats",
    "Severity",
    "SourceLocation",
    "Span",
    "html_report",
    "sarif_log",
]
