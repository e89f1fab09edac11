"""Syntax-error collection for the parser.

Errors are recorded, never raised: each production reports into the sink
and keeps going, so one malformed statement does not hide the rest.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, TextIO


@dataclass(frozen=True)
class Diagnostic:
    line: int
    message: str
    site: str = "parse"  # match | statement | factor | literal | parse | depth

    def __str__(self) -> str:
        return f"Syntax error at line {self.line}: {self.message}"


class DiagnosticSink:
    """Ordered list of diagnostics plus the had-error flag.

    If ``listing`` is given, every report is also written to it as it
    happens.
    """

    def __init__(self, listing: Optional[TextIO] = None):
        self.listing = listing
        self.diagnostics: List[Diagnostic] = []
        self.had_error = False

    def report(self, line: int, message: str, site: str = "parse") -> Diagnostic:
        diag = Diagnostic(line, message, site)
        self.diagnostics.append(diag)
        self.had_error = True
        if self.listing is not None:
            self.listing.write(f"\n>>> {diag}\n")
        return diag

    def reset(self) -> None:
        self.diagnostics = []
        self.had_error = False
