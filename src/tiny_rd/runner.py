from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from .config import ParseOptions
from .lexer_rd import LexError
from .parser_rd import ParseResult, parse_source
from .tree import pretty_lark, pretty_listing, to_lark

EXIT_OK = 0
EXIT_SYNTAX = 1
EXIT_LEX = 2


def echo_source(source: str, out: TextIO) -> None:
    for lineno, line in enumerate(source.splitlines(), start=1):
        out.write(f"{lineno:4d}: {line}\n")


def render(result: ParseResult, fmt: str = "listing") -> str:
    if fmt == "lark":
        return pretty_lark(to_lark(result.program)).rstrip("\n")
    return "\n".join(pretty_listing(result.program))


def run(source: str, options: Optional[ParseOptions] = None, fmt: str = "listing",
        quiet: bool = False, out: Optional[TextIO] = None,
        err: Optional[TextIO] = None) -> int:
    """Parse ``source`` and print the tree; returns the process exit code.

    Diagnostics (and the scan trace, when enabled) go to ``err`` as the
    parser reports them.
    """
    options = options or ParseOptions()
    out = out or sys.stdout
    err = err or sys.stderr

    if options.echo_source:
        echo_source(source, out)

    try:
        result = parse_source(source, options=options, listing=err)
    except LexError as exc:
        print(f"Lex error: {exc}", file=err)
        return EXIT_LEX

    if not quiet and result.program:
        print(render(result, fmt), file=out)

    if result.had_error:
        print(f"{len(result.diagnostics)} syntax error(s)", file=err)
        return EXIT_SYNTAX
    return EXIT_OK


def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    if candidate.exists():
        return candidate.read_text(encoding="utf-8")

    return arg


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="tiny-parse", description="Parse a TINY program and print its syntax tree")
    ap.add_argument("source", nargs="?", default="-", help="Path, literal source, or - for stdin")
    fmt = ap.add_mutually_exclusive_group()
    fmt.add_argument("--listing", dest="fmt", action="store_const", const="listing", help="Print the indented listing (default)")
    fmt.add_argument("--tree", dest="fmt", action="store_const", const="lark", help="Print the lark tree")
    ap.add_argument("--echo", action="store_true", help="Echo numbered source lines first")
    ap.add_argument("--trace-scan", action="store_true", help="Trace every token as it is read")
    ap.add_argument("--max-depth", type=int, help="Maximum nesting depth before giving up")
    ap.add_argument("-q", "--quiet", action="store_true", help="Only report errors")
    ap.set_defaults(fmt="listing")

    args = ap.parse_args(argv)

    try:
        options = ParseOptions.from_env()
    except ValueError as exc:
        ap.error(str(exc))

    if args.echo:
        options.echo_source = True
    if args.trace_scan:
        options.trace_scan = True
    if args.max_depth is not None:
        if args.max_depth <= 0:
            ap.error("--max-depth must be positive")
        options.max_depth = args.max_depth

    source = _load_source(args.source)
    return run(source, options=options, fmt=args.fmt, quiet=args.quiet)


if __name__ == "__main__":
    sys.exit(main())
