from __future__ import annotations

import io

import pytest

from tiny_rd.config import INT_MAX, ParseOptions
from tiny_rd.diagnostics import Diagnostic, DiagnosticSink
from tiny_rd.nodes import Assign, Call, Const, Func, If, Op, Read, Repeat, StmtKind, Write
from tiny_rd.parser_rd import ParseError, parse_source, parse_tokens
from tiny_rd.lexer_rd import tokenize
from tiny_rd.token_types import TT
from tests.support.harness import parse_with_errors, sites


ERROR_CASES = [
    pytest.param("write )", ["factor"], ["unexpected token -> )"], id="bad-factor"),
    pytest.param(
        "repeat x := 1 until x = 1 end",
        ["parse"],
        ["unexpected trailing input -> reserved word: end"],
        id="repeat-has-no-end",
    ),
    pytest.param(
        "if x then write 1",
        ["match"],
        ["unexpected token -> EOF; expected reserved word: end"],
        id="missing-end",
    ),
    pytest.param(
        "if x write 1 end",
        ["match"],
        ["unexpected token -> reserved word: write; expected reserved word: then"],
        id="missing-then",
    ),
    pytest.param(
        "x := 1 @ y := 2",
        ["statement"],
        ["unexpected token -> ERROR: @"],
        id="unknown-character",
    ),
    pytest.param("x", ["match"], ["unexpected token -> EOF; expected :="], id="bare-identifier"),
    pytest.param(
        "read 5",
        ["match", "statement"],
        ["unexpected token -> NUM, val= 5; expected ID", "unexpected token -> NUM, val= 5"],
        id="read-number",
    ),
    pytest.param(
        "func (a) end",
        ["match"],
        ["unexpected token -> (; expected ID"],
        id="func-without-name",
    ),
    pytest.param(
        "end write 1",
        ["parse"],
        ["unexpected trailing input -> reserved word: end"],
        id="leading-end",
    ),
    pytest.param(
        "else write 1",
        ["statement"],
        ["unexpected token -> reserved word: else"],
        id="stray-else",
    ),
    pytest.param(
        "until",
        ["statement"],
        ["unexpected token -> reserved word: until"],
        id="stray-until",
    ),
    pytest.param(";", ["statement"], ["unexpected token -> ;"], id="lone-semicolon"),
    pytest.param("write 1 +", ["factor"], ["unexpected token -> EOF"], id="dangling-operator"),
    pytest.param(
        "write a < b < c",
        ["statement", "match"],
        ["unexpected token -> <", "unexpected token -> EOF; expected :="],
        id="chained-compare",
    ),
    pytest.param(
        "x := 99999999999",
        ["literal"],
        [f"integer literal 99999999999 out of range (max {INT_MAX})"],
        id="literal-overflow",
    ),
]


@pytest.mark.parametrize("source, expected_sites, messages", ERROR_CASES)
def test_error_reports(source: str, expected_sites: list, messages: list) -> None:
    result = parse_with_errors(source)
    assert sites(result) == expected_sites
    assert [d.message for d in result.diagnostics] == messages


def test_bad_factor_keeps_partial_tree() -> None:
    result = parse_with_errors("write )")
    assert result.program == [Write(None, line=1)]


def test_repeat_keeps_the_loop_before_the_stray_end() -> None:
    result = parse_with_errors("repeat x := 1 until x = 1 end")
    assert [type(s) for s in result.program] == [Repeat]


def test_missing_then_still_builds_the_branch() -> None:
    result = parse_with_errors("if x write 1 end")
    (stmt,) = result.program
    assert isinstance(stmt, If)
    assert [s.kind for s in stmt.then] == [StmtKind.WRITE]


def test_unknown_character_is_skipped() -> None:
    result = parse_with_errors("x := 1 @ y := 2")
    assert [s.name for s in result.program] == ["x", "y"]


def test_missing_names_stay_empty() -> None:
    assert parse_with_errors("read 5").program == [Read(None, line=1)]
    (func,) = parse_with_errors("func (a) end").program
    assert isinstance(func, Func)
    assert func.name is None
    assert [d.name for d in func.params.decls] == ["a"]


def test_bare_identifier_becomes_valueless_assignment() -> None:
    assert parse_with_errors("x").program == [Assign("x", line=1)]


def test_dangling_operator_keeps_left_operand() -> None:
    (stmt,) = parse_with_errors("write 1 +").program
    assert stmt == Write(Op(TT.PLUS, Const(1, line=1), None, line=1), line=1)


def test_recovery_continues_after_an_error() -> None:
    result = parse_with_errors("write );\nx := 2;\nread")
    assert [type(s) for s in result.program] == [Write, Assign, Read]
    assert [d.line for d in result.diagnostics] == [1, 3]


def test_diagnostic_line_numbers() -> None:
    result = parse_with_errors("write 1\n\nwrite )")
    assert [d.line for d in result.diagnostics] == [3]


def test_errors_are_reported_in_source_order() -> None:
    result = parse_with_errors("if x write 1;\nwrite );\nwhile (1) end end")
    lines = [d.line for d in result.diagnostics]
    assert lines == sorted(lines)


def test_literal_overflow_saturates() -> None:
    (stmt,) = parse_with_errors("x := 99999999999").program
    assert stmt.value.expr == Const(INT_MAX, line=1)


def test_very_long_literal_saturates_without_converting() -> None:
    result = parse_with_errors("x := " + "9" * 5000)
    assert sites(result) == ["literal"]
    assert result.diagnostics[0].message == (
        f"integer literal 999999999999... (5000 digits) out of range (max {INT_MAX})"
    )
    (stmt,) = result.program
    assert stmt.value.expr == Const(INT_MAX, line=1)


def test_leading_zeros_do_not_count_towards_range() -> None:
    result = parse_source("x := " + "0" * 40 + "42")
    assert not result.had_error
    assert result.program[0].value.expr == Const(42, line=1)


def test_literal_limit_is_configurable() -> None:
    result = parse_source("x := 100; y := 101", options=ParseOptions(int_max=100))
    assert sites(result) == ["literal"]
    assert [s.value.expr.val for s in result.program] == [100, 100]


def test_listing_receives_diagnostics() -> None:
    listing = io.StringIO()
    parse_source("write )", listing=listing)
    assert listing.getvalue() == "\n>>> Syntax error at line 1: unexpected token -> )\n"


def test_clean_parse_writes_nothing_to_listing() -> None:
    listing = io.StringIO()
    result = parse_source("write 1", listing=listing)
    assert not result.had_error
    assert listing.getvalue() == ""


def test_trace_goes_to_listing() -> None:
    listing = io.StringIO()
    parse_source("read x", options=ParseOptions(trace_scan=True), listing=listing)
    assert listing.getvalue() == "\t1: reserved word: read\n\t1: ID, name= x\n\t1: EOF\n"


@pytest.mark.parametrize(
    "source",
    [
        pytest.param("if then else end end ;; @ write", id="keyword-soup"),
        pytest.param("x := (1 + ; y[ := 2 ]", id="broken-brackets"),
        pytest.param("func f(a[ b) var := ; return", id="broken-func"),
    ],
)
def test_reparse_gives_identical_diagnostics(source: str) -> None:
    first = parse_source(source)
    second = parse_source(source)
    assert first.had_error
    assert first.diagnostics == second.diagnostics
    assert first.program == second.program

    tokens = tokenize(source)
    assert parse_tokens(tokens).diagnostics == parse_tokens(tokens).diagnostics


def test_strict_mode_raises() -> None:
    with pytest.raises(ParseError) as exc_info:
        parse_source("write );\nread", strict=True)

    err = exc_info.value
    assert "2 syntax error(s)" in str(err)
    assert "first: Syntax error at line 1: unexpected token -> )" in str(err)
    assert err.line == 1
    assert [d.site for d in err.diagnostics] == ["factor", "match"]


def test_strict_mode_passes_clean_source() -> None:
    result = parse_source("write 1", strict=True)
    assert not result.had_error
    assert isinstance(result.program[0], Write)


def test_call_drops_a_bad_argument_and_keeps_the_rest() -> None:
    result = parse_with_errors("f(1, ), 2)")
    assert sites(result) == ["factor"]
    (call,) = result.program
    assert isinstance(call, Call)
    assert call.args == [Const(1, line=1), Const(2, line=1)]


# ---------------------------------------------------------------------------
# DiagnosticSink
# ---------------------------------------------------------------------------

def test_sink_records_and_resets() -> None:
    sink = DiagnosticSink()
    assert not sink.had_error

    diag = sink.report(4, "boom", "statement")
    assert diag == Diagnostic(4, "boom", "statement")
    assert str(diag) == "Syntax error at line 4: boom"
    assert sink.had_error
    assert sink.diagnostics == [diag]

    sink.reset()
    assert not sink.had_error
    assert sink.diagnostics == []
