from __future__ import annotations

import pytest

from tiny_rd.config import ParseOptions
from tiny_rd.repl import ReplState, _handle_slash, _normalize, respond
from tiny_rd.repl_highlight import GROUP_STYLE, _highlight_line


def _state() -> ReplState:
    return ReplState(options=ParseOptions())


def test_respond_with_listing() -> None:
    assert respond("x := 1;\nwrite x", _state()) == "Assign to: x\n  Value\n    Const: 1\nWrite\n  Id: x"


def test_respond_with_errors_shows_only_diagnostics() -> None:
    text = respond("write );\nread", _state())
    assert text.splitlines() == [
        ">>> Syntax error at line 1: unexpected token -> )",
        "",
        ">>> Syntax error at line 2: unexpected token -> EOF; expected ID",
    ]


def test_respond_lex_error() -> None:
    assert respond("{ open", _state()) == "Error: Unterminated comment at line 1, col 1"


def test_respond_lark_format_with_trace() -> None:
    state = ReplState(fmt="lark", options=ParseOptions(trace_scan=True))
    text = respond("write 1", state)
    assert text.startswith("\t1: reserved word: write\n")
    assert "const\t1" in text


def test_respond_lark_format_long_chain() -> None:
    text = respond("write " + " * ".join(["2"] * 2000), ReplState(fmt="lark", options=ParseOptions()))
    assert text.startswith("stmts\n  write\n")
    assert text.count("const\t2") == 2000


def test_state_defaults_come_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TINY_MAX_DEPTH", "9")
    assert ReplState().options.max_depth == 9


def test_tree_command_toggles_format(capsys: pytest.CaptureFixture[str]) -> None:
    state = _state()
    assert _handle_slash("/tree", state)
    assert state.fmt == "lark"
    assert _handle_slash("/tree", state)
    assert state.fmt == "listing"
    assert capsys.readouterr().out.splitlines() == ["Output: lark", "Output: listing"]


def test_trace_scan_command(capsys: pytest.CaptureFixture[str]) -> None:
    state = _state()
    assert _handle_slash("/trace-scan on", state)
    assert state.options.trace_scan is True
    assert _handle_slash("/trace-scan", state)
    assert state.options.trace_scan is False
    assert _handle_slash("/trace-scan bogus", state)
    assert state.options.trace_scan is False
    captured = capsys.readouterr()
    assert "Usage: /trace-scan [on|off]" in captured.err


def test_unknown_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert _handle_slash("/nope", _state())
    assert "Unknown command: /nope" in capsys.readouterr().err


def test_source_lines_are_not_commands() -> None:
    assert _handle_slash("write 1", _state()) is False


def test_normalize_strips_invisible_characters() -> None:
    assert _normalize("x\u200b :=\u00a01\r") == "x :=1"


# ---------------------------------------------------------------------------
# Highlighting
# ---------------------------------------------------------------------------

KEYWORD = GROUP_STYLE["keyword"]
COMMENT = GROUP_STYLE["comment"]


def test_highlight_keywords_and_identifiers() -> None:
    assert _highlight_line("if x then") == [
        (KEYWORD, "if"),
        ("", " "),
        ("", "x"),
        ("", " "),
        (KEYWORD, "then"),
    ]


def test_highlight_numbers_and_errors() -> None:
    assert _highlight_line("1@") == [(GROUP_STYLE["number"], "1"), (GROUP_STYLE["error"], "@")]


def test_highlight_closed_comment() -> None:
    assert (COMMENT, " { note } ") in _highlight_line("x { note } y")


def test_highlight_trailing_comment() -> None:
    assert _highlight_line("x {c}")[-1] == (COMMENT, " {c}")


def test_highlight_unterminated_comment() -> None:
    assert _highlight_line("x { open") == [("", "x"), ("", " "), (COMMENT, "{ open")]


def test_highlight_empty_line() -> None:
    assert _highlight_line("") == [("", "")]
