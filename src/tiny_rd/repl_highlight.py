"""prompt_toolkit lexer for live TINY syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable, Dict

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as TinyLexer, LexError
from .token_types import KEYWORDS, SYMBOLS, TT

GROUP_STYLE = {
    "keyword": "bold ansiblue",
    "number": "ansiyellow",
    "identifier": "",
    "operator": "ansibrightblack",
    "punctuation": "",
    "comment": "italic ansibrightblack",
    "error": "bg:ansired ansiwhite",
}

_OPERATOR_TYPES = (TT.PLUS, TT.MINUS, TT.STAR, TT.SLASH, TT.LT, TT.EQ, TT.GT, TT.ASSIGN)

_TT_GROUP: Dict[TT, str] = dict.fromkeys(SYMBOLS, "punctuation")
_TT_GROUP.update(dict.fromkeys(_OPERATOR_TYPES, "operator"))
_TT_GROUP.update(dict.fromkeys(KEYWORDS.values(), "keyword"))
_TT_GROUP.update({TT.NUM: "number", TT.ID: "identifier", TT.ERROR: "error"})


def _gap_style(gap: str) -> str:
    # Between tokens there is only blank space or a closed comment.
    return GROUP_STYLE["comment"] if "{" in gap else ""


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Style one line of input.

    Each line is scanned on its own, so a comment that opens on this line
    and closes on a later one is styled up to the end of the line.
    """
    if not text:
        return [("", "")]

    try:
        tokens = TinyLexer(text).tokenize()
    except LexError as exc:
        brace = exc.column - 1
        head = _highlight_line(text[:brace]) if brace else []
        return head + [(GROUP_STYLE["comment"], text[brace:])]

    fragments: StyleAndTextTuples = []
    pos = 0
    for tok in tokens[:-1]:
        start = tok.column - 1
        if start > pos:
            fragments.append((_gap_style(text[pos:start]), text[pos:start]))
        fragments.append((GROUP_STYLE[_TT_GROUP[tok.type]], tok.value))
        pos = start + len(tok.value)

    if pos < len(text):
        fragments.append((_gap_style(text[pos:]), text[pos:]))
    return fragments


class TinyHighlightLexer(Lexer):
    """Highlights the REPL buffer line by line with the TINY lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines
        cache: Dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            # Redraws may ask for lines past the end of the buffer.
            if lineno >= len(lines):
                return [("", "")]
            if lineno not in cache:
                cache[lineno] = _highlight_line(lines[lineno])
            return cache[lineno]

        return get_line
