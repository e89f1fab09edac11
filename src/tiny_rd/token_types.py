"""
Token Types for the TINY parser

Shared between lexer and parser to avoid circular dependencies.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Literals
    NUM = auto()
    ID = auto()

    # Keywords
    IF = auto()
    THEN = auto()
    ELSE = auto()
    END = auto()
    REPEAT = auto()
    UNTIL = auto()
    READ = auto()
    WRITE = auto()
    VAR = auto()
    FUNC = auto()
    WHILE = auto()
    FOR = auto()
    RETURN = auto()
    LAMBDA = auto()

    # Logical
    AND = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()

    # Comparison
    LT = auto()
    EQ = auto()
    GT = auto()

    # Assignment
    ASSIGN = auto()  # :=

    # Punctuation
    SEMI = auto()
    COMMA = auto()
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    COLON = auto()

    # Special
    EOF = auto()
    ERROR = auto()


KEYWORDS = {
    'if': TT.IF,
    'then': TT.THEN,
    'else': TT.ELSE,
    'end': TT.END,
    'repeat': TT.REPEAT,
    'until': TT.UNTIL,
    'read': TT.READ,
    'write': TT.WRITE,
    'var': TT.VAR,
    'func': TT.FUNC,
    'while': TT.WHILE,
    'for': TT.FOR,
    'return': TT.RETURN,
    'lambda': TT.LAMBDA,
    'and': TT.AND,
}

SYMBOLS = {
    TT.PLUS: '+',
    TT.MINUS: '-',
    TT.STAR: '*',
    TT.SLASH: '/',
    TT.LT: '<',
    TT.EQ: '=',
    TT.GT: '>',
    TT.ASSIGN: ':=',
    TT.SEMI: ';',
    TT.COMMA: ',',
    TT.LPAR: '(',
    TT.RPAR: ')',
    TT.LSQB: '[',
    TT.RSQB: ']',
    TT.COLON: ':',
}

_KEYWORD_TYPES = {tt: word for word, tt in KEYWORDS.items()}


@dataclass
class Tok:
    """Token with position info"""

    type: TT
    value: Any
    line: int = 0
    column: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"


def describe(kind: TT, lexeme: Any = None) -> str:
    """Render a token the way the compiler listing shows it.

    Without a lexeme, ID and NUM render as the bare kind name.
    """
    if kind in _KEYWORD_TYPES:
        return f"reserved word: {_KEYWORD_TYPES[kind]}"
    if kind in SYMBOLS:
        return SYMBOLS[kind]
    if kind in (TT.NUM, TT.ID) and lexeme is None:
        return kind.name
    if kind == TT.NUM:
        return f"NUM, val= {lexeme}"
    if kind == TT.ID:
        return f"ID, name= {lexeme}"
    if kind == TT.EOF:
        return "EOF"
    if kind == TT.ERROR:
        return "ERROR" if lexeme is None else f"ERROR: {lexeme}"
    return f"Unknown token: {kind.name}"


def symbol(kind: TT) -> str:
    """Source text of an operator or keyword kind ('+', ':=', 'and')."""
    if kind in SYMBOLS:
        return SYMBOLS[kind]
    return _KEYWORD_TYPES.get(kind, kind.name)
