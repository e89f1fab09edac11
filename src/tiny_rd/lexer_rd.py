"""
Lexer for TINY - Recursive Descent Parser

Tokenizes TINY source code into a stream of tokens.

Features:
- Single-pass tokenization, lazily via iter_tokens()
- Position tracking (line, column)
- Brace comments { ... } that may span lines
- Unknown characters become ERROR tokens so the parser can recover
"""

from typing import Iterable, Iterator, List, Optional, TextIO

from .token_types import KEYWORDS, TT, Tok, describe

# ============================================================================
# Lexer Implementation
# ============================================================================

class LexError(Exception):
    """Lexical analysis error"""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, col {column}")


class Lexer:
    """
    TINY lexer.

    Whitespace (including newlines) only separates tokens; statements are
    delimited by ';' and block keywords, so no layout tokens are emitted.
    """

    KEYWORDS = KEYWORDS

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        (':=', TT.ASSIGN),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('<', TT.LT),
        ('=', TT.EQ),
        ('>', TT.GT),
        (';', TT.SEMI),
        (',', TT.COMMA),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        (':', TT.COLON),
    ]

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def iter_tokens(self) -> Iterator[Tok]:
        """Yield tokens one at a time, finishing with a single EOF"""
        while True:
            self.skip_blank()
            if self.pos >= len(self.source):
                break
            yield self.scan_token()

        yield Tok(TT.EOF, None, self.line, self.column)

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        return list(self.iter_tokens())

    def scan_token(self) -> Tok:
        """Scan next token"""
        line, column = self.line, self.column
        ch = self.peek()

        # Numbers
        if ch.isascii() and ch.isdigit():
            return Tok(TT.NUM, self.scan_number(), line, column)

        # Identifiers and keywords
        if ch.isalpha() or ch == '_':
            value = self.scan_identifier()
            return Tok(self.KEYWORDS.get(value, TT.ID), value, line, column)

        # Operators and punctuation
        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                return Tok(op_type, op_str, line, column)

        return Tok(TT.ERROR, self.advance(), line, column)

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_number(self) -> str:
        """Scan number literal (decimal digits only)"""
        value = ''
        while self.peek().isascii() and self.peek().isdigit():
            value += self.advance()
        return value

    def scan_identifier(self) -> str:
        """Scan identifier or keyword"""
        value = ''
        while self.peek().isalnum() or self.peek() == '_':
            value += self.advance()
        return value

    def skip_comment(self):
        """Skip a { ... } comment; comments do not nest"""
        line, column = self.line, self.column
        self.advance()  # consume {
        while self.peek() != '}':
            if self.pos >= len(self.source):
                raise LexError("Unterminated comment", line, column)
            self.advance()
        self.advance()  # consume }

    def skip_blank(self):
        """Skip whitespace, newlines and comments"""
        while self.pos < len(self.source):
            ch = self.peek()
            if ch == '{':
                self.skip_comment()
            elif ch.isspace():
                self.advance()
            else:
                return

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = ''
        for _ in range(n):
            ch = self.source[self.pos] if self.pos < len(self.source) else '\0'
            result += ch
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return result


# ============================================================================
# Token Source
# ============================================================================

class TokenCursor:
    """
    Pull-based cursor over a token stream.

    Holds exactly one current token. Once EOF is reached every further
    advance() returns the same EOF token.
    """

    def __init__(self, tokens: Iterable[Tok], trace: Optional[TextIO] = None):
        self._it = iter(tokens)
        self._trace = trace
        self._current: Optional[Tok] = None

    def current(self) -> Tok:
        if self._current is None:
            return self.advance()
        return self._current

    def advance(self) -> Tok:
        if self._current is not None and self._current.type == TT.EOF:
            return self._current

        tok = next(self._it, None)
        if tok is None:
            line = self._current.line if self._current is not None else 0
            tok = Tok(TT.EOF, None, line, 0)

        self._current = tok
        if self._trace is not None:
            self._trace.write(f"\t{tok.line}: {describe(tok.type, tok.value)}\n")
        return tok


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    return Lexer(source).tokenize()
