"""
Recursive Descent Parser for TINY

Structure:
- Token source: a one-token cursor over the lexer output
- Parser: one method per grammar non-terminal
- AST: typed dataclass nodes from tiny_rd.nodes

Error recovery is panic mode without synchronisation sets:
- expect() reports a mismatch and leaves the offending token in place for
  whichever production regains control next
- the statement and factor dispatchers report an unusable token and skip
  it, which is what guarantees forward progress
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, TextIO, Union

from .config import ParseOptions
from .diagnostics import Diagnostic, DiagnosticSink
from .lexer_rd import Lexer, TokenCursor
from .nodes import (
    Assign,
    Call,
    Const,
    Decl,
    Dim,
    Expr,
    For,
    Func,
    Id,
    If,
    Lambda,
    Op,
    Params,
    Read,
    Repeat,
    Return,
    Stmt,
    Value,
    Var,
    While,
    Write,
)
from .token_types import TT, Tok, describe

# ============================================================================
# Parser
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None,
                 diagnostics: Sequence[Diagnostic] = ()):
        self.message = message
        self.token = token
        self.diagnostics = list(diagnostics)
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )

    @property
    def line(self) -> int:
        if self.token is not None:
            return self.token.line
        if self.diagnostics:
            return self.diagnostics[0].line
        return 0


@dataclass
class ParseResult:
    program: List[Stmt]
    diagnostics: List[Diagnostic]

    @property
    def had_error(self) -> bool:
        return bool(self.diagnostics)


# Tokens that close a statement sequence; never consumed by parse_stmt_sequence
BLOCK_CLOSERS = (TT.EOF, TT.END, TT.ELSE, TT.UNTIL)

REL_OPS = (TT.LT, TT.EQ, TT.GT)
ADD_OPS = (TT.PLUS, TT.MINUS, TT.AND)
MUL_OPS = (TT.STAR, TT.SLASH)


class Parser:
    """
    Recursive descent parser for TINY.

    Expression precedence (lowest to highest):
    1. compare (<, =, >) - at most one per expression
    2. add (+, -, and)
    3. mul (*, /)
    4. factor (numbers, identifiers, indexing, calls, parens)

    A Parser is single use: build one per token stream and call parse().
    """

    def __init__(self, tokens: Iterable[Tok], options: Optional[ParseOptions] = None,
                 listing: Optional[TextIO] = None):
        self.options = options or ParseOptions()
        trace = listing if self.options.trace_scan else None
        self.cursor = TokenCursor(tokens, trace=trace)
        self.errors = DiagnosticSink(listing)
        self.current = Tok(TT.EOF, None, 0, 0)  # replaced by the first pull
        self.depth = 0

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return self.errors.diagnostics

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        self.current = self.cursor.advance()
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT) -> None:
        """Consume token of expected type, or report and stay on it"""
        if self.check(token_type):
            self.advance()
            return
        self.error(
            f"unexpected token -> {self._describe_current()}; "
            f"expected {describe(token_type)}",
            "match",
        )

    def error(self, message: str, site: str) -> None:
        self.errors.report(self.current.line, message, site)

    def _describe_current(self) -> str:
        return describe(self.current.type, self.current.value)

    @contextmanager
    def nested(self) -> Iterator[None]:
        """Track recursion through the self-nesting productions"""
        self.depth += 1
        try:
            if self.depth > self.options.max_depth:
                raise ParseError(
                    f"nesting exceeds {self.options.max_depth} levels", self.current
                )
            yield
        finally:
            self.depth -= 1

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> List[Stmt]:
        """Parse entire program"""
        self.advance()

        # Filled in place so statements finished before a depth overflow survive.
        program: List[Stmt] = []
        try:
            self.parse_stmt_sequence(program)
        except ParseError as exc:
            self.errors.report(exc.line, exc.message, "depth")
            while not self.check(TT.EOF):
                self.advance()
            return program

        if not self.check(TT.EOF):
            self.error(f"unexpected trailing input -> {self._describe_current()}", "parse")

        return program

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_stmt_sequence(self, stmts: Optional[List[Stmt]] = None) -> List[Stmt]:
        """
        Parse statements up to a block closer (EOF, end, else, until).

        ';' between statements is optional. A trailing ';' before a closer
        does not start another statement. Statements are appended to
        ``stmts`` when given.
        """
        stmts = [] if stmts is None else stmts

        stmt = self.parse_statement()
        if stmt is not None:
            stmts.append(stmt)

        while not self.check(*BLOCK_CLOSERS):
            self.match(TT.SEMI)
            if self.check(*BLOCK_CLOSERS):
                break

            stmt = self.parse_statement()
            if stmt is not None:
                stmts.append(stmt)

        return stmts

    def parse_statement(self) -> Optional[Stmt]:
        """Dispatch on the leading token of a statement"""
        with self.nested():
            if self.check(TT.IF):
                return self.parse_if_stmt()
            if self.check(TT.REPEAT):
                return self.parse_repeat_stmt()
            if self.check(TT.ID):
                return self.parse_assign_stmt()
            if self.check(TT.READ):
                return self.parse_read_stmt()
            if self.check(TT.WRITE):
                return self.parse_write_stmt()
            if self.check(TT.FUNC):
                return self.parse_func_stmt()
            if self.check(TT.VAR):
                return self.parse_var_stmt()
            if self.check(TT.WHILE):
                return self.parse_while_stmt()
            if self.check(TT.FOR):
                return self.parse_for_stmt()
            if self.check(TT.RETURN):
                return self.parse_return_stmt()

            if self.check(TT.END, TT.EOF):
                return None

            self.error(f"unexpected token -> {self._describe_current()}", "statement")
            # Always skip here: nothing else would consume this token.
            self.advance()
            return None

    def parse_if_stmt(self) -> If:
        """if exp then stmts [else stmts] end"""
        line = self.current.line
        self.expect(TT.IF)
        cond = self.parse_exp()
        self.expect(TT.THEN)
        then_body = self.parse_stmt_sequence()

        else_body = None
        if self.match(TT.ELSE):
            else_body = self.parse_stmt_sequence()

        self.expect(TT.END)
        return If(cond, then_body, else_body, line=line)

    def parse_repeat_stmt(self) -> Repeat:
        """repeat stmts until exp - the condition closes the block"""
        line = self.current.line
        self.expect(TT.REPEAT)
        body = self.parse_stmt_sequence()
        self.expect(TT.UNTIL)
        cond = self.parse_exp()
        return Repeat(body, cond, line=line)

    def parse_assign_stmt(self) -> Union[Assign, Call]:
        """
        Parse a statement led by an identifier:
        x := e | x[i]... := e | f(args)
        """
        line = self.current.line
        name = self.current.value if self.check(TT.ID) else None
        self.expect(TT.ID)

        if self.check(TT.LPAR):
            return self.parse_call_stmt(name)

        stmt = Assign(name, line=line)
        if self.check(TT.LSQB):
            stmt.dims = self.parse_dim_exp(True)

        if self.check(TT.ASSIGN):
            stmt.value = self.parse_value_exp()
        else:
            self.expect(TT.ASSIGN)

        return stmt

    def parse_read_stmt(self) -> Read:
        """read x"""
        line = self.current.line
        self.expect(TT.READ)
        name = self.current.value if self.check(TT.ID) else None
        self.expect(TT.ID)
        return Read(name, line=line)

    def parse_write_stmt(self) -> Write:
        """write exp"""
        line = self.current.line
        self.expect(TT.WRITE)
        return Write(self.parse_exp(), line=line)

    def parse_return_stmt(self) -> Return:
        """return exp"""
        line = self.current.line
        self.expect(TT.RETURN)
        return Return(self.parse_exp(), line=line)

    def parse_var_stmt(self) -> Var:
        """var decl, decl, ..."""
        line = self.current.line
        self.expect(TT.VAR)
        return Var(self.parse_var_list(True), line=line)

    def parse_while_stmt(self) -> While:
        """while (exp) stmts end"""
        line = self.current.line
        self.expect(TT.WHILE)
        self.expect(TT.LPAR)
        cond = self.parse_exp()
        self.expect(TT.RPAR)
        body = self.parse_stmt_sequence()
        self.expect(TT.END)
        return While(cond, body, line=line)

    def parse_for_stmt(self) -> For:
        """
        Parse for loop:
        for ([var] decls; exp; assignment) stmts end

        The step is an assignment (or call) without a terminator.
        """
        line = self.current.line
        self.expect(TT.FOR)
        self.expect(TT.LPAR)
        self.match(TT.VAR)

        decls = self.parse_var_list(True)
        self.expect(TT.SEMI)
        cond = self.parse_exp()
        self.expect(TT.SEMI)
        step = self.parse_assign_stmt()
        self.expect(TT.RPAR)

        body = self.parse_stmt_sequence()
        self.expect(TT.END)
        return For(decls, cond, step, body, line=line)

    def parse_func_stmt(self) -> Func:
        """func name(params) stmts end"""
        line = self.current.line
        self.expect(TT.FUNC)
        name = self.current.value if self.check(TT.ID) else None
        self.expect(TT.ID)
        params = self.parse_params()
        body = self.parse_stmt_sequence()
        self.expect(TT.END)
        return Func(name, params, body, line=line)

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_exp(self) -> Optional[Expr]:
        """Parse comparison: non-chaining, so a < b < c stops after a < b"""
        left = self.parse_simple_exp()

        if self.check(*REL_OPS):
            op = self.advance()
            right = self.parse_simple_exp()
            return Op(op.type, left, right, line=op.line)

        return left

    def parse_simple_exp(self) -> Optional[Expr]:
        """Parse addition/subtraction/and, left associative"""
        left = self.parse_term()

        while self.check(*ADD_OPS):
            op = self.advance()
            right = self.parse_term()
            left = Op(op.type, left, right, line=op.line)

        return left

    def parse_term(self) -> Optional[Expr]:
        """Parse multiplication/division, left associative"""
        left = self.parse_factor()

        while self.check(*MUL_OPS):
            op = self.advance()
            right = self.parse_factor()
            left = Op(op.type, left, right, line=op.line)

        return left

    def parse_factor(self) -> Optional[Expr]:
        """Parse numbers, identifiers (indexed or called) and parenthesised exp"""
        with self.nested():
            if self.check(TT.NUM):
                const = Const(self._int_value(self.current), line=self.current.line)
                self.advance()
                return const

            if self.check(TT.ID):
                tok = self.advance()
                if self.check(TT.LSQB):
                    return Id(tok.value, self.parse_dim_exp(True), line=tok.line)
                if self.check(TT.LPAR):
                    return self.parse_call_stmt(tok.value)
                return Id(tok.value, line=tok.line)

            if self.match(TT.LPAR):
                expr = self.parse_exp()
                self.expect(TT.RPAR)
                return expr

            self.error(f"unexpected token -> {self._describe_current()}", "factor")
            self.advance()
            return None

    def _int_value(self, tok: Tok) -> int:
        """Decimal literal value; out-of-range literals saturate"""
        limit = self.options.int_max
        digits = tok.value.lstrip('0') or '0'
        # Longer digit strings are out of range anyway, and int() rejects huge ones.
        if len(digits) <= len(str(limit)) and int(digits) <= limit:
            return int(digits)

        shown = tok.value if len(tok.value) <= 24 else f"{tok.value[:12]}... ({len(tok.value)} digits)"
        self.errors.report(
            tok.line,
            f"integer literal {shown} out of range (max {limit})",
            "literal",
        )
        return limit

    # ========================================================================
    # Declarations, arrays and initialisers
    # ========================================================================

    def parse_var_list(self, explicit_dim: bool) -> List[Decl]:
        """
        Parse comma separated declarations:
        x | x := value | x[dims] [:= (values)]

        Initialiser lists are only accepted when explicit_dim is set; the
        parameter list parses with explicit_dim off.
        """
        decls: List[Decl] = []

        while self.check(TT.ID):
            tok = self.advance()
            decl = Decl(tok.value, line=tok.line)
            decls.append(decl)

            if self.check(TT.ASSIGN):
                decl.init = self.parse_value_exp()
            elif self.check(TT.LSQB):
                decl.dims = self.parse_dim_exp(explicit_dim)
                if explicit_dim and self.check(TT.ASSIGN):
                    decl.values = self.parse_multi_value_exp()

            if not self.match(TT.COMMA):
                break

        return decls

    def parse_dim_exp(self, explicit_dim: bool) -> List[Dim]:
        """
        Parse one or more [size] suffixes.

        Without explicit_dim the size is optional and dropped, as in a
        parameter annotation.
        """
        dims: List[Dim] = []

        while self.match(TT.LSQB):
            dim = Dim(line=self.current.line)
            if explicit_dim:
                dim.size = self.parse_simple_exp()
            elif not self.check(TT.RSQB):
                self.parse_simple_exp()
            self.expect(TT.RSQB)
            dims.append(dim)

        return dims

    def parse_value_exp(self) -> Value:
        """:= lambda | := exp"""
        line = self.current.line
        self.expect(TT.ASSIGN)
        if self.check(TT.LAMBDA):
            return Value(self.parse_lambda_exp(), line=line)
        return Value(self.parse_exp(), line=line)

    def parse_multi_value_exp(self) -> List[Value]:
        """:= (exp, exp, ...)"""
        self.expect(TT.ASSIGN)
        self.expect(TT.LPAR)

        values: List[Value] = []
        while True:
            line = self.current.line
            values.append(Value(self.parse_exp(), line=line))
            if not self.match(TT.COMMA):
                break

        self.expect(TT.RPAR)
        return values

    def parse_params(self) -> Params:
        """(decl, decl, ...) without initialiser lists"""
        line = self.current.line
        self.expect(TT.LPAR)
        decls = self.parse_var_list(False)
        self.expect(TT.RPAR)
        return Params(decls, line=line)

    # ========================================================================
    # Calls and lambdas
    # ========================================================================

    def parse_call_stmt(self, name: Optional[str]) -> Call:
        """
        Parse (args) after an already consumed callee name.
        Shared by call statements and call expressions.
        """
        line = self.current.line
        self.expect(TT.LPAR)

        args: List[Expr] = []
        while not self.check(TT.RPAR):
            arg = self.parse_exp()
            if arg is not None:
                args.append(arg)
            if not self.match(TT.COMMA):
                break

        self.expect(TT.RPAR)
        return Call(name, args, line=line)

    def parse_lambda_exp(self) -> Lambda:
        """lambda (params): exp - the body is a single expression"""
        with self.nested():
            line = self.current.line
            self.expect(TT.LAMBDA)
            params = self.parse_params()
            self.expect(TT.COLON)
            body = self.parse_exp()
            return Lambda(params, body, line=line)


# ============================================================================
# Entry points
# ============================================================================

def parse_tokens(tokens: Iterable[Tok], options: Optional[ParseOptions] = None,
                 listing: Optional[TextIO] = None) -> ParseResult:
    """Parse an already scanned token stream"""
    parser = Parser(tokens, options=options, listing=listing)
    program = parser.parse()
    return ParseResult(program, list(parser.diagnostics))


def parse_source(source: str, options: Optional[ParseOptions] = None,
                 listing: Optional[TextIO] = None, strict: bool = False) -> ParseResult:
    """
    Parse TINY source code to AST.

    Args:
        source: Source code to parse
        options: Parser knobs; defaults to ParseOptions()
        listing: Optional stream receiving diagnostics (and the scan trace)
        strict: Raise ParseError instead of returning a result with errors
    """
    result = parse_tokens(Lexer(source).iter_tokens(), options=options, listing=listing)

    if strict and result.had_error:
        first = result.diagnostics[0]
        raise ParseError(
            f"{len(result.diagnostics)} syntax error(s); first: {first}",
            diagnostics=result.diagnostics,
        )
    return result


def parse_expr_fragment(source: str) -> Optional[Expr]:
    """
    Parse a standalone expression fragment.
    Raises ParseError if the fragment is malformed or has trailing tokens.
    """
    parser = Parser(Lexer(source).iter_tokens())
    parser.advance()
    expr = parser.parse_exp()

    if not parser.check(TT.EOF):
        parser.error(f"unexpected trailing input -> {parser._describe_current()}", "parse")
    if parser.diagnostics:
        raise ParseError(str(parser.diagnostics[0]), diagnostics=parser.diagnostics)
    return expr
