from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterator, List, Optional, Union
from typing_extensions import TypeAlias

from .token_types import TT

# ---------- Node kinds ----------

class StmtKind(Enum):
    IF = "If"
    REPEAT = "Repeat"
    ASSIGN = "Assign"
    READ = "Read"
    WRITE = "Write"
    FUNC = "Func"
    VAR = "Var"
    WHILE = "While"
    FOR = "For"
    RETURN = "Return"
    CALL = "Call"


class ExpKind(Enum):
    OP = "Op"
    CONST = "Const"
    ID = "Id"
    VALUE = "Value"
    PARAMS = "Params"
    DIM = "Dim"


# ---------- Expression nodes ----------

@dataclass
class Op:
    kind: ClassVar[ExpKind] = ExpKind.OP
    op: TT
    left: Optional[Expr]
    right: Optional[Expr] = None
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from _present(self.left, self.right)


@dataclass
class Const:
    kind: ClassVar[ExpKind] = ExpKind.CONST
    val: int
    line: int = 0

    def children(self) -> Iterator[Node]:
        return iter(())


@dataclass
class Id:
    """Identifier use, optionally indexed: ``a`` or ``a[i][j]``."""

    kind: ClassVar[ExpKind] = ExpKind.ID
    name: Optional[str]
    dims: List[Dim] = field(default_factory=list)
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from self.dims


@dataclass
class Decl:
    """Declared identifier inside a var list or parameter list.

    Either ``init`` (a single ``:=`` value) or ``dims`` is set; ``values``
    only accompanies ``dims``.
    """

    kind: ClassVar[ExpKind] = ExpKind.ID
    name: str
    init: Optional[Value] = None
    dims: List[Dim] = field(default_factory=list)
    values: List[Value] = field(default_factory=list)
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from _present(self.init)
        yield from self.dims
        yield from self.values


@dataclass
class Value:
    kind: ClassVar[ExpKind] = ExpKind.VALUE
    expr: Optional[Union[Expr, Lambda]]
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from _present(self.expr)


@dataclass
class Params:
    kind: ClassVar[ExpKind] = ExpKind.PARAMS
    decls: List[Decl] = field(default_factory=list)
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from self.decls


@dataclass
class Dim:
    """One ``[...]`` suffix; ``size`` is None when the contents were dropped."""

    kind: ClassVar[ExpKind] = ExpKind.DIM
    size: Optional[Expr] = None
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from _present(self.size)


@dataclass
class Lambda:
    """Anonymous expression-bodied function; shares the Func kind."""

    kind: ClassVar[StmtKind] = StmtKind.FUNC
    name: ClassVar[str] = "lambda"
    params: Params
    body: Optional[Expr]
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield self.params
        yield from _present(self.body)


# ---------- Statement nodes ----------

@dataclass
class If:
    kind: ClassVar[StmtKind] = StmtKind.IF
    cond: Optional[Expr]
    then: List[Stmt] = field(default_factory=list)
    else_: Optional[List[Stmt]] = None
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from _present(self.cond)
        yield from self.then
        yield from self.else_ or ()


@dataclass
class Repeat:
    kind: ClassVar[StmtKind] = StmtKind.REPEAT
    body: List[Stmt]
    cond: Optional[Expr] = None
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from self.body
        yield from _present(self.cond)


@dataclass
class Assign:
    """``x := e``, or ``x[i] := e`` when ``dims`` is non-empty."""

    kind: ClassVar[StmtKind] = StmtKind.ASSIGN
    name: Optional[str]
    value: Optional[Value] = None
    dims: List[Dim] = field(default_factory=list)
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from self.dims
        yield from _present(self.value)


@dataclass
class Read:
    kind: ClassVar[StmtKind] = StmtKind.READ
    name: Optional[str]
    line: int = 0

    def children(self) -> Iterator[Node]:
        return iter(())


@dataclass
class Write:
    kind: ClassVar[StmtKind] = StmtKind.WRITE
    expr: Optional[Expr]
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from _present(self.expr)


@dataclass
class Func:
    kind: ClassVar[StmtKind] = StmtKind.FUNC
    name: Optional[str]
    params: Params
    body: List[Stmt] = field(default_factory=list)
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield self.params
        yield from self.body


@dataclass
class Var:
    kind: ClassVar[StmtKind] = StmtKind.VAR
    decls: List[Decl] = field(default_factory=list)
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from self.decls


@dataclass
class While:
    kind: ClassVar[StmtKind] = StmtKind.WHILE
    cond: Optional[Expr]
    body: List[Stmt] = field(default_factory=list)
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from _present(self.cond)
        yield from self.body


@dataclass
class For:
    kind: ClassVar[StmtKind] = StmtKind.FOR
    decls: List[Decl]
    cond: Optional[Expr]
    step: Optional[Union[Assign, Call]]
    body: List[Stmt] = field(default_factory=list)
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from self.decls
        yield from _present(self.cond, self.step)
        yield from self.body


@dataclass
class Return:
    kind: ClassVar[StmtKind] = StmtKind.RETURN
    expr: Optional[Expr]
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from _present(self.expr)


@dataclass
class Call:
    """Call used either as a statement or inside an expression."""

    kind: ClassVar[StmtKind] = StmtKind.CALL
    name: Optional[str]
    args: List[Expr] = field(default_factory=list)
    line: int = 0

    def children(self) -> Iterator[Node]:
        yield from self.args


Expr: TypeAlias = Union[Op, Const, Id, Call]
Stmt: TypeAlias = Union[If, Repeat, Assign, Read, Write, Func, Var, While, For, Return, Call]
Node: TypeAlias = Union[Stmt, Expr, Decl, Value, Params, Dim, Lambda]


def _present(*nodes: Optional[Node]) -> Iterator[Node]:
    for node in nodes:
        if node is not None:
            yield node


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and every descendant, depth first, in slot order."""
    stack = [node]
    while stack:
        cur = stack.pop()
        yield cur
        stack.extend(reversed(list(cur.children())))
