"""Helpers for rendering the AST.

``to_lark`` exports nodes as lark ``Tree``/``Token`` objects so the rest of
the toolchain can use lark's equality and visitors; ``pretty_lark`` prints them
in lark's own format without recursing.
``pretty_listing`` produces the indented compiler-listing view.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from lark import Token, Tree

from .nodes import (
    Assign,
    Call,
    Const,
    Decl,
    Dim,
    For,
    Func,
    Id,
    If,
    Lambda,
    Node,
    Op,
    Params,
    Read,
    Repeat,
    Return,
    Value,
    Var,
    While,
    Write,
    walk,
)
from .token_types import symbol

LarkNode = Optional[Union[Tree, Token]]


def _ident(name: Optional[str]) -> LarkNode:
    return None if name is None else Token('ID', name)


_NODE_TYPES = (
    If, Repeat, Assign, Read, Write, Return, Func, Var, While, For, Call,
    Op, Const, Id, Decl, Value, Params, Dim, Lambda,
)


def to_lark(node: Union[Node, Sequence[Node], None]) -> LarkNode:
    """Convert a node, or a statement list, to a lark Tree.

    Missing sub-parts (left behind by syntax errors) become None children.
    Subtrees are built bottom-up without recursion, so long operator
    chains convert like any other tree.
    """
    if node is None:
        return None
    if isinstance(node, (list, tuple)):
        return Tree('stmts', [to_lark(n) for n in node])
    if not isinstance(node, _NODE_TYPES):
        raise TypeError(f"not an AST node: {node!r}")

    built: Dict[int, Tree] = {}

    def conv(child: Optional[Node]) -> LarkNode:
        return None if child is None else built[id(child)]

    # Reversed pre-order visits every child before its parent.
    for cur in reversed(list(walk(node))):
        built[id(cur)] = _convert(cur, conv)
    return built[id(node)]


def _convert(node: Node, conv: Callable[[Optional[Node]], LarkNode]) -> Tree:
    def _seq(label: str, nodes: Sequence[Node]) -> Tree:
        return Tree(label, [conv(n) for n in nodes])

    match node:
        case If(cond=cond, then=then, else_=else_):
            children = [conv(cond), _seq('stmts', then)]
            if else_ is not None:
                children.append(_seq('stmts', else_))
            return Tree('if', children)
        case Repeat(body=body, cond=cond):
            return Tree('repeat', [_seq('stmts', body), conv(cond)])
        case Assign(name=name, dims=dims, value=value):
            children = [_ident(name)]
            if dims:
                children.append(_seq('dims', dims))
            children.append(conv(value))
            return Tree('assign', children)
        case Read(name=name):
            return Tree('read', [_ident(name)])
        case Write(expr=expr):
            return Tree('write', [conv(expr)])
        case Return(expr=expr):
            return Tree('return', [conv(expr)])
        case Func(name=name, params=params, body=body):
            return Tree('func', [_ident(name), conv(params), _seq('stmts', body)])
        case Var(decls=decls):
            return _seq('var', decls)
        case While(cond=cond, body=body):
            return Tree('while', [conv(cond), _seq('stmts', body)])
        case For(decls=decls, cond=cond, step=step, body=body):
            return Tree('for', [
                _seq('decls', decls), conv(cond), conv(step), _seq('stmts', body),
            ])
        case Call(name=name, args=args):
            return Tree('call', [_ident(name), _seq('args', args)])
        case Op(op=op, left=left, right=right):
            return Tree('op', [Token(op.name, symbol(op)), conv(left), conv(right)])
        case Const(val=val):
            return Tree('const', [Token('NUM', str(val))])
        case Id(name=name, dims=dims):
            children = [_ident(name)]
            if dims:
                children.append(_seq('dims', dims))
            return Tree('id', children)
        case Decl(name=name, init=init, dims=dims, values=values):
            children = [_ident(name)]
            if init is not None:
                children.append(conv(init))
            if dims:
                children.append(_seq('dims', dims))
            if values:
                children.append(_seq('values', values))
            return Tree('decl', children)
        case Value(expr=expr):
            return Tree('value', [conv(expr)])
        case Params(decls=decls):
            return _seq('params', decls)
        case Dim(size=size):
            return Tree('dim', [] if size is None else [conv(size)])
        case Lambda(params=params, body=body):
            return Tree('lambda', [conv(params), conv(body)])
        case _:
            raise TypeError(f"not an AST node: {node!r}")


def pretty_lark(tree: LarkNode, indent_str: str = "  ") -> str:
    """Same text as lark's ``Tree.pretty()``, built with an explicit stack."""
    if not isinstance(tree, Tree):
        return f"{tree}\n"

    parts: List[str] = []
    stack: List[Tuple[object, int]] = [(tree, 0)]
    while stack:
        cur, level = stack.pop()
        if not isinstance(cur, Tree):
            parts.append(f"{indent_str * level}{cur}\n")
            continue
        parts.append(f"{indent_str * level}{cur.data}")
        if len(cur.children) == 1 and not isinstance(cur.children[0], Tree):
            parts.append(f"\t{cur.children[0]}\n")
            continue
        parts.append("\n")
        stack.extend((child, level + 1) for child in reversed(cur.children))
    return "".join(parts)


def node_label(node: Node) -> str:
    """Listing label of a single node: 'Assign to: x', 'Op: +', ..."""
    match node:
        case Assign(name=name):
            return f"Assign to: {name}"
        case Read(name=name):
            return f"Read: {name}"
        case Func(name=name) | Call(name=name):
            return f"{node.kind.value}: {name}"
        case Lambda():
            return "Func: lambda"
        case Op(op=op):
            return f"Op: {symbol(op)}"
        case Const(val=val):
            return f"Const: {val}"
        case Id(name=name) | Decl(name=name):
            return f"Id: {name}"
        case _:
            return node.kind.value


def pretty_listing(node: Union[Node, Sequence[Node]], indent: str = "") -> List[str]:
    """Indented listing, two spaces per level, children in slot order."""
    roots = list(node) if isinstance(node, (list, tuple)) else [node]
    lines: List[str] = []

    # Explicit stack: left-associative operator chains can be very deep.
    stack = [(root, indent) for root in reversed(roots)]
    while stack:
        cur, pad = stack.pop()
        lines.append(f"{pad}{node_label(cur)}")
        stack.extend((child, pad + "  ") for child in reversed(list(cur.children())))
    return lines
