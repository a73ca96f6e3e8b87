"""Expression tree definitions for the Nexen language.

Statements are expressions: the parser produces one tree per top-level
statement and the interpreter walks it. Nodes are frozen and own their
children, so a tree is never modified after parsing. `str()` renders a
node as an s-expression, which is what the debug trace shows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import InternalError


@dataclass(frozen=True)
class Node:
    """Base class for all expression nodes."""
    pass


@dataclass(frozen=True)
class Atom(Node):
    # raw token text; resolved to a literal, variable or keyword when evaluated
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Operation(Node):
    op: str
    left: Node
    right: Node

    def __str__(self) -> str:
        return f"({self.op} {self.left} {self.right})"


@dataclass(frozen=True)
class Declaration(Node):
    name: str

    def __str__(self) -> str:
        return f"decl<{self.name}>"


@dataclass(frozen=True)
class FunctionCall(Node):
    name: str
    args: Tuple[Node, ...]

    def __str__(self) -> str:
        args = ', '.join(str(arg) for arg in self.args)
        return f"fn_call<{self.name}({args})>"


@dataclass(frozen=True)
class Block(Node):
    statements: Tuple[Node, ...] = ()

    def __str__(self) -> str:
        return '{ ' + ''.join(f"{stmt} " for stmt in self.statements) + '}'


@dataclass(frozen=True)
class FunctionDeclaration(Node):
    name: str
    params: Tuple[str, ...]
    body: Block

    def __str__(self) -> str:
        return f"fn<{self.name}({', '.join(self.params)})> {self.body}"


@dataclass(frozen=True)
class Return(Node):
    value: Optional[Node]

    def __str__(self) -> str:
        return f"(return {self.value})" if self.value is not None else '(return)'


@dataclass(frozen=True)
class If(Node):
    condition: Node
    then_block: Block
    else_block: Optional[Block]

    def __str__(self) -> str:
        text = f"if {self.condition} then {self.then_block}"
        if self.else_block is not None and self.else_block.statements:
            text += f" else {self.else_block}"
        return text


@dataclass(frozen=True)
class ForLoop(Node):
    var: str
    start: Node
    end: Node
    step: Optional[Node]
    body: Block

    def __str__(self) -> str:
        step = f", {self.step}" if self.step is not None else ''
        return f"for {self.var} = {self.start}, {self.end}{step} {self.body}"


@dataclass(frozen=True)
class WhileLoop(Node):
    condition: Node
    body: Block

    def __str__(self) -> str:
        return f"while {self.condition} {self.body}"


@dataclass(frozen=True)
class InfiniteLoop(Node):
    body: Block

    def __str__(self) -> str:
        return f"loop {self.body}"


@dataclass(frozen=True)
class Break(Node):
    def __str__(self) -> str:
        return 'break'


@dataclass(frozen=True)
class Continue(Node):
    def __str__(self) -> str:
        return 'continue'


def is_variable_name(name: str) -> bool:
    return bool(name) and (name[0].isalpha() or name[0] == '_')


def as_assignment(node: Node) -> Optional[Tuple[str, Node, bool]]:
    """Split an assignment statement into (name, value, is_declaration).

    Returns None when `node` is not an `=` operation. The parser only ever
    places a declaration or an identifier on the left of `=`, so any other
    target is an internal error.
    """
    if not isinstance(node, Operation) or node.op != '=':
        return None
    target = node.left
    if isinstance(target, Declaration):
        return target.name, node.right, True
    if isinstance(target, Atom):
        if not is_variable_name(target.text):
            raise InternalError(f"Invalid variable name: {target.text}")
        return target.text, node.right, False
    raise InternalError(f"Invalid assignment target: {target}")
