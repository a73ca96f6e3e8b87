"""Parser for the Nexen language.

Statements are recognised by their leading token and parsed by recursive
descent; operator expressions are parsed by precedence climbing over the
binding-power table below. Each call to `parse_expression` consumes one
syntactic unit, so the driver can parse and evaluate a program one
top-level statement at a time.

A call such as `add(1, f(2))` arrives from the lexer as one identifier
token. Its argument list is split on top-level commas and every argument
is lexed and parsed again by a fresh parser.
"""

from __future__ import annotations

from typing import List, Optional, Tuple, Union
import re

from lark import Token

from .ast import (
    Node, Atom, Operation, Declaration, FunctionCall, FunctionDeclaration,
    Return, If, Block, ForLoop, WhileLoop, InfiniteLoop, Break, Continue,
)
from .errors import ParseError, InternalError
from .lexer import lex


# operator -> (left binding power, right binding power)
BINDING_POWER = {
    '=': (0.1, 0.2),
    '+=': (0.1, 0.2),
    '-=': (0.1, 0.2),
    '*=': (0.1, 0.2),
    '/=': (0.1, 0.2),
    '||': (0.3, 0.4),
    '&&': (0.5, 0.6),
    '==': (0.7, 0.8),
    '!=': (0.7, 0.8),
    '<': (0.9, 1.0),
    '>': (0.9, 1.0),
    '<=': (0.9, 1.0),
    '>=': (0.9, 1.0),
    '+': (1.0, 1.1),
    '-': (1.0, 1.1),
    '*': (2.0, 2.1),
    '/': (2.0, 2.1),
    '.': (4.0, 4.1),
    '[': (4.0, 4.1),
}

COMPOUND_ASSIGNMENT = {'+=': '+', '-=': '-', '*=': '*', '/=': '/'}

# binds tighter than every binary operator
PREFIX_MINUS_POWER = 3.0

IDENT_RE = re.compile(r'[A-Za-z_][A-Za-z0-9_]*\Z')


def binding_power(op: str) -> Tuple[float, float]:
    try:
        return BINDING_POWER[op]
    except KeyError:
        raise InternalError(f"Invalid operator: {op}") from None


def is_function_call(identifier: str) -> bool:
    return '(' in identifier and identifier.endswith(')')


def split_call(call: str) -> Tuple[str, str]:
    """Split `name(inner)` into its name and the text between the parens."""
    paren = call.index('(')
    return call[:paren], call[paren + 1:-1]


def split_arguments(args: str) -> List[str]:
    """Split an argument list on commas outside parentheses and strings."""
    parts: List[str] = []
    current: List[str] = []
    depth = 0
    in_string = False
    escape = False
    seen_comma = False
    for ch in args:
        if in_string:
            current.append(ch)
            if escape:
                escape = False
            elif ch == '\\':
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
        elif ch == ',' and depth == 0:
            parts.append(''.join(current).strip())
            current = []
            seen_comma = True
            continue
        current.append(ch)
    # `f(1, )` keeps its empty last argument
    if seen_comma or ''.join(current).strip():
        parts.append(''.join(current).strip())
    return parts


def parse_function_signature(signature: str) -> Tuple[str, Tuple[str, ...]]:
    """Parse `name(a, b)` into ('name', ('a', 'b'))."""
    if not is_function_call(signature):
        raise ParseError(f"Invalid function signature: {signature}")
    name, inner = split_call(signature)
    if not inner.strip():
        return name, ()
    params = tuple(p.strip() for p in inner.split(','))
    for param in params:
        if not IDENT_RE.match(param):
            raise ParseError(f"Invalid parameter name {param!r} in function '{name}'")
    return name, params


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0
        self.last_line = 1

    @classmethod
    def from_source(cls, source: str) -> 'Parser':
        return cls(lex(source))

    def peek(self) -> Optional[Token]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def next(self) -> Optional[Token]:
        token = self.peek()
        if token is not None:
            self.pos += 1
            if token.line is not None:
                self.last_line = token.line
        return token

    def match(self, expected: Union[str, List[str]]) -> bool:
        token = self.peek()
        if token is None:
            return False
        if isinstance(expected, list):
            return token.type in expected
        return token.type == expected

    def consume(self, expected: str, context: str) -> Token:
        token = self.next()
        if token is None:
            raise ParseError(f"Expected {context}, got end of input")
        if token.type != expected:
            raise ParseError(f"Expected {context}, got: {token.value!r}")
        return token

    def at_end(self) -> bool:
        """True once only statement terminators are left."""
        while self.match(['TERMINATOR', 'BLOCK_END']):
            self.next()
        return self.peek() is None

    def parse_statement(self) -> Node:
        return self.parse_expression(0.0)

    def parse_block(self) -> Block:
        """Parse statements up to (not including) the block's closing token."""
        statements: List[Node] = []
        while True:
            token = self.peek()
            if token is None or token.type in ('BLOCK_END', 'ELSE', 'ELSEIF'):
                break
            if token.type == 'TERMINATOR':
                self.next()
                continue
            statements.append(self.parse_expression(0.0))
        return Block(tuple(statements))

    def parse_braced_block(self, context: str) -> Block:
        self.consume('BLOCK_BEGIN', f"'{{' {context}")
        body = self.parse_block()
        self.consume('BLOCK_END', f"'}}' {context}")
        return body

    def parse_expression(self, min_bp: float) -> Node:
        token = self.next()
        while token is not None and token.type == 'TERMINATOR':
            token = self.next()
        if token is None:
            raise ParseError("Unexpected end of input")
        lvalue = self.parse_leading(token)

        while True:
            token = self.peek()
            if token is None or token.type != 'OPERATOR':
                break
            op = token.value
            l_bp, r_bp = binding_power(op)
            if l_bp < min_bp:
                break
            self.next()
            rvalue = self.parse_expression(r_bp)
            if op in COMPOUND_ASSIGNMENT:
                rvalue = Operation(COMPOUND_ASSIGNMENT[op], lvalue, rvalue)
                op = '='
            lvalue = Operation(op, lvalue, rvalue)
        return lvalue

    def parse_leading(self, token: Token) -> Node:
        kind = token.type
        if kind == 'LET':
            name = self.next()
            if name is None or name.type != 'IDENT' or is_function_call(name.value):
                got = name.value if name is not None else 'end of input'
                raise ParseError(f"Expected identifier after '{token.value}', got: {got!r}")
            return Declaration(name.value)
        if kind == 'FUNCTION':
            return self.parse_function()
        if kind == 'IF':
            return self.parse_if()
        if kind == 'FOR':
            return self.parse_for()
        if kind == 'WHILE':
            condition = self.parse_expression(0.0)
            return WhileLoop(condition, self.parse_braced_block('after while condition'))
        if kind == 'LOOP':
            return InfiniteLoop(self.parse_braced_block('after loop'))
        if kind == 'BREAK':
            return Break()
        if kind == 'CONTINUE':
            return Continue()
        if kind == 'RETURN':
            if self.peek() is None or self.match(['TERMINATOR', 'BLOCK_END', 'ELSE', 'ELSEIF']):
                return Return(None)
            return Return(self.parse_expression(0.0))
        if kind == 'BLOCK_BEGIN':
            block = self.parse_block()
            self.consume('BLOCK_END', "'}' to close block")
            return block
        if kind == 'LPAREN':
            inner = self.parse_expression(0.0)
            self.consume('RPAREN', "')'")
            return inner
        if kind == 'OPERATOR' and token.value == '-':
            operand = self.parse_expression(PREFIX_MINUS_POWER)
            return Operation('-', Atom('0'), operand)
        if kind in ('BOOL', 'STRING', 'NUMBER'):
            return Atom(token.value)
        if kind == 'IDENT':
            if is_function_call(token.value):
                return self.parse_call(token.value)
            return Atom(token.value)
        if kind in ('PUBLIC', 'PRIVATE', 'PROTECTED'):
            raise ParseError(f"Access modifier '{token.value}' is not supported")
        raise ParseError(f"Unknown reference to \"{token.value}\"")

    def parse_function(self) -> FunctionDeclaration:
        signature = self.next()
        if signature is None or signature.type != 'IDENT':
            got = signature.value if signature is not None else 'end of input'
            raise ParseError(f"Expected function signature after 'function', got: {got!r}")
        name, params = parse_function_signature(signature.value)
        body = self.parse_braced_block(f"in function '{name}'")
        return FunctionDeclaration(name, params, body)

    def parse_if(self) -> If:
        condition = self.parse_expression(0.0)
        self.consume('BLOCK_BEGIN', "'{' after if condition")
        then_block = self.parse_block()
        return If(condition, then_block, self.parse_else())

    def parse_else(self) -> Block:
        """Parse what follows a then-block, including its closing token.

        Both `if c { } else { }` and `if c then ... else ... end` are
        accepted; an `elseif` chain becomes a nested If in the else block.
        """
        if self.match('BLOCK_END'):
            self.next()
            if not self.match(['ELSE', 'ELSEIF']):
                return Block()
        token = self.next()
        if token is None:
            raise ParseError("Expected '}' to close if body, got end of input")
        if token.type == 'ELSEIF':
            condition = self.parse_expression(0.0)
            self.consume('BLOCK_BEGIN', "'{' after elseif condition")
            then_block = self.parse_block()
            return Block((If(condition, then_block, self.parse_else()),))
        if token.type == 'ELSE':
            if self.match('BLOCK_BEGIN'):
                self.next()
            else_block = self.parse_block()
            self.consume('BLOCK_END', "'}' to close else body")
            return else_block
        raise ParseError(f"Expected '}}' to close if body, got: {token.value!r}")

    def parse_for(self) -> ForLoop:
        var = self.next()
        if var is None or var.type != 'IDENT' or is_function_call(var.value):
            got = var.value if var is not None else 'end of input'
            raise ParseError(f"Expected variable name after 'for', got: {got!r}")
        eq = self.next()
        if eq is None or eq.type != 'OPERATOR' or eq.value != '=':
            got = eq.value if eq is not None else 'end of input'
            raise ParseError(f"Expected '=' after for variable, got: {got!r}")
        start = self.parse_expression(0.0)
        self.consume('COMMA', "',' after for start value")
        end = self.parse_expression(0.0)
        step = None
        if self.match('COMMA'):
            self.next()
            step = self.parse_expression(0.0)
        body = self.parse_braced_block('after for parameters')
        return ForLoop(var.value, start, end, step, body)

    def parse_call(self, call: str) -> FunctionCall:
        name, inner = split_call(call)
        args = tuple(parse_argument(arg) for arg in split_arguments(inner))
        return FunctionCall(name, args)


def parse_argument(text: str) -> Node:
    """Lex and parse one call argument as a complete expression."""
    parser = Parser.from_source(text)
    expr = parser.parse_expression(0.0)
    if not parser.at_end():
        raise ParseError(f"Unexpected {parser.peek().value!r} in argument {text!r}")
    return expr
