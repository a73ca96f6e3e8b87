"""Interpreter for the Nexen language.

This module walks the expression trees produced by `nexen.parser` and
drives whole programs: the source is lexed once, then parsed and
evaluated one top-level statement at a time. Any language error aborts
the run and is reported together with the line it came from.

Scoping is lexical for blocks and dynamic for function bodies: a
function value captures nothing, so free variables in its body are
looked up in whatever scopes are active when it is called.
"""

from __future__ import annotations

import re
import sys
import time
from datetime import timedelta
from typing import Any, List, Optional, TextIO

from .ast import (
    Node, Atom, Operation, Declaration, FunctionCall, FunctionDeclaration,
    Return, If, Block, ForLoop, WhileLoop, InfiniteLoop, Break, Continue,
    as_assignment,
)
from .builtin_function import NativeRegistry
from .environment import ScopeStack
from .errors import (
    NexenError, ProgramError, UndefinedReference, TypeMismatch, ComparisonError,
    UnsupportedOperator, ArityError, NotCallable, InvalidStep, CannotEvaluate,
    StackOverflow,
)
from .lexer import lex, describe_token
from .parser import Parser
from .std import populate_native_registry
from .types import (
    Completion, FunctionVal, EndOfBlock, NORMAL, RETURN, BREAK, CONTINUE,
    is_number, is_text, as_number, as_boolean, as_text, divide,
)


# each user call costs several host frames
RECURSION_LIMIT = 10_000

ESCAPES = {'n': '\n', 't': '\t', '"': '"', '\\': '\\'}
ESCAPE_RE = re.compile(r'\\(.)', re.DOTALL)


def unescape(text: str) -> str:
    return ESCAPE_RE.sub(lambda m: ESCAPES.get(m.group(1), m.group(0)), text)


class Interpreter:
    """Evaluates Nexen expression trees against a scope stack."""
    def __init__(self, registry: Optional[NativeRegistry] = None, debug_level: int = 0,
                 debug_file: str = 'debug.txt'):
        self.registry = registry if registry is not None else populate_native_registry()
        self.scopes = ScopeStack(self.registry)
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 else None

    def debug(self, msg: str):
        if self.debug_level > 0 and self.debug_fp:
            self.debug_fp.write(msg + '\n')
            self.debug_fp.flush()

    # Public API
    def run(self, source: str) -> timedelta:
        """Run a whole program and return the wall-clock time it took.

        Raises ProgramError carrying the failing line number and text.
        """
        lines = source.splitlines()
        started = time.perf_counter()
        previous_limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(previous_limit, RECURSION_LIMIT))
        try:
            parser = Parser(self.lex_program(source, lines))
            while not parser.at_end():
                line = parser.peek().line or parser.last_line
                try:
                    stmt = parser.parse_statement()
                except NexenError as e:
                    raise self.program_error(e, parser.last_line, lines) from e
                if self.debug_level >= 1:
                    self.debug(f"[line {line}] {stmt}")
                try:
                    completion = self.execute_statement(stmt)
                except NexenError as e:
                    raise self.program_error(e, line, lines) from e
                except RecursionError as e:
                    overflow = StackOverflow('maximum recursion depth exceeded')
                    raise self.program_error(overflow, line, lines) from e
                if completion.kind in (BREAK, CONTINUE):
                    error = CannotEvaluate(f"'{completion.kind}' outside of a loop")
                    raise self.program_error(error, line, lines)
            elapsed = timedelta(seconds=time.perf_counter() - started)
            if self.debug_level >= 1:
                self.debug(f"program finished in {elapsed}")
            return elapsed
        finally:
            sys.setrecursionlimit(previous_limit)
            if self.debug_fp:
                self.debug_fp.close()
                self.debug_fp = None

    def lex_program(self, source: str, lines: List[str]):
        try:
            return lex(source)
        except NexenError as e:
            raise self.program_error(e, e.line or 1, lines) from e

    @staticmethod
    def program_error(error: NexenError, line: int, lines: List[str]) -> ProgramError:
        text = lines[line - 1] if 0 < line <= len(lines) else ''
        return ProgramError(str(error), line, text, error)

    # Statements
    def execute_statement(self, stmt: Node) -> Completion:
        """Execute one statement of a block or of the program's top level.

        Function declarations and assignments are only meaningful here;
        everything else is executed as an expression.
        """
        if isinstance(stmt, FunctionDeclaration):
            self.scopes.define_function(stmt.name, stmt.params, stmt.body)
            if self.debug_level >= 2:
                self.debug(f"define function {stmt.name}({', '.join(stmt.params)})")
            return Completion.normal()
        assignment = as_assignment(stmt)
        if assignment is not None:
            name, value_expr, is_declaration = assignment
            completion = self.execute(value_expr)
            if completion.is_abrupt:
                return completion
            value = completion.value
            if is_declaration:
                self.scopes.declare(name, value)
            else:
                self.scopes.set(name, value)
            if self.debug_level >= 2:
                verb = 'declare' if is_declaration else 'assign'
                self.debug(f"{verb} {name} = {value!r}")
            return Completion.normal(value)
        return self.execute(stmt)

    def execute(self, node: Node) -> Completion:
        if isinstance(node, Block):
            return self.execute_block(node)
        if isinstance(node, If):
            return self.execute_if(node)
        if isinstance(node, ForLoop):
            return self.execute_for(node)
        if isinstance(node, WhileLoop):
            return self.execute_while(node)
        if isinstance(node, InfiniteLoop):
            return self.execute_loop(node)
        if isinstance(node, Return):
            value = self.evaluate(node.value) if node.value is not None else EndOfBlock()
            return Completion.returned(value)
        if isinstance(node, Break):
            return Completion(BREAK)
        if isinstance(node, Continue):
            return Completion(CONTINUE)
        return Completion.normal(self.evaluate(node))

    def execute_block(self, block: Block) -> Completion:
        result: Any = EndOfBlock()
        with self.scopes.scope():
            for stmt in block.statements:
                completion = self.execute_statement(stmt)
                if completion.is_abrupt:
                    return completion
                if not isinstance(stmt, FunctionDeclaration):
                    result = completion.value
        return Completion.normal(result)

    def execute_if(self, node: If) -> Completion:
        cond = self.evaluate(node.condition)
        truthy = as_boolean(cond)
        if self.debug_level >= 3:
            self.debug(f"if condition {cond!r} -> {truthy}")
        if truthy:
            return self.execute(node.then_block)
        if node.else_block is not None:
            return self.execute(node.else_block)
        return Completion.normal()

    def execute_for(self, node: ForLoop) -> Completion:
        start = as_number(self.evaluate(node.start))
        end = as_number(self.evaluate(node.end))
        step = as_number(self.evaluate(node.step)) if node.step is not None else 1.0
        if step == 0.0:
            raise InvalidStep('For loop step cannot be zero')
        ascending = step > 0.0
        result: Any = EndOfBlock()
        current = start
        # one scope for the whole loop, the variable is rebound in place
        with self.scopes.scope():
            while (current <= end) if ascending else (current >= end):
                self.scopes.declare(node.var, current)
                if self.debug_level >= 3:
                    self.debug(f"for {node.var} = {current!r}")
                completion = self.execute(node.body)
                if completion.kind == RETURN:
                    return completion
                if completion.kind == BREAK:
                    break
                if completion.kind == NORMAL:
                    result = completion.value
                current += step
        return Completion.normal(result)

    # Loop extensions: while / loop / break / continue
    def execute_while(self, node: WhileLoop) -> Completion:
        result: Any = EndOfBlock()
        while as_boolean(self.evaluate(node.condition)):
            completion = self.execute(node.body)
            if completion.kind == RETURN:
                return completion
            if completion.kind == BREAK:
                break
            if completion.kind == NORMAL:
                result = completion.value
        return Completion.normal(result)

    def execute_loop(self, node: InfiniteLoop) -> Completion:
        result: Any = EndOfBlock()
        while True:
            completion = self.execute(node.body)
            if completion.kind == RETURN:
                return completion
            if completion.kind == BREAK:
                break
            if completion.kind == NORMAL:
                result = completion.value
        return Completion.normal(result)

    # Expressions
    def evaluate(self, node: Node) -> Any:
        if isinstance(node, Atom):
            return self.evaluate_atom(node.text)
        if isinstance(node, Operation):
            left = self.evaluate(node.left)
            right = self.evaluate(node.right)
            return self.apply_operation(node.op, left, right)
        if isinstance(node, FunctionCall):
            args = [self.evaluate(arg) for arg in node.args]
            return self.call_function(node.name, args)
        if isinstance(node, (Declaration, FunctionDeclaration)):
            raise CannotEvaluate(f"Cannot evaluate declaration: {node.name}")
        if isinstance(node, (Return, Break, Continue)):
            raise CannotEvaluate(f"Cannot evaluate '{node}' as a value")
        completion = self.execute(node)
        if completion.is_abrupt:
            raise CannotEvaluate(f"Cannot use '{completion.kind}' inside an expression")
        return completion.value

    def evaluate_atom(self, text: str) -> Any:
        if text == 'true':
            return True
        if text == 'false':
            return False
        try:
            return float(text)
        except ValueError:
            pass
        value = self.scopes.get(text)
        if value is not None:
            return value
        if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
            return unescape(text[1:-1])
        raise UndefinedReference(f"Variable '{text}' is not defined")

    def apply_operation(self, op: str, lhs: Any, rhs: Any) -> Any:
        if op == '+':
            if is_number(lhs) and is_number(rhs):
                return lhs + rhs
            if is_text(lhs):
                return lhs + as_text(rhs)
            raise TypeMismatch(f'Invalid evaluation: "{self.show(lhs)} {op} {self.show(rhs)}"')
        if op == '-':
            return as_number(lhs) - as_number(rhs)
        if op == '*':
            return as_number(lhs) * as_number(rhs)
        if op == '/':
            return divide(as_number(lhs), as_number(rhs))
        if op == '=':
            return lhs
        if op == '==':
            if is_text(lhs):
                return lhs == as_text(rhs)
            return as_number(lhs) == as_number(rhs)
        if op in ('<', '>'):
            if is_number(lhs) and is_number(rhs):
                return lhs < rhs if op == '<' else lhs > rhs
            raise ComparisonError(f'Cannot compare: "{self.show(lhs)} {op} {self.show(rhs)}"')
        raise UnsupportedOperator(f"Unsupported operator: {op}, lhs: {self.show(lhs)}, rhs: {self.show(rhs)}")

    @staticmethod
    def show(value: Any) -> str:
        try:
            return as_text(value)
        except NexenError:
            return repr(value)

    def call_function(self, name: str, args: List[Any]) -> Any:
        registry = self.scopes.registry
        if registry is not None and registry.has(name):
            return registry.call(name, args)
        func = self.scopes.get(name)
        if func is None:
            raise UndefinedReference(f"Function '{name}' is not defined")
        if not isinstance(func, FunctionVal):
            raise NotCallable(f"'{name}' is not a function")
        if len(args) != len(func.params):
            raise ArityError(f"Function '{name}' expects {len(func.params)} arguments, got {len(args)}")
        if self.debug_level >= 2:
            self.debug(f"call {name}({', '.join(self.show(a) for a in args)})")
        with self.scopes.scope():
            for param, arg in zip(func.params, args):
                self.scopes.declare(param, arg)
            completion = self.execute(func.body)
        if completion.kind in (BREAK, CONTINUE):
            raise CannotEvaluate(f"'{completion.kind}' outside of a loop in function '{name}'")
        return completion.value


def interpret(source: str, registry: Optional[NativeRegistry] = None, debug_level: int = 0) -> timedelta:
    """Run a Nexen program on a fresh interpreter and return its run time."""
    interpreter = Interpreter(registry=registry, debug_level=debug_level)
    return interpreter.run(source)


def tokenize(source: str, file: Optional[TextIO] = None):
    """Print the token stream of `source`, one token per line."""
    out = file if file is not None else sys.stdout
    for token in lex(source):
        print(describe_token(token), file=out)


def run_program(source: str, debug_level: int = 0) -> Interpreter:
    """Run a program and return the interpreter so its globals can be inspected."""
    interpreter = Interpreter(debug_level=debug_level)
    interpreter.run(source)
    return interpreter
