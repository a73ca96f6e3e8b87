import math
import sys

import pytest

from nexen.builtin_function import NativeRegistry
from nexen.errors import (
    ArityError, CannotEvaluate, ComparisonError, InvalidStep, NotCallable, ParseError, ProgramError,
    StackOverflow, TypeMismatch, UndefinedReference, UnsupportedOperator,
)
from nexen.interpreter import Interpreter, interpret, run_program
from nexen.std import populate_native_registry


def globals_after(source):
    return run_program(source).scopes.frames[0]


def error_of(source):
    with pytest.raises(ProgramError) as info:
        interpret(source)
    return info.value.error


def test_declarations_and_assignment():
    env = globals_after('let a = 2; let b = a * 3; a = a + b')
    assert env['a'] == 8.0
    assert env['b'] == 6.0


def test_text_concatenation_coerces_right_side():
    env = globals_after('let s = "n=" + 1.5 + true')
    assert env['s'] == 'n=1.5true'


def test_number_plus_text_is_a_type_mismatch():
    assert isinstance(error_of('let s = 1 + "a"'), TypeMismatch)


def test_arithmetic_coerces_operands():
    env = globals_after('let a = "4" * 2; let b = true - 3')
    assert env['a'] == 8.0
    assert env['b'] == -2.0


def test_division_by_zero():
    env = globals_after('let a = 1 / 0; let b = 0 / 0; let c = -2 / 0')
    assert env['a'] == math.inf
    assert math.isnan(env['b'])
    assert env['c'] == -math.inf


def test_equality_and_comparison():
    env = globals_after('let a = "1" == 1; let b = 2 == 2.0; let c = 1 < 2; let d = 3 > 4')
    assert env == {'a': True, 'b': True, 'c': True, 'd': False}


def test_comparing_text_fails():
    assert isinstance(error_of('let c = "a" < "b"'), ComparisonError)


def test_unsupported_operators():
    assert isinstance(error_of('let c = 1 != 2'), UnsupportedOperator)
    assert isinstance(error_of('let c = true && false'), UnsupportedOperator)


def test_undefined_variable():
    error = error_of('print(missing)')
    assert isinstance(error, UndefinedReference)
    assert 'missing' in error.message


def test_block_scope_does_not_leak():
    assert isinstance(error_of('{ let inner = 1 }\nprint(inner)'), UndefinedReference)


def test_for_loop_variable_is_scoped_to_the_loop():
    env = globals_after('let sum = 0; for i = 1, 4 { sum += i }')
    assert env == {'sum': 10.0}


def test_for_loop_descending_and_fractional_step():
    env = globals_after('let seen = ""; for i = 2, 0, -0.5 { seen = seen + i + " " }')
    assert env['seen'] == '2 1.5 1 0.5 0 '


def test_for_loop_that_never_runs():
    env = globals_after('let n = 0; for i = 5, 1 { n = 1 }')
    assert env['n'] == 0.0


def test_zero_step_is_rejected():
    assert isinstance(error_of('for i = 1, 3, 0 { print(i) }'), InvalidStep)


def test_return_exits_function_from_inside_loop():
    env = globals_after(
        'function first_over(limit) { for i = 1, 100 { if i > limit { return i } } return 0 }\n'
        'let r = first_over(7)'
    )
    assert env['r'] == 8.0


def test_function_without_return_yields_last_value():
    env = globals_after('function f(x) { x * 2 }\nlet r = f(21)')
    assert env['r'] == 42.0


def test_functions_use_dynamic_scope():
    env = globals_after(
        'function read_z() { return z }\n'
        'function wrap() { let z = "inner"; return read_z() }\n'
        'let r = wrap()'
    )
    assert env['r'] == 'inner'


def test_function_arity_and_callability():
    assert isinstance(error_of('function f(a) { a }\nf(1, 2)'), ArityError)
    assert isinstance(error_of('let x = 1\nx(2)'), NotCallable)
    assert isinstance(error_of('nothing(2)'), UndefinedReference)


def test_natives_shadow_user_functions():
    env = globals_after('function len(s) { return 99 }\nlet r = len("abc")')
    assert env['r'] == 3.0


def test_custom_registry():
    registry = populate_native_registry()
    registry.register('double', lambda args: args[0] * 2, 1)
    interp = Interpreter(registry=registry)
    interp.run('let r = double(4)')
    assert interp.scopes.get('r') == 8.0


def test_empty_registry_has_no_print():
    with pytest.raises(ProgramError) as info:
        interpret('print(1)', registry=NativeRegistry())
    assert isinstance(info.value.error, UndefinedReference)


def test_while_and_loop_with_break_and_continue():
    env = globals_after(
        'let n = 0; let odd = 0\n'
        'while n < 10 { n += 1; if n == 6 { break } }\n'
        'let k = 0\n'
        'loop { k += 1; if k > 5 { break }; if k == 2 { continue }; odd += k }'
    )
    assert env['n'] == 6.0
    assert env['odd'] == 13.0


def test_break_outside_loop():
    assert isinstance(error_of('break'), CannotEvaluate)
    assert isinstance(error_of('function f() { break }\nf()'), CannotEvaluate)


def test_declaration_in_value_position():
    assert isinstance(error_of('print(let x)'), CannotEvaluate)


def test_deep_recursion_is_reported():
    assert isinstance(error_of('function down(n) { return down(n + 1) }\ndown(0)'), StackOverflow)


def test_interpreter_state_persists_between_runs():
    interp = Interpreter()
    interp.run('let a = 1')
    interp.run('a = a + 1')
    assert interp.scopes.get('a') == 2.0


def test_interpret_uses_a_fresh_environment(capsys):
    interpret('let a = 1')
    interpret('let a = 5; print(a)')
    assert capsys.readouterr().out == '5\n'


def test_string_escapes(capsys):
    interpret(r'print("say \"hi\"\n\\done")')
    assert capsys.readouterr().out == 'say "hi"\n\\done\n'


def test_debug_trace_is_written(tmp_path):
    trace = tmp_path / 'trace.txt'
    interp = Interpreter(debug_level=3, debug_file=str(trace))
    interp.run('let a = 1\nfunction f(x) { return x }\nif a == 1 { f(a) }')
    text = trace.read_text()
    assert '[line 1] (= decl<a> 1)' in text
    assert 'define function f(x)' in text
    assert 'call f(1)' in text
    assert 'program finished' in text
    assert interp.debug_fp is None


def test_recursion_runs_hundreds_of_calls_deep(capsys):
    interpret('function sum(n) { if n < 1 { return 0 } return n + sum(n - 1) }\nprint(sum(500))')
    assert capsys.readouterr().out == '125250\n'


def test_recursion_limit_is_restored_after_run():
    before = sys.getrecursionlimit()
    interpret('let a = 1')
    assert sys.getrecursionlimit() == before


def test_arity_error_names_expected_count():
    error = error_of('function add(a, b) { a + b }\nadd(1)')
    assert isinstance(error, ArityError)
    assert 'expects 2' in error.message


def test_running_a_program_twice_gives_the_same_result(capsys):
    source = 'let t = 0\nfor i = 1, 4 { t += i; print(t) }'
    interpret(source)
    first = capsys.readouterr().out
    interpret(source)
    assert capsys.readouterr().out == first == '1\n3\n6\n10\n'
    failing = 'print("before")\nprint(1 < "x")'
    assert type(error_of(failing)) is type(error_of(failing)) is ComparisonError


def test_trailing_empty_argument_is_a_parse_error():
    assert isinstance(error_of('function f(a, b) { a }\nf(1, )'), ParseError)


def test_small_fractions_print_without_exponent(capsys):
    interpret('print(0.0000001)')
    assert capsys.readouterr().out == '0.0000001\n'
