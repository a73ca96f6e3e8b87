import math

import pytest

from nexen.errors import InternalError
from nexen.types import (
    ArrayVal, Completion, EndOfBlock, FunctionVal, as_boolean, as_number, as_text,
    divide, format_number, type_name, NORMAL, RETURN,
)


def test_as_number_coercions():
    assert as_number(3.5) == 3.5
    assert as_number(True) == 1.0
    assert as_number(False) == 0.0
    assert as_number('42') == 42.0
    assert as_number('abc') == 0.0


def test_as_boolean_coercions():
    assert as_boolean(True) is True
    assert as_boolean(0.0) is False
    assert as_boolean(-2.0) is True
    assert as_boolean('true') is True
    assert as_boolean('yes') is False


def test_as_text_formats_numbers():
    assert as_text(3.0) == '3'
    assert as_text(2.5) == '2.5'
    assert as_text(True) == 'true'
    assert as_text(ArrayVal((1.0, 'a', False))) == '[1, a, false]'
    assert format_number(math.inf) == 'inf'
    assert format_number(-math.inf) == '-inf'
    assert format_number(math.nan) == 'NaN'
    assert format_number(1e-07) == '0.0000001'
    assert format_number(-2.5e-08) == '-0.000000025'


def test_coercing_functions_is_an_internal_error():
    func = FunctionVal('f', (), None)
    with pytest.raises(InternalError):
        as_number(func)
    with pytest.raises(InternalError):
        as_boolean(EndOfBlock())
    with pytest.raises(InternalError):
        as_text(func)


def test_divide_by_zero_follows_ieee():
    assert divide(1.0, 0.0) == math.inf
    assert divide(-1.0, 0.0) == -math.inf
    assert math.isnan(divide(0.0, 0.0))
    assert divide(9.0, 3.0) == 3.0


def test_type_names_and_equality():
    assert type_name(True) == 'Boolean'
    assert type_name(1.0) == 'Number'
    assert type_name('x') == 'Text'
    assert type_name(EndOfBlock()) == 'EndOfBlock'
    assert EndOfBlock() == EndOfBlock()
    assert ArrayVal((1.0,)) == ArrayVal((1.0,))


def test_completion_records():
    assert Completion.normal().kind == NORMAL
    assert Completion.normal().value == EndOfBlock()
    assert not Completion.normal(1.0).is_abrupt
    returned = Completion.returned(2.0)
    assert returned.kind == RETURN and returned.is_abrupt and returned.value == 2.0
