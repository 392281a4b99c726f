import math

from utils.coercion import clamp, clamp01, safe_float_optional


def test_safe_float_optional():
    assert safe_float_optional("12.5") == 12.5
    assert safe_float_optional(3) == 3.0
    assert safe_float_optional(None) is None
    assert safe_float_optional("") is None
    assert safe_float_optional("NaN") is None
    assert safe_float_optional(float("inf")) is None
    assert safe_float_optional(True) is None
    assert safe_float_optional("abc") is None


def test_clamp():
    assert clamp(5, 0, 10) == 5
    assert clamp(-1, 0, 10) == 0
    assert clamp(11, 0, 10) == 10
    assert clamp(math.nan, 2, 10) == 2
    assert clamp01("0.5") == 0.5
    assert clamp01(None) == 0.0
    assert clamp01(3) == 1.0
