"""Tests for the ComplexNumber value type."""

import math

import pytest

from calccore.complex_number import ComplexNumber
from calccore.types import DivisionByZeroError


class TestArithmetic:
    def test_add_sub(self):
        a = ComplexNumber(1, 2)
        b = ComplexNumber(3, -1)
        assert a + b == ComplexNumber(4, 1)
        assert a - b == ComplexNumber(-2, 3)

    def test_mixed_with_real(self):
        z = ComplexNumber(1, 2)
        assert z + 1 == ComplexNumber(2, 2)
        assert 1 + z == ComplexNumber(2, 2)
        assert 1 - z == ComplexNumber(0, -2)
        assert 2 * z == ComplexNumber(2, 4)

    def test_multiply(self):
        i = ComplexNumber(0, 1)
        assert i * i == ComplexNumber(-1, 0)
        assert ComplexNumber(1, 2) * ComplexNumber(3, 4) == ComplexNumber(-5, 10)

    def test_divide(self):
        quotient = ComplexNumber(-5, 10) / ComplexNumber(3, 4)
        assert quotient.real == pytest.approx(1.0)
        assert quotient.imaginary == pytest.approx(2.0)
        assert 1 / ComplexNumber(0, 1) == ComplexNumber(0, -1)

    def test_divide_by_zero(self):
        with pytest.raises(DivisionByZeroError):
            ComplexNumber(1, 1) / ComplexNumber(0, 0)

    def test_negation_and_conjugate(self):
        z = ComplexNumber(1, -2)
        assert -z == ComplexNumber(-1, 2)
        assert z.conjugate() == ComplexNumber(1, 2)


class TestProperties:
    def test_magnitude_and_argument(self):
        z = ComplexNumber(3, 4)
        assert z.magnitude == 5.0
        assert abs(z) == 5.0
        assert ComplexNumber(0, 1).argument == pytest.approx(math.pi / 2)

    def test_from_polar(self):
        z = ComplexNumber.from_polar(2, math.pi / 2)
        assert z.real == pytest.approx(0.0, abs=1e-12)
        assert z.imaginary == pytest.approx(2.0)

    def test_sqrt(self):
        root = ComplexNumber(-4, 0).sqrt()
        assert root.real == pytest.approx(0.0, abs=1e-12)
        assert root.imaginary == pytest.approx(2.0)
        assert ComplexNumber(0, 0).sqrt() == ComplexNumber(0, 0)

    def test_python_complex_interop(self):
        assert ComplexNumber.from_complex(2 - 3j) == ComplexNumber(2, -3)
        assert ComplexNumber(2, -3).to_complex() == 2 - 3j

    def test_predicates(self):
        assert ComplexNumber(2, 0).is_real
        assert not ComplexNumber(2, 1).is_real
        assert ComplexNumber(0, 0).is_zero

    def test_equality_with_real_number(self):
        assert ComplexNumber(2, 0) == 2
        assert ComplexNumber(2, 1) != 2

    def test_unhashable(self):
        with pytest.raises(TypeError):
            hash(ComplexNumber(1, 1))


class TestDisplay:
    @pytest.mark.parametrize(
        "value,text",
        [
            (ComplexNumber(0, 0), "0"),
            (ComplexNumber(2.5, 0), "2.5"),
            (ComplexNumber(0, 1), "i"),
            (ComplexNumber(0, -1), "-i"),
            (ComplexNumber(0, 2), "2i"),
            (ComplexNumber(1, 2), "1 + 2i"),
            (ComplexNumber(-0.5, -1), "-0.5 - i"),
        ],
    )
    def test_str(self, value, text):
        assert str(value) == text
