"""Tests for podium.fixed_point: 32.32 signed fixed-point arithmetic."""

import math

import pytest

from podium.errors import FixedPointOverflowError
from podium.fixed_point import MAX_MAG, ONE, Fixed


def approx(value: Fixed, expected: float, tol: float = 1e-6) -> bool:
    return abs(value.to_float() - expected) < tol


class TestConstruction:
    def test_from_int(self):
        assert Fixed.from_int(3).mag == 3 * ONE
        assert Fixed.from_int(-3) == Fixed(3 * ONE, sign=True)

    def test_from_ratio_truncates(self):
        assert Fixed.from_ratio(1, 2).mag == ONE // 2
        assert Fixed.from_ratio(1, 3).mag == ONE // 3
        assert Fixed.from_ratio(-1, 2).sign is True

    def test_from_weight_scales_by_ten(self):
        assert Fixed.from_weight(20) == Fixed.from_int(2)
        assert Fixed.from_weight(15) == Fixed.from_ratio(3, 2)

    def test_negative_zero_normalized(self):
        z = Fixed(0, sign=True)
        assert z.sign is False
        assert z == Fixed.zero()

    def test_magnitude_out_of_range_raises(self):
        with pytest.raises(FixedPointOverflowError):
            Fixed(MAX_MAG + 1)
        with pytest.raises(FixedPointOverflowError):
            Fixed(-1)

    def test_largest_integer_part(self):
        Fixed.from_int(2**32 - 1)
        with pytest.raises(FixedPointOverflowError):
            Fixed.from_int(2**32)

    def test_zero_denominator(self):
        with pytest.raises(ZeroDivisionError):
            Fixed.from_ratio(1, 0)


class TestArithmetic:
    def test_add_sub(self):
        a, b = Fixed.from_int(5), Fixed.from_int(3)
        assert a + b == Fixed.from_int(8)
        assert a - b == Fixed.from_int(2)
        assert b - a == Fixed.from_int(-2)

    def test_int_operands(self):
        assert Fixed.from_int(3) + 2 == Fixed.from_int(5)
        assert 10 - Fixed.from_int(4) == Fixed.from_int(6)
        assert 2 * Fixed.from_ratio(1, 4) == Fixed.from_ratio(1, 2)

    def test_float_operand_rejected(self):
        with pytest.raises(TypeError):
            Fixed.one() + 1.5

    def test_mul_signs(self):
        assert Fixed.from_int(-2) * Fixed.from_int(3) == Fixed.from_int(-6)
        assert Fixed.from_int(-2) * Fixed.from_int(-3) == Fixed.from_int(6)

    def test_mul_fraction(self):
        assert Fixed.from_ratio(1, 2) * Fixed.from_ratio(1, 2) == Fixed.from_ratio(1, 4)

    def test_div(self):
        assert Fixed.from_int(1) / Fixed.from_int(4) == Fixed.from_ratio(1, 4)
        assert Fixed.from_int(-6) / Fixed.from_int(3) == Fixed.from_int(-2)
        assert 1 / Fixed.from_int(2) == Fixed.from_ratio(1, 2)

    def test_div_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            Fixed.one() / Fixed.zero()

    def test_mul_overflow_fails_loudly(self):
        big = Fixed.from_int(2**31)
        with pytest.raises(FixedPointOverflowError):
            big * 4

    def test_add_overflow_fails_loudly(self):
        big = Fixed.from_int(2**32 - 1)
        with pytest.raises(FixedPointOverflowError):
            big + 1

    def test_neg_abs(self):
        x = Fixed.from_int(7)
        assert -x == Fixed.from_int(-7)
        assert abs(-x) == x

    def test_comparisons(self):
        assert Fixed.from_int(-1) < Fixed.zero() < Fixed.one()
        assert Fixed.one() >= 1
        assert Fixed.from_ratio(1, 2) <= Fixed.from_ratio(1, 2)
        assert Fixed.from_int(2) > Fixed.from_ratio(3, 2)


class TestRounding:
    def test_positive(self):
        x = Fixed.from_ratio(5, 2)
        assert x.floor() == Fixed.from_int(2)
        assert x.ceil() == Fixed.from_int(3)
        assert x.round() == Fixed.from_int(3)

    def test_negative(self):
        x = Fixed.from_ratio(-5, 2)
        assert x.floor() == Fixed.from_int(-3)
        assert x.ceil() == Fixed.from_int(-2)
        assert x.round() == Fixed.from_int(-3)

    def test_round_down(self):
        assert Fixed.from_ratio(9, 4).round() == Fixed.from_int(2)

    def test_integers_unchanged(self):
        x = Fixed.from_int(4)
        assert x.floor() == x.ceil() == x.round() == x
        assert x.is_integer()
        assert not Fixed.from_ratio(1, 3).is_integer()


class TestTranscendental:
    def test_sqrt_exact(self):
        assert Fixed.from_int(4).sqrt() == Fixed.from_int(2)
        assert Fixed.from_ratio(1, 4).sqrt() == Fixed.from_ratio(1, 2)

    def test_sqrt_two(self):
        assert approx(Fixed.from_int(2).sqrt(), math.sqrt(2))

    def test_sqrt_negative(self):
        with pytest.raises(ValueError):
            Fixed.from_int(-1).sqrt()

    def test_exp2_integer(self):
        assert Fixed.from_int(3).exp2() == Fixed.from_int(8)
        assert Fixed.from_int(-2).exp2() == Fixed.from_ratio(1, 4)
        assert Fixed.zero().exp2() == Fixed.one()

    def test_exp2_fraction(self):
        assert approx(Fixed.from_ratio(1, 2).exp2(), math.sqrt(2))
        assert approx(Fixed.from_ratio(-1, 2).exp2(), 1 / math.sqrt(2))
        assert approx(Fixed.from_ratio(27, 10).exp2(), 2**2.7, tol=1e-5)

    def test_exp2_overflow(self):
        with pytest.raises(FixedPointOverflowError):
            Fixed.from_int(32).exp2()

    def test_exp2_underflows_to_zero(self):
        assert Fixed.from_int(-70).exp2() == Fixed.zero()

    def test_exp(self):
        assert approx(Fixed.one().exp(), math.e, tol=1e-5)
        assert approx(Fixed.from_int(-1).exp(), math.exp(-1))

    def test_log2_exact_powers(self):
        assert Fixed.from_int(8).log2() == Fixed.from_int(3)
        assert Fixed.from_ratio(1, 2).log2() == Fixed.from_int(-1)
        assert Fixed.one().log2() == Fixed.zero()

    def test_log2_fraction(self):
        assert approx(Fixed.from_int(3).log2(), math.log2(3))
        assert approx(Fixed.from_ratio(1, 10).log2(), math.log2(0.1))

    def test_log_non_positive(self):
        with pytest.raises(ValueError):
            Fixed.zero().log2()
        with pytest.raises(ValueError):
            Fixed.from_int(-2).ln()

    def test_ln(self):
        e = Fixed(round(math.e * ONE))
        assert approx(e.ln(), 1.0)
        assert approx(Fixed.from_int(10).ln(), math.log(10))


class TestPow:
    def test_integer_exponent(self):
        assert Fixed.from_int(2).pow(10) == Fixed.from_int(1024)
        assert Fixed.from_int(3) ** 0 == Fixed.one()

    def test_negative_integer_exponent(self):
        assert Fixed.from_int(2).pow(-1) == Fixed.from_ratio(1, 2)
        assert Fixed.from_int(4).pow(-2) == Fixed.from_ratio(1, 16)

    def test_negative_base_integer_exponent(self):
        assert Fixed.from_int(-2).pow(3) == Fixed.from_int(-8)
        assert Fixed.from_int(-2).pow(2) == Fixed.from_int(4)

    def test_fractional_exponent(self):
        assert approx(Fixed.from_int(4).pow(Fixed.from_ratio(1, 2)), 2.0)
        assert approx(Fixed.from_ratio(1, 2).pow(Fixed.from_weight(15)), 0.5**1.5)
        assert approx(Fixed.from_int(10).pow(Fixed.from_ratio(3, 10)), 10**0.3, tol=1e-5)

    def test_fractional_exponent_needs_positive_base(self):
        with pytest.raises(ValueError):
            Fixed.from_int(-4).pow(Fixed.from_ratio(1, 2))
        with pytest.raises(ValueError):
            Fixed.zero().pow(Fixed.from_ratio(1, 2))

    def test_integer_pow_overflow(self):
        with pytest.raises(FixedPointOverflowError):
            Fixed.from_int(2).pow(40)
