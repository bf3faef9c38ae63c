"""
podium/fixed_point.py - Signed 32.32 fixed-point numbers.

A Fixed is a 64-bit magnitude plus a sign bit, scaled by 2**32. All arithmetic
is pure integer math: products and quotients are formed at double width and
shifted back down, and any result whose magnitude leaves the 64-bit range
raises FixedPointOverflowError instead of wrapping.

Used by the distribution calculator to evaluate curves with fractional weights
(e.g. a Linear curve with weight 1.5 needs x ** 1.5).
"""

import math
from dataclasses import dataclass

from podium.errors import FixedPointOverflowError

# ============================================================================
# Constants
# ============================================================================

SCALE_BITS = 32
ONE = 1 << SCALE_BITS
HALF = ONE >> 1
FRACTION_MASK = ONE - 1
MAX_MAG = (1 << 64) - 1

LN2 = round(math.log(2) * ONE)
LOG2_E = round(math.log2(math.e) * ONE)

# Taylor coefficients of 2**x = sum((ln 2)**k / k! * x**k), k = 1..11, scaled by
# 2**32. Degree 11 keeps the truncation error under one ulp on [0, 1).
_EXP2_COEFFS = tuple(
    round(math.log(2) ** k / math.factorial(k) * ONE) for k in range(1, 12)
)


# ============================================================================
# Fixed
# ============================================================================


@dataclass(frozen=True, slots=True)
class Fixed:
    """
    Fixed-point number: value = (-1 if sign else 1) * mag / 2**32.

    INVARIANTS:
    - 0 <= mag <= MAX_MAG (checked on construction)
    - zero is never negative
    """

    mag: int
    sign: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.mag, int):
            raise TypeError(f"mag must be int, got {type(self.mag).__name__}")
        if self.mag < 0 or self.mag > MAX_MAG:
            raise FixedPointOverflowError(f"magnitude {self.mag} outside 64-bit range")
        if self.mag == 0 and self.sign:
            object.__setattr__(self, "sign", False)

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def zero(cls) -> "Fixed":
        return cls(0)

    @classmethod
    def one(cls) -> "Fixed":
        return cls(ONE)

    @classmethod
    def from_int(cls, n: int) -> "Fixed":
        return cls(abs(n) << SCALE_BITS, n < 0)

    @classmethod
    def from_ratio(cls, numerator: int, denominator: int) -> "Fixed":
        """numerator / denominator, truncated toward zero."""
        if denominator == 0:
            raise ZeroDivisionError("Fixed.from_ratio with zero denominator")
        mag = (abs(numerator) << SCALE_BITS) // abs(denominator)
        return cls(mag, (numerator < 0) != (denominator < 0))

    @classmethod
    def from_weight(cls, weight: int) -> "Fixed":
        """Decode a distribution weight stored as an integer scaled by 10 (20 -> 2.0)."""
        return cls.from_ratio(weight, 10)

    @classmethod
    def _from_raw(cls, raw: int) -> "Fixed":
        return cls(abs(raw), raw < 0)

    @property
    def raw(self) -> int:
        """Signed scaled integer."""
        return -self.mag if self.sign else self.mag

    def to_float(self) -> float:
        """DISPLAY ONLY."""
        return self.raw / ONE

    def __repr__(self) -> str:
        return f"Fixed({self.to_float():.10g})"

    # =========================================================================
    # Arithmetic
    # =========================================================================

    def __add__(self, other: "Fixed | int") -> "Fixed":
        return Fixed._from_raw(self.raw + _coerce(other).raw)

    __radd__ = __add__

    def __sub__(self, other: "Fixed | int") -> "Fixed":
        return Fixed._from_raw(self.raw - _coerce(other).raw)

    def __rsub__(self, other: int) -> "Fixed":
        return _coerce(other) - self

    def __mul__(self, other: "Fixed | int") -> "Fixed":
        other = _coerce(other)
        # Python ints hold the 128-bit product exactly
        mag = (self.mag * other.mag) >> SCALE_BITS
        return Fixed(mag, self.sign != other.sign)

    __rmul__ = __mul__

    def __truediv__(self, other: "Fixed | int") -> "Fixed":
        other = _coerce(other)
        if other.mag == 0:
            raise ZeroDivisionError("Fixed division by zero")
        mag = (self.mag << SCALE_BITS) // other.mag
        return Fixed(mag, self.sign != other.sign)

    def __rtruediv__(self, other: int) -> "Fixed":
        return _coerce(other) / self

    def __neg__(self) -> "Fixed":
        return Fixed(self.mag, not self.sign)

    def __abs__(self) -> "Fixed":
        return Fixed(self.mag)

    def __lt__(self, other: "Fixed | int") -> bool:
        return self.raw < _coerce(other).raw

    def __le__(self, other: "Fixed | int") -> bool:
        return self.raw <= _coerce(other).raw

    def __gt__(self, other: "Fixed | int") -> bool:
        return self.raw > _coerce(other).raw

    def __ge__(self, other: "Fixed | int") -> bool:
        return self.raw >= _coerce(other).raw

    # =========================================================================
    # Rounding
    # =========================================================================

    def floor(self) -> "Fixed":
        return Fixed._from_raw((self.raw >> SCALE_BITS) << SCALE_BITS)

    def ceil(self) -> "Fixed":
        return -((-self).floor())

    def round(self) -> "Fixed":
        """Round half away from zero."""
        return Fixed(((self.mag + HALF) >> SCALE_BITS) << SCALE_BITS, self.sign)

    def is_integer(self) -> bool:
        return self.mag & FRACTION_MASK == 0

    # =========================================================================
    # Transcendental
    # =========================================================================

    def sqrt(self) -> "Fixed":
        if self.sign:
            raise ValueError(f"sqrt of negative value {self!r}")
        return Fixed(math.isqrt(self.mag << SCALE_BITS))

    def exp2(self) -> "Fixed":
        """2 ** self. Integer part by shift, fractional part by polynomial."""
        int_part = self.mag >> SCALE_BITS
        frac = self.mag & FRACTION_MASK

        if not self.sign:
            if int_part >= 64 - SCALE_BITS:
                raise FixedPointOverflowError(f"exp2({self!r}) overflows")
            return Fixed(_exp2_fraction(frac) << int_part)

        # 2 ** -(i + f) = 2 ** -(i + 1) * 2 ** (1 - f)
        if frac == 0:
            return Fixed(ONE >> int_part) if int_part < 64 else Fixed.zero()
        shift = int_part + 1
        if shift >= 64:
            return Fixed.zero()
        return Fixed(_exp2_fraction(ONE - frac) >> shift)

    def exp(self) -> "Fixed":
        return (self * Fixed(LOG2_E)).exp2()

    def log2(self) -> "Fixed":
        """Binary logarithm: integer part from the MSB, fraction by repeated squaring."""
        if self.sign or self.mag == 0:
            raise ValueError(f"log2 of non-positive value {self!r}")

        int_part = self.mag.bit_length() - 1 - SCALE_BITS
        # Mantissa in [1, 2) with 64 fractional bits; the shift is always >= 1
        m = self.mag << (SCALE_BITS - int_part)
        two = 2 << 64

        frac = 0
        for i in range(SCALE_BITS):
            m = (m * m) >> 64
            if m >= two:
                m >>= 1
                frac |= 1 << (SCALE_BITS - 1 - i)

        return Fixed._from_raw(int_part * ONE + frac)

    def ln(self) -> "Fixed":
        return self.log2() * Fixed(LN2)

    def pow(self, exponent: "Fixed | int") -> "Fixed":
        """self ** exponent.

        Integer exponents use exponentiation by squaring (exact up to per-step
        truncation). Fractional exponents use exp(exponent * ln(self)), which
        needs a positive base.
        """
        exponent = _coerce(exponent)

        if exponent.is_integer():
            n = exponent.mag >> SCALE_BITS
            result = Fixed.one()
            base = self
            while n:
                if n & 1:
                    result = result * base
                n >>= 1
                if n:
                    base = base * base
            if exponent.sign:
                return Fixed.one() / result
            return result

        if self.sign or self.mag == 0:
            raise ValueError(f"fractional power of non-positive base {self!r}")
        return (exponent * self.ln()).exp()

    def __pow__(self, exponent: "Fixed | int") -> "Fixed":
        return self.pow(exponent)


# ============================================================================
# Helpers
# ============================================================================


def _coerce(value: "Fixed | int") -> Fixed:
    if isinstance(value, Fixed):
        return value
    if isinstance(value, int):
        return Fixed.from_int(value)
    raise TypeError(f"cannot combine Fixed with {type(value).__name__}")


def _exp2_fraction(frac: int) -> int:
    """2 ** (frac / 2**32) for 0 <= frac < 2**32, as a scaled integer in [ONE, 2*ONE)."""
    if frac == 0:
        return ONE
    acc = _EXP2_COEFFS[-1]
    for coeff in reversed(_EXP2_COEFFS[:-1]):
        acc = coeff + ((acc * frac) >> SCALE_BITS)
    return ONE + ((acc * frac) >> SCALE_BITS)
