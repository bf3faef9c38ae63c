"""
podium/distribution.py - Basis-point payout curves.

Turns a distribution descriptor and a position count into per-position shares
in basis points (10000 = 100%). The sum is always exactly 10000 for n >= 1:
proportional shares are floored, then the leftover "dust" is handed out one
basis point at a time.

    calculate_shares(Linear(20), 3)       -> ~[6428, 2857, 715]  (9 : 4 : 1)
    calculate_shares(Uniform(), 3)        -> [3334, 3333, 3333]
    calculate_shares(Custom((6000, 4000)), 2) -> [6000, 4000]
"""

import logging
from dataclasses import dataclass

from podium.errors import InvalidDistributionError
from podium.fixed_point import Fixed

logger = logging.getLogger(__name__)

BASIS_POINTS = 10_000

# Weights are stored scaled by 10: 1 = 0.1, 100 = 10.0
LINEAR_WEIGHT_RANGE = (1, 100)
EXPONENTIAL_WEIGHT_RANGE = (10, 100)


# ============================================================================
# Data Types
# ============================================================================


@dataclass(frozen=True)
class Linear:
    """Share of position i (1 = best) proportional to (n - i + 1) ** (weight / 10)."""

    weight: int


@dataclass(frozen=True)
class Exponential:
    """Share of position i proportional to (weight / 10) ** (n - i).

    Each position gets 1/w of the one above it. At weight 20 Linear still pays
    position 1 more for up to 3 positions (9/14 vs 4/7). The two meet at 4
    positions (8/15) and Exponential is steeper from 5 on.
    """

    weight: int


@dataclass(frozen=True)
class Uniform:
    """Equal shares; the 10000 % n remainder goes to the top positions."""


@dataclass(frozen=True)
class Custom:
    """Caller-supplied shares, one per position, summing to 10000."""

    shares: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "shares", tuple(self.shares))


Distribution = Linear | Exponential | Uniform | Custom


# ============================================================================
# Validation
# ============================================================================


def validate_distribution(distribution: Distribution, positions: int) -> None:
    """Reject malformed distributions.

    Raises:
        InvalidDistributionError: negative position count, weight out of range,
            or custom shares that don't match the position count or don't sum
            to 10000.
    """
    if positions < 0:
        raise InvalidDistributionError(f"position count must be >= 0, got {positions}")

    if isinstance(distribution, Linear):
        _check_weight("Linear", distribution.weight, LINEAR_WEIGHT_RANGE)
    elif isinstance(distribution, Exponential):
        _check_weight("Exponential", distribution.weight, EXPONENTIAL_WEIGHT_RANGE)
    elif isinstance(distribution, Custom):
        shares = distribution.shares
        if len(shares) != positions:
            raise InvalidDistributionError(
                f"custom distribution has {len(shares)} shares for {positions} positions"
            )
        for share in shares:
            if not 0 <= share <= BASIS_POINTS:
                raise InvalidDistributionError(f"custom share {share} outside 0..{BASIS_POINTS}")
        total = sum(shares)
        if total != BASIS_POINTS:
            raise InvalidDistributionError(
                f"custom shares sum to {total}, expected {BASIS_POINTS}"
            )
    elif not isinstance(distribution, Uniform):
        raise InvalidDistributionError(f"unknown distribution {distribution!r}")


def _check_weight(name: str, weight: int, bounds: tuple[int, int]) -> None:
    low, high = bounds
    if not low <= weight <= high:
        raise InvalidDistributionError(
            f"{name} weight {weight} outside {low}..{high} (scaled by 10)"
        )


# ============================================================================
# Calculation
# ============================================================================


def calculate_shares(distribution: Distribution, positions: int) -> list[int]:
    """Per-position basis-point shares, best position first.

    Returns [] for zero positions; otherwise the result always sums to 10000.
    """
    if positions == 0:
        return []
    validate_distribution(distribution, positions)

    if isinstance(distribution, Custom):
        return list(distribution.shares)
    if isinstance(distribution, Uniform):
        return _uniform_shares(positions)

    if isinstance(distribution, Linear):
        raw = _linear_weights(distribution.weight, positions)
    else:
        raw = _exponential_weights(distribution.weight, positions)

    shares = _normalize(raw)
    logger.debug(f"{distribution!r} over {positions} positions -> {shares[:5]}...")
    return shares


def _uniform_shares(positions: int) -> list[int]:
    base, remainder = divmod(BASIS_POINTS, positions)
    return [base + 1 if i < remainder else base for i in range(positions)]


def _linear_weights(weight: int, positions: int) -> list[Fixed]:
    # Normalized by n so every base is in (0, 1] and the power can't overflow
    exponent = Fixed.from_weight(weight)
    return [
        Fixed.from_ratio(positions - i, positions).pow(exponent)
        for i in range(positions)
    ]


def _exponential_weights(weight: int, positions: int) -> list[Fixed]:
    # w ** (n - i) scaled down by w ** (n - 1): position i gets (1/w) ** (i - 1)
    ratio = Fixed.one() / Fixed.from_weight(weight)
    return [ratio.pow(i) for i in range(positions)]


def _normalize(raw: list[Fixed]) -> list[int]:
    total = sum(r.mag for r in raw)
    shares = [r.mag * BASIS_POINTS // total for r in raw]
    _distribute_dust(shares, BASIS_POINTS - sum(shares))
    return shares


def _distribute_dust(shares: list[int], dust: int) -> None:
    """Hand out leftover basis points in place.

    Starts at the lowest-ranked position holding a nonzero share and walks
    toward position 1, cycling until the dust is gone. A position only takes a
    point if it stays <= the position above it, so a non-increasing curve stays
    non-increasing. Position 1 always accepts.
    """
    funded = [i for i, share in enumerate(shares) if share > 0] or [0]
    while dust > 0:
        for i in reversed(funded):
            if dust == 0:
                break
            if i == 0 or shares[i] + 1 <= shares[i - 1]:
                shares[i] += 1
                dust -= 1


def split_amount(amount: int, shares: list[int]) -> list[int]:
    """Token amounts per position. Floors each share; the remainder stays unallocated."""
    return [amount * share // BASIS_POINTS for share in shares]
