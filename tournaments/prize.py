"""
tournaments/prize.py - Sponsored prizes.

A prize is either pinned to one leaderboard position (ERC20 or ERC721) or, for
ERC20 only, spread over the top `distribution_count` positions with its own
distribution. Prize ids are global and sequential from 1.
"""

import logging
from dataclasses import dataclass

from podium.distribution import BASIS_POINTS, calculate_shares, validate_distribution
from podium.errors import InvalidPositionError, InvalidPrizeError

from tournaments.models import ERC20Data, ERC721Data, Prize, TokenTypeData
from tournaments.storage import StoredDistribution, load_distribution, store_distribution

logger = logging.getLogger(__name__)


def validate_prize(token_type: TokenTypeData, position: int | None) -> None:
    """
    Raises:
        InvalidPrizeError: bad amount, missing/extra distribution, ERC721 without a position.
        InvalidDistributionError: malformed distribution.
    """
    distributed = not position
    if position is not None and position < 0:
        raise InvalidPrizeError(f"payout position must be >= 0, got {position}")

    if isinstance(token_type, ERC20Data):
        if token_type.amount <= 0:
            raise InvalidPrizeError(f"prize amount must be positive, got {token_type.amount}")
        if distributed:
            if token_type.distribution is None or token_type.distribution_count is None:
                raise InvalidPrizeError("distributed prize needs a distribution and distribution_count")
            if token_type.distribution_count < 1:
                raise InvalidPrizeError(
                    f"distribution_count must be >= 1, got {token_type.distribution_count}"
                )
            validate_distribution(token_type.distribution, token_type.distribution_count)
        elif token_type.distribution is not None:
            raise InvalidPrizeError("a single-position prize can't carry a distribution")
    elif isinstance(token_type, ERC721Data):
        if distributed:
            raise InvalidPrizeError("ERC721 prizes must name a payout position")
    else:
        raise InvalidPrizeError(f"unknown prize token type {token_type!r}")


@dataclass
class StoredPrize:
    id: int
    context_id: int
    token_address: str
    sponsor_address: str
    payout_position: int
    amount: int | None = None
    nft_token_id: int | None = None
    distribution: StoredDistribution | None = None
    distribution_count: int | None = None

    def to_prize(self) -> Prize:
        if self.nft_token_id is not None:
            token_type: TokenTypeData = ERC721Data(self.nft_token_id)
        else:
            token_type = ERC20Data(
                amount=self.amount,
                distribution=load_distribution(self.distribution) if self.distribution else None,
                distribution_count=self.distribution_count,
            )
        return Prize(
            id=self.id,
            context_id=self.context_id,
            token_address=self.token_address,
            token_type=token_type,
            sponsor_address=self.sponsor_address,
            payout_position=self.payout_position,
        )


class PrizeBook:
    def __init__(self):
        self._prizes: dict[int, StoredPrize] = {}
        self._by_context: dict[int, list[int]] = {}

    def add(
        self,
        context_id: int,
        token_address: str,
        token_type: TokenTypeData,
        sponsor_address: str,
        position: int | None = None,
    ) -> Prize:
        validate_prize(token_type, position)
        prize_id = len(self._prizes) + 1
        stored = StoredPrize(
            id=prize_id,
            context_id=context_id,
            token_address=token_address,
            sponsor_address=sponsor_address,
            payout_position=position or 0,
        )
        if isinstance(token_type, ERC721Data):
            stored.nft_token_id = token_type.token_id
        else:
            stored.amount = token_type.amount
            if token_type.distribution is not None:
                stored.distribution = store_distribution(token_type.distribution)
                stored.distribution_count = token_type.distribution_count
        self._prizes[prize_id] = stored
        self._by_context.setdefault(context_id, []).append(prize_id)
        return stored.to_prize()

    def get(self, prize_id: int) -> Prize:
        stored = self._prizes.get(prize_id)
        if stored is None:
            raise InvalidPrizeError(f"no prize {prize_id}")
        return stored.to_prize()

    def total(self) -> int:
        return len(self._prizes)

    def for_context(self, context_id: int) -> list[Prize]:
        return [self._prizes[prize_id].to_prize() for prize_id in self._by_context.get(context_id, [])]

    # Savepoints. Prizes are append-only, so a count per context is enough.

    def snapshot(self, context_id: int) -> int:
        return len(self._by_context.get(context_id, []))

    def restore(self, context_id: int, snapshot: int) -> None:
        ids = self._by_context.get(context_id, [])
        for prize_id in ids[snapshot:]:
            del self._prizes[prize_id]
        del ids[snapshot:]


def distributed_amount(prize: Prize, index: int) -> int:
    """Amount of the index-th (0-based) slice of a distributed ERC20 prize."""
    token_type = prize.token_type
    if not prize.is_distributed or not isinstance(token_type, ERC20Data):
        raise InvalidPrizeError(f"prize {prize.id} is not a distributed ERC20 prize")
    count = token_type.distribution_count
    if not 0 <= index < count:
        raise InvalidPositionError(f"prize {prize.id}: index {index} outside 0..{count - 1}")
    shares = calculate_shares(token_type.distribution, count)
    return token_type.amount * shares[index] // BASIS_POINTS
