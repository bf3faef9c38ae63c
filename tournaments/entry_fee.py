"""
tournaments/entry_fee.py - Entry-fee validation, storage and payout math.

Every entry pays `amount` into escrow. The pool (amount x entries) splits into:

    tournament creator   tournament_creator_share bps
    game creator         game_creator_share bps
    refund               refund_share bps of each entrant's own fee, back to them
    additional shares    up to 16 (recipient, bps) pairs
    prize pool           the remaining bps, spread over leaderboard positions

All amounts floor; rounding remainders stay in escrow.
"""

import copy
import logging
from dataclasses import dataclass

from podium.distribution import (
    BASIS_POINTS,
    Custom,
    calculate_shares,
    validate_distribution,
)
from podium.errors import InvalidEntryFeeError, InvalidPositionError, NothingToClaimError
from podium.packing import RECIPIENT_SHARE_CODEC, RecipientShare

from tournaments.models import AdditionalShare, EntryFee
from tournaments.storage import (
    RecipientTable,
    StoredDistribution,
    load_distribution,
    store_distribution,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Validation
# ============================================================================


def validate_entry_fee(fee: EntryFee, max_additional_shares: int = RECIPIENT_SHARE_CODEC.capacity) -> None:
    """
    Reject entry fees that can't be settled.

    Raises:
        InvalidEntryFeeError: non-positive amount, share out of range, too many
            additional recipients, or shares totalling more than 100%.
        InvalidDistributionError: the prize-pool distribution itself is malformed.
    """
    if fee.amount <= 0:
        raise InvalidEntryFeeError(f"entry fee amount must be positive, got {fee.amount}")

    for label, bps in (
        ("tournament creator", fee.tournament_creator_share),
        ("game creator", fee.game_creator_share),
        ("refund", fee.refund_share),
    ):
        if bps is not None and not 0 <= bps <= BASIS_POINTS:
            raise InvalidEntryFeeError(f"{label} share {bps} outside 0..{BASIS_POINTS}")

    if len(fee.additional_shares) > max_additional_shares:
        raise InvalidEntryFeeError(
            f"{len(fee.additional_shares)} additional shares, at most {max_additional_shares} allowed"
        )
    for share in fee.additional_shares:
        if not 0 < share.share_bps <= BASIS_POINTS:
            raise InvalidEntryFeeError(
                f"additional share for {share.recipient} is {share.share_bps}, expected 1..{BASIS_POINTS}"
            )

    if prize_pool_bps(fee) < 0:
        raise InvalidEntryFeeError(f"entry fee shares exceed {BASIS_POINTS} bps")

    if fee.distribution_positions is not None and fee.distribution_positions < 1:
        raise InvalidEntryFeeError(
            f"distribution_positions must be >= 1, got {fee.distribution_positions}"
        )

    if isinstance(fee.distribution, Custom):
        count = len(fee.distribution.shares)
        if fee.distribution_positions is not None and fee.distribution_positions != count:
            raise InvalidEntryFeeError(
                f"custom distribution has {count} shares but distribution_positions is "
                f"{fee.distribution_positions}"
            )
        validate_distribution(fee.distribution, count)
    else:
        validate_distribution(fee.distribution, fee.distribution_positions or 0)


# ============================================================================
# Payout math
# ============================================================================


def prize_pool_bps(fee: EntryFee) -> int:
    """Basis points of the pool left for leaderboard positions (negative if overcommitted)."""
    taken = (
        (fee.tournament_creator_share or 0)
        + (fee.game_creator_share or 0)
        + (fee.refund_share or 0)
        + sum(s.share_bps for s in fee.additional_shares)
    )
    return BASIS_POINTS - taken


def pool_total(fee: EntryFee, entries: int) -> int:
    return fee.amount * entries


def share_payout(pool: int, bps: int) -> int:
    return pool * bps // BASIS_POINTS


def payout_positions(fee: EntryFee, entries: int, leaderboard_size: int) -> int:
    """How many positions the prize pool is split across."""
    fixed = fee.fixed_positions
    if fixed is not None:
        return fixed
    return min(entries, leaderboard_size)


def position_payout(fee: EntryFee, entries: int, position: int, positions: int) -> int:
    """Prize-pool amount owed to 1-based `position`."""
    if not 1 <= position <= positions:
        raise InvalidPositionError(f"position {position} outside 1..{positions}")
    shares = calculate_shares(fee.distribution, positions)
    pool = pool_total(fee, entries)
    return pool * prize_pool_bps(fee) * shares[position - 1] // BASIS_POINTS // BASIS_POINTS


def refund_amount(fee: EntryFee) -> int:
    return fee.amount * (fee.refund_share or 0) // BASIS_POINTS


# ============================================================================
# Storage
# ============================================================================


@dataclass
class StoredEntryFee:
    token_address: str
    amount: int
    distribution: StoredDistribution
    tournament_creator_share: int | None
    game_creator_share: int | None
    refund_share: int | None
    recipients: RecipientTable
    distribution_positions: int | None


class EntryFeeBook:
    """Entry fee per context, with additional-share claimed flags packed in place."""

    def __init__(self):
        self._fees: dict[int, StoredEntryFee] = {}

    def set(self, context_id: int, fee: EntryFee) -> None:
        self._fees[context_id] = StoredEntryFee(
            token_address=fee.token_address,
            amount=fee.amount,
            distribution=store_distribution(fee.distribution),
            tournament_creator_share=fee.tournament_creator_share,
            game_creator_share=fee.game_creator_share,
            refund_share=fee.refund_share,
            recipients=RecipientTable.build(
                [(s.recipient, s.share_bps) for s in fee.additional_shares]
            ),
            distribution_positions=fee.distribution_positions,
        )

    def get(self, context_id: int) -> EntryFee | None:
        stored = self._fees.get(context_id)
        if stored is None:
            return None
        table = stored.recipients
        return EntryFee(
            token_address=stored.token_address,
            amount=stored.amount,
            distribution=load_distribution(stored.distribution),
            tournament_creator_share=stored.tournament_creator_share,
            game_creator_share=stored.game_creator_share,
            refund_share=stored.refund_share,
            additional_shares=tuple(
                AdditionalShare(recipient, share.share_bps)
                for recipient, share in (table.get(i) for i in range(len(table)))
            ),
            distribution_positions=stored.distribution_positions,
        )

    def additional_share(self, context_id: int, index: int) -> tuple[str, RecipientShare]:
        """(recipient, RecipientShare) for the index-th additional share."""
        stored = self._fees.get(context_id)
        if stored is None:
            raise NothingToClaimError(f"context {context_id} has no entry fee")
        if not 0 <= index < len(stored.recipients):
            raise InvalidPositionError(
                f"context {context_id}: no additional share {index} "
                f"({len(stored.recipients)} configured)"
            )
        return stored.recipients.get(index)

    def mark_additional_claimed(self, context_id: int, index: int) -> None:
        self.additional_share(context_id, index)
        self._fees[context_id].recipients.mark_claimed(index)
        logger.debug(f"Context {context_id}: additional share {index} marked claimed")

    # Savepoints

    def snapshot(self, context_id: int) -> StoredEntryFee | None:
        return copy.deepcopy(self._fees.get(context_id))

    def restore(self, context_id: int, snapshot: StoredEntryFee | None) -> None:
        if snapshot is None:
            self._fees.pop(context_id, None)
        else:
            self._fees[context_id] = copy.deepcopy(snapshot)
