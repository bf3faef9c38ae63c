"""
podium/claims.py - Idempotent "has this reward been paid" tracking.

Every payable reward is named by a RewardDescriptor. Rather than a storage
field per reward kind, the descriptor is hashed (keccak-256 over its ABI-packed
tag and fields) and the hash keys one boolean map per context.

Hash once per logical operation and reuse it:

    h = ledger.hash_of(descriptor)
    if ledger.is_claimed_by_hash(context_id, h): ...
    ledger.set_claimed_by_hash(context_id, h)

try_claim() does exactly that.
"""

import logging
from dataclasses import dataclass

from web3 import Web3

from podium.errors import InvalidPositionError

logger = logging.getLogger(__name__)


# ============================================================================
# Reward descriptors
# ============================================================================


@dataclass(frozen=True)
class PrizeSingle:
    """A sponsored prize paid in full to one fixed leaderboard position."""

    prize_id: int


@dataclass(frozen=True)
class PrizeDistributed:
    """One slice (0-based index) of a sponsored ERC20 prize spread across positions."""

    prize_id: int
    index: int


@dataclass(frozen=True)
class EntryFeePosition:
    """Entry-fee pool payout for a 1-based leaderboard position."""

    position: int


@dataclass(frozen=True)
class TournamentCreatorShare:
    pass


@dataclass(frozen=True)
class GameCreatorShare:
    pass


@dataclass(frozen=True)
class RefundShare:
    """Partial entry-fee refund owed to the holder of one game token."""

    token_id: int


@dataclass(frozen=True)
class AdditionalShareReward:
    """Payout to the index-th additional fee recipient."""

    index: int


RewardDescriptor = (
    PrizeSingle
    | PrizeDistributed
    | EntryFeePosition
    | TournamentCreatorShare
    | GameCreatorShare
    | RefundShare
    | AdditionalShareReward
)

# (reward kind, variant): kind 0 = sponsored prize, 1 = entry fee
_TAGS: dict[type, tuple[int, int]] = {
    PrizeSingle: (0, 0),
    PrizeDistributed: (0, 1),
    EntryFeePosition: (1, 0),
    TournamentCreatorShare: (1, 1),
    GameCreatorShare: (1, 2),
    RefundShare: (1, 3),
    AdditionalShareReward: (1, 4),
}

_ABI_TYPES = ["uint8", "uint8", "uint64", "uint32"]
_FIELD_LIMITS = (1 << 64, 1 << 32)


def _fields(descriptor: RewardDescriptor) -> tuple[int, int]:
    if isinstance(descriptor, PrizeSingle):
        return descriptor.prize_id, 0
    if isinstance(descriptor, PrizeDistributed):
        return descriptor.prize_id, descriptor.index
    if isinstance(descriptor, EntryFeePosition):
        return descriptor.position, 0
    if isinstance(descriptor, RefundShare):
        return descriptor.token_id, 0
    if isinstance(descriptor, AdditionalShareReward):
        return descriptor.index, 0
    return 0, 0


def reward_hash(descriptor: RewardDescriptor) -> bytes:
    """keccak-256 of (kind, variant, a, b) packed as uint8, uint8, uint64, uint32.

    Raises:
        InvalidPositionError: a field is negative or too wide for its slot.
    """
    try:
        kind, variant = _TAGS[type(descriptor)]
    except KeyError:
        raise TypeError(f"not a reward descriptor: {descriptor!r}") from None
    a, b = _fields(descriptor)
    for value, limit in zip((a, b), _FIELD_LIMITS):
        if not 0 <= value < limit:
            raise InvalidPositionError(f"{descriptor!r}: field {value} outside 0..{limit - 1}")
    return bytes(Web3.solidity_keccak(_ABI_TYPES, [kind, variant, a, b]))


# ============================================================================
# Ledger
# ============================================================================


class ClaimLedger:
    """context_id -> set of claimed reward hashes. Records are created on first claim."""

    def __init__(self):
        self._claimed: dict[int, set[bytes]] = {}

    @staticmethod
    def hash_of(descriptor: RewardDescriptor) -> bytes:
        return reward_hash(descriptor)

    def is_claimed_by_hash(self, context_id: int, reward_key: bytes) -> bool:
        return reward_key in self._claimed.get(context_id, ())

    def set_claimed_by_hash(self, context_id: int, reward_key: bytes) -> None:
        self._claimed.setdefault(context_id, set()).add(reward_key)

    def is_claimed(self, context_id: int, descriptor: RewardDescriptor) -> bool:
        return self.is_claimed_by_hash(context_id, self.hash_of(descriptor))

    def try_claim(self, context_id: int, descriptor: RewardDescriptor) -> bool:
        """Mark the reward claimed. Returns True if it was *already* claimed (no mutation then)."""
        reward_key = self.hash_of(descriptor)
        if self.is_claimed_by_hash(context_id, reward_key):
            logger.debug(f"Context {context_id}: {descriptor!r} already claimed")
            return True
        self.set_claimed_by_hash(context_id, reward_key)
        return False

    def claimed_count(self, context_id: int) -> int:
        return len(self._claimed.get(context_id, ()))

    # Savepoints

    def snapshot(self, context_id: int) -> frozenset[bytes]:
        return frozenset(self._claimed.get(context_id, ()))

    def restore(self, context_id: int, snapshot: frozenset[bytes]) -> None:
        if snapshot:
            self._claimed[context_id] = set(snapshot)
        else:
            self._claimed.pop(context_id, None)
