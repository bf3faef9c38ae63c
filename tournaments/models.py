"""
tournaments/models.py - Tournament, entry fee and prize data types.

Plain frozen dataclasses. Share fields are basis points (10000 = 100%).
"""

from dataclasses import dataclass, field

from podium.distribution import Custom, Distribution, Uniform
from podium.entry_requirement import EntryRequirement
from podium.schedule import Schedule


@dataclass(frozen=True)
class Metadata:
    name: str
    description: str = ""


@dataclass(frozen=True)
class GameConfig:
    """Which game the tournament is played in and with what settings."""

    address: str
    settings_id: int = 0
    soulbound: bool = False
    play_url: str = ""


# ============================================================================
# Entry fees
# ============================================================================


@dataclass(frozen=True)
class AdditionalShare:
    recipient: str
    share_bps: int


@dataclass(frozen=True)
class EntryFee:
    """Fee charged per entry and how the resulting pool is split.

    Whatever isn't taken by the creator, game creator, refund and additional
    shares forms the prize pool, paid out across leaderboard positions by
    `distribution`.
    """

    token_address: str
    amount: int
    distribution: Distribution = field(default_factory=Uniform)
    tournament_creator_share: int | None = None
    game_creator_share: int | None = None
    refund_share: int | None = None
    additional_shares: tuple[AdditionalShare, ...] = ()
    distribution_positions: int | None = None  # None = one per entry

    def __post_init__(self) -> None:
        object.__setattr__(self, "additional_shares", tuple(self.additional_shares))

    @property
    def fixed_positions(self) -> int | None:
        """Position count known at creation time, if any."""
        if isinstance(self.distribution, Custom):
            return len(self.distribution.shares)
        return self.distribution_positions


# ============================================================================
# Prizes
# ============================================================================


@dataclass(frozen=True)
class ERC20Data:
    amount: int
    distribution: Distribution | None = None
    distribution_count: int | None = None


@dataclass(frozen=True)
class ERC721Data:
    token_id: int


TokenTypeData = ERC20Data | ERC721Data


@dataclass(frozen=True)
class Prize:
    id: int
    context_id: int
    token_address: str
    token_type: TokenTypeData
    sponsor_address: str
    payout_position: int  # 0 = distributed across positions

    @property
    def is_distributed(self) -> bool:
        return self.payout_position == 0


# ============================================================================
# Tournament
# ============================================================================


@dataclass(frozen=True)
class Tournament:
    id: int
    created_at: int
    created_by: str
    creator_rewards_address: str
    metadata: Metadata
    schedule: Schedule
    game_config: GameConfig
    entry_fee: EntryFee | None = None
    entry_requirement: EntryRequirement | None = None
    leaderboard_size: int = 10


@dataclass(frozen=True)
class Payout:
    """Resolved reward: who gets what. nft_token_id is set for ERC721 prizes."""

    recipient: str
    token_address: str
    amount: int = 0
    nft_token_id: int | None = None
