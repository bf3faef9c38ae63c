"""
Podium - Settlement core for on-chain game tournaments

Phase derivation, prize distribution curves, packed share storage, entry
gating and idempotent claim tracking. Pure computation; the tournaments
package wires it to tokens and games.
"""

__version__ = "0.1.0"

from .claims import (
    AdditionalShareReward,
    ClaimLedger,
    EntryFeePosition,
    GameCreatorShare,
    PrizeDistributed,
    PrizeSingle,
    RefundShare,
    RewardDescriptor,
    TournamentCreatorShare,
    reward_hash,
)

from .distribution import (
    Custom,
    Distribution,
    Exponential,
    Linear,
    Uniform,
    calculate_shares,
    split_amount,
    validate_distribution,
)

from .entry_requirement import (
    AddressProof,
    AllowlistRequirement,
    EntryRequirement,
    EntryValidator,
    ExtensionProof,
    ExtensionRequirement,
    NFTProof,
    TokenRequirement,
)

from .errors import (
    ExternalCallError,
    InvariantViolation,
    PodiumError,
    PreconditionError,
)

from .fixed_point import Fixed

from .packing import (
    CUSTOM_SHARE_CODEC,
    RECIPIENT_SHARE_CODEC,
    RecipientShare,
)

from .schedule import (
    Period,
    Phase,
    Schedule,
    current_phase,
)

__all__ = [
    # Version
    "__version__",
    # Claims
    "AdditionalShareReward",
    "ClaimLedger",
    "EntryFeePosition",
    "GameCreatorShare",
    "PrizeDistributed",
    "PrizeSingle",
    "RefundShare",
    "RewardDescriptor",
    "TournamentCreatorShare",
    "reward_hash",
    # Distributions
    "Custom",
    "Distribution",
    "Exponential",
    "Linear",
    "Uniform",
    "calculate_shares",
    "split_amount",
    "validate_distribution",
    # Entry requirements
    "AddressProof",
    "AllowlistRequirement",
    "EntryRequirement",
    "EntryValidator",
    "ExtensionProof",
    "ExtensionRequirement",
    "NFTProof",
    "TokenRequirement",
    # Errors
    "ExternalCallError",
    "InvariantViolation",
    "PodiumError",
    "PreconditionError",
    # Math
    "Fixed",
    # Packing
    "CUSTOM_SHARE_CODEC",
    "RECIPIENT_SHARE_CODEC",
    "RecipientShare",
    # Schedule
    "Period",
    "Phase",
    "Schedule",
    "current_phase",
]
