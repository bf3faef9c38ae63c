"""
podium/errors.py - Exception hierarchy for the settlement engine.

Three families:
  1. PreconditionError:  the caller asked for something the rules don't allow
                          (wrong phase, limit hit, already claimed). No state changes.
  2. InvariantViolation: a bug in the caller or in podium itself (packed index
                          out of range, fixed-point overflow). Never recoverable.
  3. ExternalCallError:  a token transfer or external validator failed. The
                          whole engine call is rolled back.
"""


class PodiumError(Exception):
    """Base class for every error raised by podium."""


# ============================================================================
# Precondition violations
# ============================================================================


class PreconditionError(PodiumError, ValueError):
    """The call was rejected before any state was touched."""


class WrongPhaseError(PreconditionError):
    """Operation not allowed in the tournament's current phase."""


class EntryLimitExceededError(PreconditionError):
    """No entries left for this qualification."""


class EntryNotQualifiedError(PreconditionError):
    """The entry requirement rejected the player's proof."""


class BannedEntryError(PreconditionError):
    """The registration was banned by its entry requirement."""


class AlreadySubmittedError(PreconditionError):
    """A score was already submitted for this token."""


class AlreadyClaimedError(PreconditionError):
    """The reward was already paid out."""


class NothingToClaimError(PreconditionError):
    """The reward exists but resolves to a zero or unconfigured payout."""


class InvalidDistributionError(PreconditionError):
    """Malformed distribution (bad weight, length mismatch, shares not summing to 100%)."""


class InvalidScheduleError(PreconditionError):
    """Schedule periods are out of order or outside the configured limits."""


class InvalidEntryFeeError(PreconditionError):
    """Entry fee shares are malformed or exceed 100%."""


class InvalidPrizeError(PreconditionError):
    """Prize token data is malformed."""


class InvalidPositionError(PreconditionError):
    """Leaderboard position or reward index is out of range or out of order."""


class NotRegisteredError(PreconditionError):
    """No registration exists for this token in this tournament."""


class DuplicateRegistrationError(PreconditionError):
    """The game token is already registered."""


class NotTokenOwnerError(PreconditionError):
    """Caller doesn't own the game token."""


class UnknownTournamentError(PreconditionError, KeyError):
    """No tournament with that id."""


class UnknownGameError(PreconditionError, KeyError):
    """No game contract registered at that address."""


# ============================================================================
# Invariant violations
# ============================================================================


class InvariantViolation(PodiumError):
    """Internal consistency failure; indicates a bug, never retried."""


class FixedPointOverflowError(InvariantViolation, OverflowError):
    """Fixed-point magnitude left the 64-bit range."""


class PackedIndexError(InvariantViolation, IndexError):
    """Record index outside a packed word's capacity."""


class PackedValueError(InvariantViolation, ValueError):
    """Value (or word) wider than its packed field."""


# ============================================================================
# External call failures
# ============================================================================


class ExternalCallError(PodiumError, RuntimeError):
    """An external collaborator failed; the engine call is rolled back."""


class TransferFailedError(ExternalCallError):
    """A token transfer failed or reverted."""


class ValidatorCallError(ExternalCallError):
    """An external entry validator raised or reverted."""
