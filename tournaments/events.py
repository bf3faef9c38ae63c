"""
tournaments/events.py - Structured notifications for indexers.

The engine buffers events during a call and hands them to its EventSink only
after the call commits; a rolled-back call emits nothing.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from podium.claims import RewardDescriptor
from podium.entry_requirement import QualificationProof

from tournaments.models import TokenTypeData, Tournament

logger = logging.getLogger(__name__)


# ============================================================================
# Event types
# ============================================================================


@dataclass(frozen=True)
class TournamentCreated:
    tournament: Tournament


@dataclass(frozen=True)
class TournamentRegistration:
    tournament_id: int
    game_address: str
    game_token_id: int
    entry_number: int
    has_submitted: bool
    is_banned: bool


@dataclass(frozen=True)
class LeaderboardUpdated:
    tournament_id: int
    token_ids: tuple[int, ...]


@dataclass(frozen=True)
class PrizeAdded:
    tournament_id: int
    prize_id: int
    payout_position: int
    token_address: str
    token_type: TokenTypeData
    sponsor_address: str


@dataclass(frozen=True)
class RewardClaimed:
    tournament_id: int
    reward: RewardDescriptor
    recipient: str
    amount: int


@dataclass(frozen=True)
class QualificationEntriesUpdated:
    tournament_id: int
    proof: QualificationProof | None
    entry_count: int


@dataclass(frozen=True)
class PlatformMetrics:
    total_tournaments: int
    total_prizes: int
    total_entries: int
    total_claims: int


Event = (
    TournamentCreated
    | TournamentRegistration
    | LeaderboardUpdated
    | PrizeAdded
    | RewardClaimed
    | QualificationEntriesUpdated
    | PlatformMetrics
)


# ============================================================================
# Sinks
# ============================================================================


class EventSink(Protocol):
    def emit(self, event: Event) -> None: ...


class EventLog:
    """Keeps every committed event in order."""

    def __init__(self):
        self.events: list[Event] = []

    def emit(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, event_type: type) -> list[Event]:
        return [e for e in self.events if isinstance(e, event_type)]

    def clear(self) -> None:
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)


class LoggingSink:
    """Writes each event to the log at INFO."""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def emit(self, event: Event) -> None:
        self.log.info(f"event {type(event).__name__}: {event}")
