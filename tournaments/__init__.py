"""
tournaments/ - Tournament platform on top of the podium settlement core.

Creates tournaments, takes entries and entry fees, escrows sponsored prizes,
records leaderboards and pays out rewards exactly once.
"""

from .engine import TournamentEngine
from .events import EventLog, LoggingSink
from .games import InMemoryGame
from .models import (
    AdditionalShare,
    EntryFee,
    ERC20Data,
    ERC721Data,
    GameConfig,
    Metadata,
    Payout,
    Prize,
    Tournament,
)
from .tokens import InMemoryTokenLedger, Web3TokenLedger

__all__ = [
    "TournamentEngine",
    "EventLog",
    "LoggingSink",
    "InMemoryGame",
    "AdditionalShare",
    "EntryFee",
    "ERC20Data",
    "ERC721Data",
    "GameConfig",
    "Metadata",
    "Payout",
    "Prize",
    "Tournament",
    "InMemoryTokenLedger",
    "Web3TokenLedger",
]
