"""
tournaments/games.py - The game a tournament is played in.

Each entry is a game token minted for the player. The engine reads the token's
score and owner once the game is over; it never interprets gameplay.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from podium.errors import NotRegisteredError

logger = logging.getLogger(__name__)


class GameContract(Protocol):
    """What the settlement engine needs from a game."""

    address: str

    def mint(self, player: str, settings_id: int, player_name: str = "") -> int:
        """Mint a fresh game token for `player`, returning its id."""
        ...

    def score(self, token_id: int) -> int: ...

    def owner_of(self, token_id: int) -> str: ...

    def creator_address(self) -> str: ...


@dataclass
class GameToken:
    owner: str
    settings_id: int
    player_name: str = ""
    score: int = 0


class InMemoryGame:
    """Reference GameContract: sequential token ids, scores set by hand."""

    def __init__(self, address: str, creator: str):
        self.address = address
        self.creator = creator
        self.tokens: dict[int, GameToken] = {}
        self._next_id = 1

    def mint(self, player: str, settings_id: int, player_name: str = "") -> int:
        token_id = self._next_id
        self._next_id += 1
        self.tokens[token_id] = GameToken(owner=player, settings_id=settings_id, player_name=player_name)
        logger.debug(f"{self.address}: minted token {token_id} for {player}")
        return token_id

    def score(self, token_id: int) -> int:
        return self._token(token_id).score

    def owner_of(self, token_id: int) -> str:
        return self._token(token_id).owner

    def creator_address(self) -> str:
        return self.creator

    # Checkpoints: only mints happen inside engine calls

    def checkpoint(self) -> int:
        return self._next_id

    def rollback(self, checkpoint: int) -> None:
        for token_id in range(checkpoint, self._next_id):
            self.tokens.pop(token_id, None)
        self._next_id = checkpoint

    def commit(self, checkpoint: int) -> None:
        pass

    def set_score(self, token_id: int, score: int) -> None:
        self._token(token_id).score = score

    def transfer(self, token_id: int, new_owner: str) -> None:
        self._token(token_id).owner = new_owner

    def _token(self, token_id: int) -> GameToken:
        token = self.tokens.get(token_id)
        if token is None:
            raise NotRegisteredError(f"{self.address}: no game token {token_id}")
        return token
