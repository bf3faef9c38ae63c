"""
tournaments/leaderboard.py - Ranked token list with caller-supplied insert positions.

The submitter names the position; the leaderboard only checks it's consistent
with the ordering (higher score first, lower token id wins ties). That keeps
each submission O(1) comparisons instead of a scan.
"""

import logging
from dataclasses import dataclass, field

from podium.errors import InvalidPositionError

logger = logging.getLogger(__name__)


@dataclass
class Leaderboard:
    capacity: int
    entries: list[tuple[int, int]] = field(default_factory=list)  # (token_id, score), best first

    @staticmethod
    def _rank_key(token_id: int, score: int) -> tuple[int, int]:
        return (-score, token_id)

    def submit(self, token_id: int, score: int, position: int) -> None:
        """
        Insert token_id at 1-based `position`; anything pushed past capacity falls off.

        Raises:
            InvalidPositionError: position out of range or inconsistent with the ranking.
        """
        limit = min(len(self.entries) + 1, self.capacity)
        if not 1 <= position <= limit:
            raise InvalidPositionError(f"position {position} outside 1..{limit}")

        key = self._rank_key(token_id, score)
        if position > 1:
            above_id, above_score = self.entries[position - 2]
            if not self._rank_key(above_id, above_score) < key:
                raise InvalidPositionError(
                    f"score {score} of token {token_id} ranks above position {position - 1}"
                )
        if position <= len(self.entries):
            at_id, at_score = self.entries[position - 1]
            if not key < self._rank_key(at_id, at_score):
                raise InvalidPositionError(
                    f"score {score} of token {token_id} doesn't beat position {position}"
                )

        self.entries.insert(position - 1, (token_id, score))
        del self.entries[self.capacity:]
        logger.debug(f"token {token_id} (score {score}) placed at {position}")

    def token_ids(self) -> list[int]:
        return [token_id for token_id, _ in self.entries]

    def token_at(self, position: int) -> int | None:
        """Token at 1-based position, or None if unfilled."""
        if 1 <= position <= len(self.entries):
            return self.entries[position - 1][0]
        return None

    def __len__(self) -> int:
        return len(self.entries)
