"""
podium/registration.py - Per-entry registration records and admission.

Registrations are keyed by (game_address, game_token_id): one game token can
be entered into exactly one context. Entry numbers are allocated 1, 2, 3, ...
per context; entry_number == 0 means "not registered".
"""

import dataclasses
import logging
from dataclasses import dataclass

from podium.entry_requirement import EntryValidator, QualificationProof
from podium.errors import (
    BannedEntryError,
    DuplicateRegistrationError,
    EntryLimitExceededError,
    EntryNotQualifiedError,
    NotRegisteredError,
    WrongPhaseError,
)
from podium.schedule import Phase, Schedule, current_phase

logger = logging.getLogger(__name__)


@dataclass
class Registration:
    game_address: str
    game_token_id: int
    context_id: int = 0
    entry_number: int = 0
    has_submitted: bool = False
    is_banned: bool = False

    @property
    def exists(self) -> bool:
        return self.entry_number != 0


class RegistrationLedger:
    """Registrations plus the per-context entry counter."""

    def __init__(self):
        self._registrations: dict[tuple[str, int], Registration] = {}
        self._by_context: dict[int, list[tuple[str, int]]] = {}
        self._entry_counts: dict[int, int] = {}

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def register(self, context_id: int, game_address: str, token_id: int) -> Registration:
        """Allocate the next entry number in context_id for this game token."""
        key = (game_address, token_id)
        if key in self._registrations:
            raise DuplicateRegistrationError(
                f"token {token_id} of {game_address} already registered "
                f"in context {self._registrations[key].context_id}"
            )

        entry_number = self._entry_counts.get(context_id, 0) + 1
        self._entry_counts[context_id] = entry_number

        registration = Registration(
            game_address=game_address,
            game_token_id=token_id,
            context_id=context_id,
            entry_number=entry_number,
        )
        self._registrations[key] = registration
        self._by_context.setdefault(context_id, []).append(key)
        return registration

    def mark_submitted(self, game_address: str, token_id: int) -> Registration:
        registration = self._require(game_address, token_id)
        registration.has_submitted = True
        return registration

    def ban(self, game_address: str, token_id: int) -> Registration:
        registration = self._require(game_address, token_id)
        registration.is_banned = True
        return registration

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_registration(self, game_address: str, token_id: int) -> Registration:
        """The registration, or an unregistered sentinel (entry_number 0)."""
        registration = self._registrations.get((game_address, token_id))
        if registration is None:
            return Registration(game_address=game_address, game_token_id=token_id)
        return registration

    def registration_exists(self, game_address: str, token_id: int) -> bool:
        return (game_address, token_id) in self._registrations

    def is_banned(self, game_address: str, token_id: int) -> bool:
        return self.get_registration(game_address, token_id).is_banned

    def context_id_for_token(self, game_address: str, token_id: int) -> int:
        return self.get_registration(game_address, token_id).context_id

    def entry_count(self, context_id: int) -> int:
        return self._entry_counts.get(context_id, 0)

    def registrations_for(self, context_id: int) -> list[Registration]:
        """Registrations of one context ordered by entry number."""
        return [self._registrations[key] for key in self._by_context.get(context_id, [])]

    def _require(self, game_address: str, token_id: int) -> Registration:
        registration = self._registrations.get((game_address, token_id))
        if registration is None:
            raise NotRegisteredError(f"token {token_id} of {game_address} is not registered")
        return registration

    # ------------------------------------------------------------------
    # Savepoints
    # ------------------------------------------------------------------

    def snapshot(self, context_id: int) -> list[Registration]:
        """Copies of one context's registrations, in entry order."""
        return [dataclasses.replace(r) for r in self.registrations_for(context_id)]

    def restore(self, context_id: int, snapshot: list[Registration]) -> None:
        for key in self._by_context.pop(context_id, []):
            del self._registrations[key]
        self._entry_counts.pop(context_id, None)
        for registration in snapshot:
            key = (registration.game_address, registration.game_token_id)
            self._registrations[key] = dataclasses.replace(registration)
            self._by_context.setdefault(context_id, []).append(key)
            self._entry_counts[context_id] = registration.entry_number


# ============================================================================
# Admission
# ============================================================================


def entry_allowed(phase: Phase, schedule: Schedule, gate: EntryValidator | None) -> bool:
    """Registration-window tournaments admit only during REGISTRATION, unless the
    gate says it isn't registration-only. Open tournaments (no window) admit
    until the game ends."""
    registration_only = gate.registration_only() if gate is not None else True
    if schedule.registration is not None and registration_only:
        return phase == Phase.REGISTRATION
    return phase < Phase.SUBMISSION


def check_admission(
    gate: EntryValidator | None,
    context_id: int,
    schedule: Schedule,
    now: int,
    player: str,
    proof: QualificationProof | None = None,
) -> None:
    """Raise unless `player` may enter context_id right now.

    Raises:
        WrongPhaseError: entries are closed.
        EntryNotQualifiedError: the gate rejected the proof.
        EntryLimitExceededError: the qualification has no entries left.
    """
    phase = current_phase(now, schedule)
    if not entry_allowed(phase, schedule, gate):
        raise WrongPhaseError(f"context {context_id}: entries closed during {phase.name}")

    if gate is not None:
        if not gate.valid_entry(context_id, player, proof):
            raise EntryNotQualifiedError(f"context {context_id}: {player} does not qualify with {proof!r}")
        left = gate.entries_left(context_id, player, proof)
        if left is not None and left <= 0:
            raise EntryLimitExceededError(f"context {context_id}: no entries left for {proof!r}")


def record_entry(
    ledger: RegistrationLedger,
    gate: EntryValidator | None,
    context_id: int,
    game_address: str,
    token_id: int,
    player: str,
    proof: QualificationProof | None = None,
) -> Registration:
    """Register an already-admitted entry and count it against its qualification."""
    registration = ledger.register(context_id, game_address, token_id)
    if gate is not None:
        gate.add_entry(context_id, token_id, player, proof)

    logger.debug(
        f"Context {context_id}: token {token_id} registered as entry #{registration.entry_number}"
    )
    return registration


def require_active(registration: Registration, context_id: int) -> None:
    """Registration must exist, belong to context_id, and not be banned."""
    if not registration.exists or registration.context_id != context_id:
        raise NotRegisteredError(
            f"token {registration.game_token_id} is not registered in context {context_id}"
        )
    if registration.is_banned:
        raise BannedEntryError(f"token {registration.game_token_id} is banned from context {context_id}")
