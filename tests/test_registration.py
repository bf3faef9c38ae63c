"""Tests for podium.registration: entry numbering, bans and admission rules."""

import pytest

from podium.entry_requirement import AddressProof, AllowlistGate
from podium.errors import (
    BannedEntryError,
    DuplicateRegistrationError,
    EntryLimitExceededError,
    EntryNotQualifiedError,
    NotRegisteredError,
    WrongPhaseError,
)
from podium.registration import (
    RegistrationLedger,
    check_admission,
    entry_allowed,
    record_entry,
    require_active,
)
from podium.schedule import Period, Phase, Schedule

GAME = "0xGame"
ALICE = "0xAlice"
BOB = "0xBob"

WINDOWED = Schedule(game=Period(200, 500), submission_duration=50, registration=Period(100, 150))
OPEN = Schedule(game=Period(200, 500), submission_duration=50)


class OpenGate(AllowlistGate):
    """Allowlist gate that also admits outside the registration window."""

    def registration_only(self) -> bool:
        return False


class TestLedger:
    def test_entry_numbers_per_context(self):
        ledger = RegistrationLedger()
        assert ledger.register(1, GAME, 10).entry_number == 1
        assert ledger.register(2, GAME, 11).entry_number == 1
        assert ledger.register(1, GAME, 12).entry_number == 2
        assert ledger.register(1, GAME, 13).entry_number == 3
        assert ledger.register(2, GAME, 14).entry_number == 2
        assert ledger.entry_count(1) == 3
        assert ledger.entry_count(2) == 2

    def test_unregistered_sentinel(self):
        ledger = RegistrationLedger()
        registration = ledger.get_registration(GAME, 99)
        assert registration.entry_number == 0
        assert not registration.exists
        assert not ledger.registration_exists(GAME, 99)
        assert ledger.context_id_for_token(GAME, 99) == 0

    def test_duplicate_token(self):
        ledger = RegistrationLedger()
        ledger.register(1, GAME, 10)
        with pytest.raises(DuplicateRegistrationError):
            ledger.register(2, GAME, 10)
        assert ledger.entry_count(2) == 0

    def test_same_id_different_game(self):
        ledger = RegistrationLedger()
        ledger.register(1, GAME, 10)
        assert ledger.register(1, "0xOtherGame", 10).entry_number == 2

    def test_submit_and_ban(self):
        ledger = RegistrationLedger()
        ledger.register(1, GAME, 10)
        ledger.mark_submitted(GAME, 10)
        ledger.ban(GAME, 10)
        registration = ledger.get_registration(GAME, 10)
        assert registration.has_submitted
        assert registration.is_banned
        assert ledger.is_banned(GAME, 10)

    def test_updates_require_registration(self):
        ledger = RegistrationLedger()
        with pytest.raises(NotRegisteredError):
            ledger.mark_submitted(GAME, 10)
        with pytest.raises(NotRegisteredError):
            ledger.ban(GAME, 10)

    def test_registrations_for_ordered(self):
        ledger = RegistrationLedger()
        for token_id in (30, 10, 20):
            ledger.register(1, GAME, token_id)
        ledger.register(2, GAME, 40)
        assert [r.game_token_id for r in ledger.registrations_for(1)] == [30, 10, 20]

    def test_snapshot_restore(self):
        ledger = RegistrationLedger()
        ledger.register(1, GAME, 10)
        ledger.register(2, GAME, 20)
        saved = ledger.snapshot(1)

        ledger.ban(GAME, 10)
        ledger.register(1, GAME, 11)
        ledger.register(2, GAME, 21)
        ledger.restore(1, saved)

        assert not ledger.is_banned(GAME, 10)
        assert not ledger.registration_exists(GAME, 11)
        assert ledger.entry_count(1) == 1
        assert ledger.register(1, GAME, 11).entry_number == 2
        assert ledger.entry_count(2) == 2

    def test_restore_empty_context(self):
        ledger = RegistrationLedger()
        saved = ledger.snapshot(1)
        ledger.register(1, GAME, 10)
        ledger.restore(1, saved)
        assert ledger.entry_count(1) == 0
        assert ledger.registrations_for(1) == []
        assert ledger.register(3, GAME, 10).entry_number == 1


class TestEntryAllowed:
    @pytest.mark.parametrize(
        "phase, allowed",
        [
            (Phase.SCHEDULED, False),
            (Phase.REGISTRATION, True),
            (Phase.STAGING, False),
            (Phase.LIVE, False),
        ],
    )
    def test_windowed(self, phase, allowed):
        assert entry_allowed(phase, WINDOWED, None) is allowed

    @pytest.mark.parametrize(
        "phase, allowed",
        [
            (Phase.SCHEDULED, True),
            (Phase.LIVE, True),
            (Phase.SUBMISSION, False),
            (Phase.FINALIZED, False),
        ],
    )
    def test_open(self, phase, allowed):
        assert entry_allowed(phase, OPEN, None) is allowed

    def test_gate_lifts_window(self):
        gate = OpenGate((ALICE,))
        assert entry_allowed(Phase.LIVE, WINDOWED, gate)
        assert not entry_allowed(Phase.SUBMISSION, WINDOWED, gate)


class TestAdmission:
    def test_closed_phase(self):
        with pytest.raises(WrongPhaseError):
            check_admission(None, 1, WINDOWED, 160, ALICE)

    def test_not_qualified(self):
        gate = AllowlistGate((ALICE,))
        with pytest.raises(EntryNotQualifiedError):
            check_admission(gate, 1, WINDOWED, 120, BOB, AddressProof(BOB))

    def test_limit(self):
        ledger = RegistrationLedger()
        gate = AllowlistGate((ALICE,))
        gate.add_config(1, 2)
        proof = AddressProof(ALICE)

        for token_id in (10, 11):
            check_admission(gate, 1, WINDOWED, 120, ALICE, proof)
            record_entry(ledger, gate, 1, GAME, token_id, ALICE, proof)
        with pytest.raises(EntryLimitExceededError):
            check_admission(gate, 1, WINDOWED, 120, ALICE, proof)
        assert ledger.entry_count(1) == 2

    def test_record_counts_entry(self):
        ledger = RegistrationLedger()
        gate = AllowlistGate((ALICE,))
        registration = record_entry(ledger, gate, 1, GAME, 10, ALICE, AddressProof(ALICE))
        assert registration.entry_number == 1
        assert gate.entry_count(1, AddressProof(ALICE)) == 1

    def test_ungated(self):
        ledger = RegistrationLedger()
        check_admission(None, 1, OPEN, 300, BOB)
        assert record_entry(ledger, None, 1, GAME, 10, BOB).entry_number == 1


class TestRequireActive:
    def test_ok(self):
        ledger = RegistrationLedger()
        require_active(ledger.register(1, GAME, 10), 1)

    def test_missing(self):
        ledger = RegistrationLedger()
        with pytest.raises(NotRegisteredError):
            require_active(ledger.get_registration(GAME, 10), 1)

    def test_other_context(self):
        ledger = RegistrationLedger()
        with pytest.raises(NotRegisteredError):
            require_active(ledger.register(2, GAME, 10), 1)

    def test_banned(self):
        ledger = RegistrationLedger()
        ledger.register(1, GAME, 10)
        with pytest.raises(BannedEntryError):
            require_active(ledger.ban(GAME, 10), 1)
