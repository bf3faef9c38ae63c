"""Tests for podium.claims: descriptor hashing and the claim ledger."""

import pytest

from podium.claims import (
    AdditionalShareReward,
    ClaimLedger,
    EntryFeePosition,
    GameCreatorShare,
    PrizeDistributed,
    PrizeSingle,
    RefundShare,
    TournamentCreatorShare,
    reward_hash,
)
from podium.errors import InvalidPositionError

DESCRIPTORS = [
    PrizeSingle(1),
    PrizeSingle(2),
    PrizeDistributed(1, 0),
    PrizeDistributed(1, 1),
    EntryFeePosition(1),
    EntryFeePosition(2),
    TournamentCreatorShare(),
    GameCreatorShare(),
    RefundShare(7),
    AdditionalShareReward(0),
    AdditionalShareReward(1),
]


class TestRewardHash:
    def test_32_bytes(self):
        for descriptor in DESCRIPTORS:
            assert len(reward_hash(descriptor)) == 32

    def test_distinct_per_descriptor(self):
        hashes = {reward_hash(d) for d in DESCRIPTORS}
        assert len(hashes) == len(DESCRIPTORS)

    def test_same_fields_different_kind(self):
        # prize 1 vs fee position 1 vs refund of token 1
        assert reward_hash(PrizeSingle(1)) != reward_hash(EntryFeePosition(1))
        assert reward_hash(EntryFeePosition(1)) != reward_hash(RefundShare(1))
        assert reward_hash(RefundShare(1)) != reward_hash(AdditionalShareReward(1))

    def test_deterministic(self):
        assert reward_hash(PrizeDistributed(3, 2)) == reward_hash(PrizeDistributed(3, 2))

    def test_not_a_descriptor(self):
        with pytest.raises(TypeError):
            reward_hash("prize-1")

    @pytest.mark.parametrize(
        "descriptor",
        [PrizeDistributed(1, -1), EntryFeePosition(-1), RefundShare(2**64), PrizeDistributed(1, 2**32)],
        ids=repr,
    )
    def test_field_out_of_range(self, descriptor):
        with pytest.raises(InvalidPositionError):
            reward_hash(descriptor)

    def test_widest_fields(self):
        assert len(reward_hash(PrizeDistributed(2**64 - 1, 2**32 - 1))) == 32


class TestClaimLedger:
    @pytest.mark.parametrize("descriptor", DESCRIPTORS, ids=repr)
    def test_try_claim_is_idempotent(self, descriptor):
        ledger = ClaimLedger()
        assert ledger.try_claim(1, descriptor) is False
        assert ledger.try_claim(1, descriptor) is True
        assert ledger.try_claim(1, descriptor) is True
        assert ledger.is_claimed(1, descriptor)

    def test_other_descriptors_unaffected(self):
        ledger = ClaimLedger()
        ledger.try_claim(1, EntryFeePosition(1))
        for descriptor in DESCRIPTORS:
            if descriptor != EntryFeePosition(1):
                assert not ledger.is_claimed(1, descriptor)

    def test_contexts_are_independent(self):
        ledger = ClaimLedger()
        ledger.try_claim(1, TournamentCreatorShare())
        assert not ledger.is_claimed(2, TournamentCreatorShare())
        assert ledger.try_claim(2, TournamentCreatorShare()) is False

    def test_by_hash(self):
        ledger = ClaimLedger()
        key = ledger.hash_of(GameCreatorShare())
        assert not ledger.is_claimed_by_hash(5, key)
        ledger.set_claimed_by_hash(5, key)
        assert ledger.is_claimed_by_hash(5, key)
        assert ledger.is_claimed(5, GameCreatorShare())

    def test_claimed_count(self):
        ledger = ClaimLedger()
        ledger.try_claim(1, PrizeSingle(1))
        ledger.try_claim(1, PrizeSingle(1))
        ledger.try_claim(1, RefundShare(3))
        ledger.try_claim(2, RefundShare(3))
        assert ledger.claimed_count(1) == 2
        assert ledger.claimed_count(2) == 1
        assert ledger.claimed_count(3) == 0

    def test_snapshot_restore(self):
        ledger = ClaimLedger()
        ledger.try_claim(1, PrizeSingle(1))
        ledger.try_claim(2, PrizeSingle(1))
        saved = ledger.snapshot(1)

        ledger.try_claim(1, RefundShare(3))
        ledger.try_claim(2, RefundShare(3))
        ledger.restore(1, saved)

        assert ledger.is_claimed(1, PrizeSingle(1))
        assert not ledger.is_claimed(1, RefundShare(3))
        assert ledger.is_claimed(2, RefundShare(3))

    def test_restore_empty(self):
        ledger = ClaimLedger()
        saved = ledger.snapshot(1)
        ledger.try_claim(1, GameCreatorShare())
        ledger.restore(1, saved)
        assert ledger.claimed_count(1) == 0
