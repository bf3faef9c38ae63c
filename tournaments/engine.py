"""
tournaments/engine.py - Tournament settlement engine.

Wires the podium core (schedule, distribution, registration, claims) to the
outside world (tokens, games, event sinks) and exposes the platform surface:

    create_tournament -> enter_tournament -> submit_score -> claim_reward
                         validate_entry (ban check, before LIVE)
                         add_prize (any time before FINALIZED)

Phases are never stored; every call derives them from the injected clock.

Each mutating call runs as one transaction (_atomic): every state change
commits together or not at all, and events reach the sink only after commit.
A savepoint copies only the tournaments a call touches, plus the platform
counters. Checkpointed collaborators (the in-memory ledger and game) roll back
with it. Nested calls get their own savepoint.
Claims set their flag before the payout transfer, so a transfer that calls back
into the engine sees the reward as already taken.

Usage:
    engine = TournamentEngine(address, tokens=InMemoryTokenLedger(), games=[game])
    t = engine.create_tournament(creator, Metadata("Weekly"), schedule, GameConfig(game.address))
    token_id, entry_number = engine.enter_tournament(t.id, player)
"""

import copy
import dataclasses
import logging
import time
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from podium.claims import (
    AdditionalShareReward,
    ClaimLedger,
    EntryFeePosition,
    GameCreatorShare,
    PrizeDistributed,
    PrizeSingle,
    RefundShare,
    RewardDescriptor,
    TournamentCreatorShare,
)
from podium.config import PodiumConfig
from podium.entry_requirement import (
    CountingGate,
    EntryRequirement,
    ExtensionResolver,
    QualificationProof,
    build_gate,
)
from podium.errors import (
    AlreadyClaimedError,
    AlreadySubmittedError,
    EntryNotQualifiedError,
    InvalidPositionError,
    InvalidPrizeError,
    NothingToClaimError,
    NotTokenOwnerError,
    UnknownGameError,
    UnknownTournamentError,
    WrongPhaseError,
)
from podium.packing import RecipientShare
from podium.registration import (
    Registration,
    RegistrationLedger,
    check_admission,
    record_entry,
    require_active,
)
from podium.schedule import Phase, Schedule, current_phase, validate_schedule

from tournaments import entry_fee as fees
from tournaments.entry_fee import EntryFeeBook, StoredEntryFee, validate_entry_fee
from tournaments.events import (
    Event,
    EventLog,
    EventSink,
    LeaderboardUpdated,
    PlatformMetrics,
    PrizeAdded,
    QualificationEntriesUpdated,
    RewardClaimed,
    TournamentCreated,
    TournamentRegistration,
)
from tournaments.games import GameContract
from tournaments.leaderboard import Leaderboard
from tournaments.models import (
    ERC721Data,
    EntryFee,
    GameConfig,
    Metadata,
    Payout,
    Prize,
    TokenTypeData,
    Tournament,
)
from tournaments.prize import PrizeBook, distributed_amount, validate_prize
from tournaments.tokens import Checkpointed, TokenLedger

logger = logging.getLogger(__name__)


# ============================================================================
# State
# ============================================================================


@dataclass
class PlatformCounters:
    total_tournaments: int = 0
    total_prizes: int = 0
    total_entries: int = 0
    total_claims: int = 0


@dataclass
class TournamentSnapshot:
    """One tournament's records as they stood when a savepoint first touched them."""

    tournament: Tournament | None
    leaderboard: Leaderboard | None
    gate: CountingGate | None
    entry_fee: StoredEntryFee | None
    registrations: list[Registration]
    claims: frozenset[bytes]
    prizes: int
    entry_proofs: dict[tuple[str, int], QualificationProof | None]


@dataclass
class EngineState:
    """Everything a transaction may change, captured per tournament by savepoints."""

    tournaments: dict[int, Tournament] = field(default_factory=dict)
    registrations: RegistrationLedger = field(default_factory=RegistrationLedger)
    claims: ClaimLedger = field(default_factory=ClaimLedger)
    entry_fees: EntryFeeBook = field(default_factory=EntryFeeBook)
    prizes: PrizeBook = field(default_factory=PrizeBook)
    leaderboards: dict[int, Leaderboard] = field(default_factory=dict)
    gates: dict[int, CountingGate] = field(default_factory=dict)
    # tournament id -> (game address, token id) -> proof used to enter
    entry_proofs: dict[int, dict[tuple[str, int], QualificationProof | None]] = field(
        default_factory=dict
    )
    counters: PlatformCounters = field(default_factory=PlatformCounters)

    def snapshot(self, tournament_id: int) -> TournamentSnapshot:
        return TournamentSnapshot(
            tournament=self.tournaments.get(tournament_id),
            leaderboard=copy.deepcopy(self.leaderboards.get(tournament_id)),
            gate=copy.deepcopy(self.gates.get(tournament_id)),
            entry_fee=self.entry_fees.snapshot(tournament_id),
            registrations=self.registrations.snapshot(tournament_id),
            claims=self.claims.snapshot(tournament_id),
            prizes=self.prizes.snapshot(tournament_id),
            entry_proofs=dict(self.entry_proofs.get(tournament_id, {})),
        )

    def restore(self, tournament_id: int, snapshot: TournamentSnapshot) -> None:
        _put_back(self.tournaments, tournament_id, snapshot.tournament)
        _put_back(self.leaderboards, tournament_id, snapshot.leaderboard, in_place=True)
        _put_back(self.gates, tournament_id, snapshot.gate, in_place=True)
        _put_back(self.entry_proofs, tournament_id, snapshot.entry_proofs or None)
        self.entry_fees.restore(tournament_id, snapshot.entry_fee)
        self.registrations.restore(tournament_id, snapshot.registrations)
        self.claims.restore(tournament_id, snapshot.claims)
        self.prizes.restore(tournament_id, snapshot.prizes)


def _put_back(table: dict, key: int, saved, in_place: bool = False) -> None:
    """Restore table[key] to `saved` (None = absent).

    in_place copies the saved attributes onto the live object, for objects a
    running call may still hold a reference to.
    """
    if saved is None:
        table.pop(key, None)
    elif in_place and key in table:
        vars(table[key]).update(vars(saved))
    else:
        table[key] = saved


class _Savepoint:
    """Undo record for one level of _atomic()."""

    def __init__(self, state: EngineState, collaborators: list[Checkpointed], pending: int):
        self.counters = dataclasses.replace(state.counters)
        self.snapshots: dict[int, TournamentSnapshot] = {}
        self.checkpoints = [(c, c.checkpoint()) for c in collaborators]
        self.pending = pending

    def touch(self, state: EngineState, tournament_id: int) -> None:
        if tournament_id not in self.snapshots:
            self.snapshots[tournament_id] = state.snapshot(tournament_id)

    def rollback(self, state: EngineState) -> None:
        for tournament_id, snapshot in self.snapshots.items():
            state.restore(tournament_id, snapshot)
        vars(state.counters).update(vars(self.counters))
        for collaborator, checkpoint in reversed(self.checkpoints):
            collaborator.rollback(checkpoint)

    def commit(self) -> None:
        for collaborator, checkpoint in reversed(self.checkpoints):
            collaborator.commit(checkpoint)


def system_clock() -> int:
    return int(time.time())


# ============================================================================
# Engine
# ============================================================================


class TournamentEngine:
    """Settlement engine for any number of tournaments.

    Args:
        address: The engine's own address; entry fees and prizes are escrowed here.
        tokens: TokenLedger used for every value movement.
        games: Game contracts tournaments may be played in, keyed by their address.
        events: Where committed events go (default: an in-memory EventLog).
        clock: Returns the current unix time.
        config: Schedule limits and settlement defaults.
        resolve_extension: Maps an extension address to its EntryValidator.
    """

    def __init__(
        self,
        address: str,
        tokens: TokenLedger,
        games: Iterable[GameContract] = (),
        events: EventSink | None = None,
        clock: Callable[[], int] = system_clock,
        config: PodiumConfig | None = None,
        resolve_extension: ExtensionResolver | None = None,
    ):
        self.address = address
        self.tokens = tokens
        self.games: dict[str, GameContract] = {game.address: game for game in games}
        self.events = events if events is not None else EventLog()
        self.clock = clock
        self.config = config or PodiumConfig()
        self.resolve_extension = resolve_extension

        self._state = EngineState()
        self._savepoints: list[_Savepoint] = []
        self._pending: list[Event] = []

    def add_game(self, game: GameContract) -> None:
        self.games[game.address] = game

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def _atomic(self) -> Iterator[EngineState]:
        """Run a block as one transaction.

        Every level gets its own savepoint, so a nested call that fails is undone
        even if its caller swallows the error. Events reach the sink only when the
        outermost level commits.
        """
        state = self._state
        savepoint = _Savepoint(state, self._checkpointed(), len(self._pending))
        self._savepoints.append(savepoint)
        try:
            yield state
        except BaseException:
            savepoint.rollback(state)
            del self._pending[savepoint.pending:]
            logger.debug(f"Transaction rolled back at depth {len(self._savepoints)}")
            raise
        else:
            savepoint.commit()
        finally:
            self._savepoints.pop()

        if not self._savepoints:
            pending, self._pending = self._pending, []
            for event in pending:
                self.events.emit(event)

    def _checkpointed(self) -> list[Checkpointed]:
        collaborators = [self.tokens, *self.games.values()]
        return [c for c in collaborators if isinstance(c, Checkpointed)]

    def _touch(self, tournament_id: int) -> None:
        for savepoint in self._savepoints:
            savepoint.touch(self._state, tournament_id)

    def _emit(self, event: Event) -> None:
        self._pending.append(event)

    def _emit_metrics(self, state: EngineState) -> None:
        c = state.counters
        self._emit(
            PlatformMetrics(
                total_tournaments=c.total_tournaments,
                total_prizes=c.total_prizes,
                total_entries=c.total_entries,
                total_claims=c.total_claims,
            )
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _tournament(self, state: EngineState, tournament_id: int) -> Tournament:
        tournament = state.tournaments.get(tournament_id)
        if tournament is None:
            raise UnknownTournamentError(f"no tournament {tournament_id}")
        self._touch(tournament_id)
        return tournament

    def _game(self, address: str) -> GameContract:
        game = self.games.get(address)
        if game is None:
            raise UnknownGameError(f"no game contract at {address}")
        return game

    def _phase(self, tournament: Tournament) -> Phase:
        return current_phase(self.clock(), tournament.schedule)

    def _require_phase(self, tournament: Tournament, *allowed: Phase) -> Phase:
        phase = self._phase(tournament)
        if phase not in allowed:
            names = "/".join(p.name for p in allowed)
            raise WrongPhaseError(f"tournament {tournament.id} is {phase.name}, needs {names}")
        return phase

    def _position_owner(self, state: EngineState, tournament: Tournament, position: int) -> str | None:
        token_id = state.leaderboards[tournament.id].token_at(position)
        if token_id is None:
            return None
        return self._game(tournament.game_config.address).owner_of(token_id)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def tournament(self, tournament_id: int) -> Tournament:
        return self._tournament(self._state, tournament_id)

    def current_phase(self, tournament_id: int) -> Phase:
        return self._phase(self.tournament(tournament_id))

    def total_tournaments(self) -> int:
        return len(self._state.tournaments)

    def tournament_entries(self, tournament_id: int) -> int:
        self.tournament(tournament_id)
        return self._state.registrations.entry_count(tournament_id)

    def entry_fee(self, tournament_id: int) -> EntryFee | None:
        self.tournament(tournament_id)
        return self._state.entry_fees.get(tournament_id)

    def entry_requirement(self, tournament_id: int) -> EntryRequirement | None:
        return self.tournament(tournament_id).entry_requirement

    def prize(self, prize_id: int) -> Prize:
        return self._state.prizes.get(prize_id)

    def total_prizes(self) -> int:
        return self._state.prizes.total()

    def registration(self, game_address: str, token_id: int) -> Registration:
        return dataclasses.replace(self._state.registrations.get_registration(game_address, token_id))

    def is_claimed(self, tournament_id: int, descriptor: RewardDescriptor) -> bool:
        return self._state.claims.is_claimed(tournament_id, descriptor)

    def leaderboard(self, tournament_id: int) -> list[int]:
        self.tournament(tournament_id)
        return self._state.leaderboards[tournament_id].token_ids()

    def qualification_entries(self, tournament_id: int, proof: QualificationProof | None) -> int:
        self.tournament(tournament_id)
        gate = self._state.gates.get(tournament_id)
        return gate.entry_count(tournament_id, proof) if gate is not None else 0

    def additional_share(self, tournament_id: int, index: int) -> tuple[str, RecipientShare]:
        self.tournament(tournament_id)
        return self._state.entry_fees.additional_share(tournament_id, index)

    def tournament_prizes(self, tournament_id: int) -> list[Prize]:
        self.tournament(tournament_id)
        return self._state.prizes.for_context(tournament_id)

    def tournament_registrations(self, tournament_id: int) -> list[Registration]:
        """Entries of one tournament in entry order, banned ones included."""
        self.tournament(tournament_id)
        return [
            dataclasses.replace(r) for r in self._state.registrations.registrations_for(tournament_id)
        ]

    def reward_amount(self, tournament_id: int, descriptor: RewardDescriptor) -> Payout:
        """Who would receive what for this reward right now (no phase or claim check)."""
        state = self._state
        return self._resolve_payout(state, self._tournament(state, tournament_id), descriptor)

    def platform_metrics(self) -> PlatformCounters:
        return dataclasses.replace(self._state.counters)

    # ------------------------------------------------------------------
    # Tournament lifecycle
    # ------------------------------------------------------------------

    def create_tournament(
        self,
        creator: str,
        metadata: Metadata,
        schedule: Schedule,
        game_config: GameConfig,
        entry_fee: EntryFee | None = None,
        entry_requirement: EntryRequirement | None = None,
        creator_rewards_address: str | None = None,
    ) -> Tournament:
        """
        Create a tournament.

        Raises:
            InvalidScheduleError: schedule out of order, in the past, or outside limits.
            UnknownGameError: game_config.address isn't a known game.
            InvalidEntryFeeError / InvalidDistributionError: malformed entry fee.
        """
        with self._atomic() as state:
            now = self.clock()
            validate_schedule(schedule, now, self.config.schedule)
            self._game(game_config.address)
            if entry_fee is not None:
                validate_entry_fee(entry_fee, self.config.settlement.max_additional_shares)

            tournament_id = len(state.tournaments) + 1
            self._touch(tournament_id)
            fixed_positions = entry_fee.fixed_positions if entry_fee is not None else None
            leaderboard_size = fixed_positions or self.config.settlement.default_leaderboard_size

            tournament = Tournament(
                id=tournament_id,
                created_at=now,
                created_by=creator,
                creator_rewards_address=creator_rewards_address or creator,
                metadata=metadata,
                schedule=schedule,
                game_config=game_config,
                entry_fee=entry_fee,
                entry_requirement=entry_requirement,
                leaderboard_size=leaderboard_size,
            )
            state.tournaments[tournament_id] = tournament
            state.leaderboards[tournament_id] = Leaderboard(capacity=leaderboard_size)
            if entry_fee is not None:
                state.entry_fees.set(tournament_id, entry_fee)
            if entry_requirement is not None:
                state.gates[tournament_id] = build_gate(
                    entry_requirement, tournament_id, self.tokens, self.resolve_extension
                )

            state.counters.total_tournaments += 1
            self._emit(TournamentCreated(tournament))
            self._emit_metrics(state)

        logger.info(f"Tournament {tournament_id} '{metadata.name}' created by {creator}")
        return tournament

    def enter_tournament(
        self,
        tournament_id: int,
        player: str,
        proof: QualificationProof | None = None,
        player_name: str = "",
    ) -> tuple[int, int]:
        """
        Mint a game token for `player`, register it and collect the entry fee (if any).

        Returns:
            (game_token_id, entry_number)
        """
        with self._atomic() as state:
            tournament = self._tournament(state, tournament_id)
            gate = state.gates.get(tournament_id)
            check_admission(gate, tournament_id, tournament.schedule, self.clock(), player, proof)

            entry_fee = state.entry_fees.get(tournament_id)
            game = self._game(tournament.game_config.address)
            token_id = game.mint(player, tournament.game_config.settings_id, player_name)
            registration = record_entry(
                state.registrations, gate, tournament_id, game.address, token_id, player, proof
            )
            state.entry_proofs.setdefault(tournament_id, {})[(game.address, token_id)] = proof
            state.counters.total_entries += 1

            # Fee last: nothing after it can fail
            if entry_fee is not None:
                self.tokens.transfer_from(entry_fee.token_address, player, self.address, entry_fee.amount)

            self._emit(_registration_event(registration))
            if gate is not None:
                self._emit(
                    QualificationEntriesUpdated(
                        tournament_id, proof, gate.entry_count(tournament_id, proof)
                    )
                )
            self._emit_metrics(state)

        logger.info(
            f"Tournament {tournament_id}: {player} entered with token {token_id} "
            f"(entry #{registration.entry_number})"
        )
        return token_id, registration.entry_number

    def validate_entry(
        self, tournament_id: int, token_id: int, proof: QualificationProof | None = None
    ) -> bool:
        """
        Re-check an entry against its requirement and ban it if it no longer qualifies.

        Anyone may call this before the game goes LIVE. The proof recorded at entry
        is used; a supplied proof must match it.

        Returns:
            True if the entry was banned by this call.
        """
        with self._atomic() as state:
            tournament = self._tournament(state, tournament_id)
            self._require_phase(tournament, Phase.SCHEDULED, Phase.REGISTRATION, Phase.STAGING)

            game = self._game(tournament.game_config.address)
            registration = state.registrations.get_registration(game.address, token_id)
            require_active(registration, tournament_id)

            recorded = state.entry_proofs.get(tournament_id, {}).get((game.address, token_id))
            if proof is not None and proof != recorded:
                raise EntryNotQualifiedError(
                    f"token {token_id}: proof {proof!r} doesn't match the one used to enter"
                )

            gate = state.gates.get(tournament_id)
            if gate is None:
                return False

            owner = game.owner_of(token_id)
            if not gate.should_ban(tournament_id, token_id, owner, recorded):
                return False

            registration = state.registrations.ban(game.address, token_id)
            gate.remove_entry(tournament_id, token_id, owner, recorded)
            self._emit(_registration_event(registration))
            self._emit(
                QualificationEntriesUpdated(
                    tournament_id, recorded, gate.entry_count(tournament_id, recorded)
                )
            )

        logger.info(f"Tournament {tournament_id}: token {token_id} banned")
        return True

    def submit_score(self, tournament_id: int, token_id: int, position: int, caller: str) -> None:
        """
        Place a token's final score on the leaderboard at `position` (1 = best).

        Raises:
            WrongPhaseError: not in SUBMISSION.
            NotRegisteredError / BannedEntryError: entry isn't active in this tournament.
            AlreadySubmittedError: the token already submitted.
            NotTokenOwnerError: caller doesn't own the game token.
            InvalidPositionError: position is out of range or out of order.
        """
        with self._atomic() as state:
            tournament = self._tournament(state, tournament_id)
            self._require_phase(tournament, Phase.SUBMISSION)

            game = self._game(tournament.game_config.address)
            registration = state.registrations.get_registration(game.address, token_id)
            require_active(registration, tournament_id)
            if registration.has_submitted:
                raise AlreadySubmittedError(f"token {token_id} already submitted")

            owner = game.owner_of(token_id)
            if owner.lower() != caller.lower():
                raise NotTokenOwnerError(f"{caller} doesn't own token {token_id}")

            score = game.score(token_id)
            leaderboard = state.leaderboards[tournament_id]
            leaderboard.submit(token_id, score, position)
            registration = state.registrations.mark_submitted(game.address, token_id)

            self._emit(LeaderboardUpdated(tournament_id, tuple(leaderboard.token_ids())))
            self._emit(_registration_event(registration))

        logger.info(
            f"Tournament {tournament_id}: token {token_id} scored {score}, position {position}"
        )

    # ------------------------------------------------------------------
    # Prizes and claims
    # ------------------------------------------------------------------

    def add_prize(
        self,
        tournament_id: int,
        sponsor: str,
        token_address: str,
        token_type: TokenTypeData,
        position: int | None = None,
    ) -> Prize:
        """
        Escrow a sponsored prize. position None/0 spreads an ERC20 prize with its
        own distribution; otherwise the whole prize goes to that position.
        """
        with self._atomic() as state:
            tournament = self._tournament(state, tournament_id)
            phase = self._phase(tournament)
            if phase == Phase.FINALIZED:
                raise WrongPhaseError(f"tournament {tournament_id} is already finalized")

            validate_prize(token_type, position)
            reach = position or token_type.distribution_count
            if reach > tournament.leaderboard_size:
                raise InvalidPositionError(
                    f"prize reaches position {reach}, leaderboard holds {tournament.leaderboard_size}"
                )

            if isinstance(token_type, ERC721Data):
                self.tokens.transfer_nft(token_address, sponsor, self.address, token_type.token_id)
            else:
                self.tokens.transfer_from(token_address, sponsor, self.address, token_type.amount)

            prize = state.prizes.add(tournament_id, token_address, token_type, sponsor, position)
            state.counters.total_prizes += 1

            self._emit(
                PrizeAdded(
                    tournament_id=tournament_id,
                    prize_id=prize.id,
                    payout_position=prize.payout_position,
                    token_address=token_address,
                    token_type=prize.token_type,
                    sponsor_address=sponsor,
                )
            )
            self._emit_metrics(state)

        logger.info(f"Tournament {tournament_id}: prize {prize.id} added by {sponsor}")
        return prize

    def claim_reward(self, tournament_id: int, descriptor: RewardDescriptor) -> Payout:
        """
        Pay out one reward. Anyone may trigger it; the payout always goes to the
        rightful recipient.

        Raises:
            WrongPhaseError: tournament not FINALIZED.
            AlreadyClaimedError: reward already paid.
            NothingToClaimError: reward resolves to nothing.
            TransferFailedError: the payout transfer failed (claim rolled back).
        """
        with self._atomic() as state:
            tournament = self._tournament(state, tournament_id)
            self._require_phase(tournament, Phase.FINALIZED)

            claims = state.claims
            reward_key = claims.hash_of(descriptor)
            if claims.is_claimed_by_hash(tournament_id, reward_key):
                raise AlreadyClaimedError(f"tournament {tournament_id}: {descriptor!r} already claimed")

            payout = self._resolve_payout(state, tournament, descriptor)

            # Flag first: the transfer below may call back into the engine
            claims.set_claimed_by_hash(tournament_id, reward_key)
            if isinstance(descriptor, AdditionalShareReward):
                state.entry_fees.mark_additional_claimed(tournament_id, descriptor.index)
            state.counters.total_claims += 1

            self._emit(RewardClaimed(tournament_id, descriptor, payout.recipient, payout.amount))
            self._emit_metrics(state)

            self._pay(payout)

        logger.info(
            f"Tournament {tournament_id}: {descriptor!r} paid to {payout.recipient} "
            f"({payout.nft_token_id if payout.nft_token_id is not None else payout.amount})"
        )
        return payout

    def _pay(self, payout: Payout) -> None:
        if payout.nft_token_id is not None:
            self.tokens.transfer_nft(
                payout.token_address, self.address, payout.recipient, payout.nft_token_id
            )
        else:
            self.tokens.transfer(payout.token_address, self.address, payout.recipient, payout.amount)

    # ------------------------------------------------------------------
    # Payout resolution
    # ------------------------------------------------------------------

    def _resolve_payout(
        self, state: EngineState, tournament: Tournament, descriptor: RewardDescriptor
    ) -> Payout:
        if isinstance(descriptor, (PrizeSingle, PrizeDistributed)):
            return self._prize_payout(state, tournament, descriptor)

        entry_fee = state.entry_fees.get(tournament.id)
        if entry_fee is None:
            raise NothingToClaimError(f"tournament {tournament.id} has no entry fee")

        entries = state.registrations.entry_count(tournament.id)
        pool = fees.pool_total(entry_fee, entries)

        if isinstance(descriptor, EntryFeePosition):
            positions = fees.payout_positions(entry_fee, entries, tournament.leaderboard_size)
            amount = fees.position_payout(entry_fee, entries, descriptor.position, positions)
            winner = self._position_owner(state, tournament, descriptor.position)
            recipient = winner or tournament.creator_rewards_address
        elif isinstance(descriptor, TournamentCreatorShare):
            amount = fees.share_payout(pool, entry_fee.tournament_creator_share or 0)
            recipient = tournament.creator_rewards_address
        elif isinstance(descriptor, GameCreatorShare):
            amount = fees.share_payout(pool, entry_fee.game_creator_share or 0)
            recipient = self._game(tournament.game_config.address).creator_address()
        elif isinstance(descriptor, RefundShare):
            game = self._game(tournament.game_config.address)
            registration = state.registrations.get_registration(game.address, descriptor.token_id)
            require_active(registration, tournament.id)
            amount = fees.refund_amount(entry_fee)
            recipient = game.owner_of(descriptor.token_id)
        elif isinstance(descriptor, AdditionalShareReward):
            recipient, share = state.entry_fees.additional_share(tournament.id, descriptor.index)
            amount = fees.share_payout(pool, share.share_bps)
        else:
            raise TypeError(f"not a reward descriptor: {descriptor!r}")

        if amount == 0:
            raise NothingToClaimError(f"tournament {tournament.id}: {descriptor!r} pays nothing")
        return Payout(recipient=recipient, token_address=entry_fee.token_address, amount=amount)

    def _prize_payout(
        self, state: EngineState, tournament: Tournament, descriptor: PrizeSingle | PrizeDistributed
    ) -> Payout:
        prize = state.prizes.get(descriptor.prize_id)
        if prize.context_id != tournament.id:
            raise InvalidPrizeError(f"prize {prize.id} belongs to tournament {prize.context_id}")

        if isinstance(descriptor, PrizeSingle):
            if prize.is_distributed:
                raise InvalidPrizeError(f"prize {prize.id} is distributed; claim it by index")
            winner = self._position_owner(state, tournament, prize.payout_position)
            recipient = winner or prize.sponsor_address
            if isinstance(prize.token_type, ERC721Data):
                return Payout(recipient, prize.token_address, nft_token_id=prize.token_type.token_id)
            return Payout(recipient, prize.token_address, amount=prize.token_type.amount)

        amount = distributed_amount(prize, descriptor.index)
        if amount == 0:
            raise NothingToClaimError(f"prize {prize.id} slice {descriptor.index} pays nothing")
        winner = self._position_owner(state, tournament, descriptor.index + 1)
        return Payout(winner or prize.sponsor_address, prize.token_address, amount=amount)


def _registration_event(registration: Registration) -> TournamentRegistration:
    return TournamentRegistration(
        tournament_id=registration.context_id,
        game_address=registration.game_address,
        game_token_id=registration.game_token_id,
        entry_number=registration.entry_number,
        has_submitted=registration.has_submitted,
        is_banned=registration.is_banned,
    )
