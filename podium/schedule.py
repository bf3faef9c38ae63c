"""
podium/schedule.py - Tournament lifecycle phases derived from time.

The phase is never stored. Every query recomputes it from the schedule and the
current timestamp, so it can't drift out of sync with the schedule:

    SCHEDULED -> REGISTRATION -> STAGING -> LIVE -> SUBMISSION -> FINALIZED

All periods are half-open [start, end). Without a registration window the
tournament goes straight from SCHEDULED to LIVE.
"""

from dataclasses import dataclass
from enum import IntEnum

from podium.errors import InvalidScheduleError

DAY = 86_400


class Phase(IntEnum):
    SCHEDULED = 0
    REGISTRATION = 1
    STAGING = 2
    LIVE = 3
    SUBMISSION = 4
    FINALIZED = 5


# ============================================================================
# Data Types
# ============================================================================


@dataclass(frozen=True)
class Period:
    """Half-open time window [start, end) in unix seconds."""

    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start

    def contains(self, now: int) -> bool:
        return self.start <= now < self.end


@dataclass(frozen=True)
class Schedule:
    game: Period
    submission_duration: int
    registration: Period | None = None

    @property
    def submission_end(self) -> int:
        return self.game.end + self.submission_duration

    @property
    def opens_at(self) -> int:
        """First instant anything happens: registration start, or game start."""
        return self.registration.start if self.registration else self.game.start


@dataclass(frozen=True)
class ScheduleLimits:
    """Bounds enforced when a tournament is created (seconds)."""

    min_registration_period: int = 300
    max_registration_period: int = 30 * DAY
    min_game_period: int = 300
    max_game_period: int = 180 * DAY
    min_submission_period: int = 300
    max_submission_period: int = 14 * DAY


DEFAULT_LIMITS = ScheduleLimits()


# ============================================================================
# Phase derivation
# ============================================================================


def current_phase(now: int, schedule: Schedule) -> Phase:
    """Map a timestamp onto the lifecycle. Pure; same inputs, same phase."""
    registration = schedule.registration

    if now < schedule.opens_at:
        return Phase.SCHEDULED
    if registration is not None and now < registration.end:
        return Phase.REGISTRATION
    if now < schedule.game.start:
        return Phase.STAGING
    if now < schedule.game.end:
        return Phase.LIVE
    if now < schedule.submission_end:
        return Phase.SUBMISSION
    return Phase.FINALIZED


def is_registration_open(now: int, schedule: Schedule) -> bool:
    """Registration window if there is one; otherwise open entry until the game ends."""
    phase = current_phase(now, schedule)
    if schedule.registration is not None:
        return phase == Phase.REGISTRATION
    return phase < Phase.SUBMISSION


def is_submission_open(now: int, schedule: Schedule) -> bool:
    return current_phase(now, schedule) == Phase.SUBMISSION


def is_finalized(now: int, schedule: Schedule) -> bool:
    return current_phase(now, schedule) == Phase.FINALIZED


# ============================================================================
# Validation
# ============================================================================


def validate_schedule(
    schedule: Schedule,
    now: int,
    limits: ScheduleLimits = DEFAULT_LIMITS,
) -> None:
    """Check ordering and duration limits for a new tournament.

    Raises:
        InvalidScheduleError: describing the first violated rule.
    """
    game = schedule.game
    registration = schedule.registration

    if schedule.opens_at < now:
        raise InvalidScheduleError(f"schedule opens at {schedule.opens_at}, before now ({now})")

    if game.end <= game.start:
        raise InvalidScheduleError(f"game period [{game.start}, {game.end}) is empty")
    _check_range("game period", game.duration, limits.min_game_period, limits.max_game_period)

    if registration is not None:
        if registration.end <= registration.start:
            raise InvalidScheduleError(
                f"registration period [{registration.start}, {registration.end}) is empty"
            )
        if registration.end > game.start:
            raise InvalidScheduleError(
                f"registration ends at {registration.end}, after game start {game.start}"
            )
        _check_range(
            "registration period",
            registration.duration,
            limits.min_registration_period,
            limits.max_registration_period,
        )

    _check_range(
        "submission duration",
        schedule.submission_duration,
        limits.min_submission_period,
        limits.max_submission_period,
    )


def _check_range(label: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise InvalidScheduleError(f"{label} {value}s outside {low}..{high}s")
