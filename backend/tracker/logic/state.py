"""
Frozen state models for a scorekeeping session.

All models are immutable; operations in tracker.logic.session return new
instances via model_copy instead of mutating in place.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Self
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tracker.logic.enums import NUM_WINDS, Wind, WinType
from tracker.logic.exceptions import InvalidSeatError
from tracker.logic.settings import NUM_PLAYERS, SessionSettings

MANUAL_WINNER_SEAT = -1


def _new_id() -> str:
    return uuid4().hex


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def validate_seat(seat: int, *, label: str = "seat") -> int:
    """Return seat unchanged, raising InvalidSeatError when outside [0, 4)."""
    if not (0 <= seat < NUM_PLAYERS):
        raise InvalidSeatError(f"Invalid {label} {seat}, expected 0-{NUM_PLAYERS - 1}")
    return seat


class PlayerState(BaseModel):
    """
    One seat's identity and point balance.

    Balance has no lower bound.
    """

    model_config = ConfigDict(frozen=True)

    player_id: str = Field(default_factory=_new_id)
    name: str
    emoji: str = ""
    color_hex: str = ""
    points: int


class ScoreEntry(BaseModel):
    """
    Immutable history record for a scored hand or a manual adjustment.

    Wind, dealer seat and honba are captured as they were when the hand was
    played, before any round advance.
    """

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=_new_id)
    timestamp: datetime = Field(default_factory=_utc_now)
    prevailing_wind: Wind
    dealer_seat: int = Field(ge=0, lt=NUM_PLAYERS)
    honba: int = Field(ge=0)
    win_type: WinType
    winner_seat: int  # MANUAL_WINNER_SEAT for manual entries
    discarder_seat: int | None = None  # deal-in only
    fan: int = Field(ge=0)
    deltas: tuple[int, int, int, int]
    summary: str

    @model_validator(mode="after")
    def _validate_seats(self) -> Self:
        if self.win_type == WinType.MANUAL:
            if self.winner_seat != MANUAL_WINNER_SEAT or self.discarder_seat is not None:
                raise ValueError("Manual entries have no winner or discarder")
            return self
        if not (0 <= self.winner_seat < NUM_PLAYERS):
            raise ValueError(f"winner_seat {self.winner_seat} out of range")
        if self.win_type == WinType.TSUMO:
            if self.discarder_seat is not None:
                raise ValueError("Tsumo entries have no discarder")
            return self
        if self.discarder_seat is None or not (0 <= self.discarder_seat < NUM_PLAYERS):
            raise ValueError("Deal-in entries need a discarder seat in range")
        if self.discarder_seat == self.winner_seat:
            raise ValueError("Deal-in discarder must differ from the winner")
        return self


class Session(BaseModel):
    """
    Aggregate root for one match.

    Holds exactly four players indexed by seat, the append-only history and
    the round state: prevailing wind, dealer seat, the dealer rotation count
    within the current prevailing wind, and honba.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=_utc_now)

    # lifecycle flags
    active: bool = True
    pending_game_over: bool = False
    intro_completed: bool = False

    settings: SessionSettings = Field(default_factory=SessionSettings)

    # round state
    prevailing_wind: Wind = Wind.EAST
    dealer_seat: int = Field(default=0, ge=0, lt=NUM_PLAYERS)
    dealer_rotation_count: int = Field(default=0, ge=0, lt=NUM_WINDS)
    honba: int = Field(default=0, ge=0)

    players: tuple[PlayerState, ...] = Field(min_length=NUM_PLAYERS, max_length=NUM_PLAYERS)
    history: tuple[ScoreEntry, ...] = ()
    # external profile reference per seat, only read when recording results
    profile_ids: tuple[str | None, ...] = Field(
        default=(None,) * NUM_PLAYERS,
        min_length=NUM_PLAYERS,
        max_length=NUM_PLAYERS,
    )

    def seat_wind(self, seat: int) -> Wind:
        """Wind of a seat relative to the current dealer (dealer is always East)."""
        validate_seat(seat)
        return Wind((seat - self.dealer_seat + NUM_WINDS) % NUM_WINDS)

    @property
    def round_label(self) -> str:
        """Display label such as '東1' for East round, first dealer."""
        return f"{self.prevailing_wind.character}{self.dealer_rotation_count + 1}"

    @property
    def balances(self) -> tuple[int, ...]:
        return tuple(p.points for p in self.players)
