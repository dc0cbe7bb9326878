from pydantic import BaseModel, ConfigDict, Field

from tracker.logic.settings import (
    DEFAULT_MIN_FAN,
    DEFAULT_MULTIPLIER,
    DEFAULT_STARTING_POINTS,
    MAX_MIN_FAN,
    NUM_PLAYERS,
)


class PlayerSpec(BaseModel):
    """One seat at session creation. profile_id links the seat to a stats profile."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=50)
    emoji: str = Field(default="", max_length=16)
    color_hex: str = Field(default="", pattern=r"^(#[0-9a-fA-F]{6})?$")
    profile_id: str | None = Field(default=None, min_length=1, max_length=100)


class CreateSessionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    players: list[PlayerSpec] = Field(min_length=NUM_PLAYERS, max_length=NUM_PLAYERS)
    starting_points: int = DEFAULT_STARTING_POINTS
    multiplier: int = Field(default=DEFAULT_MULTIPLIER, ge=1)
    min_fan: int = Field(default=DEFAULT_MIN_FAN, ge=0, le=MAX_MIN_FAN)


class IntroRequest(BaseModel):
    """Opening seating; omitted fields are drawn at random."""

    model_config = ConfigDict(extra="forbid")

    seat_order: list[int] | None = Field(default=None, min_length=NUM_PLAYERS, max_length=NUM_PLAYERS)
    dealer_seat: int | None = Field(default=None, ge=0, lt=NUM_PLAYERS)


class ManualAdjustRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    seat: int = Field(ge=0, lt=NUM_PLAYERS)
    amount: int
    reason: str = Field(default="", max_length=200)
