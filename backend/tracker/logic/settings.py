"""Per-match scoring rules, fixed when a session is created."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

NUM_PLAYERS = 4
DEFAULT_STARTING_POINTS = 10000
DEFAULT_MULTIPLIER = 1
DEFAULT_MIN_FAN = 3
MAX_MIN_FAN = 13  # a minimum above the limit hand could never be met


class SessionSettings(BaseModel):
    """
    Static configuration for one match.

    min_fan of 0 disables the minimum-fan gate.
    """

    model_config = ConfigDict(frozen=True)

    starting_points: int = DEFAULT_STARTING_POINTS
    multiplier: int = Field(default=DEFAULT_MULTIPLIER, ge=1)
    min_fan: int = Field(default=DEFAULT_MIN_FAN, ge=0, le=MAX_MIN_FAN)
