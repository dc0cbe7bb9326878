"""
Enum definitions for scorekeeping concepts.
"""

from enum import Enum, IntEnum

NUM_WINDS = 4

_WIND_CHARACTERS = ("東", "南", "西", "北")


class Wind(IntEnum):
    """Compass wind, used both as prevailing wind and as seat wind."""

    EAST = 0
    SOUTH = 1
    WEST = 2
    NORTH = 3

    @property
    def character(self) -> str:
        return _WIND_CHARACTERS[self.value]

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def next(self) -> "Wind":
        """Following wind in East -> South -> West -> North -> East order."""
        return Wind((self.value + 1) % NUM_WINDS)


class WinType(str, Enum):
    """How a history entry came about."""

    TSUMO = "tsumo"  # self-drawn, all three others pay
    DEAL_IN = "deal-in"  # discarder alone pays
    MANUAL = "manual"  # correction, not a played hand
