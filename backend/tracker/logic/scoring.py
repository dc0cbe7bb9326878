"""
Hong Kong style fan-to-points scoring.

Stateless functions mapping a fan count, multiplier, win type and seats to a
four-element point delta vector, plus the summary strings stored in history.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tracker.logic.enums import WinType
from tracker.logic.exceptions import SeatCollisionError
from tracker.logic.settings import NUM_PLAYERS
from tracker.logic.state import validate_seat

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tracker.logic.state import PlayerState

# Fan-to-points table from the HK scoring guide: doubles up to 4 fan, then
# doubles every 2 fan. Index is the fan count; index 13 is the limit hand.
FAN_POINTS: tuple[int, ...] = (1, 2, 4, 8, 16, 24, 32, 48, 64, 96, 128, 192, 256, 384)

LIMIT_FAN = 13
LIMIT_POINTS = FAN_POINTS[LIMIT_FAN]
MANUAL_SUMMARY = "Manual adjustment"


def points(fan: int) -> int:
    """Base points for a fan count; >=13 is the limit, negatives clamp to 0 fan."""
    if fan >= LIMIT_FAN:
        return LIMIT_POINTS
    if fan < 0:
        return FAN_POINTS[0]
    return FAN_POINTS[fan]


def _check_multiplier(multiplier: int) -> None:
    if multiplier < 1:
        raise ValueError(f"Multiplier must be >= 1, got {multiplier}")


def tsumo_deltas(fan: int, multiplier: int, winner_seat: int) -> list[int]:
    """Self-draw: each of the three other seats pays points(fan) * multiplier."""
    _check_multiplier(multiplier)
    validate_seat(winner_seat, label="winner seat")
    payment = points(fan) * multiplier
    deltas = [-payment] * NUM_PLAYERS
    deltas[winner_seat] = payment * (NUM_PLAYERS - 1)
    return deltas


def deal_in_deltas(fan: int, multiplier: int, winner_seat: int, discarder_seat: int) -> list[int]:
    """
    Win off a discard: the discarder alone pays double the tsumo rate.

    Callers resolve winner/discarder collisions first (see resolve_discarder).
    """
    _check_multiplier(multiplier)
    validate_seat(winner_seat, label="winner seat")
    validate_seat(discarder_seat, label="discarder seat")
    if winner_seat == discarder_seat:
        raise SeatCollisionError(f"Winner and discarder are both seat {winner_seat}")
    payment = points(fan) * multiplier * 2
    deltas = [0] * NUM_PLAYERS
    deltas[discarder_seat] = -payment
    deltas[winner_seat] = payment
    return deltas


def preview_lines(
    fan: int,
    multiplier: int,
    win_type: WinType,
    winner_seat: int,
    discarder_seat: int | None,
    players: Sequence[PlayerState],
) -> list[tuple[str, int]]:
    """Pair each player's name with the delta a confirmed hand would apply, in seat order."""
    if win_type == WinType.TSUMO:
        deltas = tsumo_deltas(fan, multiplier, winner_seat)
    elif win_type == WinType.DEAL_IN:
        if discarder_seat is None:
            return []
        deltas = deal_in_deltas(fan, multiplier, winner_seat, discarder_seat)
    else:
        # manual deltas are supplied by the caller
        return []
    return [(player.name, delta) for player, delta in zip(players, deltas, strict=True)]


def _signed(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)


def fan_label(fan: int) -> str:
    return "Limit" if fan >= LIMIT_FAN else f"{fan} fan"


def summary_string(
    winner_name: str,
    win_type: WinType,
    fan: int,
    discarder_name: str | None,
    winner_delta: int,
) -> str:
    """Human-readable one-line summary stored on a history entry."""
    if win_type == WinType.TSUMO:
        return f"{winner_name} tsumo {fan_label(fan)} ({_signed(winner_delta)})"
    if win_type == WinType.DEAL_IN:
        source = f" off {discarder_name}" if discarder_name is not None else ""
        return f"{winner_name} wins {fan_label(fan)}{source} ({_signed(winner_delta)})"
    return MANUAL_SUMMARY


def manual_summary(player_name: str, amount: int, reason: str = "") -> str:
    """Summary for a manual adjustment, e.g. 'Amy: -500 (penalty)'."""
    note = reason or MANUAL_SUMMARY
    return f"{player_name}: {_signed(amount)} ({note})"


def effective_fan(fan: int, *, is_limit_hand: bool = False) -> int:
    return LIMIT_FAN if is_limit_hand else fan


def meets_min_fan(fan: int, min_fan: int) -> bool:
    """Minimum-fan gate; a min_fan of 0 disables it."""
    return min_fan == 0 or fan >= min_fan


def resolve_discarder(winner_seat: int, discarder_seat: int) -> int:
    """Replace a discarder that collides with the winner by the next seat."""
    if discarder_seat == winner_seat:
        return (winner_seat + 1) % NUM_PLAYERS
    return discarder_seat
