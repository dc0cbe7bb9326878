"""
Immutable state update utilities using Pydantic model_copy.

These helpers never mutate their input; they return new state objects with
the requested changes applied.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tracker.logic.exceptions import InvalidDeltasError
from tracker.logic.settings import NUM_PLAYERS

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tracker.logic.state import ScoreEntry, Session


def validate_deltas(deltas: Sequence[int]) -> tuple[int, ...]:
    """Return deltas as a tuple, raising InvalidDeltasError unless there is one per seat."""
    if len(deltas) != NUM_PLAYERS:
        raise InvalidDeltasError(f"Expected {NUM_PLAYERS} deltas, got {len(deltas)}")
    return tuple(int(d) for d in deltas)


def add_deltas(session: Session, deltas: Sequence[int]) -> Session:
    """Return new session with deltas[i] added to seat i's balance."""
    checked = validate_deltas(deltas)
    players = tuple(
        player.model_copy(update={"points": player.points + delta})
        for player, delta in zip(session.players, checked, strict=True)
    )
    return session.model_copy(update={"players": players})


def append_entry(session: Session, entry: ScoreEntry) -> Session:
    """Return new session with entry appended to the end of history."""
    return session.model_copy(update={"history": (*session.history, entry)})
