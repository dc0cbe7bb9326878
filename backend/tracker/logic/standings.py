"""
Final placements and per-profile results at the end of a match.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from tracker.logic.enums import WinType

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tracker.logic.state import PlayerState, ScoreEntry, Session


class PlayerStanding(BaseModel):
    """One seat's final placement (1 = first)."""

    model_config = ConfigDict(frozen=True)

    placement: int
    seat: int
    name: str
    points: int


class GameResult(BaseModel):
    """Result of one finished match, recorded against a player profile."""

    model_config = ConfigDict(frozen=True)

    result_id: str = Field(default_factory=lambda: uuid4().hex)
    session_id: str
    date_played: datetime
    final_points: int
    placement: int = Field(ge=1, le=4)


def rank_players(players: Sequence[PlayerState]) -> list[PlayerStanding]:
    """
    Rank seats by points, highest first.

    sorted() is stable, so tied players keep their original seat order.
    """
    ordered = sorted(enumerate(players), key=lambda item: -item[1].points)
    return [
        PlayerStanding(placement=place, seat=seat, name=player.name, points=player.points)
        for place, (seat, player) in enumerate(ordered, start=1)
    ]


def build_game_results(
    session: Session,
    *,
    played_at: datetime | None = None,
) -> list[tuple[str, GameResult]]:
    """Return (profile_id, result) for every seat linked to a profile, in placement order."""
    date_played = played_at or datetime.now(tz=UTC)
    results = []
    for standing in rank_players(session.players):
        profile_id = session.profile_ids[standing.seat]
        if profile_id is None:
            continue
        result = GameResult(
            session_id=session.session_id,
            date_played=date_played,
            final_points=standing.points,
            placement=standing.placement,
        )
        results.append((profile_id, result))
    return results


def biggest_win(history: Sequence[ScoreEntry]) -> ScoreEntry | None:
    """Played hand with the largest single delta; the earliest wins ties."""
    best: ScoreEntry | None = None
    best_value = -1
    for entry in history:
        if entry.win_type == WinType.MANUAL:
            continue
        value = max(abs(delta) for delta in entry.deltas)
        if value > best_value:
            best, best_value = entry, value
    return best
