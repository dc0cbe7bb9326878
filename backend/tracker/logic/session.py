"""
Session creation and round progression.

Every operation takes a frozen Session and returns a new one. Round state
is a small machine over (prevailing_wind, dealer_rotation_count): each
dealer rotation advances the count, every fourth rotation advances the
prevailing wind, and completing North's fourth rotation ends the match.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tracker.logic.enums import NUM_WINDS, Wind
from tracker.logic.exceptions import InvalidSessionError, SessionClosedError
from tracker.logic.settings import NUM_PLAYERS, SessionSettings
from tracker.logic.state import PlayerState, Session, validate_seat
from tracker.logic.state_utils import add_deltas, append_entry, validate_deltas

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from tracker.logic.state import ScoreEntry

logger = logging.getLogger(__name__)


def _slot(values: Sequence[str], index: int) -> str:
    return values[index] if index < len(values) else ""


def create_session(
    player_names: Sequence[str],
    *,
    player_emojis: Sequence[str] = (),
    player_colors: Sequence[str] = (),
    profile_ids: Sequence[str | None] = (),
    settings: SessionSettings | None = None,
    session_id: str | None = None,
    now: datetime | None = None,
) -> Session:
    """
    Create a new session with four players at the starting balance.

    Emoji, color and profile arrays are parallel to player_names; missing
    slots default to "" (annotations) or None (profiles).
    """
    if len(player_names) != NUM_PLAYERS:
        raise InvalidSessionError(f"Expected {NUM_PLAYERS} player names, got {len(player_names)}")
    if any(not name.strip() for name in player_names):
        raise InvalidSessionError("Player names must not be blank")
    if len(profile_ids) > NUM_PLAYERS:
        raise InvalidSessionError(f"Expected at most {NUM_PLAYERS} profile ids, got {len(profile_ids)}")

    profiles = tuple(profile_ids) + (None,) * (NUM_PLAYERS - len(profile_ids))
    linked = [p for p in profiles if p is not None]
    if len(linked) != len(set(linked)):
        raise InvalidSessionError("A profile can only occupy one seat")

    session_settings = settings or SessionSettings()
    players = tuple(
        PlayerState(
            name=name,
            emoji=_slot(player_emojis, i),
            color_hex=_slot(player_colors, i),
            points=session_settings.starting_points,
        )
        for i, name in enumerate(player_names)
    )

    fields: dict[str, object] = {
        "settings": session_settings,
        "players": players,
        "profile_ids": profiles,
    }
    if session_id is not None:
        fields["session_id"] = session_id
    if now is not None:
        fields["created_at"] = now
    return Session.model_validate(fields)


def advance_round(session: Session, *, dealer_won: bool) -> Session:
    """
    Advance dealer and round state after a played hand.

    A dealer win only adds a honba. Otherwise honba resets, the dealer seat
    and rotation count move on, and a fourth rotation moves the prevailing
    wind; after North the session is flagged pending game over instead.
    """
    if dealer_won:
        return session.model_copy(update={"honba": session.honba + 1})

    rotation = session.dealer_rotation_count + 1
    wind = session.prevailing_wind
    pending_game_over = session.pending_game_over

    if rotation >= NUM_WINDS:
        rotation = 0
        if wind == Wind.NORTH:
            pending_game_over = True
        else:
            wind = wind.next

    return session.model_copy(
        update={
            "honba": 0,
            "dealer_seat": (session.dealer_seat + 1) % NUM_PLAYERS,
            "dealer_rotation_count": rotation,
            "prevailing_wind": wind,
            "pending_game_over": pending_game_over,
        },
    )


def _ensure_open(session: Session, *, allow_pending_game_over: bool) -> None:
    if not session.active:
        raise SessionClosedError(f"Session '{session.session_id}' has ended")
    if session.pending_game_over and not allow_pending_game_over:
        raise SessionClosedError(f"Session '{session.session_id}' is over, no further hands can be scored")


def apply_score(
    session: Session,
    deltas: Sequence[int],
    entry: ScoreEntry,
    *,
    dealer_won: bool,
) -> Session:
    """Apply a scored hand: update balances, append the entry, advance the round."""
    _ensure_open(session, allow_pending_game_over=False)
    checked = validate_deltas(deltas)
    if sum(checked) != 0:
        logger.warning("non zero-sum deltas applied: session=%s deltas=%s", session.session_id, checked)

    updated = append_entry(add_deltas(session, checked), entry)
    updated = advance_round(updated, dealer_won=dealer_won)
    logger.debug(
        "applied score: session=%s deltas=%s round=%s honba=%d",
        session.session_id,
        checked,
        updated.round_label,
        updated.honba,
    )
    return updated


def apply_manual_adjust(session: Session, deltas: Sequence[int], entry: ScoreEntry) -> Session:
    """Apply a correction: update balances and append the entry, round state untouched."""
    _ensure_open(session, allow_pending_game_over=True)
    return append_entry(add_deltas(session, deltas), entry)


def complete_intro(session: Session, *, seat_order: Sequence[int], dealer_seat: int) -> Session:
    """
    Fix the seating chosen by the opening draw.

    Slot k receives the player (and profile link) previously at
    seat_order[k]; the dealer seat is set and intro_completed flagged.
    """
    if session.intro_completed:
        raise InvalidSessionError("Seating has already been decided")
    if session.history:
        raise InvalidSessionError("Seating cannot change after hands have been scored")
    if sorted(seat_order) != list(range(NUM_PLAYERS)):
        raise InvalidSessionError(f"Seat order must be a permutation of 0-{NUM_PLAYERS - 1}, got {list(seat_order)}")
    validate_seat(dealer_seat, label="dealer seat")

    return session.model_copy(
        update={
            "players": tuple(session.players[i] for i in seat_order),
            "profile_ids": tuple(session.profile_ids[i] for i in seat_order),
            "dealer_seat": dealer_seat,
            "intro_completed": True,
        },
    )


def end_session(session: Session) -> Session:
    """Mark the session inactive; a session can only be ended once."""
    if not session.active:
        raise SessionClosedError(f"Session '{session.session_id}' has already ended")
    return session.model_copy(update={"active": False})
