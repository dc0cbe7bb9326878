"""
Scoring service: turns a confirmed scoring decision into a history entry.

This is the layer between user input and the session state machine. It
applies the minimum-fan gate, resolves a discarder that collides with the
winner, computes deltas, captures the round state in a ScoreEntry and
applies it.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tracker.logic.enums import WinType
from tracker.logic.exceptions import InvalidDeltasError, MinimumFanError
from tracker.logic.scoring import (
    deal_in_deltas,
    effective_fan,
    manual_summary,
    meets_min_fan,
    resolve_discarder,
    summary_string,
    tsumo_deltas,
)
from tracker.logic.session import apply_manual_adjust, apply_score
from tracker.logic.settings import NUM_PLAYERS
from tracker.logic.state import MANUAL_WINNER_SEAT, ScoreEntry, validate_seat

if TYPE_CHECKING:
    from tracker.logic.state import Session

logger = logging.getLogger(__name__)


class ScoringDecision(BaseModel):
    """A winning hand as entered by the players."""

    model_config = ConfigDict(frozen=True)

    win_type: WinType
    winner_seat: int = Field(ge=0, lt=NUM_PLAYERS)
    discarder_seat: int | None = Field(default=None, ge=0, lt=NUM_PLAYERS)
    fan: int = Field(default=0, ge=0)
    is_limit_hand: bool = False

    @model_validator(mode="after")
    def _validate_win_type(self) -> Self:
        if self.win_type == WinType.MANUAL:
            raise ValueError("Manual adjustments are not scoring decisions")
        if self.win_type == WinType.DEAL_IN and self.discarder_seat is None:
            raise ValueError("Deal-in decisions need a discarder seat")
        return self

    @property
    def effective_fan(self) -> int:
        return effective_fan(self.fan, is_limit_hand=self.is_limit_hand)


def effective_discarder(decision: ScoringDecision) -> int | None:
    """Discarder actually charged for a deal-in; None for tsumo."""
    if decision.win_type != WinType.DEAL_IN or decision.discarder_seat is None:
        return None
    return resolve_discarder(decision.winner_seat, decision.discarder_seat)


def decision_deltas(decision: ScoringDecision, multiplier: int) -> list[int]:
    fan = decision.effective_fan
    discarder = effective_discarder(decision)
    if discarder is None:
        return tsumo_deltas(fan, multiplier, decision.winner_seat)
    return deal_in_deltas(fan, multiplier, decision.winner_seat, discarder)


def score_hand(session: Session, decision: ScoringDecision, *, now: datetime | None = None) -> Session:
    """
    Score a winning hand and advance the round.

    Raises:
        MinimumFanError: If the effective fan is below the session minimum
        SessionClosedError: If the session no longer accepts hands

    """
    fan = decision.effective_fan
    if not meets_min_fan(fan, session.settings.min_fan):
        raise MinimumFanError(fan=fan, min_fan=session.settings.min_fan)

    discarder = effective_discarder(decision)
    if decision.discarder_seat is not None and discarder != decision.discarder_seat:
        logger.info(
            "discarder collided with winner, charging next seat: winner=%d discarder=%d",
            decision.winner_seat,
            discarder,
        )

    deltas = decision_deltas(decision, session.settings.multiplier)
    winner = session.players[decision.winner_seat]
    entry = ScoreEntry(
        timestamp=now or datetime.now(tz=UTC),
        prevailing_wind=session.prevailing_wind,
        dealer_seat=session.dealer_seat,
        honba=session.honba,
        win_type=decision.win_type,
        winner_seat=decision.winner_seat,
        discarder_seat=discarder,
        fan=fan,
        deltas=tuple(deltas),
        summary=summary_string(
            winner.name,
            decision.win_type,
            fan,
            session.players[discarder].name if discarder is not None else None,
            deltas[decision.winner_seat],
        ),
    )
    return apply_score(session, deltas, entry, dealer_won=decision.winner_seat == session.dealer_seat)


def adjust_score(
    session: Session,
    seat: int,
    amount: int,
    reason: str = "",
    *,
    now: datetime | None = None,
) -> Session:
    """Add amount to one seat's balance without touching round state."""
    validate_seat(seat)
    if amount == 0:
        raise InvalidDeltasError("Adjustment amount must not be zero")

    deltas = [0] * NUM_PLAYERS
    deltas[seat] = amount
    entry = ScoreEntry(
        timestamp=now or datetime.now(tz=UTC),
        prevailing_wind=session.prevailing_wind,
        dealer_seat=session.dealer_seat,
        honba=session.honba,
        win_type=WinType.MANUAL,
        winner_seat=MANUAL_WINNER_SEAT,
        fan=0,
        deltas=tuple(deltas),
        summary=manual_summary(session.players[seat].name, amount, reason.strip()),
    )
    return apply_manual_adjust(session, deltas, entry)
