"""Owns stored sessions and serializes mutations per session id."""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

import structlog

from shared.storage import StorageReadError
from tracker.logic.exceptions import SessionNotFoundError
from tracker.logic.rng import choose_dealer, seat_permutation
from tracker.logic.service import adjust_score, score_hand
from tracker.logic.session import complete_intro, create_session, end_session
from tracker.logic.standings import build_game_results, rank_players
from tracker.session.codec import SessionDecodeError

if TYPE_CHECKING:
    import random
    from collections.abc import AsyncIterator, Callable, Sequence
    from datetime import datetime

    from tracker.logic.service import ScoringDecision
    from tracker.logic.settings import SessionSettings
    from tracker.logic.standings import GameResult, PlayerStanding
    from tracker.logic.state import Session
    from tracker.session.repository import ResultRepository, SessionRepository

logger = structlog.get_logger()


class CapacityError(Exception):
    """Too many active sessions to start another one."""


class SessionManager:
    """Async facade over the pure session logic.

    The core operations are plain read-modify-write over a frozen Session,
    so concurrent requests for the same session would lose updates. Every
    mutation runs under that session's asyncio.Lock and is persisted before
    the cached copy is replaced. Only active sessions stay cached; ended
    ones are evicted along with their lock and reloaded from disk on demand.

    A session loaded with degraded fields has its stored document copied
    aside before the first save overwrites it.
    """

    def __init__(
        self,
        session_repository: SessionRepository,
        result_repository: ResultRepository,
        *,
        max_active_sessions: int = 100,
        rng: random.Random | None = None,
    ) -> None:
        self._session_repository = session_repository
        self._result_repository = result_repository
        self._max_active_sessions = max_active_sessions
        self._rng = rng
        self._sessions: dict[str, Session] = {}
        self._degraded: dict[str, tuple[str, ...]] = {}
        self._preserved: set[str] = set()
        self._locks: dict[str, asyncio.Lock] = {}
        self._create_lock = asyncio.Lock()

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        return self._locks.setdefault(session_id, asyncio.Lock())

    @contextlib.asynccontextmanager
    async def _session_lock(self, session_id: str) -> AsyncIterator[None]:
        """Hold the session's lock; drop all per-session state once it is no longer cached."""
        try:
            async with self._lock_for(session_id):
                yield
        finally:
            if session_id not in self._sessions:
                self._evict(session_id)

    def _evict(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._degraded.pop(session_id, None)
        self._preserved.discard(session_id)
        self._locks.pop(session_id, None)

    def degraded_fields(self, session_id: str) -> tuple[str, ...]:
        """Fields reset to defaults because they could not be decoded on load."""
        return self._degraded.get(session_id, ())

    async def get_session(self, session_id: str) -> Session:
        """Cached session, loading it on a miss. Only active sessions are kept in memory."""
        cached = self._sessions.get(session_id)
        if cached is not None:
            return cached
        decoded = await self._session_repository.load_session(session_id)
        if decoded is None:
            raise SessionNotFoundError(session_id)
        if decoded.session.active:
            self._sessions[session_id] = decoded.session
            if decoded.is_degraded:
                self._degraded[session_id] = decoded.degraded_fields
        return decoded.session

    async def list_active_sessions(self) -> list[Session]:
        """Active sessions, newest first. Stored sessions that fail to decode are logged and skipped."""
        active = []
        for session_id in await self._session_repository.list_session_ids():
            try:
                session = await self.get_session(session_id)
            except (SessionDecodeError, StorageReadError):
                logger.exception("skipping undecodable session", session_id=session_id)
                continue
            if session.active:
                active.append(session)
        return sorted(active, key=lambda s: s.created_at, reverse=True)

    async def create_session(
        self,
        player_names: Sequence[str],
        *,
        player_emojis: Sequence[str] = (),
        player_colors: Sequence[str] = (),
        profile_ids: Sequence[str | None] = (),
        settings: SessionSettings | None = None,
    ) -> Session:
        session = create_session(
            player_names,
            player_emojis=player_emojis,
            player_colors=player_colors,
            profile_ids=profile_ids,
            settings=settings,
        )
        async with self._create_lock:
            if len(await self.list_active_sessions()) >= self._max_active_sessions:
                raise CapacityError(f"At most {self._max_active_sessions} active sessions allowed")
            await self._session_repository.save_session(session)
            self._sessions[session.session_id] = session
        logger.info(
            "session created",
            session_id=session.session_id,
            players=[p.name for p in session.players],
            multiplier=session.settings.multiplier,
            min_fan=session.settings.min_fan,
        )
        return session

    async def _preserve_if_degraded(self, session_id: str) -> None:
        fields = self._degraded.get(session_id)
        if not fields or session_id in self._preserved:
            return
        backup = await self._session_repository.preserve_document(session_id)
        self._preserved.add(session_id)
        logger.warning(
            "preserved degraded session document",
            session_id=session_id,
            degraded_fields=list(fields),
            backup=backup,
        )

    async def _save(self, session: Session) -> None:
        """Persist, then cache the session while it is active."""
        await self._preserve_if_degraded(session.session_id)
        await self._session_repository.save_session(session)
        if session.active:
            self._sessions[session.session_id] = session
        else:
            self._sessions.pop(session.session_id, None)

    async def _mutate(self, session_id: str, operation: Callable[[Session], Session]) -> Session:
        async with self._session_lock(session_id):
            session = await self.get_session(session_id)
            updated = operation(session)
            await self._save(updated)
            return updated

    async def score_hand(
        self,
        session_id: str,
        decision: ScoringDecision,
        *,
        now: datetime | None = None,
    ) -> Session:
        updated = await self._mutate(session_id, lambda s: score_hand(s, decision, now=now))
        entry = updated.history[-1]
        logger.info(
            "hand scored",
            session_id=session_id,
            win_type=entry.win_type,
            winner_seat=entry.winner_seat,
            fan=entry.fan,
            deltas=list(entry.deltas),
            round=updated.round_label,
            pending_game_over=updated.pending_game_over,
        )
        return updated

    async def adjust_score(
        self,
        session_id: str,
        seat: int,
        amount: int,
        reason: str = "",
        *,
        now: datetime | None = None,
    ) -> Session:
        updated = await self._mutate(session_id, lambda s: adjust_score(s, seat, amount, reason, now=now))
        logger.info("manual adjustment", session_id=session_id, seat=seat, amount=amount)
        return updated

    async def complete_intro(
        self,
        session_id: str,
        *,
        seat_order: Sequence[int] | None = None,
        dealer_seat: int | None = None,
    ) -> Session:
        """Fix the opening seating, drawing order and dealer at random when not given."""
        order = tuple(seat_order) if seat_order is not None else seat_permutation(self._rng)
        dealer = dealer_seat if dealer_seat is not None else choose_dealer(self._rng)
        updated = await self._mutate(session_id, lambda s: complete_intro(s, seat_order=order, dealer_seat=dealer))
        logger.info("seating decided", session_id=session_id, seat_order=list(order), dealer_seat=dealer)
        return updated

    async def end_session(self, session_id: str) -> Session:
        updated = await self._mutate(session_id, end_session)
        logger.info("session ended", session_id=session_id)
        return updated

    async def finalize_session(
        self,
        session_id: str,
        *,
        played_at: datetime | None = None,
    ) -> tuple[Session, list[PlayerStanding]]:
        """End the session and record a result for every profile-linked seat.

        Results are recorded before the session is saved as ended, so a
        failed write leaves the session active and finalize can be retried.
        The result repository skips results already recorded for the session.
        """
        async with self._session_lock(session_id):
            session = await self.get_session(session_id)
            ended = end_session(session)
            results = build_game_results(ended, played_at=played_at)
            await self._result_repository.add_results(results)
            await self._save(ended)

        standings = rank_players(ended.players)
        logger.info(
            "session finalized",
            session_id=session_id,
            standings=[(s.name, s.points) for s in standings],
            recorded_profiles=len(results),
        )
        return ended, standings

    async def get_profile_results(self, profile_id: str) -> list[GameResult]:
        return await self._result_repository.get_results(profile_id)
