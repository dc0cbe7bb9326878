"""Abstract interfaces for session and profile result persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tracker.logic.standings import GameResult
    from tracker.logic.state import Session
    from tracker.session.codec import DecodedSession


class SessionRepository(ABC):
    """Stores whole sessions keyed by session_id."""

    @abstractmethod
    async def save_session(self, session: Session) -> None: ...

    @abstractmethod
    async def load_session(self, session_id: str) -> DecodedSession | None: ...

    @abstractmethod
    async def list_session_ids(self) -> list[str]: ...

    @abstractmethod
    async def preserve_document(self, session_id: str) -> str | None:
        """Keep a copy of the stored document; returns where it went, or None if nothing was stored."""


class ResultRepository(ABC):
    """Stores finished-match results per player profile."""

    @abstractmethod
    async def add_results(self, results: list[tuple[str, GameResult]]) -> None:
        """Record (profile_id, result) pairs; a session is recorded at most once per profile."""

    @abstractmethod
    async def get_results(self, profile_id: str) -> list[GameResult]: ...
