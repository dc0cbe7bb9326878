"""File-backed repositories storing sessions and profile results as JSON."""

from __future__ import annotations

import asyncio
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from shared.storage import StorageReadError, read_json, resolve_within, write_json_atomic
from tracker.logic.standings import GameResult
from tracker.session.codec import decode_session, encode_session
from tracker.session.repository import ResultRepository, SessionRepository

if TYPE_CHECKING:
    from tracker.logic.state import Session
    from tracker.session.codec import DecodedSession

logger = structlog.get_logger()


class FileSessionRepository(SessionRepository):
    """One JSON document per session inside a data directory.

    Single-process only: writes are serialized with an asyncio.Lock.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._lock = asyncio.Lock()

    def _path(self, session_id: str) -> Path:
        return resolve_within(self._directory, session_id)

    async def save_session(self, session: Session) -> None:
        path = self._path(session.session_id)
        async with self._lock:
            write_json_atomic(path, encode_session(session))

    async def load_session(self, session_id: str) -> DecodedSession | None:
        """Load a session; None if it was never stored.

        Raises SessionDecodeError or StorageReadError when the stored file
        cannot be turned back into a session.
        """
        document = read_json(self._path(session_id))
        if document is None:
            return None
        decoded = decode_session(document)
        if decoded.is_degraded:
            logger.warning(
                "loaded degraded session",
                session_id=session_id,
                degraded_fields=list(decoded.degraded_fields),
            )
        return decoded

    async def list_session_ids(self) -> list[str]:
        if not self._directory.exists():
            return []
        return sorted(path.stem for path in self._directory.glob("*.json"))

    async def preserve_document(self, session_id: str) -> str | None:
        """Copy the stored document aside before it is overwritten.

        The copy ends in .bak so it is never listed as a session.
        """
        source = self._path(session_id)
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S%f")
        target = resolve_within(self._directory, f"{session_id}.degraded-{stamp}", suffix=".bak")
        async with self._lock:
            if not source.exists():
                return None
            shutil.copy2(source, target)
        return str(target)


class FileResultRepository(ResultRepository):
    """All profile results in a single JSON object keyed by profile id.

    Loads lazily on first access and refuses to write back when the
    existing file could not be parsed, to avoid overwriting stored results.
    """

    def __init__(self, file_path: str | Path) -> None:
        self._file_path = Path(file_path)
        self._results: dict[str, list[GameResult]] = {}
        self._lock = asyncio.Lock()
        self._loaded = False

    def _load_from_file(self) -> None:
        document = read_json(self._file_path)
        if document is None:
            self._results = {}
            return
        if not isinstance(document, dict):
            raise StorageReadError(f"Expected JSON object at root in {self._file_path}")
        try:
            self._results = {
                profile_id: [GameResult.model_validate(item) for item in items]
                for profile_id, items in document.items()
            }
        except (ValidationError, TypeError) as exc:
            raise StorageReadError(f"Failed to parse results from {self._file_path}") from exc

    async def _ensure_loaded(self) -> None:
        async with self._lock:
            if not self._loaded:
                self._load_from_file()
                self._loaded = True

    async def add_results(self, results: list[tuple[str, GameResult]]) -> None:
        """Record results, at most one per (profile, session); repeats are skipped."""
        if not results:
            return
        await self._ensure_loaded()
        recorded = []
        async with self._lock:
            updated = {profile_id: list(items) for profile_id, items in self._results.items()}
            for profile_id, result in results:
                items = updated.setdefault(profile_id, [])
                if any(item.session_id == result.session_id for item in items):
                    logger.info("result already recorded", profile_id=profile_id, session_id=result.session_id)
                    continue
                items.append(result)
                recorded.append(profile_id)
            if not recorded:
                return
            data = {
                profile_id: [item.model_dump(mode="json") for item in items] for profile_id, items in updated.items()
            }
            write_json_atomic(self._file_path, data)
            self._results = updated
        logger.info("recorded game results", profiles=recorded)

    async def get_results(self, profile_id: str) -> list[GameResult]:
        """Results for a profile, most recent first."""
        await self._ensure_loaded()
        return sorted(self._results.get(profile_id, []), key=lambda r: r.date_played, reverse=True)
