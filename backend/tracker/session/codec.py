"""JSON document encoding for stored sessions.

History and profile links are decoded independently from the rest of the
session. A broken history or profile list degrades to its empty default,
is logged, and is reported to the caller in DecodedSession.degraded_fields.
A broken core (players, settings, round state) cannot be defaulted and
raises SessionDecodeError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import TypeAdapter, ValidationError

from tracker.logic.settings import NUM_PLAYERS
from tracker.logic.state import ScoreEntry, Session

logger = structlog.get_logger()

FORMAT_VERSION = 1

_HISTORY_ADAPTER = TypeAdapter(tuple[ScoreEntry, ...])
_PROFILE_IDS_ADAPTER = TypeAdapter(tuple[str | None, ...])
_DEFAULT_PROFILE_IDS: tuple[str | None, ...] = (None,) * NUM_PLAYERS


class SessionDecodeError(ValueError):
    """Stored session document cannot be turned back into a Session."""


@dataclass(frozen=True)
class DecodedSession:
    session: Session
    degraded_fields: tuple[str, ...] = ()

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded_fields)


def encode_session(session: Session) -> dict[str, Any]:
    return {"format_version": FORMAT_VERSION, **session.model_dump(mode="json")}


def _decode_history(raw: object, session_id: object) -> tuple[ScoreEntry, ...] | None:
    try:
        return _HISTORY_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        logger.warning("discarding undecodable history", session_id=session_id, errors=exc.error_count())
        return None


def _decode_profile_ids(raw: object, session_id: object) -> tuple[str | None, ...] | None:
    try:
        profile_ids = _PROFILE_IDS_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        logger.warning("discarding undecodable profile links", session_id=session_id, errors=exc.error_count())
        return None
    if len(profile_ids) != NUM_PLAYERS:
        logger.warning("discarding profile links of wrong length", session_id=session_id, length=len(profile_ids))
        return None
    return profile_ids


def decode_session(document: object) -> DecodedSession:
    """Decode a stored document, degrading history/profile links on failure."""
    if not isinstance(document, dict):
        raise SessionDecodeError(f"Expected JSON object, got {type(document).__name__}")

    version = document.get("format_version", FORMAT_VERSION)
    if version != FORMAT_VERSION:
        raise SessionDecodeError(f"Unsupported session format version {version!r}")

    core = {k: v for k, v in document.items() if k not in ("format_version", "history", "profile_ids")}
    session_id = core.get("session_id")
    degraded: list[str] = []

    history = _decode_history(document.get("history", []), session_id)
    if history is None:
        degraded.append("history")
        history = ()

    profile_ids = _decode_profile_ids(document.get("profile_ids", _DEFAULT_PROFILE_IDS), session_id)
    if profile_ids is None:
        degraded.append("profile_ids")
        profile_ids = _DEFAULT_PROFILE_IDS

    try:
        session = Session.model_validate({**core, "history": history, "profile_ids": profile_ids})
    except ValidationError as exc:
        raise SessionDecodeError(f"Session {session_id!r} is not decodable") from exc

    return DecodedSession(session=session, degraded_fields=tuple(degraded))
