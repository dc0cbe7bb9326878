from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, cast

import structlog
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route

from shared.logging import setup_logging
from tracker.logic.exceptions import SessionNotFoundError, TrackerError
from tracker.logic.scoring import meets_min_fan, preview_lines
from tracker.logic.service import ScoringDecision, effective_discarder
from tracker.logic.settings import SessionSettings
from tracker.logic.standings import biggest_win, rank_players
from tracker.server.settings import TrackerServerSettings
from tracker.server.types import CreateSessionRequest, IntroRequest, ManualAdjustRequest
from tracker.session.file_repository import FileResultRepository, FileSessionRepository
from tracker.session.manager import CapacityError, SessionManager

logger = structlog.get_logger()

if TYPE_CHECKING:
    from starlette.requests import Request

    from tracker.logic.state import Session

_MAX_REQUEST_BODY_SIZE = 4096


def _error(message: str, code: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message, "code": code}, status_code=status_code)


def _session_payload(request: Request, session: Session) -> dict[str, Any]:
    payload = session.model_dump(mode="json")
    payload["round_label"] = session.round_label
    payload["seat_winds"] = [session.seat_wind(seat).label for seat in range(len(session.players))]
    payload["degraded_fields"] = list(_manager(request).degraded_fields(session.session_id))
    return payload


async def _read_json(request: Request) -> object:
    raw_body = await request.body()
    if len(raw_body) > _MAX_REQUEST_BODY_SIZE:
        raise ValueError("Request body too large")
    return json.loads(raw_body or b"{}")


def _manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def create_session(request: Request) -> JSONResponse:
    try:
        body = CreateSessionRequest.model_validate(await _read_json(request))
    except (ValueError, TypeError, UnicodeDecodeError, ValidationError):
        return _error("Invalid request body", "invalid_body", 400)

    session = await _manager(request).create_session(
        [p.name for p in body.players],
        player_emojis=[p.emoji for p in body.players],
        player_colors=[p.color_hex for p in body.players],
        profile_ids=[p.profile_id for p in body.players],
        settings=SessionSettings(
            starting_points=body.starting_points,
            multiplier=body.multiplier,
            min_fan=body.min_fan,
        ),
    )
    return JSONResponse(_session_payload(request, session), status_code=201)


async def list_sessions(request: Request) -> JSONResponse:
    sessions = await _manager(request).list_active_sessions()
    return JSONResponse({"sessions": [_session_payload(request, s) for s in sessions]})


async def get_session(request: Request) -> JSONResponse:
    session = await _manager(request).get_session(request.path_params["session_id"])
    return JSONResponse(_session_payload(request, session))


async def preview_score(request: Request) -> JSONResponse:
    session = await _manager(request).get_session(request.path_params["session_id"])
    try:
        decision = ScoringDecision.model_validate(dict(request.query_params))
    except ValidationError:
        return _error("Invalid scoring decision", "invalid_body", 400)

    fan = decision.effective_fan
    lines = preview_lines(
        fan,
        session.settings.multiplier,
        decision.win_type,
        decision.winner_seat,
        effective_discarder(decision),
        session.players,
    )
    return JSONResponse(
        {
            "effective_fan": fan,
            "meets_min_fan": meets_min_fan(fan, session.settings.min_fan),
            "lines": [{"name": name, "delta": delta} for name, delta in lines],
        },
    )


async def score_hand(request: Request) -> JSONResponse:
    try:
        decision = ScoringDecision.model_validate(await _read_json(request))
    except (ValueError, TypeError, UnicodeDecodeError, ValidationError):
        return _error("Invalid request body", "invalid_body", 400)
    session = await _manager(request).score_hand(request.path_params["session_id"], decision)
    return JSONResponse(_session_payload(request, session))


async def adjust_score(request: Request) -> JSONResponse:
    try:
        body = ManualAdjustRequest.model_validate(await _read_json(request))
    except (ValueError, TypeError, UnicodeDecodeError, ValidationError):
        return _error("Invalid request body", "invalid_body", 400)
    session = await _manager(request).adjust_score(
        request.path_params["session_id"],
        body.seat,
        body.amount,
        body.reason,
    )
    return JSONResponse(_session_payload(request, session))


async def complete_intro(request: Request) -> JSONResponse:
    try:
        body = IntroRequest.model_validate(await _read_json(request))
    except (ValueError, TypeError, UnicodeDecodeError, ValidationError):
        return _error("Invalid request body", "invalid_body", 400)
    session = await _manager(request).complete_intro(
        request.path_params["session_id"],
        seat_order=body.seat_order,
        dealer_seat=body.dealer_seat,
    )
    return JSONResponse(_session_payload(request, session))


async def end_session(request: Request) -> JSONResponse:
    session = await _manager(request).end_session(request.path_params["session_id"])
    return JSONResponse(_session_payload(request, session))


async def finalize_session(request: Request) -> JSONResponse:
    session, standings = await _manager(request).finalize_session(request.path_params["session_id"])
    return JSONResponse(
        {
            "session": _session_payload(request, session),
            "standings": [s.model_dump(mode="json") for s in standings],
        },
    )


async def get_standings(request: Request) -> JSONResponse:
    session = await _manager(request).get_session(request.path_params["session_id"])
    best = biggest_win(session.history)
    return JSONResponse(
        {
            "standings": [s.model_dump(mode="json") for s in rank_players(session.players)],
            "biggest_win": best.model_dump(mode="json") if best is not None else None,
        },
    )


async def get_profile_results(request: Request) -> JSONResponse:
    results = await _manager(request).get_profile_results(request.path_params["profile_id"])
    return JSONResponse({"results": [r.model_dump(mode="json") for r in results]})


async def _handle_not_found(_request: Request, exc: Exception) -> JSONResponse:
    error = cast("SessionNotFoundError", exc)
    return _error(str(error), error.code, 404)


async def _handle_rule_violation(_request: Request, exc: Exception) -> JSONResponse:
    error = cast("TrackerError", exc)
    return _error(str(error), error.code, 409)


async def _handle_capacity(_request: Request, exc: Exception) -> JSONResponse:
    return _error(str(exc), "at_capacity", 503)


def create_app(
    settings: TrackerServerSettings | None = None,
    session_manager: SessionManager | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = TrackerServerSettings()

    if session_manager is None:
        session_manager = SessionManager(
            FileSessionRepository(settings.data_dir),
            FileResultRepository(settings.results_path),
            max_active_sessions=settings.max_active_sessions,
        )

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/sessions", create_session, methods=["POST"]),
        Route("/sessions", list_sessions, methods=["GET"]),
        Route("/sessions/{session_id}", get_session, methods=["GET"]),
        Route("/sessions/{session_id}/preview", preview_score, methods=["GET"]),
        Route("/sessions/{session_id}/standings", get_standings, methods=["GET"]),
        Route("/sessions/{session_id}/intro", complete_intro, methods=["POST"]),
        Route("/sessions/{session_id}/score", score_hand, methods=["POST"]),
        Route("/sessions/{session_id}/adjust", adjust_score, methods=["POST"]),
        Route("/sessions/{session_id}/end", end_session, methods=["POST"]),
        Route("/sessions/{session_id}/finalize", finalize_session, methods=["POST"]),
        Route("/profiles/{profile_id}/results", get_profile_results, methods=["GET"]),
    ]

    # Starlette picks the handler for the closest class in the exception's MRO
    exception_handlers = {
        SessionNotFoundError: _handle_not_found,
        TrackerError: _handle_rule_violation,
        CapacityError: _handle_capacity,
    }

    app = Starlette(routes=routes, exception_handlers=exception_handlers)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.session_manager = session_manager

    logger.info("tracker server ready")
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    settings = TrackerServerSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings)
