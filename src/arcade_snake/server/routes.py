"""REST API route handlers for game session management."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from arcade_snake.controls import parse_direction
from arcade_snake.server.models import (
    CreateGameRequest,
    DirectionRequest,
    GameSummary,
    ResetRequest,
    StatsResponse,
)
from arcade_snake.server.session_manager import GameSession, SessionManager

router = APIRouter(tags=["games"])


def _get_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def _get_session(request: Request, game_id: str) -> GameSession:
    try:
        return _get_manager(request).require_session(game_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found.") from exc


@router.post("/games", status_code=201)
async def create_game(body: CreateGameRequest, request: Request) -> GameSummary:
    """Create a session and start its game immediately."""
    manager = _get_manager(request)
    try:
        session = manager.create_session(
            mode=body.mode,
            grid_width=body.grid_width,
            grid_height=body.grid_height,
            seed=body.seed,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return session.summary()


@router.get("/games")
async def list_games(request: Request) -> list[GameSummary]:
    return _get_manager(request).list_sessions()


@router.get("/games/{game_id}")
async def get_game(game_id: str, request: Request) -> dict:
    """Get session metadata and the current engine snapshot."""
    session = _get_session(request, game_id)
    result = session.summary().model_dump()
    result["state"] = session.engine.get_state()
    return result


@router.post("/games/{game_id}/direction")
async def set_direction(
    game_id: str, body: DirectionRequest, request: Request,
) -> dict:
    session = _get_session(request, game_id)
    session.touch()
    direction = parse_direction(body.direction)
    async with session.lock:
        accepted = session.engine.set_direction(direction)
    return {"accepted": accepted, "direction": body.direction}


@router.post("/games/{game_id}/pause")
async def pause_game(game_id: str, request: Request) -> GameSummary:
    session = _get_session(request, game_id)
    session.touch()
    async with session.lock:
        changed = session.engine.pause()
    if not changed:
        raise HTTPException(status_code=409, detail="Game is not running.")
    await _get_manager(request).publish_state(session)
    return session.summary()


@router.post("/games/{game_id}/resume")
async def resume_game(game_id: str, request: Request) -> GameSummary:
    session = _get_session(request, game_id)
    session.touch()
    async with session.lock:
        changed = session.engine.resume()
    if not changed:
        raise HTTPException(status_code=409, detail="Game is not paused.")
    await _get_manager(request).publish_state(session)
    return session.summary()


@router.post("/games/{game_id}/reset")
async def reset_game(
    game_id: str, request: Request, body: ResetRequest | None = None,
) -> GameSummary:
    """Start a new game in the same session, optionally switching mode."""
    session = _get_session(request, game_id)
    mode = body.mode if body is not None else None
    async with session.lock:
        session.engine.reset(mode)
    await _get_manager(request).publish_state(session)
    return session.summary()


@router.delete("/games/{game_id}", status_code=204)
async def delete_game(game_id: str, request: Request) -> None:
    manager = _get_manager(request)
    try:
        await manager.close_session(game_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found.") from exc


@router.get("/stats")
async def get_stats(request: Request) -> StatsResponse:
    """High score and games played across all sessions."""
    return StatsResponse(**_get_manager(request).stats())
