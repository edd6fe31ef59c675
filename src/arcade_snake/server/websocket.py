"""WebSocket handler for real-time play."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from arcade_snake.controls import (
    KEY_BINDINGS,
    Action,
    apply_action,
    parse_action,
    parse_direction,
)
from arcade_snake.server.session_manager import GameSession, SessionManager
from arcade_snake.snake import Direction

logger = logging.getLogger(__name__)

ws_router = APIRouter()


def _get_manager(ws: WebSocket) -> SessionManager:
    return ws.app.state.session_manager


def _parse_intent(msg: dict) -> Direction | Action | None:
    """Extract a steering or control intent from a client message."""
    direction = msg.get("direction")
    if isinstance(direction, str):
        return parse_direction(direction)
    key = msg.get("key")
    if isinstance(key, str):
        return KEY_BINDINGS.get(key)
    action = msg.get("action")
    if isinstance(action, str):
        return parse_action(action)
    return None


@ws_router.websocket("/games/{game_id}/play")
async def play(websocket: WebSocket, game_id: str) -> None:
    """Send steering and pause intents, receive a snapshot after each tick."""
    manager = _get_manager(websocket)
    session: GameSession | None = manager.get_session(game_id)
    if session is None:
        await websocket.close(code=4004, reason="Game not found.")
        return

    await websocket.accept()
    session.clients.append(websocket)
    logger.info("Client connected to session %s.", game_id)

    # Send an initial snapshot so the client can draw immediately.
    await websocket.send_text(
        json.dumps(session.engine.get_state(), separators=(",", ":")),
    )

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if not isinstance(msg, dict):
                continue

            intent = _parse_intent(msg)
            if intent is None:
                continue
            session.touch()

            if isinstance(intent, Direction):
                async with session.lock:
                    session.engine.set_direction(intent)
                continue

            async with session.lock:
                changed = apply_action(session.engine, intent)
            if changed:
                await manager.publish_state(session)
    except WebSocketDisconnect:
        logger.info("Client disconnected from session %s.", game_id)
    finally:
        if websocket in session.clients:
            session.clients.remove(websocket)
        session.touch()
