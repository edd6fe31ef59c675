"""In-memory session registry and per-session async tick loops."""

from __future__ import annotations

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass, field

from starlette.websockets import WebSocket, WebSocketState

from arcade_snake.config import GameConfig
from arcade_snake.engine import GameEngine, GameStatus
from arcade_snake.events import GameEvent, GameOver, GameStarted, SpeedChanged
from arcade_snake.score import InMemoryStorage, JsonFileStorage, ScoreTracker, Storage
from arcade_snake.server.models import GameSummary

logger = logging.getLogger(__name__)

_MAX_FINISHED_SESSIONS = 100
_IDLE_TTL = 300.0  # seconds without input before an unwatched session expires


@dataclass
class GameSession:
    """One player's game: engine, scheduler state and connected sockets."""

    game_id: str
    engine: GameEngine
    interval: float
    clients: list[WebSocket] = field(default_factory=list)
    created_at: float = field(default_factory=time.monotonic)
    last_active: float = field(default_factory=time.monotonic)
    finished_at: float | None = None
    closed: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    running: asyncio.Event = field(default_factory=asyncio.Event)
    _task: asyncio.Task | None = field(default=None, repr=False)

    def on_event(self, event: GameEvent) -> None:
        """Keep the scheduler in step with the engine.

        A new speed re-arms the interval; game over parks the tick loop
        until the next start wakes it.
        """
        if isinstance(event, (SpeedChanged, GameStarted)):
            self.interval = event.speed / 1000.0
        if isinstance(event, GameStarted):
            self.finished_at = None
            self.touch()
            self.running.set()
        elif isinstance(event, GameOver):
            self.finished_at = time.monotonic()
            self.running.clear()

    def touch(self) -> None:
        """Record player input so the session is not expired as idle."""
        self.last_active = time.monotonic()

    def idle_for(self, now: float) -> float:
        """Seconds since the last input, or 0 while a client is connected."""
        if self.clients:
            return 0.0
        return now - self.last_active

    def summary(self) -> GameSummary:
        return GameSummary(
            game_id=self.game_id,
            status=self.engine.status.value,
            mode=self.engine.mode.value,
            score=self.engine.score,
            speed=self.engine.speed,
        )


class SessionManager:
    """Central registry owning every running game session.

    All sessions share one score storage so the high score and games
    played counters are global to the server.
    """

    def __init__(
        self,
        base_config: GameConfig | None = None,
        storage: Storage | None = None,
        max_finished_sessions: int = _MAX_FINISHED_SESSIONS,
        idle_ttl: float = _IDLE_TTL,
    ) -> None:
        if max_finished_sessions < 0:
            raise ValueError("max_finished_sessions must be >= 0.")
        if idle_ttl <= 0:
            raise ValueError("idle_ttl must be > 0.")
        self._idle_ttl = idle_ttl
        self.base_config = base_config if base_config is not None else GameConfig()
        if storage is None:
            path = self.base_config.storage_path
            storage = JsonFileStorage(path) if path else InMemoryStorage()
        self.storage = storage
        self._sessions: dict[str, GameSession] = {}
        self._max_finished_sessions = max_finished_sessions

    def stats(self) -> dict:
        tracker = ScoreTracker(self.storage)
        return {
            "high_score": tracker.high_score,
            "games_played": tracker.games_played,
        }

    def create_session(
        self,
        mode: str = "classic",
        grid_width: int | None = None,
        grid_height: int | None = None,
        seed: int | None = None,
    ) -> GameSession:
        """Create a session, start its game and launch its tick loop."""
        base = self.base_config.to_dict()
        base.update(mode=mode, seed=seed)
        if grid_width is not None:
            base["grid_width"] = grid_width
        if grid_height is not None:
            base["grid_height"] = grid_height
        config = GameConfig(**base)

        engine = GameEngine(config, tracker=ScoreTracker(self.storage))
        session = GameSession(
            game_id=uuid.uuid4().hex[:12],
            engine=engine,
            interval=engine.speed / 1000.0,
        )
        engine.subscribe(session.on_event)
        engine.reset()

        self._prune_sessions()
        self._sessions[session.game_id] = session
        session._task = asyncio.create_task(self._tick_loop(session))
        logger.info("Session %s created (mode=%s).", session.game_id, mode)
        return session

    def get_session(self, game_id: str) -> GameSession | None:
        return self._sessions.get(game_id)

    def require_session(self, game_id: str) -> GameSession:
        session = self._sessions.get(game_id)
        if session is None:
            raise KeyError(f"Game {game_id} not found.")
        return session

    def list_sessions(self) -> list[GameSummary]:
        return [s.summary() for s in self._sessions.values() if not s.closed]

    async def close_session(self, game_id: str) -> None:
        """Stop a session's tick loop, close its sockets and forget it."""
        session = self.require_session(game_id)
        session.closed = True
        self._sessions.pop(game_id, None)
        task = session._task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        await self._close_connections(session)
        logger.info("Session %s closed.", game_id)

    async def _tick_loop(self, session: GameSession) -> None:
        """Tick the engine every ``session.interval`` seconds.

        The interval is read fresh on every iteration; it is updated by
        :meth:`GameSession.on_event` when the engine reports a new speed.
        While the game is over the loop waits for a restart instead of
        ticking, and it ends itself once the session has been idle for
        longer than the TTL.
        """
        try:
            while not session.closed:
                if session.idle_for(time.monotonic()) >= self._idle_ttl:
                    self._expire(session)
                    break
                if session.engine.status is GameStatus.OVER:
                    remaining = self._idle_ttl - session.idle_for(time.monotonic())
                    try:
                        await asyncio.wait_for(
                            session.running.wait(), timeout=max(remaining, 0.01),
                        )
                    except asyncio.TimeoutError:
                        pass
                    continue
                await asyncio.sleep(session.interval)
                async with session.lock:
                    result = session.engine.tick()
                    state = session.engine.get_state() if result.events else None
                if result.speed_changed is not None:
                    logger.info(
                        "Session %s re-armed at %d ms.",
                        session.game_id, result.speed_changed.speed,
                    )
                if state is not None:
                    await self.broadcast(session, state)
        except asyncio.CancelledError:
            logger.info("Tick loop cancelled for session %s.", session.game_id)
        except Exception:
            logger.exception("Tick loop error in session %s.", session.game_id)
            session.closed = True

    async def publish_state(self, session: GameSession) -> None:
        """Broadcast the current snapshot, e.g. after a pause or reset."""
        async with session.lock:
            state = session.engine.get_state()
        await self.broadcast(session, state)

    async def broadcast(self, session: GameSession, state: dict) -> None:
        """Send a snapshot to every connected client."""
        payload = json.dumps(state, separators=(",", ":"))
        dead: list[WebSocket] = []

        # Iterate over a snapshot so disconnect handlers can mutate the list.
        for ws in list(session.clients):
            try:
                if ws.client_state == WebSocketState.CONNECTED:
                    await ws.send_text(payload)
            except Exception:
                logger.warning("Failed sending state in session %s.", session.game_id)
                dead.append(ws)

        for ws in dead:
            if ws in session.clients:
                session.clients.remove(ws)

    async def _close_connections(self, session: GameSession) -> None:
        for ws in list(session.clients):
            try:
                if ws.client_state == WebSocketState.CONNECTED:
                    await ws.close(code=1000, reason="Game closed.")
            except Exception:
                logger.warning("Failed closing socket in session %s.", session.game_id)
        session.clients.clear()

    def _expire(self, session: GameSession) -> None:
        """Forget an idle session. Its tick loop stops on its own."""
        session.closed = True
        self._sessions.pop(session.game_id, None)
        logger.info("Session %s expired after inactivity.", session.game_id)

    def _discard(self, session: GameSession) -> None:
        session.closed = True
        if session._task is not None and not session._task.done():
            session._task.cancel()
        self._sessions.pop(session.game_id, None)

    def _prune_sessions(self) -> None:
        """Drop idle sessions and bound retained finished ones."""
        now = time.monotonic()
        idle = [
            s for s in self._sessions.values()
            if s.idle_for(now) >= self._idle_ttl
        ]
        for stale in idle:
            self._discard(stale)
        if idle:
            logger.info("Pruned %d idle sessions.", len(idle))

        finished = [
            s for s in self._sessions.values()
            if s.engine.status is GameStatus.OVER and not s.clients
        ]
        overflow = len(finished) - self._max_finished_sessions
        if overflow <= 0:
            return

        finished.sort(
            key=lambda s: s.finished_at if s.finished_at is not None else s.created_at,
        )
        for stale in finished[:overflow]:
            self._discard(stale)
        logger.info(
            "Pruned %d finished sessions (retaining up to %d).",
            overflow, self._max_finished_sessions,
        )

    async def cleanup(self) -> None:
        """Cancel all running tick loops."""
        tasks = []
        for session in self._sessions.values():
            session.closed = True
            if session._task and not session._task.done():
                session._task.cancel()
                tasks.append(session._task)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("SessionManager cleanup complete.")
