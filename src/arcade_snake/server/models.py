"""Pydantic models for API request/response schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

ModeName = Literal["classic", "speed", "wall"]
DirectionName = Literal["up", "down", "left", "right"]


class CreateGameRequest(BaseModel):
    """Request body for POST /games."""

    mode: ModeName = "classic"
    grid_width: int = Field(default=20, ge=4, le=100)
    grid_height: int = Field(default=20, ge=4, le=100)
    seed: int | None = None


class DirectionRequest(BaseModel):
    """Request body for POST /games/{game_id}/direction."""

    direction: DirectionName


class ResetRequest(BaseModel):
    """Request body for POST /games/{game_id}/reset."""

    mode: ModeName | None = None


class GameSummary(BaseModel):
    """Compact session info for list endpoints."""

    game_id: str
    status: str
    mode: str
    score: int
    speed: int


class StatsResponse(BaseModel):
    """Persisted counters shared by every session."""

    high_score: int
    games_played: int
