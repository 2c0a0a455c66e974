"""
Pydantic Schemas for the HTTP API.

Only lookups are served over HTTP; all gameplay happens on the room
WebSocket, whose messages live in president.protocol.

Error Codes:
- ROOM_NOT_FOUND: No live room under that code
- INVALID_ROOM_CODE: Code is not six letters or digits
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Structured error codes."""
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    INVALID_ROOM_CODE = "INVALID_ROOM_CODE"


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class PlayerSummary(BaseModel):
    player_id: str
    handle: str
    is_connected: bool
    is_ready: bool
    hand_count: int
    role: Optional[str] = None


class RoomInfoResponse(BaseModel):
    """Public summary of one room. Never includes hands."""
    room_code: str
    phase: str
    round_number: int
    players: list[PlayerSummary] = Field(default_factory=list)
    connections: int = Field(0, description="Live WebSocket connections")
    turn_player_id: Optional[str] = None


class RoomListResponse(BaseModel):
    rooms: list[str]
    total: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    rooms: int = 0
