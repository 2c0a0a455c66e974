"""
FastAPI Application - Real-time server for President rooms.

Endpoints:
    WS     /api/v1/rooms/{code}/ws      Join and play in a room
    GET    /api/v1/rooms/{code}         Room summary
    GET    /api/v1/rooms                Live room codes
    GET    /health                      Health check

WebSocket flow:
    1. Client connects with ?token=... (or ?player_id=&handle= in development)
    2. Unknown identities and malformed room codes are closed with 1008
    3. Server sends the caller's personalized room_state
    4. Client sends join_room, then set_ready / play_cards / pass_turn / chat
    5. Every outcome arrives as server events on the same socket
"""

from typing import Optional
import logging

from .. import __version__
from ..config import Settings

logger = logging.getLogger(__name__)


def create_app(room_manager=None, authenticator=None, settings: Optional[Settings] = None):
    """
    Create the FastAPI application.

    Args:
        room_manager: Optional RoomManager (built from settings if not provided)
        authenticator: Optional Authenticator (built from settings if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    from fastapi import FastAPI, WebSocket, WebSocketDisconnect, status
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse

    from ..exceptions import InvalidRoomCode
    from ..session import RoomManager, normalize_room_code
    from .schemas import (
        ErrorCode,
        ErrorResponse,
        HealthResponse,
        PlayerSummary,
        RoomInfoResponse,
        RoomListResponse,
    )

    settings = settings or Settings.from_env()

    app = FastAPI(
        title="President Room Server",
        description="Authoritative rooms for the card game President.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    manager = room_manager if room_manager is not None else RoomManager(
        rules=settings.room_rules(),
        result_sink=settings.result_sink(),
    )
    auth = authenticator if authenticator is not None else settings.authenticator()
    app.state.room_manager = manager
    app.state.authenticator = auth

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=message, error_code=error_code).model_dump(),
        )

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/rooms/{room_code}/ws")
    async def room_websocket(websocket: WebSocket, room_code: str):
        """
        One player's connection to one room.

        Messages from client: join_room, leave_room, set_ready, play_cards,
        pass_turn, chat_message, ping.

        Messages from server: room_state, player_joined, player_left,
        player_ready_changed, cards_played, turn_passed, turn_changed,
        round_end, game_end, chat_message, system_message, error, pong.
        """
        identity = auth.authenticate(dict(websocket.query_params))
        if identity is None:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Unauthorized")
            return
        try:
            code = normalize_room_code(room_code)
        except InvalidRoomCode:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid room code")
            return

        await websocket.accept()
        room = manager.get_or_create(code)
        conn_id = await room.connect(websocket, identity)

        try:
            while True:
                data = await websocket.receive_text()
                await room.handle_message(conn_id, data)
                if conn_id not in room.connections:
                    break
        except WebSocketDisconnect:
            logger.debug("Room %s: %s closed", code, conn_id)
        finally:
            await room.disconnect(conn_id)

    # =========================================================================
    # Room Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/rooms/{room_code}",
        response_model=RoomInfoResponse,
        responses={404: {"model": ErrorResponse}, 400: {"model": ErrorResponse}},
        tags=["Rooms"],
        summary="Get room summary",
    )
    async def get_room(room_code: str):
        try:
            code = normalize_room_code(room_code)
        except InvalidRoomCode as e:
            return make_error_response(ErrorCode.INVALID_ROOM_CODE, str(e))
        room = manager.get_room(code)
        if room is None:
            return make_error_response(
                ErrorCode.ROOM_NOT_FOUND, f"Room {code} not found", status_code=404,
            )

        state = room.state
        current = state.current_player
        return RoomInfoResponse(
            room_code=room.room_code,
            phase=state.phase.value,
            round_number=state.round_number,
            players=[
                PlayerSummary(
                    player_id=p.player_id,
                    handle=p.handle,
                    is_connected=p.is_connected,
                    is_ready=p.is_ready,
                    hand_count=p.hand_count,
                    role=p.role.value if p.role else None,
                )
                for p in state.players
            ],
            connections=len(room.connections),
            turn_player_id=current.player_id if current else None,
        )

    @app.get(
        "/api/v1/rooms",
        response_model=RoomListResponse,
        tags=["Rooms"],
        summary="List live rooms",
    )
    async def list_rooms() -> RoomListResponse:
        codes = [room.room_code for room in manager.list_rooms()]
        return RoomListResponse(rooms=codes, total=len(codes))

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="president",
            version=__version__,
            rooms=len(manager),
        )

    @app.get("/", tags=["System"])
    async def root():
        return {
            "name": "President Room Server",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app
