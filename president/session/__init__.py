"""
Session Module - Live rooms and the connections attached to them.

A room is one authoritative game, driven by its own lock:
- Created the first time a client connects to its code
- Holds the GameState and applies every action through the reducer
- Broadcasts events to connected players, one personalized room_state each
- Hands its MatchResult to the result sink when the game ends

Rooms are in-memory only.
"""

from .auth import Identity, Authenticator, QueryParamAuthenticator, StaticTokenAuthenticator
from .connections import Connection, ConnectionRegistry
from .room import Room
from .manager import RoomManager, generate_room_code, normalize_room_code, ROOM_CODE_LENGTH

__all__ = [
    "Identity",
    "Authenticator",
    "QueryParamAuthenticator",
    "StaticTokenAuthenticator",
    "Connection",
    "ConnectionRegistry",
    "Room",
    "RoomManager",
    "generate_room_code",
    "normalize_room_code",
    "ROOM_CODE_LENGTH",
]
