"""
Room Manager - Creates, finds and retires rooms.

LIFECYCLE:
1. A client connects to /rooms/{code}/ws -> room is created on first use
2. Players join, ready up and play inside the Room actor
3. Game ends -> result handed to the sink, room lingers for late viewers
4. cleanup_finished_rooms() retires finished or empty rooms

Rooms are in-memory only. The only thing that outlives a room is its
MatchResult.
"""

from __future__ import annotations
import logging
import string
import time
from random import Random
from typing import Callable

from .room import Room
from ..engine_core.state import GamePhase, RoomRules
from ..exceptions import InvalidRoomCode, RoomNotFound
from ..results.sink import ResultSink

logger = logging.getLogger(__name__)

ROOM_CODE_LENGTH = 6
ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_room_code(rng: Random | None = None) -> str:
    rng = rng or Random()
    return "".join(rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


def normalize_room_code(room_code: str) -> str:
    """Upper-case a room code, raising InvalidRoomCode if it is malformed."""
    code = (room_code or "").strip().upper()
    if len(code) != ROOM_CODE_LENGTH or any(c not in ROOM_CODE_ALPHABET for c in code):
        raise InvalidRoomCode(room_code)
    return code


class RoomManager:
    """
    Owns every live Room in the process.

    Responsibilities:
    - Create rooms with the configured rules and result sink
    - Look rooms up by code
    - Retire finished and abandoned rooms

    Usage:
        manager = RoomManager(rules=RoomRules(two_decks=True))
        room = manager.get_or_create("abc123")
    """

    def __init__(
        self,
        rules: RoomRules | None = None,
        result_sink: ResultSink | None = None,
        rng_factory: Callable[[], Random] | None = None,
    ):
        self.rules = rules or RoomRules()
        self.result_sink = result_sink
        self._rng_factory = rng_factory
        self._rooms: dict[str, Room] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def _new_room(self, code: str) -> Room:
        rng = self._rng_factory() if self._rng_factory else None
        room = Room(code, rules=self.rules, result_sink=self.result_sink, rng=rng)
        self._rooms[code] = room
        logger.info("Created room %s", code)
        return room

    def get_or_create(self, room_code: str) -> Room:
        code = normalize_room_code(room_code)
        room = self._rooms.get(code)
        if room is None:
            room = self._new_room(code)
        return room

    def create_room(self) -> Room:
        """Create a room under a fresh, unused code."""
        code = generate_room_code()
        while code in self._rooms:
            code = generate_room_code()
        return self._new_room(code)

    def get_room(self, room_code: str) -> Room | None:
        try:
            code = normalize_room_code(room_code)
        except InvalidRoomCode:
            return None
        return self._rooms.get(code)

    def require_room(self, room_code: str) -> Room:
        room = self.get_room(room_code)
        if room is None:
            raise RoomNotFound(room_code)
        return room

    def end_room(self, room_code: str) -> Room | None:
        room = self._rooms.pop(room_code.upper(), None)
        if room is not None:
            logger.info("Ended room %s", room.room_code)
        return room

    def list_rooms(self) -> list[Room]:
        return list(self._rooms.values())

    def cleanup_finished_rooms(self, max_age_seconds: int = 3600) -> list[str]:
        """
        Retire rooms nobody needs any more.

        A room goes when it has no live connections and either reached
        game_end or is older than `max_age_seconds`.

        Returns:
            Codes of the rooms removed
        """
        now = time.time()
        stale = [
            code for code, room in self._rooms.items()
            if len(room.connections) == 0 and (
                room.state.phase == GamePhase.GAME_END
                or now - room.created_at > max_age_seconds
            )
        ]
        for code in stale:
            self.end_room(code)
        return stale
