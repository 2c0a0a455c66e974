"""
Exceptions raised across the engine.

Legality problems are not exceptions: the reducer reports them as typed
rejections in its ActionResult. These classes cover broken protocol input,
programming errors in phase handling, and room lookup.
"""


class PresidentError(Exception):
    """Base class for all engine errors."""
    pass


class InvalidStateTransition(PresidentError):
    """A phase change outside lobby -> playing -> round_end -> lobby|game_end."""
    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move from {current.value} to {target.value}")


class ProtocolError(PresidentError):
    """An inbound message could not be decoded into a known event."""
    def __init__(self, message: str, code: str = "invalid_message"):
        self.code = code
        super().__init__(message)


class InvalidRoomCode(PresidentError):
    """Room codes are six upper-case letters or digits."""
    def __init__(self, room_code):
        self.room_code = room_code
        super().__init__(f"Invalid room code: {room_code!r}")


class RoomNotFound(PresidentError):
    def __init__(self, room_code):
        self.room_code = room_code
        super().__init__(f"Room {room_code} not found")
