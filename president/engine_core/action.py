"""
Action System - Actions, payloads, rejections and results.

Every change to a room's GameState is an Action applied by the reducer.
A rejected action carries a typed RejectionCode and never a new state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .cards import Card


class ActionType(Enum):
    """Types of actions in the system."""
    # Seating
    JOIN = "join"
    LEAVE = "leave"
    DISCONNECT = "disconnect"

    # Lobby
    SET_READY = "set_ready"

    # Play
    PLAY_CARDS = "play_cards"
    PASS_TURN = "pass_turn"


class RejectionCode(Enum):
    """Why an action was refused. Sent to the requester as the error code."""
    NOT_YOUR_TURN = "not_your_turn"
    INVALID_SET = "invalid_set"
    CANNOT_BEAT_PILE = "cannot_beat_pile"
    CARDS_NOT_OWNED = "cards_not_owned"
    WRONG_PHASE = "wrong_phase"
    NOT_IN_ROOM = "not_in_room"
    ROOM_FULL = "room_full"


@dataclass
class ActionPayload:
    """
    Parameters of an action.

    Different action types use different fields; the reducer validates.
    """
    player_id: str
    handle: str | None = None
    ready: bool | None = None
    cards: list[Card] = field(default_factory=list)


@dataclass
class Action:
    """A complete action to be applied to a room's state."""
    action_type: ActionType
    payload: ActionPayload

    @classmethod
    def join(cls, player_id: str, handle: str) -> Action:
        return cls(ActionType.JOIN, ActionPayload(player_id=player_id, handle=handle))

    @classmethod
    def leave(cls, player_id: str) -> Action:
        return cls(ActionType.LEAVE, ActionPayload(player_id=player_id))

    @classmethod
    def disconnect(cls, player_id: str) -> Action:
        """Silent variant of leave, used when a socket goes away."""
        return cls(ActionType.DISCONNECT, ActionPayload(player_id=player_id))

    @classmethod
    def set_ready(cls, player_id: str, ready: bool = True) -> Action:
        return cls(ActionType.SET_READY, ActionPayload(player_id=player_id, ready=ready))

    @classmethod
    def play_cards(cls, player_id: str, cards: list[Card]) -> Action:
        return cls(ActionType.PLAY_CARDS, ActionPayload(player_id=player_id, cards=list(cards)))

    @classmethod
    def pass_turn(cls, player_id: str) -> Action:
        return cls(ActionType.PASS_TURN, ActionPayload(player_id=player_id))


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the action succeeded
    - The new state (only on success)
    - Outbound events for every connection in the room
    - Whether each viewer needs a fresh room_state
    - The rejection (only on failure)
    """
    success: bool
    new_state: Any | None = None  # GameState
    events: list[Any] = field(default_factory=list)  # ServerMessage
    sync_state: bool = False

    rejection: RejectionCode | None = None
    error: str | None = None

    @classmethod
    def failure(cls, rejection: RejectionCode, error: str) -> ActionResult:
        return cls(success=False, rejection=rejection, error=error)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        events: list[Any] | None = None,
        sync_state: bool = False,
    ) -> ActionResult:
        return cls(
            success=True,
            new_state=state,
            events=events or [],
            sync_state=sync_state,
        )
