"""
Message Protocol - Closed event sets for both directions.

Every message is a JSON object with a `type` discriminant. Inbound messages
are decoded exactly once, at the connection boundary, into one of the
ClientMessage models; anything else raises ProtocolError.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from ..exceptions import ProtocolError


RankName = Literal["2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A"]
SuitName = Literal["hearts", "diamonds", "clubs", "spades"]
PhaseName = Literal["lobby", "playing", "round_end", "game_end"]
RoleName = Literal["president", "vice_president", "citizen", "vice_scum", "scum"]


class WireModel(BaseModel):
    """Base for every protocol model."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Shared Models
# =============================================================================

class CardModel(WireModel):
    rank: RankName
    suit: SuitName


class PileView(WireModel):
    cards: list[CardModel]
    rank: RankName
    count: int


class PlayerView(WireModel):
    """A seat as seen by one viewer. Other players' hands are never sent."""
    id: str
    handle: str
    hand: list[CardModel] = Field(default_factory=list)
    hand_count: int = 0
    is_connected: bool = True
    is_ready: bool = False
    role: Optional[RoleName] = None


class GameStateView(WireModel):
    room_code: str
    phase: PhaseName
    players: list[PlayerView]
    pile: Optional[PileView] = None
    turn_index: int = 0
    round_number: int = 1
    deck_count: int = 0
    finish_order: list[str] = Field(default_factory=list)


class RankingEntry(WireModel):
    player_id: str
    handle: str
    role: RoleName
    rank: int


# =============================================================================
# Client -> Server
# =============================================================================

class ClientEvent(WireModel):
    player_id: str = Field(min_length=1)
    timestamp: Optional[str] = None


class JoinRoom(ClientEvent):
    type: Literal["join_room"] = "join_room"
    room_code: str
    handle: str = Field(min_length=1, max_length=20)


class LeaveRoom(ClientEvent):
    type: Literal["leave_room"] = "leave_room"


class SetReady(ClientEvent):
    type: Literal["set_ready"] = "set_ready"
    ready: bool


class PlayCards(ClientEvent):
    type: Literal["play_cards"] = "play_cards"
    cards: list[CardModel]


class PassTurn(ClientEvent):
    type: Literal["pass_turn"] = "pass_turn"


class ChatMessage(ClientEvent):
    type: Literal["chat_message"] = "chat_message"
    message: str = Field(min_length=1, max_length=500)
    handle: str


class Ping(ClientEvent):
    type: Literal["ping"] = "ping"


ClientMessage = Annotated[
    Union[JoinRoom, LeaveRoom, SetReady, PlayCards, PassTurn, ChatMessage, Ping],
    Field(discriminator="type"),
]

CLIENT_MESSAGE_TYPES: tuple[type[ClientEvent], ...] = (
    JoinRoom, LeaveRoom, SetReady, PlayCards, PassTurn, ChatMessage, Ping,
)


# =============================================================================
# Server -> Client
# =============================================================================

class RoomState(WireModel):
    type: Literal["room_state"] = "room_state"
    game_state: GameStateView
    players: list[PlayerView]


class PlayerJoined(WireModel):
    type: Literal["player_joined"] = "player_joined"
    player: PlayerView


class PlayerLeft(WireModel):
    type: Literal["player_left"] = "player_left"
    player_id: str


class PlayerReadyChanged(WireModel):
    type: Literal["player_ready_changed"] = "player_ready_changed"
    player_id: str
    ready: bool


class CardsPlayed(WireModel):
    type: Literal["cards_played"] = "cards_played"
    player_id: str
    cards: list[CardModel]
    pile_rank: RankName
    pile_count: int


class TurnPassed(WireModel):
    type: Literal["turn_passed"] = "turn_passed"
    player_id: str


class TurnChanged(WireModel):
    type: Literal["turn_changed"] = "turn_changed"
    turn_index: int
    player_id: str


class RoundEnd(WireModel):
    type: Literal["round_end"] = "round_end"
    winner_id: str
    roles: dict[str, RoleName]


class GameEnd(WireModel):
    type: Literal["game_end"] = "game_end"
    final_rankings: list[RankingEntry]


class ChatBroadcast(WireModel):
    type: Literal["chat_message"] = "chat_message"
    player_id: str
    handle: str
    message: str
    timestamp: str


class SystemMessage(WireModel):
    type: Literal["system_message"] = "system_message"
    message: str


class ErrorMessage(WireModel):
    type: Literal["error"] = "error"
    message: str
    code: Optional[str] = None


class Pong(WireModel):
    type: Literal["pong"] = "pong"


ServerMessage = Annotated[
    Union[
        RoomState, PlayerJoined, PlayerLeft, PlayerReadyChanged, CardsPlayed,
        TurnPassed, TurnChanged, RoundEnd, GameEnd, ChatBroadcast,
        SystemMessage, ErrorMessage, Pong,
    ],
    Field(discriminator="type"),
]


# =============================================================================
# Decoding
# =============================================================================

_client_adapter: TypeAdapter = TypeAdapter(ClientMessage)
_server_adapter: TypeAdapter = TypeAdapter(ServerMessage)


def parse_client_message(raw: Union[str, bytes, dict]) -> ClientEvent:
    """
    Decode one inbound message.

    Raises:
        ProtocolError: unparseable JSON, unknown `type`, or bad fields
    """
    try:
        if isinstance(raw, (str, bytes)):
            return _client_adapter.validate_json(raw)
        return _client_adapter.validate_python(raw)
    except ValidationError as e:
        raise ProtocolError(_describe(e)) from e


def parse_server_message(raw: Union[str, bytes, dict]) -> WireModel:
    """Decode an outbound message. Used by clients and tests."""
    try:
        if isinstance(raw, (str, bytes)):
            return _server_adapter.validate_json(raw)
        return _server_adapter.validate_python(raw)
    except ValidationError as e:
        raise ProtocolError(_describe(e)) from e


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    if location:
        return f"Invalid message: {location}: {first['msg']}"
    return f"Invalid message: {first['msg']}"
