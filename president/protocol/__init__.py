"""
Protocol Module - Wire format between clients and a room.

Inbound events are decoded once into a closed set of models; outbound
events are built from the same set. State snapshots are personalized per
viewer.
"""

from .messages import (
    # Shared
    CardModel,
    PileView,
    PlayerView,
    GameStateView,
    RankingEntry,
    # Client -> server
    ClientEvent,
    ClientMessage,
    CLIENT_MESSAGE_TYPES,
    JoinRoom,
    LeaveRoom,
    SetReady,
    PlayCards,
    PassTurn,
    ChatMessage,
    Ping,
    # Server -> client
    ServerMessage,
    RoomState,
    PlayerJoined,
    PlayerLeft,
    PlayerReadyChanged,
    CardsPlayed,
    TurnPassed,
    TurnChanged,
    RoundEnd,
    GameEnd,
    ChatBroadcast,
    SystemMessage,
    ErrorMessage,
    Pong,
    # Decoding
    parse_client_message,
    parse_server_message,
)
from .views import room_state, player_view, game_state_view, card_models, ranking_entries

__all__ = [
    "CardModel",
    "PileView",
    "PlayerView",
    "GameStateView",
    "RankingEntry",
    "ClientEvent",
    "ClientMessage",
    "CLIENT_MESSAGE_TYPES",
    "JoinRoom",
    "LeaveRoom",
    "SetReady",
    "PlayCards",
    "PassTurn",
    "ChatMessage",
    "Ping",
    "ServerMessage",
    "RoomState",
    "PlayerJoined",
    "PlayerLeft",
    "PlayerReadyChanged",
    "CardsPlayed",
    "TurnPassed",
    "TurnChanged",
    "RoundEnd",
    "GameEnd",
    "ChatBroadcast",
    "SystemMessage",
    "ErrorMessage",
    "Pong",
    "parse_client_message",
    "parse_server_message",
    "room_state",
    "player_view",
    "game_state_view",
    "card_models",
    "ranking_entries",
]
