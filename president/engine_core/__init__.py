"""
Engine Core - Authoritative President rules and state.

The engine:
1. Builds, shuffles and deals decks
2. Judges whether a play is legal
3. Holds the room's GameState
4. Applies actions via the reducer, producing outbound events
"""

from .cards import Card, Rank, Suit, build_deck, shuffle, deal, rank_value, sort_hand
from .legality import is_valid_set, can_beat, owns_cards, legal_plays
from .state import GameState, GamePhase, PlayerState, Pile, Table, Role, RoomRules
from .action import Action, ActionType, ActionPayload, ActionResult, RejectionCode
from .reducer import Reducer, apply_action

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "build_deck",
    "shuffle",
    "deal",
    "rank_value",
    "sort_hand",
    "is_valid_set",
    "can_beat",
    "owns_cards",
    "legal_plays",
    "GameState",
    "GamePhase",
    "PlayerState",
    "Pile",
    "Table",
    "Role",
    "RoomRules",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "RejectionCode",
    "Reducer",
    "apply_action",
]
