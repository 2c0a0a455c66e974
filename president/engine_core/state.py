"""
Game State - The authoritative aggregate for one room.

Design principles:
- Only the reducer mutates state, and only on a clone
- Phase-indexed: the Table (deck, pile, turn pointer, passes, finishing
  order) exists only once cards have been dealt, so a lobby can never
  carry half-dealt data
- Players are never removed from a room, only marked disconnected
"""

from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum

from .cards import Card, CARDS_PER_DECK
from ..exceptions import InvalidStateTransition


MIN_PLAYERS = 3
MAX_PLAYERS = 12

# More participants than this always play with two decks
SINGLE_DECK_MAX_PLAYERS = 6


class GamePhase(Enum):
    """Room phases. round_end is transient: it resolves within one action."""
    LOBBY = "lobby"
    PLAYING = "playing"
    ROUND_END = "round_end"
    GAME_END = "game_end"


PHASE_TRANSITIONS: dict[GamePhase, frozenset[GamePhase]] = {
    GamePhase.LOBBY: frozenset({GamePhase.PLAYING}),
    GamePhase.PLAYING: frozenset({GamePhase.ROUND_END}),
    GamePhase.ROUND_END: frozenset({GamePhase.LOBBY, GamePhase.GAME_END}),
    GamePhase.GAME_END: frozenset(),
}


class Role(Enum):
    """Finishing-position labels assigned at round end."""
    PRESIDENT = "president"
    VICE_PRESIDENT = "vice_president"
    CITIZEN = "citizen"
    VICE_SCUM = "vice_scum"
    SCUM = "scum"


@dataclass(frozen=True)
class RoomRules:
    """Per-room settings fixed when the room is created."""
    two_decks: bool = False
    rounds_per_game: int = 1
    min_players: int = MIN_PLAYERS
    max_players: int = MAX_PLAYERS

    def deck_count(self, participant_count: int) -> int:
        if self.two_decks or participant_count > SINGLE_DECK_MAX_PLAYERS:
            return 2
        return 1


@dataclass
class PlayerState:
    """
    A seat in the room.

    `in_round` marks players dealt into the current round. Anyone seated
    after the deal spectates until the next one.
    """
    player_id: str
    handle: str
    hand: list[Card] = field(default_factory=list)
    is_connected: bool = True
    is_ready: bool = False
    role: Role | None = None
    in_round: bool = False

    @property
    def hand_count(self) -> int:
        return len(self.hand)

    @property
    def is_active(self) -> bool:
        """Still holding cards in the current round."""
        return self.in_round and bool(self.hand)


@dataclass(frozen=True)
class Pile:
    """The most recent accepted play."""
    cards: tuple[Card, ...]
    played_by: str

    @property
    def rank(self):
        return self.cards[0].rank

    @property
    def count(self) -> int:
        return len(self.cards)


@dataclass
class Table:
    """In-round state. Present from the deal until the room returns to the lobby."""
    deck_count: int
    deck: list[Card] = field(default_factory=list)
    pile: Pile | None = None
    discard: list[Card] = field(default_factory=list)
    turn_index: int = 0
    passed: set[str] = field(default_factory=set)
    finish_order: list[str] = field(default_factory=list)

    @property
    def total_cards(self) -> int:
        return self.deck_count * CARDS_PER_DECK

    def clear_pile(self) -> None:
        """Move the pile to the discard and reopen the trick."""
        if self.pile is not None:
            self.discard.extend(self.pile.cards)
        self.pile = None
        self.passed.clear()


@dataclass
class GameState:
    """
    Complete room state at a point in time.

    `turn_index` indexes `players`, whose order is the seating order and
    therefore the turn order.
    """
    room_code: str
    rules: RoomRules = field(default_factory=RoomRules)
    phase: GamePhase = GamePhase.LOBBY
    players: list[PlayerState] = field(default_factory=list)
    round_number: int = 1
    table: Table | None = None

    # Finishing order of the most recently completed round
    last_finish_order: list[str] = field(default_factory=list)

    @property
    def pile(self) -> Pile | None:
        return self.table.pile if self.table else None

    @property
    def turn_index(self) -> int:
        return self.table.turn_index if self.table else 0

    @property
    def current_player(self) -> PlayerState | None:
        if self.table is None or not self.players:
            return None
        return self.players[self.table.turn_index]

    @property
    def connected_players(self) -> list[PlayerState]:
        return [p for p in self.players if p.is_connected]

    @property
    def participants(self) -> list[PlayerState]:
        return [p for p in self.players if p.in_round]

    @property
    def active_players(self) -> list[PlayerState]:
        return [p for p in self.players if p.is_active]

    def get_player(self, player_id: str) -> PlayerState | None:
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def player_index(self, player_id: str) -> int | None:
        for index, p in enumerate(self.players):
            if p.player_id == player_id:
                return index
        return None

    def next_active_index(self, start: int) -> int | None:
        """
        First active seat after `start`, wrapping around.

        `start` itself is checked last, so a lone active player finds
        their own seat.
        """
        count = len(self.players)
        for offset in range(1, count + 1):
            index = (start + offset) % count
            if self.players[index].is_active:
                return index
        return None

    def cards_in_play(self) -> int:
        """Hands + pile + discard + undealt deck. Equals the table total while playing."""
        if self.table is None:
            return sum(p.hand_count for p in self.players)
        pile_count = self.table.pile.count if self.table.pile else 0
        return (
            sum(p.hand_count for p in self.players)
            + pile_count
            + len(self.table.discard)
            + len(self.table.deck)
        )

    def transition(self, target: GamePhase) -> None:
        if target not in PHASE_TRANSITIONS[self.phase]:
            raise InvalidStateTransition(self.phase, target)
        self.phase = target

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)
