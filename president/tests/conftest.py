"""
Pytest fixtures for President tests.
"""

import asyncio
from random import Random

import pytest

from ..engine_core.action import Action
from ..engine_core.cards import Card, Rank, Suit
from ..engine_core.reducer import Reducer
from ..engine_core.state import GamePhase, GameState, PlayerState, RoomRules, Table


SUITS = {"C": Suit.CLUBS, "D": Suit.DIAMONDS, "H": Suit.HEARTS, "S": Suit.SPADES}


def card(text: str) -> Card:
    """'10H' -> ten of hearts, 'QS' -> queen of spades."""
    return Card(Rank(text[:-1]), SUITS[text[-1]])


def cards(*texts: str) -> list[Card]:
    return [card(t) for t in texts]


def make_playing_state(
    hands: dict[str, list[Card]],
    turn: int = 0,
    rules: RoomRules | None = None,
    room_code: str = "TEST01",
) -> GameState:
    """A room mid-round with hand-picked hands, seated in dict order."""
    state = GameState(room_code=room_code, rules=rules or RoomRules(), phase=GamePhase.PLAYING)
    state.players = [
        PlayerState(player_id=pid, handle=pid.upper(), hand=list(hand), is_ready=True, in_round=True)
        for pid, hand in hands.items()
    ]
    state.table = Table(deck_count=1, turn_index=turn)
    return state


class FakeSocket:
    """
    Records what a room sends. Set `fail` to simulate a dead client.

    Every send yields to the event loop, so concurrent handlers get a
    chance to interleave.
    """

    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail
        self.closed_with: int | None = None

    async def send_json(self, data):
        await asyncio.sleep(0)
        if self.fail or self.closed_with is not None:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None):
        self.closed_with = code

    def types(self) -> list[str]:
        return [m["type"] for m in self.sent]

    def of_type(self, kind: str) -> list[dict]:
        return [m for m in self.sent if m["type"] == kind]


@pytest.fixture
def reducer() -> Reducer:
    return Reducer(rng=Random(7))


@pytest.fixture
def lobby_state(reducer) -> GameState:
    """Three players seated, nobody ready."""
    state = GameState(room_code="TEST01")
    for pid in ("alice", "bob", "carol"):
        state = reducer.apply(state, Action.join(pid, pid.capitalize())).new_state
    return state


@pytest.fixture
def dealt_state(reducer, lobby_state) -> GameState:
    """Three players, everyone ready, first round dealt."""
    state = lobby_state
    for pid in ("alice", "bob", "carol"):
        state = reducer.apply(state, Action.set_ready(pid)).new_state
    return state


@pytest.fixture
def short_round() -> GameState:
    """
    Three players with tiny hands, alice to lead.

    alice: 3H        bob: 5H 9S        carol: 4C KD
    """
    return make_playing_state({
        "alice": cards("3H"),
        "bob": cards("5H", "9S"),
        "carol": cards("4C", "KD"),
    })
