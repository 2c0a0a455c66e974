"""
Cards - The 52-card domain, deck construction, shuffling and dealing.

Pure and stateless. Suits never affect legality; they only break ties
when a hand is sorted for display.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from random import Random
from typing import Iterable, Mapping, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .state import PlayerState


class Rank(Enum):
    """Card ranks, declared lowest to highest."""
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"


class Suit(Enum):
    """Card suits, in display order."""
    CLUBS = "clubs"
    DIAMONDS = "diamonds"
    HEARTS = "hearts"
    SPADES = "spades"


RANK_ORDER: list[Rank] = list(Rank)
RANK_VALUE: dict[Rank, int] = {rank: index for index, rank in enumerate(RANK_ORDER)}
SUIT_ORDER: dict[Suit, int] = {suit: index for index, suit in enumerate(Suit)}

CARDS_PER_DECK = len(RANK_ORDER) * len(SUIT_ORDER)


@dataclass(frozen=True)
class Card:
    """Immutable playing card. Two cards are equal when rank and suit match."""
    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return card_label(self)


def rank_value(rank: Rank) -> int:
    """Comparison value of a rank: 2 is 0, Ace is 12."""
    return RANK_VALUE[rank]


def display_key(card: Card) -> tuple[int, int]:
    """Sort key for showing a hand: by rank, then by suit."""
    return RANK_VALUE[card.rank], SUIT_ORDER[card.suit]


def sort_hand(cards: Iterable[Card]) -> list[Card]:
    return sorted(cards, key=display_key)


def build_deck(deck_count: int = 1) -> list[Card]:
    """Return `deck_count` concatenated, ordered 52-card sets."""
    if deck_count < 1:
        raise ValueError("deck_count must be at least 1")
    single = [Card(rank, suit) for suit in Suit for rank in RANK_ORDER]
    return single * deck_count


def shuffle(cards: Sequence[Card], rng: Random | None = None) -> list[Card]:
    """
    Return a uniformly random permutation of `cards`.

    Random.shuffle is a Fisher-Yates shuffle, so every ordering is equally
    likely given a uniform source. The input sequence is left untouched.
    """
    shuffled = list(cards)
    (rng or Random()).shuffle(shuffled)
    return shuffled


def deal(
    cards: Sequence[Card],
    players: Sequence[PlayerState],
) -> tuple[list[PlayerState], list[Card]]:
    """
    Deal `cards` round-robin, one at a time, starting at player index 0.

    Dealing continues until the cards run out. When the card count is not a
    multiple of the player count, the first `len(cards) % len(players)`
    players end up with one extra card. Existing hands are replaced.

    Returns:
        (players with their new, display-sorted hands, leftover cards)
        The leftover is always empty.
    """
    if not players:
        raise ValueError("Cannot deal to zero players")

    hands: list[list[Card]] = [[] for _ in players]
    for index, card in enumerate(cards):
        hands[index % len(players)].append(card)

    dealt = [
        replace(player, hand=sort_hand(hand))
        for player, hand in zip(players, hands)
    ]
    return dealt, []


def serialize_card(card: Card) -> dict[str, str]:
    return {"rank": card.rank.value, "suit": card.suit.value}


def deserialize_card(payload: Mapping[str, str]) -> Card:
    return Card(Rank(payload["rank"]), Suit(payload["suit"]))


def card_label(card: Card) -> str:
    return f"{card.rank.value} of {card.suit.value}"
