"""
Play Legality - Pure checks on proposed plays.

A play is a non-empty set of same-rank cards. It leads an open trick
freely, otherwise it must match the pile's count exactly and carry a
strictly higher rank.
"""

from __future__ import annotations
from collections import Counter
from typing import Iterable, Sequence, TYPE_CHECKING

from .cards import Card, RANK_ORDER, rank_value

if TYPE_CHECKING:
    from .state import Pile


def is_valid_set(cards: Sequence[Card]) -> bool:
    """True iff `cards` is non-empty and every card shares one rank."""
    if not cards:
        return False
    rank = cards[0].rank
    return all(card.rank == rank for card in cards)


def can_beat(candidate: Sequence[Card], pile: Pile | None) -> bool:
    """
    Check whether `candidate` may be played onto `pile`.

    No "upgrading": a pair never beats a single, a triple never beats a pair.
    """
    if not is_valid_set(candidate):
        return False
    if pile is None or pile.count == 0:
        return True
    if len(candidate) != pile.count:
        return False
    return rank_value(candidate[0].rank) > rank_value(pile.rank)


def owns_cards(hand: Iterable[Card], cards: Iterable[Card]) -> bool:
    """
    True iff every requested card is physically in `hand`.

    Each hand card can be consumed once, so asking for the same card more
    times than it is held fails.
    """
    held = Counter(hand)
    wanted = Counter(cards)
    return all(held[card] >= count for card, count in wanted.items())


def remove_cards(hand: Sequence[Card], cards: Iterable[Card]) -> list[Card]:
    """Return `hand` without one copy of each card in `cards`."""
    remaining = list(hand)
    for card in cards:
        remaining.remove(card)
    return remaining


def legal_plays(hand: Sequence[Card], pile: Pile | None) -> list[list[Card]]:
    """
    Enumerate the legal plays from `hand`, lowest rank first.

    Suits are interchangeable, so only one representative set is produced
    per (rank, count) pair.
    """
    by_rank: dict = {}
    for card in hand:
        by_rank.setdefault(card.rank, []).append(card)

    plays: list[list[Card]] = []
    for rank in RANK_ORDER:
        cards = by_rank.get(rank, [])
        for count in range(1, len(cards) + 1):
            candidate = cards[:count]
            if can_beat(candidate, pile):
                plays.append(candidate)
    return plays
