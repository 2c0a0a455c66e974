"""
Elo - Rating deltas for completed matches.

`elo_delta` is the two-player primitive. `pairwise_deltas` is one
aggregation policy for a multiplayer table: every pair of participants is
scored as a head-to-head game won by the better finisher, and each
player's deltas are summed.
"""

from __future__ import annotations
import math
from typing import Mapping, Sequence

K_FACTOR = 32
DEFAULT_RATING = 1000


def expected_score(player_rating: float, opponent_rating: float) -> float:
    return 1 / (1 + 10 ** ((opponent_rating - player_rating) / 400))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, exact halves towards +infinity (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def elo_delta(player_rating: float, opponent_rating: float, won: bool) -> int:
    """K * (actual - expected) rounded half up, with K = 32."""
    actual = 1 if won else 0
    return round_half_up(K_FACTOR * (actual - expected_score(player_rating, opponent_rating)))


def pairwise_deltas(
    ratings: Mapping[str, float],
    finish_order: Sequence[str],
) -> dict[str, int]:
    """
    Sum of head-to-head deltas against every other participant.

    Args:
        ratings: Current rating per player id; missing ids use DEFAULT_RATING
        finish_order: Player ids, best finisher first

    Returns:
        Delta per player id
    """
    deltas = {player_id: 0 for player_id in finish_order}
    for i, player_id in enumerate(finish_order):
        rating = ratings.get(player_id, DEFAULT_RATING)
        for j, opponent_id in enumerate(finish_order):
            if i == j:
                continue
            opponent_rating = ratings.get(opponent_id, DEFAULT_RATING)
            deltas[player_id] += elo_delta(rating, opponent_rating, won=i < j)
    return deltas
