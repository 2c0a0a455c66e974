"""
Results Module - What a finished match produces.

- Elo deltas (two-player primitive plus a pairwise aggregation)
- Final rankings and finishing-position roles
- Match-result records and the sinks that store them
"""

from .elo import K_FACTOR, DEFAULT_RATING, expected_score, elo_delta, pairwise_deltas, round_half_up
from .rankings import Ranking, role_for_position, assign_roles, final_rankings
from .sink import (
    MatchPlayer,
    MatchResult,
    ResultSink,
    InMemoryResultSink,
    JsonlResultSink,
    build_match_result,
)

__all__ = [
    "K_FACTOR",
    "DEFAULT_RATING",
    "expected_score",
    "elo_delta",
    "pairwise_deltas",
    "round_half_up",
    "Ranking",
    "role_for_position",
    "assign_roles",
    "final_rankings",
    "MatchPlayer",
    "MatchResult",
    "ResultSink",
    "InMemoryResultSink",
    "JsonlResultSink",
    "build_match_result",
]
