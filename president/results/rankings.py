"""
Rankings - Finishing positions and the roles they map to.

Positions come from the order in which hands emptied, never from hand
sizes at some later moment.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence, TYPE_CHECKING

from ..engine_core.state import Role

if TYPE_CHECKING:
    from ..engine_core.state import GameState

# With fewer participants only president and scum are distinguished
VICE_ROLES_MIN_PLAYERS = 5


@dataclass(frozen=True)
class Ranking:
    player_id: str
    handle: str
    role: Role
    rank: int


def role_for_position(position: int, participant_count: int) -> Role:
    """
    Role for a 1-based finishing position.

    First is always president and last is always scum. From five
    participants up, second is vice president and second-to-last is vice
    scum. Everyone else is a citizen.
    """
    if position == 1:
        return Role.PRESIDENT
    if position == participant_count:
        return Role.SCUM
    if participant_count >= VICE_ROLES_MIN_PLAYERS:
        if position == 2:
            return Role.VICE_PRESIDENT
        if position == participant_count - 1:
            return Role.VICE_SCUM
    return Role.CITIZEN


def assign_roles(finish_order: Sequence[str]) -> dict[str, Role]:
    count = len(finish_order)
    return {
        player_id: role_for_position(position, count)
        for position, player_id in enumerate(finish_order, start=1)
    }


def final_rankings(state: GameState) -> list[Ranking]:
    """
    Rankings of the most recently completed round, best first.

    Empty until a round has finished.
    """
    order = state.last_finish_order
    roles = assign_roles(order)
    rankings = []
    for position, player_id in enumerate(order, start=1):
        player = state.get_player(player_id)
        rankings.append(Ranking(
            player_id=player_id,
            handle=player.handle if player else player_id,
            role=roles[player_id],
            rank=position,
        ))
    return rankings
