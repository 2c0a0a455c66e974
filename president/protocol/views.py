"""
Views - What each connection is allowed to see of a room.

A viewer gets their own hand; every other hand is reduced to a count.
Duck-typed over the engine state so the protocol layer stays import-free
of the engine.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Iterable

from .messages import (
    CardModel,
    GameStateView,
    PileView,
    PlayerView,
    RankingEntry,
    RoomState,
)

if TYPE_CHECKING:
    from ..engine_core.cards import Card
    from ..engine_core.state import GameState, Pile, PlayerState
    from ..results.rankings import Ranking


def card_model(card: Card) -> CardModel:
    return CardModel(rank=card.rank.value, suit=card.suit.value)


def card_models(cards: Iterable[Card]) -> list[CardModel]:
    return [card_model(card) for card in cards]


def pile_view(pile: Pile | None) -> PileView | None:
    if pile is None:
        return None
    return PileView(cards=card_models(pile.cards), rank=pile.rank.value, count=pile.count)


def player_view(player: PlayerState, viewer_id: str | None = None) -> PlayerView:
    """Seat view. The hand is included only when the viewer owns it."""
    return PlayerView(
        id=player.player_id,
        handle=player.handle,
        hand=card_models(player.hand) if player.player_id == viewer_id else [],
        hand_count=player.hand_count,
        is_connected=player.is_connected,
        is_ready=player.is_ready,
        role=player.role.value if player.role else None,
    )


def game_state_view(state: GameState, viewer_id: str | None = None) -> GameStateView:
    table = state.table
    return GameStateView(
        room_code=state.room_code,
        phase=state.phase.value,
        players=[player_view(p, viewer_id) for p in state.players],
        pile=pile_view(state.pile),
        turn_index=state.turn_index,
        round_number=state.round_number,
        deck_count=table.deck_count if table else 0,
        finish_order=list(table.finish_order) if table else list(state.last_finish_order),
    )


def room_state(state: GameState, viewer_id: str | None = None) -> RoomState:
    view = game_state_view(state, viewer_id)
    return RoomState(game_state=view, players=view.players)


def ranking_entries(rankings: Iterable[Ranking]) -> list[RankingEntry]:
    return [
        RankingEntry(
            player_id=r.player_id,
            handle=r.handle,
            role=r.role.value,
            rank=r.rank,
        )
        for r in rankings
    ]
