"""
Reducer - Applies actions to a room's game state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- (state, action) -> ActionResult; the input state is never touched
- Handlers mutate a clone, so a rejection leaves nothing behind
- Every success carries the outbound events for the whole room
- Rejections carry a RejectionCode for the requester only
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from random import Random

from .action import Action, ActionResult, ActionType, RejectionCode
from .cards import build_deck, deal, shuffle
from .legality import can_beat, is_valid_set, owns_cards, remove_cards
from .state import GamePhase, GameState, Pile, PlayerState, Table
from ..protocol.messages import (
    CardsPlayed,
    GameEnd,
    PlayerJoined,
    PlayerLeft,
    PlayerReadyChanged,
    RoundEnd,
    SystemMessage,
    TurnChanged,
    TurnPassed,
)
from ..protocol.views import card_models, player_view, ranking_entries


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Stateless apart from the shuffling source; all room data is in
    GameState, room settings are in GameState.rules.
    """
    rng: Random | None = None

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state and events, or a rejection.
        """
        rejection = self._validate_action(state, action)
        if rejection:
            return rejection

        handler = self._get_handler(action.action_type)
        return handler(state.clone(), action)

    def _validate_action(self, state: GameState, action: Action) -> ActionResult | None:
        """Seat, phase and turn checks shared by several handlers."""
        if action.action_type == ActionType.JOIN:
            return None

        player_id = action.payload.player_id
        if state.get_player(player_id) is None:
            return ActionResult.failure(
                RejectionCode.NOT_IN_ROOM, f"{player_id} has not joined this room"
            )

        if action.action_type == ActionType.SET_READY and state.phase != GamePhase.LOBBY:
            return ActionResult.failure(
                RejectionCode.WRONG_PHASE, "Ready state can only change in the lobby"
            )

        if action.action_type in {ActionType.PLAY_CARDS, ActionType.PASS_TURN}:
            if state.phase != GamePhase.PLAYING:
                return ActionResult.failure(
                    RejectionCode.WRONG_PHASE, "No round is being played"
                )
            if state.current_player.player_id != player_id:
                return ActionResult.failure(RejectionCode.NOT_YOUR_TURN, "Not your turn")

        return None

    def _get_handler(self, action_type: ActionType):
        handlers = {
            ActionType.JOIN: self._handle_join,
            ActionType.LEAVE: self._handle_leave,
            ActionType.DISCONNECT: self._handle_disconnect,
            ActionType.SET_READY: self._handle_set_ready,
            ActionType.PLAY_CARDS: self._handle_play_cards,
            ActionType.PASS_TURN: self._handle_pass_turn,
        }
        return handlers[action_type]

    # =========================================================================
    # Seating
    # =========================================================================

    def _handle_join(self, state: GameState, action: Action) -> ActionResult:
        """
        Seat a new player or reconnect an existing one.

        Joining mid-round seats the player as a spectator: they get no cards
        until the next deal.
        """
        player_id = action.payload.player_id
        handle = action.payload.handle or player_id
        player = state.get_player(player_id)

        if player is None:
            if len(state.players) >= state.rules.max_players:
                return ActionResult.failure(RejectionCode.ROOM_FULL, "Room is full")
            player = PlayerState(player_id=player_id, handle=handle)
            state.players.append(player)
        else:
            player.is_connected = True
            player.handle = handle

        return ActionResult.success_with_state(
            state,
            events=[PlayerJoined(player=player_view(player))],
            sync_state=True,
        )

    def _handle_leave(self, state: GameState, action: Action) -> ActionResult:
        player_id = action.payload.player_id
        player = state.get_player(player_id)
        player.is_connected = False
        player.is_ready = False
        return ActionResult.success_with_state(
            state, events=[PlayerLeft(player_id=player_id)]
        )

    def _handle_disconnect(self, state: GameState, action: Action) -> ActionResult:
        """Seat, hand and turn are kept; a later join resumes play."""
        state.get_player(action.payload.player_id).is_connected = False
        return ActionResult.success_with_state(state)

    # =========================================================================
    # Lobby
    # =========================================================================

    def _handle_set_ready(self, state: GameState, action: Action) -> ActionResult:
        player_id = action.payload.player_id
        ready = bool(action.payload.ready)
        state.get_player(player_id).is_ready = ready

        events = [PlayerReadyChanged(player_id=player_id, ready=ready)]
        if not self._everyone_ready(state):
            return ActionResult.success_with_state(state, events=events)

        events.extend(self._start_game(state))
        return ActionResult.success_with_state(state, events=events, sync_state=True)

    def _everyone_ready(self, state: GameState) -> bool:
        connected = state.connected_players
        return (
            len(connected) >= state.rules.min_players
            and all(p.is_ready for p in connected)
        )

    def _start_game(self, state: GameState) -> list:
        """Shuffle, deal to every connected player, and hand the lead to the first seat."""
        participants = state.connected_players
        deck_count = state.rules.deck_count(len(participants))
        cards = shuffle(build_deck(deck_count), self.rng)
        dealt, leftover = deal(cards, participants)

        dealt_by_id = {p.player_id: replace(p, in_round=True) for p in dealt}
        state.players = [
            dealt_by_id.get(p.player_id) or replace(p, hand=[], in_round=False)
            for p in state.players
        ]

        state.table = Table(deck_count=deck_count, deck=leftover)
        state.table.turn_index = state.next_active_index(len(state.players) - 1)
        state.transition(GamePhase.PLAYING)

        return [
            SystemMessage(message=f"Round {state.round_number} started"),
            self._turn_changed(state),
        ]

    # =========================================================================
    # Play
    # =========================================================================

    def _handle_play_cards(self, state: GameState, action: Action) -> ActionResult:
        player_id = action.payload.player_id
        cards = action.payload.cards
        player = state.get_player(player_id)
        table = state.table

        if not is_valid_set(cards):
            return ActionResult.failure(
                RejectionCode.INVALID_SET, "Play one or more cards of the same rank"
            )
        if not owns_cards(player.hand, cards):
            return ActionResult.failure(
                RejectionCode.CARDS_NOT_OWNED, "Those cards are not in your hand"
            )
        if not can_beat(cards, table.pile):
            return ActionResult.failure(
                RejectionCode.CANNOT_BEAT_PILE,
                f"Play {table.pile.count} card(s) ranked above {table.pile.rank.value}",
            )

        player.hand = remove_cards(player.hand, cards)
        if table.pile is not None:
            table.discard.extend(table.pile.cards)
        table.pile = Pile(cards=tuple(cards), played_by=player_id)
        table.passed.clear()

        events = [
            CardsPlayed(
                player_id=player_id,
                cards=card_models(cards),
                pile_rank=table.pile.rank.value,
                pile_count=table.pile.count,
            )
        ]

        if not player.hand:
            table.finish_order.append(player_id)
            events.append(SystemMessage(message=f"{player.handle} is out of cards"))
            if len(state.active_players) <= 1:
                events.extend(self._end_round(state))
                return ActionResult.success_with_state(state, events=events, sync_state=True)

        table.turn_index = state.next_active_index(state.player_index(player_id))
        events.append(self._turn_changed(state))
        return ActionResult.success_with_state(state, events=events)

    def _handle_pass_turn(self, state: GameState, action: Action) -> ActionResult:
        """
        Pass on the current pile.

        Once every active player except the one who made the last play has
        passed, the trick closes and that player leads. If they are already
        out, the lead moves to the next active seat after them.
        """
        player_id = action.payload.player_id
        table = state.table
        events: list = [TurnPassed(player_id=player_id)]

        if table.pile is not None:
            table.passed.add(player_id)
            last_id = table.pile.played_by
            waiting = [
                p for p in state.active_players
                if p.player_id != last_id and p.player_id not in table.passed
            ]
            if not waiting:
                last_index = state.player_index(last_id)
                table.clear_pile()
                if state.players[last_index].is_active:
                    table.turn_index = last_index
                else:
                    table.turn_index = state.next_active_index(last_index)
                events.append(SystemMessage(message="Everyone passed, the trick is cleared"))
                events.append(self._turn_changed(state))
                return ActionResult.success_with_state(state, events=events)

        table.turn_index = state.next_active_index(state.player_index(player_id))
        events.append(self._turn_changed(state))
        return ActionResult.success_with_state(state, events=events)

    # =========================================================================
    # Round end
    # =========================================================================

    def _end_round(self, state: GameState) -> list:
        """
        Close the round: last player standing takes the final position,
        roles are assigned, and the room moves to game_end or back to the lobby.
        """
        from ..results.rankings import assign_roles, final_rankings

        table = state.table
        for p in state.active_players:
            table.finish_order.append(p.player_id)

        state.transition(GamePhase.ROUND_END)
        roles = assign_roles(table.finish_order)
        for p in state.players:
            if p.player_id in roles:
                p.role = roles[p.player_id]
        state.last_finish_order = list(table.finish_order)

        events: list = [
            RoundEnd(
                winner_id=table.finish_order[0],
                roles={pid: role.value for pid, role in roles.items()},
            )
        ]

        if state.round_number >= state.rules.rounds_per_game:
            state.transition(GamePhase.GAME_END)
            events.append(GameEnd(final_rankings=ranking_entries(final_rankings(state))))
            return events

        finished = state.round_number
        state.transition(GamePhase.LOBBY)
        state.round_number += 1
        state.table = None
        for p in state.players:
            p.hand = []
            p.in_round = False
            p.is_ready = False
        events.append(SystemMessage(
            message=f"Round {finished} complete, ready up for round {state.round_number}"
        ))
        return events

    def _turn_changed(self, state: GameState) -> TurnChanged:
        index = state.table.turn_index
        return TurnChanged(turn_index=index, player_id=state.players[index].player_id)


def apply_action(state: GameState, action: Action, rng: Random | None = None) -> ActionResult:
    """Convenience function to apply an action."""
    return Reducer(rng=rng).apply(state, action)
