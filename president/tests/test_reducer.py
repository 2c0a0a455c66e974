"""
Tests for the reducer (state transitions).

Tests:
- Seating and readiness
- Dealing and turn order
- Play and pass handling
- Round and game resolution
- Rejections leave state untouched
"""

from random import Random

from ..engine_core.action import Action, RejectionCode
from ..engine_core.reducer import Reducer, apply_action
from ..engine_core.state import GamePhase, GameState, Role, RoomRules
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
from .conftest import cards, make_playing_state


def event_types(result):
    return [type(e) for e in result.events]


class TestSeating:
    def test_join_seats_player(self, reducer):
        result = reducer.apply(GameState(room_code="TEST01"), Action.join("alice", "Alice"))

        assert result.success
        assert result.sync_state
        assert [p.player_id for p in result.new_state.players] == ["alice"]
        assert event_types(result) == [PlayerJoined]

    def test_room_full(self, reducer):
        state = GameState(room_code="TEST01", rules=RoomRules(max_players=3))
        for pid in ("a", "b", "c"):
            state = reducer.apply(state, Action.join(pid, pid)).new_state

        result = reducer.apply(state, Action.join("d", "d"))

        assert not result.success
        assert result.rejection == RejectionCode.ROOM_FULL

    def test_rejoin_reconnects_same_seat(self, reducer, lobby_state):
        state = reducer.apply(lobby_state, Action.disconnect("bob")).new_state
        assert not state.get_player("bob").is_connected

        result = reducer.apply(state, Action.join("bob", "Bobby"))

        assert result.success
        assert len(result.new_state.players) == 3
        bob = result.new_state.get_player("bob")
        assert bob.is_connected
        assert bob.handle == "Bobby"

    def test_leave_marks_disconnected_and_unready(self, reducer, lobby_state):
        state = reducer.apply(lobby_state, Action.set_ready("bob")).new_state
        result = reducer.apply(state, Action.leave("bob"))

        assert result.success
        bob = result.new_state.get_player("bob")
        assert not bob.is_connected
        assert not bob.is_ready
        assert event_types(result) == [PlayerLeft]

    def test_disconnect_is_silent(self, reducer, lobby_state):
        result = reducer.apply(lobby_state, Action.disconnect("carol"))
        assert result.success
        assert result.events == []

    def test_unknown_player_rejected(self, reducer, lobby_state):
        result = reducer.apply(lobby_state, Action.set_ready("mallory"))
        assert result.rejection == RejectionCode.NOT_IN_ROOM


class TestStartGame:
    def test_waits_for_everyone(self, reducer, lobby_state):
        state = reducer.apply(lobby_state, Action.set_ready("alice")).new_state
        result = reducer.apply(state, Action.set_ready("bob"))

        assert result.success
        assert result.new_state.phase == GamePhase.LOBBY
        assert event_types(result) == [PlayerReadyChanged]

    def test_needs_three_players(self, reducer):
        state = GameState(room_code="TEST01")
        for pid in ("a", "b"):
            state = reducer.apply(state, Action.join(pid, pid)).new_state
            state = reducer.apply(state, Action.set_ready(pid)).new_state
        assert state.phase == GamePhase.LOBBY

    def test_last_ready_deals(self, dealt_state):
        state = dealt_state

        assert state.phase == GamePhase.PLAYING
        assert [p.hand_count for p in state.players] == [18, 17, 17]
        assert state.table.deck_count == 1
        assert state.cards_in_play() == 52
        assert state.turn_index == 0
        assert state.pile is None

    def test_start_events(self, reducer, lobby_state):
        state = reducer.apply(lobby_state, Action.set_ready("alice")).new_state
        state = reducer.apply(state, Action.set_ready("bob")).new_state
        result = reducer.apply(state, Action.set_ready("carol"))

        assert result.sync_state
        assert event_types(result) == [PlayerReadyChanged, SystemMessage, TurnChanged]
        assert result.events[-1].player_id == "alice"

    def test_disconnected_players_sit_out(self, reducer, lobby_state):
        state = reducer.apply(lobby_state, Action.join("dave", "Dave")).new_state
        state = reducer.apply(state, Action.disconnect("dave")).new_state
        for pid in ("alice", "bob", "carol"):
            state = reducer.apply(state, Action.set_ready(pid)).new_state

        assert state.phase == GamePhase.PLAYING
        dave = state.get_player("dave")
        assert not dave.in_round
        assert dave.hand == []
        assert state.cards_in_play() == 52

    def test_seven_players_use_two_decks(self, reducer):
        state = GameState(room_code="TEST01")
        ids = [f"p{i}" for i in range(7)]
        for pid in ids:
            state = reducer.apply(state, Action.join(pid, pid)).new_state
        for pid in ids:
            state = reducer.apply(state, Action.set_ready(pid)).new_state

        assert state.table.deck_count == 2
        assert state.cards_in_play() == 104
        assert sum(p.hand_count for p in state.players) == 104

    def test_two_decks_rule(self, reducer):
        state = GameState(room_code="TEST01", rules=RoomRules(two_decks=True))
        for pid in ("a", "b", "c"):
            state = reducer.apply(state, Action.join(pid, pid)).new_state
        for pid in ("a", "b", "c"):
            state = reducer.apply(state, Action.set_ready(pid)).new_state

        assert state.table.deck_count == 2
        assert state.cards_in_play() == 104

    def test_ready_outside_lobby(self, reducer, dealt_state):
        result = reducer.apply(dealt_state, Action.set_ready("alice", False))
        assert result.rejection == RejectionCode.WRONG_PHASE

    def test_seeded_deals_repeat(self, lobby_state):
        def deal_with(seed):
            r = Reducer(rng=Random(seed))
            state = lobby_state
            for pid in ("alice", "bob", "carol"):
                state = r.apply(state, Action.set_ready(pid)).new_state
            return [p.hand for p in state.players]

        assert deal_with(11) == deal_with(11)


class TestPlayCards:
    def test_not_your_turn(self, reducer, short_round):
        result = reducer.apply(short_round, Action.play_cards("bob", cards("5H")))
        assert result.rejection == RejectionCode.NOT_YOUR_TURN

    def test_wrong_phase(self, reducer, lobby_state):
        result = reducer.apply(lobby_state, Action.play_cards("alice", cards("5H")))
        assert result.rejection == RejectionCode.WRONG_PHASE

    def test_mixed_ranks(self, reducer):
        state = make_playing_state({"a": cards("5H", "6H"), "b": cards("2C"), "c": cards("2D")})
        result = reducer.apply(state, Action.play_cards("a", cards("5H", "6H")))
        assert result.rejection == RejectionCode.INVALID_SET

    def test_empty_play(self, reducer, short_round):
        result = reducer.apply(short_round, Action.play_cards("alice", []))
        assert result.rejection == RejectionCode.INVALID_SET

    def test_cards_not_owned(self, reducer, short_round):
        result = reducer.apply(short_round, Action.play_cards("alice", cards("AH")))
        assert result.rejection == RejectionCode.CARDS_NOT_OWNED

    def test_cannot_beat_pile(self, reducer):
        state = make_playing_state({"a": cards("9H", "JD"), "b": cards("4C", "9S"), "c": cards("2D")})
        state = reducer.apply(state, Action.play_cards("a", cards("9H"))).new_state

        for attempt in (cards("4C"), cards("9S")):
            result = reducer.apply(state, Action.play_cards("b", attempt))
            assert result.rejection == RejectionCode.CANNOT_BEAT_PILE

    def test_rejection_leaves_state_untouched(self, reducer, dealt_state):
        before = dealt_state.clone()
        reducer.apply(dealt_state, Action.play_cards("alice", cards("AH", "AS", "AD", "AC", "KD")))
        reducer.apply(dealt_state, Action.pass_turn("bob"))

        assert dealt_state == before

    def test_valid_play(self, reducer):
        state = make_playing_state({"a": cards("3H", "QS"), "b": cards("5H"), "c": cards("4C")})
        result = reducer.apply(state, Action.play_cards("a", cards("3H")))

        assert result.success
        new = result.new_state
        assert new.pile.cards == tuple(cards("3H"))
        assert new.pile.played_by == "a"
        assert new.get_player("a").hand == cards("QS")
        assert new.current_player.player_id == "b"
        assert event_types(result) == [CardsPlayed, TurnChanged]
        assert result.events[0].pile_rank == "3"
        assert result.events[0].pile_count == 1

    def test_beaten_pile_goes_to_discard(self, reducer):
        state = make_playing_state({"a": cards("3H", "QS"), "b": cards("5H", "6D"), "c": cards("4C", "2S")})
        state = reducer.apply(state, Action.play_cards("a", cards("3H"))).new_state
        state = reducer.apply(state, Action.play_cards("b", cards("5H"))).new_state

        assert state.table.discard == cards("3H")
        assert state.pile.played_by == "b"
        assert state.cards_in_play() == 6

    def test_input_state_not_mutated(self, reducer, short_round):
        before = short_round.clone()
        result = reducer.apply(short_round, Action.play_cards("alice", cards("3H")))
        assert result.success
        assert short_round == before


class TestPassTurn:
    def test_pass_on_open_trick_advances(self, reducer, short_round):
        result = reducer.apply(short_round, Action.pass_turn("alice"))

        assert result.success
        assert result.new_state.current_player.player_id == "bob"
        assert result.new_state.pile is None
        assert event_types(result) == [TurnPassed, TurnChanged]

    def test_everyone_passes_last_player_leads(self, reducer):
        state = make_playing_state({"a": cards("3H", "QS"), "b": cards("5H"), "c": cards("4C")})
        state = reducer.apply(state, Action.play_cards("a", cards("3H"))).new_state
        state = reducer.apply(state, Action.pass_turn("b")).new_state
        assert state.pile is not None

        result = reducer.apply(state, Action.pass_turn("c"))

        new = result.new_state
        assert new.pile is None
        assert new.table.passed == set()
        assert new.table.discard == cards("3H")
        assert new.current_player.player_id == "a"
        assert event_types(result) == [TurnPassed, SystemMessage, TurnChanged]

    def test_lead_skips_finished_player(self, reducer):
        state = make_playing_state({"a": cards("AH"), "b": cards("5H", "6H"), "c": cards("4C", "7D")})
        state = reducer.apply(state, Action.play_cards("a", cards("AH"))).new_state
        assert state.table.finish_order == ["a"]

        state = reducer.apply(state, Action.pass_turn("b")).new_state
        assert state.current_player.player_id == "c"
        state = reducer.apply(state, Action.pass_turn("c")).new_state

        assert state.pile is None
        assert state.current_player.player_id == "b"

    def test_pass_wrong_turn(self, reducer, short_round):
        result = reducer.apply(short_round, Action.pass_turn("carol"))
        assert result.rejection == RejectionCode.NOT_YOUR_TURN


class TestRoundEnd:
    def play_short_round(self, reducer, state):
        """alice out first, carol second, bob left holding 9S."""
        steps = [
            Action.play_cards("alice", cards("3H")),
            Action.play_cards("bob", cards("5H")),
            Action.play_cards("carol", cards("KD")),
            Action.pass_turn("bob"),
            Action.play_cards("carol", cards("4C")),
        ]
        result = None
        for action in steps:
            result = reducer.apply(state, action)
            assert result.success, result.error
            state = result.new_state
        return result

    def test_finished_players_are_skipped(self, reducer, short_round):
        state = reducer.apply(short_round, Action.play_cards("alice", cards("3H"))).new_state
        state = reducer.apply(state, Action.play_cards("bob", cards("5H"))).new_state
        state = reducer.apply(state, Action.play_cards("carol", cards("KD"))).new_state
        assert state.current_player.player_id == "bob"

    def test_round_resolves_to_game_end(self, reducer, short_round):
        result = self.play_short_round(reducer, short_round)
        state = result.new_state

        assert state.phase == GamePhase.GAME_END
        assert state.last_finish_order == ["alice", "carol", "bob"]
        assert state.get_player("alice").role == Role.PRESIDENT
        assert state.get_player("carol").role == Role.CITIZEN
        assert state.get_player("bob").role == Role.SCUM
        assert result.sync_state

        assert event_types(result) == [CardsPlayed, SystemMessage, RoundEnd, GameEnd]
        round_end, game_end = result.events[2], result.events[3]
        assert round_end.winner_id == "alice"
        assert round_end.roles == {"alice": "president", "carol": "citizen", "bob": "scum"}
        assert [r.player_id for r in game_end.final_rankings] == ["alice", "carol", "bob"]
        assert [r.rank for r in game_end.final_rankings] == [1, 2, 3]

    def test_trick_cleared_mid_round(self, reducer, short_round):
        state = reducer.apply(short_round, Action.play_cards("alice", cards("3H"))).new_state
        state = reducer.apply(state, Action.play_cards("bob", cards("5H"))).new_state
        state = reducer.apply(state, Action.play_cards("carol", cards("KD"))).new_state
        result = reducer.apply(state, Action.pass_turn("bob"))

        assert result.new_state.pile is None
        assert result.new_state.current_player.player_id == "carol"

    def test_more_rounds_return_to_lobby(self, reducer):
        state = make_playing_state(
            {"alice": cards("3H"), "bob": cards("5H", "9S"), "carol": cards("4C", "KD")},
            rules=RoomRules(rounds_per_game=2),
        )
        result = self.play_short_round(reducer, state)
        state = result.new_state

        assert state.phase == GamePhase.LOBBY
        assert state.round_number == 2
        assert state.table is None
        assert all(p.hand == [] and not p.is_ready and not p.in_round for p in state.players)
        assert state.get_player("alice").role == Role.PRESIDENT
        assert GameEnd not in event_types(result)
        assert isinstance(result.events[-1], SystemMessage)

    def test_second_round_deals_again(self, reducer):
        state = make_playing_state(
            {"alice": cards("3H"), "bob": cards("5H", "9S"), "carol": cards("4C", "KD")},
            rules=RoomRules(rounds_per_game=2),
        )
        state = self.play_short_round(reducer, state).new_state
        for pid in ("alice", "bob", "carol"):
            state = reducer.apply(state, Action.set_ready(pid)).new_state

        assert state.phase == GamePhase.PLAYING
        assert state.round_number == 2
        assert state.cards_in_play() == 52

    def test_five_players_get_vice_roles(self, reducer):
        state = make_playing_state({
            "a": cards("3H"),
            "b": cards("4H", "2C"),
            "c": cards("5H", "2D"),
            "d": cards("6H", "2H"),
            "e": cards("7H", "2S"),
        })
        steps = [
            Action.play_cards("a", cards("3H")),   # a out
            Action.play_cards("b", cards("4H")),
            Action.play_cards("c", cards("5H")),
            Action.play_cards("d", cards("6H")),
            Action.play_cards("e", cards("7H")),
            Action.pass_turn("b"),
            Action.pass_turn("c"),
            Action.pass_turn("d"),
            Action.play_cards("e", cards("2S")),   # e out
            Action.pass_turn("b"),
            Action.pass_turn("c"),
            Action.pass_turn("d"),
            Action.play_cards("b", cards("2C")),   # b out
            Action.pass_turn("c"),
            Action.pass_turn("d"),
            Action.play_cards("c", cards("2D")),   # c out, d last
        ]
        for action in steps:
            result = reducer.apply(state, action)
            assert result.success, (action, result.error)
            state = result.new_state

        assert state.last_finish_order == ["a", "e", "b", "c", "d"]
        roles = {p.player_id: p.role for p in state.players}
        assert roles == {
            "a": Role.PRESIDENT,
            "e": Role.VICE_PRESIDENT,
            "b": Role.CITIZEN,
            "c": Role.VICE_SCUM,
            "d": Role.SCUM,
        }


class TestMidGameJoin:
    def test_joiner_spectates(self, reducer, dealt_state):
        result = reducer.apply(dealt_state, Action.join("dave", "Dave"))

        assert result.success
        dave = result.new_state.get_player("dave")
        assert not dave.in_round
        assert dave.hand == []
        assert result.new_state.cards_in_play() == 52

    def test_spectator_never_gets_a_turn(self, reducer, dealt_state):
        state = reducer.apply(dealt_state, Action.join("dave", "Dave")).new_state
        for pid in ("alice", "bob", "carol", "alice"):
            assert state.current_player.player_id == pid
            state = reducer.apply(state, Action.pass_turn(pid)).new_state

    def test_reconnect_keeps_hand(self, reducer, dealt_state):
        hand = list(dealt_state.get_player("bob").hand)
        state = reducer.apply(dealt_state, Action.disconnect("bob")).new_state
        state = reducer.apply(state, Action.join("bob", "Bob")).new_state

        bob = state.get_player("bob")
        assert bob.hand == hand
        assert bob.in_round


class TestBotGame:
    def test_card_count_holds_through_a_game(self):
        from ..cli import run_simulation

        seen = []

        def check(event):
            seen.append(type(event))

        state = run_simulation(5, seed=3, rounds=2, on_event=check)

        assert state.phase == GamePhase.GAME_END
        assert state.round_number == 2
        assert len(state.last_finish_order) == 5
        assert seen.count(RoundEnd) == 2
        assert seen.count(GameEnd) == 1

    def test_apply_action_helper(self, lobby_state):
        result = apply_action(lobby_state, Action.set_ready("alice"), rng=Random(1))
        assert result.success


class TestFourPlayers:
    def deal_four(self, reducer):
        state = GameState(room_code="TEST01")
        ids = ["alice", "bob", "carol", "dave"]
        for pid in ids:
            state = reducer.apply(state, Action.join(pid, pid.capitalize())).new_state
        for pid in ids:
            state = reducer.apply(state, Action.set_ready(pid)).new_state
        return state

    def test_even_deal(self, reducer):
        state = self.deal_four(reducer)
        assert [p.hand_count for p in state.players] == [13, 13, 13, 13]
        assert state.cards_in_play() == 52

    def test_turn_moves_to_next_seat_after_play(self, reducer):
        state = self.deal_four(reducer)
        assert state.turn_index == 0
        lowest = state.players[0].hand[:1]

        result = reducer.apply(state, Action.play_cards("alice", lowest))

        assert result.success
        assert result.new_state.turn_index == 1
        assert result.events[-1] == TurnChanged(turn_index=1, player_id="bob")

    def test_three_out_ends_round(self, reducer):
        state = make_playing_state({
            "alice": cards("3H"),
            "bob": cards("4H"),
            "carol": cards("5H"),
            "dave": cards("2C", "2D"),
        })
        for pid, play in (("alice", "3H"), ("bob", "4H"), ("carol", "5H")):
            result = reducer.apply(state, Action.play_cards(pid, cards(play)))
            assert result.success
            state = result.new_state

        game_end = result.events[-1]
        assert isinstance(game_end, GameEnd)
        rankings = game_end.final_rankings
        assert len(rankings) == 4
        assert sorted(r.rank for r in rankings) == [1, 2, 3, 4]
        assert [r.player_id for r in rankings] == ["alice", "bob", "carol", "dave"]
        assert [r.role for r in rankings] == ["president", "citizen", "citizen", "scum"]
