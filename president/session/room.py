"""
Room - The per-room actor.

One Room owns one GameState. Every inbound message is processed to
completion under the room's lock: decode, reduce, and send every
resulting event. Rooms share nothing with each other.

Delivery rules:
- Protocol errors and rejected actions go to the sender only
- Events from successful actions go to every live connection
- room_state is rendered per connection, so each client sees only its
  own hand
- A socket that fails a send is dropped without an error; the others
  get a fresh room_state showing the player disconnected
- A socket taken over by a newer connection for the same player is closed

The match result is persisted after the lock is released, once game_end
has already been broadcast.
"""

from __future__ import annotations
import asyncio
import logging
import time
from random import Random
from typing import Any, Mapping

from .auth import Identity
from .connections import Connection, ConnectionRegistry
from ..engine_core.action import Action, ActionResult
from ..engine_core.cards import deserialize_card
from ..engine_core.reducer import Reducer
from ..engine_core.state import GamePhase, GameState, RoomRules
from ..exceptions import ProtocolError
from ..protocol.messages import (
    ChatBroadcast,
    ChatMessage,
    ClientEvent,
    ErrorMessage,
    JoinRoom,
    LeaveRoom,
    PassTurn,
    Ping,
    PlayCards,
    Pong,
    SetReady,
    SystemMessage,
    parse_client_message,
)
from ..protocol.views import room_state
from ..results.sink import MatchResult, ResultSink, build_match_result, utc_now

logger = logging.getLogger(__name__)

# Outbox target meaning "every live connection"
BROADCAST = None

# Outbox message meaning "each connection's own room_state"
SYNC_STATE = object()


class Room:
    """
    Usage:
        room = Room("ABC123")
        conn_id = await room.connect(websocket, identity)
        await room.handle_message(conn_id, raw_text)
        await room.disconnect(conn_id)
    """

    def __init__(
        self,
        room_code: str,
        rules: RoomRules | None = None,
        result_sink: ResultSink | None = None,
        rng: Random | None = None,
        ratings: Mapping[str, float] | None = None,
    ):
        self.room_code = room_code
        self.state = GameState(room_code=room_code, rules=rules or RoomRules())
        self.reducer = Reducer(rng=rng)
        self.connections = ConnectionRegistry()
        self.result_sink = result_sink
        self.ratings = ratings
        self.created_at = time.time()
        self.started_at = ""

        self._lock = asyncio.Lock()
        self._finished: MatchResult | None = None
        self._replaced: list[Connection] = []
        self._handlers = {
            JoinRoom: self._on_join_room,
            LeaveRoom: self._on_leave_room,
            SetReady: self._on_set_ready,
            PlayCards: self._on_play_cards,
            PassTurn: self._on_pass_turn,
            ChatMessage: self._on_chat_message,
            Ping: self._on_ping,
        }

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    async def connect(self, socket: Connection, identity: Identity) -> str:
        """Register a verified socket and send it the current room_state."""
        async with self._lock:
            conn_id = self.connections.add(socket, identity)
            logger.info("Room %s: %s connected as %s", self.room_code, identity.player_id, conn_id)
            await self._flush([(conn_id, SYNC_STATE)])
            return conn_id

    async def disconnect(self, conn_id: str) -> None:
        """
        Forget a closed socket.

        The player keeps their seat and hand. Nothing happens if a newer
        connection has already taken the player over.
        """
        async with self._lock:
            player_id, current = self.connections.detach(conn_id)
            if not current:
                return
            result = self.reducer.apply(self.state, Action.disconnect(player_id))
            if not result.success:
                return
            self.state = result.new_state
            handle = self.state.get_player(player_id).handle
            logger.info("Room %s: %s disconnected", self.room_code, player_id)
            await self._flush([(BROADCAST, SystemMessage(message=f"{handle} disconnected"))])

    # =========================================================================
    # Inbound messages
    # =========================================================================

    async def handle_message(self, conn_id: str, raw: str | bytes | dict) -> None:
        """Process one inbound message to completion."""
        async with self._lock:
            if conn_id not in self.connections:
                return
            outbox: list[tuple[str | None, Any]] = []
            try:
                message = parse_client_message(raw)
            except ProtocolError as e:
                outbox.append((conn_id, ErrorMessage(message=str(e), code=e.code)))
            else:
                self._dispatch(conn_id, message, outbox)
            await self._flush(outbox)
            await self._close_replaced()
            finished, self._finished = self._finished, None

        if finished is not None:
            await self._persist(finished)

    def _dispatch(self, conn_id: str, message: ClientEvent, outbox: list) -> None:
        identity = self.connections.identity(conn_id)
        if identity is None or message.player_id != identity.player_id:
            outbox.append((conn_id, ErrorMessage(
                message="playerId does not match this connection",
                code="identity_mismatch",
            )))
            return
        if not isinstance(message, (JoinRoom, Ping)) and self.connections.player_for(conn_id) is None:
            outbox.append((conn_id, ErrorMessage(
                message="Join the room first", code="not_in_room",
            )))
            return
        self._handlers[type(message)](conn_id, message, outbox)

    def _on_join_room(self, conn_id: str, message: JoinRoom, outbox: list) -> None:
        if message.room_code.upper() != self.room_code:
            outbox.append((conn_id, ErrorMessage(
                message=f"This is room {self.room_code}",
                code="wrong_room",
            )))
            return
        identity = self.connections.identity(conn_id)
        result = self._apply(conn_id, Action.join(message.player_id, identity.handle), outbox)
        if result.success:
            replaced = self.connections.attach(conn_id, message.player_id)
            if replaced is not None:
                logger.info("Room %s: %s reconnected, closing %s",
                            self.room_code, message.player_id, replaced)
                self._replaced.append(self.connections.socket(replaced))
                self.connections.detach(replaced)

    def _on_leave_room(self, conn_id: str, message: LeaveRoom, outbox: list) -> None:
        result = self._apply(conn_id, Action.leave(message.player_id), outbox)
        if result.success:
            self.connections.release(conn_id)

    def _on_set_ready(self, conn_id: str, message: SetReady, outbox: list) -> None:
        phase = self.state.phase
        result = self._apply(conn_id, Action.set_ready(message.player_id, message.ready), outbox)
        if result.success and phase == GamePhase.LOBBY and self.state.phase == GamePhase.PLAYING:
            if not self.started_at:
                self.started_at = utc_now()
            logger.info("Room %s: round %d started with %d players",
                        self.room_code, self.state.round_number, len(self.state.participants))

    def _on_play_cards(self, conn_id: str, message: PlayCards, outbox: list) -> None:
        cards = [deserialize_card(card.model_dump()) for card in message.cards]
        self._apply(conn_id, Action.play_cards(message.player_id, cards), outbox)

    def _on_pass_turn(self, conn_id: str, message: PassTurn, outbox: list) -> None:
        self._apply(conn_id, Action.pass_turn(message.player_id), outbox)

    def _on_chat_message(self, conn_id: str, message: ChatMessage, outbox: list) -> None:
        player = self.state.get_player(message.player_id)
        if player is None:
            outbox.append((conn_id, ErrorMessage(
                message="Join the room before chatting", code="not_in_room",
            )))
            return
        outbox.append((BROADCAST, ChatBroadcast(
            player_id=player.player_id,
            handle=player.handle,
            message=message.message,
            timestamp=utc_now(),
        )))

    def _on_ping(self, conn_id: str, message: Ping, outbox: list) -> None:
        outbox.append((conn_id, Pong()))

    def _apply(self, conn_id: str, action: Action, outbox: list) -> ActionResult:
        """Run an action through the reducer and queue what it produced."""
        previous_phase = self.state.phase
        result = self.reducer.apply(self.state, action)

        if not result.success:
            logger.debug("Room %s: rejected %s from %s: %s", self.room_code,
                         action.action_type.value, action.payload.player_id,
                         result.rejection.value)
            outbox.append((conn_id, ErrorMessage(
                message=result.error, code=result.rejection.value,
            )))
            return result

        self.state = result.new_state
        outbox.extend((BROADCAST, event) for event in result.events)
        if result.sync_state:
            outbox.append((BROADCAST, SYNC_STATE))

        if previous_phase != GamePhase.GAME_END and self.state.phase == GamePhase.GAME_END:
            logger.info("Room %s: game over", self.room_code)
            self._finished = build_match_result(self.state, self.started_at, self.ratings)
        return result

    # =========================================================================
    # Outbound
    # =========================================================================

    async def _flush(self, outbox: list) -> None:
        dead: set[str] = set()
        for target, message in outbox:
            recipients = self.connections.conn_ids() if target is BROADCAST else [target]
            for conn_id in recipients:
                if conn_id in dead:
                    continue
                if not await self._deliver(conn_id, message):
                    dead.add(conn_id)
        dropped = [conn_id for conn_id in dead if self._drop(conn_id)]
        if dropped:
            await self._flush([(BROADCAST, SYNC_STATE)])

    async def _deliver(self, conn_id: str, message: Any) -> bool:
        socket = self.connections.socket(conn_id)
        if socket is None:
            return False
        if message is SYNC_STATE:
            identity = self.connections.identity(conn_id)
            message = room_state(self.state, identity.player_id if identity else None)
        try:
            await socket.send_json(message.to_wire())
        except Exception as e:
            logger.debug("Room %s: send to %s failed: %s", self.room_code, conn_id, e)
            return False
        return True

    def _drop(self, conn_id: str) -> bool:
        """
        Silently forget a stale socket and mark its player disconnected.

        Returns True if a player changed state, so the others need a sync.
        """
        player_id, current = self.connections.detach(conn_id)
        if not current:
            return False
        result = self.reducer.apply(self.state, Action.disconnect(player_id))
        if not result.success:
            return False
        self.state = result.new_state
        return True

    async def _close_replaced(self) -> None:
        """Tell sockets taken over by a newer connection, then close them."""
        sockets, self._replaced = self._replaced, []
        notice = SystemMessage(message="Connected from another session").to_wire()
        for socket in sockets:
            if socket is None:
                continue
            try:
                await socket.send_json(notice)
                await socket.close(code=1000, reason="Replaced by a newer connection")
            except Exception as e:
                logger.debug("Room %s: closing replaced socket failed: %s", self.room_code, e)

    async def _persist(self, result: MatchResult) -> None:
        if self.result_sink is None:
            return
        try:
            await asyncio.to_thread(self.result_sink.save, result)
        except Exception:
            logger.exception("Room %s: failed to save match %s", self.room_code, result.id)

