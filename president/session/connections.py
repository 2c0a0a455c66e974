"""
Connection Registry - Which socket speaks for which player.

Each live connection has a socket and a verified identity. After a
successful join it is also attached to a player id. A player has at most
one attached connection; attaching a newer one replaces the old mapping.
"""

from __future__ import annotations
import itertools
import uuid
from typing import Any, Protocol

from .auth import Identity


class Connection(Protocol):
    """Anything that can push a JSON document to a client and hang up."""
    async def send_json(self, data: Any) -> None:
        ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        ...


class ConnectionRegistry:
    def __init__(self):
        self._sockets: dict[str, Connection] = {}
        self._identities: dict[str, Identity] = {}
        self._player_by_conn: dict[str, str] = {}
        self._conn_by_player: dict[str, str] = {}
        self._counter = itertools.count(1)

    def __contains__(self, conn_id: str) -> bool:
        return conn_id in self._sockets

    def __len__(self) -> int:
        return len(self._sockets)

    def add(self, socket: Connection, identity: Identity) -> str:
        """Register a new socket. Returns its connection id."""
        conn_id = f"conn_{next(self._counter)}_{uuid.uuid4().hex[:8]}"
        self._sockets[conn_id] = socket
        self._identities[conn_id] = identity
        return conn_id

    def attach(self, conn_id: str, player_id: str) -> str | None:
        """
        Map `conn_id` to `player_id`, last writer wins.

        Returns the connection id this replaced, if any.
        """
        previous_player = self._player_by_conn.get(conn_id)
        if previous_player and previous_player != player_id:
            self.release(conn_id)

        previous = self._conn_by_player.get(player_id)
        if previous == conn_id:
            previous = None
        if previous is not None:
            self._player_by_conn.pop(previous, None)

        self._player_by_conn[conn_id] = player_id
        self._conn_by_player[player_id] = conn_id
        return previous

    def release(self, conn_id: str) -> str | None:
        """Unmap the player but keep the socket. Returns the released player id."""
        player_id = self._player_by_conn.pop(conn_id, None)
        if player_id is not None and self._conn_by_player.get(player_id) == conn_id:
            del self._conn_by_player[player_id]
        return player_id

    def detach(self, conn_id: str) -> tuple[str | None, bool]:
        """
        Forget a connection entirely.

        Returns:
            (player id it was attached to, whether it was that player's
            current connection)
        """
        self._sockets.pop(conn_id, None)
        self._identities.pop(conn_id, None)
        player_id = self._player_by_conn.pop(conn_id, None)
        if player_id is None:
            return None, False
        current = self._conn_by_player.get(player_id) == conn_id
        if current:
            del self._conn_by_player[player_id]
        return player_id, current

    def socket(self, conn_id: str) -> Connection | None:
        return self._sockets.get(conn_id)

    def identity(self, conn_id: str) -> Identity | None:
        return self._identities.get(conn_id)

    def player_for(self, conn_id: str) -> str | None:
        return self._player_by_conn.get(conn_id)

    def connection_for(self, player_id: str) -> str | None:
        return self._conn_by_player.get(player_id)

    def conn_ids(self) -> list[str]:
        return list(self._sockets)
