"""
Identity - Who is on the other end of a connection.

Credentials are checked elsewhere. By the time a socket reaches a room,
an Authenticator has turned the connection's query parameters into a
verified Identity, or refused it.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Mapping, Protocol


@dataclass(frozen=True)
class Identity:
    player_id: str
    handle: str


class Authenticator(Protocol):
    def authenticate(self, params: Mapping[str, str]) -> Identity | None:
        ...


class QueryParamAuthenticator:
    """
    Development authenticator: trusts `player_id` and `handle` as given.

    Never enable outside local play.
    """

    def authenticate(self, params: Mapping[str, str]) -> Identity | None:
        player_id = (params.get("player_id") or "").strip()
        if not player_id:
            return None
        handle = (params.get("handle") or player_id).strip()
        return Identity(player_id=player_id, handle=handle[:20])


class StaticTokenAuthenticator:
    """
    Looks `token` up in a table issued by the external auth service.

    Usage:
        auth = StaticTokenAuthenticator.from_table("t1=alice:Alice,t2=bob:Bob")
        auth.authenticate({"token": "t1"})  # Identity("alice", "Alice")
    """

    def __init__(self, tokens: Mapping[str, Identity]):
        self.tokens = dict(tokens)

    @classmethod
    def from_table(cls, table: str) -> StaticTokenAuthenticator:
        """Parse `token=player_id:handle` entries separated by commas."""
        tokens = {}
        for entry in table.split(","):
            entry = entry.strip()
            if not entry:
                continue
            token, _, who = entry.partition("=")
            player_id, _, handle = who.partition(":")
            if not token or not player_id:
                raise ValueError(f"Malformed token entry: {entry!r}")
            tokens[token.strip()] = Identity(player_id.strip(), (handle or player_id).strip())
        return cls(tokens)

    def authenticate(self, params: Mapping[str, str]) -> Identity | None:
        token = params.get("token")
        if not token:
            return None
        return self.tokens.get(token)
