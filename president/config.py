"""
Configuration - Environment-driven settings for a President server.

Environment:
    PRESIDENT_ENV               "development" enables query-param identities
    ALLOWED_ORIGINS             Comma-separated CORS origins ("*" by default)
    PRESIDENT_TWO_DECKS         Always deal two decks ("1"/"true")
    PRESIDENT_ROUNDS_PER_GAME   Rounds before game_end (default 1)
    PRESIDENT_RESULTS_PATH      JSONL file for match results (in-memory if unset)
    PRESIDENT_LOG_LEVEL         Root log level for `president serve`
    PRESIDENT_AUTH_TOKENS       Static token table: token=player_id:handle,...
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field

from .engine_core.state import RoomRules
from .results.sink import InMemoryResultSink, JsonlResultSink, ResultSink
from .session.auth import Authenticator, QueryParamAuthenticator, StaticTokenAuthenticator

TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUTHY


@dataclass
class Settings:
    env: str = "development"
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    two_decks: bool = False
    rounds_per_game: int = 1
    results_path: str | None = None
    log_level: str = "INFO"
    auth_tokens: str | None = None

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            env=os.getenv("PRESIDENT_ENV", "development"),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
            two_decks=_env_flag("PRESIDENT_TWO_DECKS"),
            rounds_per_game=int(os.getenv("PRESIDENT_ROUNDS_PER_GAME", "1")),
            results_path=os.getenv("PRESIDENT_RESULTS_PATH") or None,
            log_level=os.getenv("PRESIDENT_LOG_LEVEL", "INFO").upper(),
            auth_tokens=os.getenv("PRESIDENT_AUTH_TOKENS") or None,
        )

    @property
    def is_development(self) -> bool:
        return self.env == "development"

    def room_rules(self) -> RoomRules:
        if self.rounds_per_game < 1:
            raise ValueError("PRESIDENT_ROUNDS_PER_GAME must be at least 1")
        return RoomRules(two_decks=self.two_decks, rounds_per_game=self.rounds_per_game)

    def result_sink(self) -> ResultSink:
        if self.results_path:
            return JsonlResultSink(self.results_path)
        return InMemoryResultSink()

    def authenticator(self) -> Authenticator:
        """
        Token table if one is configured, else query-param identities.

        Outside development a token table is required.
        """
        if self.auth_tokens:
            return StaticTokenAuthenticator.from_table(self.auth_tokens)
        if not self.is_development:
            raise ValueError("PRESIDENT_AUTH_TOKENS is required outside development")
        return QueryParamAuthenticator()
