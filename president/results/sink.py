"""
Result Sinks - Where completed matches go.

The room hands a MatchResult to its sink once `game_end` has been
broadcast and the room lock is released. Durable storage is owned by the
deployment; two simple sinks are provided:
- InMemoryResultSink: keeps results in a list (tests, local play)
- JsonlResultSink: appends one JSON document per match to a file
"""

from __future__ import annotations
import json
import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Protocol, TYPE_CHECKING

from .elo import pairwise_deltas
from .rankings import final_rankings

if TYPE_CHECKING:
    from ..engine_core.state import GameState


@dataclass
class MatchPlayer:
    user_id: str
    handle: str
    rank: int
    role: str
    elo_delta: int = 0


@dataclass
class MatchResult:
    """One completed match, ready for persistence."""
    id: str
    room_code: str
    winner_id: str
    players: list[MatchPlayer] = field(default_factory=list)
    started_at: str = ""
    finished_at: str = ""


class ResultSink(Protocol):
    def save(self, result: MatchResult) -> None:
        ...


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_match_result(
    state: GameState,
    started_at: str = "",
    ratings: Mapping[str, float] | None = None,
) -> MatchResult:
    """
    Assemble the MatchResult for a room that reached game_end.

    Rating deltas use the pairwise policy against `ratings`; players
    without a rating start from the default.
    """
    rankings = final_rankings(state)
    deltas = pairwise_deltas(ratings or {}, [r.player_id for r in rankings])
    return MatchResult(
        id=str(uuid.uuid4()),
        room_code=state.room_code,
        winner_id=rankings[0].player_id if rankings else "",
        players=[
            MatchPlayer(
                user_id=r.player_id,
                handle=r.handle,
                rank=r.rank,
                role=r.role.value,
                elo_delta=deltas.get(r.player_id, 0),
            )
            for r in rankings
        ],
        started_at=started_at,
        finished_at=utc_now(),
    )


class InMemoryResultSink:
    def __init__(self):
        self.results: list[MatchResult] = []

    def save(self, result: MatchResult) -> None:
        self.results.append(result)


class JsonlResultSink:
    """
    Append-only file of match results.

    Usage:
        sink = JsonlResultSink("~/.president/matches.jsonl")
        sink.save(result)
        results = sink.load()
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def save(self, result: MatchResult) -> None:
        line = json.dumps(asdict(result), sort_keys=True)
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def load(self) -> list[MatchResult]:
        """Read every stored result back, oldest first."""
        if not self.path.exists():
            return []
        results = []
        with open(self.path, "r", encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                data = json.loads(line)
                data["players"] = [MatchPlayer(**p) for p in data.get("players", [])]
                results.append(MatchResult(**data))
        return results
