# minicasino/application/services/stats_service.py
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, Optional

from minicasino.domain.game.entities.bet_request import GameMode
from minicasino.infrastructure.http.endpoints import DEFAULT_ENDPOINTS


@dataclass(frozen=True)
class AggregateStats:
    """Per-mode play counts and overall win rate, as reported by the server."""
    plays: Dict[GameMode, int] = field(default_factory=dict)
    total_games: int = 0
    win_rate: Optional[float] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AggregateStats":
        plays = {mode: int(data.get(f"{mode.value}Games") or 0) for mode in GameMode}
        total = data.get("totalGames")
        total_games = int(total) if total is not None else sum(plays.values())
        win_rate = data.get("winRate")
        return cls(
            plays=plays,
            total_games=total_games,
            win_rate=float(win_rate) if win_rate is not None else None,
            raw=data,
        )


class StatsService:
    """Reads the aggregate statistics endpoint."""
    def __init__(self, session_store, endpoints=None):
        self.logger = logging.getLogger("application.stats")
        self.session_store = session_store
        self.endpoint = (endpoints or DEFAULT_ENDPOINTS)["stats"]

    async def fetch(self) -> AggregateStats:
        body = await self.session_store.request(self.endpoint)
        stats = AggregateStats.from_dict(body)
        self.logger.debug(f"Fetched stats: {stats.total_games} games")
        return stats
