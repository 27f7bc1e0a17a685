# minicasino/domain/history/entities/history_entry.py
from dataclasses import dataclass, field
from typing import Dict, Any, Optional


@dataclass(frozen=True)
class HistoryEntry:
    """One past round as the server recorded it. Read-only."""
    game_type: str
    bet_amount: int
    result: str                 # "win" | "loss"
    timestamp: Optional[str] = None
    win_amount: Optional[int] = None
    game_data: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_win(self) -> bool:
        return self.result == "win"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        result = str(data.get("result", "loss")).lower()
        if result in ("lose", "lost"):
            result = "loss"
        win_amount = data.get("winAmount")
        return cls(
            game_type=str(data.get("gameType", "")),
            bet_amount=int(data.get("betAmount") or 0),
            result=result,
            timestamp=data.get("timestamp") or data.get("createdAt"),
            win_amount=int(win_amount) if win_amount is not None else None,
            game_data=dict(data.get("gameData") or {}),
        )
