# minicasino/domain/game/entities/round_outcome.py
import time
from dataclasses import dataclass, field
from typing import Dict, Any

from .bet_request import BetRequest
from .bet_result import BetResult


@dataclass(frozen=True)
class RoundOutcome:
    """What a resolved round publishes to observers."""
    round_id: int
    request: BetRequest
    result: BetResult
    submitted_at: float
    revealed_at: float
    timestamp: float = field(default_factory=time.time)

    @property
    def is_win(self) -> bool:
        return self.result.is_win

    @property
    def win_amount(self) -> int:
        return self.result.win_amount

    @property
    def reveal_duration(self) -> float:
        return self.revealed_at - self.submitted_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "round_id": self.round_id,
            "game_mode": self.request.mode.value,
            "bet_amount": self.request.bet_amount,
            "prediction": self.request.prediction,
            "outcome": self.result.outcome,
            "multiplier": self.result.multiplier,
            "win_amount": self.win_amount,
            "is_win": self.is_win,
            "new_balance": self.result.new_balance,
            "reveal_duration": self.reveal_duration,
        }
