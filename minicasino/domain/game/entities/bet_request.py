# minicasino/domain/game/entities/bet_request.py
from enum import Enum
from dataclasses import dataclass
from typing import Dict, Any, Optional


class GameMode(Enum):
    """Game modes; values are the backend's ``gameType`` names."""
    SLOT = "tigrinho"
    PREDICTION = "doble"

    @classmethod
    def parse(cls, value: str) -> "GameMode":
        """Accept either the wire name or the enum name (case-insensitive)."""
        text = str(value).strip().lower()
        for mode in cls:
            if text in (mode.value, mode.name.lower()):
                return mode
        raise ValueError(f"Unknown game mode: {value}")


PREDICTION_MIN = 1
PREDICTION_MAX = 14


@dataclass(frozen=True)
class BetRequest:
    """One wager as the user placed it."""
    mode: GameMode
    bet_amount: int
    prediction: Optional[int] = None

    @classmethod
    def slot(cls, bet_amount: int) -> "BetRequest":
        return cls(GameMode.SLOT, bet_amount)

    @classmethod
    def prediction_bet(cls, bet_amount: int, prediction: Optional[int]) -> "BetRequest":
        return cls(GameMode.PREDICTION, bet_amount, prediction)

    def to_payload(self) -> Dict[str, Any]:
        payload = {"betAmount": self.bet_amount}
        if self.mode is GameMode.PREDICTION:
            payload["prediction"] = self.prediction
        return payload
