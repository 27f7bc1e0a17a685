# minicasino/domain/game/entities/bet_result.py
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional

from minicasino.domain.exceptions import MalformedResponseError
from .bet_request import GameMode


def _require_int(data: Dict[str, Any], *keys: str) -> int:
    for key in keys:
        value = data.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
    raise MalformedResponseError(f"Bet response is missing an integer '{keys[0]}'")


@dataclass(frozen=True)
class BetResult:
    """
    Server-authoritative outcome of one round.

    ``new_balance`` is the absolute credit total after the round, never
    a delta.
    """
    mode: GameMode
    is_win: bool
    win_amount: int
    new_balance: int
    multiplier: Optional[float] = None
    outcome_symbols: List[str] = field(default_factory=list)
    drawn_number: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_response(cls, mode: GameMode, data: Dict[str, Any]) -> "BetResult":
        """
        Parse a bet response.

        Slot responses carry ``reels`` (or ``outcomeSymbols``); prediction
        responses carry ``result`` (or ``drawnNumber``).

        Raises:
            MalformedResponseError: If a required field is missing
        """
        if "isWin" not in data:
            raise MalformedResponseError("Bet response is missing 'isWin'")

        new_balance = _require_int(data, "newBalance")
        try:
            win_amount = int(data.get("winAmount") or 0)
        except (TypeError, ValueError) as e:
            raise MalformedResponseError(f"Bet response has an invalid 'winAmount': {e}") from e
        multiplier = data.get("multiplier")

        if mode is GameMode.SLOT:
            symbols = data.get("reels", data.get("outcomeSymbols"))
            if not isinstance(symbols, list) or not symbols:
                raise MalformedResponseError("Slot response is missing its reel symbols")
            return cls(mode=mode, is_win=bool(data["isWin"]), win_amount=win_amount,
                       new_balance=new_balance, multiplier=multiplier,
                       outcome_symbols=[str(s) for s in symbols], raw=data)

        drawn = _require_int(data, "drawnNumber", "result")
        return cls(mode=mode, is_win=bool(data["isWin"]), win_amount=win_amount,
                   new_balance=new_balance, multiplier=multiplier,
                   drawn_number=drawn, raw=data)

    @property
    def outcome(self):
        """The mode-specific outcome: reel symbols or the drawn number."""
        if self.mode is GameMode.SLOT:
            return list(self.outcome_symbols)
        return self.drawn_number
