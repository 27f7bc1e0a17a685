# minicasino/domain/balance/balance_state.py
import logging
from typing import Dict, Any, Optional

from minicasino.domain.events.casino_events import BalanceEvent, BalanceEventType


class BalanceState:
    """
    In-memory credits and aggregate stats of the signed-in user.

    Values only ever come from the server: an identity snapshot
    (``sync_identity``) or the absolute ``newBalance`` of a resolved round
    (``apply``). Nothing here adds or subtracts bets and wins.
    """
    def __init__(self, event_dispatcher=None):
        self.logger = logging.getLogger("domain.balance")
        self.event_dispatcher = event_dispatcher
        self.reset(notify=False)

    def reset(self, notify: bool = True):
        """Forget everything (used at logout)."""
        previous = getattr(self, "credits", 0)
        self.credits = 0
        self.total_wins = 0
        self.total_losses = 0
        self.total_wagered = 0
        self.loaded = False
        if notify and previous != 0:
            self._dispatch(previous)

    def sync_identity(self, identity) -> None:
        """
        Load credits and stats from a server-issued identity.

        Args:
            identity: Identity, or None to reset
        """
        if identity is None:
            self.reset()
            return

        previous = self.credits
        self.credits = identity.credits
        self.total_wins = identity.total_wins
        self.total_losses = identity.total_losses
        self.total_wagered = identity.total_wagered
        self.loaded = True
        if previous != self.credits:
            self.logger.debug(f"Credits synced from identity: {previous} -> {self.credits}")
            self._dispatch(previous)

    def apply(self, new_balance: int) -> int:
        """
        Store the authoritative post-round balance.

        Args:
            new_balance: Absolute credit total returned by the server

        Returns:
            The stored balance
        """
        if isinstance(new_balance, bool) or not isinstance(new_balance, int):
            raise TypeError(f"new_balance must be an int, got {type(new_balance).__name__}")

        previous = self.credits
        self.credits = new_balance
        self.loaded = True
        self.logger.info(f"Balance {previous} -> {new_balance}")
        if previous != new_balance:
            self._dispatch(previous)
        return self.credits

    def can_afford(self, amount: int) -> bool:
        return 0 < amount <= self.credits

    @property
    def win_rate(self) -> int:
        """Rounded win percentage over all settled rounds."""
        settled = self.total_wins + self.total_losses
        if settled <= 0:
            return 0
        return round(self.total_wins / settled * 100)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "credits": self.credits,
            "total_wins": self.total_wins,
            "total_losses": self.total_losses,
            "total_wagered": self.total_wagered,
            "win_rate": self.win_rate,
        }

    def _dispatch(self, previous: Optional[int]):
        if self.event_dispatcher:
            self.event_dispatcher.dispatch(BalanceEvent(
                type=BalanceEventType.BALANCE_CHANGED,
                credits=self.credits,
                previous=previous or 0,
                data=self.snapshot(),
            ))
