# minicasino/domain/game/factories/round_controller_factory.py
import logging
from typing import Dict, Any, Optional

from ..entities.bet_request import GameMode
from ..round_controller import GameRoundController, PredictionRoundController, SlotRoundController


class RoundControllerFactory:
    """
    Factory for creating GameRoundController instances.
    """
    def __init__(self, session_store, balance_state, history_cache=None,
                 event_dispatcher=None, endpoints=None):
        """
        Initialize the controller factory.

        Args:
            session_store: SessionStore shared by every controller
            balance_state: BalanceState shared by every controller
            history_cache: Optional HistoryCache refreshed after rounds
            event_dispatcher: Optional event dispatcher for round events
            endpoints: Endpoint table
        """
        self.logger = logging.getLogger("domain.game.factory")
        self.session_store = session_store
        self.balance_state = balance_state
        self.history_cache = history_cache
        self.event_dispatcher = event_dispatcher
        self.endpoints = endpoints

    def create_controller(self, mode: GameMode, games_config: Optional[Dict[str, Any]] = None) -> GameRoundController:
        """
        Create a controller for one game mode from the ``games`` config section.

        Args:
            mode: Game mode
            games_config: The ``games`` section of the client configuration

        Returns:
            A new controller in the IDLE state
        """
        games_config = games_config or {}
        round_timeout = games_config.get("round_timeout", 15.0)
        common = dict(
            session_store=self.session_store,
            balance_state=self.balance_state,
            history_cache=self.history_cache,
            event_dispatcher=self.event_dispatcher,
            round_timeout=round_timeout,
            endpoints=self.endpoints,
        )

        if mode is GameMode.SLOT:
            slot_config = games_config.get("slot", {})
            controller = SlotRoundController(
                reveal_floor=slot_config.get("reveal_floor", 3.0),
                tick_interval=slot_config.get("tick_interval", 0.1),
                symbols=slot_config.get("symbols"),
                **common
            )
        elif mode is GameMode.PREDICTION:
            prediction_config = games_config.get("prediction", {})
            controller = PredictionRoundController(
                reveal_floor=prediction_config.get("reveal_floor", 2.0),
                **common
            )
        else:
            raise ValueError(f"Unsupported game mode: {mode}")

        self.logger.debug(f"Created {mode.value} controller (floor={controller.reveal_floor}s, "
                          f"timeout={round_timeout}s)")
        return controller

    def create_all(self, games_config: Optional[Dict[str, Any]] = None) -> Dict[GameMode, GameRoundController]:
        return {mode: self.create_controller(mode, games_config) for mode in GameMode}
