# minicasino/domain/game/round_controller.py
import asyncio
import logging
import random
from enum import Enum, auto
from typing import Dict, List, Any, Optional

from minicasino.domain.events.casino_events import (
    NotificationLevel,
    RoundEvent,
    RoundEventType,
    notify,
)
from minicasino.domain.exceptions import ApiError, BetValidationError, NetworkError
from minicasino.infrastructure.http.endpoints import DEFAULT_ENDPOINTS, Endpoint
from .entities.bet_request import BetRequest, GameMode, PREDICTION_MAX, PREDICTION_MIN
from .entities.bet_result import BetResult
from .entities.round_outcome import RoundOutcome
from .reveal_timer import RevealTimer

GENERIC_FAILURE_MESSAGE = "Error processing game"
CANCELLED_MESSAGE = "Round cancelled"
DEFAULT_SLOT_SYMBOLS = ["🍎", "🍊", "🍇", "🍒", "💎", "7️⃣", "🎰"]


class RoundState(Enum):
    IDLE = auto()
    SUBMITTING = auto()
    REVEALING = auto()
    FAILED = auto()


class GameRoundController:
    """
    Runs one round at a time for a single game mode.

    IDLE -> SUBMITTING -> REVEALING -> IDLE, or SUBMITTING -> FAILED -> IDLE.
    The outcome is published only when the server has answered and the
    mode's reveal floor, counted from submission, has elapsed. Credits are
    never touched until the server's ``newBalance`` is applied.
    """
    mode: GameMode = None
    endpoint_name: str = None

    def __init__(self, session_store, balance_state, history_cache=None,
                 event_dispatcher=None, reveal_floor: float = 2.0,
                 round_timeout: Optional[float] = 15.0,
                 endpoints: Optional[Dict[str, Endpoint]] = None):
        """
        Initialize the controller.

        Args:
            session_store: SessionStore gating and carrying every request
            balance_state: BalanceState receiving the authoritative balance
            history_cache: Optional HistoryCache refreshed after each round
            event_dispatcher: Optional dispatcher for round events and notifications
            reveal_floor: Minimum seconds between submission and reveal
            round_timeout: Seconds to wait for the server, None for no limit
            endpoints: Endpoint table (defaults to the standard backend paths)
        """
        self.logger = logging.getLogger(f"domain.game.{self.mode.value}")
        self.session_store = session_store
        self.balance_state = balance_state
        self.history_cache = history_cache
        self.event_dispatcher = event_dispatcher
        self.reveal_floor = reveal_floor
        self.round_timeout = round_timeout
        self.endpoint = (endpoints or DEFAULT_ENDPOINTS)[self.endpoint_name]

        self._state = RoundState.IDLE
        self._round_counter = 0
        self._timer: Optional[RevealTimer] = None
        self._request_task: Optional[asyncio.Future] = None
        self._cancel_requested = False

        self.last_outcome: Optional[RoundOutcome] = None
        self.last_error: Optional[str] = None

    @property
    def state(self) -> RoundState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._state in (RoundState.SUBMITTING, RoundState.REVEALING)

    async def play(self, request: BetRequest) -> Optional[RoundOutcome]:
        """
        Place a wager and wait for its reveal.

        Args:
            request: The wager

        Returns:
            The resolved outcome; None if a round was already running
            (the call is ignored) or if the round failed (see ``last_error``)

        Raises:
            BetValidationError: If the wager is refused locally; nothing is sent
        """
        if self._state is not RoundState.IDLE:
            self.logger.debug(f"Ignoring play() while {self._state.name}")
            return None

        self._check_entry(request)

        self._round_counter += 1
        round_id = self._round_counter
        self._cancel_requested = False
        self.last_error = None

        self._set_state(RoundState.SUBMITTING)
        self._dispatch(RoundEventType.ROUND_STARTED, round_id, {
            "bet_amount": request.bet_amount,
            "prediction": request.prediction,
        })

        timer = self._create_timer(round_id).start()
        self._timer = timer
        submitted_at = timer.started_at

        result = None
        try:
            result = await self._submit(request)
            self._set_state(RoundState.REVEALING)
            self._dispatch(RoundEventType.ROUND_REVEALING, round_id, {
                "response_time": timer.elapsed,
            })
            await timer.wait()
        except asyncio.CancelledError:
            timer.cancel()
            if not self._cancel_requested:
                # the caller's task was cancelled, not the round
                if result is not None:
                    self._apply_balance(result)
                self._set_state(RoundState.IDLE)
                raise
            if result is None:
                self._fail(round_id, CANCELLED_MESSAGE, "cancelled")
                return None
            # wager already settled server-side; only the reveal wait is skipped
            self.logger.info(f"Round {round_id} reveal cut short by cancel")
        except ApiError as e:
            timer.cancel()
            self.logger.warning(f"Round {round_id} failed: {e}")
            self._fail(round_id, GENERIC_FAILURE_MESSAGE, str(e))
            return None
        finally:
            self._timer = None
            self._request_task = None

        return await self._resolve(round_id, request, result, submitted_at)

    def cancel(self) -> bool:
        """
        Abort the round in flight, if any.

        While SUBMITTING the round ends in FAILED, then IDLE. While
        REVEALING the wager is already settled, so the round resolves at
        once with the server's balance.

        Returns:
            True if a round was cancelled
        """
        if not self.is_busy:
            return False
        self._cancel_requested = True
        if self._request_task is not None and not self._request_task.done():
            self._request_task.cancel()
        if self._timer is not None:
            self._timer.cancel()
        self.logger.info("Round cancellation requested")
        return True

    def _check_entry(self, request: BetRequest):
        message = self._validation_error(request)
        if message is None:
            return
        self.logger.info(f"Rejected wager {request}: {message}")
        self._dispatch(RoundEventType.ROUND_REJECTED, self._round_counter, {"reason": message})
        notify(self.event_dispatcher, NotificationLevel.ERROR, message)
        raise BetValidationError(message)

    def _validation_error(self, request: BetRequest) -> Optional[str]:
        if request.mode is not self.mode:
            return f"This table only takes {self.mode.value} bets"
        if not self.session_store.is_authenticated:
            return "Log in to play"
        amount = request.bet_amount
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            return "Bet amount must be a positive whole number"
        if not self.balance_state.can_afford(amount):
            return "Insufficient credits"
        return self._validate_payload(request)

    def _validate_payload(self, request: BetRequest) -> Optional[str]:
        """Mode-specific checks; returns an error message or None."""
        return None

    def _create_timer(self, round_id: int) -> RevealTimer:
        return RevealTimer(self.reveal_floor)

    async def _submit(self, request: BetRequest) -> BetResult:
        self._request_task = asyncio.ensure_future(
            self.session_store.request(self.endpoint, json=request.to_payload())
        )
        try:
            body = await asyncio.wait_for(self._request_task, timeout=self.round_timeout)
        except asyncio.TimeoutError as e:
            raise NetworkError(f"No answer from {self.endpoint} after {self.round_timeout}s") from e
        return BetResult.from_response(self.mode, body)

    async def _resolve(self, round_id: int, request: BetRequest, result: BetResult,
                       submitted_at: float) -> RoundOutcome:
        loop = asyncio.get_running_loop()
        outcome = RoundOutcome(
            round_id=round_id,
            request=request,
            result=result,
            submitted_at=submitted_at,
            revealed_at=loop.time(),
        )
        self.last_outcome = outcome
        self._set_state(RoundState.IDLE)

        self.logger.info(
            f"Round {round_id} resolved: outcome={result.outcome}, win={result.is_win}, "
            f"win_amount={result.win_amount}, balance={result.new_balance}"
        )
        data = outcome.to_dict()
        data["outcome_object"] = outcome
        self._dispatch(RoundEventType.ROUND_RESOLVED, round_id, data)

        self._apply_balance(result)

        if result.is_win:
            notify(self.event_dispatcher, NotificationLevel.SUCCESS,
                   f"You won! +{result.win_amount} credits")
        else:
            notify(self.event_dispatcher, NotificationLevel.ERROR, self._loss_message(result))

        await self._refresh_history()
        return outcome

    def _apply_balance(self, result: BetResult):
        if not self.session_store.is_authenticated:
            # logged out while the round wound down
            self.logger.info(f"Not applying balance {result.new_balance} after logout")
            return
        self.balance_state.apply(result.new_balance)

    def _loss_message(self, result: BetResult) -> str:
        return "Try again!"

    async def _refresh_history(self):
        # a cancelled round may be winding down while the context closes
        if self.history_cache is None or self._cancel_requested:
            return
        try:
            await self.history_cache.reload()
        except ApiError as e:
            self.logger.warning(f"History refresh after round failed: {e}")

    def _fail(self, round_id: int, message: str, reason: str):
        self.last_error = message
        self._set_state(RoundState.FAILED)
        self._dispatch(RoundEventType.ROUND_FAILED, round_id, {"reason": reason, "message": message})
        notify(self.event_dispatcher, NotificationLevel.ERROR, message)
        self._set_state(RoundState.IDLE)

    def _set_state(self, state: RoundState):
        if state is not self._state:
            self.logger.debug(f"{self._state.name} -> {state.name}")
        self._state = state

    def _dispatch(self, event_type: RoundEventType, round_id: int, data: Dict[str, Any]):
        if self.event_dispatcher:
            data = dict(data)
            data["state"] = self._state.name
            self.event_dispatcher.dispatch(RoundEvent(
                type=event_type,
                game_mode=self.mode.value,
                round_id=round_id,
                data=data,
            ))


class SlotRoundController(GameRoundController):
    """Slot-reel rounds: no extra input, shuffled reel frames while revealing."""
    mode = GameMode.SLOT
    endpoint_name = "slot_bet"

    def __init__(self, session_store, balance_state, history_cache=None,
                 event_dispatcher=None, reveal_floor: float = 3.0,
                 round_timeout: Optional[float] = 15.0,
                 endpoints: Optional[Dict[str, Endpoint]] = None,
                 tick_interval: Optional[float] = 0.1,
                 symbols: Optional[List[str]] = None,
                 rng: Optional[random.Random] = None):
        super().__init__(session_store, balance_state, history_cache, event_dispatcher,
                         reveal_floor, round_timeout, endpoints)
        self.tick_interval = tick_interval
        self.symbols = list(symbols or DEFAULT_SLOT_SYMBOLS)
        self.reel_count = 3
        self.rng = rng or random.Random()

    def _create_timer(self, round_id: int) -> RevealTimer:
        def on_tick(tick: int):
            frame = [self.rng.choice(self.symbols) for _ in range(self.reel_count)]
            self._dispatch(RoundEventType.REVEAL_TICK, round_id, {"tick": tick, "reels": frame})

        return RevealTimer(self.reveal_floor, self.tick_interval, on_tick)


class PredictionRoundController(GameRoundController):
    """Number-prediction rounds: the player picks a number from 1 to 14."""
    mode = GameMode.PREDICTION
    endpoint_name = "prediction_bet"

    def __init__(self, session_store, balance_state, history_cache=None,
                 event_dispatcher=None, reveal_floor: float = 2.0,
                 round_timeout: Optional[float] = 15.0,
                 endpoints: Optional[Dict[str, Endpoint]] = None):
        super().__init__(session_store, balance_state, history_cache, event_dispatcher,
                         reveal_floor, round_timeout, endpoints)

    def _validate_payload(self, request: BetRequest) -> Optional[str]:
        prediction = request.prediction
        if prediction is None:
            return "Choose a number"
        if (isinstance(prediction, bool) or not isinstance(prediction, int)
                or not PREDICTION_MIN <= prediction <= PREDICTION_MAX):
            return f"Choose a number between {PREDICTION_MIN} and {PREDICTION_MAX}"
        return None

    def _loss_message(self, result: BetResult) -> str:
        return f"Drawn number: {result.drawn_number}"
