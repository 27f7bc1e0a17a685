# minicasino/domain/events/casino_events.py
from enum import Enum, auto
from dataclasses import dataclass

from .base_event import DomainEvent


class SessionEventType(Enum):
    """Authentication lifecycle events."""
    SESSION_RESTORED = auto()
    LOGGED_IN = auto()
    REGISTERED = auto()
    LOGGED_OUT = auto()
    SESSION_INVALIDATED = auto()    # verify failed after a 401
    IDENTITY_UPDATED = auto()


class BalanceEventType(Enum):
    BALANCE_CHANGED = auto()


class RoundEventType(Enum):
    """Game round state machine events."""
    ROUND_STARTED = auto()          # entered SUBMITTING
    ROUND_REVEALING = auto()        # server answered, floor still running
    REVEAL_TICK = auto()            # one animation frame
    ROUND_RESOLVED = auto()
    ROUND_FAILED = auto()
    ROUND_REJECTED = auto()         # guard refused the wager


class HistoryEventType(Enum):
    HISTORY_REFRESHED = auto()


class NotificationLevel(Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class NotificationEventType(Enum):
    NOTIFICATION = auto()


@dataclass
class SessionEvent(DomainEvent):
    """Something happened to the authenticated session."""
    user_id: str = ""

    def __post_init__(self):
        self.data["user_id"] = self.user_id


@dataclass
class BalanceEvent(DomainEvent):
    credits: int = 0
    previous: int = 0


@dataclass
class RoundEvent(DomainEvent):
    """Something happened to a round of one game mode."""
    game_mode: str = ""
    round_id: int = 0

    def __post_init__(self):
        self.data["game_mode"] = self.game_mode
        self.data["round_id"] = self.round_id


@dataclass
class HistoryEvent(DomainEvent):
    page: int = 1
    total_pages: int = 1


@dataclass
class NotificationEvent(DomainEvent):
    """A short user-facing message (the UI shows it as a toast)."""
    level: NotificationLevel = NotificationLevel.INFO
    message: str = ""

    def __str__(self) -> str:
        return f"NotificationEvent({self.level.value}: {self.message})"


def notify(dispatcher, level: NotificationLevel, message: str):
    """Dispatch a notification if a dispatcher is wired in."""
    if dispatcher is not None:
        dispatcher.dispatch(NotificationEvent(
            type=NotificationEventType.NOTIFICATION,
            level=level,
            message=message,
        ))
