# minicasino/application/client_context.py
import logging
from typing import Dict, Any, Optional

from minicasino.application.services.profile_service import ProfileService
from minicasino.application.services.stats_service import StatsService
from minicasino.domain.balance.balance_state import BalanceState
from minicasino.domain.events.casino_events import BalanceEventType, SessionEventType
from minicasino.domain.events.event_dispatcher import EventDispatcher
from minicasino.domain.game.entities.bet_request import GameMode
from minicasino.domain.game.factories.round_controller_factory import RoundControllerFactory
from minicasino.domain.history.history_cache import HistoryCache
from minicasino.domain.session.session_store import SessionStore
from minicasino.infrastructure.http.api_client import ApiClient
from minicasino.infrastructure.http.endpoints import endpoints_from_config
from minicasino.infrastructure.storage.credential_store import CredentialStore


class CasinoContext:
    """
    Everything one signed-in client needs, built once and passed around.

    Construct it at process start, ``start()`` it to restore a persisted
    session, and ``close()`` it on exit. ``logout()`` tears the session
    state down but keeps the context usable for another login.
    """
    def __init__(self, config: Dict[str, Any], transport=None,
                 event_dispatcher: Optional[EventDispatcher] = None):
        """
        Wire the client components from a loaded configuration.

        Args:
            config: Complete client configuration (see ``load_client_config``)
            transport: Optional httpx transport override (used by tests)
            event_dispatcher: Dispatcher to use; a new one when None
        """
        self.logger = logging.getLogger("application.context")
        self.config = config
        self.event_dispatcher = event_dispatcher or EventDispatcher()

        api_config = config.get("api", {})
        self.endpoints = endpoints_from_config(api_config.get("endpoints"))
        self.api_client = ApiClient(
            api_config.get("base_url", "http://localhost:5000/api"),
            timeout=api_config.get("timeout", 10),
            transport=transport,
        )
        self.credential_store = CredentialStore(
            config.get("storage", {}).get("path", "~/.minicasino/session.json")
        )

        self.session = SessionStore(self.api_client, self.credential_store,
                                    self.endpoints, self.event_dispatcher)
        self.balance = BalanceState(self.event_dispatcher)
        self.history = HistoryCache(
            self.session,
            page_size=config.get("history", {}).get("page_size", 10),
            endpoints=self.endpoints,
            event_dispatcher=self.event_dispatcher,
        )

        factory = RoundControllerFactory(self.session, self.balance, self.history,
                                         self.event_dispatcher, self.endpoints)
        self.controllers = factory.create_all(config.get("games", {}))

        self.stats = StatsService(self.session, self.endpoints)
        self.profile = ProfileService(self.session, self.endpoints, self.event_dispatcher)

        self._register_handlers()
        self.closed = False

    @property
    def slot(self):
        return self.controllers[GameMode.SLOT]

    @property
    def prediction(self):
        return self.controllers[GameMode.PREDICTION]

    def controller(self, mode: GameMode):
        return self.controllers[mode]

    async def start(self):
        """Restore the persisted session, if any. Never raises on auth failure."""
        identity = await self.session.restore()
        if identity is None:
            self.logger.info("Starting without a session")
        return identity

    async def logout(self):
        for controller in self.controllers.values():
            controller.cancel()
        await self.session.logout()

    async def close(self):
        if self.closed:
            return
        for controller in self.controllers.values():
            controller.cancel()
        await self.api_client.close()
        self.closed = True
        self.logger.debug("Context closed")

    async def __aenter__(self) -> "CasinoContext":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _register_handlers(self):
        for event_type in (SessionEventType.SESSION_RESTORED, SessionEventType.LOGGED_IN,
                           SessionEventType.REGISTERED, SessionEventType.IDENTITY_UPDATED):
            self.event_dispatcher.register(event_type, self._on_identity)
        for event_type in (SessionEventType.LOGGED_OUT, SessionEventType.SESSION_INVALIDATED):
            self.event_dispatcher.register(event_type, self._on_session_ended)
        self.event_dispatcher.register(BalanceEventType.BALANCE_CHANGED, self._on_balance_changed)

    def _on_identity(self, event):
        self.balance.sync_identity(self.session.identity)

    def _on_session_ended(self, event):
        self.balance.reset()
        self.history.clear()

    def _on_balance_changed(self, event):
        identity = self.session.identity
        if identity is not None and identity.credits != event.credits:
            self.session.update_identity({"credits": event.credits})
