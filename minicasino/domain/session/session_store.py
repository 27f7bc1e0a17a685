# minicasino/domain/session/session_store.py
import logging
from typing import Dict, Any, Optional

from minicasino.domain.events.casino_events import (
    NotificationLevel,
    SessionEvent,
    SessionEventType,
    notify,
)
from minicasino.domain.exceptions import ApiError, AuthenticationError, MalformedResponseError
from minicasino.infrastructure.http.endpoints import DEFAULT_ENDPOINTS, Endpoint
from .entities.auth_result import AuthResult
from .entities.identity import Identity


class SessionStore:
    """
    Owns the authenticated identity and its bearer credential.

    The two are always set and cleared together: either both are present
    or the session is logged out. The credential is persisted in a
    durable key-value slot so the session survives restarts, and it is
    handed to the API client per request.
    """
    CREDENTIAL_KEY = "token"

    def __init__(self, api_client, credential_store,
                 endpoints: Optional[Dict[str, Endpoint]] = None,
                 event_dispatcher=None):
        """
        Initialize the session store.

        Args:
            api_client: ApiClient used for every backend call
            credential_store: Durable store for the credential
            endpoints: Endpoint table (defaults to the standard backend paths)
            event_dispatcher: Optional dispatcher for session events and notifications
        """
        self.logger = logging.getLogger("domain.session")
        self.api = api_client
        self.credential_store = credential_store
        self.endpoints = endpoints or DEFAULT_ENDPOINTS
        self.event_dispatcher = event_dispatcher

        self._identity: Optional[Identity] = None
        self._credential: Optional[str] = None

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def credential(self) -> Optional[str]:
        return self._credential

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    async def restore(self) -> Optional[Identity]:
        """
        Re-establish the session from the persisted credential.

        Any failure, network or rejection, discards the credential and
        leaves the session logged out. Never raises.

        Returns:
            The verified identity, or None
        """
        try:
            credential = await self.credential_store.get(self.CREDENTIAL_KEY)
        except OSError as e:
            self.logger.warning(f"Could not read persisted credential: {e}")
            return None

        if not credential:
            self.logger.debug("No persisted credential, starting logged out")
            return None

        try:
            identity = await self._verify(credential)
        except (ApiError, ValueError) as e:
            self.logger.info(f"Persisted credential rejected, discarding it: {e}")
            await self._clear()
            return None

        self._set_session(credential, identity)
        self.logger.info(f"Session restored for {identity.username or identity.id}")
        self._dispatch(SessionEventType.SESSION_RESTORED)
        return identity

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Authenticate with email and password.

        Returns:
            AuthResult with the identity, or with a displayable error message
        """
        return await self._authenticate(
            self.endpoints["login"],
            {"email": email, "password": password},
            SessionEventType.LOGGED_IN,
            success_message="Login successful",
            fallback_message="login failed",
        )

    async def register(self, username: str, email: str, password: str) -> AuthResult:
        """
        Create an account and sign in with it.

        Returns:
            AuthResult with the identity, or with a displayable error message
        """
        return await self._authenticate(
            self.endpoints["register"],
            {"username": username, "email": email, "password": password},
            SessionEventType.REGISTERED,
            success_message="Account created",
            fallback_message="registration failed",
        )

    async def logout(self):
        """Forget the session locally. No server round-trip is needed."""
        user_id = self._identity.id if self._identity else ""
        await self._clear()
        self.logger.info("Logged out")
        self._dispatch(SessionEventType.LOGGED_OUT, user_id=user_id)
        notify(self.event_dispatcher, NotificationLevel.SUCCESS, "Logged out")

    def update_identity(self, patch: Dict[str, Any]) -> Optional[Identity]:
        """
        Replace cached identity fields. Local write only.

        Args:
            patch: Fields to replace, wire (camelCase) or attribute names

        Returns:
            The updated identity, or None when logged out
        """
        if self._identity is None:
            self.logger.warning("Ignoring identity update while logged out")
            return None

        updated = self._identity.updated(patch)
        if updated != self._identity:
            self._identity = updated
            self._dispatch(SessionEventType.IDENTITY_UPDATED)
        return self._identity

    async def request(self, endpoint: Endpoint, json: Optional[Dict[str, Any]] = None,
                      params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Perform an authenticated call with the current credential.

        A 401-class answer makes the store re-check its credential; the
        session is torn down if that check is rejected too. The original
        error is re-raised either way.
        """
        credential = self._credential
        try:
            return await self.api.request(endpoint.method, endpoint.path, credential=credential,
                                          json=json, params=params)
        except AuthenticationError:
            if credential is not None and credential == self._credential:
                await self.handle_unauthorized()
            raise

    async def handle_unauthorized(self):
        """Re-verify the credential after a 401/403 and drop the session if it is dead."""
        credential = self._credential
        if credential is None:
            return
        try:
            identity = await self._verify(credential)
        except AuthenticationError:
            self.logger.warning("Credential no longer accepted, ending session")
            user_id = self._identity.id if self._identity else ""
            await self._clear()
            self._dispatch(SessionEventType.SESSION_INVALIDATED, user_id=user_id)
            notify(self.event_dispatcher, NotificationLevel.ERROR, "Session expired, please log in again")
            return
        except (ApiError, ValueError) as e:
            self.logger.warning(f"Could not re-verify credential, keeping session: {e}")
            return

        if credential == self._credential:
            self._identity = identity
            self._dispatch(SessionEventType.IDENTITY_UPDATED)

    async def _verify(self, credential: str) -> Identity:
        endpoint = self.endpoints["verify"]
        body = await self.api.request(endpoint.method, endpoint.path, credential=credential)
        return Identity.from_dict(body.get("user"))

    async def _authenticate(self, endpoint: Endpoint, payload: Dict[str, Any],
                            event_type: SessionEventType, success_message: str,
                            fallback_message: str) -> AuthResult:
        try:
            body = await self.api.request(endpoint.method, endpoint.path, json=payload)
            token = body.get("token")
            if not token:
                raise MalformedResponseError(f"{endpoint} returned no token")
            identity = Identity.from_dict(body.get("user"))
        except ApiError as e:
            message = e.display_message(fallback_message)
            self.logger.info(f"{endpoint} failed: {e}")
            notify(self.event_dispatcher, NotificationLevel.ERROR, message)
            return AuthResult.failed(message)
        except ValueError as e:
            self.logger.warning(f"{endpoint} returned an unusable user: {e}")
            notify(self.event_dispatcher, NotificationLevel.ERROR, fallback_message)
            return AuthResult.failed(fallback_message)

        try:
            await self.credential_store.set(self.CREDENTIAL_KEY, token)
        except OSError as e:
            self.logger.warning(f"Could not persist credential, session will not survive restart: {e}")

        self._set_session(token, identity)
        self.logger.info(f"Authenticated as {identity.username or identity.id}")
        self._dispatch(event_type)
        notify(self.event_dispatcher, NotificationLevel.SUCCESS, success_message)
        return AuthResult.ok(identity)

    def _set_session(self, credential: str, identity: Identity):
        self._credential = credential
        self._identity = identity

    async def _clear(self):
        self._credential = None
        self._identity = None
        try:
            await self.credential_store.remove(self.CREDENTIAL_KEY)
        except OSError as e:
            self.logger.warning(f"Could not remove persisted credential: {e}")

    def _dispatch(self, event_type: SessionEventType, user_id: Optional[str] = None):
        if not self.event_dispatcher:
            return
        if user_id is None:
            user_id = self._identity.id if self._identity else ""
        self.event_dispatcher.dispatch(SessionEvent(
            type=event_type,
            user_id=user_id,
            data={"identity": self._identity},
        ))
