# minicasino/application/services/profile_service.py
import logging
from typing import Optional

from minicasino.domain.events.casino_events import NotificationLevel, notify
from minicasino.domain.exceptions import ApiError
from minicasino.domain.session.entities.auth_result import AuthResult
from minicasino.domain.session.entities.identity import Identity
from minicasino.infrastructure.http.endpoints import DEFAULT_ENDPOINTS


class ProfileService:
    """Submits profile edits and stores the identity the server returns."""
    FALLBACK_MESSAGE = "profile update failed"

    def __init__(self, session_store, endpoints=None, event_dispatcher=None):
        self.logger = logging.getLogger("application.profile")
        self.session_store = session_store
        self.endpoint = (endpoints or DEFAULT_ENDPOINTS)["profile"]
        self.event_dispatcher = event_dispatcher

    async def update(self, username: Optional[str] = None, email: Optional[str] = None) -> AuthResult:
        """
        Change username and/or email.

        Returns:
            AuthResult with the updated identity, or a displayable error
        """
        current = self.session_store.identity
        if current is None:
            notify(self.event_dispatcher, NotificationLevel.ERROR, "Log in to edit your profile")
            return AuthResult.failed("Log in to edit your profile")

        payload = {
            "username": username if username is not None else current.username,
            "email": email if email is not None else current.email,
        }
        try:
            body = await self.session_store.request(self.endpoint, json=payload)
            user = Identity.from_dict(body.get("user"))
        except ApiError as e:
            message = e.display_message(self.FALLBACK_MESSAGE)
            self.logger.info(f"Profile update failed: {e}")
            notify(self.event_dispatcher, NotificationLevel.ERROR, message)
            return AuthResult.failed(message)
        except ValueError as e:
            self.logger.warning(f"Profile response has no usable user: {e}")
            notify(self.event_dispatcher, NotificationLevel.ERROR, self.FALLBACK_MESSAGE)
            return AuthResult.failed(self.FALLBACK_MESSAGE)

        identity = self.session_store.update_identity(user.to_dict())
        notify(self.event_dispatcher, NotificationLevel.SUCCESS, "Profile updated")
        return AuthResult.ok(identity)
