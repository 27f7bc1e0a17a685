# minicasino/domain/exceptions.py
from typing import Optional


class CasinoClientError(Exception):
    """Base class for every error raised by the client core."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigError(CasinoClientError):
    """Configuration could not be loaded or validated."""
    pass


class BetValidationError(CasinoClientError):
    """A wager was rejected locally, before any request was sent."""
    pass


class ApiError(CasinoClientError):
    """
    The backend answered with an error, or could not be reached.

    Attributes:
        status: HTTP status code, None when no response was received
        server_message: The ``message`` field of the error body, if any
    """
    def __init__(self, message: str, status: Optional[int] = None,
                 server_message: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.server_message = server_message

    def display_message(self, fallback: str) -> str:
        """Server-provided message when present, otherwise ``fallback``."""
        return self.server_message or fallback


class AuthenticationError(ApiError):
    """The backend rejected the credential (401/403)."""
    pass


class NetworkError(ApiError):
    """Transport failure or timeout; no usable response."""
    pass


class MalformedResponseError(ApiError):
    """A response arrived but lacks the fields the client relies on."""
    pass
