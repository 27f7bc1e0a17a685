# minicasino/infrastructure/http/api_client.py
import logging
from typing import Dict, Any, Optional

import httpx

from minicasino.domain.exceptions import (
    ApiError,
    AuthenticationError,
    MalformedResponseError,
    NetworkError,
)

TOKEN_PREFIX = "Bearer "
AUTH_FAILURE_STATUSES = (401, 403)


class ApiClient:
    """
    Thin JSON client over ``httpx.AsyncClient``.

    The credential is passed per request and never stored as a default
    header, so attaching or detaching it has no hidden side effects.
    """
    def __init__(self, base_url: str, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the API client.

        Args:
            base_url: Backend root, e.g. ``http://localhost:5000/api``
            timeout: Per-request timeout in seconds
            transport: Optional transport override (used by tests)
        """
        self.logger = logging.getLogger("infrastructure.http")
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def request(self, method: str, path: str, credential: Optional[str] = None,
                      json: Optional[Dict[str, Any]] = None,
                      params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Send a request and decode its JSON body.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            credential: Bearer token to attach, if any
            json: Optional JSON body
            params: Optional query parameters; ``None`` values are dropped

        Returns:
            The decoded JSON object

        Raises:
            AuthenticationError: On 401/403
            ApiError: On any other error status
            NetworkError: On transport failure or timeout
            MalformedResponseError: If the body is not a JSON object
        """
        headers = {}
        if credential:
            headers["Authorization"] = f"{TOKEN_PREFIX}{credential}"
        if params:
            params = {key: value for key, value in params.items() if value is not None}

        self.logger.debug(f"{method} {path}")
        try:
            response = await self._client.request(method, path, json=json, params=params or None,
                                                  headers=headers)
        except httpx.TimeoutException as e:
            self.logger.warning(f"{method} {path} timed out: {e!r}")
            raise NetworkError(f"Request to {path} timed out") from e
        except httpx.HTTPError as e:
            self.logger.warning(f"{method} {path} failed: {e!r}")
            raise NetworkError(f"Request to {path} failed: {e}") from e

        body = self._decode(response)

        if response.status_code >= 400:
            server_message = body.get("message") if isinstance(body, dict) else None
            error_cls = AuthenticationError if response.status_code in AUTH_FAILURE_STATUSES else ApiError
            self.logger.info(f"{method} {path} -> {response.status_code} {server_message or ''}".rstrip())
            raise error_cls(
                f"{method} {path} returned {response.status_code}",
                status=response.status_code,
                server_message=server_message,
            )

        if not isinstance(body, dict):
            raise MalformedResponseError(f"{method} {path} returned a non-object body",
                                         status=response.status_code)
        return body

    def _decode(self, response: httpx.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            self.logger.debug(f"Non-JSON body with status {response.status_code}")
            return None

    async def close(self):
        """Release the underlying connection pool."""
        await self._client.aclose()
