# minicasino/infrastructure/http/endpoints.py
from dataclasses import dataclass
from typing import Dict, Any, Optional


@dataclass(frozen=True)
class Endpoint:
    """One logical backend operation."""
    method: str
    path: str

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


DEFAULT_ENDPOINTS: Dict[str, Endpoint] = {
    "verify": Endpoint("GET", "/auth/verify"),
    "login": Endpoint("POST", "/auth/login"),
    "register": Endpoint("POST", "/auth/register"),
    "slot_bet": Endpoint("POST", "/games/tigrinho"),
    "prediction_bet": Endpoint("POST", "/games/doble"),
    "history": Endpoint("GET", "/games/history"),
    "stats": Endpoint("GET", "/games/stats"),
    "profile": Endpoint("PUT", "/users/profile"),
}


def endpoints_from_config(config: Optional[Dict[str, Any]]) -> Dict[str, Endpoint]:
    """
    Merge configured endpoints over the defaults.

    Each entry is either a path string (method kept) or a mapping with
    ``method`` and/or ``path``.
    """
    endpoints = dict(DEFAULT_ENDPOINTS)
    for name, value in (config or {}).items():
        base = endpoints.get(name, Endpoint("GET", ""))
        if isinstance(value, str):
            endpoints[name] = Endpoint(base.method, value)
        elif isinstance(value, dict):
            endpoints[name] = Endpoint(
                str(value.get("method", base.method)).upper(),
                value.get("path", base.path),
            )
    return endpoints
