# minicasino/domain/session/entities/identity.py
from dataclasses import dataclass, field, fields, replace
from typing import Dict, Any, Optional


# wire (camelCase) name -> attribute name
WIRE_FIELDS = {
    "id": "id",
    "_id": "id",
    "username": "username",
    "email": "email",
    "credits": "credits",
    "totalWins": "total_wins",
    "totalLosses": "total_losses",
    "totalWagered": "total_wagered",
    "createdAt": "created_at",
    "lastLogin": "last_login",
}

INT_FIELDS = {"credits", "total_wins", "total_losses", "total_wagered"}


def _normalize(patch: Dict[str, Any]) -> Dict[str, Any]:
    attr_names = {f.name for f in fields(Identity)} - {"extra"}
    values = {}
    for key, value in patch.items():
        name = WIRE_FIELDS.get(key, key)
        if name not in attr_names:
            continue
        if name in INT_FIELDS:
            try:
                value = int(value or 0)
            except (TypeError, ValueError) as e:
                raise ValueError(f"user field '{key}' is not a number: {value!r}") from e
        elif name == "id" and value is not None:
            value = str(value)
        values[name] = value
    return values


@dataclass(frozen=True)
class Identity:
    """The authenticated user as last reported by the server."""
    id: str
    username: str = ""
    email: str = ""
    credits: int = 0
    total_wins: int = 0
    total_losses: int = 0
    total_wagered: int = 0
    created_at: Optional[str] = None
    last_login: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Identity":
        """
        Build an identity from a server ``user`` object.

        Raises:
            ValueError: If the payload carries no id or a non-numeric counter
        """
        if not isinstance(data, dict):
            raise ValueError("user payload must be an object")
        values = _normalize(data)
        if not values.get("id"):
            raise ValueError("user payload has no id")
        extra = {key: value for key, value in data.items() if key not in WIRE_FIELDS}
        return cls(extra=extra, **values)

    def updated(self, patch: Dict[str, Any]) -> "Identity":
        """Return a copy with the given wire or attribute fields replaced."""
        values = _normalize(patch)
        values.pop("id", None)
        return replace(self, **values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "credits": self.credits,
            "totalWins": self.total_wins,
            "totalLosses": self.total_losses,
            "totalWagered": self.total_wagered,
            "createdAt": self.created_at,
            "lastLogin": self.last_login,
        }
