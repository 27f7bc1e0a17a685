# minicasino/domain/session/entities/auth_result.py
from dataclasses import dataclass
from typing import Optional

from .identity import Identity


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a login or register attempt."""
    success: bool
    identity: Optional[Identity] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, identity: Identity) -> "AuthResult":
        return cls(success=True, identity=identity)

    @classmethod
    def failed(cls, message: str) -> "AuthResult":
        return cls(success=False, error=message)

    def __bool__(self) -> bool:
        return self.success
