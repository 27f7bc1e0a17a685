# minicasino/domain/events/base_event.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any


@dataclass
class DomainEvent:
    """
    Something that happened on the client, tagged with a typed enum member.

    Subclasses add the fields their listeners need; ``data`` carries the
    free-form remainder (snapshots, payload echoes).
    """
    type: Enum
    timestamp: datetime = field(default_factory=datetime.now)
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.type.name

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.name} at {self.timestamp:%H:%M:%S})"
