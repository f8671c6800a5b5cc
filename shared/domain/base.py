"""
Base Domain Classes

Building blocks shared by the domain layers of every app:
- ValueObject: Immutable objects compared by value
- DomainEvent: Something that happened, published after commit
- EventRecorder: Mixin for aggregate roots that collect domain events

The ORM models act as aggregate roots, so the event collection lives in a
mixin instead of a dataclass hierarchy.
"""

from abc import ABC
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    Two value objects are equal if all their attributes are equal.
    """
    pass


def _jsonable(value):
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


@dataclass
class DomainEvent:
    """
    Base class for domain events

    Subclasses add their own fields after ``aggregate_id``; every field must
    therefore have a default.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    aggregate_id: UUID | None = None

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict:
        """Convert event to a JSON friendly dictionary"""
        payload = _jsonable(asdict(self))
        payload['event_type'] = self.event_type
        return payload


class EventRecorder:
    """
    Mixin for aggregate roots

    Events are kept on the instance until the unit of work pulls them.
    """

    def record_event(self, event: DomainEvent) -> None:
        self._pending_events().append(event)

    def pull_events(self) -> List[DomainEvent]:
        """Return the collected events and forget them"""
        events = list(self._pending_events())
        self._pending_events().clear()
        return events

    @property
    def events(self) -> List[DomainEvent]:
        return list(self._pending_events())

    def _pending_events(self) -> List[DomainEvent]:
        if '_domain_events' not in self.__dict__:
            self.__dict__['_domain_events'] = []
        return self.__dict__['_domain_events']
