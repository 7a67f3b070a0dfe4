"""
Publisher adapters for the EventPublisher port

- NullPublisher: no-op default
- InMemoryPublisher: room-scoped fan-out to subscribers, each event checked
  against the domain_event JSON contract before delivery
"""

import logging
from collections import defaultdict
from typing import Any, Callable

from src.core.contracts import contract_validator
from src.core.domain.events import DomainEvent

logger = logging.getLogger("settlement.publisher")

Subscriber = Callable[[dict[str, Any]], None]


class NullPublisher:
    """Drops every event."""

    def publish(self, event: DomainEvent) -> None:
        return None


class InMemoryPublisher:
    """
    Room-based fan-out.

    Rooms are `seller:{id}` / `buyer:{id}`. Every delivered message is kept
    per room so callers can inspect what each party received.
    """

    def __init__(self):
        self._validator = contract_validator("domain_event")
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)
        self._delivered: dict[str, list[dict[str, Any]]] = defaultdict(list)

    def subscribe(self, room: str, callback: Subscriber) -> None:
        self._subscribers[room].append(callback)

    def publish(self, event: DomainEvent) -> None:
        """
        Raises:
            jsonschema.ValidationError: If the serialized event breaks the contract
        """
        message = event.to_contract()
        self._validator.validate(message)

        self._delivered[event.recipient_room].append(message)
        for callback in self._subscribers.get(event.recipient_room, []):
            callback(message)
        logger.debug("published %s to %s", event.kind.value, event.recipient_room)

    def messages(self, room: str) -> list[dict[str, Any]]:
        return list(self._delivered.get(room, []))

    @property
    def total_published(self) -> int:
        return sum(len(messages) for messages in self._delivered.values())
