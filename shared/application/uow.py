"""
Unit of Work Pattern

Wraps a database transaction and publishes domain events only after the
transaction has committed. Any exception inside the block rolls back both
the writes and the collected events.
"""

from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    Django implementation of Unit of Work

    Usage:
        with DjangoUnitOfWork() as uow:
            booking = Booking.objects.select_for_update().get(pk=booking_id)
            booking.confirm(now)
            booking.save()
            uow.collect_events(booking)
        # Events are published after commit
    """

    def __init__(self, using: str | None = None):
        self._events: List[DomainEvent] = []
        self._atomic = transaction.atomic(using=using)
        self._using = using

    def __enter__(self):
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            self._atomic.__exit__(exc_type, exc_val, exc_tb)

    def commit(self):
        """Schedule event publishing for when the outermost transaction commits"""
        events = self._events.copy()
        self._events.clear()
        logger.debug("Committing unit of work with %d events", len(events))
        if events:
            transaction.on_commit(lambda: self._publish_events(events), using=self._using)

    def rollback(self):
        if self._events:
            logger.warning("Rolling back unit of work, discarding %d events", len(self._events))
        self._events.clear()

    def add_event(self, event: DomainEvent):
        self._events.append(event)

    def collect_events(self, aggregate):
        """Pull all pending events from an aggregate root"""
        new_events = aggregate.pull_events()
        if new_events:
            self._events.extend(new_events)
            logger.debug(
                "Collected %d events from %s (ID: %s)",
                len(new_events), aggregate.__class__.__name__, aggregate.pk,
            )

    def _publish_events(self, events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        logger.info("Publishing %d domain events after commit", len(events))
        message_bus.publish_events(events)
