"""
Message Bus

Routes commands to their single handler and domain events to every
subscriber. Event subscribers registered for a base class receive all of
its subclasses, so an audit handler can subscribe to ``DomainEvent`` once.
"""

from typing import Any, Callable, Dict, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class MessageBus:
    """
    Message bus for commands and events

    Commands: One handler per command (1:1)
    Events: Multiple handlers per event (1:N)
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[Callable]] = {}
        self._command_handlers: Dict[Type, Callable] = {}

    def register_event_handler(
        self,
        event_type: Type[DomainEvent],
        handler: Callable[[DomainEvent], None]
    ):
        handlers = self._event_handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug("Registered event handler %s for %s", handler.__name__, event_type.__name__)

    def register_command_handler(
        self,
        command_type: Type,
        handler: Callable[[Any], Any]
    ):
        """Only one handler can be registered per command type."""
        existing = self._command_handlers.get(command_type)
        if existing is not None and existing != handler:
            raise ValueError(
                f"Handler for {command_type.__name__} is already registered. "
                "Commands can have only one handler."
            )
        self._command_handlers[command_type] = handler

    def handle_command(self, command: Any) -> Any:
        """
        Handle a command

        Returns the result from the command handler. Domain errors raised by
        the handler propagate to the caller unchanged.
        """
        command_type = type(command)
        handler = self._command_handlers.get(command_type)
        if handler is None:
            raise LookupError(f"No handler registered for command {command_type.__name__}")

        logger.debug("Handling command %s", command_type.__name__)
        return handler(command)

    def handlers_for(self, event: DomainEvent) -> List[Callable]:
        handlers: List[Callable] = []
        for klass in type(event).__mro__:
            for handler in self._event_handlers.get(klass, []):
                if handler not in handlers:
                    handlers.append(handler)
        return handlers

    def publish_events(self, events: List[DomainEvent]):
        """
        Publish domain events

        Errors in one handler are logged and do not stop the others: the
        transaction that produced the events has already committed.
        """
        for event in events:
            handlers = self.handlers_for(event)
            if not handlers:
                logger.debug("No handlers registered for event %s", event.event_type)
                continue

            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        "Error in event handler %s for event %s (ID: %s)",
                        handler.__name__, event.event_type, event.event_id,
                    )


# Global message bus instance
message_bus = MessageBus()
