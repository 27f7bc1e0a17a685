# minicasino/domain/events/event_dispatcher.py
import logging
from enum import Enum
from typing import Callable, Type

from .base_event import DomainEvent


class EventDispatcher:
    """
    Dispatches domain events to registered handlers.

    Handlers run synchronously, in registration order, on the caller's
    thread of control. A failing handler is logged and skipped.
    """
    def __init__(self):
        """Initialize the event dispatcher."""
        self.logger = logging.getLogger("domain.events.dispatcher")
        self.handlers = {}  # event_type -> list of handlers
        self.type_handlers = {}  # event class name -> list of handlers

    def register(self, event_type: Enum, handler: Callable[[DomainEvent], None]):
        """
        Register a handler for a specific event type.

        Args:
            event_type: Type of event to handle
            handler: Function to call when event occurs
        """
        self.handlers.setdefault(event_type, []).append(handler)
        self.logger.debug(f"Registered handler for event type: {event_type.name}")

    def register_for_class(self, event_class: Type[DomainEvent], handler: Callable[[DomainEvent], None]):
        """
        Register a handler for all events of a specific class.

        Args:
            event_class: Class of events to handle
            handler: Function to call when event occurs
        """
        class_name = event_class.__name__
        self.type_handlers.setdefault(class_name, []).append(handler)
        self.logger.debug(f"Registered handler for event class: {class_name}")

    def dispatch(self, event: DomainEvent):
        """
        Dispatch an event to all registered handlers.

        Args:
            event: Event to dispatch
        """
        handlers = self.handlers.get(event.type, [])
        class_handlers = self.type_handlers.get(event.__class__.__name__, [])
        all_handlers = handlers + class_handlers

        if not all_handlers:
            self.logger.debug(f"No handlers registered for event: {event}")
            return

        self.logger.debug(f"Dispatching event {event} to {len(all_handlers)} handlers")

        for handler in all_handlers:
            try:
                handler(event)
            except Exception as e:
                self.logger.error(f"Error in event handler for {event}: {str(e)}")
