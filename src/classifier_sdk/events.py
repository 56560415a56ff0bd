"""Client lifecycle events and a synchronous multicast dispatcher.

The event set is fixed:

- ``OPEN``: the stream is established and listeners are attached. No payload.
- ``DATA``: a ``ClassifyResponse`` arrived on the stream.
- ``ERROR``: a transport, heartbeat, or listener failure. Payload is the exception.
- ``CLOSE``: the session ended (caller ``close()`` or transport termination). No payload.

Delivery is at-most-once per emission, in subscription order, to the
listeners registered at the moment of emission. Nothing is buffered for
late subscribers.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

logger = logging.getLogger("classifier_sdk")

Listener = Callable[..., Any]


class ClientEvent(str, Enum):
    """Events emitted by :class:`~classifier_sdk.client.ClassifierClient`."""

    OPEN = "open"
    DATA = "data"
    ERROR = "error"
    CLOSE = "close"


class Subscription:
    """Handle returned by :meth:`EventDispatcher.subscribe`.

    Calling :meth:`unsubscribe` more than once is harmless.
    """

    __slots__ = ("_dispatcher", "_event", "_listener", "_active")

    def __init__(self, dispatcher: EventDispatcher, event: ClientEvent, listener: Listener) -> None:
        self._dispatcher = dispatcher
        self._event = event
        self._listener = listener
        self._active = True

    @property
    def event(self) -> ClientEvent:
        return self._event

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        """Stop delivering events to this listener."""
        if self._active:
            self._active = False
            self._dispatcher._remove(self)


class EventDispatcher:
    """Ordered, synchronous multicast of :class:`ClientEvent` emissions.

    A listener that raises while handling a non-error event does not stop
    delivery to the remaining listeners; its exception is re-emitted as an
    ``ERROR`` event. Exceptions raised by ``ERROR`` listeners are logged.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[ClientEvent, list[Subscription]] = {
            event: [] for event in ClientEvent
        }

    def subscribe(self, event: ClientEvent | str, listener: Listener) -> Subscription:
        """Register *listener* for *event*.

        Args:
            event: A :class:`ClientEvent` or its string value (``"data"``).
            listener: Called with the event payload (``DATA``, ``ERROR``) or
                with no arguments (``OPEN``, ``CLOSE``).

        Returns:
            A handle whose ``unsubscribe()`` removes the listener.

        Raises:
            ValueError: If *event* is not a known event name.
        """
        event = ClientEvent(event)
        subscription = Subscription(self, event, listener)
        self._subscriptions[event].append(subscription)
        return subscription

    def listener_count(self, event: ClientEvent | str) -> int:
        return len(self._subscriptions[ClientEvent(event)])

    def emit(self, event: ClientEvent, *payload: Any) -> None:
        """Deliver *payload* to every current listener of *event*."""
        for subscription in list(self._subscriptions[event]):
            if not subscription.active:
                continue
            try:
                subscription._listener(*payload)
            except Exception as exc:
                if event is ClientEvent.ERROR:
                    logger.warning("Error listener raised", exc_info=True)
                else:
                    logger.debug("Listener for %r raised: %s", event.value, exc)
                    self.emit(ClientEvent.ERROR, exc)

    def clear(self) -> None:
        """Drop all listeners."""
        for subscriptions in self._subscriptions.values():
            for subscription in subscriptions:
                subscription._active = False
            subscriptions.clear()

    def _remove(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions[subscription.event]
        if subscription in subscriptions:
            subscriptions.remove(subscription)
