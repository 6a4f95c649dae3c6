"""
Event Listener Management - Track, suppress and restore SQLAlchemy listeners

SQLAlchemy can't enumerate the listeners attached to a target, so listeners
that should be suppressible are registered through an EventManager, which
remembers them (with their listen() options) on top of sqlalchemy.event.

Typical use during a bulk import:

    with repository.events_disabled('before_insert', 'after_insert'):
        repository.add(contacts, flush=True)
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, DefaultDict, Dict, Iterator, List, Optional, Tuple, Union, Type
from sqlalchemy import event
import logging

from repositories.exceptions import InvalidListenerError, InvalidSubscriberError, describe_type

logger = logging.getLogger(__name__)


@dataclass
class Listener:
    """A listener registered on an event, with the options it was registered with"""
    event: str
    fn: Callable
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def owner(self) -> Any:
        """Object a bound method belongs to, or the callable itself"""
        return getattr(self.fn, '__self__', self.fn)

    def matches(self, listener: Union[Callable, Type]) -> bool:
        """Match by class (owner type) or by the callable itself"""
        if isinstance(listener, type):
            return isinstance(self.owner, listener)
        return self.fn == listener


class EventSubscriber(ABC):
    """
    Groups listeners for several events in one object.

    For every event name returned by get_subscribed_events() the subscriber
    must define a method of the same name, which becomes the listener.
    """

    # Options passed to sqlalchemy.event.listen for every subscribed event
    listener_options: Dict[str, Any] = {}

    @abstractmethod
    def get_subscribed_events(self) -> List[str]:
        """Event names this subscriber listens to"""
        pass


class EventManager:
    """Listener registry for a single SQLAlchemy event target"""

    def __init__(self, target: Any):
        """
        Args:
            target: Any SQLAlchemy event target: a mapped class, Session,
                sessionmaker, Engine...
        """
        self.target = target
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)
        self._subscribers: List[EventSubscriber] = []

    @property
    def subscribers(self) -> Tuple[EventSubscriber, ...]:
        return tuple(self._subscribers)

    def add_listener(self, identifier: str, fn: Callable, **options) -> Listener:
        """
        Register a listener on the target.

        Args:
            identifier: SQLAlchemy event name, e.g. "before_insert"
            fn: Listener callable
            **options: Passed through to sqlalchemy.event.listen

        Returns:
            Listener record, the existing one if fn is already registered
        """
        for listener in self._listeners.get(identifier, []):
            if listener.fn == fn:
                return listener

        event.listen(self.target, identifier, fn, **options)
        listener = Listener(event=identifier, fn=fn, options=dict(options))
        self._listeners[identifier].append(listener)
        return listener

    def remove_listener(self, identifier: str, fn: Callable) -> Optional[Listener]:
        """
        Unregister a listener from the target.

        Returns:
            The removed Listener record, or None if fn wasn't registered
        """
        listeners = self._listeners.get(identifier, [])
        for listener in listeners:
            if listener.fn == fn:
                event.remove(self.target, identifier, listener.fn)
                listeners.remove(listener)
                if not listeners:
                    del self._listeners[identifier]
                return listener
        return None

    def get_listeners(self, identifier: Optional[str] = None) -> Union[Tuple[Listener, ...], Dict[str, Tuple[Listener, ...]]]:
        """Listeners of one event, or all listeners keyed by event when no event is given"""
        if identifier is None:
            return {name: tuple(listeners) for name, listeners in self._listeners.items()}
        return tuple(self._listeners.get(identifier, []))

    def has_listeners(self, identifier: str) -> bool:
        return bool(self._listeners.get(identifier))

    def add_subscriber(self, subscriber: EventSubscriber) -> None:
        """Register every listener method of a subscriber"""
        for identifier in subscriber.get_subscribed_events():
            self.add_listener(identifier, getattr(subscriber, identifier), **subscriber.listener_options)
        self._subscribers.append(subscriber)

    def remove_subscriber(self, subscriber: EventSubscriber) -> bool:
        """
        Unregister every listener method of a subscriber.

        Returns:
            False if the subscriber wasn't registered
        """
        if not any(registered is subscriber for registered in self._subscribers):
            return False

        for identifier in subscriber.get_subscribed_events():
            self.remove_listener(identifier, getattr(subscriber, identifier))
        self._subscribers = [s for s in self._subscribers if s is not subscriber]
        return True

    def __repr__(self) -> str:
        return f"<EventManager target={self.target!r} events={sorted(self._listeners)}>"


class EventsMixin:
    """
    Temporary suppression of event listeners and subscribers.

    Keeps the removed listeners per event, and the removed subscribers, so
    they can be put back exactly as they were.
    """

    event_manager: EventManager

    def _init_events(self, event_manager: EventManager) -> None:
        self.event_manager = event_manager
        self._disabled_listeners: Dict[str, List[Listener]] = {}
        self._disabled_subscribers: List[EventSubscriber] = []

    def get_event_manager(self) -> EventManager:
        return self.event_manager

    @property
    def disabled_listeners(self) -> Dict[str, Tuple[Listener, ...]]:
        return {name: tuple(listeners) for name, listeners in self._disabled_listeners.items()}

    @property
    def disabled_subscribers(self) -> Tuple[EventSubscriber, ...]:
        return tuple(self._disabled_subscribers)

    # Listeners

    def disable_event_listeners(self, identifier: str) -> None:
        """Disable every listener of an event"""
        for listener in self.event_manager.get_listeners(identifier):
            self._disable_listener(listener)

    def disable_event_listener(self, identifier: str, listener: Union[Callable, Type]) -> None:
        """
        Disable the listeners of an event matching a callable or a class.

        Args:
            identifier: Event name
            listener: The listener callable itself, or a class whose instances
                (or bound methods of them) are listening

        Raises:
            InvalidListenerError: If listener is neither callable nor a class
        """
        if not callable(listener):
            raise InvalidListenerError(
                f'Listener must be a callable or a class. "{describe_type(listener)}" given'
            )

        for registered in self.event_manager.get_listeners(identifier):
            if registered.matches(listener):
                self._disable_listener(registered)

    def restore_event_listeners(self, identifier: str) -> None:
        """Restore the disabled listeners of an event"""
        self._restore_listeners(identifier, 0)

    def restore_all_event_listeners(self) -> None:
        for identifier in list(self._disabled_listeners):
            self.restore_event_listeners(identifier)

    # Subscribers

    def disable_event_subscriber(self, subscriber: Union[EventSubscriber, Type[EventSubscriber]]) -> None:
        """
        Disable a subscriber, or every subscriber of a class.

        Raises:
            InvalidSubscriberError: If subscriber is not an EventSubscriber
        """
        if isinstance(subscriber, type) and issubclass(subscriber, EventSubscriber):
            matches = [s for s in self.event_manager.subscribers if isinstance(s, subscriber)]
        elif isinstance(subscriber, EventSubscriber):
            matches = [s for s in self.event_manager.subscribers if s is subscriber]
        else:
            name = subscriber.__name__ if isinstance(subscriber, type) else describe_type(subscriber)
            raise InvalidSubscriberError(
                f'Subscriber must be an EventSubscriber. "{name}" given'
            )

        for registered in matches:
            self.event_manager.remove_subscriber(registered)
            self._disabled_subscribers.append(registered)
            logger.debug(f"Disabled event subscriber {type(registered).__name__}")

    def restore_event_subscribers(self) -> None:
        self._restore_subscribers(0)

    def restore_all_events(self) -> None:
        """Restore every disabled listener and subscriber"""
        self.restore_all_event_listeners()
        self.restore_event_subscribers()

    @contextmanager
    def events_disabled(self, *identifiers: str,
                        subscribers: Tuple[Union[EventSubscriber, Type[EventSubscriber]], ...] = ()) -> Iterator['EventsMixin']:
        """
        Disable listeners and subscribers for the duration of a block.

        Only what the block disabled is restored on exit, errors included.
        """
        listener_marks = {name: len(self._disabled_listeners.get(name, [])) for name in identifiers}
        subscriber_mark = len(self._disabled_subscribers)

        try:
            for identifier in identifiers:
                self.disable_event_listeners(identifier)
            for subscriber in subscribers:
                self.disable_event_subscriber(subscriber)
            yield self
        finally:
            for identifier, mark in listener_marks.items():
                self._restore_listeners(identifier, mark)
            self._restore_subscribers(subscriber_mark)

    # Helpers

    def _disable_listener(self, listener: Listener) -> None:
        removed = self.event_manager.remove_listener(listener.event, listener.fn)
        if removed is not None:
            self._disabled_listeners.setdefault(listener.event, []).append(removed)
            logger.debug(f"Disabled {listener.event} listener {listener.fn!r}")

    def _restore_listeners(self, identifier: str, start: int) -> None:
        disabled = self._disabled_listeners.get(identifier)
        if not disabled:
            return

        for listener in disabled[start:]:
            self.event_manager.add_listener(identifier, listener.fn, **listener.options)

        del disabled[start:]
        if not disabled:
            del self._disabled_listeners[identifier]

    def _restore_subscribers(self, start: int) -> None:
        for subscriber in self._disabled_subscribers[start:]:
            self.event_manager.add_subscriber(subscriber)
            logger.debug(f"Restored event subscriber {type(subscriber).__name__}")
        del self._disabled_subscribers[start:]
