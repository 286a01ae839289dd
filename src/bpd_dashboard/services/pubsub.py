"""Observer registry for snapshot change notifications."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable

from bpd_dashboard.models import AppState

logger = logging.getLogger(__name__)

Observer = Callable[[AppState], None]


class Subscription:
    """Handle returned by SubscriptionRegistry.subscribe()."""

    def __init__(self, registry: SubscriptionRegistry, handle: int):
        self._registry = registry
        self.handle = handle

    @property
    def active(self) -> bool:
        return self.handle in self._registry._observers

    def unsubscribe(self) -> None:
        """Remove the observer. Safe to call more than once."""
        self._registry._observers.pop(self.handle, None)

    __call__ = unsubscribe


class SubscriptionRegistry:
    """Observers keyed by subscription handle, notified in registration order."""

    def __init__(self):
        self._observers: dict[int, Observer] = {}
        self._handles = itertools.count(1)

    def __len__(self) -> int:
        return len(self._observers)

    def subscribe(self, observer: Observer) -> Subscription:
        """Register *observer* and return its subscription handle."""
        handle = next(self._handles)
        self._observers[handle] = observer
        return Subscription(self, handle)

    def publish(self, state: AppState) -> None:
        """Deliver a fresh shallow copy of *state* to every observer.

        Observer exceptions are logged and do not stop delivery.
        """
        for handle, observer in list(self._observers.items()):
            if handle not in self._observers:
                continue
            try:
                observer(state.shallow_copy())
            except Exception:
                logger.exception("Error in state observer %d", handle)

    def clear(self) -> None:
        self._observers.clear()
