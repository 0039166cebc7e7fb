"""Dispatch objects to registered listeners, optionally filtered by key."""

from __future__ import annotations

import threading
import weakref
from typing import Any, Callable, Dict, Hashable, List, Optional

from cansock.interface import Listener


class _DispatcherBase:
    """Ordered set of weakly held listeners sharing the owner's lock."""

    def __init__(self, lock: threading.RLock) -> None:
        self._lock = lock
        self._listeners: List[weakref.ref] = []

    def add(self, callable: Optional[Callable[[Any], Any]]) -> Listener:
        listener: Listener = Listener(callable)
        self._listeners.append(weakref.ref(listener, self._remove))
        return listener

    def _remove(self, ref: weakref.ref) -> None:
        with self._lock:
            try:
                self._listeners.remove(ref)
            except ValueError:
                pass

    def dispatch_nolock(self, obj: Any) -> None:
        for ref in tuple(self._listeners):
            listener = ref()
            if listener is not None:
                listener(obj)

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)


class SimpleDispatcher:
    """Calls every live listener with each dispatched object, in registration order.

    A listener stays registered as long as the returned handle is referenced.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._dispatcher = _DispatcherBase(self._lock)

    def create_listener(self, callable: Optional[Callable[[Any], Any]]) -> Listener:
        with self._lock:
            return self._dispatcher.add(callable)

    def dispatch(self, obj: Any) -> None:
        with self._lock:
            self._dispatcher.dispatch_nolock(obj)

    def num_listeners(self) -> int:
        return len(self._dispatcher)

    def __call__(self, obj: Any) -> None:
        self.dispatch(obj)


class FilteredDispatcher(SimpleDispatcher):
    """Dispatcher whose listeners may be bound to a key.

    Keyed listeners get only objects dispatched with their key; unkeyed
    listeners get everything.
    """

    def __init__(self) -> None:
        super().__init__()
        self._filtered: Dict[Hashable, _DispatcherBase] = {}

    def create_listener(
        self, callable: Optional[Callable[[Any], Any]], key: Optional[Hashable] = None
    ) -> Listener:
        if key is None:
            return super().create_listener(callable)
        with self._lock:
            base = self._filtered.get(key)
            if base is None:
                base = self._filtered[key] = _DispatcherBase(self._lock)
            return base.add(callable)

    def dispatch(self, key: Hashable, obj: Any) -> None:  # type: ignore[override]
        with self._lock:
            base = self._filtered.get(key)
            if base is not None:
                base.dispatch_nolock(obj)
            self._dispatcher.dispatch_nolock(obj)

    def __call__(self, key: Hashable, obj: Any) -> None:  # type: ignore[override]
        self.dispatch(key, obj)