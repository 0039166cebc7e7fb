"""Buffer frames from an interface and read them with a timeout."""

from __future__ import annotations

import collections
import threading
import time
from contextlib import contextmanager
from typing import Deque, Iterator, Optional

from cansock.interface import DriverInterface, Frame, Header, Listener, logger


class BufferedReader:
    """Collects frames from an interface into a queue of optional maximum length.

    ``max_len`` 0 means unbounded; on overflow the oldest frames are dropped.
    """

    def __init__(self, enabled: bool = True, max_len: int = 0) -> None:
        self._buffer: Deque[Frame] = collections.deque()
        self._cond = threading.Condition(threading.Lock())
        self._listener: Optional[Listener[Frame]] = None
        self._enabled = bool(enabled)
        self._max_len = max_len

    def _trim(self) -> None:
        if self._max_len > 0:
            while len(self._buffer) > self._max_len:
                logger.error("buffer overflow, discarded oldest message")
                self._buffer.popleft()

    def _handle_frame(self, frame: Frame) -> None:
        with self._cond:
            if self._enabled:
                self._buffer.append(frame)
                self._trim()
                self._cond.notify()
            else:
                logger.warning("discarded message")

    def flush(self) -> None:
        with self._cond:
            self._buffer.clear()

    def set_max_len(self, max_len: int) -> None:
        with self._cond:
            self._max_len = max_len
            self._trim()

    def is_enabled(self) -> bool:
        with self._cond:
            return self._enabled

    def set_enabled(self, enabled: bool) -> bool:
        """Set the enabled flag and return its previous value."""
        with self._cond:
            before = self._enabled
            self._enabled = bool(enabled)
            return before

    def enable(self) -> None:
        self.set_enabled(True)

    def disable(self) -> None:
        self.set_enabled(False)

    @contextmanager
    def enabled_scope(self) -> Iterator["BufferedReader"]:
        """Enable the reader for the block, then restore the previous setting."""
        before = self.set_enabled(True)
        try:
            yield self
        finally:
            self.set_enabled(before)

    def listen(self, interface: DriverInterface, header: Optional[Header] = None) -> None:
        """Listen on ``interface`` (for one header's key if given) and clear the buffer."""
        with self._cond:
            self._listener = interface.create_msg_listener(self._handle_frame, header)
            self._buffer.clear()

    def read(self, timeout: float) -> Optional[Frame]:
        """Pop the oldest frame, waiting up to ``timeout`` seconds; None on timeout."""
        return self.read_until(time.monotonic() + timeout)

    def read_until(self, deadline: float) -> Optional[Frame]:
        """Pop the oldest frame, waiting until ``deadline`` (``time.monotonic``); None on timeout."""
        with self._cond:
            while not self._buffer:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._cond.wait(remaining)
            if not self._buffer:
                return None
            return self._buffer.popleft()