"""Base class for drivers that read frames from a socket in a processing loop."""

from __future__ import annotations

import abc
import dataclasses
import threading
from typing import Any, Optional

from cansock.dispatcher import FilteredDispatcher, SimpleDispatcher
from cansock.interface import (
    DriverInterface,
    DriverState,
    Frame,
    FrameFunc,
    Header,
    Listener,
    State,
    StateFunc,
)


class AsioDriver(DriverInterface):
    """Driver that owns a socket, tracks its state and dispatches received frames.

    Subclasses open the socket in ``init`` (handing it over with ``_attach_socket``),
    read single frames in ``_read_frame`` and write them in ``_enqueue``.
    """

    def __init__(self) -> None:
        self._frame_dispatcher = FilteredDispatcher()
        self._state_dispatcher = SimpleDispatcher()
        self._state = State()
        self._state_lock = threading.RLock()
        self._socket: Any = None
        self._socket_lock = threading.RLock()
        self._stopped = threading.Event()

    @abc.abstractmethod
    def _read_frame(self) -> Optional[Frame]:
        """Wait briefly for one frame; return None if none arrived, raise OSError on failure."""

    @abc.abstractmethod
    def _enqueue(self, frame: Frame) -> bool:
        """Write one frame to the socket; return True on success."""

    def _attach_socket(self, sock: Any) -> None:
        with self._socket_lock:
            self._socket = sock
        self._stopped.clear()

    def _socket_is_open(self) -> bool:
        return self._socket is not None

    def _dispatch_frame(self, frame: Frame) -> None:
        self._frame_dispatcher.dispatch(frame.key(), frame)

    def _update_state(self, name: str, value: Any) -> None:
        with self._state_lock:
            if getattr(self._state, name) != value:
                setattr(self._state, name, value)
                self._state_dispatcher.dispatch(dataclasses.replace(self._state))

    def _set_error_code(self, error_code: int) -> None:
        self._update_state("error_code", error_code)

    def _set_internal_error(self, internal_error: int) -> None:
        self._update_state("internal_error", internal_error)

    def _set_driver_state(self, driver_state: DriverState) -> None:
        self._update_state("driver_state", driver_state)

    def _set_not_ready(self) -> None:
        self._set_driver_state(
            DriverState.OPEN if self._socket_is_open() else DriverState.CLOSED
        )

    def get_state(self) -> State:
        with self._state_lock:
            return dataclasses.replace(self._state)

    def run(self) -> None:
        """Read and dispatch frames until shut down or the socket fails."""
        self._set_not_ready()
        if self.get_state().driver_state == DriverState.OPEN:
            self._set_driver_state(DriverState.READY)
            while not self._stopped.is_set():
                try:
                    frame = self._read_frame()
                except (OSError, ValueError) as exc:
                    if not self._stopped.is_set():
                        self._set_error_code(getattr(exc, "errno", None) or -1)
                    break
                if frame is not None:
                    self._dispatch_frame(frame)
            self._set_not_ready()
        self._state_dispatcher.dispatch(self.get_state())

    def send(self, frame: Frame) -> bool:
        return self.get_state().driver_state == DriverState.READY and self._enqueue(frame)

    def shutdown(self) -> None:
        self._stopped.set()
        with self._socket_lock:
            sock, self._socket = self._socket, None
        if sock is not None:
            sock.close()

    def create_msg_listener(
        self, delegate: FrameFunc, header: Optional[Header] = None
    ) -> Listener[Frame]:
        key = None if header is None else header.key()
        return self._frame_dispatcher.create_listener(delegate, key)

    def create_state_listener(self, delegate: StateFunc) -> Listener[State]:
        return self._state_dispatcher.create_listener(delegate)