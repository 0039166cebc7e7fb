"""In-memory driver that loops frames back and answers with canned responses."""

from __future__ import annotations

import dataclasses
from typing import Dict, Optional, Union

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
from cansock.strings import frame_to_string, toframe

_ERROR_TEXT: Dict[int, str] = {0: "OK"}


class DummyInterface(DriverInterface):
    """Driver without hardware: sent frames trigger the responses added for them."""

    def __init__(self, loopback: bool = False) -> None:
        self._frame_dispatcher = FilteredDispatcher()
        self._state_dispatcher = SimpleDispatcher()
        self._state = State()
        self._responses: Dict[str, Frame] = {}
        self._loopback = bool(loopback)

    def add(
        self, key: Union[str, Frame], value: Union[str, Frame], multi: bool = False
    ) -> bool:
        """Answer frames matching ``key`` with ``value``.

        Without ``multi`` an existing key is refused with False; a key keeps its
        first response either way.
        """
        text = frame_to_string(key, True) if isinstance(key, Frame) else key.lower()
        response = toframe(value) if isinstance(value, str) else value
        if multi or text not in self._responses:
            self._responses.setdefault(text, response)
            return True
        return False

    def send(self, frame: Frame) -> bool:
        if self._loopback:
            self._frame_dispatcher.dispatch(frame.key(), frame)
        response = self._responses.get(frame_to_string(frame, True))
        if response is not None:
            self._frame_dispatcher.dispatch(response.key(), response)
        return True

    def create_msg_listener(
        self, delegate: FrameFunc, header: Optional[Header] = None
    ) -> Listener[Frame]:
        key = None if header is None else header.key()
        return self._frame_dispatcher.create_listener(delegate, key)

    def create_state_listener(self, delegate: StateFunc) -> Listener[State]:
        return self._state_dispatcher.create_listener(delegate)

    def init(self, device: str, loopback: bool) -> bool:
        self._loopback = bool(loopback)
        self._state.driver_state = DriverState.READY
        self._state.internal_error = 0
        self._state_dispatcher.dispatch(self.get_state())
        return True

    def recover(self) -> bool:
        return False

    def get_state(self) -> State:
        return dataclasses.replace(self._state)

    def shutdown(self) -> None:
        """Mark the driver closed, notifying state listeners on a change."""
        if self._state.driver_state != DriverState.CLOSED:
            self._state.driver_state = DriverState.CLOSED
            self._state_dispatcher.dispatch(self.get_state())

    def translate_error(self, internal_error: int) -> Optional[str]:
        return _ERROR_TEXT.get(internal_error)

    def does_loop_back(self) -> bool:
        return self._loopback

    def run(self) -> None:
        """There is no I/O to wait on; report the current state and return."""
        self._state_dispatcher.dispatch(self.get_state())