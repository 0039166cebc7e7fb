"""Bridges between a CAN driver and message topics, in both directions."""

from __future__ import annotations

import os
import time
from typing import Any, Callable, Iterable, Optional, Union

from cansock.conversion import CanMessage, message_to_socketcan, socketcan_to_message
from cansock.filter import FilteredFrameListener, FrameFilter
from cansock.interface import DriverInterface, Frame, Listener, State, logger
from cansock.strings import frame_to_string, tofilter

FilterSpec = Union[FrameFilter, int, str]


def _log_state(driver: DriverInterface, state: State) -> None:
    description = driver.translate_error(state.internal_error) or ""
    device_error = os.strerror(state.error_code)
    if not state.internal_error:
        logger.info("State: %s, asio: %s", description, device_error)
    else:
        logger.error("Error: %s, asio: %s", description, device_error)


class SocketCANToTopic:
    """Publishes every valid frame received by the driver as a ``CanMessage``."""

    def __init__(self, driver: DriverInterface, publish: Callable[[CanMessage], Any]) -> None:
        self._driver = driver
        self._publish = publish
        self._frame_listener: Optional[Listener[Frame]] = None
        self._state_listener: Optional[Listener[State]] = None

    def setup(self, filters: Optional[Iterable[FilterSpec]] = None) -> None:
        """Start listening; with ``filters`` only frames passing one of them are published.

        Filters may be given as filter objects, ids or filter strings.
        """
        if filters is None:
            self._frame_listener = self._driver.create_msg_listener(self.frame_callback)
        else:
            built = [f if isinstance(f, FrameFilter) else tofilter(f) for f in filters]
            self._frame_listener = FilteredFrameListener(
                self._driver, self.frame_callback, built
            )
        self._state_listener = self._driver.create_state_listener(self.state_callback)

    def frame_callback(self, frame: Frame) -> None:
        if not frame.is_valid():
            logger.error(
                "Invalid frame from SocketCAN: id: %#04x, length: %d, is_extended: %d, "
                "is_error: %d, is_rtr: %d",
                frame.id,
                frame.dlc,
                frame.is_extended,
                frame.is_error,
                frame.is_rtr,
            )
            return
        if frame.is_error:
            logger.warning("Received frame is error: %s", frame_to_string(frame, True))

        msg = socketcan_to_message(frame)
        msg.frame_id = ""
        msg.stamp = time.time()
        self._publish(msg)

    def state_callback(self, state: State) -> None:
        _log_state(self._driver, state)


class TopicToSocketCAN:
    """Sends ``CanMessage`` objects received from a topic through the driver."""

    def __init__(self, driver: DriverInterface) -> None:
        self._driver = driver
        self._state_listener: Optional[Listener[State]] = None

    def setup(self) -> None:
        self._state_listener = self._driver.create_state_listener(self.state_callback)

    def msg_callback(self, msg: CanMessage) -> bool:
        """Send the message as a frame; return True if the driver accepted it."""
        frame = message_to_socketcan(msg)
        if not frame.is_valid():
            logger.error(
                "Invalid frame from topic: id: %#04x, length: %d, is_extended: %d",
                msg.id,
                msg.dlc,
                msg.is_extended,
            )
            return False
        if not self._driver.send(frame):
            logger.error("Failed to send message: %s.", frame_to_string(frame, True))
            return False
        return True

    def state_callback(self, state: State) -> None:
        _log_state(self._driver, state)