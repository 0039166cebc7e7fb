"""Core CAN types: headers, frames, driver state, listeners and the driver interface."""

from __future__ import annotations

import abc
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Generic, Optional, TypeVar

logger = logging.getLogger("cansock")

T = TypeVar("T")

_FLAG_NAMES = frozenset({"is_extended", "is_rtr", "is_error"})
_DATA_LEN = 8


@dataclass
class Header:
    """CAN identifier with its meta data flags."""

    ID_MASK: ClassVar[int] = (1 << 29) - 1
    ERROR_MASK: ClassVar[int] = 1 << 29
    RTR_MASK: ClassVar[int] = 1 << 30
    EXTENDED_MASK: ClassVar[int] = 1 << 31

    id: int = 0
    is_extended: bool = False
    is_rtr: bool = False
    is_error: bool = False

    def __setattr__(self, name: str, value: Any) -> None:
        # The identifier is a 29 bit field; flags are single bits.
        if name == "id":
            value = int(value) & self.ID_MASK
        elif name in _FLAG_NAMES:
            value = bool(value)
        object.__setattr__(self, name, value)

    def is_valid(self) -> bool:
        """Return True if the id fits into 11 (standard) or 29 (extended) bits."""
        return self.id < ((1 << 29) if self.is_extended else (1 << 11))

    def fullid(self) -> int:
        """Return the id with the error, rtr and extended flags or-ed in."""
        return (
            self.id
            | (self.ERROR_MASK if self.is_error else 0)
            | (self.RTR_MASK if self.is_rtr else 0)
            | (self.EXTENDED_MASK if self.is_extended else 0)
        )

    def key(self) -> int:
        """Return the dispatch key; all error frames share one key."""
        return self.ERROR_MASK if self.is_error else self.fullid()


def msg_header(i: int = 0, rtr: bool = False) -> Header:
    """Header with a standard 11 bit identifier."""
    return Header(i, False, rtr, False)


def extended_header(i: int = 0, rtr: bool = False) -> Header:
    """Header with an extended 29 bit identifier."""
    return Header(i, True, rtr, False)


def error_header(i: int = 0) -> Header:
    """Header of an error frame."""
    return Header(i, False, False, True)


def _to_data(value: Any) -> bytearray:
    buf = bytearray(value)
    if len(buf) > _DATA_LEN:
        raise ValueError(f"CAN frame data holds at most {_DATA_LEN} bytes, got {len(buf)}")
    buf.extend(bytes(_DATA_LEN - len(buf)))
    return buf


@dataclass
class Frame(Header):
    """A CAN frame: header, eight data bytes and the data length."""

    data: bytearray = field(default_factory=lambda: bytearray(_DATA_LEN))
    dlc: int = 0

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "data":
            value = _to_data(value)
        elif name == "dlc":
            value = int(value) & 0xFF
        super().__setattr__(name, value)

    @classmethod
    def from_header(cls, header: Header, dlc: int = 0) -> "Frame":
        """Build a frame carrying the given header and length, with zeroed data."""
        return cls(header.id, header.is_extended, header.is_rtr, header.is_error, dlc=dlc)

    def is_valid(self) -> bool:
        """Return True if both the length and the header are valid."""
        return self.dlc <= _DATA_LEN and super().is_valid()


class DriverState(enum.IntEnum):
    CLOSED = 0
    OPEN = 1
    READY = 2


@dataclass
class State:
    """Driver state with device (errno style) and driver specific error codes."""

    driver_state: DriverState = DriverState.CLOSED
    error_code: int = 0
    internal_error: int = 0

    def is_ready(self) -> bool:
        return self.driver_state == DriverState.READY


class Listener(Generic[T]):
    """Callable handle around a delegate; stays registered while referenced."""

    def __init__(self, callable: Optional[Callable[[T], Any]]) -> None:
        self._callable = callable

    def __call__(self, obj: T) -> None:
        if self._callable is not None:
            self._callable(obj)


FrameFunc = Callable[[Frame], Any]
StateFunc = Callable[[State], Any]


class DriverInterface(abc.ABC):
    """Interface every CAN driver implements."""

    @abc.abstractmethod
    def send(self, frame: Frame) -> bool:
        """Enqueue a frame for sending; return True on success."""

    @abc.abstractmethod
    def create_msg_listener(
        self, delegate: FrameFunc, header: Optional[Header] = None
    ) -> Listener[Frame]:
        """Return a listener for all frames, or only for frames with ``header``'s key."""

    @abc.abstractmethod
    def create_state_listener(self, delegate: StateFunc) -> Listener[State]:
        """Return a listener called on every state change."""

    @abc.abstractmethod
    def init(self, device: str, loopback: bool) -> bool:
        """Initialise the device; return True on success."""

    @abc.abstractmethod
    def recover(self) -> bool:
        """Recover after errors; return True on success."""

    @abc.abstractmethod
    def get_state(self) -> State:
        """Return the current driver state."""

    @abc.abstractmethod
    def shutdown(self) -> None:
        """Shut the interface down."""

    @abc.abstractmethod
    def translate_error(self, internal_error: int) -> Optional[str]:
        """Describe a driver specific error, or return None if it is unknown."""

    @abc.abstractmethod
    def does_loop_back(self) -> bool:
        """Return True if own frames are looped back."""

    @abc.abstractmethod
    def run(self) -> None:
        """Process I/O until shut down."""