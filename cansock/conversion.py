"""Conversion between driver frames and bus messages as published on a topic."""

from __future__ import annotations

from dataclasses import dataclass

from cansock.interface import Frame

_DATA_LEN = 8


@dataclass
class CanMessage:
    """A CAN frame as carried on a message topic, with its frame id and time stamp."""

    id: int = 0
    dlc: int = 0
    is_error: bool = False
    is_rtr: bool = False
    is_extended: bool = False
    data: bytes = bytes(_DATA_LEN)
    frame_id: str = ""
    stamp: float = 0.0

    def __post_init__(self) -> None:
        data = bytes(self.data)
        if len(data) > _DATA_LEN:
            raise ValueError(f"a CAN message holds at most {_DATA_LEN} bytes, got {len(data)}")
        self.data = data.ljust(_DATA_LEN, b"\0")


def socketcan_to_message(frame: Frame) -> CanMessage:
    """Convert a driver frame to a message; all eight data bytes are copied."""
    return CanMessage(
        id=frame.id,
        dlc=frame.dlc,
        is_error=frame.is_error,
        is_rtr=frame.is_rtr,
        is_extended=frame.is_extended,
        data=bytes(frame.data),
    )


def message_to_socketcan(msg: CanMessage) -> Frame:
    """Convert a message to a driver frame; all eight data bytes are copied."""
    return Frame(
        id=msg.id,
        is_extended=msg.is_extended,
        is_rtr=msg.is_rtr,
        is_error=msg.is_error,
        data=bytes(msg.data)[:_DATA_LEN],
        dlc=msg.dlc,
    )