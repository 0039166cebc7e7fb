"""SocketCAN broadcast manager: let the kernel send frames periodically."""

from __future__ import annotations

import socket
import struct
from datetime import timedelta
from typing import Any, Iterable, Optional, Tuple, Union

from cansock.interface import Frame, Header
from cansock.socketcan import AF_CAN, CAN_EFF_FLAG, CAN_FRAME_SIZE

CAN_BCM = getattr(socket, "CAN_BCM", 2)

TX_SETUP = 1
TX_DELETE = 2
SETTIMER = 0x0001
STARTTIMER = 0x0002

MAX_FRAMES = 256

# opcode, flags, count, ival1 (sec, usec), ival2 (sec, usec), can_id, nframes
_HEAD = struct.Struct("@IIIllllII")
BCM_HEAD_SIZE = (_HEAD.size + 7) // 8 * 8
_BCM_FRAME = struct.Struct("=IB3x8s")

Period = Union[float, int, timedelta]


def _timeval(period: Period) -> Tuple[int, int]:
    if isinstance(period, timedelta):
        usec = period // timedelta(microseconds=1)
    else:
        usec = int(period * 1_000_000)
    sign = -1 if usec < 0 else 1
    sec, rem = divmod(abs(usec), 1_000_000)
    return sign * sec, sign * rem


def build_message(
    opcode: int, flags: int, period: Period, header: Header, frames: Iterable[Frame]
) -> bytes:
    """Encode a ``bcm_msg_head`` with ``ival2`` set to ``period`` and the given frames.

    Every frame is sent with the header's id; at most 256 frames are allowed.
    """
    frames = list(frames)
    if len(frames) > MAX_FRAMES:
        raise ValueError(f"at most {MAX_FRAMES} frames per message, got {len(frames)}")
    can_id = header.id | (CAN_EFF_FLAG if header.is_extended else 0)
    sec, usec = _timeval(period)
    buf = bytearray(BCM_HEAD_SIZE + CAN_FRAME_SIZE * len(frames))
    _HEAD.pack_into(buf, 0, opcode, flags, 0, 0, 0, sec, usec, can_id, len(frames))
    for index, frame in enumerate(frames):
        payload = bytes(frame.data[: min(frame.dlc, 8)])
        _BCM_FRAME.pack_into(
            buf, BCM_HEAD_SIZE + index * CAN_FRAME_SIZE, can_id, frame.dlc, payload
        )
    return bytes(buf)


class BCMSocket:
    """Broadcast manager socket connected to one CAN device."""

    def __init__(self) -> None:
        self._socket: Optional[socket.socket] = None

    def __enter__(self) -> "BCMSocket":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.shutdown()

    def init(self, device: str) -> bool:
        """Open and connect the socket; return False on failure."""
        self.shutdown()
        try:
            self._socket = socket.socket(AF_CAN, socket.SOCK_DGRAM, CAN_BCM)
            self._socket.connect((device,))
        except OSError:
            self.shutdown()
            return False
        return True

    def _write(self, message: bytes) -> bool:
        if self._socket is None:
            return False
        try:
            return self._socket.send(message) > 0
        except OSError:
            return False

    def start_tx(self, period: Period, header: Header, frames: Iterable[Frame]) -> bool:
        """Send ``frames`` cyclically, one every ``period`` seconds."""
        message = build_message(TX_SETUP, SETTIMER | STARTTIMER, period, header, frames)
        return self._write(message)

    def stop_tx(self, header: Header) -> bool:
        """Stop the cyclic transmission for ``header``."""
        return self._write(build_message(TX_DELETE, 0, 0, header, ()))

    def shutdown(self) -> None:
        sock, self._socket = self._socket, None
        if sock is not None:
            sock.close()