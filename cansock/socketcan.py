"""Driver for Linux SocketCAN raw sockets and the kernel's ``can_frame`` layout."""

from __future__ import annotations

import errno
import select
import socket
import struct
import threading
from typing import Optional

from cansock.driver import AsioDriver
from cansock.interface import DriverState, Frame, logger

CAN_EFF_FLAG = 0x80000000
CAN_RTR_FLAG = 0x40000000
CAN_ERR_FLAG = 0x20000000
CAN_SFF_MASK = 0x000007FF
CAN_EFF_MASK = 0x1FFFFFFF

CAN_ERR_TX_TIMEOUT = 0x001
CAN_ERR_LOSTARB = 0x002
CAN_ERR_CRTL = 0x004
CAN_ERR_PROT = 0x008
CAN_ERR_TRX = 0x010
CAN_ERR_ACK = 0x020
CAN_ERR_BUSOFF = 0x040
CAN_ERR_BUSERROR = 0x080
CAN_ERR_RESTARTED = 0x100

# Bus errors are left out on purpose: they may flood the socket.
ERROR_FILTER = (
    CAN_ERR_TX_TIMEOUT
    | CAN_ERR_LOSTARB
    | CAN_ERR_CRTL
    | CAN_ERR_PROT
    | CAN_ERR_TRX
    | CAN_ERR_ACK
    | CAN_ERR_BUSOFF
    | CAN_ERR_RESTARTED
)

AF_CAN = getattr(socket, "AF_CAN", 29)
CAN_RAW = getattr(socket, "CAN_RAW", 1)
SOL_CAN_RAW = getattr(socket, "SOL_CAN_RAW", 101)
CAN_RAW_ERR_FILTER = getattr(socket, "CAN_RAW_ERR_FILTER", 2)
CAN_RAW_RECV_OWN_MSGS = getattr(socket, "CAN_RAW_RECV_OWN_MSGS", 4)

_CAN_FRAME = struct.Struct("=IB3x8s")
CAN_FRAME_SIZE = _CAN_FRAME.size

_POLL_INTERVAL = 0.1

_ERROR_TEXTS = (
    (CAN_ERR_TX_TIMEOUT, "TX timeout (by netdevice driver);"),
    (CAN_ERR_LOSTARB, "lost arbitration;"),
    (CAN_ERR_CRTL, "controller problems;"),
    (CAN_ERR_PROT, "protocol violations;"),
    (CAN_ERR_TRX, "transceiver status;"),
    (CAN_ERR_BUSOFF, "bus off;"),
    (CAN_ERR_RESTARTED, "controller restarted;"),
)


def pack_frame(frame: Frame) -> bytes:
    """Encode a frame as a kernel ``can_frame``."""
    can_id = (
        frame.id
        | (CAN_EFF_FLAG if frame.is_extended else 0)
        | (CAN_RTR_FLAG if frame.is_rtr else 0)
    )
    payload = bytes(frame.data[: min(frame.dlc, 8)])
    return _CAN_FRAME.pack(can_id, frame.dlc, payload)


def unpack_frame(data: bytes) -> Frame:
    """Decode a kernel ``can_frame``; error frames keep their error class as id."""
    if len(data) < CAN_FRAME_SIZE:
        raise ValueError(f"a can_frame has {CAN_FRAME_SIZE} bytes, got {len(data)}")
    can_id, dlc, payload = _CAN_FRAME.unpack_from(data)
    frame = Frame(dlc=dlc)
    length = min(dlc, 8)
    frame.data = payload[:length]
    if can_id & CAN_ERR_FLAG:
        frame.id = can_id & CAN_EFF_MASK
        frame.is_error = True
    else:
        frame.is_extended = bool(can_id & CAN_EFF_FLAG)
        frame.id = can_id & (CAN_EFF_MASK if frame.is_extended else CAN_SFF_MASK)
        frame.is_rtr = bool(can_id & CAN_RTR_FLAG)
    return frame


def _errno_of(exc: OSError) -> int:
    return exc.errno or -1


class SocketCANInterface(AsioDriver):
    """Driver for a SocketCAN network device such as ``can0``."""

    def __init__(self) -> None:
        super().__init__()
        self._loopback = False
        self._device = ""
        self._send_lock = threading.Lock()

    def does_loop_back(self) -> bool:
        return self._loopback

    def init(self, device: str, loopback: bool) -> bool:
        if self.get_state().driver_state != DriverState.CLOSED:
            return self.get_state().is_ready()

        self._device = device
        self._loopback = bool(loopback)
        try:
            sock = socket.socket(AF_CAN, socket.SOCK_RAW, CAN_RAW)
        except OSError as exc:
            self._set_error_code(_errno_of(exc))
            return False

        try:
            sock.setsockopt(SOL_CAN_RAW, CAN_RAW_ERR_FILTER, struct.pack("=I", ERROR_FILTER))
            if self._loopback:
                sock.setsockopt(SOL_CAN_RAW, CAN_RAW_RECV_OWN_MSGS, 1)
            sock.bind((device,))
        except OSError as exc:
            self._set_error_code(_errno_of(exc))
            sock.close()
            return False

        self._set_error_code(0)
        self._attach_socket(sock)
        self._set_internal_error(0)
        self._set_driver_state(DriverState.OPEN)
        return True

    def recover(self) -> bool:
        if not self.get_state().is_ready():
            self.shutdown()
            return self.init(self._device, self.does_loop_back())
        return self.get_state().is_ready()

    def translate_error(self, internal_error: int) -> Optional[str]:
        if not internal_error:
            return "OK"
        parts = [text for bit, text in _ERROR_TEXTS if internal_error & bit]
        return "".join(parts) if parts else None

    def internal_socket(self) -> int:
        """File descriptor of the raw socket, or -1 if it is not open."""
        sock = self._socket
        return sock.fileno() if sock is not None else -1

    def _read_frame(self) -> Optional[Frame]:
        sock = self._socket
        if sock is None:
            raise OSError(errno.EBADF, "socket is closed")
        readable, _, _ = select.select([sock], [], [], _POLL_INTERVAL)
        if not readable:
            return None
        raw = sock.recv(CAN_FRAME_SIZE)
        if len(raw) < CAN_FRAME_SIZE:
            raise OSError(errno.EIO, "short read from CAN socket")
        frame = unpack_frame(raw)
        if frame.is_error:
            logger.error("socketcan_interface: error: %s", frame.id)
            self._set_internal_error(frame.id)
            self._set_not_ready()
        return frame

    def _enqueue(self, frame: Frame) -> bool:
        with self._send_lock:
            sock = self._socket
            try:
                if sock is None:
                    raise OSError(errno.EBADF, "socket is closed")
                sock.sendall(pack_frame(frame))
            except OSError as exc:
                logger.error("socketcan_interface: FAILED %s", exc)
                self._set_error_code(_errno_of(exc))
                self._set_not_ready()
                return False
        return True