"""Print every frame received on a CAN device."""

from __future__ import annotations

import sys
from typing import Optional, Sequence

from cansock.interface import Frame, State
from cansock.socketcan import SocketCANInterface


def format_frame(frame: Frame) -> str:
    """One output line: kind, hex id, then ``r`` for rtr or the length and hex data."""
    kind = "E" if frame.is_error else ("e" if frame.is_extended else "s")
    line = f"{kind} {frame.id:x}\t"
    if frame.is_rtr:
        return line + "r"
    return line + str(frame.dlc) + "".join(f" {b:x}" for b in frame.data[: frame.dlc])


def format_error(state: State, description: str) -> str:
    """One output line describing a driver state and its errors."""
    return (
        f"ERROR: state={int(state.driver_state)} "
        f"internal_error={state.internal_error}('{description}') "
        f"asio: system:{state.error_code}"
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("usage: candump DEVICE")
        return 1

    driver = SocketCANInterface()

    def print_frame(frame: Frame) -> None:
        print(format_frame(frame), flush=True)

    def print_error(state: State) -> None:
        description = driver.translate_error(state.internal_error) or ""
        print(format_error(state, description), flush=True)

    frame_printer = driver.create_msg_listener(print_frame)
    error_printer = driver.create_state_listener(print_error)

    if not driver.init(args[0], False):
        print_error(driver.get_state())
        return 1

    try:
        driver.run()
    except KeyboardInterrupt:
        pass
    finally:
        driver.shutdown()
        del frame_printer, error_printer
    return 0


if __name__ == "__main__":
    sys.exit(main())