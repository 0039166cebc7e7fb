"""Send frames cyclically through the kernel's broadcast manager."""

from __future__ import annotations

import re
import sys
import threading
from typing import Iterable, List, Optional, Sequence

from cansock.bcm import BCMSocket
from cansock.interface import Frame
from cansock.strings import frame_to_string, header_to_string, toframe

_LEADING_FLOAT = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _atof(text: str) -> float:
    match = _LEADING_FLOAT.match(text)
    return float(match.group(0)) if match else 0.0


def build_frames(spec: str, extra: Iterable[str] = ()) -> List[Frame]:
    """Parse ``HEADER#DATA`` and further ``DATA`` strings sent with the same header."""
    first = toframe(spec)
    prefix = header_to_string(first, True) + "#"
    return [first] + [toframe(prefix + data) for data in extra]


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 3:
        print("usage: canbcm DEVICE PERIOD HEADER#DATA [DATA*]")
        return 1

    with BCMSocket() as bcm:
        if not bcm.init(args[0]):
            return 2

        frames = build_frames(args[2], args[3:])
        for frame in frames:
            print(frame_to_string(frame, True))

        if bcm.start_tx(_atof(args[1]), frames[0], frames):
            try:
                threading.Event().wait()
            except KeyboardInterrupt:
                pass
            return 0

    return 4


if __name__ == "__main__":
    sys.exit(main())