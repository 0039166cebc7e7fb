"""Text form of CAN headers, frames and filters: ``ID#DATA`` in hexadecimal."""

from __future__ import annotations

import re
from typing import Iterable, List, Union

from cansock.filter import FrameFilter, FrameMaskFilter, FrameRangeFilter
from cansock.interface import Frame, Header, msg_header

_U32 = 0xFFFFFFFF
_HEX_PREFIX = re.compile(r"\s*(?:0[xX])?([0-9a-fA-F]+)")
_FILTER_DELIMS = ":~-_"


def hex2dec(h: str) -> int:
    """Return the value of one hexadecimal digit."""
    if len(h) == 1:
        if "0" <= h <= "9":
            return ord(h) - ord("0")
        if "a" <= h <= "f":
            return ord(h) - ord("a") + 10
        if "A" <= h <= "F":
            return ord(h) - ord("A") + 10
    raise ValueError(f"not a hexadecimal digit: {h!r}")


def hex2buffer(text: str, pad: bool = False) -> bytes:
    """Decode a hex string; an odd length is left-padded with '0' only if ``pad``."""
    if len(text) % 2:
        if not pad:
            raise ValueError(f"odd number of hexadecimal digits: {text!r}")
        text = "0" + text
    return bytes(
        (hex2dec(hi) << 4) | hex2dec(lo) for hi, lo in zip(text[0::2], text[1::2])
    )


def dec2hex(d: int, lc: bool = True) -> str:
    """Return the hexadecimal digit for a value below 16."""
    if 0 <= d < 10:
        return chr(ord("0") + d)
    if 10 <= d < 16:
        return chr(ord("a" if lc else "A") + d - 10)
    raise ValueError(f"value out of range for one hexadecimal digit: {d}")


def byte2hex(d: int, pad: bool = True, lc: bool = True) -> str:
    """Hex form of a byte; without ``pad`` a zero high nibble is left out."""
    d &= 0xFF
    hi = d >> 4
    prefix = dec2hex(hi, lc) if hi or pad else ""
    return prefix + dec2hex(d & 0xF, lc)


def buffer2hex(data: bytes, lc: bool = True) -> str:
    """Hex form of a byte string, two digits per byte."""
    return "".join(byte2hex(b, True, lc) for b in bytes(data))


def header_to_string(header: Header, lc: bool = True) -> str:
    """Hex form of a header's id with its error and rtr bits; extended ids use 8 digits."""
    value = header.fullid() & ~Header.EXTENDED_MASK & _U32
    spec = ("08" if header.is_extended else "") + ("x" if lc else "X")
    return format(value, spec)


def tohex(text: str) -> int:
    """Parse the leading hexadecimal number of ``text``; return 0 if there is none."""
    match = _HEX_PREFIX.match(text)
    if match is None:
        return 0
    return min(int(match.group(1), 16), _U32)


def toheader(text: str) -> Header:
    """Parse a header; an 8 digit id too large for 11 bits is taken as extended."""
    h = tohex(text)
    can_id = h & Header.ID_MASK
    extended = bool(h & Header.EXTENDED_MASK) or (len(text) == 8 and can_id >= (1 << 11))
    return Header(can_id, extended, bool(h & Header.RTR_MASK), bool(h & Header.ERROR_MASK))


def frame_to_string(frame: Frame, lc: bool = True) -> str:
    """Return ``ID#DATA`` for a frame."""
    return header_to_string(frame, lc) + "#" + buffer2hex(bytes(frame.data[: frame.dlc]), lc)


def _invalid_frame() -> Frame:
    return Frame.from_header(msg_header(0xFFF))


def toframe(text: str) -> Frame:
    """Parse ``ID#DATA``; malformed input gives an invalid frame."""
    sep = text.find("#")
    if sep < 0:
        return _invalid_frame()
    header = toheader(text[:sep])
    frame = Frame.from_header(header)
    if header.is_valid():
        try:
            payload = hex2buffer(text[sep + 1 :], False)
        except ValueError:
            return frame
        if len(payload) > 8:
            return _invalid_frame()
        frame.data = payload
        frame.dlc = len(payload)
    return frame


def tofilter(value: Union[int, str]) -> FrameFilter:
    """Build a filter from an id or from ``ID``, ``ID:MASK``, ``ID~MASK``, ``MIN-MAX`` or ``MIN_MAX``.

    ``~`` and ``_`` invert the mask and range filters.
    """
    if isinstance(value, bool):
        raise TypeError("a filter is built from an int or a str")
    if isinstance(value, int):
        return FrameMaskFilter(value & _U32)
    if not isinstance(value, str):
        raise TypeError(f"a filter is built from an int or a str, not {type(value).__name__}")

    second = FrameMaskFilter.MASK_RELAXED
    kind = ":"
    delim = next((i for i, c in enumerate(value) if c in _FILTER_DELIMS), -1)
    if delim >= 0:
        kind = value[delim]
        second = tohex(value[delim + 1 :])
        first_text = value[:delim]
    else:
        first_text = value
    first = toheader(first_text).fullid()

    if kind in ":~":
        return FrameMaskFilter(first, second, kind == "~")
    return FrameRangeFilter(first, second, kind == "_")


def tofilters(values: Iterable[Union[int, str]]) -> List[FrameFilter]:
    """Build one filter per value."""
    return [tofilter(v) for v in values]