"""Frame filters and a listener that forwards only frames passing a filter."""

from __future__ import annotations

import abc
import weakref
from typing import Any, Callable, Iterable, Optional

from cansock.interface import DriverInterface, Frame, Header, Listener

_U32 = 0xFFFFFFFF


class FrameFilter(abc.ABC):
    """Predicate over CAN frames."""

    @abc.abstractmethod
    def passes(self, frame: Frame) -> bool:
        """Return True if the frame passes the filter."""


class FrameMaskFilter(FrameFilter):
    """Passes frames whose key, masked, equals the masked identifier."""

    MASK_ALL = 0xFFFFFFFF
    MASK_RELAXED = ~Header.EXTENDED_MASK & _U32

    def __init__(self, can_id: int, mask: int = MASK_RELAXED, invert: bool = False) -> None:
        self._mask = mask & _U32
        self._masked_id = can_id & self._mask
        self._invert = bool(invert)

    def passes(self, frame: Frame) -> bool:
        return ((self._mask & frame.key()) == self._masked_id) != self._invert

    def __repr__(self) -> str:
        return (
            f"FrameMaskFilter(masked_id={self._masked_id:#x}, "
            f"mask={self._mask:#x}, invert={self._invert})"
        )


class FrameRangeFilter(FrameFilter):
    """Passes frames whose key lies in the closed range [min_id, max_id]."""

    def __init__(self, min_id: int, max_id: int, invert: bool = False) -> None:
        self._min_id = min_id & _U32
        self._max_id = max_id & _U32
        self._invert = bool(invert)

    def passes(self, frame: Frame) -> bool:
        return (self._min_id <= frame.key() <= self._max_id) != self._invert

    def __repr__(self) -> str:
        return (
            f"FrameRangeFilter(min_id={self._min_id:#x}, "
            f"max_id={self._max_id:#x}, invert={self._invert})"
        )


class FilteredFrameListener(Listener[Frame]):
    """Listens on an interface and calls its delegate for frames passing any filter.

    The underlying registration lives as long as this listener is referenced.
    """

    def __init__(
        self,
        comm: DriverInterface,
        callable: Optional[Callable[[Frame], Any]],
        filters: Iterable[FrameFilter],
    ) -> None:
        super().__init__(callable)
        self.filters = tuple(filters)
        ref = weakref.ref(self)

        def _on_frame(frame: Frame) -> None:
            owner = ref()
            if owner is not None:
                owner._filter(frame)

        self._listener = comm.create_msg_listener(_on_frame)

    def _filter(self, frame: Frame) -> None:
        if any(f.passes(frame) for f in self.filters):
            self(frame)

    def __call__(self, frame: Frame) -> None:
        super().__call__(frame)