"""Run a driver's processing loop on a background thread."""

from __future__ import annotations

import threading
from typing import Any, Optional

from cansock.interface import DriverInterface, DriverState, State
from cansock.socketcan import SocketCANInterface

_READY_TIMEOUT = 1.0


class StateWaiter:
    """Tracks an interface's state and waits for a given driver state."""

    def __init__(self, interface: DriverInterface) -> None:
        self._cond = threading.Condition()
        self._state = interface.get_state()
        self._listener = interface.create_state_listener(self._update_state)

    def _update_state(self, state: State) -> None:
        with self._cond:
            self._state = state
            self._cond.notify_all()

    def wait(self, state: DriverState, timeout: float) -> bool:
        """Return True once the driver state is ``state``, False after ``timeout`` seconds."""
        with self._cond:
            return self._cond.wait_for(lambda: self._state.driver_state == state, timeout)


class ThreadedInterface(DriverInterface):
    """Mixin that starts the wrapped driver's ``run`` on a thread after ``init``.

    Combine it in front of a concrete driver, e.g.
    ``class T(ThreadedInterface, SocketCANInterface)``.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._thread: Optional[threading.Thread] = None

    def _run_thread(self) -> None:
        super().run()

    def init(self, device: str, loopback: bool) -> bool:
        if self._thread is None and super().init(device, loopback):
            waiter = StateWaiter(self)
            self._thread = threading.Thread(
                target=self._run_thread, name="cansock-io", daemon=True
            )
            self._thread.start()
            return waiter.wait(DriverState.READY, _READY_TIMEOUT)
        return super().get_state().is_ready()

    def shutdown(self) -> None:
        super().shutdown()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def join(self) -> None:
        """Wait for the processing thread to finish."""
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()


class ThreadedSocketCANInterface(ThreadedInterface, SocketCANInterface):
    """SocketCAN driver processing frames on its own thread."""