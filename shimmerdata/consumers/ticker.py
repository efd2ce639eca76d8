from __future__ import annotations

import threading
from typing import Optional


class Ticker:
    """
    Fires every ``interval`` seconds on a daemon thread.

    Ticks do not queue up: ``consume`` reports whether at least one tick
    happened since the previous call.
    """

    def __init__(self, interval: float, name: str = "shimmerdata-ticker"):
        self.interval = interval
        self._fired = threading.Event()
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._name = name

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            self._fired.set()

    def consume(self) -> bool:
        if self._fired.is_set():
            self._fired.clear()
            return True
        return False

    def stop(self) -> None:
        self._stopped.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
