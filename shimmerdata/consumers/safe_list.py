from __future__ import annotations

import threading
from collections import deque
from typing import Any, Callable, Deque, Tuple


class SafeList:
    """
    Double-ended list guarded by one lock.

    Staging area between the intake reader and the flush loop. It is
    unbounded; backpressure happens upstream, in the intake channel.
    """

    def __init__(self) -> None:
        self._items: Deque[Any] = deque()
        self._lock = threading.Lock()

    def push_back(self, value: Any) -> None:
        with self._lock:
            self._items.append(value)

    def push_front(self, value: Any) -> None:
        with self._lock:
            self._items.appendleft(value)

    def pop_front(self) -> Tuple[Any, bool]:
        with self._lock:
            if not self._items:
                return None, False
            return self._items.popleft(), True

    def pop_back(self) -> Tuple[Any, bool]:
        with self._lock:
            if not self._items:
                return None, False
            return self._items.pop(), True

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def iterate(self, action: Callable[[Any], None]) -> None:
        """
        Call ``action`` on every item, front to back, holding the lock.

        ``action`` must not call back into this list.
        """
        with self._lock:
            for item in self._items:
                action(item)

    def iterate_until(self, action: Callable[[Any], bool]) -> None:
        """
        Like ``iterate`` but stops as soon as ``action`` returns True.
        """
        with self._lock:
            for item in self._items:
                if action(item):
                    return
