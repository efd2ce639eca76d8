from __future__ import annotations

import queue
import threading
from typing import Union

from shimmerdata.errors import ConsumerClosedError
from shimmerdata.models import Event


class _EndOfStream:
    def __repr__(self) -> str:
        return "END_OF_STREAM"


END_OF_STREAM = _EndOfStream()


class IntakeChannel:
    """
    Bounded hand-off between producer threads and the consumer's reader.

    Backpressure: ``submit`` blocks while ``capacity`` events are pending.
    ``close`` queues an end marker behind every event already submitted, so
    the reader sees all of them before it stops.
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        self._queue: queue.Queue = queue.Queue(maxsize=capacity)
        self._closed = False
        self._lock = threading.Lock()

    def submit(self, event: Event) -> None:
        # the lock keeps every accepted event ahead of the end marker
        with self._lock:
            if self._closed:
                raise ConsumerClosedError("add event failed, consumer has been closed")
            self._queue.put(event)

    def receive(self) -> Union[Event, _EndOfStream]:
        return self._queue.get()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._queue.put(END_OF_STREAM)

    def is_closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        return self._queue.qsize()
