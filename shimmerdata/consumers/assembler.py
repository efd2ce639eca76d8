from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from shimmerdata.errors import EncodingError
from shimmerdata.log_codes import CONSUMER_BATCH_DROPPED
from shimmerdata.models import Event

from .safe_list import SafeList


class FlushSignal:
    """
    Forced and soft flush request counters.

    Producers only increment; the flush loop reads and zeroes both at once.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._forced = 0
        self._soft = 0

    def request_forced(self) -> None:
        with self._lock:
            self._forced += 1

    def request_soft(self) -> None:
        with self._lock:
            self._soft += 1

    def take(self) -> Tuple[int, int]:
        with self._lock:
            forced, soft = self._forced, self._soft
            self._forced = 0
            self._soft = 0
        return forced, soft

    def reset(self) -> None:
        self.take()


class FlushTrigger(Enum):
    SHUTDOWN = "shutdown"
    TIMER = "timer"
    FORCED = "forced"
    SOFT = "soft"
    IDLE = "idle"

    @property
    def force(self) -> bool:
        return self in (FlushTrigger.SHUTDOWN, FlushTrigger.TIMER, FlushTrigger.FORCED)


@dataclass(frozen=True)
class Batch:
    payload: bytes
    size: int


class BatchAssembler:
    """
    Decides when to flush and packs queued events into batches.

    A batch is at most ``batch_size`` encoded events, each followed by a
    newline.
    """

    def __init__(
        self,
        buffer: SafeList,
        batch_size: int,
        signal: Optional[FlushSignal] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.buffer = buffer
        self.batch_size = batch_size
        self.signal = signal or FlushSignal()
        self.logger = logger or logging.getLogger(__name__)

    def next_trigger(self, stopping: bool, ticked: bool) -> FlushTrigger:
        if stopping:
            self.signal.reset()
            return FlushTrigger.SHUTDOWN
        if ticked:
            self.signal.reset()
            return FlushTrigger.TIMER

        forced, soft = self.signal.take()
        if forced > 0:
            self.logger.debug("force flush count:%d", forced)
            return FlushTrigger.FORCED
        if soft > 0:
            self.logger.debug("not force flush count:%d", soft)
            return FlushTrigger.SOFT
        return FlushTrigger.IDLE

    def ready(self, force: bool) -> bool:
        """
        Whether a flush should pack a batch now.

        Nothing is ready on an empty queue; below ``batch_size`` only a
        forced flush proceeds.
        """
        pending = len(self.buffer)
        if pending == 0:
            return False
        return force or pending >= self.batch_size

    def pack(self) -> Optional[Batch]:
        """
        Pop up to ``batch_size`` events and encode them.

        Returns:
            Optional[Batch]: None when the queue was empty.

        Raises:
            EncodingError: If an event cannot be encoded. That event is
                dropped; the ones popped before it go back to the front of
                the queue in their original order.
        """
        events: List[Event] = []
        encoded: List[bytes] = []
        while len(encoded) < self.batch_size:
            event, found = self.buffer.pop_front()
            if not found:
                break
            try:
                data = event.encode()
            except EncodingError as e:
                for packed in reversed(events):
                    self.buffer.push_front(packed)
                self.logger.error(
                    CONSUMER_BATCH_DROPPED, extra={"reason": str(e), "dropped": 1}
                )
                raise
            events.append(event)
            encoded.append(data)

        if not encoded:
            return None

        return Batch(payload=b"".join(d + b"\n" for d in encoded), size=len(encoded))
