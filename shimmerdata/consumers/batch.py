"""
Batch consumer: buffers events and reports them to the collection server.

Threads, all daemons:

- intake reader: moves submitted events to the staging list and raises a
  soft flush request whenever a full batch is waiting;
- flush loop: packs and transmits batches on soft, forced and timer
  triggers, and spools batches the server would not take;
- ticker: drives the timer trigger;
- spool watcher (only with ``temp_dir``): uploads spooled files.

Closing the intake channel is the only shutdown trigger. The reader drains
what is left, then stops the ticker, lets the flush loop do its final forced
flush and finally stops the watcher, which makes one last upload pass.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from shimmerdata.config import BatchConfig
from shimmerdata.constants import IDLE_SLEEP, SPOOL_MAX_BYTES
from shimmerdata.errors import ConfigurationError, EncodingError, ShimmerDataError
from shimmerdata.http_utils import create_http_client
from shimmerdata.log_codes import (
    CONSUMER_BATCH_DROPPED,
    CONSUMER_FLUSH_FAILED,
    CONSUMER_STARTED,
    CONSUMER_STOPPED,
    CONSUMER_STOPPING,
    SPOOL_WRITE_FAILED,
    TRANSPORT_EXHAUSTED,
)
from shimmerdata.models import Event
from shimmerdata.spool import FileUploader, RotatingWriter, SpoolWatcher, spool_filename
from shimmerdata.util import check_and_make_folder

from .assembler import Batch, BatchAssembler, FlushTrigger
from .intake import END_OF_STREAM, IntakeChannel
from .safe_list import SafeList
from .ticker import Ticker
from .transmitter import Transmitter


class ConsumerState(Enum):
    CREATED = "created"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass
class ConsumerMetrics:
    """
    Counters of a batch consumer. Each one is written by a single thread.
    """

    events_received: int = 0
    events_sent: int = 0
    batches_sent: int = 0
    batches_failed: int = 0
    batches_spooled: int = 0
    batches_dropped: int = 0


class BatchConsumer:
    """
    Reports events to ``<server_url>/LogServer/log/report`` in batches.

    Args:
        config: The consumer settings.
        http_client: Client to send requests with. When omitted the consumer
            creates one and closes it on ``close``.
        logger: Logger used by the consumer and its components.
        spool_max_bytes: Size at which the spool file rolls over.
    """

    def __init__(
        self,
        config: BatchConfig,
        http_client: Optional[httpx.Client] = None,
        logger: Optional[logging.Logger] = None,
        spool_max_bytes: int = SPOOL_MAX_BYTES,
    ):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.state = ConsumerState.CREATED
        self.metrics = ConsumerMetrics()

        spool_folder: Optional[str] = None
        if config.temp_dir:
            try:
                spool_folder = check_and_make_folder(config.temp_dir)
            except OSError as e:
                raise ConfigurationError(f"temp_dir {config.temp_dir!r} is not usable: {e}")

        self._owns_client = http_client is None
        self._http_client = http_client or create_http_client()

        self._buffer = SafeList()
        self._intake = IntakeChannel(config.intake_capacity)
        self._assembler = BatchAssembler(self._buffer, config.batch_size, logger=self.logger)
        self._transmitter = Transmitter(config, self._http_client, logger=self.logger)
        self._ticker = Ticker(config.interval)

        self._writer: Optional[RotatingWriter] = None
        self._watcher: Optional[SpoolWatcher] = None
        if spool_folder is not None:
            self._writer = RotatingWriter(
                spool_filename(spool_folder, config.app_id),
                max_bytes=spool_max_bytes,
                compress=True,
                logger=self.logger,
            )
            uploader = FileUploader(config, self._http_client, logger=self.logger)
            self._watcher = SpoolWatcher(
                self._writer, uploader, config.interval, logger=self.logger
            )

        self._flush_stop = threading.Event()
        self._stopped = threading.Event()
        self._closed = threading.Event()
        self._close_lock = threading.Lock()
        self._reader = threading.Thread(
            target=self._listen, name="shimmerdata-intake", daemon=True
        )
        self._flusher = threading.Thread(
            target=self._run, name="shimmerdata-flush", daemon=True
        )

        self._start()

    def _start(self) -> None:
        self._ticker.start()
        if self._watcher is not None:
            self._watcher.start()
        self._reader.start()
        self._flusher.start()
        self.state = ConsumerState.RUNNING
        self.logger.info(
            CONSUMER_STARTED,
            extra={
                "app_id": self.config.app_id,
                "server_url": self.config.server_url,
                "spool_dir": self.config.temp_dir,
            },
        )

    def add(self, event: Event) -> None:
        """
        Queue ``event``. Blocks while the intake channel is full.
        """
        self._intake.submit(event)
        self.logger.debug("Enqueue event data: %s", event)

    def flush(self) -> None:
        """
        Ask the flush loop for a forced flush. Does not wait for it.
        """
        self._assembler.signal.request_forced()
        self.logger.debug("flush data")

    def close(self) -> None:
        """
        Stop accepting events and wait until every queued event has been
        sent or spooled and the spool watcher has finished its last pass.
        """
        with self._close_lock:
            if self.state in (ConsumerState.STOPPING, ConsumerState.STOPPED):
                first = False
            else:
                first = True
                self.state = ConsumerState.STOPPING

        if not first:
            self._closed.wait()
            return

        self.logger.info(
            CONSUMER_STOPPING, extra={"events_received": self.metrics.events_received}
        )
        self._intake.close()
        self._stopped.wait()
        self._reader.join()

        try:
            if self._writer is not None:
                self._writer.close()
        finally:
            if self._owns_client:
                self._http_client.close()
            self.state = ConsumerState.STOPPED
            self._closed.set()
            self.logger.info(CONSUMER_STOPPED, extra=self.get_metrics())

    def is_strict(self) -> bool:
        return False

    def get_metrics(self) -> Dict[str, Any]:
        metrics: Dict[str, Any] = asdict(self.metrics)
        metrics["files_uploaded"] = self._watcher.files_uploaded if self._watcher else 0
        metrics["pending"] = len(self._buffer) + self._intake.pending()
        return metrics

    def __enter__(self) -> "BatchConsumer":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _listen(self) -> None:
        try:
            while True:
                item = self._intake.receive()
                if item is END_OF_STREAM:
                    break
                self.metrics.events_received += 1
                self._buffer.push_back(item)
                if len(self._buffer) >= self.config.batch_size:
                    self._assembler.signal.request_soft()

            self.logger.debug("batch consumer listener stopping")
            self._ticker.stop()
            self._flush_stop.set()
            self._flusher.join()
            if self._watcher is not None:
                self._watcher.stop()
        finally:
            self._stopped.set()

    def _run(self) -> None:
        while True:
            trigger = self._assembler.next_trigger(
                stopping=self._flush_stop.is_set(), ticked=self._ticker.consume()
            )
            if trigger is FlushTrigger.IDLE:
                time.sleep(IDLE_SLEEP)
                continue

            if trigger is FlushTrigger.TIMER:
                self.logger.debug("ticker flush")

            try:
                self._flush(trigger.force, keep_going=trigger is FlushTrigger.SHUTDOWN)
            except ShimmerDataError as e:
                self.logger.error(
                    CONSUMER_FLUSH_FAILED, extra={"trigger": trigger.value, "error": str(e)}
                )
            except Exception as e:
                self.logger.exception(f"Unexpected error during {trigger.value} flush: {e}")

            if trigger is FlushTrigger.SHUTDOWN:
                self.logger.debug(
                    "batch consumer stopped send log count:%d", self.metrics.events_sent
                )
                return

    def _flush(self, force: bool, keep_going: bool = False) -> None:
        """
        Send the events queued when the flush starts.

        A forced flush sends all of them, in batches; a soft one only full
        batches. A failed batch is spooled and ends the flush, unless
        ``keep_going`` is set. The last error is raised once the flush is over.
        """
        error: Optional[ShimmerDataError] = None
        budget = len(self._buffer)
        while budget > 0 and self._assembler.ready(force):
            try:
                budget -= self._flush_once()
            except EncodingError as e:
                # the broken event was dropped, the rest went back in the queue
                budget -= 1
                self.metrics.batches_dropped += 1
                error = e
            except ShimmerDataError as e:
                error = e
                if not keep_going:
                    break
        if error is not None:
            raise error

    def _flush_once(self) -> int:
        batch = self._assembler.pack()
        if batch is None:
            return 0

        try:
            self._transmitter.send_with_retry(batch.payload, batch.size)
        except ShimmerDataError as e:
            self.metrics.batches_failed += 1
            self.logger.error(
                TRANSPORT_EXHAUSTED, extra={"events": batch.size, "error": str(e)}
            )
            self._spool(batch)
            raise

        self.metrics.batches_sent += 1
        self.metrics.events_sent += batch.size
        return batch.size

    def _spool(self, batch: Batch) -> None:
        if self._writer is None:
            self.metrics.batches_dropped += 1
            self.logger.warning(
                CONSUMER_BATCH_DROPPED, extra={"reason": "spooling disabled", "dropped": batch.size}
            )
            return

        try:
            self._writer.write(batch.payload)
        except ShimmerDataError as e:
            self.metrics.batches_dropped += 1
            self.logger.error(SPOOL_WRITE_FAILED, extra={"error": str(e)})
            return
        self.metrics.batches_spooled += 1
