from __future__ import annotations

import logging
import os
import threading
from typing import Collection, Optional

from shimmerdata.errors import ShimmerDataError, SpoolError
from shimmerdata.log_codes import (
    SPOOL_LINE_COUNT_FAILED,
    SPOOL_REMOVE_FAILED,
    SPOOL_SCAN_FAILED,
    SPOOL_UPLOAD_FAILED,
    SPOOL_WRITE_FAILED,
)

from .uploader import FileUploader
from .writer import TEMP_SUFFIX, RotatingWriter

logger = logging.getLogger(__name__)


def scan_directory(
    directory: str,
    uploader: FileUploader,
    skip: Collection[str] = (),
    log: Optional[logging.Logger] = None,
) -> int:
    """
    Upload and delete every finished spool file in ``directory``.

    Files are handled in name order. Names in ``skip``, ``.tmp`` files and
    sub-directories are left alone. The first upload or delete failure ends
    the scan; the remaining files wait for the next one.

    Returns:
        int: The number of files uploaded and removed.
    """
    log = log or logger
    try:
        entries = sorted(
            (e for e in os.scandir(directory) if e.is_file()), key=lambda e: e.name
        )
    except OSError as e:
        log.error(SPOOL_SCAN_FAILED, extra={"directory": directory, "error": str(e)})
        return 0

    done = 0
    for entry in entries:
        if entry.name in skip or entry.name.endswith(TEMP_SUFFIX):
            continue

        try:
            uploader.upload(entry.path)
        except ShimmerDataError as e:
            log.error(SPOOL_UPLOAD_FAILED, extra={"path": entry.path, "error": str(e)})
            return done

        try:
            os.remove(entry.path)
        except OSError as e:
            log.error(SPOOL_REMOVE_FAILED, extra={"path": entry.path, "error": str(e)})
            return done
        done += 1

    return done


class SpoolWatcher:
    """
    Periodically rolls the active spool file and drains the spool directory.

    ``stop`` runs one last roll-and-scan before it returns, so every spooled
    byte is either uploaded or left on disk.
    """

    def __init__(
        self,
        writer: RotatingWriter,
        uploader: FileUploader,
        interval: float,
        logger: Optional[logging.Logger] = None,
    ):
        self.writer = writer
        self.uploader = uploader
        self.directory = os.path.dirname(writer.filename)
        self.interval = interval
        self.logger = logger or logging.getLogger(__name__)
        self.files_uploaded = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name="shimmerdata-spool-watcher", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self.logger.info("spool watcher stopping")
        self._stop.set()
        if self._thread is not None:
            self._thread.join()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.logger.debug("spool watcher tick, scanning %s", self.directory)
            self._safe_cycle()
        self._safe_cycle()

    def _safe_cycle(self) -> None:
        try:
            self.run_cycle()
        except Exception as e:
            self.logger.exception(f"Error processing spool directory: {e}")

    def run_cycle(self) -> int:
        """
        Roll the active file if it holds anything, then scan once.
        """
        try:
            rotate = self.writer.current_line_count() > 0
        except SpoolError as e:
            self.logger.error(SPOOL_LINE_COUNT_FAILED, extra={"error": str(e)})
            rotate = True

        if rotate:
            try:
                self.writer.force_rotate()
            except ShimmerDataError as e:
                self.logger.error(SPOOL_WRITE_FAILED, extra={"error": str(e)})

        return self.scan()

    def scan(self) -> int:
        uploaded = scan_directory(
            self.directory,
            self.uploader,
            skip={os.path.basename(self.writer.filename)},
            log=self.logger,
        )
        self.files_uploaded += uploaded
        return uploaded
