from __future__ import annotations

import gzip
import logging
import os
import shutil
import threading
from datetime import datetime, timezone
from typing import BinaryIO, Callable, Optional

from shimmerdata.constants import SPOOL_FILE_SUFFIX, SPOOL_MAX_BYTES
from shimmerdata.errors import ConsumerClosedError, SpoolError
from shimmerdata.log_codes import SPOOL_ROTATED

BACKUP_TIME_FORMAT = "%Y-%m-%dT%H-%M-%S.%f"
COMPRESS_SUFFIX = ".gz"
TEMP_SUFFIX = ".tmp"
_READ_CHUNK = 64 * 1024


def spool_filename(folder: str, app_id: str) -> str:
    return os.path.join(folder, f"{app_id}{SPOOL_FILE_SUFFIX}")


def count_lines(path: str) -> int:
    lines = 0
    with open(path, "rb") as fp:
        while chunk := fp.read(_READ_CHUNK):
            lines += chunk.count(b"\n")
    return lines


class RotatingWriter:
    """
    Append-only file that rolls over by size or on demand.

    The active file keeps its name; rolled segments are renamed to
    ``<name>-<UTC time><ext>`` and, with ``compress``, gzipped before they
    appear under their final name. Readers of the directory must skip the
    active file and ``.tmp`` files.
    """

    def __init__(
        self,
        filename: str,
        max_bytes: int = SPOOL_MAX_BYTES,
        compress: bool = False,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.filename = filename
        self.max_bytes = max_bytes
        self.compress = compress
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self._fp: Optional[BinaryIO] = None
        self._size = 0
        self._lines = 0
        self._loaded = False
        self._closed = False
        self._lock = threading.Lock()

    def write(self, data: bytes) -> int:
        with self._lock:
            self._check_open()
            if len(data) > self.max_bytes:
                raise SpoolError(
                    self.filename,
                    f"write length {len(data)} exceeds maximum file size {self.max_bytes}",
                )
            try:
                self._load_existing()
                if self._size + len(data) > self.max_bytes:
                    self._rotate()
                if self._fp is None:
                    self._fp = open(self.filename, "ab")
                written = self._fp.write(data)
                self._fp.flush()
            except OSError as e:
                raise SpoolError(self.filename, str(e)) from e

            self._size += written
            self._lines += data.count(b"\n")
            return written

    def force_rotate(self) -> Optional[str]:
        """
        Close the active file and move it aside.

        Returns:
            Optional[str]: The rolled segment path, None if there was nothing to roll.
        """
        with self._lock:
            self._check_open()
            try:
                self._load_existing()
                return self._rotate()
            except OSError as e:
                raise SpoolError(self.filename, str(e)) from e

    def current_line_count(self) -> int:
        with self._lock:
            self._check_open()
            try:
                self._load_existing()
            except OSError as e:
                raise SpoolError(self.filename, str(e)) from e
            return self._lines

    def close(self) -> None:
        with self._lock:
            self._check_open()
            self._closed = True
            if self._fp is not None:
                try:
                    self._fp.close()
                except OSError as e:
                    raise SpoolError(self.filename, str(e)) from e
                finally:
                    self._fp = None

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise ConsumerClosedError(f"spool file {self.filename} already closed")

    def _load_existing(self) -> None:
        if self._loaded:
            return
        if os.path.exists(self.filename):
            self._size = os.path.getsize(self.filename)
            self._lines = count_lines(self.filename)
        self._loaded = True

    def _rotate(self) -> Optional[str]:
        if self._fp is not None:
            self._fp.close()
            self._fp = None

        if not os.path.exists(self.filename) or os.path.getsize(self.filename) == 0:
            self._size = 0
            self._lines = 0
            return None

        backup = self._backup_name()
        if self.compress:
            backup += COMPRESS_SUFFIX
            tmp = backup + TEMP_SUFFIX
            with open(self.filename, "rb") as src, gzip.open(tmp, "wb") as dst:
                shutil.copyfileobj(src, dst)
            os.replace(tmp, backup)
            os.remove(self.filename)
        else:
            os.replace(self.filename, backup)

        self.logger.info(SPOOL_ROTATED, extra={"segment": backup, "lines": self._lines})
        self._size = 0
        self._lines = 0
        return backup

    def _backup_name(self) -> str:
        folder, name = os.path.split(self.filename)
        stem, ext = os.path.splitext(name)
        timestamp = self._clock().strftime(BACKUP_TIME_FORMAT)[:-3]
        candidate = os.path.join(folder, f"{stem}-{timestamp}{ext}")
        n = 1
        while os.path.exists(candidate) or os.path.exists(candidate + COMPRESS_SUFFIX):
            candidate = os.path.join(folder, f"{stem}-{timestamp}-{n}{ext}")
            n += 1
        return candidate
