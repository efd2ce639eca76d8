from __future__ import annotations

import base64
import hashlib
import logging
import os
from typing import BinaryIO, Optional

import httpx

from shimmerdata.config import BatchConfig
from shimmerdata.constants import UPLOAD_CHUNK_SIZE, UPLOAD_ENDPOINT
from shimmerdata.errors import SpoolError, TransportError
from shimmerdata.http_utils import envelope, extract_result
from shimmerdata.log_codes import SPOOL_UPLOAD, SPOOL_UPLOADED
from shimmerdata.logs_helpers import log_call

from .writer import COMPRESS_SUFFIX

ACCEPTED_STATUS = (httpx.codes.OK, httpx.codes.PARTIAL_CONTENT)


def file_md5(fp: BinaryIO) -> str:
    digest = hashlib.md5()
    fp.seek(0)
    while chunk := fp.read(UPLOAD_CHUNK_SIZE):
        digest.update(chunk)
    return digest.hexdigest()


class FileUploader:
    """
    Uploads a spool file in fixed-size chunks, strictly in order.

    Every chunk request carries the whole-file MD5 and size so the server
    can reassemble and verify. The upload only counts as done once the last
    chunk is accepted (HTTP 200 or 206).
    """

    def __init__(
        self,
        config: BatchConfig,
        http_client: httpx.Client,
        chunk_size: int = UPLOAD_CHUNK_SIZE,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.client = http_client
        self.chunk_size = chunk_size
        self.url = f"{config.server_url}{UPLOAD_ENDPOINT}"
        self.logger = logger or logging.getLogger(__name__)

    @log_call(SPOOL_UPLOAD)
    def upload(self, path: str) -> None:
        """
        Raises:
            SpoolError: If the file cannot be read.
            TransportError: If a chunk is rejected or the request fails.
        """
        try:
            with open(path, "rb") as fp:
                self._upload(path, fp)
        except OSError as e:
            raise SpoolError(path, f"uploadFile read file error: {e}") from e

    def _upload(self, path: str, fp: BinaryIO) -> None:
        total = os.fstat(fp.fileno()).st_size
        base = envelope(self.config, compress=path.endswith(COMPRESS_SUFFIX))
        base.update(md5=file_md5(fp), filename=os.path.basename(path), total=total)

        uploaded = 0
        while uploaded < total:
            fp.seek(uploaded)
            content = fp.read(min(self.chunk_size, total - uploaded))
            if not content:
                raise SpoolError(path, f"file shrank to {uploaded} of {total} bytes")

            body = dict(base)
            body.update(
                start=uploaded,
                end=uploaded + len(content),
                content=base64.b64encode(content).decode("ascii"),
            )

            try:
                response = self.client.post(self.url, json=body, timeout=self.config.timeout)
            except httpx.HTTPError as e:
                raise TransportError(reason=f"uploadFile POST error: {e}") from e

            if response.status_code not in ACCEPTED_STATUS:
                code, msg = extract_result(response)
                raise TransportError(status_code=response.status_code, code=code, msg=msg)

            uploaded += len(content)
            self.logger.debug("%s have upload: %d/%d Bytes", path, uploaded, total)

        self.logger.info(SPOOL_UPLOADED, extra={"path": path, "bytes": total})
