from __future__ import annotations

import base64
import gzip
import logging
from typing import Optional

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
)

from shimmerdata.config import BatchConfig
from shimmerdata.constants import MAX_SEND_ATTEMPTS, REPORT_ENDPOINT
from shimmerdata.errors import EncodingError, TransportError
from shimmerdata.http_utils import envelope, extract_result
from shimmerdata.log_codes import TRANSPORT_ATTEMPT_FAILED, TRANSPORT_SEND
from shimmerdata.logs_helpers import log_call


def encode_data(data: bytes) -> bytes:
    try:
        return gzip.compress(data)
    except (OSError, ValueError) as e:
        raise EncodingError(f"gzip: {e}")


def _log_failed_attempt(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    if outcome is None or not outcome.failed:
        return
    transmitter = retry_state.args[0]
    transmitter.logger.warning(
        TRANSPORT_ATTEMPT_FAILED,
        extra={
            "attempt": retry_state.attempt_number,
            "max_attempts": MAX_SEND_ATTEMPTS,
            "error": str(outcome.exception()),
        },
    )


class Transmitter:
    """
    Sends batches to the report endpoint.

    Success means HTTP 200 and an application ``Code`` of 0; everything
    else raises TransportError.
    """

    def __init__(
        self,
        config: BatchConfig,
        http_client: httpx.Client,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.client = http_client
        self.url = f"{config.server_url}{REPORT_ENDPOINT}"
        self.logger = logger or logging.getLogger(__name__)

    @log_call(TRANSPORT_SEND, show_args=False)
    def send(self, data: bytes, size: int) -> None:
        """
        One POST of a batch.

        Args:
            data: Newline-joined encoded events, uncompressed.
            size: Number of events in ``data``.

        Raises:
            EncodingError: If the payload cannot be compressed.
            TransportError: If the request fails or is rejected.
        """
        payload = encode_data(data) if self.config.compress else data

        body = envelope(self.config, compress=self.config.compress)
        body["size"] = size
        body["log"] = base64.b64encode(payload).decode("ascii")

        try:
            response = self.client.post(self.url, json=body, timeout=self.config.timeout)
        except httpx.HTTPError as e:
            raise TransportError(reason=f"POST {self.url} failed: {e}") from e

        code, msg = extract_result(response)
        if response.status_code != httpx.codes.OK or code != 0:
            raise TransportError(status_code=response.status_code, code=code, msg=msg)

    # No wait between attempts; the caller spools the batch once all fail.
    @retry(
        reraise=True,
        stop=stop_after_attempt(MAX_SEND_ATTEMPTS),
        retry=retry_if_exception_type(TransportError),
        after=_log_failed_attempt,
    )
    def send_with_retry(self, data: bytes, size: int) -> None:
        self.send(data, size)
