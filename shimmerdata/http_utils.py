from typing import Any, Dict, Tuple

import httpx

from shimmerdata.config import BatchConfig
from shimmerdata.errors import TransportError
from shimmerdata.meta import get_identifier, get_meta_http_headers, get_version


def create_http_client() -> httpx.Client:
    """
    HTTP client shared by the transmitter and the spool uploader.
    """
    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    headers.update(get_meta_http_headers())
    return httpx.Client(headers=headers)


def envelope(config: BatchConfig, compress: bool) -> Dict[str, Any]:
    """
    Fields common to the report and upload request bodies.
    """
    return {
        "app": config.app_id,
        "token": config.app_token,
        "sdk": get_identifier(),
        "version": get_version(),
        "compress": compress,
    }


def extract_result(response: httpx.Response) -> Tuple[int, str]:
    """
    Read the application level ``Code`` and ``Msg`` of a server response.

    Field names match case-insensitively. An empty body reads as code 0.

    Raises:
        TransportError: If the body is not a JSON object or Code is not an integer.
    """
    if not response.content:
        return 0, ""

    try:
        body = response.json()
    except ValueError as e:
        raise TransportError(
            status_code=response.status_code,
            reason=f"httpStatus:{response.status_code}, malformed body: {e}",
        )

    if not isinstance(body, dict):
        raise TransportError(
            status_code=response.status_code,
            reason=f"httpStatus:{response.status_code}, malformed body: {body!r}",
        )

    fields = {str(k).lower(): v for k, v in body.items()}
    code = fields.get("code", 0)
    msg = fields.get("msg", "")

    if isinstance(code, bool) or not isinstance(code, int):
        raise TransportError(
            status_code=response.status_code,
            reason=f"httpStatus:{response.status_code}, malformed Code: {code!r}",
        )

    return code, "" if msg is None else str(msg)
