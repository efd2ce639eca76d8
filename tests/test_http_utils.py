from __future__ import annotations

import httpx
import pytest

from shimmerdata.config import BatchConfig
from shimmerdata.errors import TransportError
from shimmerdata.http_utils import create_http_client, envelope, extract_result
from shimmerdata.meta import get_version


@pytest.mark.unit
class TestExtractResult:
    """
    Test reading Code and Msg from server responses.
    """

    def test_empty_body(self) -> None:
        assert extract_result(httpx.Response(200)) == (0, "")

    @pytest.mark.parametrize(
        "body, expected",
        [
            ({"Code": 0, "Msg": "ok"}, (0, "ok")),
            ({"code": 2, "msg": "nope"}, (2, "nope")),
            ({"CODE": 1}, (1, "")),
            ({}, (0, "")),
        ],
    )
    def test_fields_match_case_insensitively(self, body, expected) -> None:
        assert extract_result(httpx.Response(200, json=body)) == expected

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, content=b"<html>"),
            httpx.Response(200, json=[1, 2]),
            httpx.Response(200, json={"Code": "zero"}),
            httpx.Response(200, json={"Code": True}),
        ],
    )
    def test_malformed_bodies(self, response: httpx.Response) -> None:
        with pytest.raises(TransportError):
            extract_result(response)


@pytest.mark.unit
def test_envelope() -> None:
    config = BatchConfig(server_url="https://a", app_id="app", app_token="tok")

    assert envelope(config, compress=True) == {
        "app": "app",
        "token": "tok",
        "sdk": "python-sdk",
        "version": get_version(),
        "compress": True,
    }


@pytest.mark.unit
def test_create_http_client_headers() -> None:
    with create_http_client() as client:
        assert client.headers["Content-Type"] == "application/json"
        assert client.headers["ShimmerData-Client-Id"] == "python-sdk"
        assert client.headers["User-Agent"].startswith("shimmerdata-python/")
