from __future__ import annotations

import base64
import gzip
from typing import Callable
from unittest.mock import Mock

import httpx
import pytest

from shimmerdata.config import BatchConfig
from shimmerdata.consumers.transmitter import Transmitter, encode_data
from shimmerdata.errors import TransportError
from shimmerdata.meta import get_version


@pytest.mark.unit
class TestTransmitter:
    """
    Test batch reporting and its retry budget.
    """

    PAYLOAD = b'{"#type":"track"}\n{"#type":"track"}\n'

    @pytest.fixture
    def transmitter(self, config_factory: Callable[..., BatchConfig], http_client) -> Transmitter:
        return Transmitter(config_factory(), http_client)

    def test_report_body(self, transmitter: Transmitter, server) -> None:
        transmitter.send(self.PAYLOAD, 2)

        assert len(server.reports) == 1
        body = server.reports[0]
        assert body == {
            "app": "app-1",
            "token": "token-1",
            "sdk": "python-sdk",
            "version": get_version(),
            "compress": False,
            "size": 2,
            "log": base64.b64encode(self.PAYLOAD).decode("ascii"),
        }

    def test_report_url(self, transmitter: Transmitter) -> None:
        assert transmitter.url == "https://collect.example.com/LogServer/log/report"

    def test_compressed_payload(
        self, config_factory: Callable[..., BatchConfig], http_client, server
    ) -> None:
        transmitter = Transmitter(config_factory(compress=True), http_client)

        transmitter.send(self.PAYLOAD, 2)

        body = server.reports[0]
        assert body["compress"] is True
        assert gzip.decompress(base64.b64decode(body["log"])) == self.PAYLOAD

    def test_empty_body_counts_as_success(self, transmitter: Transmitter, server) -> None:
        server.report_body = None

        transmitter.send(self.PAYLOAD, 2)

    def test_non_zero_code_fails(self, transmitter: Transmitter, server) -> None:
        server.report_body = {"code": 3, "msg": "bad token"}

        with pytest.raises(TransportError) as exc_info:
            transmitter.send(self.PAYLOAD, 2)

        assert exc_info.value.status_code == 200
        assert exc_info.value.code == 3
        assert exc_info.value.msg == "bad token"

    def test_http_status_fails(self, transmitter: Transmitter, server) -> None:
        server.fail_reports(status=503)

        with pytest.raises(TransportError) as exc_info:
            transmitter.send(self.PAYLOAD, 2)

        assert exc_info.value.status_code == 503

    def test_network_error_becomes_transport_error(self, transmitter: Transmitter, server) -> None:
        server.report_network_error = True

        with pytest.raises(TransportError):
            transmitter.send(self.PAYLOAD, 2)

    def test_retry_makes_three_attempts(self, transmitter: Transmitter, server) -> None:
        server.fail_reports()

        with pytest.raises(TransportError):
            transmitter.send_with_retry(self.PAYLOAD, 2)

        assert len(server.reports) == 3

    def test_retry_stops_after_success(
        self, config_factory: Callable[..., BatchConfig]
    ) -> None:
        mock_client = Mock(spec=httpx.Client)
        request = httpx.Request("POST", "https://collect.example.com/LogServer/log/report")
        mock_client.post.side_effect = [
            httpx.Response(500, json={"Code": 1}, request=request),
            httpx.Response(200, json={"Code": 0}, request=request),
        ]
        transmitter = Transmitter(config_factory(), mock_client)

        transmitter.send_with_retry(self.PAYLOAD, 2)

        assert mock_client.post.call_count == 2

    def test_encode_data_round_trip(self) -> None:
        assert gzip.decompress(encode_data(self.PAYLOAD)) == self.PAYLOAD
