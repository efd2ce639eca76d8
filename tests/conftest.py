from __future__ import annotations

import base64
import gzip
import json
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from shimmerdata.config import BatchConfig
from shimmerdata.models import Event, EventType

SERVER_URL = "https://collect.example.com"


class RecordingServer:
    """
    Collection server stand-in, plugged into httpx through MockTransport.

    Every request body is recorded, failed attempts included.
    """

    def __init__(self) -> None:
        self.report_status = 200
        self.report_body: Optional[Dict[str, Any]] = {"Code": 0, "Msg": ""}
        self.report_network_error = False
        self.upload_status = 200
        self.reports: List[Dict[str, Any]] = []
        self.uploads: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        with self._lock:
            if request.url.path == "/LogServer/log/report":
                self.reports.append(body)
                if self.report_network_error:
                    raise httpx.ConnectError("connection refused", request=request)
                if self.report_body is None:
                    return httpx.Response(self.report_status)
                return httpx.Response(self.report_status, json=self.report_body)

            self.uploads.append(body)
            return httpx.Response(self.upload_status, json={"Code": 0, "Msg": ""})

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def fail_reports(self, status: int = 500) -> None:
        self.report_status = status
        self.report_body = {"Code": 1, "Msg": "server error"}

    def reported_batches(self) -> List[List[Dict[str, Any]]]:
        batches = []
        for body in self.reports:
            payload = base64.b64decode(body["log"])
            if body["compress"]:
                payload = gzip.decompress(payload)
            batches.append([json.loads(line) for line in payload.splitlines()])
        return batches

    def reported_events(self) -> List[Dict[str, Any]]:
        return [event for batch in self.reported_batches() for event in batch]

    def uploaded_files(self) -> Dict[str, bytes]:
        """
        Reassemble the uploaded chunks, by file name.
        """
        files: Dict[str, bytes] = {}
        for body in self.uploads:
            chunk = base64.b64decode(body["content"])
            assert body["start"] == len(files.get(body["filename"], b""))
            files[body["filename"]] = files.get(body["filename"], b"") + chunk
        return files


@pytest.fixture
def server() -> RecordingServer:
    return RecordingServer()


@pytest.fixture
def http_client(server: RecordingServer):
    client = server.client()
    yield client
    client.close()


@pytest.fixture
def config_factory(tmp_path: Path) -> Callable[..., BatchConfig]:
    """
    Factory fixture for BatchConfig with test friendly defaults.
    """

    def _create(**overrides: Any) -> BatchConfig:
        values: Dict[str, Any] = {
            "server_url": SERVER_URL,
            "app_id": "app-1",
            "app_token": "token-1",
        }
        values.update(overrides)
        return BatchConfig(**values)

    return _create


@pytest.fixture
def event_factory() -> Callable[..., Event]:
    def _create(index: int = 0, **properties: Any) -> Event:
        return Event(
            type=EventType.TRACK,
            time="2024-05-01 10:00:00.000",
            account_id=f"user-{index}",
            event_name="login",
            uuid=f"uuid-{index}",
            properties={"index": index, **properties},
        )

    return _create
