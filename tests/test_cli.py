from __future__ import annotations

import gzip
import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from shimmerdata import cli as cli_module
from shimmerdata.cli import cli
from shimmerdata.constants import EXIT_CODE_INVALID_CONFIG, EXIT_CODE_SPOOL_ERROR
from shimmerdata.meta import get_version


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch):
    for name in ("SERVER_URL", "APP_ID", "APP_TOKEN", "TEMP_DIR", "BATCH_SIZE",
                 "TIMEOUT", "COMPRESS", "INTERVAL"):
        monkeypatch.delenv(f"SHIMMERDATA_{name}", raising=False)


@pytest.fixture
def mock_server(server):
    with patch.object(cli_module, "create_http_client", server.client), \
            patch("shimmerdata.consumers.batch.create_http_client", server.client):
        yield server


def base_args(tmp_path: Path):
    return ["--config", str(tmp_path / "missing.ini"), "--server-url", "https://collect.example.com",
            "--app-id", "app-1"]


class TestCli:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert get_version() in result.output

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "drain" in result.output
        assert "send" in result.output

    def test_send(self, runner: CliRunner, mock_server, tmp_path: Path) -> None:
        events = tmp_path / "events.jsonl"
        lines = [
            {"#type": "track", "#time": "2024-05-01 10:00:00.000", "#account_id": str(n),
             "#event_name": "login", "properties": {"n": n}}
            for n in range(5)
        ]
        events.write_text("\n".join(json.dumps(line) for line in lines) + "\n\n")

        result = runner.invoke(cli, ["send", str(events), *base_args(tmp_path), "--batch-size", "2"])

        assert result.exit_code == 0, result.output
        assert "Sent 5 event(s) in 3 batch(es)" in result.output
        assert [e["#account_id"] for e in mock_server.reported_events()] == ["0", "1", "2", "3", "4"]

    def test_send_invalid_line(self, runner: CliRunner, mock_server, tmp_path: Path) -> None:
        events = tmp_path / "events.jsonl"
        events.write_text('{"#type": "track", "#time": "2024-05-01 10:00:00.000", "#account_id": "1"}\n'
                          "not json\n")

        result = runner.invoke(cli, ["send", str(events), *base_args(tmp_path)])

        assert result.exit_code == 1
        assert len(mock_server.reported_events()) == 1

    @pytest.mark.parametrize("line", [
        '{"#type": "track", "#time": "yesterday", "#account_id": "1"}',
        '{"#type": "track", "#time": "2024-05-01 10:00:00.000", "#account_id": "1", "#lib": "x"}',
    ])
    def test_send_rejects_bad_event_line(
        self, runner: CliRunner, mock_server, tmp_path: Path, line: str
    ) -> None:
        events = tmp_path / "events.jsonl"
        events.write_text('{"#type": "track", "#time": "2024-05-01 10:00:00.000", "#account_id": "1"}\n'
                          f"{line}\n")

        result = runner.invoke(cli, ["send", str(events), *base_args(tmp_path)])

        assert result.exit_code == 1
        assert "ValidationError: line 2" in result.output
        assert len(mock_server.reported_events()) == 1

    def test_send_without_server_url(self, runner: CliRunner, tmp_path: Path) -> None:
        events = tmp_path / "events.jsonl"
        events.write_text("")

        result = runner.invoke(cli, ["send", str(events), "--config", str(tmp_path / "missing.ini")])

        assert result.exit_code == EXIT_CODE_INVALID_CONFIG

    def test_drain_uploads_spool(self, runner: CliRunner, mock_server, tmp_path: Path) -> None:
        spool = tmp_path / "spool"
        spool.mkdir()
        (spool / "app-1-logback.log").write_bytes(b'{"a":1}\n')
        (spool / "app-1-logback-2024-05-01T10-00-00.000.log").write_bytes(b'{"b":2}\n')

        result = runner.invoke(cli, ["drain", *base_args(tmp_path), "--temp-dir", str(spool)])

        assert result.exit_code == 0, result.output
        assert "Uploaded 2 file(s)" in result.output
        assert list(spool.iterdir()) == []
        uploaded = mock_server.uploaded_files()
        assert uploaded["app-1-logback-2024-05-01T10-00-00.000.log"] == b'{"b":2}\n'
        (active,) = [name for name in uploaded if name.endswith(".gz")]
        assert gzip.decompress(uploaded[active]) == b'{"a":1}\n'

    def test_drain_reports_leftovers(self, runner: CliRunner, mock_server, tmp_path: Path) -> None:
        mock_server.upload_status = 500
        spool = tmp_path / "spool"
        spool.mkdir()
        (spool / "old.log").write_bytes(b"x\n")

        result = runner.invoke(cli, ["drain", *base_args(tmp_path), "--temp-dir", str(spool)])

        assert result.exit_code == EXIT_CODE_SPOOL_ERROR
        assert (spool / "old.log").exists()

    def test_drain_requires_temp_dir(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["drain", *base_args(tmp_path)])

        assert result.exit_code == EXIT_CODE_INVALID_CONFIG

    def test_debug_flag(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["--debug", "drain", *base_args(tmp_path)])

        assert result.exit_code == EXIT_CODE_INVALID_CONFIG
