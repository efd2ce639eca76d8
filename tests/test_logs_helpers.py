import logging

import pytest

from shimmerdata.logs_helpers import log_call


class Sender:
    def __init__(self, logger: logging.Logger):
        self.logger = logger

    @log_call("transport.send")
    def send(self, data, size=1):
        return len(data) * size

    @log_call("transport.send", show_args=False)
    def send_quietly(self, data):
        return data

    @log_call("transport.send")
    def fail(self):
        raise RuntimeError("connection reset")


@log_call("spool.upload")
def upload(path):
    return path


@pytest.mark.unit
class TestLogCall:
    """
    Test the call tracing decorator.
    """

    def setup_method(self) -> None:
        self.logger = logging.getLogger("shimmerdata.tests.sender")
        self.sender = Sender(self.logger)

    def test_traces_call_on_instance_logger(self, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger=self.logger.name):
            assert self.sender.send(b"ab", size=2) == 4

        started, done = caplog.records
        assert started.name == self.logger.name
        assert started.getMessage() == "transport.send.started"
        assert started.call == "Sender.send"
        assert started.call_args == "b'ab', size=2"
        assert done.getMessage() == "transport.send.done"
        assert done.elapsed_ms >= 0

    def test_hidden_args(self, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger=self.logger.name):
            self.sender.send_quietly(b"secret")

        assert all("secret" not in str(record.__dict__) for record in caplog.records)

    def test_failure_logged_and_reraised(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger=self.logger.name):
            with pytest.raises(RuntimeError, match="connection reset"):
                self.sender.fail()

        record, = caplog.records
        assert record.levelno == logging.WARNING
        assert record.getMessage() == "transport.send.failed"
        assert record.call == "Sender.fail"
        assert record.error == "connection reset"

    def test_plain_function_uses_module_logger(self, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger=__name__):
            assert upload("/tmp/a.log") == "/tmp/a.log"

        assert [r.getMessage() for r in caplog.records] == [
            "spool.upload.started",
            "spool.upload.done",
        ]
        assert caplog.records[0].name == __name__
        assert caplog.records[0].call_args == "'/tmp/a.log'"

    def test_nothing_logged_above_debug(self, caplog) -> None:
        with caplog.at_level(logging.INFO, logger=self.logger.name):
            self.sender.send(b"a")

        assert caplog.records == []
