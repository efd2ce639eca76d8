import pytest

from shimmerdata.constants import (
    EXIT_CODE_FAILURE,
    EXIT_CODE_INVALID_CONFIG,
    EXIT_CODE_SPOOL_ERROR,
    EXIT_CODE_TRANSPORT_ERROR,
)
from shimmerdata.errors import (
    ConfigurationError,
    ConsumerClosedError,
    EncodingError,
    ShimmerDataError,
    SpoolError,
    TransportError,
    ValidationError,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "error, exit_code",
    [
        (ShimmerDataError(), EXIT_CODE_FAILURE),
        (ConfigurationError("x"), EXIT_CODE_INVALID_CONFIG),
        (TransportError(status_code=500), EXIT_CODE_TRANSPORT_ERROR),
        (SpoolError("/tmp/a.log", "disk full"), EXIT_CODE_SPOOL_ERROR),
        (EncodingError("x"), EXIT_CODE_FAILURE),
        (ConsumerClosedError(), EXIT_CODE_FAILURE),
        (ValidationError(), EXIT_CODE_FAILURE),
    ],
)
def test_exit_codes(error: ShimmerDataError, exit_code: int) -> None:
    assert isinstance(error, ShimmerDataError)
    assert error.get_exit_code() == exit_code


@pytest.mark.unit
def test_transport_error_message() -> None:
    error = TransportError(status_code=200, code=5, msg="denied")

    assert str(error) == "httpStatus:200, Code:5 Msg:denied"
    assert (error.status_code, error.code, error.msg) == (200, 5, "denied")


@pytest.mark.unit
def test_spool_error_message() -> None:
    error = SpoolError("/tmp/a.log", "disk full")

    assert str(error) == "Spool file /tmp/a.log failed: disk full"
    assert error.path == "/tmp/a.log"
