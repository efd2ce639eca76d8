from typing import Optional

from shimmerdata.constants import (
    EXIT_CODE_FAILURE,
    EXIT_CODE_INVALID_CONFIG,
    EXIT_CODE_SPOOL_ERROR,
    EXIT_CODE_TRANSPORT_ERROR,
)


class ShimmerDataError(Exception):
    """
    Generic ShimmerData SDK error.

    Args:
        message (str): The error message.
    """
    def __init__(self, message: str = "An error occurred in the ShimmerData SDK."):
        self.message = message
        super().__init__(self.message)

    def get_exit_code(self) -> int:
        """
        Get the exit code associated with this error.

        Returns:
            int: The exit code.
        """
        return EXIT_CODE_FAILURE


class ConfigurationError(ShimmerDataError):
    """
    Error raised when a consumer is built from an unusable configuration.

    Args:
        reason (str): What is wrong with the configuration.
        message (str): The error message template.
    """
    def __init__(self, reason: str = "",
                 message: str = "Invalid ShimmerData configuration: {reason}\n"
                                "Check the options, SHIMMERDATA_* variables and config.ini."):
        self.reason = reason
        super().__init__(message.format(reason=reason))

    def get_exit_code(self) -> int:
        return EXIT_CODE_INVALID_CONFIG


class TransportError(ShimmerDataError):
    """
    Error raised when the collection server did not accept a request.

    Args:
        status_code (Optional[int]): The HTTP status, None for network failures.
        code (int): The application level ``Code`` of the response body.
        msg (str): The application level ``Msg`` of the response body.
        reason (Optional[str]): Free text used instead of the response fields.
    """
    def __init__(self, status_code: Optional[int] = None, code: int = 0,
                 msg: str = "", reason: Optional[str] = None):
        self.status_code = status_code
        self.code = code
        self.msg = msg
        if reason is None:
            reason = f"httpStatus:{status_code}, Code:{code} Msg:{msg}"
        super().__init__(reason)

    def get_exit_code(self) -> int:
        return EXIT_CODE_TRANSPORT_ERROR


class EncodingError(ShimmerDataError):
    """
    Error raised when an event or a request body cannot be serialized.
    """
    def __init__(self, reason: str = "",
                 message: str = "Unable to encode data: {reason}"):
        super().__init__(message.format(reason=reason))


class SpoolError(ShimmerDataError):
    """
    Error raised for local spool file failures (write, rotate, read).

    Args:
        path (str): The spool file involved.
        reason (str): The underlying failure.
    """
    def __init__(self, path: str = "", reason: str = "",
                 message: str = "Spool file {path} failed: {reason}"):
        self.path = path
        super().__init__(message.format(path=path, reason=reason))

    def get_exit_code(self) -> int:
        return EXIT_CODE_SPOOL_ERROR


class ConsumerClosedError(ShimmerDataError):
    """
    Error raised when a closed consumer or writer is used.
    """
    def __init__(self, message: str = "ShimmerData consumer has already been closed."):
        super().__init__(message)


class ValidationError(ShimmerDataError):
    """
    Error raised when an event submitted to the facade is invalid.
    """
    def __init__(self, message: str = "Invalid event data."):
        super().__init__(message)
