import logging
import sys
from functools import wraps
from typing import NoReturn

import click

from shimmerdata.errors import ShimmerDataError, SpoolError, TransportError

LOG = logging.getLogger(__name__)


def report_error(error: ShimmerDataError) -> NoReturn:
    """
    Print a failed command's error to stderr and exit with its code.

    Transport and spool failures get a hint line, since events may still
    sit in the spool directory waiting for ``shimmerdata drain``.

    Args:
        error (ShimmerDataError): The error that ended the command.
    """
    click.secho(f"{type(error).__name__}: {error}", fg="red", file=sys.stderr)

    if isinstance(error, SpoolError) and error.path:
        click.secho(f"Spooled data is kept under {error.path}.", fg="yellow", file=sys.stderr)
    elif isinstance(error, TransportError):
        click.secho("Run `shimmerdata drain` once the server is reachable.",
                    fg="yellow", file=sys.stderr)

    sys.exit(error.get_exit_code())


def handle_cmd_exception(func):
    """
    Decorator to handle exceptions in command functions.

    Args:
        func: The command function to wrap.

    Returns:
        The wrapped function.
    """

    @wraps(func)
    def inner(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.ClickException:
            raise
        except ShimmerDataError as e:
            LOG.exception("Expected ShimmerDataError happened: %s", e)
            report_error(e)
        except Exception as e:
            LOG.exception("Unexpected Exception happened: %s", e)
            report_error(ShimmerDataError(f"Unhandled error: {e}"))

    return inner
