import functools
import logging
import time

CALL_STARTED = "started"
CALL_DONE = "done"
CALL_FAILED = "failed"


def _logger_for(func, args):
    """
    Methods of objects carrying a ``logger`` log through it, anything else
    through the module logger. The second value tells whether ``args[0]``
    is that owner.
    """
    owner = args[0] if args else None
    logger = getattr(owner, "logger", None)
    if isinstance(logger, logging.Logger):
        return logger, True
    return logging.getLogger(func.__module__), False


def log_call(code, *, show_args=True):
    """
    Trace a network call under a dotted log code.

    ``<code>.started`` and ``<code>.done`` are logged at DEBUG, a raised
    exception is logged as ``<code>.failed`` at WARNING and re-raised.
    The call name, elapsed milliseconds and error go in the record's extra.

    Args:
        code: Log code prefix from ``shimmerdata.log_codes``.
        show_args: Add the arguments, minus ``self``, to the started record.
    """

    def decorator(func):
        name = func.__qualname__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger, bound = _logger_for(func, args)
            extra = {"call": name}
            if show_args and logger.isEnabledFor(logging.DEBUG):
                shown = [repr(a) for a in args[1 if bound else 0:]]
                shown += [f"{k}={v!r}" for k, v in kwargs.items()]
                extra["call_args"] = ", ".join(shown)
            logger.debug(f"{code}.{CALL_STARTED}", extra=extra)

            started = time.monotonic()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.warning(
                    f"{code}.{CALL_FAILED}",
                    extra={"call": name, "error": str(e), "elapsed_ms": _elapsed(started)},
                )
                raise

            logger.debug(
                f"{code}.{CALL_DONE}", extra={"call": name, "elapsed_ms": _elapsed(started)}
            )
            return result

        return wrapper

    return decorator


def _elapsed(started):
    return int((time.monotonic() - started) * 1000)
