import os
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

from shimmerdata.constants import DATE_FORMAT, KEY_PATTERN

# 50 letters, digits or underscores, starting with '#' or a letter
_key_pattern = re.compile(KEY_PATTERN)


def format_time(value: datetime) -> str:
    """
    Render a datetime in the wire format: UTC, millisecond precision.

    Naive datetimes are taken as local time, like ``datetime.now()``.
    """
    return value.astimezone(timezone.utc).strftime(DATE_FORMAT)[:-3]


def parse_time(value: str) -> datetime:
    """
    Parse a ``YYYY-MM-DD HH:MM:SS.mmm`` string. The string is read as UTC.

    Raises:
        ValueError: If the string does not follow the format.
    """
    parsed = datetime.strptime(value, DATE_FORMAT)
    return parsed.replace(tzinfo=timezone.utc)


def now() -> str:
    return format_time(datetime.now(timezone.utc))


def check_pattern(name: str) -> bool:
    return _key_pattern.match(name) is not None


def generate_uuid() -> str:
    return str(uuid.uuid1())


def check_and_make_folder(folder: Union[str, Path]) -> str:
    """
    Resolve ``folder`` to an absolute path and create it when missing.

    Returns:
        str: The absolute folder path.
    """
    abs_path = os.path.abspath(os.path.expanduser(str(folder)))
    os.makedirs(abs_path, exist_ok=True)
    return abs_path
