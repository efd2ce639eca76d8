# -*- coding: utf-8 -*-
from pathlib import Path

DIR_NAME = ".shimmerdata"


def get_user_dir() -> Path:
    """
    Get the user directory for the ShimmerData configuration.

    Returns:
        Path: The user directory path.
    """
    return Path("~", DIR_NAME).expanduser()


USER_CONFIG_DIR = get_user_dir()
CONFIG_FILE_NAME = "config.ini"
CONFIG = USER_CONFIG_DIR / CONFIG_FILE_NAME
CONFIG_SECTION = "shimmerdata"

ENV_PREFIX = "SHIMMERDATA_"

# Batch consumer defaults
DEFAULT_TIMEOUT = 30.0
DEFAULT_BATCH_SIZE = 20
MAX_BATCH_SIZE = 200
DEFAULT_INTERVAL = 30.0
MAX_SEND_ATTEMPTS = 3
IDLE_SLEEP = 0.01

# Spool defaults
SPOOL_FILE_SUFFIX = "-logback.log"
SPOOL_MAX_BYTES = 100 * 1024 * 1024
UPLOAD_CHUNK_SIZE = 1024 * 1024

# Remote endpoints, relative to the configured server url
REPORT_ENDPOINT = "/LogServer/log/report"
UPLOAD_ENDPOINT = "/LogServer/log/upload"

# Event wire format
DATE_FORMAT = "%Y-%m-%d %H:%M:%S.%f"
KEY_PATTERN = r"^[a-zA-Z#][A-Za-z0-9_]{0,49}$"

# Exit codes
EXIT_CODE_FAILURE = 1
EXIT_CODE_INVALID_CONFIG = 64
EXIT_CODE_TRANSPORT_ERROR = 65
EXIT_CODE_SPOOL_ERROR = 66
