from importlib.metadata import PackageNotFoundError, version
import logging
import os
import platform
from typing import Dict

from shimmerdata import __version__

LOG = logging.getLogger(__name__)

SDK_IDENTIFIER = "python-sdk"
LIB_NAME = "Python"


def get_version() -> str:
    """
    Get the version of the ShimmerData package.

    Returns:
      str: The installed version, or the source tree version when the
      distribution metadata is not available.
    """
    try:
        return version("shimmerdata")
    except PackageNotFoundError:
        LOG.debug("Distribution metadata not found, using %s", __version__)
        return __version__


def get_identifier() -> str:
    """
    Get the SDK identity reported to the collection server.

    Returns:
      str: The SDK identifier.
    """
    if source := os.environ.get("SHIMMERDATA_SDK_IDENTIFIER", None):
        return source

    return SDK_IDENTIFIER


def get_user_agent() -> str:
    """
    Get the user agent string for HTTP requests.

    Returns:
      str: The user agent string in the format: shimmerdata-python/{version} ({os} {arch}; Python/{python_version})
    """
    os_name = platform.system()

    machine = platform.machine()
    if machine in ("x86_64", "AMD64"):
        arch = "x86_64"
    elif machine in ("arm64", "aarch64"):
        arch = "arm_64"
    elif machine == "i386":
        arch = "x86"
    else:
        arch = machine or "unknown"

    python_version = platform.python_version()

    return f"shimmerdata-python/{get_version()} ({os_name} {arch}; Python/{python_version})"


def get_meta_http_headers() -> Dict[str, str]:
    """
    Get the metadata headers for the client.

    Returns:
      Dict[str, str]: The metadata headers.
    """
    return {
        "ShimmerData-Client-Version": get_version(),
        "ShimmerData-Client-Id": get_identifier(),
        "User-Agent": get_user_agent(),
    }
