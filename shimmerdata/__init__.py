# -*- coding: utf-8 -*-

__author__ = """ShimmerGames"""
__email__ = "dev@shimmergames.net"
__version__ = "1.0.0"

from shimmerdata.analytics import ShimmerData  # noqa: E402
from shimmerdata.config import BatchConfig, get_batch_config  # noqa: E402
from shimmerdata.consumers import BatchConsumer, Consumer  # noqa: E402
from shimmerdata.errors import (  # noqa: E402
    ConfigurationError,
    ConsumerClosedError,
    EncodingError,
    ShimmerDataError,
    SpoolError,
    TransportError,
    ValidationError,
)
from shimmerdata.models import Event, EventType  # noqa: E402

__all__ = [
    "ShimmerData",
    "BatchConfig",
    "get_batch_config",
    "BatchConsumer",
    "Consumer",
    "Event",
    "EventType",
    "ShimmerDataError",
    "ConfigurationError",
    "ConsumerClosedError",
    "EncodingError",
    "SpoolError",
    "TransportError",
    "ValidationError",
]
