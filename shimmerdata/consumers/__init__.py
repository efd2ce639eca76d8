from .assembler import Batch, BatchAssembler, FlushSignal, FlushTrigger
from .base import Consumer
from .batch import BatchConsumer, ConsumerMetrics, ConsumerState
from .intake import END_OF_STREAM, IntakeChannel
from .safe_list import SafeList
from .ticker import Ticker
from .transmitter import Transmitter

__all__ = [
    "Consumer",
    "BatchConsumer",
    "ConsumerMetrics",
    "ConsumerState",
    "Batch",
    "BatchAssembler",
    "FlushSignal",
    "FlushTrigger",
    "IntakeChannel",
    "END_OF_STREAM",
    "SafeList",
    "Ticker",
    "Transmitter",
]
