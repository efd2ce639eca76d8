from .batch import BatchConfig, get_batch_config

__all__ = [
    "BatchConfig",
    "get_batch_config",
]
