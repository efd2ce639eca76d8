from typing import Protocol

from shimmerdata.models import Event


class Consumer(Protocol):
    """
    What the facade needs from a consumer.
    """

    def add(self, event: Event) -> None: ...
    def flush(self) -> None: ...
    def close(self) -> None: ...
    def is_strict(self) -> bool: ...
