from .event import (
    NUMBER_KINDS,
    SCALAR_KINDS,
    Event,
    EventType,
    PropertyKind,
    is_complex,
    kind_of,
)

__all__ = [
    "Event",
    "EventType",
    "PropertyKind",
    "SCALAR_KINDS",
    "NUMBER_KINDS",
    "kind_of",
    "is_complex",
]
