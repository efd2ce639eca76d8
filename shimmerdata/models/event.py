import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shimmerdata.errors import EncodingError
from shimmerdata.util import format_time, parse_time


class EventType(str, Enum):
    """
    Value of the ``#type`` field.
    """

    TRACK = "track"
    TRACK_UPDATE = "track_update"
    TRACK_OVERWRITE = "track_overwrite"
    USER_SET = "user_set"
    USER_UNSET = "user_unset"
    USER_SET_ONCE = "user_setOnce"
    USER_ADD = "user_add"
    USER_APPEND = "user_append"
    USER_UNIQ_APPEND = "user_uniq_append"
    USER_DEL = "user_del"


class PropertyKind(Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    MAP = "map"
    ARRAY = "array"


SCALAR_KINDS = frozenset(
    {PropertyKind.STRING, PropertyKind.INTEGER, PropertyKind.FLOAT, PropertyKind.BOOLEAN}
)
NUMBER_KINDS = frozenset({PropertyKind.INTEGER, PropertyKind.FLOAT})


def kind_of(value: Any) -> Optional[PropertyKind]:
    """
    Classify a property value, None when it is not a supported variant.
    """
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return PropertyKind.BOOLEAN
    if isinstance(value, int):
        return PropertyKind.INTEGER
    if isinstance(value, float):
        return PropertyKind.FLOAT
    if isinstance(value, str):
        return PropertyKind.STRING
    if isinstance(value, datetime):
        return PropertyKind.TIMESTAMP
    if isinstance(value, dict):
        return PropertyKind.MAP
    if isinstance(value, (list, tuple, set, frozenset)):
        return PropertyKind.ARRAY
    return None


def is_complex(value: Any) -> bool:
    return kind_of(value) not in SCALAR_KINDS


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_time(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class Event(BaseModel):
    """
    One analytics record, in the shape the collection server expects.

    Field aliases are the wire keys; optional identifiers are left out of
    the encoded form when empty.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    account_id: Optional[str] = Field(default=None, alias="#account_id")
    distinct_id: Optional[str] = Field(default=None, alias="#distinct_id")
    type: EventType = Field(alias="#type")
    time: str = Field(alias="#time")
    event_name: Optional[str] = Field(default=None, alias="#event_name")
    event_id: Optional[str] = Field(default=None, alias="#event_id")
    first_check_id: Optional[str] = Field(default=None, alias="#first_check_id")
    ip: Optional[str] = Field(default=None, alias="#ip")
    uuid: Optional[str] = Field(default=None, alias="#uuid")
    app_id: Optional[str] = Field(default=None, alias="#app_id")
    properties: Dict[str, Any] = Field(default_factory=dict)

    @field_validator(
        "account_id",
        "distinct_id",
        "event_name",
        "event_id",
        "first_check_id",
        "ip",
        "uuid",
        "app_id",
        mode="before",
    )
    @classmethod
    def _empty_as_missing(cls, value: Any) -> Any:
        return value or None

    @field_validator("time", mode="before")
    @classmethod
    def _utc_millis(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return format_time(value)
        if isinstance(value, str):
            return format_time(parse_time(value))
        return value

    @property
    def is_complex(self) -> bool:
        """True when any property is a timestamp, map or array."""
        return any(is_complex(v) for v in self.properties.values())

    def to_wire(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for name, field in type(self).model_fields.items():
            value = getattr(self, name)
            if value is None:
                continue
            data[field.alias or name] = value
        data["#type"] = self.type.value
        return data

    def encode(self) -> bytes:
        """
        Canonical encoded form: compact JSON, UTF-8.

        Raises:
            EncodingError: If a property value cannot be serialized.
        """
        try:
            return json.dumps(
                self.to_wire(),
                default=_json_default,
                ensure_ascii=False,
                allow_nan=False,
                separators=(",", ":"),
            ).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise EncodingError(f"event {self.uuid or self.event_name}: {e}")

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "Event":
        return cls.model_validate(data)
