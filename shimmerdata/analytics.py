"""
Public entry point of the SDK.

Builds events from application calls, validates them and hands them to a
consumer::

    consumer = BatchConsumer(get_batch_config(server_url="https://collect.example.com"))
    sd = ShimmerData(consumer)
    sd.track(account_id="42", event_name="login", properties={"channel": "ios"})
    sd.close()
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional

from shimmerdata.consumers.base import Consumer
from shimmerdata.errors import ConsumerClosedError, ValidationError
from shimmerdata.meta import LIB_NAME, get_version
from shimmerdata.models import NUMBER_KINDS, Event, EventType, PropertyKind, kind_of
from shimmerdata.util import check_pattern, format_time, generate_uuid, now, parse_time

LOG = logging.getLogger(__name__)

Properties = Dict[str, Any]

# Reserved keys moved from the properties to the event itself
_IP = "#ip"
_APP_ID = "#app_id"
_TIME = "#time"
_FIRST_CHECK_ID = "#first_check_id"
_UUID = "#uuid"


class ShimmerData:
    """
    Event facade over a consumer.

    Every method validates its input and raises ValidationError before
    anything reaches the consumer. Super properties are merged into every
    ``track*`` event; explicit properties win over dynamic super properties,
    which win over static ones.
    """

    def __init__(self, consumer: Consumer):
        self.consumer = consumer
        self._lock = threading.RLock()
        self._super_properties: Properties = {}
        self._dynamic_super_properties: Optional[Callable[[], Properties]] = None
        self._closed = False
        LOG.info("init SDK success")

    def get_super_properties(self) -> Properties:
        with self._lock:
            return dict(self._super_properties)

    def set_super_properties(self, properties: Properties) -> None:
        with self._lock:
            self._super_properties.update(properties)

    def clear_super_properties(self) -> None:
        with self._lock:
            self._super_properties = {}

    def set_dynamic_super_properties(self, action: Optional[Callable[[], Properties]]) -> None:
        """
        ``action`` runs on every ``track*`` call; keep it cheap.
        """
        with self._lock:
            self._dynamic_super_properties = action

    def get_dynamic_super_properties(self) -> Properties:
        with self._lock:
            action = self._dynamic_super_properties
        if action is None:
            return {}
        return dict(action() or {})

    def track(
        self,
        account_id: str = "",
        distinct_id: str = "",
        event_name: str = "",
        properties: Optional[Properties] = None,
    ) -> None:
        self._track(account_id, distinct_id, EventType.TRACK, event_name, "", properties)

    def track_first(
        self,
        account_id: str = "",
        distinct_id: str = "",
        event_name: str = "",
        first_check_id: str = "",
        properties: Optional[Properties] = None,
    ) -> None:
        """
        Report an event the server keeps only once per ``first_check_id``.
        """
        if not first_check_id:
            raise ValidationError("the 'first_check_id' must be provided")
        props = dict(properties or {})
        props[_FIRST_CHECK_ID] = first_check_id
        self._track(account_id, distinct_id, EventType.TRACK, event_name, "", props)

    def track_update(
        self,
        account_id: str = "",
        distinct_id: str = "",
        event_name: str = "",
        event_id: str = "",
        properties: Optional[Properties] = None,
    ) -> None:
        self._track(account_id, distinct_id, EventType.TRACK_UPDATE, event_name, event_id, properties)

    def track_overwrite(
        self,
        account_id: str = "",
        distinct_id: str = "",
        event_name: str = "",
        event_id: str = "",
        properties: Optional[Properties] = None,
    ) -> None:
        self._track(
            account_id, distinct_id, EventType.TRACK_OVERWRITE, event_name, event_id, properties
        )

    def user_set(self, account_id: str = "", distinct_id: str = "",
                 properties: Optional[Properties] = None) -> None:
        self._user(account_id, distinct_id, EventType.USER_SET, properties)

    def user_unset(self, account_id: str = "", distinct_id: str = "",
                   keys: Optional[Iterable[str]] = None) -> None:
        """
        Clear the named user properties.
        """
        keys = list(keys or [])
        if not keys:
            raise ValidationError("invalid params for user_unset: keys is empty")
        self._user(account_id, distinct_id, EventType.USER_UNSET, {k: 0 for k in keys})

    def user_unset_with_properties(self, account_id: str = "", distinct_id: str = "",
                                   properties: Optional[Properties] = None) -> None:
        if not properties:
            raise ValidationError("invalid params for user_unset: properties is empty")
        self._user(account_id, distinct_id, EventType.USER_UNSET, properties)

    def user_set_once(self, account_id: str = "", distinct_id: str = "",
                      properties: Optional[Properties] = None) -> None:
        self._user(account_id, distinct_id, EventType.USER_SET_ONCE, properties)

    def user_add(self, account_id: str = "", distinct_id: str = "",
                 properties: Optional[Properties] = None) -> None:
        """
        Accumulate numeric user properties. Only numbers are accepted.
        """
        self._user(account_id, distinct_id, EventType.USER_ADD, properties)

    def user_append(self, account_id: str = "", distinct_id: str = "",
                    properties: Optional[Properties] = None) -> None:
        self._user(account_id, distinct_id, EventType.USER_APPEND, properties)

    def user_uniq_append(self, account_id: str = "", distinct_id: str = "",
                         properties: Optional[Properties] = None) -> None:
        self._user(account_id, distinct_id, EventType.USER_UNIQ_APPEND, properties)

    def user_delete(self, account_id: str = "", distinct_id: str = "") -> None:
        """
        Delete a user. This cannot be undone.
        """
        self._user(account_id, distinct_id, EventType.USER_DEL, None)

    def user_delete_with_properties(self, account_id: str = "", distinct_id: str = "",
                                    properties: Optional[Properties] = None) -> None:
        self._user(account_id, distinct_id, EventType.USER_DEL, properties)

    def flush(self) -> None:
        self._check_open()
        self.consumer.flush()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self.consumer.close()
        LOG.info("SDK close")

    def __enter__(self) -> "ShimmerData":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise ConsumerClosedError()

    def _track(
        self,
        account_id: str,
        distinct_id: str,
        event_type: EventType,
        event_name: str,
        event_id: str,
        properties: Optional[Properties],
    ) -> None:
        if not event_name:
            raise ValidationError("the event name must be provided")
        if not event_id and event_type is not EventType.TRACK:
            raise ValidationError("the event id must be provided")

        props = self.get_super_properties()
        props.update(self.get_dynamic_super_properties())
        props["#lib"] = LIB_NAME
        props["#lib_version"] = get_version()
        props.update(properties or {})

        self._add(account_id, distinct_id, event_type, event_name, event_id, props)

    def _user(
        self,
        account_id: str,
        distinct_id: str,
        event_type: EventType,
        properties: Optional[Properties],
    ) -> None:
        if properties is None and event_type is not EventType.USER_DEL:
            raise ValidationError(
                f"invalid params for {event_type.value}: properties is missing"
            )
        self._add(account_id, distinct_id, event_type, "", "", dict(properties or {}))

    def _add(
        self,
        account_id: str,
        distinct_id: str,
        event_type: EventType,
        event_name: str,
        event_id: str,
        properties: Properties,
    ) -> None:
        self._check_open()
        if not account_id and not distinct_id:
            raise ValidationError(
                "invalid parameters: account_id and distinct_id cannot be empty at the same time"
            )
        if event_name and not check_pattern(event_name):
            raise ValidationError(f"invalid event name: {event_name}")

        ip = _pop_string(properties, _IP)
        app_id = _pop_string(properties, _APP_ID)
        first_check_id = _pop_string(properties, _FIRST_CHECK_ID)
        event_uuid = _pop_string(properties, _UUID) or generate_uuid()
        event_time = _pop_time(properties)

        strict = self.consumer.is_strict()
        for key, value in properties.items():
            if strict and not check_pattern(key):
                raise ValidationError(f"invalid property key: {key}")

            kind = kind_of(value)
            if kind is None:
                raise ValidationError(
                    f"invalid property value for {key}: {type(value).__name__} is not supported"
                )
            if event_type is EventType.USER_ADD and kind not in NUMBER_KINDS:
                raise ValidationError(
                    "invalid property value: only numbers is supported by user_add"
                )
            if kind is PropertyKind.TIMESTAMP:
                properties[key] = format_time(value)

        event = Event(
            account_id=account_id,
            distinct_id=distinct_id,
            type=event_type,
            time=event_time,
            event_name=event_name,
            event_id=event_id,
            first_check_id=first_check_id,
            ip=ip,
            uuid=event_uuid,
            app_id=app_id,
            properties=properties,
        )
        self.consumer.add(event)


def _pop_string(properties: Properties, key: str) -> str:
    if key not in properties:
        return ""
    value = properties.pop(key)
    if not isinstance(value, str):
        raise ValidationError(f"invalid data type of key:{key}, value:{value!r}")
    return value


def _pop_time(properties: Properties) -> str:
    value = properties.pop(_TIME, None)
    if isinstance(value, datetime):
        return format_time(value)
    if isinstance(value, str):
        try:
            return format_time(parse_time(value))
        except ValueError:
            raise ValidationError(f"#time format should be YYYY-MM-DD HH:MM:SS.mmm, got {value!r}")
    return now()
