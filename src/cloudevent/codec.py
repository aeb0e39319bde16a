"""JSON serialization and deserialization of CloudEvent instances."""

from __future__ import annotations

import json
from collections.abc import Mapping, Set
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Type

from cloudevent import transformer as T
from cloudevent import validator as V
from cloudevent.errors import DeserializationError, EventSizeError, InvalidEventError, SerializationError
from cloudevent.schemas.event import (
    STANDARD_PROPERTIES,
    STRICT_EXTENSION,
    CloudEvent,
    get_extensions,
    is_strict_event,
)
from cloudevent.utils.logger_util import get_logger
from cloudevent.validator import UNSET

logger = get_logger(__name__)

SIZE_LIMIT_BYTES = 64 * 1024

# standard attributes in wire order; extensions follow
_WIRE_ORDER = ("id", "type", "source", "data", "data_base64", "specversion",
               "datacontenttype", "time", "dataschema", "subject")
# attributes with a default: a None here can only be an explicit null, so keep it
_NULLABLE_ON_WIRE = ("datacontenttype", "time")


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return T.timestamp_to_string(value)
    if isinstance(value, Set):
        return list(value)
    if isinstance(value, Mapping):
        return dict(value)
    raise TypeError(f"Object of type '{type(value).__name__}' is not JSON serializable")


def _to_json(obj: Any, indent: Optional[int] = None) -> str:
    return json.dumps(obj, default=_json_default, ensure_ascii=False, indent=indent)


def _check_size(text: str) -> None:
    size = len(text.encode("utf-8"))
    if size >= SIZE_LIMIT_BYTES:
        raise EventSizeError(size, SIZE_LIMIT_BYTES)


def event_to_mapping(event: CloudEvent) -> Dict[str, Any]:
    """Return the wire form of ``event``: standard attributes plus flattened extensions."""
    out: Dict[str, Any] = {}
    for name in _WIRE_ORDER:
        value = getattr(event, name)
        if value is None and name not in _NULLABLE_ON_WIRE:
            continue
        if name == "time" and V.is_date(value):
            value = T.timestamp_to_string(value)
        out[name] = value
    for name, value in (event.extensions or {}).items():
        # a colliding extension never replaces a standard attribute
        if name not in out and name not in STANDARD_PROPERTIES:
            out[name] = value
    return out


def _encode_data(event: CloudEvent, encoder: Any, encoded_data: Any) -> Any:
    if encoder is not None:
        if not V.is_function(encoder):
            raise TypeError(
                f"Missing or wrong encoder function: '{encoder}' for the given content type: '{event.datacontenttype}'."
            )
        encoded = encoder(event.payload)
    elif encoded_data is not None:
        encoded = encoded_data
    elif V.is_string(event.data):
        encoded = event.data
    elif V.is_value(event.data):
        encoded = json.dumps(event.data)
    else:
        raise SerializationError(
            "Missing encoder function: use encoder function or already encoded data "
            f"with the given content type: '{event.datacontenttype}'."
        )
    if not V.is_string_not_empty(encoded):
        raise SerializationError(
            f"Missing or wrong encoded data: '{encoded}' for the given content type: '{event.datacontenttype}'."
        )
    return encoded


def serialize_event(
    event: Any,
    encoder: Optional[Callable[[Any], str]] = None,
    encoded_data: Optional[str] = None,
    only_valid: bool = False,
    only_if_less_than_64kb: bool = False,
    indent: Optional[int] = None,
) -> str:
    """Serialize ``event`` to a JSON string.

    With the default content type the event is written as is. With any other
    content type the data is encoded first: a callable ``encoder`` (given the
    payload) wins over ``encoded_data``; without both, primitive data is
    written as a string. Then ``only_valid`` and ``only_if_less_than_64kb``
    are checked on what is actually serialized.
    """
    if V.is_undefined_or_null(event):
        raise SerializationError("CloudEvent undefined or null")
    if not isinstance(event, CloudEvent):
        raise TypeError(f"The argument must be a CloudEvent (or a subclass), instead got a '{type(event).__name__}'")

    target = event
    if not event.has_default_datacontenttype:
        if V.is_defined_and_not_null(event.data) or encoder is not None or encoded_data is not None:
            encoded = _encode_data(event, encoder, encoded_data)
            target = event.model_copy(update={"data": encoded})
            logger.debug("CloudEvent %r data encoded for content type '%s'", event.id, event.datacontenttype)

    if only_valid and not target.is_valid():
        raise InvalidEventError("Unable to serialize a not valid CloudEvent.")

    try:
        text = _to_json(event_to_mapping(target), indent=indent)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Unable to serialize CloudEvent {event.id!r}: {exc}") from exc

    if only_if_less_than_64kb:
        _check_size(text)
    return text


def _option(obj: Mapping, name: str) -> Any:
    # absent key means "not given", so the constructor default applies
    return obj[name] if name in obj else UNSET


def event_from_mapping(
    obj: Mapping,
    strict: Optional[bool] = None,
    timezone_offset: int = 0,
    event_class: Type[CloudEvent] = CloudEvent,
) -> CloudEvent:
    """Build a CloudEvent from its wire form (a mapping from parsed JSON)."""
    if not isinstance(obj, Mapping):
        raise TypeError(f"The argument must be a mapping, instead got a '{type(obj).__name__}'")

    time = _option(obj, "time")
    if V.is_string(time):
        try:
            time = T.timestamp_from_string(time, timezone_offset)
        except (TypeError, ValueError) as exc:
            raise DeserializationError(f"Unable to parse the attribute 'time': '{time}'") from exc

    extensions = get_extensions(obj) or {}
    extensions.pop(STRICT_EXTENSION, None)
    is_strict = is_strict_event(obj) or strict is True

    return event_class(
        _option(obj, "id"),
        _option(obj, "type"),
        _option(obj, "source"),
        _option(obj, "data"),
        {
            "time": time,
            "data_base64": _option(obj, "data_base64"),
            "datacontenttype": _option(obj, "datacontenttype"),
            "dataschema": _option(obj, "dataschema"),
            "subject": _option(obj, "subject"),
            "strict": is_strict,
        },
        extensions or None,
    )


def _sizing_default(value: Any) -> Any:
    # decoded data may not be JSON friendly, only its size matters here
    if isinstance(value, (datetime, Set, Mapping)):
        return _json_default(value)
    return str(value)


def _check_event_size(event: CloudEvent) -> None:
    _check_size(json.dumps(event_to_mapping(event), default=_sizing_default, ensure_ascii=False))


def event_from_wire(
    parsed: Any,
    decoder: Optional[Callable[[Any], Any]] = None,
    decoded_data: Any = None,
    only_valid: bool = False,
    only_if_less_than_64kb: bool = False,
    timezone_offset: int = 0,
    strict: Optional[bool] = None,
    event_class: Type[CloudEvent] = CloudEvent,
) -> CloudEvent:
    """Build a CloudEvent from an already parsed JSON object.

    The ``specversion`` must match, then the data is decoded (for a content
    type other than the default) and the gates of :func:`deserialize_event`
    are applied to the rebuilt event.
    """
    if not V.is_plain_object(parsed):
        raise DeserializationError(
            f"The given value is not a JSON object representation, but a '{type(parsed).__name__}'"
        )
    if parsed.get("specversion") != CloudEvent.version():
        raise DeserializationError(
            f"Unable to deserialize, specversion '{parsed.get('specversion')}' is not '{CloudEvent.version()}'"
        )

    event = event_from_mapping(parsed, strict=strict, timezone_offset=timezone_offset, event_class=event_class)

    if not event.has_default_datacontenttype:
        if decoder is not None:
            if not V.is_function(decoder):
                raise TypeError(
                    f"Missing or wrong decoder function: '{decoder}' for the given content type: '{event.datacontenttype}'."
                )
            event.data = decoder(parsed.get("data"))
        elif decoded_data is not None:
            event.data = decoded_data
        logger.debug("CloudEvent %r data decoded for content type '%s'", event.id, event.datacontenttype)

    if only_valid and not event.is_valid():
        raise InvalidEventError("Unable to deserialize a not valid CloudEvent.")
    if only_if_less_than_64kb:
        _check_event_size(event)
    return event


def deserialize_event(
    text: Any,
    decoder: Optional[Callable[[Any], Any]] = None,
    decoded_data: Any = None,
    only_valid: bool = False,
    only_if_less_than_64kb: bool = False,
    timezone_offset: int = 0,
    strict: Optional[bool] = None,
    event_class: Type[CloudEvent] = CloudEvent,
) -> CloudEvent:
    """Parse a JSON string into a CloudEvent.

    Mirrors :func:`serialize_event`: with a content type other than the default
    a callable ``decoder`` (given the raw data) wins over ``decoded_data``, and
    the result replaces ``data``. The size limit is checked on the rebuilt
    event, after decoding.
    """
    if V.is_undefined_or_null(text):
        raise DeserializationError("Serialized CloudEvent undefined or null")
    if not V.is_string_not_empty(text):
        raise DeserializationError(
            f"Missing or wrong serialized data: '{text}' must be a string and not a: '{type(text).__name__}'."
        )

    try:
        parsed = json.loads(text)
    except ValueError as exc:
        raise DeserializationError(f"Unable to parse the given string as JSON: {exc}") from exc

    return event_from_wire(
        parsed,
        decoder=decoder,
        decoded_data=decoded_data,
        only_valid=only_valid,
        only_if_less_than_64kb=only_if_less_than_64kb,
        timezone_offset=timezone_offset,
        strict=strict,
        event_class=event_class,
    )
