"""Batches of CloudEvent instances, in the JSON batch format.

A batch is a plain list (or tuple) of arbitrary values: only the CloudEvent
instances in it are considered, anything else is skipped without notice.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Iterator, List, Optional

from cloudevent import validator as V
from cloudevent.codec import event_from_wire, serialize_event
from cloudevent.errors import AttributeTypeError, AttributeValueError, BatchError, DeserializationError
from cloudevent.schemas.event import CloudEvent
from cloudevent.utils.logger_util import get_logger
from cloudevent.validation import is_valid_event, validate_event

logger = get_logger(__name__)

MEDIA_TYPE = "application/cloudevents-batch+json"

# callback(index, event, error): error is None when the item was processed
BatchCallback = Callable[[int, Any, Optional[Exception]], None]


def media_type() -> str:
    return MEDIA_TYPE


def is_batch(batch: Any) -> bool:
    if V.is_undefined_or_null(batch):
        raise ValueError("Batch undefined or null")
    return V.is_array(batch)


def validate_batch(batch: Any, strict: Optional[bool] = None) -> List[Exception]:
    """Validate every item of ``batch`` and return all the findings, in order.

    Undefined or ``None`` items are ignored, any other non CloudEvent item
    gives its own type finding. A single CloudEvent is validated too, but in
    strict mode it gets an extra finding for not being in a list.
    """
    if V.is_undefined_or_null(batch):
        return [AttributeValueError("Batch undefined or null")]
    if V.is_array(batch):
        ve: List[Exception] = []
        for item in batch:
            if V.is_undefined_or_null(item):
                continue
            ve.extend(validate_event(item, strict=strict))
        return ve
    if isinstance(batch, CloudEvent):
        ve = []
        if strict is True:
            ve.append(AttributeTypeError(
                "The argument 'batch' must be an array, instead got a CloudEvent instance (or a subclass)",
                "batch",
            ))
        ve.extend(validate_event(batch, strict=strict))
        return ve
    return [AttributeTypeError(
        "The argument 'batch' must be an array or a CloudEvent instance (or a subclass), "
        f"instead got a '{type(batch).__name__}'",
        "batch",
    )]


def is_valid_batch(batch: Any, strict: Optional[bool] = None) -> bool:
    return len(validate_batch(batch, strict=strict)) == 0


def get_event(batch: Any, only_valid: bool = False, strict: Optional[bool] = None) -> Iterator[CloudEvent]:
    """Yield the CloudEvent items of ``batch``, optionally only the valid ones."""
    if not is_batch(batch):
        raise TypeError("The given batch is not a batch of CloudEvent")
    for item in batch:
        if not isinstance(item, CloudEvent):
            continue
        if only_valid and not is_valid_event(item, strict=strict):
            continue
        yield item


def get_events(batch: Any, only_valid: bool = False, strict: Optional[bool] = None) -> List[CloudEvent]:
    return list(get_event(batch, only_valid=only_valid, strict=strict))


def _notify(callback: Optional[BatchCallback], index: int, event: Any, error: Optional[Exception]) -> None:
    if callback is not None:
        callback(index, event, error)


def serialize_events(
    batch: Any,
    only_valid: bool = False,
    strict: Optional[bool] = None,
    log_error: bool = False,
    throw_error: bool = False,
    pretty_print: bool = False,
    callback: Optional[BatchCallback] = None,
    **options: Any,
) -> str:
    """Serialize the CloudEvent items of ``batch`` into a JSON array.

    An item that fails serialization is written as ``null``; with ``log_error``
    the failure is logged too, and with ``throw_error`` the whole batch is
    aborted with a :class:`BatchError`. Other keyword arguments go to
    :func:`cloudevent.codec.serialize_event`.
    """
    if not is_batch(batch):
        raise TypeError("The given batch is not a batch of CloudEvent")

    indent = 2 if pretty_print else None
    parts: List[str] = []
    for index, event in enumerate(get_event(batch, only_valid=only_valid, strict=strict)):
        try:
            parts.append(serialize_event(event, indent=indent, **options))
        except Exception as exc:
            parts.append("null")
            if log_error:
                logger.error("Unable to serialize CloudEvent number %d (id %r): %s", index, event.id, exc)
            _notify(callback, index, event, exc)
            if throw_error:
                raise BatchError(
                    f"Unable to serialize CloudEvent number {index}, error detail: {exc}", index
                ) from exc
            continue
        _notify(callback, index, event, None)

    logger.debug("Serialized %d CloudEvent in a batch", len(parts))
    if pretty_print:
        return "[\n" + ",\n".join(parts) + "\n]"
    return "[" + ", ".join(parts) + "]"


def deserialize_events(
    text: Any,
    only_valid: bool = False,
    strict: Optional[bool] = None,
    log_error: bool = False,
    throw_error: bool = False,
    callback: Optional[BatchCallback] = None,
    timezone_offset: int = 0,
    decoder: Optional[Callable[[Any], Any]] = None,
    decoded_data: Any = None,
    only_if_less_than_64kb: bool = False,
) -> List[Optional[CloudEvent]]:
    """Parse a JSON array into a list of CloudEvent.

    Items that are not JSON objects are skipped. Every other item goes through
    :func:`cloudevent.codec.event_from_wire`, so it must carry the right
    ``specversion`` and the decoding and size options apply to it. An item
    that can not be turned into a CloudEvent gives a ``None`` placeholder (or
    aborts the batch with ``throw_error``); with ``only_valid`` invalid events
    are left out.
    """
    if not V.is_string_not_empty(text):
        raise DeserializationError(
            f"Missing or wrong serialized data: '{text}' must be a string and not a: '{type(text).__name__}'."
        )

    parsed: Any = None
    try:
        parsed = json.loads(text)
    except ValueError as exc:
        if log_error:
            logger.error("Unable to parse the given string as a batch: %s", exc)
        if throw_error:
            raise BatchError(f"Unable to deserialize the given string to a batch, error detail: {exc}") from exc
    if not V.is_array(parsed):
        raise TypeError("The given string is not an array representation")

    events: List[Optional[CloudEvent]] = []
    index = 0
    for item in parsed:
        if not V.is_plain_object(item):
            continue
        try:
            event = event_from_wire(
                item,
                decoder=decoder,
                decoded_data=decoded_data,
                only_if_less_than_64kb=only_if_less_than_64kb,
                timezone_offset=timezone_offset,
                strict=strict,
            )
        except Exception as exc:
            events.append(None)
            if log_error:
                logger.error("Unable to create CloudEvent number %d: %s", index, exc)
            _notify(callback, index, None, exc)
            if throw_error:
                raise BatchError(
                    f"Unable to create CloudEvent number {index}, error detail: {exc}", index
                ) from exc
            index += 1
            continue
        if not only_valid or is_valid_event(event, strict=strict):
            events.append(event)
        _notify(callback, index, event, None)
        index += 1

    logger.debug("Deserialized %d items from a batch", len(events))
    return events
