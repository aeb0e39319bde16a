"""CloudEvents 1.0 in JSON format.

Create events with :class:`CloudEvent`, check them with
:func:`validate_event`, and move them to and from JSON with the codec and
batch helpers.
"""

from cloudevent.batch import (
    deserialize_events,
    get_event,
    get_events,
    is_batch,
    is_valid_batch,
    serialize_events,
    validate_batch,
)
from cloudevent.codec import deserialize_event, event_from_wire, serialize_event
from cloudevent.errors import (
    AttributeTypeError,
    AttributeValueError,
    BatchError,
    CloudEventError,
    ConstructionError,
    DeserializationError,
    EventSizeError,
    InvalidEventError,
    SerializationError,
)
from cloudevent.schemas.event import CloudEvent, DataType, EventOptions
from cloudevent.utility import clone_to_object, create_from_object
from cloudevent.validation import is_valid_event, validate_event
from cloudevent.validator import UNSET

__version__ = "0.1.0"

__all__ = [
    "UNSET",
    "AttributeTypeError",
    "AttributeValueError",
    "BatchError",
    "CloudEvent",
    "CloudEventError",
    "ConstructionError",
    "DataType",
    "DeserializationError",
    "EventOptions",
    "EventSizeError",
    "InvalidEventError",
    "SerializationError",
    "clone_to_object",
    "create_from_object",
    "deserialize_event",
    "deserialize_events",
    "event_from_wire",
    "get_event",
    "get_events",
    "is_batch",
    "is_valid_batch",
    "is_valid_event",
    "serialize_event",
    "serialize_events",
    "validate_batch",
    "validate_event",
]
