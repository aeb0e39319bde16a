from __future__ import annotations

import copy
import json
import re
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool, ValidationError

from cloudevent import transformer as T
from cloudevent import validator as V
from cloudevent.errors import ConstructionError
from cloudevent.utils.logger_util import get_logger
from cloudevent.validator import UNSET

logger = get_logger(__name__)

SPEC_VERSION = "1.0"
DATACONTENTTYPE_DEFAULT = "application/json"
MEDIA_TYPE = "application/cloudevents+json"
STRICT_EXTENSION = "strictvalidation"

STANDARD_PROPERTIES = frozenset({
    "id",
    "type",
    "source",
    "specversion",
    "data",
    "data_base64",
    "datacontenttype",
    "dataschema",
    "time",
    "subject",
})

_EXTENSION_NAME_RE = re.compile(r"^[a-z0-9]{1,20}$")


class DataType(str, Enum):
    TEXT = "Text"
    BINARY = "Binary"
    UNKNOWN = "Unknown"


class EventOptions(BaseModel):
    """Optional attributes given when creating a CloudEvent.

    Every attribute left as ``UNSET`` takes its default; an explicit ``None``
    is kept as ``None`` on the event.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True, extra="forbid")

    time: Any = UNSET
    data_base64: Any = Field(UNSET, validation_alias=AliasChoices("data_base64", "datainbase64"))
    datacontenttype: Any = UNSET
    dataschema: Any = UNSET
    subject: Any = UNSET
    strict: Optional[StrictBool] = False


def _coerce_options(options: Any) -> EventOptions:
    if options is None or options is UNSET:
        return EventOptions()
    if isinstance(options, EventOptions):
        return options
    if not isinstance(options, Mapping):
        raise TypeError(f"The argument 'options' must be a mapping, instead got a '{type(options).__name__}'")
    try:
        return EventOptions.model_validate(dict(options))
    except ValidationError as exc:
        raise ConstructionError(f"Unable to create CloudEvent instance, wrong options: {exc}") from exc


def _fail(message: str) -> ConstructionError:
    logger.debug("CloudEvent construction rejected: %s", message)
    return ConstructionError(f"Unable to create CloudEvent instance, {message}")


def _or_none(value: Any) -> Any:
    return None if value is UNSET else value


def _clone_data(value: Any) -> Any:
    # shallow copy only: nested containers stay shared with the caller
    if V.is_undefined_or_null(value):
        return None
    if V.is_value(value):
        return value
    return copy.copy(value)


def _checked_extensions(extensions: Any, strict: bool) -> Dict[str, Any]:
    if V.is_undefined_or_null(extensions):
        return {}
    if not isinstance(extensions, Mapping):
        raise TypeError(f"The argument 'extensions' must be a mapping, instead got a '{type(extensions).__name__}'")
    if STRICT_EXTENSION in extensions:
        raise _fail(f"the extension '{STRICT_EXTENSION}' is reserved")
    if strict:
        if len(extensions) < 1:
            raise _fail("extensions must contain at least 1 property")
        collisions = sorted(k for k in extensions if not is_extension_property(k))
        if collisions:
            raise _fail(f"extensions can not override standard properties: {collisions}")
    return dict(extensions)


class CloudEvent(BaseModel):
    """A CloudEvent, version 1.0.

    Create it with ``CloudEvent(id, type, source, data, options, extensions)``.
    Without the ``strict`` option nothing is enforced at creation time and an
    incomplete event simply fails validation later; with ``strict=True`` the
    mandatory attributes and the extension rules are checked right away.

    Extensions are kept in ``extensions`` and flattened next to the standard
    attributes when serialized.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: Any = None
    type: Any = None
    source: Any = None
    specversion: str = SPEC_VERSION
    data: Any = None
    data_base64: Any = None
    datacontenttype: Any = DATACONTENTTYPE_DEFAULT
    dataschema: Any = None
    time: Any = None
    subject: Any = None
    # keys are not checked here, bad names are reported by validation
    extensions: Dict[Any, Any] = Field(default_factory=dict)

    def __init__(self, id: Any = UNSET, type: Any = UNSET, source: Any = UNSET, data: Any = UNSET,
                 options: Any = None, extensions: Any = None):
        opts = _coerce_options(options)
        strict = opts.strict is True
        if strict:
            if not id or not type or not source:
                raise _fail("mandatory field missing")
            if V.is_defined_and_not_null(data) and V.is_defined_and_not_null(opts.data_base64):
                raise _fail("data and data_base64 can not be both defined")
        ext = _checked_extensions(extensions, strict)

        time = opts.time
        if time is UNSET:
            time = datetime.now(timezone.utc)
        datacontenttype = opts.datacontenttype
        if datacontenttype is UNSET:
            datacontenttype = DATACONTENTTYPE_DEFAULT

        super().__init__(
            id=_or_none(id),
            type=_or_none(type),
            source=_or_none(source),
            data=_clone_data(data),
            data_base64=_or_none(opts.data_base64),
            datacontenttype=datacontenttype,
            dataschema=_or_none(opts.dataschema),
            time=time,
            subject=_or_none(opts.subject),
            extensions=ext,
        )
        if strict:
            set_strict_extension(self, True)

    @staticmethod
    def version() -> str:
        return SPEC_VERSION

    @staticmethod
    def datacontenttype_default() -> str:
        return DATACONTENTTYPE_DEFAULT

    @staticmethod
    def media_type() -> str:
        return MEDIA_TYPE

    @staticmethod
    def is_cloud_event(obj: Any) -> bool:
        """Tell if ``obj`` is a CloudEvent (or subclass) instance; raises on None."""
        if V.is_undefined_or_null(obj):
            raise ValueError("CloudEvent undefined or null")
        return isinstance(obj, CloudEvent)

    @staticmethod
    def is_datacontenttype_json(datacontenttype: Any) -> bool:
        """Tell if the media type is in the JSON family (json, or a '+json' suffix)."""
        if not V.is_string_not_empty(datacontenttype):
            return False
        media = datacontenttype.split(";", 1)[0].strip().lower()
        return media in ("application/json", "text/json") or media.endswith("+json")

    @staticmethod
    def get_json_schema() -> Dict[str, Any]:
        """JSON Schema for the standard attributes; extensions go in additionalProperties."""
        return {
            "title": "CloudEvent Schema with required fields",
            "type": "object",
            "properties": {
                "id": {"type": "string", "minLength": 1},
                "type": {"type": "string", "minLength": 1},
                "source": {"type": "string", "format": "uri-reference", "minLength": 1},
                "specversion": {"type": "string", "minLength": 1},
                "datacontenttype": {"type": "string"},
                "dataschema": {"type": "string", "format": "uri"},
                "time": {"type": "string", "format": "date-time"},
                "subject": {"type": "string", "minLength": 1},
                "data_base64": {"type": "string", "contentEncoding": "base64"},
            },
            "required": ["specversion", "id", "type", "source"],
            "additionalProperties": True,
        }

    @property
    def is_strict(self) -> bool:
        return is_strict_event(self)

    @property
    def has_default_datacontenttype(self) -> bool:
        # a null content type implies the default one
        return self.datacontenttype is None or self.datacontenttype == DATACONTENTTYPE_DEFAULT

    @property
    def is_json_datacontenttype(self) -> bool:
        return self.has_default_datacontenttype or self.is_datacontenttype_json(self.datacontenttype)

    @property
    def data_type(self) -> DataType:
        if V.is_defined_and_not_null(self.data_base64):
            return DataType.BINARY
        if V.is_defined_and_not_null(self.data):
            return DataType.TEXT
        return DataType.UNKNOWN

    @property
    def payload(self) -> Any:
        """The decoded view of ``data`` (or ``data_base64``), always a fresh value."""
        if V.is_defined_and_not_null(self.data) and not V.is_defined_and_not_null(self.data_base64):
            if self.is_json_datacontenttype and V.is_string(self.data):
                try:
                    return json.loads(self.data)
                except ValueError:
                    return self.data
            return _clone_data(self.data)
        if V.is_defined_and_not_null(self.data_base64):
            try:
                return T.string_from_base64(self.data_base64, strict=False)
            except (TypeError, ValueError) as exc:
                logger.debug("CloudEvent %r data_base64 not decodable, returned as is: %s", self.id, exc)
                return self.data_base64
        return self.data

    def get_extensions(self) -> Optional[Dict[str, Any]]:
        return get_extensions(self)

    def validate(self, strict: Optional[bool] = None, dataschema_validator=None) -> list:
        from cloudevent.validation import validate_event

        return validate_event(self, strict=strict, dataschema_validator=dataschema_validator)

    def is_valid(self, strict: Optional[bool] = None, dataschema_validator=None) -> bool:
        from cloudevent.validation import is_valid_event

        return is_valid_event(self, strict=strict, dataschema_validator=dataschema_validator)

    def serialize(self, **options) -> str:
        from cloudevent.codec import serialize_event

        return serialize_event(self, **options)

    @classmethod
    def deserialize(cls, text: str, **options) -> "CloudEvent":
        from cloudevent.codec import deserialize_event

        return deserialize_event(text, event_class=cls, **options)

    def __str__(self) -> str:
        return (
            f"CloudEvent[specversion: {self.specversion}, {T.dump_object(self.id, 'id')}, "
            f"{T.dump_object(self.type, 'type')}, {T.dump_object(self.data, 'data')}, ...]"
        )


def is_extension_property(name: Any) -> bool:
    return name not in STANDARD_PROPERTIES


def is_extension_name_valid(name: Any) -> bool:
    return V.is_string(name) and _EXTENSION_NAME_RE.match(name) is not None


def is_extension_value_valid(value: Any) -> bool:
    return value is None or V.is_value(value)


def is_strict_event(obj: Any) -> bool:
    """Tell if the strict flag is set on a CloudEvent or on its mapping form."""
    if V.is_undefined_or_null(obj):
        raise ValueError("CloudEvent undefined or null")
    if isinstance(obj, CloudEvent):
        return obj.extensions.get(STRICT_EXTENSION) is True
    if isinstance(obj, Mapping):
        return obj.get(STRICT_EXTENSION) is True
    return False


def set_strict_extension(obj: Any, strict: bool) -> Any:
    if not V.is_boolean(strict):
        raise TypeError(f"The strict flag must be a boolean, instead got a '{type(strict).__name__}'")
    if isinstance(obj, CloudEvent):
        obj.extensions[STRICT_EXTENSION] = strict
    elif isinstance(obj, dict):
        obj[STRICT_EXTENSION] = strict
    else:
        raise TypeError(f"Unable to set the strict flag on a '{type(obj).__name__}'")
    return obj


def get_extensions(obj: Any) -> Optional[Dict[str, Any]]:
    """Return a fresh dict with the extensions of ``obj``, or None if it has none.

    ``obj`` is a CloudEvent or a plain mapping in wire form (then any key that
    is not a standard attribute is an extension).
    """
    if V.is_undefined_or_null(obj):
        raise ValueError("CloudEvent undefined or null")
    if isinstance(obj, CloudEvent):
        extensions = dict(obj.extensions)
    elif isinstance(obj, Mapping):
        extensions = {k: v for k, v in obj.items() if is_extension_property(k)}
    else:
        raise TypeError(f"Unable to get extensions from a '{type(obj).__name__}'")
    return extensions or None


def set_extensions(obj: Any, extensions: Optional[Mapping[str, Any]]) -> Any:
    """Merge ``extensions`` into a CloudEvent or a plain dict, and return it."""
    if V.is_undefined_or_null(obj):
        raise ValueError("CloudEvent undefined or null")
    if V.is_undefined_or_null(extensions):
        return obj
    if not isinstance(extensions, Mapping):
        raise TypeError(f"The argument 'extensions' must be a mapping, instead got a '{type(extensions).__name__}'")
    collisions = sorted(k for k in extensions if not is_extension_property(k))
    if collisions:
        raise ValueError(f"Extensions can not override standard properties: {collisions}")
    if isinstance(obj, CloudEvent):
        if STRICT_EXTENSION in extensions:
            raise ValueError(f"The extension '{STRICT_EXTENSION}' is reserved")
        obj.extensions.update(extensions)
    elif isinstance(obj, dict):
        obj.update(extensions)
    else:
        raise TypeError(f"Unable to set extensions on a '{type(obj).__name__}'")
    return obj
