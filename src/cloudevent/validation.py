"""Validation of CloudEvent instances.

Validation never raises for a CloudEvent argument: every rule appends its
finding (an exception instance) to a list, and an empty list means valid.
Standard rules always apply; the strict rules apply when ``strict`` is True,
or when ``strict`` is None and the event itself was created in strict mode.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional

from cloudevent import validator as V
from cloudevent.errors import AttributeTypeError, AttributeValueError
from cloudevent.schemas.event import (
    CloudEvent,
    is_extension_name_valid,
    is_extension_property,
    is_extension_value_valid,
)
from cloudevent.utils.logger_util import get_logger

logger = get_logger(__name__)

DataschemaValidator = Callable[[Any, Any], bool]


def _standard_findings(event: CloudEvent) -> List[Optional[Exception]]:
    ve: List[Optional[Exception]] = [
        V.ensure_is_string_not_empty(event.id, "id"),
        V.ensure_is_string_not_empty(event.type, "type"),
        V.ensure_is_string_not_empty(event.source, "source"),
    ]
    if V.is_defined_and_not_null(event.dataschema):
        ve.append(V.ensure_is_string_not_empty(event.dataschema, "dataschema"))
    if V.is_defined_and_not_null(event.subject):
        ve.append(V.ensure_is_string_not_empty(event.subject, "subject"))
    if V.is_defined_and_not_null(event.data_base64):
        ve.append(V.ensure_is_string_not_empty(event.data_base64, "data_base64"))
        if V.is_defined_and_not_null(event.data):
            ve.append(AttributeValueError("The attributes 'data' and 'data_base64' are mutually exclusive", "data"))
    return ve


def _data_findings(event: CloudEvent) -> List[Optional[Exception]]:
    data = event.data
    if not V.is_defined_and_not_null(data):
        return []
    if event.has_default_datacontenttype:
        if V.is_object_or_collection_or_array_not_value(data) or V.is_json_string(data):
            return []
        return [AttributeTypeError(
            "The object 'data' must be an object, a collection or a JSON string "
            f"for the content type '{event.datacontenttype}'",
            "data",
        )]
    if V.is_object_or_collection_or_array_not_value(data) or V.is_value(data):
        return []
    return [AttributeTypeError(
        "The object 'data' must be an object, a collection or a value "
        f"for the content type '{event.datacontenttype}'",
        "data",
    )]


def _dataschema_findings(event: CloudEvent, dataschema_validator: Any) -> List[Optional[Exception]]:
    if dataschema_validator is None:
        return []
    err = V.ensure_is_function(dataschema_validator, "dataschema_validator")
    if err is not None:
        return [err]
    try:
        result = dataschema_validator(event.data, event.dataschema)
    except Exception as exc:
        logger.debug("dataschema validator raised for event %r: %s", event.id, exc)
        return [AttributeValueError(f"Validation error from the given dataschema validator: {exc}", "data")]
    if result is False:
        return [AttributeValueError(
            f"The object 'data' does not match the schema '{event.dataschema}'", "data"
        )]
    return []


def _extension_findings(event: CloudEvent) -> List[Optional[Exception]]:
    ve: List[Optional[Exception]] = []
    for name, value in (event.extensions or {}).items():
        if not is_extension_property(name):
            ve.append(AttributeValueError(
                f"The extension '{name}' can not override a standard property", str(name)
            ))
            continue
        if not is_extension_name_valid(name):
            ve.append(AttributeValueError(
                f"The extension name '{name}' is not valid, it must be lowercase alphanumeric (max 20 chars)",
                str(name),
            ))
        if not is_extension_value_valid(value):
            ve.append(AttributeTypeError(
                f"The extension '{name}' has a value of type '{type(value).__name__}', "
                "but only string, boolean, number or null are allowed",
                str(name),
            ))
    return ve


def _strict_findings(event: CloudEvent, dataschema_validator: Any) -> List[Optional[Exception]]:
    ve: List[Optional[Exception]] = [
        V.ensure_is_version(event.specversion, "specversion"),
        V.ensure_is_uri(event.source, "source"),
        V.ensure_is_date_past(event.time, "time"),
        V.ensure_is_string_not_empty(event.datacontenttype, "datacontenttype"),
    ]
    if V.is_defined_and_not_null(event.dataschema):
        ve.append(V.ensure_is_uri(event.dataschema, "dataschema"))
    ve.extend(_dataschema_findings(event, dataschema_validator))
    ve.extend(_data_findings(event))
    ve.extend(_extension_findings(event))
    return ve


def validate_event(
    event: Any,
    strict: Optional[bool] = None,
    dataschema_validator: Optional[DataschemaValidator] = None,
) -> List[Exception]:
    """Validate ``event`` and return the list of findings (empty when valid)."""
    if V.is_undefined_or_null(event):
        return [AttributeValueError("CloudEvent undefined or null")]
    if not isinstance(event, CloudEvent):
        return [V.ensure_is_class(event, CloudEvent, "CloudEvent_Subclass")]

    effective_strict = strict if strict is not None else event.is_strict
    ve = _standard_findings(event)
    if effective_strict is True:
        ve.extend(_strict_findings(event, dataschema_validator))

    findings = [e for e in ve if e is not None]
    if findings:
        logger.debug("CloudEvent %r has %d validation errors (strict=%s)", event.id, len(findings), effective_strict)
    return findings


def is_valid_event(
    event: Any,
    strict: Optional[bool] = None,
    dataschema_validator: Optional[DataschemaValidator] = None,
) -> bool:
    return len(validate_event(event, strict=strict, dataschema_validator=dataschema_validator)) == 0


def dump_validation_results(event: Any, strict: Optional[bool] = None, name: str = "noname") -> str:
    """Return a human readable summary of the validation of ``event``."""
    findings = validate_event(event, strict=strict)
    lines = [f"Validation results for '{name}': {len(findings)} errors"]
    for e in findings:
        lines.append(f"- {type(e).__name__}: {e}")
    return "\n".join(lines)
