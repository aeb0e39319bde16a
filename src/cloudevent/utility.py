from __future__ import annotations

from typing import Any, Dict, Optional

from cloudevent import validator as V
from cloudevent.codec import event_from_mapping, event_to_mapping
from cloudevent.errors import InvalidEventError
from cloudevent.schemas.event import STANDARD_PROPERTIES, STRICT_EXTENSION, CloudEvent
from cloudevent.utils.logger_util import get_logger

logger = get_logger(__name__)


def create_from_object(
    obj: Any,
    strict: Optional[bool] = None,
    only_valid: bool = False,
    skip_extensions: bool = False,
) -> CloudEvent:
    """Create a CloudEvent from a plain dict in wire form.

    Keys that are not standard attributes become extensions, unless
    ``skip_extensions`` is set. The ``time`` attribute may be a datetime or an
    RFC 3339 string.
    """
    if V.is_undefined_or_null(obj):
        raise ValueError("Object undefined or null")
    if not V.is_plain_object(obj):
        raise TypeError(f"The argument must be a dict, instead got a '{type(obj).__name__}'")

    source = obj
    if skip_extensions:
        source = {k: v for k, v in obj.items() if k in STANDARD_PROPERTIES or k == STRICT_EXTENSION}
    event = event_from_mapping(source, strict=strict)

    if only_valid and not event.is_valid(strict=strict):
        raise InvalidEventError("Unable to create a not valid CloudEvent.")
    return event


def clone_to_object(
    event: Any,
    strict: Optional[bool] = None,
    only_valid: bool = False,
    skip_extensions: bool = False,
) -> Dict[str, Any]:
    """Return a shallow dict copy of ``event`` in wire form."""
    if V.is_undefined_or_null(event):
        raise ValueError("CloudEvent undefined or null")
    if not isinstance(event, CloudEvent):
        raise TypeError(f"The argument must be a CloudEvent (or a subclass), instead got a '{type(event).__name__}'")
    if only_valid and not event.is_valid(strict=strict):
        raise InvalidEventError("Unable to clone a not valid CloudEvent.")

    obj = event_to_mapping(event)
    if skip_extensions:
        obj = {k: v for k, v in obj.items() if k in STANDARD_PROPERTIES}
    # keep the datetime, not its wire string
    if "time" in obj:
        obj["time"] = event.time
    logger.debug("CloudEvent %r cloned to a dict with %d keys", event.id, len(obj))
    return obj
