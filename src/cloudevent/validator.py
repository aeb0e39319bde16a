"""Generic predicates used to validate CloudEvent attributes.

Every ``is_*`` function is total: it answers with a boolean and never raises.
The ``ensure_*`` variants return ``None`` when the check passes, or an
exception instance describing the failure; callers collect them in a list
instead of branching on each one.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping, Set
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urljoin

from pydantic import AnyUrl, TypeAdapter, ValidationError

from cloudevent.errors import AttributeTypeError, AttributeValueError


class _Unset:
    """Marker for an argument that was not given at all (as opposed to ``None``)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


UNSET: Any = _Unset()

# 'n', 'n.n', 'vn.n.n', with anything after the numbers treated as a suffix
_VERSION_RE = re.compile(r"^[vV]?\d+(?:\.\d+)*(?:[\W_].*)?$")

_url_adapter = TypeAdapter(AnyUrl)


def _type_name(arg: Any) -> str:
    return type(arg).__name__


def is_undefined(arg: Any) -> bool:
    return arg is UNSET


def is_null(arg: Any) -> bool:
    return arg is None


def is_undefined_or_null(arg: Any) -> bool:
    return arg is UNSET or arg is None


def is_defined_and_not_null(arg: Any) -> bool:
    return arg is not UNSET and arg is not None


def is_string(arg: Any) -> bool:
    return isinstance(arg, str)


def is_string_not_empty(arg: Any) -> bool:
    return isinstance(arg, str) and len(arg) > 0


def is_boolean(arg: Any) -> bool:
    return isinstance(arg, bool)


def is_number(arg: Any) -> bool:
    """Tell if ``arg`` is an int or a float (booleans and NaN excluded)."""
    if isinstance(arg, bool) or not isinstance(arg, (int, float)):
        return False
    return not (isinstance(arg, float) and math.isnan(arg))


def is_value(arg: Any) -> bool:
    """Tell if ``arg`` is a primitive value: a string, a boolean or a number."""
    return is_string(arg) or is_boolean(arg) or is_number(arg)


def is_date(arg: Any) -> bool:
    return isinstance(arg, datetime)


def is_date_valid(arg: Any) -> bool:
    # a datetime instance cannot hold an invalid date
    return is_date(arg)


def _as_utc(value: datetime) -> datetime:
    # naive datetimes are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_date_past(arg: Any) -> bool:
    return is_date_valid(arg) and _as_utc(arg) <= datetime.now(timezone.utc)


def is_date_future(arg: Any) -> bool:
    return is_date_valid(arg) and _as_utc(arg) > datetime.now(timezone.utc)


def is_array(arg: Any) -> bool:
    return isinstance(arg, (list, tuple))


def is_plain_object(arg: Any) -> bool:
    return isinstance(arg, dict)


def is_keyed_collection(arg: Any) -> bool:
    return isinstance(arg, (Mapping, Set))


def is_object_or_collection(arg: Any) -> bool:
    return is_plain_object(arg) or is_keyed_collection(arg)


def is_object_or_collection_not_string(arg: Any) -> bool:
    return is_object_or_collection(arg) and not is_string(arg)


def is_object_or_collection_or_array(arg: Any) -> bool:
    return is_object_or_collection(arg) or is_array(arg)


def is_object_or_collection_or_array_not_value(arg: Any) -> bool:
    return is_object_or_collection_or_array(arg) and not is_value(arg)


def is_function(arg: Any) -> bool:
    return callable(arg)


def is_class(arg: Any, class_reference: type) -> bool:
    try:
        return isinstance(arg, class_reference)
    except TypeError:
        return False


def is_error(arg: Any) -> bool:
    return isinstance(arg, BaseException)


def is_json_string(arg: Any) -> bool:
    """Tell if ``arg`` is a string holding a JSON document."""
    if not is_string_not_empty(arg):
        return False
    try:
        json.loads(arg)
    except ValueError:
        return False
    return True


def is_version(arg: Any) -> bool:
    """Tell if ``arg`` looks like a version string.

    At minimum a number is needed; an optional leading 'v' or 'V' is accepted,
    dotted numbers follow, and anything after a separator is a free suffix
    (so the output of ``git describe`` is accepted too).
    """
    return is_string_not_empty(arg) and _VERSION_RE.match(arg) is not None


def _is_absolute_url(text: str) -> bool:
    try:
        _url_adapter.validate_python(text)
    except ValidationError:
        return False
    return True


def is_uri(arg: Any, base: Optional[str] = None) -> bool:
    """Tell if ``arg`` is an URI or an URL.

    With ``base`` the value is resolved against it first; without it a value
    starting with '/' is accepted as a relative reference, anything else must
    be an absolute URL.
    """
    if not is_string_not_empty(arg):
        return False
    if is_string_not_empty(base):
        try:
            return _is_absolute_url(urljoin(base, arg))
        except ValueError:
            return False
    if arg.startswith("/"):
        return True
    return _is_absolute_url(arg)


def get_size(arg: Any) -> Optional[int]:
    """Size of a string, container or mapping; ``None`` for anything else."""
    if is_undefined_or_null(arg):
        return None
    try:
        return len(arg)
    except TypeError:
        return None


def ensure_is_class(arg: Any, class_reference: type, name: str) -> Optional[AttributeTypeError]:
    if not is_class(arg, class_reference):
        return AttributeTypeError(
            f"The argument '{name}' must be an instance of the given class reference, instead got a '{_type_name(arg)}'",
            name,
        )
    return None


def ensure_is_function(arg: Any, name: str) -> Optional[AttributeTypeError]:
    if not is_function(arg):
        return AttributeTypeError(f"The argument '{name}' must be a function, instead got a '{_type_name(arg)}'", name)
    return None


def ensure_is_string(arg: Any, name: str) -> Optional[AttributeTypeError]:
    if not is_string(arg):
        return AttributeTypeError(f"The argument '{name}' must be a string, instead got a '{_type_name(arg)}'", name)
    return None


def ensure_is_string_not_empty(arg: Any, name: str) -> Optional[AttributeValueError]:
    if not is_string_not_empty(arg):
        return AttributeValueError(f"The string '{name}' must be not empty", name)
    return None


def ensure_is_value(arg: Any, name: str) -> Optional[AttributeTypeError]:
    if not is_value(arg):
        return AttributeTypeError(
            f"The argument '{name}' must be a string, a boolean or a number, instead got a '{_type_name(arg)}'",
            name,
        )
    return None


def ensure_is_object_or_collection(arg: Any, name: str) -> Optional[AttributeTypeError]:
    if not is_object_or_collection(arg):
        return AttributeTypeError(f"The object '{name}' must be an object or a collection", name)
    return None


def ensure_is_object_or_collection_not_string(arg: Any, name: str) -> Optional[AttributeTypeError]:
    if not is_object_or_collection_not_string(arg):
        return AttributeTypeError(f"The object '{name}' must be an object or a collection, and not a string", name)
    return None


def ensure_is_date(arg: Any, name: str) -> Optional[AttributeValueError]:
    if not is_date(arg):
        return AttributeValueError(f"The object '{name}' must be a datetime", name)
    return None


def ensure_is_date_past(arg: Any, name: str) -> Optional[AttributeValueError]:
    if not is_date_past(arg):
        return AttributeValueError(f"The object '{name}' must be a datetime that belongs to the past", name)
    return None


def ensure_is_date_future(arg: Any, name: str) -> Optional[AttributeValueError]:
    if not is_date_future(arg):
        return AttributeValueError(f"The object '{name}' must be a datetime that belongs to the future", name)
    return None


def ensure_is_version(arg: Any, name: str) -> Optional[AttributeValueError]:
    if not is_version(arg):
        return AttributeValueError(f"The object '{name}' must be a string in the format 'n.n.n', and not '{arg}'", name)
    return None


def ensure_is_uri(arg: Any, name: str) -> Optional[AttributeValueError]:
    if not is_uri(arg):
        return AttributeValueError(f"The object '{name}' must be an URI or URL string, and not '{arg}'", name)
    return None


def ensure_is_error(arg: Any, name: str) -> Optional[AttributeTypeError]:
    if not is_error(arg):
        return AttributeTypeError(f"The argument '{name}' must be an exception, instead got a '{_type_name(arg)}'", name)
    return None
