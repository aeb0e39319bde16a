"""Exception types raised (or collected) by the cloudevent package."""

from __future__ import annotations

from typing import Optional


class CloudEventError(Exception):
    """Base class for all cloudevent errors."""


class ConstructionError(CloudEventError, ValueError):
    """Raised when a CloudEvent cannot be created with the requested strictness."""


class SerializationError(CloudEventError, ValueError):
    """Raised when a CloudEvent cannot be serialized."""


class EventSizeError(SerializationError):
    """Raised when serialized data exceeds the 64 KB limit."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Unable to process a CloudEvent bigger than {limit} bytes (got {size} bytes)")


class DeserializationError(CloudEventError, ValueError):
    """Raised when text cannot be turned back into a CloudEvent."""


class InvalidEventError(CloudEventError, ValueError):
    """Raised when only valid events are accepted and the event is not valid."""


class BatchError(CloudEventError, RuntimeError):
    """Raised when a batch operation is aborted on the first failing item."""

    def __init__(self, message: str, index: Optional[int] = None):
        self.index = index
        super().__init__(message)


class _FindingError(CloudEventError):
    def __init__(self, message: str, attribute: Optional[str] = None):
        self.attribute = attribute
        super().__init__(message)


class AttributeValueError(_FindingError, ValueError):
    """Validation finding: right kind of value, wrong content."""


class AttributeTypeError(_FindingError, TypeError):
    """Validation finding: wrong kind of value entirely."""
