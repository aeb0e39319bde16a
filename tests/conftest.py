import os
from datetime import datetime, timezone
from typing import Any, Callable, Dict

import pytest

# tests/conftest.py

from cloudevent.config import ENV_PREFIX, reset_settings
from cloudevent.schemas.event import CloudEvent

EVENT_TYPE = "com.github.cloudevent.testevent-v1.0.0"
EVENT_SOURCE = "/test"
DATASCHEMA = "http://my-schema.localhost.localdomain/v1/"


@pytest.fixture
def ce_common_data() -> Dict[str, Any]:
    """Structured payload shared by most events built in tests."""
    return {"hello": "world", "year": 2020, "enabled": True}


@pytest.fixture
def ce_common_options() -> Dict[str, Any]:
    return {
        "time": datetime(2020, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc),
        "datacontenttype": "application/json",
        "dataschema": DATASCHEMA,
        "subject": "subject",
        "strict": False,
    }


@pytest.fixture
def ce_strict_options(ce_common_options) -> Dict[str, Any]:
    return {**ce_common_options, "strict": True}


@pytest.fixture
def ce_extensions() -> Dict[str, Any]:
    return {"exampleextension": "value", "count": 3, "flag": False}


@pytest.fixture
def make_event(ce_common_data) -> Callable[..., CloudEvent]:
    """
    Return a helper building a complete CloudEvent.
    Usage: ce = make_event(id="2", options={"strict": True})
    """
    def _make(id: Any = "1/full", data: Any = None, options: Any = None, extensions: Any = None,
              type: Any = EVENT_TYPE, source: Any = EVENT_SOURCE) -> CloudEvent:
        payload = ce_common_data if data is None else data
        return CloudEvent(id, type, source, payload, options, extensions)
    return _make


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch):
    """
    Drop any CLOUDEVENT_* variable from the environment and the cached
    settings, so each test starts from the defaults.
    """
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()
