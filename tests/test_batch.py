import json
import logging
from datetime import datetime

import pytest

from cloudevent import batch as B
from cloudevent.errors import AttributeTypeError, AttributeValueError, BatchError, DeserializationError
from cloudevent.schemas.event import CloudEvent
from cloudevent.validator import UNSET


@pytest.fixture
def ce_minimal():
    return CloudEvent("1/minimal", "com.example.test", "/", {})


@pytest.fixture
def ce_full(make_event, ce_common_options, ce_extensions):
    return make_event(options=ce_common_options, extensions=ce_extensions)


@pytest.fixture
def ce_not_serializable(make_event):
    # dict data with a non default content type and no encoder
    return make_event(id="3/xml", options={"datacontenttype": "application/xml"})


@pytest.fixture
def mixed_batch(ce_minimal, ce_full):
    return [
        None, UNSET, "", "string", 1234, 3.14, True, False, datetime.now(),
        {}, {"id": "1", "type": "t", "source": "/"}, [], [1, 2], ce_minimal,
        None, ce_full, object(), (1, 2), {"specversion": "1.0"}, 0,
    ]


def test_media_type():
    assert B.media_type() == B.MEDIA_TYPE == "application/cloudevents-batch+json"


def test_is_batch():
    assert B.is_batch([])
    assert B.is_batch((1,))
    assert not B.is_batch({})
    assert not B.is_batch("[]")
    with pytest.raises(ValueError):
        B.is_batch(None)


def test_get_events_keeps_only_cloud_events_in_order(mixed_batch, ce_minimal, ce_full):
    assert len(mixed_batch) == 20
    events = B.get_events(mixed_batch, only_valid=False)
    assert events == [ce_minimal, ce_full]
    assert events[0] is ce_minimal and events[1] is ce_full
    assert len(mixed_batch) == 20


def test_get_event_is_lazy_and_filters_invalid(ce_minimal):
    invalid = CloudEvent()
    gen = B.get_event([invalid, ce_minimal], only_valid=True)
    assert next(gen) is ce_minimal
    with pytest.raises(StopIteration):
        next(gen)
    with pytest.raises(TypeError):
        B.get_events({"not": "a batch"})


def test_validate_batch(mixed_batch):
    findings = B.validate_batch(mixed_batch)
    # one type finding for every item that is neither null nor a CloudEvent
    assert len(findings) == 15
    assert all(isinstance(f, AttributeTypeError) for f in findings)
    assert not B.is_valid_batch(mixed_batch)


def test_validate_batch_flattens_findings_in_order(ce_minimal):
    findings = B.validate_batch([CloudEvent(), ce_minimal, None, CloudEvent("1", "t", UNSET)])
    assert [f.attribute for f in findings] == ["id", "type", "source", "source"]
    assert B.is_valid_batch([ce_minimal, None])
    assert B.is_valid_batch([])


def test_validate_batch_other_arguments(ce_minimal):
    findings = B.validate_batch(None)
    assert len(findings) == 1 and isinstance(findings[0], AttributeValueError)

    assert B.validate_batch(ce_minimal) == []
    findings = B.validate_batch(ce_minimal, strict=True)
    assert len(findings) == 1 and isinstance(findings[0], AttributeTypeError)

    findings = B.validate_batch("batch")
    assert len(findings) == 1 and isinstance(findings[0], AttributeTypeError)


def test_serialize_events(mixed_batch, ce_minimal, ce_full):
    text = B.serialize_events(mixed_batch)
    items = json.loads(text)
    assert [i["id"] for i in items] == [ce_minimal.id, ce_full.id]
    assert B.serialize_events([]) == "[]"


def test_serialize_events_pretty(ce_minimal):
    text = B.serialize_events([ce_minimal, ce_minimal], pretty_print=True)
    assert text.startswith("[\n{\n")
    assert text.endswith("\n]")
    assert len(json.loads(text)) == 2


def test_serialize_events_only_valid(ce_minimal):
    items = json.loads(B.serialize_events([CloudEvent(), ce_minimal], only_valid=True))
    assert [i["id"] for i in items] == [ce_minimal.id]


def test_serialize_events_failures(ce_minimal, ce_not_serializable):
    batch = [ce_minimal, ce_not_serializable, ce_minimal]
    items = json.loads(B.serialize_events(batch))
    assert items[1] is None
    assert items[0]["id"] == items[2]["id"] == ce_minimal.id

    with pytest.raises(BatchError) as excinfo:
        B.serialize_events(batch, throw_error=True)
    assert excinfo.value.index == 1

    # codec options are passed through
    items = json.loads(B.serialize_events(batch, encoded_data="<data/>"))
    assert items[1]["data"] == "<data/>"

    with pytest.raises(TypeError):
        B.serialize_events("not a batch")


def test_serialize_events_encoder_failure_is_an_item_failure():
    ce = CloudEvent("1", "t", "/", "text", {"datacontenttype": "text/plain"})

    def encoder(payload):
        raise KeyError("missing")

    assert B.serialize_events([ce], encoder=encoder) == "[null]"
    with pytest.raises(BatchError) as excinfo:
        B.serialize_events([ce], encoder=encoder, throw_error=True)
    assert isinstance(excinfo.value.__cause__, KeyError)


def test_serialize_events_callback_and_log(monkeypatch, caplog, ce_minimal, ce_not_serializable):
    calls = []
    monkeypatch.setattr(B.logger, "propagate", True)
    with caplog.at_level(logging.ERROR, logger=B.logger.name):
        B.serialize_events(
            [ce_minimal, ce_not_serializable],
            log_error=True,
            callback=lambda index, event, error: calls.append((index, event, error)),
        )
    assert [c[0] for c in calls] == [0, 1]
    assert calls[0][2] is None
    assert calls[1][1] is ce_not_serializable and calls[1][2] is not None
    assert "Unable to serialize CloudEvent number 1" in caplog.text


def test_deserialize_events(ce_minimal, ce_full):
    text = B.serialize_events([ce_minimal, ce_full])
    events = B.deserialize_events(text)
    assert [e.id for e in events] == [ce_minimal.id, ce_full.id]
    assert events[1].extensions == ce_full.extensions
    assert events[1].time == ce_full.time


def test_deserialize_events_skips_non_objects_and_marks_failures():
    text = json.dumps([
        {"specversion": "1.0", "id": "1", "type": "t", "source": "/"},
        None,
        "string",
        [1, 2],
        {"specversion": "1.0", "strictvalidation": True},
        {"specversion": "1.0", "id": "2", "type": "t", "source": "/", "time": "yesterday"},
        {"specversion": "1.0", "type": "t"},
    ])
    events = B.deserialize_events(text)
    assert len(events) == 4
    assert events[0].id == "1"
    assert events[1] is None and events[2] is None
    assert events[3].id is None

    valid = B.deserialize_events(text, only_valid=True)
    assert [e.id if e is not None else None for e in valid] == ["1", None, None]

    with pytest.raises(BatchError) as excinfo:
        B.deserialize_events(text, throw_error=True)
    assert excinfo.value.index == 1


def test_deserialize_events_callback():
    text = json.dumps([
        {"specversion": "1.0", "id": "1", "type": "t", "source": "/"},
        {"specversion": "1.0", "strictvalidation": True},
    ])
    calls = []
    B.deserialize_events(text, callback=lambda index, event, error: calls.append((index, event, error)))
    assert calls[0][0] == 0 and calls[0][1].id == "1" and calls[0][2] is None
    assert calls[1][0] == 1 and calls[1][1] is None and calls[1][2] is not None


def test_deserialize_events_strict_and_decoder():
    text = json.dumps([
        {"specversion": "1.0", "id": "1", "type": "t", "source": "/", "datacontenttype": "text/plain", "data": "a,b"},
    ])
    events = B.deserialize_events(text, strict=True, decoder=lambda raw: raw.split(","))
    assert events[0].is_strict
    assert events[0].data == ["a", "b"]


def test_deserialize_events_checks_each_item_like_a_single_event():
    text = json.dumps([
        {"specversion": "0.3", "id": "1", "type": "t", "source": "/", "data": {}},
        {"id": "2", "type": "t", "source": "/"},
        {"specversion": "1.0", "id": "3", "type": "t", "source": "/", "datacontenttype": "text/plain", "data": "a"},
        {"specversion": "1.0", "id": "4", "type": "t", "source": "/", "data": "x" * 65536},
    ])
    events = B.deserialize_events(text, decoded_data="decoded", only_if_less_than_64kb=True)
    assert len(events) == 4
    assert events[0] is None and events[1] is None and events[3] is None
    assert events[2].id == "3" and events[2].data == "decoded"

    with pytest.raises(BatchError) as excinfo:
        B.deserialize_events(text, throw_error=True)
    assert excinfo.value.index == 0
    assert isinstance(excinfo.value.__cause__, DeserializationError)


def test_deserialize_events_decoder_failure_is_an_item_failure():
    text = json.dumps([
        {"specversion": "1.0", "id": "1", "type": "t", "source": "/", "datacontenttype": "text/plain", "data": "a"},
        {"specversion": "1.0", "id": "2", "type": "t", "source": "/"},
    ])

    def decoder(raw):
        raise RuntimeError("decoder failure")

    calls = []
    events = B.deserialize_events(text, decoder=decoder, callback=lambda index, event, error: calls.append(error))
    assert events[0] is None
    assert events[1].id == "2"
    assert isinstance(calls[0], RuntimeError) and calls[1] is None


def test_deserialize_events_wrong_input():
    with pytest.raises(DeserializationError):
        B.deserialize_events("")
    with pytest.raises(DeserializationError):
        B.deserialize_events(None)
    with pytest.raises(TypeError):
        B.deserialize_events('{"specversion": "1.0"}')
    with pytest.raises(TypeError):
        B.deserialize_events("not json")
    with pytest.raises(BatchError):
        B.deserialize_events("not json", throw_error=True)
