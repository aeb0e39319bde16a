from datetime import datetime, timedelta, timezone

import pytest

from cloudevent.errors import AttributeTypeError, AttributeValueError
from cloudevent.schemas.event import CloudEvent
from cloudevent.validation import dump_validation_results, is_valid_event, validate_event
from cloudevent.validator import UNSET


def test_undefined_or_null_event():
    for value in (None, UNSET):
        findings = validate_event(value)
        assert len(findings) == 1
        assert isinstance(findings[0], AttributeValueError)
        assert "undefined or null" in str(findings[0])


def test_not_a_cloud_event():
    findings = validate_event({"id": "1", "type": "t", "source": "/"})
    assert len(findings) == 1
    assert isinstance(findings[0], AttributeTypeError)
    assert not is_valid_event("event")


def test_full_event_valid_in_both_modes(make_event, ce_common_options, ce_extensions):
    ce = make_event(options=ce_common_options, extensions=ce_extensions)
    assert validate_event(ce) == []
    assert validate_event(ce, strict=True) == []


def test_missing_mandatory_attributes():
    ce = CloudEvent(UNSET, "", None)
    findings = validate_event(ce)
    assert [f.attribute for f in findings] == ["id", "type", "source"]


def test_optional_attributes_must_not_be_empty_when_set():
    ce = CloudEvent("1", "t", "/", {}, {"dataschema": "", "subject": ""})
    assert [f.attribute for f in validate_event(ce)] == ["dataschema", "subject"]


def test_string_data_with_default_content_type():
    ce = CloudEvent("1", "com.example.test", "/test", "Hello World, 2020")
    assert validate_event(ce) == []
    findings = validate_event(ce, strict=True)
    assert len(findings) == 1
    assert findings[0].attribute == "data"

    ce = CloudEvent("1", "com.example.test", "/test", "Hello World, 2020", {"datacontenttype": "text/plain"})
    assert validate_event(ce, strict=True) == []


def test_json_string_data_with_default_content_type():
    ce = CloudEvent("1", "com.example.test", "/test", '{"hello": "world"}')
    assert validate_event(ce, strict=True) == []


def test_mutual_exclusion_is_one_finding(make_event):
    ce = make_event(options={"data_base64": "SGVsbG8="})
    findings = validate_event(ce, strict=True)
    exclusive = [f for f in findings if "mutually exclusive" in str(f)]
    assert len(exclusive) == 1
    assert len(findings) == 1


def test_strict_rules(make_event):
    future = datetime.now(timezone.utc) + timedelta(days=1)
    ce = make_event(
        source="not a uri",
        options={"time": future, "dataschema": "not a uri", "datacontenttype": None},
    )
    ce.specversion = "x"
    assert validate_event(ce) == []
    attributes = [f.attribute for f in validate_event(ce, strict=True)]
    assert attributes == ["specversion", "source", "time", "datacontenttype", "dataschema"]


def test_null_time_fails_strict_validation(make_event):
    ce = make_event(options={"time": None})
    assert validate_event(ce) == []
    assert [f.attribute for f in validate_event(ce, strict=True)] == ["time"]


def test_data_shape_for_other_content_types():
    ce = CloudEvent("1", "t", "/", 2020, {"datacontenttype": "text/plain"})
    assert validate_event(ce, strict=True) == []
    ce = CloudEvent("1", "t", "/", ["a", "b"], {"datacontenttype": "text/plain"})
    assert validate_event(ce, strict=True) == []
    ce = CloudEvent("1", "t", "/", object(), {"datacontenttype": "text/plain"})
    assert [f.attribute for f in validate_event(ce, strict=True)] == ["data"]


def test_extension_findings_are_separate(make_event):
    ce = make_event(extensions={"Bad-Name": {"nested": True}, "good": 1, "type": "x"})
    findings = validate_event(ce, strict=True)
    assert len(findings) == 3
    assert sum(isinstance(f, AttributeTypeError) for f in findings) == 1
    assert validate_event(ce, strict=False) == []


def test_strict_flag_of_the_event_is_used_by_default(make_event, ce_strict_options):
    ce = make_event(data="Hello World, 2020", options=ce_strict_options)
    assert ce.is_strict
    assert len(validate_event(ce)) == 1
    assert validate_event(ce, strict=False) == []


def test_dataschema_validator(make_event, ce_common_options):
    ce = make_event(options=ce_common_options)
    calls = []

    def accept(data, schema):
        calls.append((data, schema))
        return True

    assert validate_event(ce, strict=True, dataschema_validator=accept) == []
    assert calls == [(ce.data, ce_common_options["dataschema"])]

    findings = validate_event(ce, strict=True, dataschema_validator=lambda d, s: False)
    assert len(findings) == 1

    def boom(data, schema):
        raise RuntimeError("schema not reachable")

    findings = validate_event(ce, strict=True, dataschema_validator=boom)
    assert len(findings) == 1
    assert "schema not reachable" in str(findings[0])

    findings = validate_event(ce, strict=True, dataschema_validator="not callable")
    assert len(findings) == 1 and isinstance(findings[0], AttributeTypeError)

    # ignored without strict
    assert validate_event(ce, strict=False, dataschema_validator=lambda d, s: False) == []


@pytest.mark.parametrize("args, options, extensions", [
    ((), None, None),
    (("1", "t", "/", {}), None, None),
    (("1", "t", "nope", "plain text"), {"datacontenttype": None}, None),
    (("1", "t", "/", {}), {"data_base64": "", "subject": ""}, {"Bad": []}),
    (("", "", "", object()), {"time": None, "dataschema": "x"}, {"id": 1}),
])
def test_strict_never_finds_less(args, options, extensions):
    ce = CloudEvent(*args, options=options, extensions=extensions)
    assert len(validate_event(ce, strict=True)) >= len(validate_event(ce, strict=False))


def test_validate_and_is_valid_methods(make_event):
    ce = make_event()
    assert ce.validate() == validate_event(ce)
    assert ce.is_valid(strict=True) is is_valid_event(ce, strict=True)


def test_dump_validation_results():
    text = dump_validation_results(CloudEvent(), name="empty")
    assert text.startswith("Validation results for 'empty': 3 errors")
    assert text.count("\n- AttributeValueError") == 3
