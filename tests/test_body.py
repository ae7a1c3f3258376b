"""Tests for event body building."""

import json
from datetime import datetime, timezone

import pytest

from heclog import BodyError, Context, format_time, make_body, resolve_config, serialize_body

FIXED_NOW = 1372187084.424


def fixed_clock():
    return FIXED_NOW


class TestFormatTime:
    @pytest.mark.parametrize("value", [None, False, 0, ""])
    def test_falsy(self, value):
        assert format_time(value) is None

    def test_datetime(self):
        value = datetime(2014, 4, 11, 19, 41, 32, tzinfo=timezone.utc)
        assert format_time(value) == "1397245292.000"

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("1372187084", "1372187084.000"),
            ("4", "4.000"),
            ("1372187084000", "1372187084.000"),
            ("13721870840001234", "1372187084.000"),
            ("000000000137218.442", "137218.442"),
            (1372187084, "1372187084.000"),
            (1372187084000, "1372187084.000"),
            (1372187084.424, "1372187084.424"),
            (1372187084.424242425350823, "1372187084.424"),
            (13721874084.424242425350823, "13721874084.420"),
            (137218.424242425350823, "137218.424"),
            (4.001234235, "4.001"),
        ],
    )
    def test_normalizes(self, value, expected):
        assert format_time(value) == expected

    def test_not_a_number(self):
        with pytest.raises(BodyError):
            format_time("yesterday")


class TestMakeBody:
    def test_requires_context(self):
        with pytest.raises(BodyError, match="Context parameter is required."):
            make_body(None)

    def test_message_and_severity(self):
        body = make_body(Context(message="x", severity="s"), now=fixed_clock)
        assert body["event"] == {"message": "x", "severity": "s"}
        assert body["time"] == "1372187084.424"

    def test_severity_defaults_to_config_level(self):
        config = resolve_config(None, {"token": "abc", "level": "warn"})
        body = make_body(Context(message="x", config=config), now=fixed_clock)
        assert body["event"]["severity"] == "warn"

    def test_severity_defaults_to_info(self):
        body = make_body(Context(message="x"), now=fixed_clock)
        assert body["event"]["severity"] == "info"

    def test_metadata_carried_through(self):
        context = Context(
            message={"temperature": "70F"},
            metadata={
                "source": "chicken coop",
                "sourcetype": "httpevent",
                "index": "main",
                "host": "farm.local",
                "time": 1372187084000,
                "fields": {"ignored": True},
            },
        )
        body = make_body(context)
        assert body == {
            "source": "chicken coop",
            "sourcetype": "httpevent",
            "index": "main",
            "host": "farm.local",
            "time": "1372187084.000",
            "event": {"message": {"temperature": "70F"}, "severity": "info"},
        }

    def test_absent_metadata_omitted(self):
        body = make_body(Context(message=[1, 2], metadata={"index": "main"}))
        assert set(body) == {"index", "time", "event"}

    def test_does_not_mutate_context(self):
        context = Context(message="x", metadata={"host": "a"})
        make_body(context)
        assert context.metadata == {"host": "a"}
        assert context.severity is None

    def test_custom_formatter(self):
        def formatter(message, severity):
            return f"[{severity}]message={message}"

        body = make_body(Context(message="hi", severity="warn"), formatter)
        assert body["event"] == "[warn]message=hi"


def test_serialize_body_is_compact_json():
    body = {"time": "1.000", "event": {"message": "café", "severity": "info"}}
    text = serialize_body(body)
    assert text == '{"time":"1.000","event":{"message":"café","severity":"info"}}'
    assert json.loads(text) == body
