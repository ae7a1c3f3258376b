"""Tests for the standard logging integration."""

import logging

import pytest

from heclog import HECHandler, HECLogger
from heclog.handler import severity_for


@pytest.fixture
def std_logger(make_logger):
    hec_logger = make_logger()
    handler = HECHandler(hec_logger=hec_logger, metadata={"source": "tests"})
    log = logging.getLogger("heclog_tests.handler")
    log.addHandler(handler)
    log.setLevel(logging.DEBUG)
    log.propagate = False
    yield log
    log.removeHandler(handler)
    handler.close()


@pytest.mark.parametrize(
    "levelno, expected",
    [
        (logging.DEBUG, "debug"),
        (logging.INFO, "info"),
        (logging.WARNING, "warn"),
        (logging.ERROR, "error"),
        (logging.CRITICAL, "error"),
    ],
)
def test_severity_for(levelno, expected):
    assert severity_for(levelno) == expected


def test_requires_config_or_logger():
    with pytest.raises(ValueError):
        HECHandler()


def test_emit_sends_record(std_logger, transport):
    std_logger.warning("disk %s full", "/var", extra={"user_id": 42})

    body = transport.calls[0].body
    assert body["source"] == "tests"
    assert "time" in body
    event = body["event"]
    assert event["severity"] == "warn"
    assert event["message"]["message"] == "disk /var full"
    assert event["message"]["logger"] == "heclog_tests.handler"
    assert event["message"]["extra"] == {"user_id": 42}


def test_emit_includes_exception(std_logger, transport):
    try:
        raise ValueError("Something went wrong!")
    except ValueError:
        std_logger.exception("Caught an exception")

    message = transport.calls[0].body["event"]["message"]
    assert "ValueError: Something went wrong!" in message["exception"]


def test_unserializable_extra(std_logger, transport):
    std_logger.info("x", extra={"obj": object()})
    extra = transport.calls[0].body["event"]["message"]["extra"]
    assert extra["obj"].startswith("<object object")


def test_own_records_skipped(transport):
    handler = HECHandler(hec_logger=HECLogger({"token": "t"}, transport=transport))
    record = logging.LogRecord("heclog.logger", logging.DEBUG, __file__, 1, "x", None, None)
    handler.emit(record)
    assert transport.calls == []


@pytest.mark.parametrize(
    "name", ["urllib3.connectionpool", "urllib3", "requests.packages.urllib3"]
)
def test_http_client_records_skipped(transport, name):
    handler = HECHandler(hec_logger=HECLogger({"token": "t"}, transport=transport))
    record = logging.LogRecord(
        name, logging.DEBUG, __file__, 1, "Starting new HTTPS connection", None, None
    )
    handler.emit(record)
    assert transport.calls == []


def test_similar_logger_names_still_sent(transport):
    handler = HECHandler(hec_logger=HECLogger({"token": "t"}, transport=transport))
    handler.emit(logging.LogRecord("requests_app", logging.INFO, __file__, 1, "x", None, None))
    assert len(transport.calls) == 1


class LoggingTransport:
    """Logs through the application logger while posting."""

    def __init__(self, log):
        self.log = log
        self.calls = []

    def post(self, options, callback):
        self.calls.append(options)
        self.log.warning("posting")
        callback(None, None, {"text": "Success", "code": 0})

    def close(self):
        pass


def test_records_logged_while_sending_skipped():
    log = logging.getLogger("heclog_tests.reentrant")
    transport = LoggingTransport(log)
    handler = HECHandler(hec_logger=HECLogger({"token": "t"}, transport=transport))
    log.addHandler(handler)
    log.setLevel(logging.DEBUG)
    log.propagate = False
    try:
        log.info("outer")
    finally:
        log.removeHandler(handler)

    assert len(transport.calls) == 1
    assert transport.calls[0].body["event"]["message"]["message"] == "outer"


def test_flush_sends_queue(make_logger, transport):
    hec_logger = make_logger(auto_flush=False)
    handler = HECHandler(hec_logger=hec_logger)
    handler.emit(logging.LogRecord("app", logging.INFO, __file__, 1, "queued", None, None))
    assert transport.calls == []

    handler.flush()
    assert len(transport.calls) == 1
    assert '"message":"queued"' in transport.calls[0].body
