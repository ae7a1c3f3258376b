"""Shared fixtures for heclog tests."""

import pytest

from heclog import HECLogger

SUCCESS_BODY = {"text": "Success", "code": 0}
INVALID_TOKEN_BODY = {"text": "Invalid token", "code": "4"}


class FakeResponse:
    def __init__(self, body, status_code=200):
        self.body = body
        self.status_code = status_code


class FakeTransport:
    """Records every post and answers synchronously."""

    def __init__(self, body=None, error=None):
        self.body = SUCCESS_BODY if body is None else body
        self.error = error
        self.calls = []
        self.closed = False

    def post(self, options, callback):
        self.calls.append(options)
        if self.error is not None:
            callback(self.error, None, None)
        else:
            callback(None, FakeResponse(self.body), self.body)

    def close(self):
        self.closed = True


class RecordingHandler:
    def __init__(self):
        self.errors = []

    def handle(self, error, context):
        self.errors.append((error, context))


class Recorder:
    """Callback that remembers what it was called with."""

    def __init__(self):
        self.calls = []

    def __call__(self, *args):
        self.calls.append(args)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_logger(transport, handler):
    def factory(**config):
        config.setdefault("token", "token-goes-here")
        return HECLogger(config, transport=transport, error_handler=handler)

    return factory
