"""
Error types and error handlers for HECLogger.
"""

import logging
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class HECLogError(Exception):
    """Base class for all heclog errors."""


class ConfigError(HECLogError, ValueError):
    """Configuration is missing or malformed."""


class ContextError(HECLogError, ValueError):
    """A context passed to send() is missing or malformed."""


class BodyError(HECLogError, ValueError):
    """A context could not be turned into an event body."""


class MiddlewareError(HECLogError, TypeError):
    """Something other than a callable was registered as middleware."""


class ChainError(HECLogError):
    """A middleware step reported a failure."""


class TransportError(HECLogError):
    """The HTTP request could not be completed."""


class RemoteRejection(HECLogError):
    """
    The collector answered, but rejected the event.

    ``code`` is the application code from the response body, as sent.
    """

    def __init__(self, message: str, code: Any = None):
        super().__init__(message)
        self.code = code


class ErrorHandler(Protocol):
    def handle(self, error: BaseException, context: Any) -> None:
        ...


class LoggingErrorHandler:
    """Default handler: log the error and carry on."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def handle(self, error: BaseException, context: Any) -> None:
        self.log.error("Event delivery failed: %r (context: %r)", error, context)


class CallbackErrorHandler:
    """Adapts a plain ``fn(error, context)`` callable."""

    def __init__(self, fn: Callable[[BaseException, Any], None]):
        self.fn = fn

    def handle(self, error: BaseException, context: Any) -> None:
        self.fn(error, context)


def as_error_handler(handler: Any) -> ErrorHandler:
    """
    Normalize user input into an ErrorHandler.

    Accepts None (default handler), an object with ``handle()``, or a callable.
    """
    if handler is None:
        return LoggingErrorHandler()
    if callable(getattr(handler, "handle", None)):
        return handler
    if callable(handler):
        return CallbackErrorHandler(handler)
    raise TypeError("Error handler must be callable or have a handle() method.")
