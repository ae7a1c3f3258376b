"""
Python logger that sends events to an HTTP Event Collector.
"""

from .body import default_event_formatter, format_time, make_body, serialize_body
from .config import LoggerConfig, resolve_config
from .context import Context, RequestOptions, Severity, initialize_context
from .dispatcher import Dispatcher
from .errors import (
    BodyError,
    CallbackErrorHandler,
    ChainError,
    ConfigError,
    ContextError,
    ErrorHandler,
    HECLogError,
    LoggingErrorHandler,
    MiddlewareError,
    RemoteRejection,
    TransportError,
)
from .handler import HECHandler
from .logger import HECLogger
from .middleware import MiddlewareChain
from .transport import HttpTransport

__version__ = "0.1.0"
__all__ = [
    "HECLogger",
    "HECHandler",
    "LoggerConfig",
    "Context",
    "RequestOptions",
    "Severity",
    "MiddlewareChain",
    "Dispatcher",
    "HttpTransport",
    "resolve_config",
    "initialize_context",
    "make_body",
    "serialize_body",
    "format_time",
    "default_event_formatter",
    "HECLogError",
    "ConfigError",
    "ContextError",
    "BodyError",
    "MiddlewareError",
    "ChainError",
    "TransportError",
    "RemoteRejection",
    "ErrorHandler",
    "LoggingErrorHandler",
    "CallbackErrorHandler",
]
