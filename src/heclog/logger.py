"""
Main logger class for heclog.
"""

import logging
import threading
from typing import Any, Dict, List, Mapping, Optional, Union

from .body import EventFormatter, default_event_formatter, make_body, serialize_body
from .config import ConfigLike, LoggerConfig, resolve_config
from .context import Context, JSONValue, RequestOptions, Severity, initialize_context
from .dispatcher import Dispatcher
from .errors import ErrorHandler, as_error_handler
from .middleware import Middleware, MiddlewareChain
from .transport import HttpTransport, ResponseCallback, Transport

logger = logging.getLogger(__name__)

ContextLike = Union[Context, Mapping[str, Any]]


def _noop(*args: Any) -> None:
    pass


class HECLogger:
    """
    Logger that sends events to an HTTP Event Collector.

    Features:
    - Immediate sending (auto_flush, the default) or manual batching
    - Batch flushes by count, size or timer when auto_flush is off
    - Middleware chain run over every flush before it is sent
    - Pluggable transport and error handler

    Example:
        logger = HECLogger({
            "token": "your-token-here",
            "url": "https://splunk.local:8088",
        })

        logger.info("Application started")
        logger.send({
            "message": {"temperature": "70F", "chickenCount": 500},
            "severity": "warn",
            "metadata": {"source": "chicken coop", "index": "main"},
        })

        # Don't forget to close on shutdown
        logger.close()
    """

    levels = Severity

    def __init__(
        self,
        config: ConfigLike,
        transport: Optional[Transport] = None,
        error_handler: Any = None,
        request_options: Optional[Mapping[str, Any]] = None,
        close_timeout: float = 30.0,
    ):
        """
        Initialize HECLogger.

        Args:
            config: Mapping or LoggerConfig, ``token`` is required
            transport: HTTP collaborator, defaults to HttpTransport
            error_handler: Object with ``handle(error, context)`` or a callable
            request_options: Overrides for ``json``, ``strict_ssl`` and ``headers``
            close_timeout: Seconds close() waits for the final delivery

        Raises:
            ConfigError: If config is malformed
        """
        self.config: LoggerConfig = resolve_config(None, config)
        self.request_defaults = self._initialize_request_options(request_options)
        self.event_formatter: EventFormatter = default_event_formatter
        self.close_timeout = close_timeout

        self._owns_transport = transport is None
        self.transport: Transport = (
            transport if transport is not None
            else HttpTransport(close_timeout=close_timeout)
        )

        self._queue: List[Context] = []
        self._queue_lock = threading.Lock()
        self._batch_bytes = 0
        self._default_metadata: Optional[Dict[str, Any]] = None
        self._middleware = MiddlewareChain()

        self._dispatcher = Dispatcher(
            self.config,
            self.transport,
            as_error_handler(error_handler),
            event_formatter=lambda: self.event_formatter,
            request_defaults=self.request_defaults,
        )

        # Flush timer thread, batched mode only
        self._stop_event = threading.Event()
        self._flush_thread: Optional[threading.Thread] = None
        if not self.config.auto_flush and self.config.batch_interval > 0:
            self._flush_thread = threading.Thread(
                target=self._flush_loop, daemon=True
            )
            self._flush_thread.start()

    @staticmethod
    def _initialize_request_options(
        options: Optional[Mapping[str, Any]],
    ) -> RequestOptions:
        defaults = RequestOptions()
        if options:
            defaults.json = bool(options.get("json", defaults.json))
            defaults.strict_ssl = bool(options.get("strict_ssl", defaults.strict_ssl))
            defaults.headers.update(options.get("headers") or {})
        return defaults

    @property
    def error_handler(self) -> ErrorHandler:
        return self._dispatcher.error_handler

    @error_handler.setter
    def error_handler(self, handler: Any) -> None:
        self._dispatcher.error_handler = as_error_handler(handler)

    @property
    def queue(self) -> List[Context]:
        """Snapshot of the pending contexts, oldest first."""
        with self._queue_lock:
            return list(self._queue)

    def pending_count(self) -> int:
        """Get the number of pending contexts."""
        with self._queue_lock:
            return len(self._queue)

    def use(self, middleware: Middleware) -> None:
        """
        Add a middleware step, run on every flush before dispatch.

        Raises:
            MiddlewareError: If middleware is not callable
        """
        self._middleware.use(middleware)

    def _initialize_context(self, context: Optional[ContextLike]) -> Context:
        return initialize_context(context, self.config, self.request_defaults)

    def push(self, context: Context) -> None:
        """Append a context to the queue."""
        size = len(serialize_body(make_body(context, self.event_formatter)).encode("utf-8"))
        with self._queue_lock:
            self._queue.append(context)
            self._batch_bytes += size

    def _batch_full(self) -> bool:
        with self._queue_lock:
            count, size = len(self._queue), self._batch_bytes
        config = self.config
        over_count = config.max_batch_count > 0 and count >= config.max_batch_count
        over_size = config.max_batch_size > 0 and size > config.max_batch_size
        return over_count or over_size

    def send(
        self, context: ContextLike, callback: Optional[ResponseCallback] = None
    ) -> None:
        """
        Queue a context, and send it right away when auto_flush is on.

        With auto_flush off the context stays queued until flush() (or a
        batch threshold) and ``callback`` is called with no arguments.

        Args:
            context: Context or mapping with ``message`` and optional
                ``severity``, ``metadata`` and ``config``
            callback: ``callback(err, response, body)``

        Raises:
            ContextError: If context is malformed
            ConfigError: If the context carries a malformed config override
        """
        callback = callback or _noop
        context = self._initialize_context(context)
        self.push(context)

        if self.config.auto_flush or self._batch_full():
            self.flush(callback)
        else:
            callback()

    def _pop(self) -> Optional[Context]:
        with self._queue_lock:
            if not self._queue:
                return None
            context = self._queue.pop()
            if not self._queue:
                self._batch_bytes = 0
            return context

    def _drain(self) -> List[Context]:
        with self._queue_lock:
            queue, self._queue = self._queue, []
            self._batch_bytes = 0
        return queue

    def flush(self, callback: Optional[ResponseCallback] = None) -> None:
        """
        Send queued events.

        With auto_flush on, the most recently queued context is sent on its
        own. Otherwise the whole queue is drained, oldest first, into a
        single request.

        Args:
            callback: ``callback(err, response, body)``
        """
        callback = callback or _noop

        if self.config.auto_flush:
            context = self._pop()
            if context is None:
                context = Context(message="")
        else:
            queue = self._drain()
            payload = "".join(
                serialize_body(make_body(item, self.event_formatter))
                for item in queue
            )
            options = self.request_defaults.copy()
            options.json = False
            context = Context(message=payload, request_options=options)
            logger.debug("Flushing %d queued events", len(queue))

        context = self._initialize_context(context)

        def on_complete(error: Optional[BaseException], result: Optional[Context]) -> None:
            if error is not None:
                self.error_handler.handle(error, result if result is not None else context)
                return
            self._dispatcher.send_events(result, callback)

        self._middleware.run(context, on_complete)

    def _flush_loop(self) -> None:
        """Background thread that periodically flushes the queue."""
        interval = self.config.batch_interval / 1000.0
        while not self._stop_event.is_set():
            self._stop_event.wait(interval)
            if not self._stop_event.is_set() and self.pending_count() > 0:
                self.flush()

    def set_metadata(self, metadata: Mapping[str, Any]) -> None:
        """Set default metadata for log(), info() and friends."""
        if isinstance(metadata, Mapping):
            self._default_metadata = dict(metadata)

    def clear_metadata(self) -> None:
        """Clear the default metadata."""
        self._default_metadata = None

    def _log(
        self,
        message: JSONValue,
        severity: Optional[str],
        callback: Optional[ResponseCallback],
    ) -> None:
        context = Context(message=message, severity=severity)
        if self._default_metadata:
            context.metadata = dict(self._default_metadata)
        self.send(context, callback)

    def log(
        self, message: JSONValue, callback: Optional[ResponseCallback] = None
    ) -> None:
        """Log a message at the configured level."""
        self._log(message, None, callback)

    def debug(
        self, message: JSONValue, callback: Optional[ResponseCallback] = None
    ) -> None:
        """Log a debug message."""
        self._log(message, Severity.DEBUG.value, callback)

    def info(
        self, message: JSONValue, callback: Optional[ResponseCallback] = None
    ) -> None:
        """Log an info message."""
        self._log(message, Severity.INFO.value, callback)

    def warn(
        self, message: JSONValue, callback: Optional[ResponseCallback] = None
    ) -> None:
        """Log a warning message."""
        self._log(message, Severity.WARN.value, callback)

    def error(
        self, message: JSONValue, callback: Optional[ResponseCallback] = None
    ) -> None:
        """Log an error message."""
        self._log(message, Severity.ERROR.value, callback)

    def close(self) -> None:
        """Stop the flush timer, send anything queued and release resources."""
        self._stop_event.set()
        if self._flush_thread is not None:
            self._flush_thread.join(timeout=2.0)

        while self.pending_count() > 0:
            self.flush()

        if self._owns_transport:
            self.transport.close()
        elif callable(getattr(self.transport, "wait", None)):
            # Shared transport: only wait for our last flush to land
            self.transport.wait(self.close_timeout)

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False
