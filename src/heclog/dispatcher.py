"""
Sends a flushed context to the collector and interprets the reply.
"""

import logging
from typing import Any, Callable, Mapping, Optional

from .body import EventFormatter, make_body
from .config import LoggerConfig
from .context import AUTH_SCHEME, Context, RequestOptions, initialize_context
from .errors import ErrorHandler, RemoteRejection
from .transport import ResponseCallback, Transport

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _noop(*args: Any) -> None:
    pass


def rejection_from_body(body: Any) -> Optional[RemoteRejection]:
    """Build a RemoteRejection when a response body reports a non-zero code."""
    if not isinstance(body, Mapping) or body.get("code") is None:
        return None
    code = body["code"]
    if str(code) == "0":
        return None
    return RemoteRejection(str(body.get("text", "")), code=code)


class Dispatcher:
    """Performs the outbound request for a context."""

    def __init__(
        self,
        config: LoggerConfig,
        transport: Transport,
        error_handler: ErrorHandler,
        event_formatter: Optional[Callable[[], Optional[EventFormatter]]] = None,
        request_defaults: Optional[RequestOptions] = None,
    ):
        """
        Args:
            config: The owning logger's configuration
            transport: HTTP collaborator
            error_handler: Receives transport errors and remote rejections
            event_formatter: Returns the formatter currently in effect
            request_defaults: Request options every request starts from
        """
        self.config = config
        self.transport = transport
        self.error_handler = error_handler
        self._event_formatter = event_formatter or (lambda: None)
        self.request_defaults = request_defaults

    def send_events(
        self, context: Context, callback: Optional[ResponseCallback] = None
    ) -> None:
        """Post one context. ``callback(err, response, body)`` reports the result."""
        callback = callback or _noop

        context = initialize_context(context, self.config, self.request_defaults)
        config = context.config
        options = context.request_options.copy()
        options.headers["Authorization"] = f"{AUTH_SCHEME} {config.token}"

        if config.auto_flush:
            options.json = True
            options.body = make_body(context, self._event_formatter())
        else:
            options.json = False
            options.headers["Content-Type"] = FORM_CONTENT_TYPE
            options.body = context.message

        def on_response(err: Optional[BaseException], response: Any, body: Any) -> None:
            if err is not None:
                logger.debug("Transport error for %s: %r", options.url, err)
                self.error_handler.handle(err, context)
                callback(err, response, body)
                return

            rejection = rejection_from_body(body)
            if rejection is not None:
                logger.debug("Collector rejected event with code %s", rejection.code)
                self.error_handler.handle(rejection, context)
            callback(None, response, body)

        logger.debug("POST %s (json=%s)", options.url, options.json)
        self.transport.post(options, on_response)
