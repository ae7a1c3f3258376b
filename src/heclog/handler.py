"""
Standard logging handler for integration with Python's logging module.
"""

import json
import logging
import threading
from typing import Any, Dict, Mapping, Optional

from .context import Severity
from .logger import HECLogger

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = frozenset((
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "asctime", "taskName",
))

# Records from these loggers are emitted while an event is being delivered
# and would feed back into send()
_INTERNAL_LOGGERS = ("heclog", "urllib3", "requests")


def _is_internal(name: str) -> bool:
    return any(
        name == prefix or name.startswith(prefix + ".")
        for prefix in _INTERNAL_LOGGERS
    )


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def severity_for(levelno: int) -> str:
    """Map a logging level number to a severity label."""
    if levelno >= logging.ERROR:
        return Severity.ERROR.value
    if levelno >= logging.WARNING:
        return Severity.WARN.value
    if levelno >= logging.INFO:
        return Severity.INFO.value
    return Severity.DEBUG.value


class HECHandler(logging.Handler):
    """
    Python logging handler that sends records through an HECLogger.

    Example:
        import logging
        from heclog import HECHandler

        handler = HECHandler({"token": "your-token-here", "host": "splunk.local"})

        logger = logging.getLogger("my_app")
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)

        logger.info("Hello from standard logging!")

        # Don't forget to close on shutdown
        handler.close()
    """

    def __init__(
        self,
        config: Any = None,
        hec_logger: Optional[HECLogger] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        level: int = logging.NOTSET,
    ):
        """
        Initialize HECHandler.

        Args:
            config: Config for a new HECLogger, ignored when hec_logger is given
            hec_logger: Existing HECLogger to send through
            metadata: Metadata attached to every event (host, source, ...)
            level: Minimum log level to process
        """
        super().__init__(level)

        if hec_logger is None:
            if config is None:
                raise ValueError("config or hec_logger is required")
            hec_logger = HECLogger(config)

        self.hec_logger = hec_logger
        self.metadata = dict(metadata) if metadata else None
        self._local = threading.local()

    def _format_record(self, record: logging.LogRecord) -> Dict[str, Any]:
        """Convert LogRecord to an event message."""
        entry: Dict[str, Any] = {
            "message": self.format(record),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            formatter = self.formatter or logging.Formatter()
            entry["exception"] = formatter.formatException(record.exc_info)

        extras = {
            key: _json_safe(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        }
        if extras:
            entry["extra"] = extras

        return entry

    def emit(self, record: logging.LogRecord) -> None:
        """Process a log record."""
        if _is_internal(record.name) or getattr(self._local, "sending", False):
            return
        self._local.sending = True
        try:
            metadata = dict(self.metadata) if self.metadata else {}
            metadata.setdefault("time", record.created)
            self.hec_logger.send({
                "message": self._format_record(record),
                "severity": severity_for(record.levelno),
                "metadata": metadata,
            })
        except Exception:
            self.handleError(record)
        finally:
            self._local.sending = False

    def flush(self) -> None:
        """Send anything the logger has queued."""
        if self.hec_logger.pending_count() > 0:
            self.hec_logger.flush()

    def close(self) -> None:
        """Close the handler."""
        self.hec_logger.close()
        super().close()
