"""
Turns contexts into the event bodies the collector expects.
"""

import json
import time
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .config import DEFAULTS, LoggerConfig
from .context import Context, pick_metadata
from .errors import BodyError

EventFormatter = Callable[[Any, str], Any]


def format_time(value: Any) -> Optional[str]:
    """
    Normalize a timestamp to epoch seconds with three decimals.

    Accepts datetime objects, epoch seconds, epoch milliseconds and numeric
    strings of either. Returns None for falsy values.

    Raises:
        BodyError: If the value is not a number
    """
    if isinstance(value, datetime):
        value = round(value.timestamp() * 1000)
    if isinstance(value, bool) or not value:
        return None

    text = str(value).strip()
    try:
        if "." in text:
            clean = f"{float(text):.3f}"
            # More than ten digits before the decimal point
            if clean.index(".") >= 10:
                clean = f"{float(clean[:14]):.3f}"
        elif len(text) == 13:
            clean = f"{float(text) / 1000:.3f}"
        elif len(text) <= 12:
            clean = f"{float(text):.3f}"
        else:
            clean = f"{float(text[:13]) / 1000:.3f}"
    except ValueError:
        raise BodyError(f"Time must be a number, found: {value!r}") from None
    return clean


def default_event_formatter(message: Any, severity: str) -> Dict[str, Any]:
    """Default event shape: ``{"message": ..., "severity": ...}``."""
    return {"message": message, "severity": severity}


def make_body(
    context: Optional[Context],
    event_formatter: Optional[EventFormatter] = None,
    now: Callable[[], float] = time.time,
) -> Dict[str, Any]:
    """
    Build the event envelope for one context.

    Args:
        context: The context to serialize
        event_formatter: Builds the ``event`` value from message and severity
        now: Clock returning epoch seconds, used when no time is set

    Returns:
        Dict with the present metadata keys, ``time`` and ``event``

    Raises:
        BodyError: If context is missing
    """
    if context is None:
        raise BodyError("Context parameter is required.")

    body: Dict[str, Any] = pick_metadata(context.metadata)
    timestamp = body.get("time") or round(now() * 1000)
    body["time"] = format_time(timestamp)

    severity = context.severity
    if not severity:
        config = context.config
        severity = config.level if isinstance(config, LoggerConfig) else DEFAULTS["level"]

    if isinstance(severity, Enum):
        severity = severity.value

    formatter = event_formatter or default_event_formatter
    body["event"] = formatter(context.message, str(severity))
    return body


def serialize_body(body: Dict[str, Any]) -> str:
    """Compact JSON text for one event body."""
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)
