"""
Context model: one pending event plus everything needed to deliver it.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, TypeAlias, Union

from .config import ConfigLike, LoggerConfig, resolve_config
from .errors import ContextError

JSONValue: TypeAlias = Union[
    str,
    int,
    float,
    bool,
    None,
    Dict[str, "JSONValue"],
    List["JSONValue"],
]

METADATA_KEYS = ("time", "host", "source", "sourcetype", "index")

AUTH_SCHEME = "Splunk"


class Severity(str, Enum):
    """Common severity labels. Any string is accepted as a severity."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


@dataclass
class RequestOptions:
    """Options handed to the transport for one POST."""

    url: str = ""
    json: bool = True
    strict_ssl: bool = False
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    max_retries: int = 0

    def copy(self) -> "RequestOptions":
        return replace(self, headers=dict(self.headers))


@dataclass
class Context:
    """
    A single unit of work.

    Middleware receives the same instance and may change it in place.
    """

    message: JSONValue
    severity: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    config: Optional[ConfigLike] = None
    request_options: Optional[RequestOptions] = None


def pick_metadata(metadata: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Keep only the metadata keys the collector understands."""
    if not metadata:
        return {}
    return {key: metadata[key] for key in METADATA_KEYS if key in metadata}


def _from_mapping(data: Mapping[str, Any]) -> Context:
    if "message" not in data:
        raise ContextError("Context argument must have the message property set.")
    return Context(
        message=data["message"],
        severity=data.get("severity"),
        metadata=data.get("metadata"),
        config=data.get("config"),
        request_options=data.get("request_options"),
    )


def build_request_options(
    config: LoggerConfig, defaults: Optional[RequestOptions] = None
) -> RequestOptions:
    options = defaults.copy() if defaults is not None else RequestOptions()
    options.url = config.url
    options.max_retries = config.max_retries
    options.headers["Authorization"] = f"{AUTH_SCHEME} {config.token}"
    return options


def initialize_context(
    context: Union[Context, Mapping[str, Any], None],
    base_config: LoggerConfig,
    request_defaults: Optional[RequestOptions] = None,
) -> Context:
    """
    Validate a context and fill in everything it leaves out.

    Safe to run again on an already initialized context: the config is
    resolved against ``base_config`` once more and the request url and
    Authorization header are refreshed from it.

    Args:
        context: Context instance or mapping with at least ``message``
        base_config: The owning logger's configuration
        request_defaults: Request options to start from

    Returns:
        The initialized Context (the same instance when one was passed)

    Raises:
        ContextError: If the context is missing or malformed
        ConfigError: If a per-context config override is malformed
    """
    if context is None:
        raise ContextError("Context argument is required.")
    if isinstance(context, Mapping):
        context = _from_mapping(context)
    elif not isinstance(context, Context):
        raise ContextError("Context argument must be an object.")

    if context.message is None:
        raise ContextError("Message argument is required.")

    if context.config is None:
        config = base_config
    else:
        config = resolve_config(base_config, context.config)
    context.config = config

    context.severity = context.severity or config.level
    if isinstance(context.severity, Severity):
        context.severity = context.severity.value
    context.metadata = pick_metadata(context.metadata)

    previous = context.request_options
    if previous is not None:
        options = build_request_options(config, previous)
    else:
        options = build_request_options(config, request_defaults)
    context.request_options = options
    return context
