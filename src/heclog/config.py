"""
Configuration resolution for HECLogger.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlsplit

from .errors import ConfigError

LIBRARY_NAME = "heclog-python/0.1.0"

MIN_PORT = 1000
MAX_PORT = 65535

PROTOCOLS = ("http", "https")

DEFAULTS: Dict[str, Any] = {
    "name": LIBRARY_NAME,
    "host": "localhost",
    "path": "/services/collector/event/1.0",
    "protocol": "https",
    "port": 8088,
    "level": "info",
    "auto_flush": True,
    "max_retries": 0,
    "batch_interval": 0,
    "max_batch_count": 0,
    "max_batch_size": 0,
}

_COUNTERS = {
    "max_retries": "Max retries",
    "batch_interval": "Batch interval",
    "max_batch_count": "Max batch count",
    "max_batch_size": "Max batch size",
}


@dataclass(frozen=True)
class LoggerConfig:
    """Resolved, immutable logger configuration."""

    token: str
    name: str = DEFAULTS["name"]
    host: str = DEFAULTS["host"]
    path: str = DEFAULTS["path"]
    protocol: str = DEFAULTS["protocol"]
    port: int = DEFAULTS["port"]
    level: str = DEFAULTS["level"]
    auto_flush: bool = DEFAULTS["auto_flush"]
    max_retries: int = DEFAULTS["max_retries"]
    batch_interval: int = DEFAULTS["batch_interval"]
    max_batch_count: int = DEFAULTS["max_batch_count"]
    max_batch_size: int = DEFAULTS["max_batch_size"]

    @property
    def url(self) -> str:
        """Full collector endpoint URL."""
        return f"{self.protocol}://{self.host}:{self.port}{self.path}"

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


ConfigLike = Union[LoggerConfig, Mapping[str, Any]]

_FIELD_NAMES = tuple(f.name for f in fields(LoggerConfig))


def _as_mapping(config: Optional[ConfigLike]) -> Dict[str, Any]:
    if config is None:
        return {}
    if isinstance(config, LoggerConfig):
        return config.as_dict()
    return dict(config)


def _values_from_url(url: str) -> Dict[str, Any]:
    """Extract protocol, host, port and path from a connection URL."""
    parsed = urlsplit(url)
    path = parsed.path
    if parsed.query:
        path = f"{path}?{parsed.query}"
    meaningful_path = bool(path) and path != "/"

    values: Dict[str, Any] = {}
    if parsed.scheme and parsed.netloc:
        values["protocol"] = parsed.scheme
    try:
        port = parsed.port
    except ValueError as exc:
        raise ConfigError(f"Invalid port in url: {url}") from exc
    if port:
        values["port"] = port
    if parsed.hostname:
        values["host"] = parsed.hostname
        if meaningful_path:
            values["path"] = path
    elif meaningful_path:
        # "splunk.local" parses as a bare path; treat it as the host
        values["host"] = path
    return values


def _parse_port(port: Any) -> int:
    if isinstance(port, bool):
        raise ConfigError(f"Port must be an integer, found: {port}")
    try:
        value = int(str(port).strip())
    except ValueError:
        raise ConfigError(f"Port must be an integer, found: {port}") from None
    if value < MIN_PORT or value > MAX_PORT:
        raise ConfigError(
            f"Port must be an integer between {MIN_PORT} and {MAX_PORT}, "
            f"found: {value}"
        )
    return value


def _parse_flag(value: Any, label: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ConfigError(f"{label} must be a boolean, found: {value!r}")


def _parse_counter(value: Any, label: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{label} must be a number, found: {value}")
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ConfigError(f"{label} must be a number, found: {value}") from None
    if number < 0:
        raise ConfigError(f"{label} must be a positive number, found: {number}")
    return number


def resolve_config(
    base: Optional[ConfigLike], override: Optional[ConfigLike]
) -> LoggerConfig:
    """
    Merge ``override`` on top of ``base`` and the library defaults.

    For every field the override wins, then any value derived from
    ``override["url"]``, then the base value, then the default. Fields set
    explicitly on the override are never replaced by the url.

    Args:
        base: Previously resolved config (or raw mapping), may be None
        override: Mapping or LoggerConfig with the values to apply

    Returns:
        A new LoggerConfig

    Raises:
        ConfigError: If either layer is malformed
    """
    if override is None:
        raise ConfigError("Config is required.")
    if not isinstance(override, (Mapping, LoggerConfig)):
        raise ConfigError("Config must be an object.")

    base_values = _as_mapping(base)
    explicit = _as_mapping(override)

    if "token" not in base_values and "token" not in explicit:
        raise ConfigError("Config object must have a token.")

    if "use_https" in explicit and "protocol" not in explicit:
        explicit["protocol"] = "https" if explicit["use_https"] else "http"

    from_url: Dict[str, Any] = {}
    if explicit.get("url"):
        from_url = {
            key: value
            for key, value in _values_from_url(str(explicit["url"])).items()
            if key not in explicit
        }

    merged: Dict[str, Any] = {}
    for name in _FIELD_NAMES:
        for layer in (explicit, from_url, base_values, DEFAULTS):
            if name in layer and layer[name] is not None:
                merged[name] = layer[name]
                break

    if not isinstance(merged.get("token"), str):
        raise ConfigError("Config token must be a string.")
    if not merged["token"].strip():
        raise ConfigError("Config token must not be empty.")

    merged["port"] = _parse_port(merged["port"])
    merged["protocol"] = str(merged["protocol"]).lower()
    if merged["protocol"] not in PROTOCOLS:
        raise ConfigError(
            f"Protocol must be one of {', '.join(PROTOCOLS)}, "
            f"found: {merged['protocol']}"
        )
    merged["auto_flush"] = _parse_flag(merged["auto_flush"], "Autoflush")
    for name, label in _COUNTERS.items():
        merged[name] = _parse_counter(merged[name], label)

    return LoggerConfig(**merged)
