"""
HTTP transport for the HTTP Event Collector.
"""

import logging
import random
import threading
import time
from typing import Any, Callable, Optional, Protocol, Set

import requests

from .context import RequestOptions
from .errors import TransportError

logger = logging.getLogger(__name__)

ResponseCallback = Callable[[Optional[BaseException], Any, Any], None]

MIN_BACKOFF_MS = 10
MAX_BACKOFF_MS = 2 * 60 * 1000


class Transport(Protocol):
    def post(self, options: RequestOptions, callback: ResponseCallback) -> None:
        ...


def backoff_delay(attempt: int, rand: Optional[float] = None) -> float:
    """
    Exponential backoff delay in seconds for a retry attempt.

    Args:
        attempt: 1-based retry number
        rand: Jitter in [0, 1), random when omitted
    """
    if rand is None:
        rand = random.random()
    delay_ms = round((rand + 1) * MIN_BACKOFF_MS * 2**attempt)
    return min(delay_ms, MAX_BACKOFF_MS) / 1000.0


def _decode_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpTransport:
    """
    Posts events with requests.

    Each delivery runs on its own daemon thread unless ``asynchronous`` is
    False, and the callback receives ``(err, response, body)``.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
        asynchronous: bool = True,
        sleep: Callable[[float], None] = time.sleep,
        close_timeout: float = 30.0,
    ):
        """
        Initialize HttpTransport.

        Args:
            timeout: Request timeout in seconds
            session: Custom requests.Session to use (e.g., shared by application)
            asynchronous: Deliver on a background thread
            sleep: Used to wait between retries
            close_timeout: Seconds close() waits for in-flight deliveries
        """
        self.timeout = timeout
        self.asynchronous = asynchronous
        self._sleep = sleep
        self.close_timeout = close_timeout
        self._threads: Set[threading.Thread] = set()
        self._threads_lock = threading.Lock()
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()

    def reset_session(self) -> None:
        """Swap an owned session for a fresh one after a connection failure."""
        if self._owns_session:
            self._session.close()
            self._session = requests.Session()

    def post(self, options: RequestOptions, callback: ResponseCallback) -> None:
        if not self.asynchronous:
            self._deliver(options, callback)
            return

        thread = threading.Thread(
            target=self._deliver_tracked, args=(options, callback), daemon=True
        )
        # Started under the lock so wait() never sees an unstarted thread
        with self._threads_lock:
            self._threads.add(thread)
            thread.start()

    def _deliver_tracked(
        self, options: RequestOptions, callback: ResponseCallback
    ) -> None:
        try:
            self._deliver(options, callback)
        finally:
            with self._threads_lock:
                self._threads.discard(threading.current_thread())

    def pending_deliveries(self) -> int:
        with self._threads_lock:
            return len(self._threads)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until in-flight deliveries finish.

        Args:
            timeout: Overall limit in seconds, None waits indefinitely

        Returns:
            True if nothing is left in flight
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._threads_lock:
                threads = [t for t in self._threads if t is not threading.current_thread()]
            if not threads:
                return True
            for thread in threads:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                thread.join(remaining)

    def _request(self, options: RequestOptions) -> requests.Response:
        kwargs = {
            "headers": options.headers,
            "verify": options.strict_ssl,
            "timeout": self.timeout,
        }
        if options.json:
            kwargs["json"] = options.body
        else:
            kwargs["data"] = (
                options.body.encode("utf-8")
                if isinstance(options.body, str)
                else options.body
            )
        return self._session.post(options.url, **kwargs)

    def _deliver(self, options: RequestOptions, callback: ResponseCallback) -> None:
        attempt = 0
        while True:
            try:
                response = self._request(options)
            except requests.exceptions.RequestException as exc:
                self.reset_session()
                if attempt < options.max_retries:
                    attempt += 1
                    delay = backoff_delay(attempt)
                    logger.debug(
                        "POST to %s failed (%s), retry %d in %.3fs",
                        options.url, exc, attempt, delay,
                    )
                    self._sleep(delay)
                    continue
                error = TransportError(str(exc))
                error.__cause__ = exc
                callback(error, None, None)
                return

            callback(None, response, _decode_body(response))
            return

    def close(self) -> None:
        """Wait for in-flight deliveries, then close an owned session."""
        if not self.wait(self.close_timeout):
            logger.warning(
                "Closing with %d deliveries still in flight", self.pending_deliveries()
            )
        if self._owns_session:
            self._session.close()
