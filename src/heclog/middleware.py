"""
Sequential middleware chain run over a context before dispatch.

A step is ``step(context, next_)``. It must call ``next_`` exactly once:
``next_()`` or ``next_(None, context)`` to continue, ``next_(error)`` to stop
the chain. Steps that change the context in place need not pass it on.
"""

import logging
import threading
from typing import Any, Callable, List, Optional

from .context import Context
from .errors import ChainError, MiddlewareError

logger = logging.getLogger(__name__)

Continuation = Callable[..., None]
Middleware = Callable[[Context, Continuation], None]
OnComplete = Callable[[Optional[BaseException], Optional[Context]], None]


def _as_error(error: Any) -> BaseException:
    if isinstance(error, BaseException):
        return error
    return ChainError(str(error))


class _ChainRun:
    """State of one pass through the chain."""

    def __init__(
        self, steps: List[Middleware], context: Context, on_complete: OnComplete
    ):
        self.steps = steps
        self.context = context
        self.on_complete = on_complete
        self.index = 0

    def advance(self) -> None:
        if self.index >= len(self.steps):
            self.on_complete(None, self.context)
            return

        step = self.steps[self.index]
        position = self.index
        self.index += 1

        called = False
        lock = threading.Lock()

        def next_(error: Any = None, context: Optional[Context] = None) -> None:
            nonlocal called
            with lock:
                if called:
                    logger.warning(
                        "Middleware step %d continued more than once; ignoring",
                        position,
                    )
                    return
                called = True

            if error is not None:
                logger.debug("Middleware step %d failed: %r", position, error)
                self.on_complete(
                    _as_error(error), context if context is not None else self.context
                )
                return
            if context is not None:
                self.context = context
            self.advance()

        try:
            step(self.context, next_)
        except Exception as exc:
            with lock:
                already_called = called
                called = True
            if already_called:
                raise
            error = ChainError(f"Middleware step {position} raised: {exc}")
            error.__cause__ = exc
            self.on_complete(error, self.context)


class MiddlewareChain:
    """Ordered list of middleware steps."""

    def __init__(self) -> None:
        self._steps: List[Middleware] = []

    def use(self, step: Middleware) -> None:
        """
        Register a step at the end of the chain.

        Raises:
            MiddlewareError: If step is not callable
        """
        if not callable(step):
            raise MiddlewareError("Middleware must be a function.")
        self._steps.append(step)

    def __len__(self) -> int:
        return len(self._steps)

    def run(self, context: Context, on_complete: OnComplete) -> None:
        """
        Run every step in registration order, then call ``on_complete``.

        ``on_complete(None, context)`` receives the last context on success.
        On failure it receives the error and the context the failing step
        passed, or the last context seen when it passed none.
        """
        _ChainRun(list(self._steps), context, on_complete).advance()
