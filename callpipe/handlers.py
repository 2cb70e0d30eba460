"""Error handler protocol and the predefined policies.

An error handler decides what happens when a call fails:

- return ``None`` to swallow the error and keep going;
- return the error (or a replacement) to stop the run and report it.

``Pipeline.run()`` defaults to ``STOP``, ``Pipeline.fallback()`` to
``IGNORE``.  ``PANIC`` raises on the first error, escalating out of the
runner instead of returning.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol, runtime_checkable


@runtime_checkable
class ErrorHandler(Protocol):
    """Structural protocol for error handling policies."""

    def handle_error(self, err: Exception) -> Optional[Exception]: ...


class ErrorHandlerFunc:
    """Adapts a plain ``fn(err) -> err | None`` to the ``ErrorHandler`` protocol."""

    def __init__(self, fn: Callable[[Exception], Optional[Exception]]) -> None:
        self.fn = fn

    def handle_error(self, err: Exception) -> Optional[Exception]:
        return self.fn(err)

    def __repr__(self) -> str:
        name = getattr(self.fn, "__name__", type(self.fn).__name__)
        return f"ErrorHandlerFunc({name})"


class _Stop:
    def handle_error(self, err: Exception) -> Optional[Exception]:
        return err

    def __repr__(self) -> str:
        return "STOP"


class _Ignore:
    def handle_error(self, err: Exception) -> Optional[Exception]:
        return None

    def __repr__(self) -> str:
        return "IGNORE"


class _Panic:
    def handle_error(self, err: Exception) -> Optional[Exception]:
        raise err

    def __repr__(self) -> str:
        return "PANIC"


STOP: ErrorHandler = _Stop()
IGNORE: ErrorHandler = _Ignore()
PANIC: ErrorHandler = _Panic()


def as_handler(handler: ErrorHandler | Callable | None) -> ErrorHandler | None:
    """Normalise *handler*: bare callables are wrapped in ``ErrorHandlerFunc``."""
    if handler is None or isinstance(handler, ErrorHandler):
        return handler
    if callable(handler):
        return ErrorHandlerFunc(handler)
    raise TypeError(
        f"error handler must have a handle_error() method or be callable, "
        f"got {type(handler).__name__}"
    )
