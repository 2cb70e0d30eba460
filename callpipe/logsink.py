"""Per-pipeline log sink."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .errors import safe_repr

logger = logging.getLogger(__name__)


def format_values(values: tuple) -> str:
    """Comma-separated reprs, as used in call records."""
    return ", ".join(safe_repr(v) for v in values)


@dataclass
class LogSink:
    """Where a pipeline reports its calls, and how much.

    ``target`` is either a ``logging.Logger`` or a text stream with a
    ``write()`` method (``sys.stderr``, ``io.StringIO``, an open file).
    With ``verbose=False`` only errors and panics are written; with
    ``verbose=True`` every call, its arguments and outputs, and every error
    handler decision are written as well.

    Writing is best effort: a failing stream never affects the run.
    """

    target: Optional[Any] = None
    verbose: bool = False

    @property
    def enabled(self) -> bool:
        return self.target is not None

    def panic(self, msg: str, *args: Any) -> None:
        self._emit(logging.ERROR, "PANIC", msg, args)

    def error(self, msg: str, *args: Any) -> None:
        self._emit(logging.ERROR, "ERROR", msg, args)

    def debug(self, msg: str, *args: Any) -> None:
        if self.verbose:
            self._emit(logging.DEBUG, "DEBUG", msg, args)

    def _emit(self, level: int, prefix: str, msg: str, args: tuple) -> None:
        if self.target is None:
            return
        if isinstance(self.target, logging.Logger):
            self.target.log(level, f"{prefix}: {msg}", *args)
            return
        try:
            self.target.write(f"{prefix}: {msg % args}\n")
        except (OSError, ValueError) as e:
            logger.warning("Could not write pipeline log record: %s", e)
