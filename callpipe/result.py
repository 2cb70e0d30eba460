"""Outcome type of a fallback run."""

from __future__ import annotations

from typing import NamedTuple, Optional


class FallbackResult(NamedTuple):
    """Where a fallback run stopped and why.

    ``error`` is ``None`` when the call at ``position`` succeeded.  Otherwise
    it is the error the handler chose to report, or, when every call
    failed, the original error of the last call.  ``position`` is ``-1``
    for an empty pipeline.

    Unpacks like a pair::

        pos, err = pipe.fallback()
    """

    position: int
    error: Optional[Exception]
