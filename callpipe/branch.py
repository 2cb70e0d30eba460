"""Tees and feeds: what happens after a call succeeded.

A *tee* is a side call attached to a position.  It receives the value set
of that position (through ``PIPE``) and its outputs are dropped; only its
error matters.  A tee may also be a whole sub-pipeline, attached with one
of the runner methods::

    pipe.tee(sub.run)                # bound runner
    pipe.tee(Pipeline.fallback, sub) # unbound runner + the pipeline

The sub-pipeline is then run with the value set as its start values.  The
values are passed explicitly, so the same sub-pipeline can be teed at
several positions (or in several parents) without sharing state.

A *feed* registers pipelines whose ``start_values`` are overwritten with
the value set every time the position succeeds; they run later, whenever
their owner runs them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

from .errors import PipelineError
from .result import FallbackResult
from .signature import check_call

if TYPE_CHECKING:
    from .call import Call
    from .pipeline import Pipeline


def runner_entry_point(fn: Callable) -> Callable:
    """Mark a ``Pipeline`` method as a runner usable as a sub-pipeline tee."""
    fn.__pipeline_runner__ = True  # type: ignore[attr-defined]
    return fn


def is_runner(function: Any) -> bool:
    func = getattr(function, "__func__", function)
    return bool(getattr(func, "__pipeline_runner__", False))


def split_runner(tee: Call) -> Optional[tuple[Callable[[tuple], Any], Pipeline]]:
    """Return ``(runner, sub_pipeline)`` if *tee* follows the runner convention.

    ``runner`` takes the value set as a single tuple and runs the
    sub-pipeline with exactly those values, even when empty; the stored
    ``start_values`` of the sub-pipeline are never consulted.
    """
    if not is_runner(tee.function):
        return None
    sub = getattr(tee.function, "__self__", None)
    if sub is None:
        if not tee.arguments:
            return None
        sub = tee.arguments[0]
    func = getattr(tee.function, "__func__", tee.function)
    return getattr(sub, f"_{func.__name__}"), sub


def run_tees_and_feeds(
    pipe: Pipeline, position: int, values: tuple
) -> Optional[Exception]:
    """Push *values* to the feeds of *position*, then run its tees in order.

    Returns the first tee error, or ``None``.
    """
    for target in pipe.feeds.get(position, ()):
        target.start_values = values

    for tee in pipe.tees.get(position, ()):
        runner = split_runner(tee)
        if runner is None:
            _, err = pipe._invoke(tee, values)
        else:
            run, _sub = runner
            outcome = run(values)
            err = outcome.error if isinstance(outcome, FallbackResult) else outcome
        if err is not None:
            return err
    return None


def check_tees(pipe: Pipeline, position: int, outputs: Optional[tuple]) -> None:
    """Validate the tees of *position* against the declared *outputs* there.

    Raises the first ``PipelineError`` found.  Sub-pipeline tees are checked
    recursively with *outputs* as their start types.
    """
    for tee in pipe.tees.get(position, ()):
        runner = split_runner(tee)
        if runner is None:
            check_call(tee, outputs)
            continue
        _run, sub = runner
        err: Optional[PipelineError] = sub._check(outputs)
        if err is not None:
            raise err
