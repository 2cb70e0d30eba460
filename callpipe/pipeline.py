"""Pipeline: ordered calls, piped values, one error policy."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from .branch import check_tees, is_runner, run_tees_and_feeds, runner_entry_point
from .call import Call
from .errors import (
    CallPanicError,
    InvalidArgumentError,
    InvalidCallableError,
    PipelineConfigError,
    PipelineError,
    safe_repr,
)
from .handlers import IGNORE, STOP, ErrorHandler, as_handler
from .logsink import LogSink, format_values
from .result import FallbackResult
from .signature import check_call, output_spec

logger = logging.getLogger(__name__)

_STRUCTURAL = (InvalidCallableError, InvalidArgumentError)


class Pipeline:
    """Ordered sequence of calls run one after another.

    Build via the fluent API::

        err = (
            Pipeline()
            .add(read_field, "age", record)
            .add(int, PIPE)
            .add(person.set_age, PIPE)
            .on_error(STOP)
            .run()
        )

    Every call receives its literal arguments, with ``PIPE`` replaced by the
    non-error outputs of the previous call.  A declared trailing error
    output (see :mod:`callpipe.signature`) is handed to the error handler;
    an exception raised out of a call becomes a :class:`CallPanicError` and
    is handed to the handler as well.

    ``run()`` stops at the first error the handler does not swallow;
    ``fallback()`` stops at the first call that succeeds.  Neither mutates
    the calls, so a pipeline may be run any number of times.

    A ``Pipeline`` is itself callable (``pipe(*values)`` runs it and returns
    its error), so it can be added as a step of another pipeline.
    """

    def __init__(
        self,
        error_handler: ErrorHandler | Callable | None = None,
        *,
        start_values: tuple = (),
    ) -> None:
        self._calls: list[Call] = []
        self.error_handler: Optional[ErrorHandler] = as_handler(error_handler)
        self.sink = LogSink()
        self.tees: dict[int, list[Call]] = {}
        self.feeds: dict[int, list[Pipeline]] = {}
        # Overwritten by feeding pipelines; not stable between runs.
        self.start_values: tuple = tuple(start_values)

    # ------------------------------------------------------------------
    # Fluent builder
    # ------------------------------------------------------------------

    def add(self, function: Any, *arguments: Any) -> "Pipeline":
        """Append *function* with *arguments* and return ``self`` for chaining."""
        self._calls.append(
            Call(function, tuple(arguments), position=len(self._calls))
        )
        return self

    def add_named(self, name: str, function: Any, *arguments: Any) -> "Pipeline":
        """Like :meth:`add`, with a *name* shown in errors and log records."""
        return self.add(function, *arguments).with_name(name)

    def with_name(self, name: str) -> "Pipeline":
        """Name the most recently added call."""
        position = self._last_position("naming it")
        self._calls[position] = self._calls[position].replace(name=name)
        return self

    def on_error(self, handler: ErrorHandler | Callable | None) -> "Pipeline":
        """Set the error handler.  Only the last call has any effect."""
        self.error_handler = as_handler(handler)
        return self

    def tee(self, function: Any, *arguments: Any) -> "Pipeline":
        """Attach a side call to the most recently added call.

        A sub-pipeline is teed through one of its runners, either bound
        (``tee(sub.run)``) or unbound with the pipeline as the only argument
        (``tee(Pipeline.run, sub)``).  It always receives the value set of
        the call, so runner tees take no other arguments.
        """
        position = self._last_position("teeing it")
        if is_runner(function):
            bound = getattr(function, "__self__", None) is not None
            if bound and arguments:
                raise PipelineConfigError(
                    "a bound runner tee takes no arguments, "
                    f"got {len(arguments)}"
                )
            if not bound and (
                len(arguments) != 1 or not isinstance(arguments[0], Pipeline)
            ):
                raise PipelineConfigError(
                    "an unbound runner tee takes exactly one pipeline argument, "
                    f"got ({', '.join(type(a).__name__ for a in arguments)})"
                )
        branches = self.tees.setdefault(position, [])
        branches.append(
            Call(
                function,
                tuple(arguments),
                position=position,
                branch=len(branches),
            )
        )
        return self

    def feed(self, *pipelines: "Pipeline") -> "Pipeline":
        """Make the most recently added call feed its outputs to *pipelines*."""
        position = self._last_position("feeding it")
        for target in pipelines:
            if not isinstance(target, Pipeline):
                raise PipelineConfigError(
                    f"only pipelines can be fed, got {type(target).__name__}"
                )
        self.feeds.setdefault(position, []).extend(pipelines)
        return self

    def log_to(self, target: Any, verbose: bool = False) -> "Pipeline":
        """Report calls to *target* (a ``logging.Logger`` or a text stream).

        Only the last logging setter has any effect.
        """
        self.sink = LogSink(target=target, verbose=verbose)
        return self

    def log_errors_to(self, target: Any) -> "Pipeline":
        return self.log_to(target, verbose=False)

    def log_debug_to(self, target: Any) -> "Pipeline":
        return self.log_to(target, verbose=True)

    def clone(self) -> "Pipeline":
        """Return an independent copy sharing only the callables and arguments."""
        copy = Pipeline(self.error_handler, start_values=self.start_values)
        copy._calls = list(self._calls)
        copy.sink = LogSink(target=self.sink.target, verbose=self.sink.verbose)
        copy.tees = {pos: list(calls) for pos, calls in self.tees.items()}
        copy.feeds = {pos: list(pipes) for pos, pipes in self.feeds.items()}
        return copy

    def _last_position(self, action: str) -> int:
        if not self._calls:
            raise PipelineConfigError(f"add a call before {action}")
        return len(self._calls) - 1

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def calls(self) -> tuple[Call, ...]:
        return tuple(self._calls)

    def __len__(self) -> int:
        return len(self._calls)

    def __repr__(self) -> str:
        return f"Pipeline(calls={len(self._calls)}, error_handler={self.error_handler!r})"

    # ------------------------------------------------------------------
    # Invoker
    # ------------------------------------------------------------------

    def _invoke(self, call: Call, values: tuple) -> tuple[tuple, Optional[Exception]]:
        """Call *call* with ``PIPE`` resolved to *values*.

        Returns ``(value_set, error)``.  Exceptions raised by the callable
        never escape: they come back as ``CallPanicError``.
        """
        args = call.resolve(values)
        if not callable(call.function):
            err = InvalidCallableError(
                f"{type(call.function).__name__!r} is no callable",
                position=call.position,
                signature=call.signature,
                name=call.name,
                branch=call.branch,
            )
            self.sink.panic("%s %r is no callable", call.label, call.signature)
            return (), err

        try:
            result = call.function(*args)
        except Exception as exc:
            err = CallPanicError(
                _message_of(exc),
                position=call.position,
                signature=call.signature,
                arguments=args,
                name=call.name,
                branch=call.branch,
            )
            err.__cause__ = exc
            self.sink.panic(
                "%s Panic in %s: %s", call.label, call.signature, safe_repr(exc)
            )
            return (), err

        out, err = output_spec(call.function).split(result)
        if self.sink.enabled:
            self.sink.debug(
                "%s %s(%s) => %s",
                call.label,
                call.signature,
                format_values(args),
                format_values(out + ((err,) if err is not None else ())),
            )
            if err is not None and not self.sink.verbose:
                self.sink.error(
                    "%s %s => error: %s", call.label, call.signature, safe_repr(err)
                )
        return out, err

    def _handle(
        self, handler: ErrorHandler, err: Exception, tag: str
    ) -> Optional[Exception]:
        handled = handler.handle_error(err)
        self.sink.debug(
            "[%s] %s(%s) => %s", tag, handler, safe_repr(err), safe_repr(handled)
        )
        return handled

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def check(self, *start_values: Any) -> Optional[PipelineError]:
        """Check callables and argument types without calling anything.

        Returns the first ``InvalidCallableError`` / ``InvalidArgumentError``
        found, or ``None``.  *start_values* (or the stored ``start_values``)
        are used only for their types.
        """
        return self._check(_types_of(self._start(start_values)))

    def _check(self, piped: Optional[tuple]) -> Optional[PipelineError]:
        for call in self._calls:
            try:
                piped = check_call(call, piped)
                check_tees(self, call.position, piped)
            except PipelineError as err:
                self.sink.panic("%s %s invalid: %s", err.label, err.signature, err.message)
                return err
        return None

    # ------------------------------------------------------------------
    # Runners
    # ------------------------------------------------------------------
    #
    # The public runners fall back to the stored ``start_values`` when
    # called without arguments.  The private ``_``-prefixed twins take the
    # value set as given, empty included; tees run sub-pipelines through
    # those.

    def _start(self, start_values: tuple) -> tuple:
        return tuple(start_values or self.start_values)

    @runner_entry_point
    def run(self, *start_values: Any) -> Optional[Exception]:
        """Run every call in order; return the first unhandled error or ``None``.

        Errors go to the error handler (``STOP`` by default).  If it returns
        ``None`` the run continues with the next call, otherwise the run
        stops and its return value is returned.  Tees and feeds of a call
        fire only when the call succeeded; tee errors go through the same
        handler.  Invalid callables are returned right away, unhandled.
        """
        return self._run(self._start(start_values))

    def _run(self, values: tuple) -> Optional[Exception]:
        handler = self.error_handler or STOP

        for call in self._calls:
            values, err = self._invoke(call, values)
            if err is not None:
                if isinstance(err, _STRUCTURAL):
                    return err
                err = self._handle(handler, err, "E")
                if err is not None:
                    logger.debug("Pipeline stopped at %s: %s", call.label, safe_repr(err))
                    return err
                continue

            err = run_tees_and_feeds(self, call.position, values)
            if err is not None:
                if isinstance(err, _STRUCTURAL):
                    return err
                err = self._handle(handler, err, "ET")
                if err is not None:
                    logger.debug(
                        "Pipeline stopped at tee of %s: %s", call.label, safe_repr(err)
                    )
                    return err
        return None

    @runner_entry_point
    def fallback(self, *start_values: Any) -> FallbackResult:
        """Run calls in order until one succeeds.

        - The first call without error ends the run: ``(position, None)``.
        - Errors go to the error handler (``IGNORE`` by default).  ``None``
          means "try the next call"; anything else ends the run with that
          error.
        - If the last call fails, its original error is returned even when
          the handler swallows it, since it is the last resort.

        Tees and feeds fire only at the position the run stops at.
        """
        return self._fallback(self._start(start_values))

    def _fallback(self, values: tuple) -> FallbackResult:
        handler = self.error_handler or IGNORE
        last = len(self._calls) - 1

        for call in self._calls:
            position = call.position
            values, err = self._invoke(call, values)
            if err is None:
                tee_err = run_tees_and_feeds(self, position, values)
                if tee_err is not None and not isinstance(tee_err, _STRUCTURAL):
                    tee_err = self._handle(handler, tee_err, "ET")
                return FallbackResult(position, tee_err)

            if isinstance(err, _STRUCTURAL):
                return FallbackResult(position, err)

            handled = self._handle(handler, err, "E")
            if handled is not None or position == last:
                tee_err = run_tees_and_feeds(self, position, values)
                if tee_err is not None:
                    self.sink.error(
                        "[ET] %s tee error dropped: %s", call.label, safe_repr(tee_err)
                    )
                    logger.warning(
                        "Dropped tee error at failed call %s: %s",
                        call.label,
                        safe_repr(tee_err),
                    )
                return FallbackResult(position, handled if handled is not None else err)

        return FallbackResult(-1, None)

    @runner_entry_point
    def check_and_run(self, *start_values: Any) -> Optional[Exception]:
        """:meth:`check`, then :meth:`run` if the check passed."""
        return self._check_and_run(self._start(start_values))

    def _check_and_run(self, values: tuple) -> Optional[Exception]:
        err = self._check(_types_of(values))
        if err is not None:
            return err
        return self._run(values)

    @runner_entry_point
    def check_and_fallback(self, *start_values: Any) -> FallbackResult:
        """:meth:`check`, then :meth:`fallback` if the check passed."""
        return self._check_and_fallback(self._start(start_values))

    def _check_and_fallback(self, values: tuple) -> FallbackResult:
        err = self._check(_types_of(values))
        if err is not None:
            return FallbackResult(err.position, err)
        return self._fallback(values)

    def __call__(self, *start_values: Any) -> Optional[Exception]:
        return self.run(*start_values)


def _types_of(values: tuple) -> tuple:
    return tuple(type(v) for v in values)


def _message_of(exc: Exception) -> str:
    try:
        return str(exc) or type(exc).__name__
    except Exception:
        return type(exc).__name__
