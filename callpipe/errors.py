"""Pipeline error types."""

from __future__ import annotations

from typing import Any


def safe_repr(value: Any) -> str:
    """``repr()`` that never raises; tuple items are rendered one by one."""
    if type(value) is tuple:
        items = [safe_repr(v) for v in value]
        if len(items) == 1:
            return f"({items[0]},)"
        return f"({', '.join(items)})"
    try:
        return repr(value)
    except Exception:
        return f"<unrepresentable {type(value).__name__}>"


def format_label(position: int, branch: int | None, name: str | None) -> str:
    """Render a 1-based ``[pos]`` / ``[pos.branch]`` prefix, plus the name if set."""
    pos = f"{position + 1}"
    if branch is not None:
        pos += f".{branch + 1}"
    if name:
        return f"[{pos}] {name!r}"
    return f"[{pos}]"


class PipelineConfigError(Exception):
    """Invalid pipeline wiring detected while building.

    Examples:
    - Naming, teeing or feeding before any call was added.
    - Feeding something that is not a ``Pipeline``.
    """


class PipelineError(Exception):
    """Base for structured errors produced while checking or running a call.

    ``position`` is the 0-based index of the call in its pipeline; rendered
    messages use 1-based numbering.  ``branch`` is set for errors raised by a
    tee attached to that position.
    """

    kind = "failed"

    def __init__(
        self,
        message: str,
        *,
        position: int,
        signature: str,
        name: str | None = None,
        branch: int | None = None,
    ) -> None:
        self.message = message
        self.position = position
        self.signature = signature
        self.name = name
        self.branch = branch
        super().__init__(str(self))

    @property
    def label(self) -> str:
        return format_label(self.position, self.branch, self.name)

    def _describe(self) -> str:
        return f"function {self.signature!r} {self.kind}"

    def __str__(self) -> str:
        return f"{self.label} {self._describe()}:\n\t{self.message}"


class InvalidCallableError(PipelineError):
    """The value at a position cannot be invoked."""

    kind = "is invalid"


class InvalidArgumentError(PipelineError):
    """Argument count or types do not match the declared parameters."""

    kind = "gets invalid argument"


class CallPanicError(PipelineError):
    """The callable raised instead of returning.

    ``arguments`` holds the resolved arguments the call was made with; the
    original exception is chained as ``__cause__``.
    """

    kind = "panicked"

    def __init__(
        self,
        message: str,
        *,
        position: int,
        signature: str,
        arguments: tuple[Any, ...] = (),
        name: str | None = None,
        branch: int | None = None,
    ) -> None:
        self.arguments = arguments
        super().__init__(
            message,
            position=position,
            signature=signature,
            name=name,
            branch=branch,
        )

    def _describe(self) -> str:
        return (
            f"function {self.signature!r} panicked "
            f"(was called with {safe_repr(self.arguments)})"
        )
