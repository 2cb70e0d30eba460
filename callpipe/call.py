"""Call descriptor and the ``PIPE`` placeholder."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable

from .errors import format_label
from .signature import describe


class _Pipe:
    """Type of the ``PIPE`` placeholder.  There is exactly one instance."""

    _instance: _Pipe | None = None

    def __new__(cls) -> _Pipe:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PIPE"


PIPE = _Pipe()
"""Placeholder argument replaced by every non-error output of the previous call."""


@dataclass(frozen=True)
class Call:
    """One step of a pipeline: a callable plus its fixed arguments.

    ``arguments`` may contain ``PIPE`` any number of times; each occurrence
    expands to the whole execution value set of the previous call, keeping
    its place between the literal arguments.

    Descriptors are frozen. The pipeline swaps in a ``.replace()``d copy
    when a name is assigned after the fact.
    """

    function: Callable[..., Any]
    arguments: tuple = ()
    name: str | None = None
    position: int = 0
    branch: int | None = None

    def replace(self, **changes: Any) -> "Call":
        """Return a new Call with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    def resolve(self, values: tuple) -> tuple:
        """Return the actual argument tuple with ``PIPE`` expanded to *values*."""
        resolved: list[Any] = []
        for arg in self.arguments:
            if arg is PIPE:
                resolved.extend(values)
            else:
                resolved.append(arg)
        return tuple(resolved)

    def incoming_types(self, piped: tuple | None) -> tuple | None:
        """Types of the arguments the call will receive, ``None`` if unknown.

        Literals contribute their own type; ``PIPE`` contributes *piped*.
        """
        if piped is None and self.uses_pipe:
            return None
        resolved: list[Any] = []
        for arg in self.arguments:
            if arg is PIPE:
                resolved.extend(piped)
            else:
                resolved.append(type(arg))
        return tuple(resolved)

    @property
    def uses_pipe(self) -> bool:
        return any(arg is PIPE for arg in self.arguments)

    @property
    def signature(self) -> str:
        return describe(self.function)

    @property
    def label(self) -> str:
        """Diagnostic prefix, e.g. ``[2]``, ``[2.1]`` or ``[2] 'parse'``."""
        return format_label(self.position, self.branch, self.name)
