"""Signature introspection and the preflight validator.

Python callables declare their outputs through the return annotation:

- ``-> None``: no outputs.
- ``-> tuple[A, B]``: two outputs; the returned tuple is unpacked.
- ``-> T``: a single output of type ``T``.
- no annotation (or no introspectable signature): unknown shape; at run
  time ``None`` means "no outputs" and anything else is a single output.

If the last declared output is error-typed (an exception class, optionally
unioned with ``None``) it is the *trailing error*: never piped onwards, and
the only output the error handler looks at.
"""

from __future__ import annotations

import collections.abc
import inspect
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .errors import InvalidArgumentError, InvalidCallableError

_EMPTY = inspect.Parameter.empty
_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)

# int -> float -> complex, as PEP 484 allows
_NUMERIC_PROMOTIONS: dict[type, tuple[type, ...]] = {
    float: (int,),
    complex: (int, float),
}


# ---------------------------------------------------------------------------
# Introspection
# ---------------------------------------------------------------------------


def get_signature(fn: Any) -> Optional[inspect.Signature]:
    """Return the signature of *fn* with string annotations resolved.

    ``None`` when the callable cannot be introspected (many builtins).
    Annotations that fail to resolve are kept as strings and treated as
    ``Any`` by the assignability check.
    """
    for eval_str in (True, False):
        try:
            return inspect.signature(fn, eval_str=eval_str)
        except (NameError, SyntaxError, AttributeError, TypeError, ValueError):
            continue
    return None


def describe(fn: Any) -> str:
    """Printable declared signature, e.g. ``parse(text: str) -> int``."""
    name = getattr(fn, "__qualname__", None) or type(fn).__name__
    if not callable(fn):
        return type(fn).__name__
    sig = get_signature(fn)
    if sig is None:
        return f"{name}(...)"
    try:
        return f"{name}{sig}"
    except Exception:
        # a default value whose repr() raises
        return f"{name}(...)"


def type_name(tp: Any) -> str:
    if tp is type(None):
        return "None"
    if isinstance(tp, type) and not typing.get_args(tp):
        return tp.__qualname__
    return repr(tp).replace("typing.", "")


def _strip_annotated(tp: Any) -> Any:
    if typing.get_origin(tp) is typing.Annotated:
        return typing.get_args(tp)[0]
    return tp


def _union_members(tp: Any) -> Optional[tuple]:
    origin = typing.get_origin(tp)
    if origin is Union or origin is types.UnionType:
        return typing.get_args(tp)
    return None


def is_error_type(tp: Any) -> bool:
    """True for exception classes and unions of exception classes with ``None``."""
    tp = _strip_annotated(tp)
    members = _union_members(tp)
    if members is None:
        return isinstance(tp, type) and issubclass(tp, BaseException)
    errors = [m for m in members if m is not type(None)]
    return bool(errors) and all(is_error_type(m) for m in errors)


@dataclass(frozen=True)
class OutputSpec:
    """Declared output shape of a callable.

    ``types`` is ``None`` when the shape is unknown.  ``unpack`` is True when
    the callable returns a tuple that has to be split into several outputs.
    """

    types: Optional[tuple] = None
    error: bool = False
    unpack: bool = False

    def split(self, result: Any) -> tuple[tuple, Optional[BaseException]]:
        """Split a raw return value into (value set, trailing error)."""
        if self.types is None:
            return (() if result is None else (result,)), None

        if self.unpack and isinstance(result, tuple):
            if self.error and result:
                values, err = result[:-1], result[-1]
            else:
                values, err = result, None
        elif self.error and not self.types:
            values, err = (), result
        elif not self.types:
            values, err = (), None
        else:
            values, err = (result,), None

        if not isinstance(err, BaseException):
            err = None
        return tuple(values), err


def output_spec(fn: Any) -> OutputSpec:
    """Compute the declared :class:`OutputSpec` of *fn*."""
    if inspect.isclass(fn):
        # constructors return an instance of the class itself
        return OutputSpec(types=(fn,))

    sig = get_signature(fn)
    if sig is None or sig.return_annotation is _EMPTY:
        return OutputSpec()

    ret = _strip_annotated(sig.return_annotation)
    if isinstance(ret, str):
        return OutputSpec()
    if ret is None or ret is type(None):
        return OutputSpec(types=())
    if is_error_type(ret):
        return OutputSpec(types=(), error=True)

    if typing.get_origin(ret) is tuple:
        args = typing.get_args(ret)
        if args and Ellipsis not in args:
            if is_error_type(args[-1]):
                return OutputSpec(types=tuple(args[:-1]), error=True, unpack=True)
            return OutputSpec(types=tuple(args), unpack=True)

    return OutputSpec(types=(ret,))


# ---------------------------------------------------------------------------
# Assignability
# ---------------------------------------------------------------------------


def _normalise(tp: Any) -> Any:
    tp = _strip_annotated(tp)
    if tp is None:
        return type(None)
    supertype = getattr(tp, "__supertype__", None)  # typing.NewType
    if supertype is not None:
        return _normalise(supertype)
    return tp


def _is_callable_class(tp: type) -> bool:
    return any("__call__" in vars(klass) for klass in tp.__mro__)


def is_assignable(actual: Any, declared: Any) -> bool:
    """Return True if a value of type *actual* may be passed where *declared* is expected.

    Anything that cannot be decided (unresolved string annotations, exotic
    typing constructs) is accepted; the check only reports certain mismatches.
    """
    if declared is _EMPTY or declared is Any or declared is object:
        return True
    if actual is Any:
        return True

    actual = _normalise(actual)
    declared = _normalise(declared)
    if isinstance(declared, str) or isinstance(actual, str):
        return True

    actual_members = _union_members(actual)
    if actual_members is not None:
        return all(is_assignable(m, declared) for m in actual_members)

    declared_members = _union_members(declared)
    if declared_members is not None:
        return any(is_assignable(actual, m) for m in declared_members)

    if isinstance(declared, typing.TypeVar):
        if declared.__bound__ is not None:
            return is_assignable(actual, declared.__bound__)
        if declared.__constraints__:
            return any(is_assignable(actual, c) for c in declared.__constraints__)
        return True

    origin = typing.get_origin(declared)
    if origin is typing.Literal:
        return any(is_assignable(actual, type(v)) for v in typing.get_args(declared))
    if origin is collections.abc.Callable or declared is Callable:
        return not isinstance(actual, type) or _is_callable_class(actual)
    if origin is not None:
        declared = origin
    if typing.get_origin(actual) is not None:
        actual = typing.get_origin(actual)

    if not isinstance(declared, type) or not isinstance(actual, type):
        return True
    if actual in _NUMERIC_PROMOTIONS.get(declared, ()):
        return True
    try:
        return issubclass(actual, declared)
    except TypeError:
        # non-runtime protocols and friends
        return True


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _check_arguments(sig: inspect.Signature, actual: tuple) -> Optional[str]:
    """Return a mismatch message, or ``None`` when *actual* fits *sig*."""
    params = list(sig.parameters.values())
    positional = [p for p in params if p.kind in _POSITIONAL]
    variadic = next(
        (p for p in params if p.kind is inspect.Parameter.VAR_POSITIONAL), None
    )
    missing_kwonly = [
        p.name
        for p in params
        if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is _EMPTY
    ]
    if missing_kwonly:
        return f"func needs keyword-only arguments {missing_kwonly!r}, which cannot be piped"

    required = sum(1 for p in positional if p.default is _EMPTY)
    total = len(positional)
    got = len(actual)

    if variadic is None:
        if got > total or got < required:
            if required == total:
                return f"func wants {total} arguments, but gets {got}"
            return f"func wants {required} to {total} arguments, but gets {got}"
    elif got < required:
        return f"func wants at least {required} arguments, but gets {got}"

    for i, (is_, param) in enumerate(zip(actual, positional)):
        if not is_assignable(is_, param.annotation):
            return (
                f"{i + 1}. argument is a {type_name(is_)!r} "
                f"but should be a {type_name(param.annotation)!r}"
            )

    if variadic is not None:
        should = variadic.annotation
        for j in range(total, got):
            if not is_assignable(actual[j], should):
                return (
                    f"{j + 1}. argument is a {type_name(actual[j])!r} "
                    f"but should be a {type_name(should)!r}"
                )
    return None


def check_call(call: Any, piped: Optional[tuple]) -> Optional[tuple]:
    """Validate one call against the types flowing into it.

    *piped* holds the declared output types of the previous call (``None``
    when unknown).  Returns the declared output types of *call* (``None``
    when unknown).  Raises ``InvalidCallableError`` or
    ``InvalidArgumentError`` on the first mismatch.
    """
    fn = call.function
    if not callable(fn):
        raise InvalidCallableError(
            f"{type(fn).__name__!r} is no callable",
            position=call.position,
            signature=call.signature,
            name=call.name,
            branch=call.branch,
        )

    incoming = call.incoming_types(piped)
    sig = get_signature(fn)
    if sig is not None and incoming is not None:
        problem = _check_arguments(sig, incoming)
        if problem is not None:
            raise InvalidArgumentError(
                problem,
                position=call.position,
                signature=call.signature,
                name=call.name,
                branch=call.branch,
            )

    return output_spec(fn).types
