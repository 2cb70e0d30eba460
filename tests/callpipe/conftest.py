"""Shared fixtures and reusable dummy callables for callpipe tests.

Every helper declares its outputs through its return annotation, the way
pipeline users are expected to.
"""

from __future__ import annotations

import pytest

# ---------------------------------------------------------------------------
# Reusable dummy callables
# ---------------------------------------------------------------------------


def parse_int(text: str) -> tuple[int, Exception | None]:
    """Parse *text* as int; trailing error on bad input."""
    try:
        return int(text), None
    except ValueError as e:
        return 0, e


def parse_float(text: str) -> tuple[float, Exception | None]:
    try:
        return float(text), None
    except ValueError as e:
        return 0.0, e


def format_int(fmt: str, value: int) -> str:
    return fmt % value


def fail(msg: str = "fail") -> Exception | None:
    """Always returns a ValueError."""
    return ValueError(msg)


def succeed() -> Exception | None:
    return None


def boom(*args) -> None:
    """Always raises RuntimeError."""
    raise RuntimeError("boom")


def pair() -> tuple[int, str]:
    return 1, "a"


def add(a: int, b: int) -> int:
    return a + b


def join(*parts: str) -> str:
    return "".join(parts)


def greet(name: str, punct: str = "!") -> str:
    return f"hello {name}{punct}"


def takes_float(x: float) -> float:
    return x * 2


def takes_str(text: str) -> None:
    pass


class Recorder:
    """Records the arguments of every call it receives."""

    def __init__(self):
        self.calls: list[tuple] = []

    def __call__(self, *values) -> None:
        self.calls.append(values)

    @property
    def count(self) -> int:
        return len(self.calls)


class Step:
    """Appends its label to a shared order log and passes its inputs through."""

    def __init__(self, label: str, log: list[str]):
        self.label = label
        self.log = log

    def __call__(self, *values):
        self.log.append(self.label)
        return values[0] if values else None


class BadRepr:
    """An argument whose repr() raises."""

    def __repr__(self):
        raise RuntimeError("no repr")


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def order():
    return []
