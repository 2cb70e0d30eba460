"""Unit tests for pipeline error types."""

from __future__ import annotations

import pytest

from callpipe import (
    CallPanicError,
    InvalidArgumentError,
    InvalidCallableError,
    PipelineConfigError,
    PipelineError,
)
from callpipe.errors import safe_repr
from tests.callpipe.conftest import BadRepr


@pytest.mark.unit
class TestErrorHierarchy:
    def test_structured_errors_share_base(self):
        for cls in (InvalidCallableError, InvalidArgumentError, CallPanicError):
            assert issubclass(cls, PipelineError)

    def test_pipeline_error_is_exception(self):
        err = InvalidArgumentError("bad", position=0, signature="f()")
        assert isinstance(err, Exception)

    def test_config_error_is_not_a_pipeline_error(self):
        assert not issubclass(PipelineConfigError, PipelineError)


@pytest.mark.unit
class TestPipelineErrorAttributes:
    def test_attributes_stored(self):
        err = InvalidArgumentError(
            "1. argument is a 'int' but should be a 'str'",
            position=2,
            signature="f(x: str) -> None",
            name="convert",
        )
        assert err.position == 2
        assert err.name == "convert"
        assert err.signature == "f(x: str) -> None"
        assert err.branch is None
        assert "should be a 'str'" in err.message

    def test_message_uses_one_based_position(self):
        err = InvalidCallableError("'int' is no callable", position=0, signature="int")
        assert str(err).startswith("[1] function 'int' is invalid")

    def test_name_in_label(self):
        err = InvalidCallableError("x", position=4, signature="int", name="parse")
        assert err.label == "[5] 'parse'"

    def test_branch_in_label(self):
        err = InvalidArgumentError("x", position=1, signature="f()", branch=0)
        assert err.label == "[2.1]"

    def test_invalid_argument_wording(self):
        err = InvalidArgumentError("too many", position=0, signature="f()")
        assert "gets invalid argument" in str(err)
        assert "too many" in str(err)


@pytest.mark.unit
class TestCallPanicError:
    def test_stores_arguments(self):
        err = CallPanicError("boom", position=0, signature="f(*a)", arguments=(1, "x"))
        assert err.arguments == (1, "x")

    def test_message_includes_arguments(self):
        err = CallPanicError("boom", position=0, signature="f(*a)", arguments=(1, "x"))
        msg = str(err)
        assert "panicked" in msg
        assert "(1, 'x')" in msg
        assert msg.endswith("boom")

    def test_can_be_raised_and_caught_as_base(self):
        with pytest.raises(PipelineError) as exc_info:
            raise CallPanicError("boom", position=3, signature="f()")
        assert exc_info.value.position == 3

    def test_unrepresentable_arguments_rendered_safely(self):
        err = CallPanicError(
            "boom", position=0, signature="f(*a)", arguments=(1, BadRepr())
        )
        assert "(1, <unrepresentable BadRepr>)" in str(err)


@pytest.mark.unit
class TestSafeRepr:
    def test_plain_value(self):
        assert safe_repr("x") == "'x'"

    def test_matches_repr_for_tuples(self):
        assert safe_repr((1,)) == "(1,)"
        assert safe_repr(()) == "()"
        assert safe_repr((1, "a")) == "(1, 'a')"

    def test_raising_repr(self):
        assert safe_repr(BadRepr()) == "<unrepresentable BadRepr>"
