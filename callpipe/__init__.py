"""Sequential call pipelines with piped values and pluggable error handling.

Public surface::

    from callpipe import (
        Pipeline,
        PIPE,
        Call,
        FallbackResult,
        ErrorHandler,
        ErrorHandlerFunc,
        STOP,
        IGNORE,
        PANIC,
        LogSink,
        PipelineError,
        InvalidCallableError,
        InvalidArgumentError,
        CallPanicError,
        PipelineConfigError,
    )
"""

from .call import PIPE, Call
from .errors import (
    CallPanicError,
    InvalidArgumentError,
    InvalidCallableError,
    PipelineConfigError,
    PipelineError,
)
from .handlers import IGNORE, PANIC, STOP, ErrorHandler, ErrorHandlerFunc
from .logsink import LogSink
from .pipeline import Pipeline
from .result import FallbackResult

__all__ = [
    "Pipeline",
    "PIPE",
    "Call",
    "FallbackResult",
    "ErrorHandler",
    "ErrorHandlerFunc",
    "STOP",
    "IGNORE",
    "PANIC",
    "LogSink",
    "PipelineError",
    "InvalidCallableError",
    "InvalidArgumentError",
    "CallPanicError",
    "PipelineConfigError",
]
