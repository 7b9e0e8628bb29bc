"""sigwarden: ordered OS signal handling and graceful shutdown."""

from __future__ import annotations

__version__ = "0.1.0"

from sigwarden.exitcode import (
    ExitCodeError,
    code_from_error,
    new_termination_func,
    wrap_error_with_code,
)
from sigwarden.handlers import Handlers, process_exit
from sigwarden.logger import Logger, NullLogger, StdLogger
from sigwarden.signals import (
    DEFAULT_TERMINATION_SIGNALS,
    WILDCARD,
    Specific,
    to_signal,
)

__all__ = [
    "DEFAULT_TERMINATION_SIGNALS",
    "ExitCodeError",
    "Handlers",
    "Logger",
    "NullLogger",
    "Specific",
    "StdLogger",
    "WILDCARD",
    "__version__",
    "code_from_error",
    "new_termination_func",
    "process_exit",
    "to_signal",
    "wrap_error_with_code",
]
