"""Exit-code carrier for termination procedures."""

from __future__ import annotations

import signal
from typing import Callable, Optional

from sigwarden import constants

# A termination procedure receives the triggering signal and returns an
# exception describing its failure, or None on success. Raising works too.
TerminationFunc = Callable[[signal.Signals], Optional[BaseException]]


class ExitCodeError(Exception):
    """Wraps a failure with the process exit code it should resolve to."""

    def __init__(self, cause: BaseException, code: int) -> None:
        super().__init__(str(cause))
        self.cause = cause
        self.code = code
        self.__cause__ = cause

    def __repr__(self) -> str:
        return f"ExitCodeError({self.cause!r}, code={self.code})"


def wrap_error_with_code(err: BaseException | None, code: int) -> ExitCodeError | None:
    """Pin *code* to *err*. Returns None when *err* is None."""
    if err is None:
        return None
    return ExitCodeError(err, code)


def code_from_error(err: BaseException, default: int = constants.DEFAULT_FAILURE_CODE) -> int:
    if isinstance(err, ExitCodeError):
        return err.code
    return default


def new_termination_func(fn: Callable[[], object]) -> TerminationFunc:
    """Adapt a no-argument cleanup action into a termination procedure that never fails."""

    def _procedure(sig: signal.Signals) -> None:
        fn()
        return None

    _procedure.__name__ = getattr(fn, "__name__", _procedure.__name__)
    return _procedure
