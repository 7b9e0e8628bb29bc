"""Ordered termination procedures and exit-code resolution."""

from __future__ import annotations

import signal
from dataclasses import dataclass

from sigwarden import constants
from sigwarden.exitcode import TerminationFunc, code_from_error
from sigwarden.logger import Logger, NullLogger
from sigwarden.rwlock import RWLock


@dataclass(frozen=True)
class TerminationProcedure:
    callback: TerminationFunc
    description: str


class TerminationPipeline:
    """Runs every procedure in registration order; the first failure picks the exit code."""

    def __init__(self, lock: RWLock | None = None, logger: Logger | None = None) -> None:
        self._lock = lock or RWLock()
        self.logger: Logger = logger or NullLogger()
        self._procedures: list[TerminationProcedure] = []

    def register(self, callback: TerminationFunc, description: str) -> None:
        if not callable(callback):
            raise TypeError(f"callback must be callable, got {type(callback).__name__}")
        with self._lock.write_lock():
            self._procedures.append(TerminationProcedure(callback, description))
        self.logger.debug("registered termination procedure for:", description)

    def run(self, sig: signal.Signals) -> int:
        """Run all procedures for *sig* and return the aggregate exit code.

        Failures (returned or raised ``Exception``) are logged and never
        stop later procedures. The first one resolves the code: its
        ExitCodeError code, else DEFAULT_FAILURE_CODE.
        """
        with self._lock.read_lock():
            if not self._procedures:
                self.logger.info("nothing to do before termination")
                return constants.EXIT_OK

            code = constants.EXIT_OK
            for proc in self._procedures:
                self.logger.info(proc.description)
                try:
                    err = proc.callback(sig)
                except Exception as e:
                    err = e
                if err is None:
                    continue
                self.logger.info("error while running termination procedure:", err)
                if code == constants.EXIT_OK:
                    code = code_from_error(err, constants.DEFAULT_FAILURE_CODE)
            self.logger.info("all termination procedures are done")
            return code

    def descriptions(self) -> list[str]:
        with self._lock.read_lock():
            return [p.description for p in self._procedures]

    def __len__(self) -> int:
        with self._lock.read_lock():
            return len(self._procedures)
