"""Handlers: the one object client code talks to."""

from __future__ import annotations

import logging
import os
import signal
import sys
from typing import Any, Callable

from sigwarden import constants
from sigwarden.exitcode import TerminationFunc
from sigwarden.listener import Listener, OsSignalSource, SignalSource
from sigwarden.logger import Logger, NullLogger, StdLogger
from sigwarden.registry import HandlerFunc, SignalRegistry
from sigwarden.rwlock import RWLock
from sigwarden.signals import DEFAULT_TERMINATION_SIGNALS, to_signal
from sigwarden.termination import TerminationPipeline

ExitFunc = Callable[[int], Any]


def process_exit(code: int) -> None:
    """Terminate the process with *code*, from any thread."""
    logging.shutdown()
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except (AttributeError, ValueError, OSError):
            pass
    os._exit(code)


class Handlers:
    """Owns the signal registry, the termination pipeline, the logger and the exit function.

    Construction binds an internal handler to the termination signals
    (SIGINT and SIGTERM unless others are given). When one of them is
    dispatched, every termination procedure runs in registration order and
    the exit function is called with the resolved code.

    Usage::

        handlers = Handlers()
        stop = handlers.start_listen()
        handlers.register_termination_procedure(close_db, "closing database")
        handlers.register_signal_handler(reopen_logs, signal.SIGHUP)

    A handler raising inside the listener is fatal: the exit function is
    called with 2 and the listener stops.

    Registering, or calling set_logger/set_exit, from inside a handler
    blocks forever: dispatch holds the shared lock those calls need
    exclusively.

    The default StdLogger writes INFO records to the "sigwarden" stdlib
    logger. Without a configured handler (logging.basicConfig or
    sigwarden.logger.setup_logging) Python drops records below WARNING.
    """

    def __init__(
        self,
        *termination_signals: signal.Signals | int | str,
        logger: Logger | None = None,
        exit_func: ExitFunc = process_exit,
        source_factory: Callable[[], SignalSource] = OsSignalSource,
        stop_timeout: float | None = constants.STOP_TIMEOUT_SECONDS,
    ) -> None:
        if termination_signals:
            self._termination_signals = tuple(to_signal(s) for s in termination_signals)
        else:
            self._termination_signals = DEFAULT_TERMINATION_SIGNALS
        self._lock = RWLock()
        self._logger: Logger | None = logger if logger is not None else StdLogger()
        self._exit = exit_func
        self._source_factory = source_factory
        self._stop_timeout = stop_timeout
        self._registry = SignalRegistry(self._lock, self._logger)
        self._pipeline = TerminationPipeline(self._lock, self._logger)
        self._install_termination_handlers()

    @classmethod
    def from_config(cls, cfg: dict[str, Any], **kwargs: Any) -> Handlers:
        """Build from a loaded config dict (see sigwarden.config.load_config)."""
        names = cfg.get("signals", {}).get("termination", [])
        verbose = bool(cfg.get("logging", {}).get("debug", False))
        kwargs.setdefault("logger", StdLogger(verbose=verbose))
        kwargs.setdefault(
            "stop_timeout",
            cfg.get("listener", {}).get("stop_timeout", constants.STOP_TIMEOUT_SECONDS),
        )
        return cls(*names, **kwargs)

    def _install_termination_handlers(self) -> None:
        self.register_signal_handler(self._handle_termination_signal, *self._termination_signals)

    @property
    def termination_signals(self) -> tuple[signal.Signals, ...]:
        return self._termination_signals

    @property
    def logger(self) -> Logger | None:
        return self._logger

    @property
    def registry(self) -> SignalRegistry:
        return self._registry

    @property
    def pipeline(self) -> TerminationPipeline:
        return self._pipeline

    def register_signal_handler(self, handler: HandlerFunc, *signals: signal.Signals | int | str) -> None:
        """Register *handler* for the given signals, or for every signal if none are given.

        Handlers of one signal run in registration order; handlers
        registered for every signal run before them.
        """
        self._registry.register(handler, *signals)

    def register_termination_procedure(self, fn: TerminationFunc, message: str) -> None:
        """Register *fn* to run on a termination signal; *message* is logged before it runs.

        The first procedure to fail decides the exit code: the code of an
        ExitCodeError (see wrap_error_with_code), else 1.
        """
        self._pipeline.register(fn, message)

    def start_listen(self) -> Callable[[], None]:
        """Start dispatching every catchable signal. Returns an idempotent cancel handle."""
        listener = Listener(
            self._registry.dispatch,
            self._source_factory(),
            log=lambda: self._registry.logger,
            stop_timeout=self._stop_timeout,
            on_error=self._abort_dispatch,
        )
        return listener.start()

    def handle_signal(self, sig: signal.Signals | int | str) -> None:
        self._registry.dispatch(sig)

    def run_termination_procedures(self, sig: signal.Signals | int | str) -> int:
        return self._pipeline.run(to_signal(sig))

    def _handle_termination_signal(self, sig: signal.Signals) -> None:
        code = self._pipeline.run(sig)
        self._registry.logger.info("bye")
        self._exit(code)

    def _abort_dispatch(self, err: Exception) -> None:
        self._registry.logger.info("fatal error while handling signal:", err)
        self._exit(constants.FATAL_DISPATCH_CODE)

    def set_logger(self, logger: Logger | None) -> None:
        """Replace the logger. None disables logging."""
        with self._lock.write_lock():
            self._logger = logger
            effective = logger if logger is not None else NullLogger()
            self._registry.logger = effective
            self._pipeline.logger = effective

    def set_exit(self, exit_func: ExitFunc) -> None:
        with self._lock.write_lock():
            self._exit = exit_func
