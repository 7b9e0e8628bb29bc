"""Signal registry: which callbacks run for an incoming signal."""

from __future__ import annotations

import signal
from typing import Callable

from sigwarden.logger import Logger, NullLogger
from sigwarden.rwlock import RWLock
from sigwarden.signals import WILDCARD, SignalKey, Specific, to_signal

HandlerFunc = Callable[[signal.Signals], None]


class SignalRegistry:
    """Maps WILDCARD or Specific(signal) to callbacks kept in registration order.

    The wildcard entry always exists. Entries only grow.
    """

    def __init__(self, lock: RWLock | None = None, logger: Logger | None = None) -> None:
        self._lock = lock or RWLock()
        self.logger: Logger = logger or NullLogger()
        self._handlers: dict[SignalKey, list[HandlerFunc]] = {WILDCARD: []}

    def register(self, handler: HandlerFunc, *signals: signal.Signals | int | str) -> None:
        """Append *handler* for each signal, or for every signal when none are given."""
        if not callable(handler):
            raise TypeError(f"handler must be callable, got {type(handler).__name__}")
        keys: list[SignalKey] = [Specific(to_signal(s)) for s in signals] or [WILDCARD]
        with self._lock.write_lock():
            for key in keys:
                self._handlers.setdefault(key, []).append(handler)

    def dispatch(self, sig: signal.Signals | int | str) -> None:
        """Run wildcard callbacks, then callbacks registered for *sig*.

        Exceptions raised by a callback propagate and skip the callbacks
        after it.
        """
        target = to_signal(sig)
        with self._lock.read_lock():
            for handle in self._handlers[WILDCARD]:
                handle(target)

            specific = self._handlers.get(Specific(target))
            if not specific:
                self.logger.debug("no handler found for signal:", target.name)
                return
            for handle in specific:
                handle(target)

    def handlers_for(self, key: SignalKey) -> tuple[HandlerFunc, ...]:
        with self._lock.read_lock():
            return tuple(self._handlers.get(key, ()))

    def keys(self) -> list[SignalKey]:
        with self._lock.read_lock():
            return list(self._handlers)
