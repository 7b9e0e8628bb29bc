"""Signal identity: names, registry keys and the catchable set."""

from __future__ import annotations

import enum
import signal
from dataclasses import dataclass
from typing import Union

from sigwarden import constants


class SignalNameError(ValueError):
    """Raised when a value cannot be resolved to an OS signal."""


class _Wildcard(enum.Enum):
    ANY = "any"

    def __repr__(self) -> str:
        return "WILDCARD"


# Registry key meaning "every signal". Never equal to a signal.Signals member.
WILDCARD = _Wildcard.ANY


@dataclass(frozen=True)
class Specific:
    """Registry key bound to one concrete OS signal."""

    signal: signal.Signals

    def __str__(self) -> str:
        return self.signal.name


SignalKey = Union[_Wildcard, Specific]


def to_signal(value: signal.Signals | int | str) -> signal.Signals:
    """Resolve a signal member, number or name ("SIGTERM", "term") to signal.Signals."""
    if isinstance(value, signal.Signals):
        return value
    if isinstance(value, bool):
        raise SignalNameError(f"Not a signal: {value!r}")
    if isinstance(value, int):
        try:
            return signal.Signals(value)
        except ValueError:
            raise SignalNameError(f"Unknown signal number: {value}") from None
    if isinstance(value, str):
        name = value.strip().upper()
        if name.isdigit():
            return to_signal(int(name))
        if not name.startswith("SIG"):
            name = "SIG" + name
        try:
            return signal.Signals[name]
        except KeyError:
            raise SignalNameError(f"Unknown signal name: {value!r}") from None
    raise SignalNameError(f"Not a signal: {value!r}")


def _named(names: tuple[str, ...]) -> frozenset[signal.Signals]:
    return frozenset(signal.Signals[n] for n in names if hasattr(signal, n))


DEFAULT_TERMINATION_SIGNALS: tuple[signal.Signals, ...] = tuple(
    to_signal(n) for n in constants.DEFAULT_TERMINATION_SIGNAL_NAMES
)


def catchable_signals() -> list[signal.Signals]:
    """Return every signal a process-wide subscription covers, sorted by number.

    Uncatchable signals and synchronous fault signals are left out, as are
    platform signal numbers without a ``signal.Signals`` member (realtime
    signals on Linux).
    """
    excluded = _named(constants.UNCATCHABLE_SIGNAL_NAMES) | _named(constants.FAULT_SIGNAL_NAMES)
    result = []
    for sig in signal.valid_signals():
        if not isinstance(sig, signal.Signals):
            try:
                sig = signal.Signals(sig)
            except ValueError:
                continue
        if sig in excluded:
            continue
        result.append(sig)
    return sorted(set(result))
