"""Background listener feeding OS signals into the registry."""

from __future__ import annotations

import enum
import logging
import queue
import signal
import threading
from types import FrameType
from typing import Any, Callable, Protocol

from sigwarden import constants
from sigwarden.logger import Logger, NullLogger
from sigwarden.signals import catchable_signals

logger = logging.getLogger(constants.LOGGER_NAME)

Deliver = Callable[[signal.Signals], None]


class SignalSource(Protocol):
    """Delivers OS signals to one subscriber. unsubscribe() must be idempotent."""

    def subscribe(self, deliver: Deliver) -> None: ...

    def unsubscribe(self) -> None: ...


class _SignalHub:
    """Process-wide forwarder from OS signal dispositions to any number of subscribers.

    The forwarder is installed for a signal while at least one subscriber
    wants it, and the original disposition comes back once none does.
    Dispositions can only change on the main thread: a subscriber removed
    elsewhere is dropped at once, and the restore happens on the next
    main-thread subscribe/unsubscribe or when the signal next arrives.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[object, tuple[frozenset[signal.Signals], Deliver]] = {}
        # Rebuilt under the lock, read lock-free by the forwarder.
        self._routes: dict[signal.Signals, tuple[Deliver, ...]] = {}
        # Main thread only.
        self._originals: dict[signal.Signals, Any] = {}
        self._handler = self._forward

    def add(self, signals: list[signal.Signals], deliver: Deliver) -> object:
        token = object()
        with self._lock:
            self._subscribers[token] = (frozenset(signals), deliver)
            self._rebuild()
        try:
            self.sync()
        except BaseException:
            self.remove(token)
            raise
        return token

    def remove(self, token: object) -> None:
        with self._lock:
            if self._subscribers.pop(token, None) is not None:
                self._rebuild()
        if threading.current_thread() is threading.main_thread():
            self.sync()

    def _rebuild(self) -> None:
        routes: dict[signal.Signals, list[Deliver]] = {}
        for signals, deliver in self._subscribers.values():
            for sig in signals:
                routes.setdefault(sig, []).append(deliver)
        self._routes = {sig: tuple(d) for sig, d in routes.items()}

    def sync(self) -> None:
        """Install the forwarder where wanted and restore originals elsewhere (main thread)."""
        wanted = set(self._routes)
        for sig in sorted(wanted):
            if signal.getsignal(sig) is self._handler:
                continue
            try:
                self._originals[sig] = signal.signal(sig, self._handler)
            except OSError:
                logger.debug("Cannot subscribe to %s", sig.name)
        for sig in [s for s in self._originals if s not in wanted]:
            original = self._originals.pop(sig)
            if signal.getsignal(sig) is self._handler:
                self._restore(sig, original)

    def installed(self, sig: signal.Signals) -> bool:
        return signal.getsignal(sig) is self._handler

    @staticmethod
    def _restore(sig: signal.Signals, original: Any) -> None:
        try:
            signal.signal(sig, original if original is not None else signal.SIG_DFL)
        except OSError:
            logger.debug("Cannot restore %s", sig.name)

    def _forward(self, signum: int, frame: FrameType | None) -> None:
        sig = signal.Signals(signum)
        delivers = self._routes.get(sig, ())
        for deliver in delivers:
            deliver(sig)
        if delivers:
            return
        # Nobody is listening any more: hand the signal back to its original disposition.
        original = self._originals.get(sig, signal.SIG_DFL)
        self._restore(sig, original)
        if callable(original):
            original(signum, frame)
        elif original in (signal.SIG_DFL, None):
            signal.raise_signal(sig)


_HUB = _SignalHub()


class OsSignalSource:
    """Subscribes to every catchable signal through ``signal.signal``.

    Any number of sources may be subscribed at once and unsubscribed in
    any order. Subscribing must happen on the main thread (a CPython
    restriction); unsubscribing works from any thread and restores the
    original dispositions when it runs on the main thread.
    """

    def __init__(self, signals: list[signal.Signals] | None = None) -> None:
        self._signals = signals if signals is not None else catchable_signals()
        self._token: object | None = None

    def subscribe(self, deliver: Deliver) -> None:
        if self._token is not None:
            raise RuntimeError("OsSignalSource is already subscribed")
        self._token = _HUB.add(self._signals, deliver)

    def unsubscribe(self) -> None:
        token, self._token = self._token, None
        if token is not None:
            _HUB.remove(token)
        elif threading.current_thread() is threading.main_thread():
            _HUB.sync()


class ListenerState(enum.Enum):
    IDLE = "idle"
    LISTENING = "listening"
    STOPPED = "stopped"


_STOP = object()
_NULL_LOGGER = NullLogger()


class Listener:
    """Dispatches delivered signals on one background thread.

    IDLE -> LISTENING on start(), LISTENING -> STOPPED through the returned
    cancel handle. Signals queued before cancellation are still dispatched.
    An exception escaping dispatch is fatal: it is logged, handed to
    *on_error* and the loop ends.
    """

    def __init__(
        self,
        dispatch: Deliver,
        source: SignalSource,
        log: Callable[[], Logger] | None = None,
        stop_timeout: float | None = constants.STOP_TIMEOUT_SECONDS,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self._dispatch = dispatch
        self._source = source
        self._log = log or (lambda: _NULL_LOGGER)
        self._stop_timeout = stop_timeout
        self._on_error = on_error
        self._queue: queue.SimpleQueue[object] = queue.SimpleQueue()
        self._state_lock = threading.Lock()
        self._state = ListenerState.IDLE
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def thread(self) -> threading.Thread | None:
        return self._thread

    def start(self) -> Callable[[], None]:
        with self._state_lock:
            if self._state is not ListenerState.IDLE:
                raise RuntimeError(f"Listener cannot start from state {self._state.value}")
            self._log().debug("start listening to all signals")
            self._source.subscribe(self._queue.put)
            self._thread = threading.Thread(
                target=self._loop, name=constants.LISTENER_THREAD_NAME, daemon=True,
            )
            self._thread.start()
            self._state = ListenerState.LISTENING
        return self.stop

    def stop(self) -> None:
        """Cancel handle. Safe to call repeatedly and from any thread.

        Every call unsubscribes again, so a call on the main thread finishes
        restoring OS dispositions left pending by one made elsewhere.
        """
        with self._state_lock:
            if self._state is ListenerState.IDLE:
                return
            self._source.unsubscribe()
            if self._state is ListenerState.STOPPED:
                return
            self._state = ListenerState.STOPPED
            self._queue.put(_STOP)
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(self._stop_timeout)
            if thread.is_alive():
                logger.warning("Listener thread still busy after %ss", self._stop_timeout)

    def _loop(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            sig: signal.Signals = item  # type: ignore[assignment]
            self._log().info("signal received:", sig.name)
            try:
                self._dispatch(sig)
            except Exception as e:
                logger.exception("Error while handling %s", sig.name)
                if self._on_error is not None:
                    self._on_error(e)
                break
        self._log().debug("stopped listening to signals")
