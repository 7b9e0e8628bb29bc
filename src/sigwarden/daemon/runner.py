"""Watcher daemon lifecycle: PID file, logging and signal wiring."""

from __future__ import annotations

import logging
import os
import signal
import threading
import time
from pathlib import Path
from typing import Any

import click

from sigwarden import config, constants
from sigwarden.exitcode import new_termination_func
from sigwarden.handlers import Handlers
from sigwarden.logger import setup_logging
from sigwarden.signals import SignalNameError, to_signal

logger = logging.getLogger(constants.LOGGER_NAME)


def _pid_file() -> Path:
    return config.data_dir() / constants.PID_FILE_NAME


def _log_file() -> Path:
    return config.data_dir() / constants.LOG_FILE_NAME


def _is_running() -> int | None:
    """Check if daemon is running. Returns PID if running, None otherwise."""
    pid_file = _pid_file()
    if not pid_file.exists():
        return None
    try:
        pid = int(pid_file.read_text().strip())
        os.kill(pid, 0)  # Check if process exists
        return pid
    except (ValueError, ProcessLookupError, PermissionError):
        pid_file.unlink(missing_ok=True)
        return None


def _write_pid() -> None:
    _pid_file().write_text(str(os.getpid()))


def _remove_pid() -> None:
    _pid_file().unlink(missing_ok=True)


class ExitLatch:
    """Exit function for Handlers that wakes the main loop instead of killing the process."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.code: int | None = None

    def __call__(self, code: int) -> None:
        if self.code is None:
            self.code = code
        self._event.set()

    def wait(self, timeout: float) -> bool:
        return self._event.wait(timeout)


class SignalStats:
    """Counts every dispatched signal."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[signal.Signals, int] = {}

    def record(self, sig: signal.Signals) -> None:
        with self._lock:
            self._counts[sig] = self._counts.get(sig, 0) + 1

    def summary(self) -> str:
        with self._lock:
            if not self._counts:
                return "none"
            return ", ".join(f"{s.name}={n}" for s, n in sorted(self._counts.items()))


def _optional_signal(name: str) -> signal.Signals | None:
    try:
        return to_signal(name)
    except SignalNameError:
        return None


def _reload_config(handlers: Handlers) -> None:
    cfg = config.load_config()
    level = cfg.get("logging", {}).get("level", constants.LOG_LEVEL)
    logging.getLogger().setLevel(getattr(logging, str(level).upper(), logging.INFO))
    configured = tuple(to_signal(n) for n in cfg.get("signals", {}).get("termination", []))
    if configured and configured != handlers.termination_signals:
        logger.warning("Termination signals changed in config; restart to apply")
    logger.info("Config reloaded (log level %s)", level)


def build_handlers(cfg: dict[str, Any], latch: ExitLatch, stats: SignalStats, **kwargs: Any) -> Handlers:
    """Create the daemon's Handlers with its statistics, reload and cleanup wiring."""
    handlers = Handlers.from_config(cfg, exit_func=latch, **kwargs)
    handlers.register_signal_handler(stats.record)

    sighup = _optional_signal("SIGHUP")
    if sighup is not None:
        handlers.register_signal_handler(lambda sig: _reload_config(handlers), sighup)
    sigusr1 = _optional_signal("SIGUSR1")
    if sigusr1 is not None:
        handlers.register_signal_handler(
            lambda sig: logger.info("Signal counts: %s", stats.summary()), sigusr1,
        )

    def _flush_stats(sig: signal.Signals) -> None:
        logger.info("Signal counts at %s: %s", sig.name, stats.summary())

    handlers.register_termination_procedure(_flush_stats, "flushing signal statistics")
    handlers.register_termination_procedure(new_termination_func(_remove_pid), "removing pid file")
    return handlers


def _serve() -> int:
    """Run the watcher until a termination signal resolves an exit code."""
    cfg = config.load_config()
    poll_interval = cfg.get("daemon", {}).get("poll_interval", constants.POLL_INTERVAL_SECONDS)

    _write_pid()
    latch = ExitLatch()
    stats = SignalStats()
    handlers = build_handlers(cfg, latch, stats)
    stop = handlers.start_listen()
    try:
        logger.info("Daemon started (PID %d)", os.getpid())
        while not latch.wait(poll_interval):
            pass
    finally:
        stop()
        _remove_pid()

    code = latch.code if latch.code is not None else constants.EXIT_OK
    logger.info("Daemon exiting with code %d", code)
    return code


def start_daemon(foreground: bool) -> None:
    """Start the sigwarden watcher daemon."""
    existing = _is_running()
    if existing:
        click.echo(f"Daemon already running (PID {existing})")
        raise SystemExit(1)

    level = config.get("logging", "level", constants.LOG_LEVEL)

    if foreground:
        setup_logging(level, _log_file(), foreground=True)
        click.echo("Starting sigwarden daemon in foreground...")
        raise SystemExit(_serve())

    # Fork to background
    pid = os.fork()
    if pid > 0:
        click.echo(f"Daemon started (PID {pid})")
        click.echo(f"Log: {_log_file()}")
        return

    # Child process
    os.setsid()
    # Redirect stdio
    devnull = os.open(os.devnull, os.O_RDWR)
    os.dup2(devnull, 0)
    os.dup2(devnull, 1)
    os.dup2(devnull, 2)
    os.close(devnull)

    setup_logging(level, _log_file(), foreground=False)
    raise SystemExit(_serve())


def stop_daemon() -> None:
    """Stop the sigwarden daemon."""
    pid = _is_running()
    if pid is None:
        click.echo("Daemon is not running")
        return

    os.kill(pid, signal.SIGTERM)
    click.echo(f"Sent SIGTERM to daemon (PID {pid})")

    # Wait briefly for clean shutdown
    for _ in range(constants.STOP_WAIT_ATTEMPTS):
        if _is_running() is None:
            click.echo("Daemon stopped")
            return
        time.sleep(constants.STOP_WAIT_SECONDS)
    click.echo("Daemon may still be shutting down")


def send_signal(name: str) -> None:
    """Deliver the named signal to the running daemon."""
    sig = to_signal(name)
    pid = _is_running()
    if pid is None:
        click.echo("Daemon is not running", err=True)
        raise SystemExit(1)
    os.kill(pid, sig)
    click.echo(f"Sent {sig.name} to daemon (PID {pid})")


def show_status() -> None:
    """Show daemon state and the configured termination signals."""
    pid = _is_running()
    if pid:
        click.echo(f"Daemon:  running (PID {pid})")
    else:
        click.echo("Daemon:  stopped")

    cfg = config.load_config()
    names = cfg.get("signals", {}).get("termination", [])
    click.echo(f"Termination signals: {', '.join(names) or 'default'}")
    click.echo(f"Log:     {_log_file()}")
