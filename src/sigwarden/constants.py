"""Default constants for signal handling and the watcher daemon."""

from __future__ import annotations

# Termination signals used when none are given (names resolve via signals.to_signal)
DEFAULT_TERMINATION_SIGNAL_NAMES: tuple[str, ...] = ("SIGINT", "SIGTERM")

# Signals a process can never intercept
UNCATCHABLE_SIGNAL_NAMES: tuple[str, ...] = ("SIGKILL", "SIGSTOP")

# Synchronous fault signals: a Python-level handler returns into the faulting
# instruction and re-triggers it forever
FAULT_SIGNAL_NAMES: tuple[str, ...] = ("SIGSEGV", "SIGBUS", "SIGFPE", "SIGILL")

# Exit codes
EXIT_OK = 0
DEFAULT_FAILURE_CODE = 1  # Termination procedure failed without an explicit code
FATAL_DISPATCH_CODE = 2  # A signal handler raised inside the listener loop

# Listener
LISTENER_THREAD_NAME = "sigwarden-listener"
STOP_TIMEOUT_SECONDS = 5.0  # How long cancel() waits for the listener thread

# Logging
LOGGER_NAME = "sigwarden"
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

# Daemon
POLL_INTERVAL_SECONDS = 1.0  # How often the daemon main loop checks for exit
STOP_WAIT_ATTEMPTS = 10
STOP_WAIT_SECONDS = 0.5
PID_FILE_NAME = "sigwarden.pid"
LOG_FILE_NAME = "sigwarden.log"
