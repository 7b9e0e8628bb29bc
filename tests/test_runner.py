"""Tests for daemon/runner.py — PID management, signal wiring, _serve, status."""

from __future__ import annotations

import logging
import os
import signal
import threading
from unittest.mock import patch

import pytest

from sigwarden import config
from sigwarden.daemon.runner import (
    ExitLatch,
    SignalStats,
    _is_running,
    _pid_file,
    _remove_pid,
    _serve,
    _write_pid,
    build_handlers,
    send_signal,
    show_status,
)

from conftest import wait_until


# ---------------------------------------------------------------------------
# PID management
# ---------------------------------------------------------------------------


class TestPidManagement:
    def test_write_and_read(self):
        assert _is_running() is None
        _write_pid()
        assert _is_running() == os.getpid()
        _remove_pid()
        assert _is_running() is None

    def test_stale_pid_cleaned(self):
        pf = _pid_file()
        pf.write_text("99999999")  # Non-existent PID
        assert _is_running() is None
        assert not pf.exists()

    def test_remove_missing_is_noop(self):
        _remove_pid()  # Should not raise


# ---------------------------------------------------------------------------
# ExitLatch / SignalStats
# ---------------------------------------------------------------------------


def test_exit_latch_keeps_first_code():
    latch = ExitLatch()
    assert latch.wait(0.01) is False
    latch(3)
    latch(0)
    assert latch.code == 3
    assert latch.wait(0.01) is True


def test_signal_stats_summary():
    stats = SignalStats()
    assert stats.summary() == "none"
    stats.record(signal.SIGTERM)
    stats.record(signal.SIGINT)
    stats.record(signal.SIGTERM)
    assert stats.summary() == "SIGINT=1, SIGTERM=2"


# ---------------------------------------------------------------------------
# build_handlers
# ---------------------------------------------------------------------------


class TestBuildHandlers:
    def _build(self, fake_source):
        latch = ExitLatch()
        stats = SignalStats()
        handlers = build_handlers(
            config.load_config(), latch, stats, source_factory=lambda: fake_source,
        )
        return handlers, latch, stats

    def test_termination_removes_pid_and_releases_latch(self, fake_source):
        handlers, latch, stats = self._build(fake_source)
        _write_pid()
        handlers.handle_signal(signal.SIGTERM)
        assert latch.code == 0
        assert not _pid_file().exists()
        assert stats.summary() == "SIGTERM=1"

    def test_procedures_registered_in_order(self, fake_source):
        handlers, _, _ = self._build(fake_source)
        assert handlers.pipeline.descriptions() == [
            "flushing signal statistics",
            "removing pid file",
        ]

    def test_usr1_logs_counts(self, fake_source, caplog):
        handlers, latch, _ = self._build(fake_source)
        with caplog.at_level(logging.INFO, logger="sigwarden"):
            handlers.handle_signal(signal.SIGUSR1)
        assert "Signal counts: SIGUSR1=1" in caplog.text
        assert latch.code is None

    def test_hup_reloads_config(self, fake_source, caplog):
        handlers, _, _ = self._build(fake_source)
        config.set_value("signals", "termination", ["SIGQUIT"])
        root = logging.getLogger()
        level = root.level
        try:
            with caplog.at_level(logging.INFO, logger="sigwarden"):
                handlers.handle_signal(signal.SIGHUP)
        finally:
            root.setLevel(level)
        assert "Config reloaded" in caplog.text
        assert "restart to apply" in caplog.text

    def test_uses_configured_termination_signals(self, fake_source):
        config.set_value("signals", "termination", ["SIGQUIT"])
        handlers, latch, _ = self._build(fake_source)
        handlers.handle_signal(signal.SIGTERM)
        assert latch.code is None
        handlers.handle_signal(signal.SIGQUIT)
        assert latch.code == 0


# ---------------------------------------------------------------------------
# _serve with a real SIGTERM
# ---------------------------------------------------------------------------


@pytest.mark.skipif(not hasattr(signal, "SIGUSR1"), reason="needs POSIX signals")
def test_serve_exits_on_sigterm():
    config.set_value("daemon", "poll_interval", 0.05)
    before = signal.getsignal(signal.SIGTERM)

    def terminate():
        if wait_until(lambda: signal.getsignal(signal.SIGTERM) is not before, timeout=5.0):
            os.kill(os.getpid(), signal.SIGTERM)

    t = threading.Thread(target=terminate)
    t.start()
    code = _serve()
    t.join(5.0)

    assert code == 0
    assert not _pid_file().exists()
    assert signal.getsignal(signal.SIGTERM) == before


# ---------------------------------------------------------------------------
# send_signal / show_status
# ---------------------------------------------------------------------------


class TestSendSignal:
    @patch("sigwarden.daemon.runner.os.kill")
    @patch("sigwarden.daemon.runner._is_running", return_value=4242)
    def test_sends_resolved_signal(self, mock_running, mock_kill, capsys):
        send_signal("usr1")
        mock_kill.assert_called_once_with(4242, signal.SIGUSR1)
        assert "Sent SIGUSR1" in capsys.readouterr().out

    @patch("sigwarden.daemon.runner._is_running", return_value=None)
    def test_not_running(self, mock_running):
        with pytest.raises(SystemExit):
            send_signal("SIGHUP")


class TestShowStatus:
    def test_stopped_daemon(self, capsys):
        show_status()
        out = capsys.readouterr().out
        assert "stopped" in out
        assert "SIGINT, SIGTERM" in out

    def test_running_daemon(self, capsys):
        _write_pid()
        show_status()
        out = capsys.readouterr().out
        assert f"running (PID {os.getpid()})" in out
        _remove_pid()
