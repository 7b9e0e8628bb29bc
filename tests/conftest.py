"""Shared test fixtures."""

from __future__ import annotations

import signal
import threading
import time
from pathlib import Path
from typing import Callable

import pytest

from sigwarden import config
from sigwarden.handlers import Handlers
from sigwarden.logger import NullLogger


@pytest.fixture(autouse=True)
def tmp_config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect config/data directory to a temp dir for every test."""
    cfg_dir = tmp_path / "sigwarden-test"
    cfg_dir.mkdir()
    monkeypatch.setattr(config, "CONFIG_DIR", cfg_dir)
    monkeypatch.setattr(config, "CONFIG_FILE", cfg_dir / "config.toml")
    return cfg_dir


class FakeSource:
    """In-process stand-in for the OS signal subscription."""

    def __init__(self) -> None:
        self._deliver: Callable[[signal.Signals], None] | None = None
        self.subscribed = 0
        self.unsubscribed = 0

    def subscribe(self, deliver: Callable[[signal.Signals], None]) -> None:
        self._deliver = deliver
        self.subscribed += 1

    def unsubscribe(self) -> None:
        if self._deliver is not None:
            self.unsubscribed += 1
        self._deliver = None

    def send(self, sig: signal.Signals) -> bool:
        if self._deliver is None:
            return False
        self._deliver(sig)
        return True


class ExitRecorder:
    def __init__(self) -> None:
        self.codes: list[int] = []
        self._event = threading.Event()

    def __call__(self, code: int) -> None:
        self.codes.append(code)
        self._event.set()

    def wait(self, timeout: float = 2.0) -> bool:
        return self._event.wait(timeout)


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def exit_recorder() -> ExitRecorder:
    return ExitRecorder()


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def handlers(exit_recorder: ExitRecorder, fake_source: FakeSource) -> Handlers:
    """Handlers with a recording exit function and a fake signal source."""
    return Handlers(
        logger=NullLogger(),
        exit_func=exit_recorder,
        source_factory=lambda: fake_source,
    )
