"""Tests for the reader/writer lock."""

from __future__ import annotations

import threading

import pytest

from sigwarden.rwlock import RWLock


def test_readers_share():
    lock = RWLock()
    with lock.read_lock():
        with lock.read_lock():
            assert lock.readers == 2
    assert lock.readers == 0


def test_writer_waits_for_readers():
    lock = RWLock()
    acquired = threading.Event()

    def writer():
        with lock.write_lock():
            acquired.set()

    with lock.read_lock():
        t = threading.Thread(target=writer)
        t.start()
        assert not acquired.wait(0.1)
    assert acquired.wait(2.0)
    t.join()


def test_reader_waits_for_writer():
    lock = RWLock()
    acquired = threading.Event()

    def reader():
        with lock.read_lock():
            acquired.set()

    with lock.write_lock():
        assert lock.writing
        t = threading.Thread(target=reader)
        t.start()
        assert not acquired.wait(0.1)
    assert acquired.wait(2.0)
    t.join()


def test_nested_read_with_waiting_writer():
    lock = RWLock()
    writer_started = threading.Event()

    def writer():
        writer_started.set()
        with lock.write_lock():
            pass

    with lock.read_lock():
        t = threading.Thread(target=writer)
        t.start()
        writer_started.wait(2.0)
        with lock.read_lock():  # must not block behind the waiting writer
            pass
    t.join(2.0)
    assert not t.is_alive()


def test_unbalanced_release_raises():
    lock = RWLock()
    with pytest.raises(RuntimeError):
        lock.release_read()
    with pytest.raises(RuntimeError):
        lock.release_write()
