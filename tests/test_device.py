# tests/test_device.py
"""
Device-style sessions: fail-fast exclusivity, per-session selector,
seek clamping, timed reads.

Run: pytest -v
"""

from __future__ import annotations

import os
import threading

import pytest

from fibengine.device import (
    DeviceBusyError,
    DeviceClosedError,
    FibDevice,
)
from fibengine.fmt import BufferTooSmallError
from fibengine.registry import Algorithm
from fibengine.runtime import APPLY

# ---------- fixtures -----------------------------------------------------------


@pytest.fixture
def device():
    return FibDevice()


# ---------- exclusivity -----------------------------------------------------------


def test_second_open_fails_fast(device):
    s = device.open()
    try:
        with pytest.raises(DeviceBusyError):
            device.open()
    finally:
        s.release()
    # released -> can be opened again
    with device.open() as s2:
        assert not s2.closed
    assert not device.in_use


def test_open_from_other_thread_is_rejected_not_queued(device):
    errors: list[BaseException] = []

    def other():
        try:
            device.open()
        except DeviceBusyError as e:
            errors.append(e)

    with device.open():
        t = threading.Thread(target=other)
        t.start()
        t.join(timeout=5)
        assert not t.is_alive()
    assert len(errors) == 1


def test_closed_session_rejects_io(device):
    s = device.open()
    s.release()
    s.release()  # idempotent
    with pytest.raises(DeviceClosedError):
        s.read()
    with pytest.raises(DeviceClosedError):
        s.lseek(3)


# ---------- selector ------------------------------------------------------------


def test_write_selects_algorithm_per_session(device):
    with device.open() as s:
        assert s.algorithm is Algorithm.FAST_DOUBLING_CLZ
        assert s.write(b"\x00") == 1
        assert s.algorithm is Algorithm.LINEAR_DP
        assert s.write(b"\x01") == 1
        assert s.algorithm is Algorithm.FAST_DOUBLING
    with device.open() as s:
        # a new session does not inherit the previous selection
        assert s.algorithm is Algorithm.FAST_DOUBLING_CLZ


def test_unknown_selector_code_is_ignored(device):
    with device.open() as s:
        s.write(b"\x00")
        assert s.write(b"\x07") == 1
        assert s.algorithm is Algorithm.LINEAR_DP
        assert s.write(b"") == 0


def test_default_algorithm_comes_from_profile():
    APPLY({"DEVICE": {"DEFAULT_ALGORITHM": "fd"}})
    with FibDevice().open() as s:
        assert s.algorithm is Algorithm.FAST_DOUBLING


# ---------- seek ------------------------------------------------------------------


@pytest.mark.parametrize("offset,whence,expected", [
    (10, os.SEEK_SET, 10),
    (200, os.SEEK_SET, 150),
    (-5, os.SEEK_SET, 0),
    (10, os.SEEK_END, 140),
    (-10, os.SEEK_END, 150),
    (200, os.SEEK_END, 0),
])
def test_lseek_clamps(device, offset, whence, expected):
    with device.open() as s:
        assert s.lseek(offset, whence) == expected
        assert s.position == expected


def test_lseek_cur(device):
    with device.open() as s:
        s.lseek(100)
        assert s.lseek(20, os.SEEK_CUR) == 120
        assert s.lseek(100, os.SEEK_CUR) == 150
        assert s.lseek(-500, os.SEEK_CUR) == 0


def test_lseek_bad_whence(device):
    with device.open() as s, pytest.raises(ValueError):
        s.lseek(1, 42)


# ---------- read ------------------------------------------------------------------


@pytest.mark.parametrize("code", [0, 1, 2])
def test_read_returns_digits_and_time(device, code):
    with device.open() as s:
        s.write(bytes([code]))
        s.lseek(92)
        r = s.read(32)
    assert r.text == "7540113804746346429"
    assert len(r.data) == 32
    assert r.index == 92
    assert r.algorithm == code
    assert r.elapsed_ns >= 0


def test_read_at_max_length(device):
    with device.open() as s:
        s.lseek(0, os.SEEK_END)
        r = s.read()
    assert r.text == "9969216677189303386214405760200"


def test_read_buffer_too_small(device):
    with device.open() as s:
        s.lseek(50)
        with pytest.raises(BufferTooSmallError):
            s.read(5)


def test_custom_max_length():
    dev = FibDevice(max_length=300)
    with dev.open() as s:
        assert s.lseek(1000) == 300
        assert len(s.read(80).text) == 63
