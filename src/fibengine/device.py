# src/fibengine/device.py
"""
A session-oriented host around compute(), shaped like the character device
the engine was first exposed through:

  * one session at a time; a second open() fails immediately (no queueing)
  * write() selects the algorithm with a one-byte code (0/1/2)
  * lseek() moves the index, clamped to [0, max_length]
  * read() computes F(position), timing only the computation

The selected algorithm belongs to the session. Opening a new session starts
from the profile default again.
"""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass

from fibengine import engine
from fibengine.fmt import format_into
from fibengine.registry import Algorithm
from fibengine.runtime import CFG, debug_log

DEVICE_NAME = "fibonacci"
DEFAULT_MAX_LENGTH = 150
DEFAULT_READ_BUFFER = 128


class DeviceBusyError(RuntimeError):
    """Another session holds the device."""


class DeviceClosedError(RuntimeError):
    """The session was released."""


@dataclass(frozen=True)
class ReadResult:
    data: bytes            # ASCII digits, NUL padded to the requested size
    elapsed_ns: int        # time spent inside compute()
    algorithm: Algorithm
    index: int

    @property
    def text(self) -> str:
        return self.data.split(b"\x00", 1)[0].decode("ascii")


class FibDevice:
    def __init__(self, max_length: int | None = None, name: str = DEVICE_NAME):
        self.name = name
        self.max_length = int(CFG("DEVICE.MAX_LENGTH", DEFAULT_MAX_LENGTH)) if max_length is None else int(max_length)
        if self.max_length < 0:
            raise ValueError(f"max_length must be >= 0, got {self.max_length}")
        self._lock = threading.Lock()

    @property
    def in_use(self) -> bool:
        return self._lock.locked()

    def open(self) -> FibSession:
        algorithm = Algorithm.parse(CFG("DEVICE.DEFAULT_ALGORITHM", Algorithm.FAST_DOUBLING_CLZ))
        if not self._lock.acquire(blocking=False):
            raise DeviceBusyError(f"{self.name} is in use")
        debug_log(f"{self.name}: session opened")
        return FibSession(self, algorithm)

    def _release(self) -> None:
        self._lock.release()
        debug_log(f"{self.name}: session released")


class FibSession:
    def __init__(self, device: FibDevice, algorithm: Algorithm):
        self._device = device
        self._closed = False
        self.position = 0
        self.algorithm = algorithm

    def __enter__(self) -> FibSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise DeviceClosedError("session already released")

    def release(self) -> None:
        if not self._closed:
            self._closed = True
            self._device._release()

    def write(self, data: bytes) -> int:
        """Select the algorithm from the first byte; unknown codes are ignored."""
        self._check_open()
        if not data:
            return 0
        code = data[0]
        if code in tuple(Algorithm):
            self.algorithm = Algorithm(code)
            debug_log(f"choosing {self.algorithm.slug}")
        return 1

    def lseek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        self._check_open()
        limit = self._device.max_length
        if whence == os.SEEK_SET:
            pos = offset
        elif whence == os.SEEK_CUR:
            pos = self.position + offset
        elif whence == os.SEEK_END:
            pos = limit - offset
        else:
            raise ValueError(f"invalid whence: {whence}")
        self.position = min(max(pos, 0), limit)
        return self.position

    def read(self, size: int | None = None) -> ReadResult:
        self._check_open()
        if size is None:
            size = int(CFG("DEVICE.READ_BUFFER", DEFAULT_READ_BUFFER))
        k = self.position
        kmax = max(self._device.max_length, engine.configured_max_index())

        start = time.perf_counter_ns()
        result = engine.compute(k, self.algorithm, max_index=kmax)
        elapsed = time.perf_counter_ns() - start

        return ReadResult(format_into(result, size), elapsed, self.algorithm, k)
