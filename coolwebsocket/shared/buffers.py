"""
MODULE OVERVIEW:
A small pool of fixed-size scratch buffers for the receive loop.

WHAT IS HAPPENING HERE:
Every fragment is received into a rented `bytearray` and immediately copied
into the connection's accumulator, so a scratch buffer is only held for the
duration of one receive call. Renting is scoped with a context manager: the
buffer goes back to the pool even when the receive raises or is cancelled.
"""
from collections import deque
from contextlib import contextmanager
from typing import Iterator

from .config import settings


class BufferPool:
    def __init__(self, buffer_size: int = settings.RECEIVE_BUFFER_SIZE, max_retained: int = settings.BUFFER_POOL_MAX_RETAINED):
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        self.buffer_size = buffer_size
        self.max_retained = max_retained
        self._free: deque[bytearray] = deque()
        self.rented = 0

    def __len__(self) -> int:
        return len(self._free)

    def acquire(self) -> bytearray:
        self.rented += 1
        if self._free:
            return self._free.pop()
        return bytearray(self.buffer_size)

    def release(self, buffer: bytearray) -> None:
        self.rented -= 1
        # Foreign or resized buffers are dropped instead of pooled
        if len(buffer) == self.buffer_size and len(self._free) < self.max_retained:
            self._free.append(buffer)

    @contextmanager
    def rent(self) -> Iterator[bytearray]:
        buffer = self.acquire()
        try:
            yield buffer
        finally:
            self.release(buffer)


# The pool shared by every connection in the process
shared_pool = BufferPool()
