"""Allocation strategies for the stream loaders.

Loaders never allocate directly: they ask an ``Allocator`` for writable
blocks and hand every block back to the same allocator on release. The
default is ``HeapAllocator``; any object with ``allocate``/``release``
methods can be passed instead.
"""

import logging
from typing import Protocol, TypeAlias

import numpy as np
from numpy.typing import NDArray

from riffwave.format.riff import AllocationError

logger = logging.getLogger(__name__)

WritableBuffer: TypeAlias = bytearray | memoryview | NDArray[np.uint8]


class Allocator(Protocol):
    def allocate(self, size: int) -> WritableBuffer:
        """Return a writable block of at least ``size`` bytes."""
        ...

    def release(self, block: WritableBuffer) -> None:
        """Take back a block previously returned by ``allocate``."""
        ...


class HeapAllocator:
    """General-purpose allocation backed by ``bytearray``."""

    def allocate(self, size: int) -> bytearray:
        return bytearray(size)

    def release(self, block: WritableBuffer) -> None:
        # Reclaimed by the garbage collector once the handle drops it.
        pass


class NumpyAllocator:
    """Allocate uninitialized ``uint8`` numpy arrays."""

    def allocate(self, size: int) -> NDArray[np.uint8]:
        return np.empty(size, dtype=np.uint8)

    def release(self, block: WritableBuffer) -> None:
        pass


class ArenaAllocator:
    """Bump allocator carving blocks out of one preallocated numpy array.

    Individual releases are only counted; memory is reclaimed all at once by
    ``reset()``. Not safe for concurrent use.

    Args:
        capacity: Size of the arena in bytes.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"Arena capacity must be positive, got {capacity}")
        self._arena = np.zeros(capacity, dtype=np.uint8)
        self._used = 0
        self.outstanding = 0

    @property
    def capacity(self) -> int:
        return len(self._arena)

    @property
    def used(self) -> int:
        return self._used

    def allocate(self, size: int) -> NDArray[np.uint8]:
        if size < 0:
            raise AllocationError(f"Cannot allocate a negative size ({size})")
        if self._used + size > self.capacity:
            raise AllocationError(
                f"Arena exhausted: requested {size} bytes, "
                f"{self.capacity - self._used} of {self.capacity} available"
            )
        block = self._arena[self._used : self._used + size]
        self._used += size
        self.outstanding += 1
        logger.debug("Arena allocated %d bytes (%d/%d used)", size, self._used, self.capacity)
        return block

    def release(self, block: WritableBuffer) -> None:
        self.outstanding -= 1

    def reset(self) -> None:
        """Reclaim every block. Blocks handed out earlier must no longer be used."""
        self._used = 0
        self.outstanding = 0


DEFAULT_ALLOCATOR: Allocator = HeapAllocator()


def allocate_block(allocator: Allocator, size: int) -> WritableBuffer:
    """Ask ``allocator`` for ``size`` bytes, normalizing failures to AllocationError."""
    try:
        block = allocator.allocate(size)
    except MemoryError as e:
        raise AllocationError(f"Cannot allocate {size} bytes") from e
    if block is None or memoryview(block).nbytes < size:
        raise AllocationError(f"Allocator returned a block smaller than {size} bytes")
    return block
