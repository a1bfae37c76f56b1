"""Parsed WAVE handles.

A handle records where the format and data chunks were found and what the
format chunk says. The three variants differ only in who owns the bytes:

- ``BorrowedWave`` views the caller's buffer and must not outlive it.
- ``OwnedWave`` owns an allocator block holding the whole file.
- ``WaveInfo`` owns only the small metadata blocks and locates the sample
  payload by offset, so it can be streamed from the source later.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import BinaryIO, ClassVar

from riffwave.format.allocators import Allocator, WritableBuffer
from riffwave.format.riff import ChunkHeader, ContainerHeader, WaveIOError
from riffwave.format.types import FormatDescriptor, Ownership, SampleRegion

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_SIZE = 64 * 1024


@dataclass
class WaveHandle:
    """Common fields of every parsed WAVE file."""

    header: ContainerHeader
    """The RIFF container header."""

    format: FormatDescriptor | None = None
    """The decoded ``fmt `` payload."""

    format_chunk: ChunkHeader | None = None
    """Header of the ``fmt `` chunk, with its absolute offset."""

    data_chunk: ChunkHeader | None = None
    """Header of the ``data`` chunk, with its absolute offset."""

    sample_region: SampleRegion | None = None
    """Offset and size of the sample payload, None without a data chunk."""

    ownership: ClassVar[Ownership]

    @property
    def sample_data(self) -> memoryview | None:
        """Zero-copy view of the sample payload, if it is held in memory."""
        return None

    @property
    def released(self) -> bool:
        return False

    def release(self) -> None:
        """Give back any memory the handle owns. Calling it twice is a no-op."""

    def __enter__(self) -> "WaveHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


def _slice_region(buffer: memoryview | None, region: SampleRegion | None) -> memoryview | None:
    if buffer is None or region is None:
        return None
    return buffer[region.offset : region.offset + region.size]


@dataclass
class BorrowedWave(WaveHandle):
    """A handle aliasing a caller-owned buffer."""

    buffer: memoryview | None = field(default=None, repr=False)

    ownership = Ownership.borrowed

    @property
    def sample_data(self) -> memoryview | None:
        return _slice_region(self.buffer, self.sample_region)

    @property
    def released(self) -> bool:
        return self.buffer is None

    def release(self) -> None:
        # The buffer belongs to the caller; only drop our view of it.
        self.buffer = None


@dataclass
class OwnedWave(WaveHandle):
    """A handle owning the allocator block that holds the whole file."""

    block: WritableBuffer | None = field(default=None, repr=False)
    buffer: memoryview | None = field(default=None, repr=False)
    allocator: Allocator | None = field(default=None, repr=False)

    ownership = Ownership.owned

    @property
    def sample_data(self) -> memoryview | None:
        return _slice_region(self.buffer, self.sample_region)

    @property
    def released(self) -> bool:
        return self.block is None

    def release(self) -> None:
        if self.block is None:
            return
        block, self.block, self.buffer = self.block, None, None
        if self.allocator is not None:
            self.allocator.release(block)
        logger.debug("Released %d byte file block", memoryview(block).nbytes)


@dataclass
class WaveInfo(WaveHandle):
    """A metadata-only handle; the sample payload stays in the source."""

    blocks: list[WritableBuffer] = field(default_factory=list, repr=False)
    """Metadata blocks obtained from the allocator."""

    allocator: Allocator | None = field(default=None, repr=False)

    ownership = Ownership.info

    @property
    def released(self) -> bool:
        return not self.blocks

    def release(self) -> None:
        blocks, self.blocks = self.blocks, []
        if self.allocator is not None:
            for block in blocks:
                self.allocator.release(block)
        if blocks:
            logger.debug("Released %d metadata blocks", len(blocks))

    def read_sample_data(self, f: BinaryIO, max_bytes: int | None = None) -> bytes:
        """Read the sample payload from the source stream.

        Args:
            f: Binary stream over the same source the handle was loaded from.
            max_bytes: Read at most this many bytes from the start of the payload.

        Returns:
            The payload bytes, or ``b""`` when the file has no data chunk.

        Raises:
            WaveIOError: On a seek failure or when the stream ends early.
        """
        region = self.sample_region
        if region is None:
            return b""
        size = region.size if max_bytes is None else min(region.size, max_bytes)
        try:
            f.seek(region.offset)
            data = f.read(size)
        except OSError as e:
            raise WaveIOError(
                f"Cannot read sample data at offset {region.offset}", region.offset
            ) from e
        if len(data) < size:
            raise WaveIOError(
                f"Short read: expected {size} bytes of sample data, got {len(data)}",
                region.offset,
            )
        return data

    def iter_sample_blocks(
        self, f: BinaryIO, block_size: int = DEFAULT_BLOCK_SIZE
    ) -> Iterator[bytes]:
        """Yield the sample payload in pieces of at most ``block_size`` bytes.

        Raises:
            ValueError: If ``block_size`` is not positive.
            WaveIOError: On a seek failure or when the stream ends early.
        """
        if block_size <= 0:
            raise ValueError(f"block_size must be positive, got {block_size}")
        region = self.sample_region
        if region is None:
            return

        position = region.offset
        remaining = region.size
        while remaining > 0:
            size = min(block_size, remaining)
            try:
                f.seek(position)
                data = f.read(size)
            except OSError as e:
                raise WaveIOError(f"Cannot read sample data at offset {position}", position) from e
            if len(data) < size:
                raise WaveIOError(
                    f"Short read: expected {size} bytes of sample data, got {len(data)}",
                    position,
                )
            yield data
            position += size
            remaining -= size
