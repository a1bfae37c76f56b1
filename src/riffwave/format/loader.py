"""Stream and path loaders.

Two modes are offered:

- ``load_stream``/``load_path`` read the whole file into one allocator block
  and decode it in place (``OwnedWave``).
- ``load_stream_info``/``load_path_info`` read only the container header, the
  chunk headers and the format payload. The sample payload is located but
  never read (``WaveInfo``); callers stream it later with
  ``WaveInfo.read_sample_data`` or their own bounded reads.

Both modes walk chunks with the same cursor and per-tag handlers, so they
agree on every offset and size for a stream that starts at position 0.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from riffwave.format.allocators import (
    DEFAULT_ALLOCATOR,
    Allocator,
    WritableBuffer,
    allocate_block,
)
from riffwave.format.decoder import WaveLayout, decode_view
from riffwave.format.handle import OwnedWave, WaveInfo
from riffwave.format.riff import (
    CHUNK_HEADER_SIZE,
    CONTAINER_HEADER_SIZE,
    DATA_ID,
    FMT_ID,
    ChunkHandler,
    ChunkHeader,
    ContainerHeader,
    MalformedContainerError,
    WaveIOError,
    dispatch_chunks,
    iter_stream_chunks,
    region_end,
)
from riffwave.format.types import FormatDescriptor
from riffwave.format.validation import check_container

logger = logging.getLogger(__name__)


def _read_exact(f: BinaryIO, target: memoryview, offset: int) -> None:
    """Fill ``target`` from the stream or raise WaveIOError on a short read."""
    filled = 0
    try:
        while filled < len(target):
            chunk = f.read(len(target) - filled)
            if not chunk:
                break
            target[filled : filled + len(chunk)] = chunk
            filled += len(chunk)
    except OSError as e:
        raise WaveIOError(f"Cannot read {len(target)} bytes at offset {offset}", offset) from e

    if filled < len(target):
        raise WaveIOError(
            f"Short read: expected {len(target)} bytes at offset {offset}, got {filled}",
            offset,
        )


def _remaining_length(f: BinaryIO) -> int:
    """Number of bytes between the current position and the end of the stream."""
    try:
        start = f.tell()
        f.seek(0, 2)
        end = f.tell()
        f.seek(start)
    except OSError as e:
        raise WaveIOError("Cannot determine stream length") from e
    return end - start


@contextmanager
def open_path(path: Path | str) -> Iterator[BinaryIO]:
    """Open a file for binary reading, mapping open failures to WaveIOError."""
    path = Path(path)
    try:
        f = open(path, "rb")
    except FileNotFoundError as e:
        raise WaveIOError(f"File not found: {path}") from e
    except OSError as e:
        raise WaveIOError(f"Cannot open file: {path}") from e

    with f:
        yield f


def load_stream(
    f: BinaryIO,
    byte_length: int | None = None,
    *,
    allocator: Allocator = DEFAULT_ALLOCATOR,
) -> OwnedWave:
    """Read a whole WAVE file from a stream and decode it.

    Args:
        f: Binary stream positioned at the start of the RIFF header.
        byte_length: Bytes to read (default: up to the end of the stream).
        allocator: Strategy providing the file block; the handle returns the
            block to it on ``release()``.

    Offsets in the returned handle are relative to the stream position at
    the time of the call, since they index the file block. A stream
    positioned at 0 gets the same offsets as ``load_stream_info``.

    Returns:
        An OwnedWave holding the file block.

    Raises:
        WaveIOError: Read failure or fewer than ``byte_length`` bytes available.
        AllocationError: The allocator could not provide the block.
        MalformedContainerError, MissingFormatChunkError, UnsupportedFormatError:
            As for ``parse_buffer``.
    """
    if byte_length is None:
        byte_length = _remaining_length(f)
    if byte_length <= 0:
        raise MalformedContainerError("Empty stream")

    block = allocate_block(allocator, byte_length)
    logger.debug("Allocated %d byte file block", byte_length)
    try:
        view = memoryview(block).cast("B")[:byte_length]
        _read_exact(f, view, 0)
        layout = decode_view(view)
    except Exception:
        allocator.release(block)
        raise

    return OwnedWave(**layout.handle_fields(), block=block, buffer=view, allocator=allocator)


def load_path(path: Path | str, *, allocator: Allocator = DEFAULT_ALLOCATOR) -> OwnedWave:
    """Read and decode a whole WAVE file from disk.

    Raises:
        WaveIOError: If the file cannot be opened or read.
        RiffError: Any other failure of ``load_stream``.
    """
    with open_path(path) as f:
        return load_stream(f, _remaining_length(f), allocator=allocator)


class _InfoScan:
    """Per-tag handlers for the metadata-only walk of a stream."""

    layout: WaveLayout

    def __init__(self, f: BinaryIO, allocator: Allocator) -> None:
        self.f = f
        self.allocator = allocator
        self.blocks: list[WritableBuffer] = []

    def take(self, size: int) -> memoryview:
        block = allocate_block(self.allocator, size)
        self.blocks.append(block)
        return memoryview(block).cast("B")[:size]

    def copy_header(self, chunk: ChunkHeader) -> None:
        self.take(CHUNK_HEADER_SIZE)[:] = chunk.pack()

    def on_format(self, chunk: ChunkHeader) -> None:
        self.copy_header(chunk)
        payload = self.take(chunk.size)
        _read_exact(self.f, payload, chunk.payload_offset)
        self.layout.format_chunk = chunk
        self.layout.format = FormatDescriptor.unpack(payload)

    def on_data(self, chunk: ChunkHeader) -> None:
        # The payload is skipped by the cursor's seek, never read.
        self.copy_header(chunk)
        self.layout.record_data(chunk)

    def handlers(self) -> dict[bytes, ChunkHandler]:
        return {FMT_ID: self.on_format, DATA_ID: self.on_data}


def load_stream_info(
    f: BinaryIO,
    byte_length: int | None = None,
    *,
    allocator: Allocator = DEFAULT_ALLOCATOR,
) -> WaveInfo:
    """Read only the metadata of a WAVE file from a stream.

    The container header is validated before any further I/O. Offsets in
    the returned handle are absolute stream positions.

    Args:
        f: Seekable binary stream positioned at the start of the RIFF header.
        byte_length: Bytes belonging to the file (default: up to the end of
            the stream).
        allocator: Strategy providing the small metadata blocks.

    Returns:
        A WaveInfo locating, but not holding, the sample payload.

    Raises:
        WaveIOError: Read or seek failure.
        AllocationError: The allocator could not provide a block.
        MalformedContainerError, MissingFormatChunkError, UnsupportedFormatError:
            As for ``parse_buffer``.
    """
    try:
        base = f.tell()
    except OSError as e:
        raise WaveIOError("Cannot determine stream position") from e
    if byte_length is None:
        byte_length = _remaining_length(f)
    if byte_length < CONTAINER_HEADER_SIZE:
        raise MalformedContainerError("File too small to be a valid WAV file", base)

    scan = _InfoScan(f, allocator)
    try:
        header_view = scan.take(CONTAINER_HEADER_SIZE)
        _read_exact(f, header_view, base)
        header = ContainerHeader.unpack(header_view)
        check_container(header)
        scan.layout = WaveLayout(header=header)

        end = base + region_end(header, byte_length)
        try:
            chunks = iter_stream_chunks(f, end, limit=base + byte_length)
            count = dispatch_chunks(chunks, scan.handlers())
        except OSError as e:
            raise WaveIOError("Cannot read chunk headers") from e
        logger.debug("Walked %d chunks without reading sample data", count)

        scan.layout.check()
    except Exception:
        for block in scan.blocks:
            allocator.release(block)
        raise

    return WaveInfo(**scan.layout.handle_fields(), blocks=scan.blocks, allocator=allocator)


def load_path_info(path: Path | str, *, allocator: Allocator = DEFAULT_ALLOCATOR) -> WaveInfo:
    """Read only the metadata of a WAVE file on disk.

    Raises:
        WaveIOError: If the file cannot be opened or read.
        RiffError: Any other failure of ``load_stream_info``.
    """
    with open_path(path) as f:
        return load_stream_info(f, _remaining_length(f), allocator=allocator)


def scan_chunks(f: BinaryIO, byte_length: int | None = None) -> list[ChunkHeader]:
    """List every chunk header of a WAVE stream without reading any payload.

    Raises:
        MalformedContainerError: Bad header or a chunk overrunning the stream.
        WaveIOError: Read or seek failure.
    """
    try:
        base = f.tell()
    except OSError as e:
        raise WaveIOError("Cannot determine stream position") from e
    if byte_length is None:
        byte_length = _remaining_length(f)

    if byte_length < CONTAINER_HEADER_SIZE:
        raise MalformedContainerError("File too small to be a valid WAV file", base)

    header_bytes = bytearray(CONTAINER_HEADER_SIZE)
    _read_exact(f, memoryview(header_bytes), base)
    header = ContainerHeader.unpack(header_bytes)
    check_container(header)

    end = base + region_end(header, byte_length)
    try:
        return list(iter_stream_chunks(f, end, limit=base + byte_length))
    except OSError as e:
        raise WaveIOError("Cannot read chunk headers") from e
