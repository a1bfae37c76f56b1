"""RIFF chunk utilities for WAVE files.

This module provides the low-level pieces shared by every load mode: the
FourCC identifiers, the error taxonomy, the fixed-size header records and the
chunk cursor that walks a tagged-chunk region in a buffer or a stream.
"""

import logging
import struct
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO

logger = logging.getLogger(__name__)

# FourCC identifiers
RIFF_ID = b"RIFF"
WAVE_ID = b"WAVE"
FMT_ID = b"fmt "
DATA_ID = b"data"

# Audio format codes
WAVE_FORMAT_PCM = 1
WAVE_FORMAT_IEEE_FLOAT = 3

CONTAINER_HEADER_SIZE = 12
CHUNK_HEADER_SIZE = 8

_CONTAINER_HEADER = struct.Struct("<4sI4s")
_CHUNK_HEADER = struct.Struct("<4sI")


class WaveErrorKind(str, Enum):
    malformed_container = "malformed_container"
    unsupported_format = "unsupported_format"
    missing_format_chunk = "missing_format_chunk"
    io_failure = "io_failure"
    allocation_failure = "allocation_failure"


class RiffError(Exception):
    """Error reading a RIFF/WAVE container.

    Every failure carries a ``kind`` so callers can either catch a specific
    subclass or match on the kind.
    """

    kind: WaveErrorKind = WaveErrorKind.malformed_container

    def __init__(self, message: str, offset: int | None = None) -> None:
        self.offset = offset
        super().__init__(message)


class MalformedContainerError(RiffError):
    """Bad magic or form type, truncated header, or a chunk overrunning its bound."""

    kind = WaveErrorKind.malformed_container


class UnsupportedFormatError(RiffError):
    """Encoding tag or bit depth outside the supported set."""

    kind = WaveErrorKind.unsupported_format


class MissingFormatChunkError(RiffError):
    """No ``fmt `` chunk was found in the container."""

    kind = WaveErrorKind.missing_format_chunk


class WaveIOError(RiffError):
    """Open, read or seek failure, including short reads."""

    kind = WaveErrorKind.io_failure


class AllocationError(RiffError):
    """The allocation strategy could not provide a block."""

    kind = WaveErrorKind.allocation_failure


@dataclass(frozen=True)
class ContainerHeader:
    """The 12-byte RIFF header that opens every WAVE file."""

    magic: bytes
    size: int
    """Byte count of everything after the size field."""

    form_type: bytes

    @classmethod
    def unpack(cls, data: bytes | memoryview, offset: int = 0) -> "ContainerHeader":
        """Decode a container header from ``data`` at ``offset``."""
        if len(data) - offset < CONTAINER_HEADER_SIZE:
            raise MalformedContainerError("File too small to be a valid WAV file", offset)
        magic, size, form_type = _CONTAINER_HEADER.unpack_from(data, offset)
        return cls(magic=magic, size=size, form_type=form_type)

    @property
    def end_offset(self) -> int:
        """Offset one past the last byte covered by the size field."""
        return CHUNK_HEADER_SIZE + self.size


@dataclass(frozen=True)
class ChunkHeader:
    """A chunk header (FourCC + payload size) and where it was found."""

    tag: bytes
    size: int
    """Payload length, excluding the header and any pad byte."""

    offset: int
    """Absolute offset of the chunk header in the source."""

    @classmethod
    def unpack(cls, data: bytes | memoryview, offset: int, base: int = 0) -> "ChunkHeader":
        """Decode the header at ``offset`` in ``data``; ``base`` is added to the recorded offset."""
        tag, size = _CHUNK_HEADER.unpack_from(data, offset)
        return cls(tag=tag, size=size, offset=base + offset)

    @property
    def payload_offset(self) -> int:
        return self.offset + CHUNK_HEADER_SIZE

    @property
    def padded_size(self) -> int:
        return self.size + (self.size & 1)

    @property
    def next_offset(self) -> int:
        return self.payload_offset + self.padded_size

    def pack(self) -> bytes:
        return _CHUNK_HEADER.pack(self.tag, self.size)


ChunkHandler = Callable[[ChunkHeader], None]


def region_end(header: ContainerHeader, available: int) -> int:
    """Exclusive upper bound of the chunk region.

    This is the end declared by the container size, clamped to the number
    of bytes actually available.
    """
    declared = header.end_offset
    if declared > available:
        logger.debug(
            "RIFF size declares %d bytes but only %d are available", declared, available
        )
        return available
    return declared


def read_chunk_header(f: BinaryIO) -> ChunkHeader:
    """Read a chunk header at the current stream position.

    Raises:
        WaveIOError: If fewer than 8 bytes could be read.
    """
    offset = f.tell()
    header = f.read(CHUNK_HEADER_SIZE)
    if len(header) < CHUNK_HEADER_SIZE:
        raise WaveIOError("Unexpected end of file reading chunk header", offset)
    return ChunkHeader.unpack(header, 0, base=offset)


def iter_chunks(buffer: memoryview, start: int, end: int) -> Iterator[ChunkHeader]:
    """Walk the chunks of an in-memory region.

    Args:
        buffer: The whole source buffer.
        start: Offset of the first chunk header.
        end: Exclusive upper bound of the chunk region.

    Yields:
        Each chunk header in file order.

    Raises:
        MalformedContainerError: If a chunk's payload runs past the buffer.
    """
    limit = min(end, len(buffer))
    position = start
    while position + CHUNK_HEADER_SIZE <= limit:
        chunk = ChunkHeader.unpack(buffer, position)
        if chunk.payload_offset + chunk.size > len(buffer):
            raise MalformedContainerError(
                f"Chunk {chunk.tag!r} at offset {chunk.offset} declares {chunk.size} bytes, "
                f"overrunning the {len(buffer)} byte buffer",
                chunk.offset,
            )
        yield chunk
        position = chunk.next_offset

    if position < limit:
        logger.debug("Ignoring %d trailing bytes at offset %d", limit - position, position)


def iter_stream_chunks(
    f: BinaryIO, end: int, limit: int | None = None
) -> Iterator[ChunkHeader]:
    """Walk the chunks of a seekable stream from its current position.

    The consumer may read from the stream between steps; the cursor always
    seeks to the next chunk header itself, so payloads that are not read are
    skipped without I/O.

    Args:
        f: Binary stream positioned at the first chunk header.
        end: Exclusive upper bound of the chunk region (absolute position).
        limit: Absolute position one past the last readable byte
            (defaults to ``end``).

    Yields:
        Each chunk header in file order.

    Raises:
        MalformedContainerError: If a chunk's payload runs past ``limit``.
        WaveIOError: If the stream cannot be read or repositioned.
    """
    if limit is None:
        limit = end
    position = f.tell()
    while position + CHUNK_HEADER_SIZE <= end:
        chunk = read_chunk_header(f)
        if chunk.payload_offset + chunk.size > limit:
            raise MalformedContainerError(
                f"Chunk {chunk.tag!r} at offset {chunk.offset} declares {chunk.size} bytes, "
                f"overrunning the stream bound {limit}",
                chunk.offset,
            )
        yield chunk
        position = chunk.next_offset
        try:
            f.seek(position)
        except OSError as e:
            raise WaveIOError(f"Cannot seek to offset {position}", position) from e

    if position < end:
        logger.debug("Ignoring %d trailing bytes at offset %d", end - position, position)


def dispatch_chunks(chunks: Iterator[ChunkHeader], handlers: Mapping[bytes, ChunkHandler]) -> int:
    """Feed every chunk to the handler registered for its tag.

    Chunks without a handler are skipped.

    Returns:
        The number of chunks visited.
    """
    count = 0
    for chunk in chunks:
        count += 1
        handler = handlers.get(chunk.tag)
        if handler is None:
            logger.debug(
                "Skipping chunk %r (%d bytes) at offset %d", chunk.tag, chunk.size, chunk.offset
            )
            continue
        handler(chunk)
    return count
