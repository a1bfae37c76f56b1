"""In-memory WAVE decoder.

``parse_buffer`` walks the chunks of a bytes-like object and returns a
handle whose sample data is a view into that object. Nothing is copied or
allocated besides the small Python records describing the layout.
"""

import logging
from dataclasses import dataclass
from typing import Any

from riffwave.format.handle import BorrowedWave
from riffwave.format.riff import (
    CONTAINER_HEADER_SIZE,
    DATA_ID,
    FMT_ID,
    ChunkHandler,
    ChunkHeader,
    ContainerHeader,
    MalformedContainerError,
    dispatch_chunks,
    iter_chunks,
    region_end,
)
from riffwave.format.types import FormatDescriptor, SampleRegion
from riffwave.format.validation import check_container, check_format

logger = logging.getLogger(__name__)


@dataclass
class WaveLayout:
    """Chunk locations collected while walking a container.

    When a tag occurs more than once, the last occurrence wins.
    """

    header: ContainerHeader
    format: FormatDescriptor | None = None
    format_chunk: ChunkHeader | None = None
    data_chunk: ChunkHeader | None = None
    sample_region: SampleRegion | None = None

    def record_data(self, chunk: ChunkHeader) -> None:
        self.data_chunk = chunk
        self.sample_region = SampleRegion(offset=chunk.payload_offset, size=chunk.size)

    def check(self) -> None:
        """Raise unless a supported format chunk was found."""
        offset = self.format_chunk.payload_offset if self.format_chunk else None
        check_format(self.format, offset)

    def handle_fields(self) -> dict[str, Any]:
        return {
            "header": self.header,
            "format": self.format,
            "format_chunk": self.format_chunk,
            "data_chunk": self.data_chunk,
            "sample_region": self.sample_region,
        }


def as_byte_view(buffer: Any, length: int | None = None) -> memoryview:
    """Return a flat unsigned-byte view of ``buffer``, limited to ``length`` bytes.

    Raises:
        MalformedContainerError: If the view is empty.
        ValueError: If ``length`` is negative or larger than the buffer.
    """
    if buffer is None:
        raise MalformedContainerError("No buffer given")
    view = memoryview(buffer)
    if view.format != "B" or view.ndim != 1:
        view = view.cast("B")
    if length is not None:
        if length < 0 or length > len(view):
            raise ValueError(f"length {length} outside buffer of {len(view)} bytes")
        view = view[:length]
    if not len(view):
        raise MalformedContainerError("Empty buffer")
    return view


def _buffer_handlers(view: memoryview, layout: WaveLayout) -> dict[bytes, ChunkHandler]:
    def on_format(chunk: ChunkHeader) -> None:
        layout.format_chunk = chunk
        payload_end = chunk.payload_offset + chunk.size
        layout.format = FormatDescriptor.unpack(view[:payload_end], chunk.payload_offset)

    return {FMT_ID: on_format, DATA_ID: layout.record_data}


def decode_view(view: memoryview) -> WaveLayout:
    """Walk the chunks of ``view`` and validate the result.

    Raises:
        MalformedContainerError: Bad header or a chunk overrunning the buffer.
        MissingFormatChunkError: No ``fmt `` chunk.
        UnsupportedFormatError: The format chunk describes an unsupported encoding.
    """
    header = ContainerHeader.unpack(view)
    check_container(header)

    layout = WaveLayout(header=header)
    end = region_end(header, len(view))
    count = dispatch_chunks(
        iter_chunks(view, CONTAINER_HEADER_SIZE, end),
        _buffer_handlers(view, layout),
    )
    logger.debug("Walked %d chunks in a %d byte buffer", count, len(view))

    layout.check()
    return layout


def parse_buffer(buffer: Any, length: int | None = None) -> BorrowedWave:
    """Parse a WAVE file held in memory.

    The returned handle aliases ``buffer``; keep the buffer alive (and
    unchanged) for as long as the handle is used.

    Args:
        buffer: Any bytes-like object (bytes, bytearray, mmap, numpy array).
        length: Number of leading bytes to parse (default: all of them).

    Returns:
        A BorrowedWave whose ``sample_data`` is a view into ``buffer``.

    Raises:
        MalformedContainerError: Empty input, bad header or overrunning chunk.
        MissingFormatChunkError: No ``fmt `` chunk.
        UnsupportedFormatError: Unsupported encoding or bit depth.
    """
    view = as_byte_view(buffer, length)
    layout = decode_view(view)
    return BorrowedWave(**layout.handle_fields(), buffer=view)
