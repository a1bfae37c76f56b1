"""RIFF/WAVE container decoding.

Format Overview
---------------
A WAVE file is a RIFF container holding a sequence of tagged chunks:

    +----------------------------------------+
    | RIFF header ("RIFF", size, "WAVE")     |
    +----------------------------------------+
    | fmt  chunk (encoding, channels, rate)  |
    +----------------------------------------+
    | ... chunks skipped by the decoder ...  |
    +----------------------------------------+
    | data chunk (interleaved samples)       |
    +----------------------------------------+

Each chunk is an 8-byte header (FourCC + little-endian size) followed by its
payload and, when the size is odd, one pad byte.

Only linear PCM (8/16/32-bit) and IEEE float (32/64-bit) are supported.

Example Usage
-------------
>>> from riffwave.format import load_path_info, duration_seconds
>>> info = load_path_info("speech.wav")
>>> print(info.format.sample_rate, duration_seconds(info))
>>> with open("speech.wav", "rb") as f:
...     pcm = info.read_sample_data(f)
"""

from riffwave.format.allocators import (
    DEFAULT_ALLOCATOR,
    Allocator,
    ArenaAllocator,
    HeapAllocator,
    NumpyAllocator,
)
from riffwave.format.decoder import parse_buffer
from riffwave.format.handle import BorrowedWave, OwnedWave, WaveHandle, WaveInfo
from riffwave.format.loader import (
    load_path,
    load_path_info,
    load_stream,
    load_stream_info,
    scan_chunks,
)
from riffwave.format.query import (
    bytes_per_sample,
    channel_count,
    duration_seconds,
    frame_count,
    sample_count,
    sample_data,
    sample_format,
    sample_rate,
    samples,
)
from riffwave.format.riff import (
    AllocationError,
    ChunkHeader,
    ContainerHeader,
    MalformedContainerError,
    MissingFormatChunkError,
    RiffError,
    UnsupportedFormatError,
    WaveErrorKind,
    WaveIOError,
)
from riffwave.format.types import (
    FormatDescriptor,
    FormatTag,
    Ownership,
    SampleData,
    SampleFormat,
    SampleRegion,
)
from riffwave.format.validation import validate_container, validate_format

__all__ = [
    # Types
    "ContainerHeader",
    "ChunkHeader",
    "FormatDescriptor",
    "FormatTag",
    "SampleFormat",
    "SampleRegion",
    "SampleData",
    "Ownership",
    # Handles
    "WaveHandle",
    "BorrowedWave",
    "OwnedWave",
    "WaveInfo",
    # Decoding and loading
    "parse_buffer",
    "load_stream",
    "load_path",
    "load_stream_info",
    "load_path_info",
    "scan_chunks",
    # Allocators
    "Allocator",
    "HeapAllocator",
    "NumpyAllocator",
    "ArenaAllocator",
    "DEFAULT_ALLOCATOR",
    # Queries
    "sample_format",
    "bytes_per_sample",
    "sample_count",
    "frame_count",
    "duration_seconds",
    "channel_count",
    "sample_rate",
    "sample_data",
    "samples",
    # Validation
    "validate_container",
    "validate_format",
    # Errors
    "RiffError",
    "WaveErrorKind",
    "MalformedContainerError",
    "UnsupportedFormatError",
    "MissingFormatChunkError",
    "WaveIOError",
    "AllocationError",
]
