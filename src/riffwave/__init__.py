"""riffwave - RIFF/WAVE container decoding.

This package parses WAVE files from memory, streams or paths, validates that
they hold uncompressed PCM or IEEE float audio, and reports their sample
format, rate, channel count and duration along with the location of the
sample payload.

Load Modes
----------
- ``parse_buffer``: zero-copy view over a caller-owned buffer.
- ``load_stream``/``load_path``: the whole file in one allocator block.
- ``load_stream_info``/``load_path_info``: metadata only; the samples are
  located by offset and streamed later.

Example Usage
-------------
>>> from riffwave import load_path, samples, sample_rate
>>> with load_path("drums.wav") as wave:
...     frames = samples(wave)  # numpy array, shape (frames, channels)
...     print(sample_rate(wave), frames.shape)
"""

# Re-export format module for convenience
from riffwave.format import (
    AllocationError,
    ArenaAllocator,
    BorrowedWave,
    FormatDescriptor,
    HeapAllocator,
    MalformedContainerError,
    MissingFormatChunkError,
    NumpyAllocator,
    OwnedWave,
    RiffError,
    SampleFormat,
    UnsupportedFormatError,
    WaveErrorKind,
    WaveHandle,
    WaveInfo,
    WaveIOError,
    channel_count,
    duration_seconds,
    frame_count,
    load_path,
    load_path_info,
    load_stream,
    load_stream_info,
    parse_buffer,
    sample_count,
    sample_data,
    sample_format,
    sample_rate,
    samples,
)

__all__ = [
    # Types
    "FormatDescriptor",
    "SampleFormat",
    "WaveHandle",
    "BorrowedWave",
    "OwnedWave",
    "WaveInfo",
    # Loading
    "parse_buffer",
    "load_stream",
    "load_path",
    "load_stream_info",
    "load_path_info",
    # Allocators
    "HeapAllocator",
    "NumpyAllocator",
    "ArenaAllocator",
    # Queries
    "sample_format",
    "sample_count",
    "frame_count",
    "duration_seconds",
    "channel_count",
    "sample_rate",
    "sample_data",
    "samples",
    # Errors
    "RiffError",
    "WaveErrorKind",
    "MalformedContainerError",
    "UnsupportedFormatError",
    "MissingFormatChunkError",
    "WaveIOError",
    "AllocationError",
]
