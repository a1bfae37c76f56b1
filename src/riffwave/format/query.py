"""Metadata queries over parsed WAVE handles.

Every function accepts ``None`` or a handle without a format or data chunk
and returns a zero/empty sentinel instead of raising.
"""

import numpy as np
from numpy.typing import NDArray

from riffwave.format.handle import WaveHandle
from riffwave.format.types import SampleData, SampleFormat


def sample_format(handle: WaveHandle | None) -> SampleFormat:
    if handle is None or handle.format is None:
        return SampleFormat.UNKNOWN
    return handle.format.sample_format


def bytes_per_sample(handle: WaveHandle | None) -> int:
    if handle is None or handle.format is None:
        return 0
    return handle.format.bits_per_sample // 8


def channel_count(handle: WaveHandle | None) -> int:
    if handle is None or handle.format is None:
        return 0
    return handle.format.channels


def sample_rate(handle: WaveHandle | None) -> int:
    if handle is None or handle.format is None:
        return 0
    return handle.format.sample_rate


def sample_count(handle: WaveHandle | None) -> int:
    """Total number of samples across all channels (interleaved)."""
    width = bytes_per_sample(handle)
    if not width or handle is None or handle.sample_region is None:
        return 0
    return handle.sample_region.size // width


def frame_count(handle: WaveHandle | None) -> int:
    """Number of sample frames, i.e. samples per channel."""
    channels = channel_count(handle)
    if not channels:
        return 0
    return sample_count(handle) // channels


def duration_seconds(handle: WaveHandle | None) -> float:
    """Playback duration in seconds.

    Divides the frame count (not the interleaved sample count) by the
    per-channel sample rate, so multichannel files report their real length.
    """
    rate = sample_rate(handle)
    if not rate:
        return 0.0
    return frame_count(handle) / rate


def sample_data(handle: WaveHandle | None) -> SampleData | None:
    """Locate the sample payload.

    Returns:
        Offset, size and (for buffer and full loads) a zero-copy view of the
        payload, or None when the file has no data chunk.
    """
    if handle is None or handle.sample_region is None:
        return None
    region = handle.sample_region
    return SampleData(offset=region.offset, size=region.size, view=handle.sample_data)


def samples(handle: WaveHandle | None) -> NDArray[np.generic] | None:
    """Interleaved samples as a numpy array of shape (frames, channels).

    The array is a read-only view of the handle's memory, typed with the
    file's little-endian sample dtype. Returns None for metadata-only
    handles, released handles, unknown formats and files without data.
    """
    if handle is None:
        return None
    view = handle.sample_data
    dtype = sample_format(handle).dtype
    channels = channel_count(handle)
    if view is None or dtype is None or not channels:
        return None

    frames = frame_count(handle)
    usable = frames * channels * dtype.itemsize
    array = np.frombuffer(view[:usable], dtype=dtype)
    array.flags.writeable = False
    return array.reshape(frames, channels)
