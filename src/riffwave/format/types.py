"""Python types for WAVE format metadata.

These types give a Pythonic view of the packed little-endian records found
in the ``fmt `` chunk, plus the enums used by the query surface.
"""

import struct
from dataclasses import dataclass
from enum import Enum, IntEnum

import numpy as np

from riffwave.format.riff import WAVE_FORMAT_IEEE_FLOAT, WAVE_FORMAT_PCM, MalformedContainerError

FORMAT_PAYLOAD_SIZE = 16

_FORMAT_PAYLOAD = struct.Struct("<HHIIHH")


class FormatTag(IntEnum):
    """Encoding tags understood by the decoder."""

    PCM = WAVE_FORMAT_PCM
    """Linear PCM integer samples."""

    IEEE_FLOAT = WAVE_FORMAT_IEEE_FLOAT
    """IEEE 754 floating point samples."""


class SampleFormat(IntEnum):
    """Resolved in-memory sample encoding.

    Unsupported (tag, bit depth) pairs resolve to UNKNOWN.
    """

    UNKNOWN = 0
    U8 = 1
    """Unsigned 8-bit PCM (128 is silence)."""

    S16 = 2
    """Signed 16-bit PCM."""

    S32 = 3
    """Signed 32-bit PCM."""

    F32 = 4
    """32-bit IEEE float."""

    F64 = 5
    """64-bit IEEE float."""

    @classmethod
    def resolve(cls, format_tag: int, bits_per_sample: int) -> "SampleFormat":
        """Map an encoding tag and bit depth to a sample format."""
        return _SAMPLE_FORMATS.get((format_tag, bits_per_sample), cls.UNKNOWN)

    @property
    def bits(self) -> int:
        return _BITS[self]

    @property
    def dtype(self) -> np.dtype | None:
        """Little-endian numpy dtype for the samples, None for UNKNOWN."""
        name = _DTYPES.get(self)
        return np.dtype(name) if name is not None else None

    @property
    def display_name(self) -> str:
        """Human-readable name for this format."""
        names = {
            self.UNKNOWN: "Unknown",
            self.U8: "PCM 8-bit unsigned",
            self.S16: "PCM 16-bit signed",
            self.S32: "PCM 32-bit signed",
            self.F32: "Float 32-bit",
            self.F64: "Float 64-bit",
        }
        return names.get(self, "Unknown")


_SAMPLE_FORMATS = {
    (FormatTag.PCM, 8): SampleFormat.U8,
    (FormatTag.PCM, 16): SampleFormat.S16,
    (FormatTag.PCM, 32): SampleFormat.S32,
    (FormatTag.IEEE_FLOAT, 32): SampleFormat.F32,
    (FormatTag.IEEE_FLOAT, 64): SampleFormat.F64,
}

_BITS = {
    SampleFormat.UNKNOWN: 0,
    SampleFormat.U8: 8,
    SampleFormat.S16: 16,
    SampleFormat.S32: 32,
    SampleFormat.F32: 32,
    SampleFormat.F64: 64,
}

_DTYPES = {
    SampleFormat.U8: "u1",
    SampleFormat.S16: "<i2",
    SampleFormat.S32: "<i4",
    SampleFormat.F32: "<f4",
    SampleFormat.F64: "<f8",
}


class Ownership(str, Enum):
    """Who owns the bytes a handle refers to."""

    borrowed = "borrowed"
    owned = "owned"
    info = "info"


@dataclass(frozen=True)
class FormatDescriptor:
    """The decoded payload of a ``fmt `` chunk."""

    format_tag: int
    channels: int
    sample_rate: int
    """Samples per second, per channel."""

    byte_rate: int
    block_align: int
    """Bytes per sample frame across all channels."""

    bits_per_sample: int

    @classmethod
    def unpack(cls, data: bytes | memoryview, offset: int = 0) -> "FormatDescriptor":
        """Decode the first 16 bytes of a ``fmt `` payload.

        Raises:
            MalformedContainerError: If fewer than 16 bytes are available.
        """
        if len(data) - offset < FORMAT_PAYLOAD_SIZE:
            raise MalformedContainerError("fmt chunk too small", offset)
        fields = _FORMAT_PAYLOAD.unpack_from(data, offset)
        return cls(*fields)

    def pack(self) -> bytes:
        return _FORMAT_PAYLOAD.pack(
            self.format_tag,
            self.channels,
            self.sample_rate,
            self.byte_rate,
            self.block_align,
            self.bits_per_sample,
        )

    @property
    def sample_format(self) -> SampleFormat:
        return SampleFormat.resolve(self.format_tag, self.bits_per_sample)


@dataclass(frozen=True)
class SampleRegion:
    """Location of the sample payload inside the source."""

    offset: int
    size: int


@dataclass(frozen=True)
class SampleData:
    """Result of the sample-data accessor."""

    offset: int
    size: int
    view: memoryview | None
    """Zero-copy view of the payload, None when it was never materialized."""
