"""Shared fixtures for riffwave tests."""

import struct

import pytest


class WaveBuilder:
    """Serialize RIFF/WAVE byte strings chunk by chunk."""

    @staticmethod
    def chunk(tag: bytes, payload: bytes, pad: bool = True) -> bytes:
        """A chunk header plus payload, followed by a pad byte when the size is odd."""
        data = tag + struct.pack("<I", len(payload)) + payload
        if pad and len(payload) % 2:
            data += b"\x00"
        return data

    @staticmethod
    def fmt_payload(
        format_tag: int = 1,
        channels: int = 1,
        sample_rate: int = 8000,
        bits_per_sample: int = 16,
        extra: bytes = b"",
    ) -> bytes:
        block_align = channels * bits_per_sample // 8
        return (
            struct.pack(
                "<HHIIHH",
                format_tag,
                channels,
                sample_rate,
                sample_rate * block_align,
                block_align,
                bits_per_sample,
            )
            + extra
        )

    @staticmethod
    def container(
        *chunks: bytes,
        magic: bytes = b"RIFF",
        form_type: bytes = b"WAVE",
        size: int | None = None,
    ) -> bytes:
        body = b"".join(chunks)
        if size is None:
            size = 4 + len(body)
        return magic + struct.pack("<I", size) + form_type + body

    def wave(
        self,
        samples: bytes = b"",
        *,
        format_tag: int = 1,
        channels: int = 1,
        sample_rate: int = 8000,
        bits_per_sample: int = 16,
        before_data: tuple[bytes, ...] = (),
        after_data: tuple[bytes, ...] = (),
        with_data: bool = True,
    ) -> bytes:
        """A complete file: fmt chunk, optional extra chunks, data chunk."""
        chunks = [
            self.chunk(
                b"fmt ",
                self.fmt_payload(format_tag, channels, sample_rate, bits_per_sample),
            ),
            *before_data,
        ]
        if with_data:
            chunks.append(self.chunk(b"data", samples))
        chunks.extend(after_data)
        return self.container(*chunks)


@pytest.fixture(scope="session")
def builder() -> WaveBuilder:
    """Byte-level WAVE file builder."""
    return WaveBuilder()


class TrackingAllocator:
    """Allocator recording every block handed out and taken back."""

    def __init__(self) -> None:
        self.allocated: list[bytearray] = []
        self.released: list[bytearray] = []

    def allocate(self, size: int) -> bytearray:
        block = bytearray(size)
        self.allocated.append(block)
        return block

    def release(self, block: bytearray) -> None:
        self.released.append(block)

    @property
    def outstanding(self) -> int:
        return len(self.allocated) - len(self.released)


@pytest.fixture
def tracking_allocator() -> TrackingAllocator:
    """Allocator that records allocations and releases."""
    return TrackingAllocator()
