"""Unit tests for the zero-copy buffer decoder."""

import numpy as np
import pytest

from riffwave.format import (
    BorrowedWave,
    MalformedContainerError,
    MissingFormatChunkError,
    Ownership,
    SampleFormat,
    UnsupportedFormatError,
    WaveErrorKind,
    channel_count,
    duration_seconds,
    parse_buffer,
    sample_count,
    sample_format,
    sample_rate,
)
from riffwave.format.decoder import as_byte_view


class TestParseBufferBasics:
    """Tests for well-formed buffers."""

    def test_minimal_file_without_data(self, builder) -> None:
        """Test a header plus a 16-byte fmt chunk and nothing else."""
        data = builder.container(
            builder.chunk(b"fmt ", builder.fmt_payload(1, 1, 8000, 16)), size=36
        )

        wave = parse_buffer(data)

        assert channel_count(wave) == 1
        assert sample_rate(wave) == 8000
        assert sample_format(wave) == SampleFormat.S16
        assert sample_count(wave) == 0
        assert duration_seconds(wave) == 0.0
        assert wave.sample_region is None
        assert wave.sample_data is None

    def test_minimal_file_with_trailing_empty_chunk(self, builder) -> None:
        """Test the 44-byte layout whose last chunk is an empty LIST chunk."""
        data = builder.container(
            builder.chunk(b"fmt ", builder.fmt_payload(1, 1, 8000, 16)),
            builder.chunk(b"LIST", b""),
        )
        assert len(data) == 44

        wave = parse_buffer(data)

        assert wave.header.size == 36
        assert sample_format(wave) == SampleFormat.S16
        assert sample_count(wave) == 0

    def test_fields(self, builder) -> None:
        samples = np.arange(8, dtype="<i2").tobytes()
        data = builder.wave(samples, channels=2, sample_rate=22050)

        wave = parse_buffer(data)

        assert isinstance(wave, BorrowedWave)
        assert wave.ownership == Ownership.borrowed
        assert wave.format.channels == 2
        assert wave.format.sample_rate == 22050
        assert wave.format.block_align == 4
        assert wave.format.byte_rate == 22050 * 4
        assert wave.format_chunk.offset == 12
        assert wave.data_chunk.offset == 36
        assert wave.sample_region.offset == 44
        assert wave.sample_region.size == 16
        assert bytes(wave.sample_data) == samples

    def test_skips_unknown_chunks(self, builder) -> None:
        """Test that a JUNK chunk between fmt and data is stepped over."""
        samples = b"\x01\x00\x02\x00"
        data = builder.wave(samples, before_data=(builder.chunk(b"JUNK", b"\xff" * 10),))

        wave = parse_buffer(data)

        assert wave.data_chunk.offset == 36 + 18
        assert bytes(wave.sample_data) == samples

    def test_odd_sized_chunk_before_data(self, builder) -> None:
        """Test that the pad byte after an odd-sized chunk is honored."""
        samples = b"\x10\x00\x20\x00"
        data = builder.wave(samples, before_data=(builder.chunk(b"LIST", b"abc"),))

        wave = parse_buffer(data)

        assert wave.data_chunk.offset == 36 + 8 + 4
        assert bytes(wave.sample_data) == samples

    def test_data_before_fmt(self, builder) -> None:
        """Test that chunk order does not matter."""
        data = builder.container(
            builder.chunk(b"data", b"\x00\x01\x02\x03"),
            builder.chunk(b"fmt ", builder.fmt_payload(bits_per_sample=8)),
        )

        wave = parse_buffer(data)

        assert sample_format(wave) == SampleFormat.U8
        assert sample_count(wave) == 4

    def test_extended_fmt_payload(self, builder) -> None:
        """Test that a fmt payload longer than 16 bytes is accepted."""
        payload = builder.fmt_payload(format_tag=3, bits_per_sample=32, extra=b"\x00\x00")
        data = builder.container(
            builder.chunk(b"fmt ", payload),
            builder.chunk(b"data", b"\x00" * 8),
        )

        wave = parse_buffer(data)

        assert wave.format_chunk.size == 18
        assert sample_format(wave) == SampleFormat.F32
        assert sample_count(wave) == 2

    def test_duplicate_chunks_last_wins(self, builder) -> None:
        data = builder.container(
            builder.chunk(b"fmt ", builder.fmt_payload(sample_rate=8000)),
            builder.chunk(b"data", b"\x00" * 4),
            builder.chunk(b"fmt ", builder.fmt_payload(sample_rate=16000)),
            builder.chunk(b"data", b"\x00" * 8),
        )

        wave = parse_buffer(data)

        assert sample_rate(wave) == 16000
        assert sample_count(wave) == 4

    def test_riff_size_limits_walk(self, builder) -> None:
        """Test that chunks after the declared container end are ignored."""
        body = builder.chunk(b"fmt ", builder.fmt_payload())
        data = builder.container(
            body, builder.chunk(b"data", b"\x00" * 4), size=4 + len(body)
        )

        wave = parse_buffer(data)

        assert wave.data_chunk is None

    def test_riff_size_larger_than_buffer(self, builder) -> None:
        """Test that an oversized RIFF size is clamped to the buffer."""
        data = builder.container(
            builder.chunk(b"fmt ", builder.fmt_payload()),
            builder.chunk(b"data", b"\x00" * 4),
            size=10_000,
        )

        wave = parse_buffer(data)

        assert sample_count(wave) == 2

    def test_trailing_garbage_shorter_than_header(self, builder) -> None:
        data = builder.wave(b"\x00\x00") + b"\x01\x02\x03"

        wave = parse_buffer(data)

        assert sample_count(wave) == 1


class TestZeroCopy:
    """Tests for aliasing between the handle and the caller's buffer."""

    def test_sample_data_aliases_buffer(self, builder) -> None:
        buffer = bytearray(builder.wave(b"\x00\x00\x00\x00"))
        wave = parse_buffer(buffer)

        buffer[44] = 0x7F

        assert wave.sample_data[0] == 0x7F

    def test_numpy_buffer(self, builder) -> None:
        array = np.frombuffer(builder.wave(b"\x05\x00\x06\x00"), dtype=np.uint8)

        wave = parse_buffer(array)

        assert bytes(wave.sample_data) == b"\x05\x00\x06\x00"

    def test_non_byte_itemsize_buffer(self, builder) -> None:
        """Test that a buffer of wider items is viewed as raw bytes."""
        raw = builder.wave(b"\x05\x00\x06\x00")
        array = np.frombuffer(raw, dtype="<u2")

        wave = parse_buffer(array)

        assert sample_count(wave) == 2

    def test_length_limits_parse(self, builder) -> None:
        """Test that only the first ``length`` bytes are considered."""
        raw = builder.wave(b"\x00\x00") + b"JUNK" + b"\xff" * 100

        wave = parse_buffer(raw, length=46)

        assert len(wave.buffer) == 46
        assert sample_count(wave) == 1

    def test_length_out_of_range(self, builder) -> None:
        with pytest.raises(ValueError):
            parse_buffer(builder.wave(), length=1000)

    def test_release_drops_view(self, builder) -> None:
        buffer = builder.wave(b"\x00\x00")

        with parse_buffer(buffer) as wave:
            assert not wave.released

        assert wave.released
        assert wave.sample_data is None
        assert sample_rate(wave) == 8000


class TestParseBufferErrors:
    """Tests for rejected buffers."""

    def test_empty(self) -> None:
        with pytest.raises(MalformedContainerError, match="Empty buffer"):
            parse_buffer(b"")

    def test_none(self) -> None:
        with pytest.raises(MalformedContainerError):
            parse_buffer(None)

    def test_too_small(self) -> None:
        with pytest.raises(MalformedContainerError, match="too small"):
            parse_buffer(b"RIFF\x24\x00")

    def test_bad_magic_fails_before_chunks(self, builder) -> None:
        """Test that a bad magic is reported even when the chunks are garbage."""
        data = builder.container(b"data\xff\xff\xff\xff", magic=b"RIFX")

        with pytest.raises(MalformedContainerError, match="Not a RIFF file") as e:
            parse_buffer(data)

        assert e.value.offset == 0

    def test_bad_form_type(self, builder) -> None:
        data = builder.container(builder.chunk(b"fmt ", builder.fmt_payload()), form_type=b"AVI ")

        with pytest.raises(MalformedContainerError, match="Not a WAVE file"):
            parse_buffer(data)

    def test_missing_fmt(self, builder) -> None:
        data = builder.container(builder.chunk(b"data", b"\x00" * 4))

        with pytest.raises(MissingFormatChunkError) as e:
            parse_buffer(data)

        assert e.value.kind == WaveErrorKind.missing_format_chunk

    @pytest.mark.parametrize(
        "format_tag,bits",
        [(1, 24), (3, 16), (0xFFFE, 16), (6, 8)],
    )
    def test_unsupported_format(self, builder, format_tag: int, bits: int) -> None:
        data = builder.wave(b"\x00" * 12, format_tag=format_tag, bits_per_sample=bits)

        with pytest.raises(UnsupportedFormatError) as e:
            parse_buffer(data)

        assert e.value.offset == 20

    def test_fmt_payload_too_small(self, builder) -> None:
        data = builder.container(builder.chunk(b"fmt ", builder.fmt_payload()[:14]))

        with pytest.raises(MalformedContainerError, match="fmt chunk too small"):
            parse_buffer(data)

    def test_data_overruns_buffer(self, builder) -> None:
        data = builder.wave(b"\x00" * 16)[:-4]

        with pytest.raises(MalformedContainerError, match="overrunning") as e:
            parse_buffer(data)

        assert e.value.offset == 36


class TestAsByteView:
    """Tests for as_byte_view helper."""

    def test_flattens_multidimensional(self) -> None:
        view = as_byte_view(np.zeros((2, 3), dtype=np.uint16))

        assert view.format == "B"
        assert len(view) == 12

    def test_negative_length(self) -> None:
        with pytest.raises(ValueError):
            as_byte_view(b"RIFF", length=-1)

    def test_zero_length_is_empty(self) -> None:
        with pytest.raises(MalformedContainerError):
            as_byte_view(b"RIFF", length=0)
