"""Validation functions for WAVE container headers and format descriptors.

The ``validate_*`` functions are pure predicates. The ``check_*`` variants
raise the matching error so the decoders can fail with a specific kind.
"""

from riffwave.format.riff import (
    RIFF_ID,
    WAVE_ID,
    ContainerHeader,
    MalformedContainerError,
    MissingFormatChunkError,
    UnsupportedFormatError,
)
from riffwave.format.types import FormatDescriptor, FormatTag

SUPPORTED_BIT_DEPTHS: dict[FormatTag, frozenset[int]] = {
    FormatTag.PCM: frozenset({8, 16, 32}),
    FormatTag.IEEE_FLOAT: frozenset({32, 64}),
}


def validate_container(header: ContainerHeader) -> bool:
    """Check that the header carries the RIFF magic and the WAVE form type."""
    return header.magic == RIFF_ID and header.form_type == WAVE_ID


def validate_format(descriptor: FormatDescriptor | None) -> bool:
    """Check that the encoding tag and bit depth form a supported pair."""
    if descriptor is None:
        return False
    try:
        tag = FormatTag(descriptor.format_tag)
    except ValueError:
        return False
    return descriptor.bits_per_sample in SUPPORTED_BIT_DEPTHS[tag]


def check_container(header: ContainerHeader) -> None:
    """Raise MalformedContainerError unless the header is a RIFF/WAVE header."""
    if header.magic != RIFF_ID:
        raise MalformedContainerError(f"Not a RIFF file (magic {header.magic!r})", 0)
    if header.form_type != WAVE_ID:
        raise MalformedContainerError(f"Not a WAVE file (form type {header.form_type!r})", 8)


def check_format(descriptor: FormatDescriptor | None, offset: int | None = None) -> None:
    """Raise unless ``descriptor`` exists and describes a supported encoding."""
    if descriptor is None:
        raise MissingFormatChunkError("fmt chunk not found in WAV file")
    if validate_format(descriptor):
        return

    if descriptor.format_tag not in SUPPORTED_BIT_DEPTHS:
        raise UnsupportedFormatError(
            f"Unsupported audio format: format={descriptor.format_tag:#06x}", offset
        )
    tag = FormatTag(descriptor.format_tag)
    allowed = ", ".join(str(bits) for bits in sorted(SUPPORTED_BIT_DEPTHS[tag]))
    raise UnsupportedFormatError(
        f"Unsupported bit depth {descriptor.bits_per_sample} for "
        f"{tag.name} (expected one of {allowed})",
        offset,
    )
