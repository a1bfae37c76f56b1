import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any

from cyclopts import App, Parameter
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from riffwave.cli.validators import validate_block_size
from riffwave.format import (
    RiffError,
    WaveHandle,
    channel_count,
    duration_seconds,
    frame_count,
    load_path,
    load_path_info,
    sample_count,
    sample_format,
    sample_rate,
    scan_chunks,
)
from riffwave.format.handle import DEFAULT_BLOCK_SIZE
from riffwave.format.loader import open_path

app = App(name="riffwave", help="Inspect RIFF/WAVE files without decoding their audio")
console = Console()


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(message, style="bold red")


def print_success(message: str) -> None:
    """Print a success message in green."""
    console.print(message, style="bold green")


def print_warning(message: str) -> None:
    """Print a warning message in yellow."""
    console.print(message, style="bold yellow")


def print_json(payload: dict[str, Any]) -> None:
    """Print a JSON document without rich markup, highlighting or wrapping."""
    console.print(json.dumps(payload, indent=2), markup=False, highlight=False, soft_wrap=True)


def configure_logging(verbose: bool) -> None:
    """Route library log records through rich; DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def describe(handle: WaveHandle) -> dict[str, Any]:
    """Summarize a parsed handle as a JSON-serializable dict."""
    fmt = handle.format
    region = handle.sample_region
    return {
        "ownership": handle.ownership.value,
        "sample_format": sample_format(handle).name,
        "format_tag": fmt.format_tag if fmt else None,
        "channels": channel_count(handle),
        "sample_rate": sample_rate(handle),
        "bits_per_sample": fmt.bits_per_sample if fmt else 0,
        "block_align": fmt.block_align if fmt else 0,
        "byte_rate": fmt.byte_rate if fmt else 0,
        "sample_count": sample_count(handle),
        "frame_count": frame_count(handle),
        "duration_seconds": duration_seconds(handle),
        "sample_data_offset": region.offset if region else None,
        "sample_data_size": region.size if region else 0,
    }


def _report_failure(file: Path, error: RiffError, output_json: bool) -> int:
    if output_json:
        print_json(
            {"file": str(file), "valid": False, "kind": error.kind.value, "error": str(error)}
        )
    else:
        print_error(f"[FAIL] {file}: {error}")
        console.print(f"  Kind: {error.kind.value}")
        if error.offset is not None:
            console.print(f"  Offset: {error.offset}")
    return 1


@app.command
def info(
    file: Path,
    full: bool = False,
    output_json: Annotated[bool, Parameter(name=["--json"])] = False,
    verbose: bool = False,
) -> int:
    """
    Display the format and sample layout of a WAVE file.

    Parameters
    ----------
    file: Path
        The path to the .wav file
    full: bool
        Read the whole file into memory instead of only its metadata
    output_json: bool
        Output results as JSON (default: False)
    verbose: bool
        Log chunk-level details while loading
    """
    configure_logging(verbose)

    try:
        handle = load_path(file) if full else load_path_info(file)
    except RiffError as e:
        return _report_failure(file, e, output_json)

    with handle:
        summary = describe(handle)

    if output_json:
        print_json({"file": str(file), **summary})
        return 0

    console.print(f"[bold]Wave: {file}[/bold]")
    console.print(f"  Sample format: {sample_format(handle).display_name}")
    console.print(f"  Channels: {summary['channels']}")
    console.print(f"  Sample rate: {summary['sample_rate']} Hz")
    console.print(f"  Bits per sample: {summary['bits_per_sample']}")
    console.print(f"  Block align: {summary['block_align']} bytes")
    console.print(f"  Samples: {summary['sample_count']:,}")
    console.print(f"  Frames: {summary['frame_count']:,}")
    console.print(f"  Duration: {summary['duration_seconds']:.3f}s")

    if summary["sample_data_offset"] is None:
        print_warning("  No data chunk: the file carries a format description only")
    else:
        console.print(
            f"  Sample data: {summary['sample_data_size']:,} bytes "
            f"at offset {summary['sample_data_offset']}"
        )

    return 0


@app.command
def chunks(
    file: Path,
    output_json: Annotated[bool, Parameter(name=["--json"])] = False,
    verbose: bool = False,
) -> int:
    """
    List every chunk in a WAVE file.

    Parameters
    ----------
    file: Path
        The path to the .wav file
    output_json: bool
        Output results as JSON (default: False)
    verbose: bool
        Log chunk-level details while scanning
    """
    configure_logging(verbose)

    try:
        with open_path(file) as f:
            found = scan_chunks(f)
    except RiffError as e:
        return _report_failure(file, e, output_json)

    if output_json:
        listing = [
            {
                "tag": chunk.tag.decode("latin-1"),
                "offset": chunk.offset,
                "size": chunk.size,
                "padded": bool(chunk.size & 1),
            }
            for chunk in found
        ]
        print_json({"file": str(file), "chunks": listing})
        return 0

    table = Table(show_header=True, header_style="bold")
    table.add_column("Tag", justify="left")
    table.add_column("Offset", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Padded", justify="center")

    for chunk in found:
        padded = "[yellow]Yes[/yellow]" if chunk.size & 1 else "No"
        tag = repr(chunk.tag.decode("latin-1"))
        table.add_row(tag, str(chunk.offset), f"{chunk.size:,}", padded)

    console.print(f"[bold]Chunks: {file}[/bold]")
    console.print(table)
    return 0


@app.command
def validate(
    file: Path,
    output_json: Annotated[bool, Parameter(name=["--json"])] = False,
    verbose: bool = False,
) -> int:
    """
    Check that a WAVE file can be decoded.

    Checks the RIFF header, the presence of a format chunk and that the
    encoding is PCM (8/16/32-bit) or IEEE float (32/64-bit).

    Parameters
    ----------
    file: Path
        The path to the .wav file to validate
    output_json: bool
        Output results as JSON (default: False)
    verbose: bool
        Log chunk-level details while validating
    """
    configure_logging(verbose)

    try:
        handle = load_path_info(file)
    except RiffError as e:
        return _report_failure(file, e, output_json)

    with handle:
        has_data = handle.sample_region is not None
        format_name = sample_format(handle).display_name

    if output_json:
        payload = {"file": str(file), "valid": True, "kind": None, "has_data": has_data}
        print_json(payload)
        return 0

    print_success(f"[PASS] {file}")
    console.print(f"  Format: {format_name}")
    if not has_data:
        print_warning("  [WARN] No data chunk found")
    return 0


@app.command
def extract(
    file: Path,
    output: Path,
    block_size: Annotated[int, Parameter(validator=validate_block_size)] = DEFAULT_BLOCK_SIZE,
    verbose: bool = False,
) -> int:
    """
    Copy the raw sample payload of a WAVE file to another file.

    The payload is streamed in bounded blocks; it is never held in memory
    as a whole.

    Parameters
    ----------
    file: Path
        The source .wav file
    output: Path
        Destination for the raw interleaved sample bytes
    block_size: int
        Bytes read per block (positive multiple of 8, default: 65536)
    verbose: bool
        Log chunk-level details while loading
    """
    configure_logging(verbose)

    try:
        with load_path_info(file) as handle:
            if handle.sample_region is None:
                print_error(f"Error: {file} has no data chunk")
                return 1

            written = 0
            with open_path(file) as source, open(output, "wb") as destination:
                for block in handle.iter_sample_blocks(source, block_size):
                    destination.write(block)
                    written += len(block)
    except RiffError as e:
        return _report_failure(file, e, output_json=False)
    except OSError as e:
        print_error(f"Error writing output: {e}")
        return 1

    print_success(f"Extracted {written:,} bytes of {sample_format(handle).display_name} samples")
    console.print(f"  Output: {output}")
    return 0


if __name__ == "__main__":
    sys.exit(app())
