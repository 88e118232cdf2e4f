"""
Reading and writing DOL images.

The header is the only part of a DOL image that injection changes. The
rest of the file is copied through untouched and the new section's space
is reserved as zero bytes at the end of the image.
"""

import logging
import os
import stat
from pathlib import Path
from typing import BinaryIO

from .surgery import inject_section
from .types import DolHeader, HEADER_SIZE, TruncatedInputError
from .verify import DolVerifier

logger = logging.getLogger(__name__)

# Chunk size for zero padding writes
PAD_CHUNK_SIZE = 0x10000


def read_header(path: Path) -> DolHeader:
    """Read the DOL header from a file.

    total_image_size is taken from the file size on disk.

    Raises:
        TruncatedInputError: If the file is shorter than the header
        OSError: If the file cannot be read
    """
    file_size = path.stat().st_size
    with open(path, "rb") as f:
        data = f.read(HEADER_SIZE)
    try:
        return DolHeader.from_bytes(data, image_size=file_size)
    except TruncatedInputError as e:
        raise TruncatedInputError(f"{path}: {e}") from e


def _write_zeros(destination: BinaryIO, count: int) -> None:
    chunk = b"\x00" * min(count, PAD_CHUNK_SIZE)
    while count > 0:
        n = min(count, len(chunk))
        destination.write(chunk[:n])
        count -= n


def write_image(source: BinaryIO, header: DolHeader, destination: BinaryIO) -> int:
    """Write a DOL image with a replacement header.

    The output is the encoded header, then every byte of source after its
    original header, then zero padding up to header.total_image_size.

    Args:
        source: Original image, positioned at its start
        header: New header to write
        destination: Writable binary stream

    Returns:
        Number of bytes written

    Raises:
        TruncatedInputError: If source is shorter than the header
        ValueError: If the original body does not fit in total_image_size
        OSError: If reading or writing fails
    """
    original_header = source.read(HEADER_SIZE)
    if len(original_header) < HEADER_SIZE:
        raise TruncatedInputError(
            f"Source too short for DOL header: {len(original_header)} < {HEADER_SIZE}"
        )

    destination.write(header.to_bytes())
    written = HEADER_SIZE

    while True:
        chunk = source.read(PAD_CHUNK_SIZE)
        if not chunk:
            break
        destination.write(chunk)
        written += len(chunk)

    if written > header.total_image_size:
        raise ValueError(
            f"Original image body ends at 0x{written:x}, past the new image "
            f"size 0x{header.total_image_size:x}"
        )

    padding = header.total_image_size - written
    _write_zeros(destination, padding)
    written += padding

    logger.debug(
        "Wrote DOL image: 0x%x bytes (0x%x bytes of padding)", written, padding
    )
    return written


def inject_into_image(
    input_path: Path,
    output_path: Path,
    size: int,
    address: int | None = None,
    verbose: bool = False,
) -> dict:
    """Reserve a new text section in a DOL image and write the result.

    Pipeline:
    1. Read the input header
    2. Compute placement for the new section
    3. Copy the image with the new header and reserved space
    4. Verify the written image

    Args:
        input_path: Path to input DOL
        output_path: Path for output DOL (must differ from input_path)
        size: Requested section size in bytes
        address: Requested memory address, or None to append after all
            mapped content
        verbose: Print progress information

    Returns:
        Dictionary with injection results:
        - slot: Section slot index used
        - address: Memory address of the new section
        - file_offset: File offset of the new section
        - size: Aligned size of the new section
        - original_size: Original file size
        - new_size: New file size

    Raises:
        DolError subclasses from header parsing and injection
        RuntimeError: If the written image fails verification
        OSError: If reading or writing fails
    """
    if input_path.resolve() == output_path.resolve():
        raise ValueError(f"Output path must differ from input path: {input_path}")

    original_mode = os.stat(input_path).st_mode
    header = read_header(input_path)
    original_size = input_path.stat().st_size

    if verbose:
        print(f"Phase 1: Place new section ({size:#x} bytes)")

    result = inject_section(header, size, address)

    if verbose:
        print(f"  Slot:        {result.slot_index}")
        print(f"  Address:     {result.address:#010x}")
        print(f"  File offset: {result.file_offset:#x}")
        print(f"  Size:        {result.size:#x}")
        print("\nPhase 2: Write image")

    with open(input_path, "rb") as src, open(output_path, "wb") as dst:
        new_size = write_image(src, result.header, dst)
    os.chmod(output_path, stat.S_IMODE(original_mode))

    if verbose:
        print("\nPhase 3: Verify output")

    # Only problems introduced by the injection are fatal
    baseline = DolVerifier(header).run_all_checks()
    verification = DolVerifier.verify(output_path)
    new_errors = [e for e in verification.errors if e not in baseline.errors]
    if new_errors:
        raise RuntimeError(
            "Injected image failed verification:\n"
            + "\n".join(f"  - {e}" for e in new_errors)
        )
    for message in verification.errors + verification.warnings:
        logger.warning("%s: %s", output_path, message)

    if verbose:
        print("\nInjection complete:")
        print(f"  Original size: {original_size:,} bytes")
        print(f"  New size:      {new_size:,} bytes")

    return {
        "slot": result.slot_index,
        "address": result.address,
        "file_offset": result.file_offset,
        "size": result.size,
        "original_size": original_size,
        "new_size": new_size,
    }
