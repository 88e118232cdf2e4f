"""
Human-readable and machine-readable DOL header summaries.

format_header() renders the section table for display. The MessagePack
summary carries the same information for other tools to consume.
"""

import msgpack

from .types import DolHeader, Section, MAX_SECTIONS, slot_kind

SUMMARY_VERSION = 1


def format_header(header: DolHeader) -> str:
    """Render the section table, bss and entry point as text."""
    lines = [f"DOL size: {header.total_image_size:#010x}"]

    for idx, section in enumerate(header.sections):
        if not section.is_used:
            lines.append(f"Section {idx:02d}: unused.")
        else:
            lines.append(
                f"Section {idx:02d}: offset = {section.file_offset:#010x}, "
                f"start_addr = {section.memory_address:#010x}, "
                f"end_addr = {section.end_address:#010x}, "
                f"size = {section.byte_size:#010x}"
            )

    lines.append(
        f"bss: start_addr = {header.bss_address:#010x}, "
        f"end_addr = {header.bss_end_address:#010x}, "
        f"size = {header.bss_size:#010x}"
    )
    lines.append(f"entry point address: {header.entry_point_address:#010x}")
    return "\n".join(lines)


def header_to_dict(header: DolHeader) -> dict:
    """Convert a header to plain Python types."""
    return {
        "version": SUMMARY_VERSION,
        "image_size": header.total_image_size,
        "sections": [
            {
                "slot": idx,
                "kind": slot_kind(idx),
                "used": section.is_used,
                "offset": section.file_offset,
                "address": section.memory_address,
                "size": section.byte_size,
            }
            for idx, section in enumerate(header.sections)
        ],
        "bss": {"address": header.bss_address, "size": header.bss_size},
        "entry_point": header.entry_point_address,
    }


def header_from_dict(data: dict) -> DolHeader:
    """Rebuild a header from header_to_dict() output.

    Raises:
        ValueError: If required keys are missing or malformed
    """
    try:
        entries = data["sections"]
        if len(entries) != MAX_SECTIONS:
            raise ValueError(
                f"Expected {MAX_SECTIONS} sections, got {len(entries)}"
            )
        sections = tuple(
            Section(
                file_offset=int(entry["offset"]),
                memory_address=int(entry["address"]),
                byte_size=int(entry["size"]),
            )
            for entry in entries
        )
        return DolHeader(
            sections=sections,
            bss_address=int(data["bss"]["address"]),
            bss_size=int(data["bss"]["size"]),
            entry_point_address=int(data["entry_point"]),
            total_image_size=int(data["image_size"]),
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed DOL header summary: {e}") from e


def pack_header_summary(header: DolHeader) -> bytes:
    """Serialize a header summary to MessagePack."""
    return msgpack.packb(header_to_dict(header), use_bin_type=True)


def unpack_header_summary(data: bytes) -> DolHeader:
    """Parse a MessagePack header summary.

    Raises:
        ValueError: If data is not a valid summary
    """
    try:
        summary = msgpack.unpackb(data, raw=False, strict_map_key=True)
    # Incomplete input raises a plain ValueError
    except (msgpack.exceptions.UnpackException, ValueError) as e:
        raise ValueError(f"Failed to parse DOL header summary: {e}") from e
    if not isinstance(summary, dict):
        raise ValueError(
            f"Invalid DOL header summary: expected dict, got {type(summary).__name__}"
        )
    version = summary.get("version")
    if version != SUMMARY_VERSION:
        raise ValueError(f"Unsupported DOL header summary version: {version}")
    return header_from_dict(summary)
