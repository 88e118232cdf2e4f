"""
dolpatch: DOL executable header inspection and section injection.

This package decodes the fixed big-endian DOL header, answers layout
queries over it, and reserves space for new text sections without
disturbing existing content:

    from dolpatch import inject_into_image, read_header, locate

    # Reserve 0x400 bytes after all mapped content
    result = inject_into_image(input_path, output_path, 0x400)

    # Translate a memory address to a file offset
    offset = locate(read_header(path), 0x80003050)

Modules:
- types: Header struct, constants and alignment helpers
- layout: DolLayout read-only queries (free slots, extents, overlaps)
- surgery: inject_section() placement algorithm
- translate: address <-> file offset translation
- image: reading headers and writing patched images
- verify: DolVerifier structural checks
- report: text rendering and MessagePack summaries
"""

from .types import (
    DolHeader,
    Section,
    DolError,
    TruncatedInputError,
    # Constants
    MAX_SECTIONS,
    NUM_TEXT_SECTIONS,
    NUM_DATA_SECTIONS,
    HEADER_SIZE,
    SECTION_ALIGNMENT,
    # Helper functions
    align_section,
    round_up_to_alignment,
    round_down_to_alignment,
    slot_kind,
)
from .layout import (
    DolLayout,
    SectionInfo,
    Conflict,
    BSS,
)
from .surgery import (
    inject_section,
    InjectResult,
    InvalidSizeError,
    InvalidAddressError,
    NoFreeSlotError,
    OverlapError,
)
from .translate import (
    locate,
    offset_to_address,
    find_containing_section,
    NotMappedError,
)
from .image import (
    read_header,
    write_image,
    inject_into_image,
)
from .verify import (
    VerificationResult,
    DolVerifier,
)
from .report import (
    format_header,
    header_to_dict,
    header_from_dict,
    pack_header_summary,
    unpack_header_summary,
)

__all__ = [
    # Structs
    "DolHeader",
    "Section",
    # Layout
    "DolLayout",
    "SectionInfo",
    "Conflict",
    "BSS",
    # Injection
    "inject_section",
    "InjectResult",
    # Translation
    "locate",
    "offset_to_address",
    "find_containing_section",
    # Image I/O
    "read_header",
    "write_image",
    "inject_into_image",
    # Verification
    "VerificationResult",
    "DolVerifier",
    # Reporting
    "format_header",
    "header_to_dict",
    "header_from_dict",
    "pack_header_summary",
    "unpack_header_summary",
    # Errors
    "DolError",
    "TruncatedInputError",
    "InvalidSizeError",
    "InvalidAddressError",
    "NoFreeSlotError",
    "OverlapError",
    "NotMappedError",
    # Constants
    "MAX_SECTIONS",
    "NUM_TEXT_SECTIONS",
    "NUM_DATA_SECTIONS",
    "HEADER_SIZE",
    "SECTION_ALIGNMENT",
    # Helper functions
    "align_section",
    "round_up_to_alignment",
    "round_down_to_alignment",
    "slot_kind",
]
