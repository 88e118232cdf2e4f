"""
Section injection for DOL headers.

inject_section() reserves a new text section in a DOL header. It computes
the memory address and file offset for the new section, checks it against
existing content, and returns a new header. The input header is never
modified.

Placement rules:
- Only text slots (0-6) are eligible, lowest free index first
- Without an explicit address, the section goes right after the highest
  mapped content (sections or bss)
- With an explicit address, the range must not overlap any used section
  or bss
- Section data is always appended after the current end of the file
- Address, file offset and size are all rounded up to 16 bytes
"""

import logging
from dataclasses import dataclass, replace

from .layout import Conflict, DolLayout
from .types import (
    DolError,
    DolHeader,
    Section,
    NUM_TEXT_SECTIONS,
    U32_MAX,
    align_section,
)

logger = logging.getLogger(__name__)


class InvalidSizeError(DolError):
    """Raised when a requested section size is not usable."""

    pass


class InvalidAddressError(DolError):
    """Raised when a requested section address is not usable.

    Address 0 is never taken to mean "unspecified". It marks a slot as
    unused, so inject_section rejects it; pass address=None to append
    after all mapped content instead.
    """

    pass


class NoFreeSlotError(DolError):
    """Raised when every text slot is already in use."""

    pass


class OverlapError(DolError):
    """Raised when a requested address range collides with mapped content."""

    def __init__(self, message: str, conflict: Conflict):
        super().__init__(message)
        self.conflict = conflict


@dataclass(frozen=True)
class InjectResult:
    """Result of injecting a section."""

    header: DolHeader
    slot_index: int
    section: Section

    @property
    def address(self) -> int:
        return self.section.memory_address

    @property
    def file_offset(self) -> int:
        return self.section.file_offset

    @property
    def size(self) -> int:
        return self.section.byte_size


def inject_section(
    header: DolHeader,
    size: int,
    address: int | None = None,
) -> InjectResult:
    """Add a new text section to a DOL header.

    Args:
        header: Header to extend (left untouched)
        size: Requested section size in bytes, must be positive
        address: Requested memory address. If None, the section is placed
            after all mapped content.

    Returns:
        InjectResult with the new header and the slot that was used

    Raises:
        InvalidSizeError: If size is not positive or the section would not
            fit in the 32-bit file offset space
        InvalidAddressError: If address is zero or negative, or the section
            would not fit in the 32-bit address space
        NoFreeSlotError: If all text slots are used
        OverlapError: If an explicit address collides with a section or bss
    """
    if size <= 0:
        raise InvalidSizeError(f"Section size must be positive, got {size}")

    layout = DolLayout(header)

    slot = layout.first_free_text_slot()
    if slot is None:
        raise NoFreeSlotError(
            f"No free text section slot: all {NUM_TEXT_SECTIONS} are in use"
        )

    aligned_size = align_section(size)

    if address is None:
        start = layout.highest_occupied_end_address()
        if start == 0:
            raise InvalidAddressError(
                "Image maps no sections or bss to place a new section after; "
                "an explicit address is required"
            )
        new_address = align_section(start)
    else:
        # Zero marks a slot as unused, so it can never hold a section
        if address <= 0:
            raise InvalidAddressError(
                f"Section address must be non-zero and positive, got {address:#x}"
            )
        new_address = align_section(address)
        # Check both the requested range and the aligned one
        conflict = layout.find_overlap(address, new_address + aligned_size)
        if conflict is not None:
            raise OverlapError(
                f"Section at [{address:#010x}, {new_address + aligned_size:#010x}) "
                f"overlaps {conflict.describe()}",
                conflict,
            )

    if new_address + aligned_size > U32_MAX + 1:
        raise InvalidAddressError(
            f"Section at {new_address:#010x} with size {aligned_size:#x} "
            "exceeds the 32-bit address space"
        )

    new_offset = align_section(
        max(header.total_image_size, layout.highest_occupied_end_offset())
    )
    if new_offset + aligned_size > U32_MAX + 1:
        raise InvalidSizeError(
            f"Section data at offset {new_offset:#x} with size {aligned_size:#x} "
            "exceeds the 32-bit file offset range"
        )

    section = Section(
        file_offset=new_offset,
        memory_address=new_address,
        byte_size=aligned_size,
    )
    new_header = replace(
        header.with_section(slot, section),
        total_image_size=new_offset + aligned_size,
    )

    logger.debug(
        "Injected section in slot %d: address 0x%08x, offset 0x%x, size 0x%x",
        slot,
        new_address,
        new_offset,
        aligned_size,
    )

    return InjectResult(header=new_header, slot_index=slot, section=section)
