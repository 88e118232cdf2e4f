"""
DOL header type definitions.

This module holds the fixed-layout DOL header structures and the helpers
needed to decode and re-encode them.

The header is a flat array of big-endian u32 values:

    18 x section file offsets
    18 x section memory addresses
    18 x section sizes
    bss address, bss size, entry point address

Slots 0-6 are conventionally text (code) and slots 7-17 data. The split is
only a labeling convention: the binary layout does not encode it, and the
header size is always computed from the full 18 slots.

Header values are frozen dataclasses.
Modifications produce a new DolHeader through dataclasses.replace().
"""

import struct
from dataclasses import dataclass, field, replace
from typing import ClassVar

# =============================================================================
# Constants
# =============================================================================

MAX_SECTIONS = 18
NUM_TEXT_SECTIONS = 7
NUM_DATA_SECTIONS = MAX_SECTIONS - NUM_TEXT_SECTIONS

HEADER_SIZE = (MAX_SECTIONS * 3 + 3) * 4  # 0xE4

# Alignment applied to every injected section address, offset and size
SECTION_ALIGNMENT = 0x10

U32_MAX = 0xFFFFFFFF

SLOT_TEXT = "text"
SLOT_DATA = "data"


# =============================================================================
# Errors
# =============================================================================


class DolError(ValueError):
    """Base class for DOL header errors."""

    pass


class TruncatedInputError(DolError):
    """Raised when fewer than HEADER_SIZE bytes are available to decode."""

    pass


# =============================================================================
# DOL Structures
# =============================================================================


@dataclass(frozen=True)
class Section:
    """One section slot of the DOL header.

    A slot whose memory_address is zero is unused, whatever its offset and
    size fields contain.
    """

    file_offset: int = 0
    memory_address: int = 0
    byte_size: int = 0

    @property
    def is_used(self) -> bool:
        return self.memory_address != 0

    @property
    def end_address(self) -> int:
        """End memory address (exclusive)."""
        return self.memory_address + self.byte_size

    @property
    def end_offset(self) -> int:
        """End file offset (exclusive)."""
        return self.file_offset + self.byte_size

    def contains_address(self, address: int) -> bool:
        """Check if a memory address falls within this section."""
        return self.memory_address <= address < self.end_address

    def contains_file_offset(self, offset: int) -> bool:
        """Check if a file offset falls within this section's data."""
        return self.file_offset <= offset < self.end_offset


UNUSED_SECTION = Section()


@dataclass(frozen=True)
class DolHeader:
    """DOL executable header.

    total_image_size is not part of the on-disk header. It records the
    position just past the last byte of the image and is where new
    section data gets appended. It is ignored by equality so that a
    decode/encode round trip compares equal.

    total_image_size is raised at construction to cover the header and
    every used section's data, whatever value is passed in.
    """

    sections: tuple[Section, ...]
    bss_address: int = 0
    bss_size: int = 0
    entry_point_address: int = 0
    total_image_size: int = field(default=HEADER_SIZE, compare=False)

    STRUCT_FMT: ClassVar[str] = f">{MAX_SECTIONS * 3 + 3}I"
    SIZE: ClassVar[int] = HEADER_SIZE

    def __post_init__(self):
        if len(self.sections) != MAX_SECTIONS:
            raise ValueError(
                f"DOL header needs exactly {MAX_SECTIONS} sections, "
                f"got {len(self.sections)}"
            )
        # Tuples keep the header hashable and immutable
        if not isinstance(self.sections, tuple):
            object.__setattr__(self, "sections", tuple(self.sections))

        # Sections may claim bytes past the end of a truncated image
        image_size = max(self.total_image_size, self.SIZE)
        for section in self.sections:
            if section.is_used:
                image_size = max(image_size, section.end_offset)
        if image_size != self.total_image_size:
            object.__setattr__(self, "total_image_size", image_size)

    @classmethod
    def empty(cls) -> "DolHeader":
        """Header with every slot unused and no bss."""
        return cls(sections=(UNUSED_SECTION,) * MAX_SECTIONS)

    @classmethod
    def from_bytes(
        cls,
        data: bytes | bytearray,
        offset: int = 0,
        image_size: int | None = None,
    ) -> "DolHeader":
        """Parse a DOL header from binary data.

        Args:
            data: Buffer holding at least HEADER_SIZE bytes at offset
            offset: Position of the header within data
            image_size: Total image size, if known (e.g. the file size).
                Defaults to the length of data.

        Raises:
            TruncatedInputError: If the buffer is too short
        """
        if len(data) < offset + cls.SIZE:
            raise TruncatedInputError(
                f"Data too short for DOL header: {len(data) - offset} < {cls.SIZE}"
            )

        fields = struct.unpack_from(cls.STRUCT_FMT, data, offset)
        offsets = fields[0:MAX_SECTIONS]
        addresses = fields[MAX_SECTIONS : 2 * MAX_SECTIONS]
        sizes = fields[2 * MAX_SECTIONS : 3 * MAX_SECTIONS]
        bss_address, bss_size, entry_point = fields[3 * MAX_SECTIONS :]

        sections = tuple(
            Section(file_offset=o, memory_address=a, byte_size=s)
            for o, a, s in zip(offsets, addresses, sizes)
        )

        if image_size is None:
            image_size = len(data) - offset

        return cls(
            sections=sections,
            bss_address=bss_address,
            bss_size=bss_size,
            entry_point_address=entry_point,
            total_image_size=image_size,
        )

    def _pack_values(self) -> list[int]:
        values = [s.file_offset for s in self.sections]
        values += [s.memory_address for s in self.sections]
        values += [s.byte_size for s in self.sections]
        values += [self.bss_address, self.bss_size, self.entry_point_address]
        for value in values:
            if not 0 <= value <= U32_MAX:
                raise ValueError(f"DOL header field out of u32 range: {value:#x}")
        return values

    def to_bytes(self) -> bytes:
        """Serialize header to binary data."""
        return struct.pack(self.STRUCT_FMT, *self._pack_values())

    def write_to(self, data: bytearray, offset: int = 0) -> None:
        """Write header to mutable buffer at offset."""
        struct.pack_into(self.STRUCT_FMT, data, offset, *self._pack_values())

    @property
    def bss_end_address(self) -> int:
        return self.bss_address + self.bss_size

    @property
    def text_sections(self) -> tuple[Section, ...]:
        return self.sections[:NUM_TEXT_SECTIONS]

    def with_section(self, index: int, section: Section) -> "DolHeader":
        """Return a copy of this header with one slot replaced."""
        if not 0 <= index < MAX_SECTIONS:
            raise ValueError(f"Invalid section slot index: {index}")
        sections = list(self.sections)
        sections[index] = section
        return replace(self, sections=tuple(sections))


# =============================================================================
# Helper Functions
# =============================================================================


def round_up_to_alignment(value: int, alignment: int) -> int:
    """Round value up to next alignment boundary."""
    if alignment == 0:
        return value
    return (value + alignment - 1) & ~(alignment - 1)


def round_down_to_alignment(value: int, alignment: int) -> int:
    """Round value down to previous alignment boundary."""
    if alignment == 0:
        return value
    return value & ~(alignment - 1)


def align_section(value: int) -> int:
    """Round value up to the section alignment (16 bytes)."""
    return round_up_to_alignment(value, SECTION_ALIGNMENT)


def is_text_slot(index: int) -> bool:
    """Check if a slot index is one of the text slots."""
    return 0 <= index < NUM_TEXT_SECTIONS


def slot_kind(index: int) -> str:
    """Label a slot index as text or data."""
    if not 0 <= index < MAX_SECTIONS:
        raise ValueError(f"Invalid section slot index: {index}")
    return SLOT_TEXT if is_text_slot(index) else SLOT_DATA
