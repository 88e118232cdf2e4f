"""
Read-only layout queries over a DOL header.

DolLayout answers the questions section injection needs: which slots are
used, where mapped memory ends, which text slot is free, and whether a
candidate memory range collides with anything already mapped.
"""

from dataclasses import dataclass
from typing import Iterator

from .types import (
    DolHeader,
    Section,
    NUM_TEXT_SECTIONS,
    slot_kind,
)

# Conflict.slot value used when the bss range is hit
BSS = "bss"


@dataclass(frozen=True)
class SectionInfo:
    """A section slot together with its index."""

    index: int
    section: Section

    @property
    def kind(self) -> str:
        """Slot kind: text or data."""
        return slot_kind(self.index)

    @property
    def name(self) -> str:
        """Conventional slot name, e.g. text0 or data3."""
        if self.index < NUM_TEXT_SECTIONS:
            return f"text{self.index}"
        return f"data{self.index - NUM_TEXT_SECTIONS}"

    @property
    def is_used(self) -> bool:
        return self.section.is_used

    @property
    def address(self) -> int:
        return self.section.memory_address

    @property
    def end_address(self) -> int:
        return self.section.end_address

    @property
    def file_offset(self) -> int:
        return self.section.file_offset

    @property
    def size(self) -> int:
        return self.section.byte_size


@dataclass(frozen=True)
class Conflict:
    """An existing memory range that a candidate range intersects."""

    slot: int | str  # Section slot index, or BSS
    start: int
    end: int

    @property
    def is_bss(self) -> bool:
        return self.slot == BSS

    def describe(self) -> str:
        if self.is_bss:
            what = "bss"
        else:
            what = f"section {self.slot} ({slot_kind(self.slot)})"
        return f"{what} at [{self.start:#010x}, {self.end:#010x})"


def ranges_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    """Check whether two half-open ranges intersect.

    Empty ranges never intersect anything.
    """
    if start1 >= end1 or start2 >= end2:
        return False
    return start1 < end2 and start2 < end1


class DolLayout:
    """Layout view of a DOL header.

    Usage:
        layout = DolLayout(header)
        slot = layout.first_free_text_slot()
        conflict = layout.find_overlap(0x80003000, 0x80003100)
    """

    def __init__(self, header: DolHeader):
        self._header = header

    @property
    def header(self) -> DolHeader:
        return self._header

    # =========================================================================
    # Slot Queries
    # =========================================================================

    def iter_sections(self) -> Iterator[SectionInfo]:
        """Iterate over all 18 slots, used or not."""
        for idx, section in enumerate(self._header.sections):
            yield SectionInfo(index=idx, section=section)

    def iter_used_sections(self) -> Iterator[SectionInfo]:
        """Iterate over used slots in index order."""
        for info in self.iter_sections():
            if info.is_used:
                yield info

    def first_free_text_slot(self) -> int | None:
        """Lowest text slot index with a zero memory address.

        Only the first NUM_TEXT_SECTIONS slots are considered, even when
        data slots are free.
        """
        for idx, section in enumerate(self._header.text_sections):
            if not section.is_used:
                return idx
        return None

    @property
    def has_bss(self) -> bool:
        return self._header.bss_size != 0 or self._header.bss_address != 0

    # =========================================================================
    # Extents
    # =========================================================================

    def highest_occupied_end_address(self) -> int:
        """End address of the highest mapped content (sections or bss).

        Returns 0 when nothing is mapped.
        """
        highest = 0
        for info in self.iter_used_sections():
            highest = max(highest, info.end_address)
        if self.has_bss:
            highest = max(highest, self._header.bss_end_address)
        return highest

    def highest_occupied_end_offset(self) -> int:
        """End file offset of the furthest used section (0 if none)."""
        highest = 0
        for info in self.iter_used_sections():
            highest = max(highest, info.section.end_offset)
        return highest

    # =========================================================================
    # Overlap Detection
    # =========================================================================

    def find_overlap(self, start: int, end: int) -> Conflict | None:
        """Find the first mapped range intersecting [start, end).

        Used sections are checked in slot order, then bss.
        """
        for info in self.iter_used_sections():
            if ranges_overlap(start, end, info.address, info.end_address):
                return Conflict(slot=info.index, start=info.address, end=info.end_address)

        header = self._header
        if ranges_overlap(start, end, header.bss_address, header.bss_end_address):
            return Conflict(slot=BSS, start=header.bss_address, end=header.bss_end_address)
        return None

    def overlaps(self, start: int, end: int) -> bool:
        """Check if [start, end) intersects any used section or bss."""
        return self.find_overlap(start, end) is not None
