"""
Address and file offset translation for DOL images.

Every section maps a contiguous run of file bytes to a contiguous run of
memory, so translation is a linear scan over the section table.
"""

from .layout import DolLayout, SectionInfo
from .types import DolError, DolHeader


class NotMappedError(DolError):
    """Raised when an address or offset lies outside every section."""

    def __init__(self, message: str, value: int):
        super().__init__(message)
        self.value = value


def find_containing_section(header: DolHeader, address: int) -> SectionInfo | None:
    """Find the first slot whose memory range contains address.

    Text and data slots are scanned from low to high index. Unused slots
    never match, even if their size field is non-zero.
    """
    for info in DolLayout(header).iter_used_sections():
        if info.section.contains_address(address):
            return info
    return None


def locate(header: DolHeader, address: int) -> int:
    """Convert a memory address to its file offset.

    Args:
        header: Parsed DOL header
        address: Memory address to look up

    Returns:
        File offset backing the address

    Raises:
        NotMappedError: If no section contains the address
    """
    info = find_containing_section(header, address)
    if info is None:
        raise NotMappedError(f"Address {address:#010x} is not in any section", address)
    return address - info.address + info.file_offset


def offset_to_address(header: DolHeader, offset: int) -> int:
    """Convert a file offset to the memory address it is loaded at.

    Raises:
        NotMappedError: If no used section covers the offset
    """
    for info in DolLayout(header).iter_used_sections():
        if info.section.contains_file_offset(offset):
            return offset - info.file_offset + info.address
    raise NotMappedError(f"File offset {offset:#x} is not in any section", offset)
