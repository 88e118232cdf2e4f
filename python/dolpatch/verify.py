"""
DOL verification utilities.

The DolVerifier class provides structural validation for DOL images,
catching header inconsistencies that would make a loader misbehave:
overlapping memory ranges, section data outside the file, and an entry
point that is not backed by code.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from .layout import DolLayout, ranges_overlap
from .translate import find_containing_section
from .types import DolHeader, HEADER_SIZE, SLOT_TEXT


@dataclass
class VerificationResult:
    """Result of image verification.

    Collects errors and warnings from each check in a consistent format.
    """

    passed: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, msg: str) -> None:
        """Add an error (verification failed)."""
        self.errors.append(msg)
        self.passed = False

    def add_warning(self, msg: str) -> None:
        """Add a warning (verification passed but with concerns)."""
        self.warnings.append(msg)

    def merge(self, other: "VerificationResult") -> None:
        """Merge another result into this one."""
        if not other.passed:
            self.passed = False
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


class DolVerifier:
    """DOL image verification.

    Usage:
        result = DolVerifier.verify(Path("main.dol"))
        if not result.passed:
            print(result.errors)
    """

    def __init__(self, header: DolHeader, file_size: int | None = None):
        """Initialize with a parsed header.

        Args:
            header: Parsed DOL header
            file_size: Actual image size on disk. Defaults to the header's
                total_image_size.
        """
        self._header = header
        self._layout = DolLayout(header)
        self._file_size = header.total_image_size if file_size is None else file_size

    @classmethod
    def verify(cls, path: Path) -> VerificationResult:
        """Verify a DOL file on disk."""
        return cls.verify_data(path.read_bytes())

    @classmethod
    def verify_data(cls, data: bytes | bytearray) -> VerificationResult:
        """Verify DOL data in memory."""
        header = DolHeader.from_bytes(data)
        verifier = cls(header, file_size=len(data))
        return verifier.run_all_checks()

    def run_all_checks(self) -> VerificationResult:
        """Run all internal structural checks."""
        result = VerificationResult()

        checks: list[Callable[[], VerificationResult]] = [
            self.check_no_overlapping_sections,
            self.check_section_offsets_in_bounds,
            self.check_entry_point,
            self.check_section_alignment,
        ]

        for check in checks:
            result.merge(check())

        return result

    # =========================================================================
    # Structural Checks
    # =========================================================================

    def check_no_overlapping_sections(self) -> VerificationResult:
        """Check that no two used sections, or a section and bss, share memory."""
        result = VerificationResult()

        sections = list(self._layout.iter_used_sections())
        header = self._header

        for i, sect1 in enumerate(sections):
            for sect2 in sections[i + 1 :]:
                if ranges_overlap(
                    sect1.address, sect1.end_address, sect2.address, sect2.end_address
                ):
                    result.add_error(
                        f"Sections {sect1.name} and {sect2.name} have overlapping "
                        f"memory ranges: [{sect1.address:#x}, {sect1.end_address:#x}) "
                        f"and [{sect2.address:#x}, {sect2.end_address:#x})"
                    )

            if ranges_overlap(
                sect1.address,
                sect1.end_address,
                header.bss_address,
                header.bss_end_address,
            ):
                result.add_error(
                    f"Section {sect1.name} overlaps bss: "
                    f"[{sect1.address:#x}, {sect1.end_address:#x}) and "
                    f"[{header.bss_address:#x}, {header.bss_end_address:#x})"
                )

        return result

    def check_section_offsets_in_bounds(self) -> VerificationResult:
        """Check that section data lies after the header and within the file."""
        result = VerificationResult()

        for section in self._layout.iter_used_sections():
            if section.size == 0:
                continue

            if section.file_offset < HEADER_SIZE:
                result.add_error(
                    f"Section {section.name} data at 0x{section.file_offset:x} "
                    f"overlaps the header (0x{HEADER_SIZE:x} bytes)"
                )

            end_offset = section.section.end_offset
            if end_offset > self._file_size:
                result.add_error(
                    f"Section {section.name} data extends beyond file: "
                    f"ends at 0x{end_offset:x}, file size is 0x{self._file_size:x}"
                )

        return result

    def check_entry_point(self) -> VerificationResult:
        """Check that the entry point lies inside a text section."""
        result = VerificationResult()

        entry = self._header.entry_point_address
        info = find_containing_section(self._header, entry)
        if info is None:
            result.add_warning(f"Entry point 0x{entry:08x} is not in any section")
        elif info.kind != SLOT_TEXT:
            result.add_warning(
                f"Entry point 0x{entry:08x} is in data section {info.name}"
            )

        return result

    def check_section_alignment(self) -> VerificationResult:
        """Check that used sections are 4-byte aligned in file and memory."""
        result = VerificationResult()

        for section in self._layout.iter_used_sections():
            if section.file_offset % 4 != 0:
                result.add_warning(
                    f"Section {section.name} file offset 0x{section.file_offset:x} "
                    "not 4-byte aligned"
                )
            if section.address % 4 != 0:
                result.add_warning(
                    f"Section {section.name} address 0x{section.address:08x} "
                    "not 4-byte aligned"
                )

        return result
