"""
Unit tests for the dolpatch.verify module.

Tests DolVerifier class for DOL image validation.
"""

from pathlib import Path

from dolpatch.verify import DolVerifier, VerificationResult
from dolpatch.types import DolHeader
from dol_test_utils import build_dol_image, make_header


class TestDolVerifier:
    """Tests for the DolVerifier class."""

    def test_verify_valid_image(self, sample_dol: Path):
        result = DolVerifier.verify(sample_dol)
        assert result.passed, f"Verification failed: {result}"
        assert result.warnings == []

    def test_verify_data(self, sample_header: DolHeader):
        result = DolVerifier.verify_data(build_dol_image(sample_header))
        assert result.passed, f"Verification failed: {result}"

    def test_overlapping_sections(self):
        header = make_header(
            {
                0: (0x100, 0x80003100, 0x200),
                1: (0x300, 0x80003200, 0x100),
            },
            entry_point=0x80003100,
        )
        result = DolVerifier(header).check_no_overlapping_sections()
        assert not result.passed
        assert "text0 and text1" in result.errors[0]

    def test_section_overlapping_bss(self):
        header = make_header(
            {0: (0x100, 0x80003100, 0x200)},
            bss=(0x80003200, 0x100),
            entry_point=0x80003100,
        )
        result = DolVerifier(header).run_all_checks()
        assert not result.passed
        assert any("overlaps bss" in e for e in result.errors)

    def test_section_beyond_file(self, sample_header: DolHeader):
        data = build_dol_image(sample_header)[:0x380]
        result = DolVerifier.verify_data(data)
        assert not result.passed
        assert any("extends beyond file" in e for e in result.errors)

    def test_section_inside_header(self):
        header = make_header({0: (0x80, 0x80003100, 0x100)}, entry_point=0x80003100)
        result = DolVerifier(header).check_section_offsets_in_bounds()
        assert not result.passed
        assert "overlaps the header" in result.errors[0]

    def test_entry_point_outside_sections_warns(self):
        header = make_header({0: (0x100, 0x80003100, 0x100)}, entry_point=0x80010000)
        result = DolVerifier(header).run_all_checks()
        assert result.passed
        assert any("Entry point" in w for w in result.warnings)

    def test_entry_point_in_data_warns(self):
        header = make_header(
            {0: (0x100, 0x80003100, 0x200), 7: (0x300, 0x80003300, 0x100)},
            entry_point=0x80003300,
        )
        result = DolVerifier(header).check_entry_point()
        assert result.passed
        assert "data section data0" in result.warnings[0]

    def test_unaligned_section_warns(self):
        header = make_header({0: (0x101, 0x80003102, 0x100)}, entry_point=0x80003102)
        result = DolVerifier(header).check_section_alignment()
        assert result.passed
        assert len(result.warnings) == 2

    def test_unused_slots_ignored(self):
        header = make_header(
            {
                0: (0x100, 0x80003100, 0x100),
                1: (0x10, 0, 0xFFFF),
            },
            entry_point=0x80003100,
        )
        result = DolVerifier(header).run_all_checks()
        assert result.passed, f"Verification failed: {result}"


class TestVerificationResult:
    """Tests for VerificationResult class."""

    def test_empty_result_passes(self):
        result = VerificationResult()
        assert result.passed
        assert len(result.errors) == 0
        assert len(result.warnings) == 0

    def test_add_error_fails(self):
        result = VerificationResult()
        result.add_error("Test error")
        assert not result.passed
        assert result.errors == ["Test error"]

    def test_add_warning_does_not_fail(self):
        result = VerificationResult()
        result.add_warning("Test warning")
        assert result.passed
        assert result.warnings == ["Test warning"]

    def test_merge_results(self):
        result1 = VerificationResult()
        result1.add_warning("Warning 1")

        result2 = VerificationResult()
        result2.add_error("Error 1")

        result1.merge(result2)
        assert not result1.passed
        assert len(result1.warnings) == 1
        assert len(result1.errors) == 1
