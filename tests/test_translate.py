"""Tests for address <-> file offset translation."""

import pytest

from dolpatch.translate import (
    locate,
    offset_to_address,
    find_containing_section,
    NotMappedError,
)
from dolpatch.types import DolHeader
from dol_test_utils import make_header


@pytest.fixture
def single_section_header() -> DolHeader:
    return make_header({0: (0x100, 0x80003000, 0x200)})


class TestLocate:
    def test_address_inside_section(self, single_section_header: DolHeader):
        assert locate(single_section_header, 0x80003050) == 0x150

    def test_section_start(self, single_section_header: DolHeader):
        assert locate(single_section_header, 0x80003000) == 0x100

    def test_last_byte(self, single_section_header: DolHeader):
        assert locate(single_section_header, 0x800031FF) == 0x2FF

    def test_one_past_end_not_mapped(self, single_section_header: DolHeader):
        with pytest.raises(NotMappedError) as exc_info:
            locate(single_section_header, 0x80003200)
        assert exc_info.value.value == 0x80003200

    def test_below_section_not_mapped(self, single_section_header: DolHeader):
        with pytest.raises(NotMappedError, match="0x80002fff"):
            locate(single_section_header, 0x80002FFF)

    def test_data_sections_are_searched(self, sample_header: DolHeader):
        assert locate(sample_header, 0x80003310) == 0x310

    def test_bss_is_not_mapped(self, sample_header: DolHeader):
        with pytest.raises(NotMappedError):
            locate(sample_header, 0x80003400)

    def test_address_zero_is_not_mapped(self):
        """Unused slots with garbage sizes do not map low addresses."""
        header = make_header({0: (0x100, 0, 0x1000)})
        with pytest.raises(NotMappedError):
            locate(header, 0)

    def test_first_matching_slot_wins(self):
        header = make_header(
            {
                2: (0x100, 0x80003000, 0x100),
                9: (0x800, 0x80003000, 0x100),
            }
        )
        assert locate(header, 0x80003010) == 0x110
        info = find_containing_section(header, 0x80003010)
        assert info.index == 2


class TestOffsetToAddress:
    def test_offset_inside_section(self, sample_header: DolHeader):
        assert offset_to_address(sample_header, 0x150) == 0x80003150
        assert offset_to_address(sample_header, 0x3FF) == 0x800033FF

    def test_header_offset_not_mapped(self, sample_header: DolHeader):
        with pytest.raises(NotMappedError):
            offset_to_address(sample_header, 0x10)

    def test_inverse_of_locate(self, sample_header: DolHeader):
        for address in (0x80003100, 0x80003234, 0x80003300, 0x800033FC):
            offset = locate(sample_header, address)
            assert offset_to_address(sample_header, offset) == address


def test_find_containing_section_returns_none(sample_header: DolHeader):
    assert find_containing_section(sample_header, 0x90000000) is None
