import pytest
from pathlib import Path

from dolpatch.types import DolHeader
from dol_test_utils import make_header, build_dol_image


# Layout of the sample image used across tests:
#   text0: offset 0x100, address 0x80003100, size 0x200
#   data0: offset 0x300, address 0x80003300, size 0x100
#   bss:   address 0x80003400, size 0x200
#   entry: 0x80003100, file size 0x400
SAMPLE_SECTIONS = {
    0: (0x100, 0x80003100, 0x200),
    7: (0x300, 0x80003300, 0x100),
}
SAMPLE_BSS = (0x80003400, 0x200)
SAMPLE_ENTRY = 0x80003100


@pytest.fixture
def sample_header() -> DolHeader:
    """A small but well-formed header with one text and one data section."""
    return make_header(SAMPLE_SECTIONS, bss=SAMPLE_BSS, entry_point=SAMPLE_ENTRY)


@pytest.fixture
def sample_dol(tmp_path: Path, sample_header: DolHeader) -> Path:
    """Path to a DOL image built from sample_header."""
    path = tmp_path / "sample.dol"
    path.write_bytes(build_dol_image(sample_header))
    return path


@pytest.fixture
def full_text_header() -> DolHeader:
    """Header with all 7 text slots used and every data slot free."""
    sections = {
        idx: (0x100 + idx * 0x100, 0x80003100 + idx * 0x100, 0x100)
        for idx in range(7)
    }
    return make_header(sections, bss=(0x80004000, 0x100), entry_point=0x80003100)
