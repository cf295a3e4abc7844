import struct

import pytest

from wimtools.efireloc import (
    IMAGE_DIRECTORY_ENTRY_BASERELOC,
    IMAGE_MACHINE_IA32,
    IMAGE_MACHINE_X64,
    RELOC_SECTION_INDEX,
    PeRelocations,
    RelocationError,
    append_reloc_section,
)


def _blocks(table):
    """Split a relocation table into (start_rva, entries) pairs."""
    result = []
    pos = 0
    while pos < len(table):
        start, size = struct.unpack_from("<II", table, pos)
        count = (size - 8) // 2
        entries = list(struct.unpack_from(f"<{count}H", table, pos + 8))
        result.append((start, size, entries))
        pos += size
    assert pos == len(table)
    return result


def test_single_reloc_entry():
    relocs = PeRelocations()
    relocs.add(0x1234, 4)
    [(start, size, entries)] = _blocks(relocs.to_bytes())
    assert start == 0x1234 & ~0xFFF
    assert size % 16 == 0
    assert entries[0] == 0x3000 | 0x234
    assert all(entry == 0 for entry in entries[1:])


@pytest.mark.parametrize("size,kind", [(8, 0xA000), (4, 0x3000), (2, 0x2000)])
def test_reloc_kinds(size, kind):
    relocs = PeRelocations()
    relocs.add(0x2010, size)
    [(_, _, entries)] = _blocks(relocs.to_bytes())
    assert entries[0] == kind | 0x010


def test_unsupported_size():
    with pytest.raises(RelocationError):
        PeRelocations().add(0x1000, 3)


def test_pages_in_reverse_order():
    relocs = PeRelocations()
    relocs.add(0x1004, 4)
    relocs.add(0x5008, 4)
    relocs.add(0x100c, 4)
    blocks = _blocks(relocs.to_bytes())
    assert [start for start, _, _ in blocks] == [0x5000, 0x1000]
    assert blocks[1][2][:2] == [0x3004, 0x300C]


def test_even_entry_count_and_alignment():
    relocs = PeRelocations()
    for rva in range(0x3000, 0x3000 + 3 * 8, 8):
        relocs.add(rva, 8)
    table = relocs.to_bytes()
    [(_, size, entries)] = _blocks(table)
    assert len(entries) % 2 == 0
    assert size % 16 == 0
    assert len(relocs) == 3


def test_many_relocs_in_one_page():
    relocs = PeRelocations()
    for rva in range(0x4000, 0x5000, 4):
        relocs.add(rva, 4)
    [(start, _, entries)] = _blocks(relocs.to_bytes())
    assert start == 0x4000
    assert entries[:1024] == [0x3000 | (rva & 0xFFF)
                              for rva in range(0x4000, 0x5000, 4)]


def test_add_reloc_by_name():
    relocs = PeRelocations()
    relocs.add_reloc("R_X86_64_64", 0x1000)
    relocs.add_reloc("R_386_16", 0x1002)
    [(_, _, entries)] = _blocks(relocs.to_bytes())
    assert entries[:2] == [0xA000, 0x2002]


def test_skipped_relocs_produce_empty_table():
    relocs = PeRelocations()
    relocs.add_reloc("R_X86_64_PC32", 0x1000)
    relocs.add_reloc("R_X86_64_PLT32", 0x1000)
    relocs.add_reloc("R_X86_64_64", 0x1000, absolute=True)
    assert relocs.to_bytes() == b""
    assert len(relocs) == 0


def test_unrecognised_reloc_name():
    with pytest.raises(RelocationError):
        PeRelocations().add_reloc("R_X86_64_GOTPCREL", 0x1000)


def _make_image(machine, nt=0x80, num_dirs=16, image_size=0x3000):
    image = bytearray(512)
    struct.pack_into("<I", image, 0x3C, nt)
    image[nt:nt + 4] = b"PE\0\0"
    struct.pack_into("<H", image, nt + 4, machine)
    optional = nt + 24
    struct.pack_into("<I", image, optional + 56, image_size)
    count_off, dir_off = (108, 112) if machine == IMAGE_MACHINE_X64 else (92, 96)
    struct.pack_into("<I", image, optional + count_off, num_dirs)
    data_dir = optional + dir_off
    section = data_dir + num_dirs * 8 + RELOC_SECTION_INDEX * 40
    return image, data_dir, section


def test_unrecognised_machine():
    image, _, _ = _make_image(0x01C0)
    with pytest.raises(RelocationError):
        append_reloc_section(bytes(image), PeRelocations())


def test_truncated_image():
    image, _, _ = _make_image(IMAGE_MACHINE_X64)
    with pytest.raises(RelocationError):
        append_reloc_section(bytes(image[:0x90]), PeRelocations())